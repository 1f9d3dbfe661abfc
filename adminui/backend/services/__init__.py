"""
Services.

Business logic layer between the API/bot and the repositories.
"""
