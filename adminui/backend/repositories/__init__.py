"""
Repositories.

Data access layer, one repository per table.
"""
