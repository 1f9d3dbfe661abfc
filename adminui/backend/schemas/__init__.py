"""
Pydantic Schemas.

Request/response models for the API.
"""
