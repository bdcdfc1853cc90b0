"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .auth import ErrorResponse, LoginRequest, LoginResponse, SessionStatus

__all__ = [
    "ErrorResponse",
    "LoginRequest", "LoginResponse",
    "SessionStatus",
]
