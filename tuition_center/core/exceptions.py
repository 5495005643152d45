# tuition_center/core/exceptions.py
"""Custom exceptions for the tuition center application."""
from fastapi import HTTPException
from typing import Any, Dict, Optional


class TuitionCenterException(HTTPException):
    """Base exception for the tuition center application."""
    def __init__(
        self,
        status_code: int,
        detail: str,
        headers: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)


class NotFoundError(TuitionCenterException):
    """Raised when a class, tutor, student or other record does not exist or is inactive."""
    def __init__(self, message: str = "Resource not found"):
        super().__init__(status_code=404, detail=message)


class ConflictError(TuitionCenterException):
    """Raised when a write would collide with existing data (schedule, duplicate name, ...)."""
    def __init__(self, message: str):
        super().__init__(status_code=409, detail=message)


class ValidationError(TuitionCenterException):
    """Raised for malformed input or a violated business rule."""
    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(status_code=400, detail=message)


class AuthenticationError(TuitionCenterException):
    """Raised when the bearer token is missing, invalid or expired."""
    def __init__(self, message: str = "Access token required"):
        super().__init__(
            status_code=401,
            detail=message,
            headers={"WWW-Authenticate": "Bearer"}
        )


class PermissionDeniedError(TuitionCenterException):
    """Raised when the authenticated user may not perform the operation."""
    def __init__(self, message: str = "Permission denied"):
        super().__init__(status_code=403, detail=message)


class StoreError(TuitionCenterException):
    """Raised for database failures; never retried inside an open transaction."""
    def __init__(self, message: str = "Database operation failed"):
        super().__init__(status_code=500, detail=message)
