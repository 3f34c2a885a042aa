"""
Domain exceptions for the background verification API.

Services raise these; the handlers registered in bgv.main render them as the
standard ``{"success": false, "message": ..., "error": ...}`` envelope.
"""
from typing import Optional

from fastapi import status


class AppError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, error: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.error = error


class ValidationError(AppError):
    """Missing required field, bad enum value or inconsistent request data."""

    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(AppError):
    """Request is well formed but clashes with the current state."""

    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED


class PermissionDeniedError(AppError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND


class TransactionError(AppError):
    """A database error aborted the surrounding transaction."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class ApplicationNotOwned(NotFoundError):
    """Application is absent or assigned to another verifier; indistinguishable on purpose."""

    def __init__(self) -> None:
        super().__init__("Application not found or not assigned to you")
