"""
Error taxonomy shared by services and routes.

Services raise these; app.main maps each one to an HTTP status with a
{"detail": message} body. Anything else surfaces as a 500.
"""

from fastapi import HTTPException, status


class CivicError(Exception):
    """Base class for client-facing errors."""
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(CivicError):
    """Missing or malformed required field or id."""
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidTransitionError(ValidationError):
    """Requested issue status move is not in the transition table."""


class AuthError(CivicError):
    """Bad credential, or missing/invalid/expired token."""
    status_code = status.HTTP_401_UNAUTHORIZED


class NotFoundError(CivicError):
    """Referenced entity does not exist."""
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(CivicError):
    """Duplicate key or relationship, locked record, or lost write race."""
    status_code = status.HTTP_409_CONFLICT


def server_error(exc: Exception) -> HTTPException:
    """Wrap an unexpected failure as a 500 with the standard detail prefix."""
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Internal server error: {str(exc)}",
    )
