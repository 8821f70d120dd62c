# app/core/exceptions.py

"""
Error taxonomy shared by the rate and profile engines.

Every failure is reported synchronously as one of three typed errors. None
of them is retried: overlaps and uniqueness violations are semantic, so the
caller must change its input.
"""

from typing import Optional, Any

from fastapi import HTTPException, status


class FleetBaseException(Exception):
    """Base exception for all engine errors."""
    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(FleetBaseException):
    """Raised when a referenced owner, cab, profile, attribute type or shift does not exist."""
    def __init__(self, resource: str, identifier: Any = None, message: Optional[str] = None):
        msg = message or (
            f"{resource} {identifier} not found" if identifier is not None else f"{resource} not found"
        )
        super().__init__(msg, {"resource": resource, "id": identifier})


class ValidationError(FleetBaseException):
    """Raised for malformed input or a rule that forbids the operation."""
    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message, details)


class ConflictError(FleetBaseException):
    """Raised when a date range overlaps an existing record for the same key."""
    def __init__(self, message: str, conflicting_id: Any = None, details: Optional[dict] = None):
        merged = {"conflicting_id": conflicting_id}
        merged.update(details or {})
        super().__init__(message, merged)


def convert_to_http_exception(exc: FleetBaseException) -> HTTPException:
    """
    Convert a FleetBaseException to an HTTPException with appropriate status code.

    Args:
        exc: The engine exception to convert

    Returns:
        HTTPException with appropriate status code and detail
    """
    if isinstance(exc, NotFoundError):
        status_code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, ConflictError):
        status_code = status.HTTP_409_CONFLICT
    elif isinstance(exc, ValidationError):
        status_code = status.HTTP_400_BAD_REQUEST
    else:
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return HTTPException(
        status_code=status_code,
        detail={"message": exc.message, "details": exc.details}
    )
