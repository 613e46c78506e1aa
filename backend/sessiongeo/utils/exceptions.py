"""Custom exceptions and error handling utilities."""
from fastapi import HTTPException, status
from typing import Optional


class AppException(Exception):
    """Base exception for application errors."""
    pass


class SessionFormatError(AppException):
    """Raised when a session file is missing, unreadable or malformed."""
    pass


class GeometryExtractionError(AppException):
    """Raised when replay or geometry sampling fails."""
    pass


class ExtractionCancelled(GeometryExtractionError):
    """Raised when an extraction run is cancelled between steps."""
    pass


class RecorderError(AppException):
    """Raised when the recorder is used before it has been started."""
    pass


def not_found_error(resource: str, identifier: Optional[str] = None) -> HTTPException:
    """
    Create a standardized 404 error.

    Args:
        resource: Name of the resource (e.g., "Session")
        identifier: Optional identifier that was not found

    Returns:
        HTTPException with 404 status
    """
    message = f"{resource} not found"
    if identifier:
        message += f": {identifier}"
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=message)
