"""
Error Handling System

Standardized error codes and exceptions for the gallery service.
Every failure a client can observe is a ServiceError carrying one of the
codes below, so API responses stay predictable.
"""
from enum import Enum
from typing import Any, Dict, Optional
from fastapi import HTTPException, status


class ErrorCode(str, Enum):
    """Standardized error codes for the entire application."""

    # Validation errors (VAL_xxx) - InvalidArgument
    VAL_INVALID_TITLE = "VAL_001"
    VAL_INVALID_IMAGES = "VAL_002"
    VAL_INVALID_GALLERY_ID = "VAL_003"
    VAL_MALFORMED_BODY = "VAL_004"

    # Gallery errors (GALLERY_xxx)
    GALLERY_NOT_FOUND = "GALLERY_001"
    GALLERY_CONFLICT = "GALLERY_002"

    # Media host errors (MEDIA_xxx) - UploadFailure
    MEDIA_UPLOAD_FAILED = "MEDIA_001"

    # Store errors (STORE_xxx) - StoreFailure
    STORE_OPERATION_FAILED = "STORE_001"

    # Auth errors (AUTH_xxx)
    AUTH_INVALID_TOKEN = "AUTH_001"


class ServiceError(HTTPException):
    """
    Base class for business logic errors.

    Rendered by the ServiceError exception handler as:

    {
        "message": "Gallery not found",
        "code": "GALLERY_001",
        "details": {"gallery_id": "..."}
    }

    An "error" key carries the underlying collaborator message when there is one.
    """

    def __init__(
        self,
        status_code: int,
        code: ErrorCode,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            status_code=status_code,
            detail={
                "code": code,
                "message": message,
                "details": details or {}
            }
        )
        self.code = code
        self.user_message = message
        self.error_details = details or {}

    @property
    def http_status(self) -> int:
        return self.status_code

    def __str__(self) -> str:
        return f"{self.code.value}: {self.user_message}"


def invalid_argument(code: ErrorCode, message: str, details: Optional[Dict[str, Any]] = None) -> ServiceError:
    """Create a validation error (400 Bad Request)."""
    return ServiceError(status.HTTP_400_BAD_REQUEST, code, message, details)


def not_found_error(code: ErrorCode, message: str, details: Optional[Dict[str, Any]] = None) -> ServiceError:
    """Create a not-found error (404 Not Found)."""
    return ServiceError(status.HTTP_404_NOT_FOUND, code, message, details)


def conflict_error(code: ErrorCode, message: str, details: Optional[Dict[str, Any]] = None) -> ServiceError:
    """Create a concurrent-modification error (409 Conflict)."""
    return ServiceError(status.HTTP_409_CONFLICT, code, message, details)


def media_error(code: ErrorCode, message: str, details: Optional[Dict[str, Any]] = None) -> ServiceError:
    """Create a media-host error (500 Internal Server Error)."""
    return ServiceError(status.HTTP_500_INTERNAL_SERVER_ERROR, code, message, details)


def store_error(code: ErrorCode, message: str, details: Optional[Dict[str, Any]] = None) -> ServiceError:
    """Create a persistence error (500 Internal Server Error)."""
    return ServiceError(status.HTTP_500_INTERNAL_SERVER_ERROR, code, message, details)


def auth_error(code: ErrorCode, message: str, details: Optional[Dict[str, Any]] = None) -> ServiceError:
    """Create an authentication error (401 Unauthorized)."""
    return ServiceError(status.HTTP_401_UNAUTHORIZED, code, message, details)
