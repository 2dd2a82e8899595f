"""
Error Handling Module

Defines domain exceptions and error categories for the application.
Domain exceptions are pure and have no external dependencies.
Application exceptions carry the user-facing messaging used by the API.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCategory(Enum):
    """Error category enumeration for structured error handling."""

    FILE_NOT_FOUND = "file_not_found"
    NO_FILE_UPLOADED = "no_file_uploaded"
    FILE_TOO_LARGE = "file_too_large"
    DUPLICATE_KEY = "duplicate_key"
    STORAGE_UNAVAILABLE = "storage_unavailable"
    UPLOAD_FAILED = "upload_failed"
    SYSTEM_ERROR = "system_error"


# User-friendly error messages with actionable guidance
ERROR_MESSAGES: Dict[ErrorCategory, Dict[str, str]] = {
    ErrorCategory.FILE_NOT_FOUND: {
        "title": "File Not Found",
        "message": "File not found or expired.",
        "action": "Shared files are only kept for a limited time. Ask the sender to upload it again.",
    },
    ErrorCategory.NO_FILE_UPLOADED: {
        "title": "No File Uploaded",
        "message": "The request did not contain a file.",
        "action": "Attach a file in the 'file' form field and try again.",
    },
    ErrorCategory.FILE_TOO_LARGE: {
        "title": "File Too Large",
        "message": "The uploaded file exceeds the maximum allowed size.",
        "action": "Try a smaller file.",
    },
    ErrorCategory.DUPLICATE_KEY: {
        "title": "Upload Conflict",
        "message": "The file could not be registered because its storage key is already in use.",
        "action": "Please upload the file again.",
    },
    ErrorCategory.STORAGE_UNAVAILABLE: {
        "title": "Storage Unavailable",
        "message": "The file store is temporarily unavailable.",
        "action": "Please try again in a few moments.",
    },
    ErrorCategory.UPLOAD_FAILED: {
        "title": "Upload Failed",
        "message": "Failed to upload file.",
        "action": "Please try again. If the problem persists, contact support.",
    },
    ErrorCategory.SYSTEM_ERROR: {
        "title": "System Error",
        "message": "An unexpected error occurred while processing your request.",
        "action": "Please try again later. If the problem persists, contact support.",
    },
}


# ============================================================================
# Domain Exceptions (Pure - No External Dependencies)
# ============================================================================

class DomainError(Exception):
    """
    Base exception for all domain errors.

    Domain exceptions are pure and have no external dependencies.
    They can optionally wrap original errors for context.
    """

    def __init__(self, message: str, original_error: Exception = None):
        """
        Initialize domain error.

        Args:
            message: Error message
            original_error: Optional original exception that caused this error
        """
        super().__init__(message)
        self.original_error = original_error


class TransientStoreError(DomainError):
    """
    Raised when a store call fails for a reason that may resolve by itself.

    Covers network errors and timeouts on either the metadata store or the
    object store. The reconciliation sweep retries on its next cycle; request
    handlers surface it as a failed request.
    """
    pass


class PersistenceError(TransientStoreError):
    """Raised when the metadata store cannot persist a record."""
    pass


class DuplicateKeyError(DomainError):
    """
    Raised when a record already exists for a store key.

    Signals a key-generation collision. The existing record is never
    overwritten.
    """

    def __init__(self, store_key: str, original_error: Exception = None):
        super().__init__(f"A file record already exists for key: {store_key}", original_error)
        self.store_key = store_key


class RecordNotFoundError(DomainError):
    """
    Raised when a file record does not exist or has expired.

    The two cases are deliberately indistinguishable.
    """

    def __init__(self, record_id: str):
        super().__init__(f"File record not found or expired: {record_id}")
        self.record_id = record_id


class PartialListingError(TransientStoreError):
    """
    Raised when an object listing fails before every page was consumed.

    A partial listing must never be treated as the complete namespace.
    """

    def __init__(self, prefix: str, keys_seen: int, original_error: Exception = None):
        super().__init__(
            f"Listing of prefix '{prefix}' failed after {keys_seen} keys",
            original_error,
        )
        self.prefix = prefix
        self.keys_seen = keys_seen


class InvalidStoreKeyError(DomainError, ValueError):
    """Raised when a store key fails validation."""
    pass


class CycleInProgressError(DomainError):
    """Raised when a sweep cannot start because another one holds the guard."""

    def __init__(self, guard_name: str):
        super().__init__(f"Reconciliation already in progress: {guard_name}")
        self.guard_name = guard_name


# ============================================================================
# Application Layer Exceptions
# ============================================================================

class ApplicationError(Exception):
    """
    Base application error with category and user-friendly messaging.

    Bridges domain errors with user-facing error messages and HTTP responses.
    """

    def __init__(
        self,
        category: ErrorCategory,
        technical_message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize application error.

        Args:
            category: Error category
            technical_message: Technical error details for logging
            context: Additional context information
        """
        self.category = category
        self.technical_message = technical_message or ""
        self.context = context or {}

        error_info = ERROR_MESSAGES.get(
            category, ERROR_MESSAGES[ErrorCategory.SYSTEM_ERROR]
        )
        self.title = error_info["title"]
        self.message = error_info["message"]
        self.action = error_info["action"]

        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert error to dictionary for API response.

        Returns:
            Dictionary with error information
        """
        return {
            "error": self.category.value,
            "title": self.title,
            "message": self.message,
            "action": self.action,
        }


def create_error_response(
    category: ErrorCategory,
    technical_message: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None,
    status_code: int = 400,
) -> tuple[Dict[str, Any], int]:
    """
    Create a structured error response for API endpoints.

    Args:
        category: Error category
        technical_message: Technical error details for logging
        context: Additional context information
        status_code: HTTP status code

    Returns:
        Tuple of (error_dict, status_code)
    """
    error = ApplicationError(category, technical_message, context)
    return error.to_dict(), status_code
