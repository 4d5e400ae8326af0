"""
Exception classes for B2 Storage.

Provides the error taxonomy surfaced to callers of the storage facade.
"""

from typing import Any, Dict, Optional


class B2StorageError(Exception):
    """Base exception for all B2 Storage errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (Details: {self.details})"
        return self.message


class ConfigurationError(B2StorageError):
    """Raised for configuration errors. Never retried."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


class AuthenticationError(B2StorageError):
    """Raised when authentication fails and cannot be recovered."""

    def __init__(self, message: str = "Authentication failed", code: Optional[str] = None) -> None:
        details = {"code": code} if code else {}
        super().__init__(message, details)
        self.code = code


class AuthorizationError(B2StorageError):
    """Raised when the credentials are not allowed to do something."""

    def __init__(self, message: str = "Authorization failed", code: Optional[str] = None) -> None:
        details = {"code": code} if code else {}
        super().__init__(message, details)
        self.code = code


class NotFoundError(B2StorageError):
    """Raised when a bucket or file looked up by name does not exist."""

    def __init__(self, kind: str, name: str) -> None:
        super().__init__(f"{kind} not found: {name}", {kind: name})
        self.kind = kind
        self.name = name


class NetworkError(B2StorageError):
    """Raised for network-related errors with no HTTP response."""

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ApiError(B2StorageError):
    """Raised for a terminal HTTP error returned by the provider."""

    def __init__(self, message: str, status_code: int, code: Optional[str] = None) -> None:
        details = {"status_code": status_code}
        if code:
            details["code"] = code
        super().__init__(message, details)
        self.status_code = status_code
        self.code = code


class ResponseFormatError(B2StorageError):
    """Raised when a response body is missing required fields."""

    def __init__(self, operation: str, reason: str) -> None:
        super().__init__(f"Malformed {operation} response: {reason}", {"operation": operation})
        self.operation = operation


class RetryAfterTooLong(B2StorageError):
    """Raised when the server asks us to wait longer than we are prepared to."""

    def __init__(self, operation: str, retry_after: int, ceiling: int) -> None:
        super().__init__(
            f"Retry-After {retry_after} > {ceiling} is too long",
            {"operation": operation, "retry_after": retry_after},
        )
        self.operation = operation
        self.retry_after = retry_after


class TooManyRetries(B2StorageError):
    """Raised when an operation has used up its retries."""

    def __init__(self, operation: str, max_retries: int) -> None:
        super().__init__(
            f"max retries is {max_retries}",
            {"operation": operation},
        )
        self.operation = operation
        self.max_retries = max_retries


class UploadError(B2StorageError):
    """Raised for upload-related errors."""

    def __init__(self, message: str, file_path: Optional[str] = None) -> None:
        details = {"file_path": file_path} if file_path else {}
        super().__init__(message, details)
        self.file_path = file_path
