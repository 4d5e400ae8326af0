"""
B2 Storage - resilient client and CLI for Backblaze B2 uploads.

This package provides:
- Python SDK for storing and removing files in a B2 bucket
- Large file uploads in sha1-checked parts
- Table-driven retries that follow Backblaze's recovery rules
- CLI tool for quick transfers
"""

__version__ = "1.0.0"

from .core.account import Account
from .core.api import B2StorageAPI, remove, transfer
from .core.config import StorageConfig
from .core.exceptions import (
    ApiError,
    AuthenticationError,
    AuthorizationError,
    B2StorageError,
    ConfigurationError,
    NetworkError,
    NotFoundError,
    ResponseFormatError,
    RetryAfterTooLong,
    TooManyRetries,
    UploadError,
)
from .core.http import B2Http
from .core.models import FileVersion, PartRecord, SessionState, UploadPlan
from .core.upload_file import UploadFile
from .core.upload_large_file import UploadLargeFile

__all__ = [
    # Core classes
    "B2StorageAPI",
    "Account",
    "B2Http",
    "StorageConfig",
    "UploadFile",
    "UploadLargeFile",
    # Models
    "FileVersion",
    "PartRecord",
    "SessionState",
    "UploadPlan",
    # Exceptions
    "B2StorageError",
    "ConfigurationError",
    "AuthenticationError",
    "AuthorizationError",
    "NotFoundError",
    "NetworkError",
    "ApiError",
    "ResponseFormatError",
    "RetryAfterTooLong",
    "TooManyRetries",
    "UploadError",
    # Convenience functions
    "transfer",
    "remove",
    # Metadata
    "__version__",
]
