"""Programmatic API for B2 storage operations."""

import functools
import logging
from pathlib import Path
from typing import Any, Callable, List, Optional, TypeVar, Union

import requests
from pydantic import ValidationError

from .account import Account
from .config import StorageConfig
from .exceptions import (
    ApiError,
    AuthenticationError,
    AuthorizationError,
    B2StorageError,
    ConfigurationError,
    NetworkError,
    ResponseFormatError,
    UploadError,
)
from .http import B2Http
from .lease import TokenLease
from .models import Bucket, ErrorBody, FileVersion
from .upload_file import UploadFile
from .upload_large_file import UploadLargeFile

logger = logging.getLogger(__name__)

# b2 maximum for both a single upload and one part
MAX_PART_SIZE = 5 * 10**9
LARGE_FILE_FACTOR = 2.5

F = TypeVar("F", bound=Callable[..., Any])


def translate_http_error(exc: requests.HTTPError) -> B2StorageError:
    """Map a terminal HTTP error onto the exception taxonomy."""
    response = exc.response
    try:
        body = ErrorBody.model_validate(response.json())
    except (ValueError, ValidationError):
        body = ErrorBody()
    message = body.message or str(exc)
    if response.status_code == 401:
        return AuthenticationError(message, body.code or None)
    if response.status_code == 403:
        return AuthorizationError(message, body.code or None)
    return ApiError(message, response.status_code, body.code or None)


def surface_errors(func: F) -> F:
    """Let B2StorageError through, translate raw transport errors."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except B2StorageError:
            raise
        except requests.HTTPError as exc:
            if exc.response is None:
                raise NetworkError(str(exc)) from exc
            raise translate_http_error(exc) from exc
        except requests.RequestException as exc:
            raise NetworkError(str(exc)) from exc
        except ValidationError as exc:
            raise ResponseFormatError(func.__name__, str(exc)) from exc

    return wrapper  # type: ignore[return-value]


class B2StorageAPI:
    """High-level API: store and remove files in one bucket."""

    def __init__(self, config: StorageConfig, account: Optional[Account] = None) -> None:
        """Initialize the B2 Storage API.

        Args:
            config: credentials, bucket and part size
            account: an already authorized account (authorized lazily otherwise)
        """
        self.config = config
        self._account = account
        self._checked = False
        self._bucket_id: Optional[str] = None
        # one upload url serves consecutive single-shot uploads
        self._upload_lease: Optional[TokenLease] = None

    @property
    def account(self) -> Account:
        if self._account is None:
            logger.info(f"Account login for {self.config.account_id}")
            http = B2Http(
                connect_timeout=self.config.connect_timeout,
                read_timeout=self.config.read_timeout,
            )
            self._account = Account(self.config.account_id, self.config.app_key, http=http)
        if not self._checked:
            self.check_configuration(self._account)
            self._checked = True
        return self._account

    def check_configuration(self, account: Account) -> None:
        part_size = self.config.part_size
        if part_size is None:
            return
        if part_size < account.minimum_part_size:
            raise ConfigurationError(f"part_size must be >= {account.minimum_part_size}")
        if part_size > MAX_PART_SIZE:
            raise ConfigurationError(f"part_size must be <= {MAX_PART_SIZE}")

    @property
    def working_part_size(self) -> int:
        return self.config.part_size or self.account.recommended_part_size

    @property
    def bucket_id(self) -> str:
        if self._bucket_id is None:
            self._bucket_id = self.account.bucket_id(self.config.bucket)
        return self._bucket_id

    def is_large(self, size: int) -> bool:
        return size > self.working_part_size * LARGE_FILE_FACTOR or size > MAX_PART_SIZE

    @surface_errors
    def transfer(self, source_path: Union[str, Path], destination_name: str) -> FileVersion:
        """Store a local file as ``destination_name`` under the configured path.

        Returns:
            The committed file version
        """
        src = Path(source_path)
        if not src.is_file():
            raise UploadError(f"Local file not found: {src}", str(src))

        dst = self.config.remote_name(destination_name)
        size = src.stat().st_size
        common = dict(account=self.account, src=src, dst=dst, bucket_id=self.bucket_id)

        if self.is_large(size):
            logger.info(f"Storing Large '{dst}'")
            upload = UploadLargeFile(part_size=self.working_part_size, **common)
        else:
            logger.info(f"Storing '{dst}'")
            upload = UploadFile(lease=self._upload_lease, **common)

        file_version = upload.call()
        if isinstance(upload, UploadFile):
            # may have been replaced by recovery
            self._upload_lease = upload.lease
        logger.info(f"'{dst}' stored at {file_version.file_name}")
        return file_version

    @surface_errors
    def remove(self, destination_name: str) -> bool:
        """Remove ``destination_name``. Removing something already gone is a no-op.

        Returns:
            True if a file was deleted, False if it was already gone
        """
        dst = self.config.remote_name(destination_name)
        logger.info(f"Removing file {dst}")
        return self.account.delete_file(self.config.bucket, dst)

    @surface_errors
    def list_files(self, prefix: str = "") -> List[FileVersion]:
        """List files under the configured path."""
        full_prefix = self.config.remote_name(prefix) if prefix or self.config.path else ""
        return self.account.files(self.config.bucket, full_prefix)

    @surface_errors
    def list_buckets(self) -> List[Bucket]:
        """List the buckets visible to the credentials."""
        return self.account.bucket_list().buckets


# Convenience functions for quick usage
def transfer(
    source_path: Union[str, Path],
    destination_name: Optional[str] = None,
    config: Optional[StorageConfig] = None,
) -> FileVersion:
    """Quick function to store a file, configured from the environment."""
    api = B2StorageAPI(config or StorageConfig.from_env())
    return api.transfer(source_path, destination_name or Path(source_path).name)


def remove(destination_name: str, config: Optional[StorageConfig] = None) -> bool:
    """Quick function to remove a file, configured from the environment."""
    api = B2StorageAPI(config or StorageConfig.from_env())
    return api.remove(destination_name)
