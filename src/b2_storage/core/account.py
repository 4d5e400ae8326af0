"""B2 account: authorization session plus bucket and file lookups."""

import functools
import logging
from typing import Callable, Dict, List, Optional

import requests

from .endpoints import EndpointClient, endpoint
from .exceptions import ConfigurationError, NotFoundError
from .http import B2Http
from .lease import TokenLease
from .models import (
    AuthorizeResponse,
    BucketList,
    DeletedFile,
    FileNames,
    FileVersion,
    SessionState,
    UploadUrlResponse,
)
from .recovery import (
    AUTHORIZE,
    DELETE_FILE_VERSION,
    GET_UPLOAD_URL,
    LIST_BUCKETS,
    LIST_FILE_NAMES,
)
from .retry import error_code

logger = logging.getLogger(__name__)

WRITE_CAPABILITY = "writeFiles"


class Account(EndpointClient):
    """An authorized B2 account."""

    def __init__(self, account_id: str, app_key: str, http: Optional[B2Http] = None) -> None:
        """Authorize the account.

        Args:
            account_id: B2 account id or application key id
            app_key: B2 application key
            http: transport to use (a new B2Http by default)
        """
        self.account_id = account_id
        self.app_key = app_key
        self.http = http or B2Http()
        self._session: Optional[SessionState] = None
        self.b2_authorize_account()

    @endpoint(AUTHORIZE)
    def b2_authorize_account(self, call: Callable[..., AuthorizeResponse]) -> SessionState:
        response = call(self.account_id, self.app_key)
        session = SessionState.from_response(response)
        if WRITE_CAPABILITY not in session.capabilities:
            raise ConfigurationError(
                f"app_key for {self.account_id} does not have write access to the account"
            )
        # replaced wholesale, readers see either the old or the new session
        self._session = session
        return session

    @property
    def session(self) -> SessionState:
        if self._session is None:
            raise ConfigurationError(f"account {self.account_id} is not authorized")
        return self._session

    @property
    def api_url(self) -> str:
        return self.session.api_url

    @property
    def authorization_token(self) -> str:
        return self.session.authorization_token

    @property
    def minimum_part_size(self) -> int:
        return self.session.absolute_minimum_part_size

    @property
    def recommended_part_size(self) -> int:
        return self.session.recommended_part_size

    def auth_headers(self) -> Dict[str, str]:
        return {"Authorization": self.authorization_token}

    @endpoint(GET_UPLOAD_URL)
    def b2_get_upload_url(self, call: Callable[..., UploadUrlResponse], bucket_id: str) -> UploadUrlResponse:
        return call(self.api_url, self.auth_headers(), bucket_id)

    def upload_url(self, bucket_id: str, retries: int = 0, backoff: Optional[int] = None) -> TokenLease:
        """Issue an upload url lease for ``bucket_id``.

        Several files can be uploaded to one url, but uploading files in
        parallel requires one lease per thread.
        """
        issuer = functools.partial(self.b2_get_upload_url, bucket_id)
        return TokenLease.issue(issuer, retries=retries, backoff=backoff)

    @endpoint(LIST_BUCKETS)
    def b2_list_buckets(self, call: Callable[..., BucketList], body: Dict[str, str]) -> BucketList:
        return call(self.api_url, self.auth_headers(), body)

    def bucket_list(self, bucket_id: Optional[str] = None, bucket_name: Optional[str] = None) -> BucketList:
        body = {"accountId": self.session.account_id, "bucketId": bucket_id, "bucketName": bucket_name}
        return self.b2_list_buckets({k: v for k, v in body.items() if v})

    def bucket_id(self, bucket_name: str) -> str:
        """Return the id of the named bucket."""
        for bucket in self.bucket_list(bucket_name=bucket_name).buckets:
            if bucket.bucket_name == bucket_name:
                return bucket.bucket_id
        raise NotFoundError("bucket", bucket_name)

    @endpoint(LIST_FILE_NAMES)
    def b2_list_file_names(self, call: Callable[..., FileNames], body: Dict[str, object]) -> FileNames:
        return call(self.api_url, self.auth_headers(), body)

    def files(self, bucket_name: str, prefix: str = "") -> List[FileVersion]:
        """List all file names in the bucket, following nextFileName."""
        bucket_id = self.bucket_id(bucket_name)
        files = []
        body = {"bucketId": bucket_id, "maxFileCount": 1000}
        if prefix:
            body["prefix"] = prefix
        while True:
            page = self.b2_list_file_names(dict(body))
            files.extend(page.files)
            if not page.next_file_name:
                return files
            body["startFileName"] = page.next_file_name

    def file_info(self, bucket_name: str, file_name: str) -> FileVersion:
        """Return the file with exactly ``file_name``. Mostly used for its file id."""
        return self._find_file(self.bucket_id(bucket_name), file_name)

    def _find_file(self, bucket_id: str, file_name: str) -> FileVersion:
        body = {"bucketId": bucket_id, "maxFileCount": 1, "startFileName": file_name}
        page = self.b2_list_file_names(body)
        # startFileName returns the next name when there's no exact match
        if len(page.files) != 1 or page.files[0].file_name != file_name:
            raise NotFoundError("file", file_name)
        return page.files[0]

    @endpoint(DELETE_FILE_VERSION)
    def b2_delete_file_version(self, call: Callable[..., DeletedFile], body: Dict[str, str]) -> DeletedFile:
        return call(self.api_url, self.auth_headers(), body)

    def delete_file(self, bucket_name: str, file_name: str) -> bool:
        """Delete the named file in the named bucket.

        Returns False if the file was already gone. A missing bucket still
        raises NotFoundError.
        """
        bucket_id = self.bucket_id(bucket_name)
        try:
            info = self._find_file(bucket_id, file_name)
        except NotFoundError:
            logger.info(f"{file_name} already gone from {bucket_name} ({bucket_id})")
            return False

        try:
            self.b2_delete_file_version({"fileName": file_name, "fileId": info.file_id})
        except requests.HTTPError as exc:
            response = exc.response
            if response is not None and response.status_code == 400 and error_code(response) == "file_not_present":
                logger.info(f"{file_name} already gone from {bucket_name}")
                return False
            raise
        return True
