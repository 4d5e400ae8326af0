"""HTTP transport for the B2 API.

One method per operation. Each takes explicit inputs, makes exactly one
request and returns the decoded response struct. Non-2xx responses raise
``requests.HTTPError``; retries are the caller's business.
"""

import base64
import logging
from typing import Any, Dict, List, Optional, Tuple, Type, TypeVar

import requests
from pydantic import ValidationError

from .exceptions import ResponseFormatError
from .models import (
    AuthorizeResponse,
    B2Model,
    BucketList,
    DeletedFile,
    FileNames,
    FileVersion,
    UploadPartResponse,
    UploadUrlResponse,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=B2Model)


class B2Http:
    """Transport calls for the B2 API."""

    AUTHORIZE_URL = "https://api.backblazeb2.com/b2api/v2/b2_authorize_account"
    API_PREFIX = "/b2api/v2"

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        connect_timeout: float = 10,
        read_timeout: float = 300,
    ) -> None:
        """Initialize the transport.

        Args:
            session: requests session to use (a new one by default)
            connect_timeout: seconds to wait for a connection
            read_timeout: seconds to wait between bytes of a response
        """
        self.session = session or requests.Session()
        self.timeout: Tuple[float, float] = (connect_timeout, read_timeout)

    def _request(self, operation: str, model: Type[M], method: str, url: str, **kwargs: Any) -> M:
        response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        response.raise_for_status()
        try:
            return model.model_validate(response.json())
        except ValueError as exc:
            # ValidationError is a ValueError too
            reason = str(exc) if isinstance(exc, ValidationError) else "body is not json"
            raise ResponseFormatError(operation, reason) from exc

    def _post(self, operation: str, model: Type[M], api_url: str, auth_headers: Dict[str, str], body: Dict[str, Any]) -> M:
        return self._request(
            operation,
            model,
            "POST",
            f"{api_url}{self.API_PREFIX}/{operation}",
            headers=auth_headers,
            json=body,
        )

    def b2_authorize_account(self, account_id: str, app_key: str) -> AuthorizeResponse:
        encoded = base64.b64encode(f"{account_id}:{app_key}".encode()).decode()
        return self._request(
            "b2_authorize_account",
            AuthorizeResponse,
            "GET",
            self.AUTHORIZE_URL,
            headers={"Authorization": f"Basic {encoded}"},
        )

    def b2_get_upload_url(self, api_url: str, auth_headers: Dict[str, str], bucket_id: str) -> UploadUrlResponse:
        return self._post("b2_get_upload_url", UploadUrlResponse, api_url, auth_headers, {"bucketId": bucket_id})

    # upload with incorrect sha1 responds with
    # {"code": "bad_request", "message": "Sha1 did not match data received", "status": 400}
    def b2_upload_file(self, upload_url: str, headers: Dict[str, str], data: bytes) -> FileVersion:
        return self._request("b2_upload_file", FileVersion, "POST", upload_url, headers=headers, data=data)

    def b2_list_buckets(self, api_url: str, auth_headers: Dict[str, str], body: Dict[str, Any]) -> BucketList:
        return self._post("b2_list_buckets", BucketList, api_url, auth_headers, body)

    def b2_list_file_names(self, api_url: str, auth_headers: Dict[str, str], body: Dict[str, Any]) -> FileNames:
        return self._post("b2_list_file_names", FileNames, api_url, auth_headers, body)

    def b2_delete_file_version(self, api_url: str, auth_headers: Dict[str, str], body: Dict[str, Any]) -> DeletedFile:
        return self._post("b2_delete_file_version", DeletedFile, api_url, auth_headers, body)

    def b2_start_large_file(self, api_url: str, auth_headers: Dict[str, str], body: Dict[str, Any]) -> FileVersion:
        return self._post("b2_start_large_file", FileVersion, api_url, auth_headers, body)

    def b2_get_upload_part_url(self, api_url: str, auth_headers: Dict[str, str], file_id: str) -> UploadUrlResponse:
        return self._post("b2_get_upload_part_url", UploadUrlResponse, api_url, auth_headers, {"fileId": file_id})

    # Parts can't use chunked encoding, so the whole part is sent from memory.
    def b2_upload_part(self, upload_url: str, headers: Dict[str, str], data: bytes) -> UploadPartResponse:
        return self._request("b2_upload_part", UploadPartResponse, "POST", upload_url, headers=headers, data=data)

    def b2_finish_large_file(
        self, api_url: str, auth_headers: Dict[str, str], file_id: str, shas: List[str]
    ) -> FileVersion:
        return self._post(
            "b2_finish_large_file",
            FileVersion,
            api_url,
            auth_headers,
            {"fileId": file_id, "partSha1Array": shas},
        )
