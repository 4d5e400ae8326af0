"""Common parts of single-shot and large file uploads."""

from pathlib import Path
from typing import Dict, Optional, Union

from .account import Account
from .endpoints import EndpointClient
from .lease import TokenLease
from .models import SessionState

DEFAULT_CONTENT_TYPE = "b2/x-auto"


class Upload(EndpointClient):
    """Upload of one local file to ``dst`` in a bucket.

    ``dst`` can contain / for namespaces.
    """

    def __init__(
        self,
        *,
        account: Account,
        src: Union[str, Path],
        dst: str,
        bucket_id: str,
        content_type: Optional[str] = None,
        content_disposition: Optional[str] = None,
        lease: Optional[TokenLease] = None,
    ) -> None:
        self.account = account
        self.http = account.http
        self.src = Path(src)
        self.dst = dst
        self.bucket_id = bucket_id
        self.content_type = content_type or DEFAULT_CONTENT_TYPE
        self.content_disposition = content_disposition
        self.lease = lease
        self._last_modified_millis: Optional[int] = None

    # needed for recovery through re-authorization
    def b2_authorize_account(self, retries: int = 0, backoff: Optional[int] = None) -> SessionState:
        return self.account.b2_authorize_account(retries=retries, backoff=backoff)

    def auth_headers(self) -> Dict[str, str]:
        return self.account.auth_headers()

    @property
    def last_modified_millis(self) -> int:
        if self._last_modified_millis is None:
            self._last_modified_millis = self.src.lstat().st_mtime_ns // 1_000_000
        return self._last_modified_millis

    def file_info(self) -> Dict[str, str]:
        info = {"src_last_modified_millis": str(self.last_modified_millis)}
        if self.content_disposition:
            info["b2-content-disposition"] = self.content_disposition
        return info
