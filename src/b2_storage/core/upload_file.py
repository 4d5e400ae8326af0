"""Single-shot upload of a small file."""

import hashlib
import logging
from typing import Callable, Dict, Optional
from urllib.parse import quote

from .endpoints import endpoint
from .lease import TokenLease
from .models import FileVersion
from .recovery import UPLOAD_FILE
from .upload import Upload

logger = logging.getLogger(__name__)


class UploadFile(Upload):
    """Calculate the sha1 of a file and upload it in one request.

    The file is read once, and the same bytes are sent on every retry.
    """

    _data: Optional[bytes] = None
    _sha1: Optional[str] = None

    @property
    def data(self) -> bytes:
        if self._data is None:
            self._data = self.src.read_bytes()
        return self._data

    @property
    def sha1(self) -> str:
        if self._sha1 is None:
            self._sha1 = hashlib.sha1(self.data).hexdigest()
        return self._sha1

    def headers(self) -> Dict[str, str]:
        # headers all have to be strings
        headers = {
            "Authorization": self.lease.auth,
            "X-Bz-File-Name": quote(self.dst.encode("utf-8"), safe="/"),
            "X-Bz-Content-Sha1": self.sha1,
            "Content-Length": str(len(self.data)),
            "Content-Type": self.content_type,
        }
        for key, value in self.file_info().items():
            headers[f"X-Bz-Info-{key}"] = value
        return headers

    # recovery step for b2_upload_file: a dead upload url is replaced
    def b2_get_upload_url(self, retries: int = 0, backoff: Optional[int] = None) -> TokenLease:
        if self.lease is None:
            self.lease = self.account.upload_url(self.bucket_id, retries=retries, backoff=backoff)
        else:
            self.lease = self.lease.refresh(retries=retries, backoff=backoff)
        return self.lease

    @endpoint(UPLOAD_FILE)
    def b2_upload_file(self, call: Callable[..., FileVersion]) -> FileVersion:
        return call(self.lease.url, self.headers(), self.data)

    def call(self) -> FileVersion:
        """Upload the file. Returns the stored file version."""
        if self.lease is None:
            self.b2_get_upload_url()
        logger.info(f"{self.src} uploading {len(self.data)} bytes with {self.sha1}")
        return self.b2_upload_file()
