"""Upload a large file in several parts."""

import hashlib
import logging
import time
from typing import BinaryIO, Callable, List, Optional

from .endpoints import endpoint
from .lease import TokenLease
from .models import (
    FileVersion,
    PartRecord,
    UploadPartResponse,
    UploadPlan,
    UploadUrlResponse,
)
from .recovery import (
    FINISH_LARGE_FILE,
    GET_UPLOAD_PART_URL,
    START_LARGE_FILE,
    UPLOAD_PART,
)
from .upload import Upload

logger = logging.getLogger(__name__)

# backblaze specified max number of parts
MAX_PARTS = 10000


class UploadLargeFile(Upload):
    """Upload a large file as a sequence of sha1-checked parts.

    start -> upload parts 1..n -> finish. A failure that can't be recovered
    aborts the transfer and leaves the unfinished large file for the
    provider to clean up.
    """

    def __init__(self, *, part_size: int, max_parts: int = MAX_PARTS, **kwargs) -> None:
        super().__init__(**kwargs)
        self.part_size = part_size
        self.max_parts = max_parts
        self.file_id: Optional[str] = None
        self.parts: List[PartRecord] = []
        self._plan: Optional[UploadPlan] = None

    @property
    def plan(self) -> UploadPlan:
        if self._plan is None:
            self._plan = UploadPlan(
                source_size=self.src.stat().st_size,
                part_size=self.part_size,
                max_part_count=self.max_parts,
            )
        return self._plan

    @property
    def part_count(self) -> int:
        return self.plan.part_count

    @endpoint(START_LARGE_FILE)
    def b2_start_large_file(self, call: Callable[..., FileVersion]) -> FileVersion:
        body = {
            "bucketId": self.bucket_id,
            "fileName": self.dst,
            "contentType": self.content_type,
            # large_file_sha1 is optional and hard to calculate up front, so don't send it.
            "fileInfo": self.file_info(),
        }
        response = call(self.account.api_url, self.auth_headers(), body)
        self.file_id = response.file_id
        return response

    @endpoint(GET_UPLOAD_PART_URL)
    def b2_get_upload_part_url(self, call: Callable[..., UploadUrlResponse]) -> UploadUrlResponse:
        response = call(self.account.api_url, self.auth_headers(), self.file_id)
        self.lease = TokenLease.from_response(response, self.b2_get_upload_part_url)
        return response

    @endpoint(UPLOAD_PART)
    def b2_upload_part(
        self, call: Callable[..., UploadPartResponse], sequence: int, data: bytes, sha1: str
    ) -> UploadPartResponse:
        logger.info(f"{self.src} trying part {sequence} of {self.part_count}")
        # not the same token as auth_headers
        headers = {
            "Authorization": self.lease.auth,
            "X-Bz-Part-Number": str(sequence),
            "Content-Length": str(len(data)),
            "X-Bz-Content-Sha1": sha1,
        }
        return call(self.lease.url, headers, data)

    @endpoint(FINISH_LARGE_FILE)
    def b2_finish_large_file(self, call: Callable[..., FileVersion], shas: List[str]) -> FileVersion:
        return call(self.account.api_url, self.auth_headers(), self.file_id, shas)

    def read_part(self, source: BinaryIO, sequence: int) -> bytes:
        source.seek((sequence - 1) * self.part_size)
        return source.read(self.part_size)

    def call(self) -> FileVersion:
        """Upload all parts and commit the file. Returns the stored file version."""
        # fail before touching the network
        self.plan.validate_plan()
        logger.info(
            f"{self.src} has {self.plan.source_size} bytes; will upload in "
            f"{self.part_count} parts of up to {self.part_size} bytes each"
        )
        start_time = time.time()

        self.b2_start_large_file()
        self.b2_get_upload_part_url()

        self.parts = []
        with self.src.open("rb") as source:
            for sequence in range(1, self.part_count + 1):
                # held in memory so retries send the same bytes
                data = self.read_part(source, sequence)
                if not data:
                    # no more file to send
                    break
                sha1 = hashlib.sha1(data).hexdigest()
                self.b2_upload_part(sequence, data, sha1)
                self.parts.append(PartRecord(sequence=sequence, length=len(data), sha1=sha1))
                logger.info(f"{self.src} stored part {sequence} with {sha1}")

        file_version = self.b2_finish_large_file([part.sha1 for part in self.parts])
        elapsed = time.time() - start_time
        duration = time.strftime("%Hh %Mm %Ss", time.gmtime(elapsed))
        logger.info(f"{self.src} finished as {file_version.file_id}, duration {duration}")
        return file_version
