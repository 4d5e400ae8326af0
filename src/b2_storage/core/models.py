"""
Pydantic models for B2 Storage.

Every provider response is decoded once into one of these structs, so a
missing required field fails at the transport boundary instead of somewhere
deep in the upload code.
"""

import math
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .exceptions import ConfigurationError


class B2Model(BaseModel):
    """Base for provider structs: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# Response Models
class ErrorBody(B2Model):
    """Error body returned with every non-2xx response."""

    status: Optional[int] = Field(None, description="HTTP status echoed by the provider")
    code: str = Field("", description="Provider error code", examples=["expired_auth_token"])
    message: str = Field("", description="Human readable message")


class Allowed(B2Model):
    """Restrictions attached to an application key."""

    capabilities: List[str] = Field(default_factory=list)
    bucket_id: Optional[str] = Field(None, alias="bucketId")
    bucket_name: Optional[str] = Field(None, alias="bucketName")


class AuthorizeResponse(B2Model):
    """Response of b2_authorize_account."""

    account_id: str = Field(..., alias="accountId")
    api_url: str = Field(..., alias="apiUrl")
    authorization_token: str = Field(..., alias="authorizationToken")
    download_url: Optional[str] = Field(None, alias="downloadUrl")
    absolute_minimum_part_size: int = Field(..., alias="absoluteMinimumPartSize")
    recommended_part_size: int = Field(..., alias="recommendedPartSize")
    allowed: Allowed = Field(default_factory=Allowed)


class UploadUrlResponse(B2Model):
    """Response of b2_get_upload_url and b2_get_upload_part_url."""

    upload_url: str = Field(..., alias="uploadUrl")
    authorization_token: str = Field(..., alias="authorizationToken")
    bucket_id: Optional[str] = Field(None, alias="bucketId")
    file_id: Optional[str] = Field(None, alias="fileId")


class Bucket(B2Model):
    """Bucket information."""

    bucket_id: str = Field(..., alias="bucketId")
    bucket_name: str = Field(..., alias="bucketName")
    bucket_type: Optional[str] = Field(None, alias="bucketType")
    account_id: Optional[str] = Field(None, alias="accountId")


class BucketList(B2Model):
    """Response of b2_list_buckets."""

    buckets: List[Bucket] = Field(default_factory=list)


class FileVersion(B2Model):
    """A stored file version, as returned by uploads, listings and finish."""

    file_id: str = Field(..., alias="fileId")
    file_name: str = Field(..., alias="fileName")
    account_id: Optional[str] = Field(None, alias="accountId")
    bucket_id: Optional[str] = Field(None, alias="bucketId")
    action: Optional[str] = None
    content_length: Optional[int] = Field(None, alias="contentLength")
    content_sha1: Optional[str] = Field(None, alias="contentSha1")
    content_type: Optional[str] = Field(None, alias="contentType")
    file_info: Dict[str, Any] = Field(default_factory=dict, alias="fileInfo")
    upload_timestamp: Optional[int] = Field(None, alias="uploadTimestamp")


class FileNames(B2Model):
    """Response of b2_list_file_names."""

    files: List[FileVersion] = Field(default_factory=list)
    next_file_name: Optional[str] = Field(None, alias="nextFileName")


class UploadPartResponse(B2Model):
    """Response of b2_upload_part."""

    file_id: str = Field(..., alias="fileId")
    part_number: int = Field(..., alias="partNumber")
    content_length: int = Field(..., alias="contentLength")
    content_sha1: str = Field(..., alias="contentSha1")


class DeletedFile(B2Model):
    """Response of b2_delete_file_version."""

    file_id: str = Field(..., alias="fileId")
    file_name: str = Field(..., alias="fileName")


# Client-side state
class SessionState(BaseModel):
    """Authenticated context shared by every call.

    Frozen: a re-authorization replaces the whole snapshot.
    """

    model_config = ConfigDict(frozen=True)

    account_id: str
    api_url: str
    authorization_token: str
    download_url: Optional[str] = None
    capabilities: frozenset = frozenset()
    absolute_minimum_part_size: int
    recommended_part_size: int

    @classmethod
    def from_response(cls, response: AuthorizeResponse) -> "SessionState":
        return cls(
            account_id=response.account_id,
            api_url=response.api_url,
            authorization_token=response.authorization_token,
            download_url=response.download_url,
            capabilities=frozenset(response.allowed.capabilities),
            absolute_minimum_part_size=response.absolute_minimum_part_size,
            recommended_part_size=response.recommended_part_size,
        )


class PartRecord(BaseModel):
    """One successfully uploaded part of a large file."""

    model_config = ConfigDict(frozen=True)

    sequence: int = Field(..., ge=1, description="1-based part number")
    length: int = Field(..., ge=0)
    sha1: str


class UploadPlan(BaseModel):
    """How a source is split into parts."""

    model_config = ConfigDict(frozen=True)

    source_size: int = Field(..., ge=0)
    part_size: int = Field(..., gt=0)
    max_part_count: int = Field(..., gt=0)

    @property
    def part_count(self) -> int:
        return math.ceil(self.source_size / self.part_size)

    def validate_plan(self) -> None:
        """Raise ConfigurationError if the source needs too many parts."""
        if self.part_count > self.max_part_count:
            raise ConfigurationError(
                f"size {self.source_size} is larger than part_size * max parts "
                f"{self.part_size * self.max_part_count}. Try increasing part_size."
            )
