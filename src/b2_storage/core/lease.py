"""Upload url leases."""

from typing import Any, Callable, NamedTuple

from .models import UploadUrlResponse


class TokenLease(NamedTuple):
    """An upload url and the token that goes with it.

    Several files can be uploaded to one url, one after the other. Uploading
    in parallel needs one lease per writer. ``issuer`` fetches a new url and
    takes the retry state (``retries``, ``backoff``) of whoever needs one.
    """

    url: str
    auth: str
    issuer: Callable[..., UploadUrlResponse]

    @classmethod
    def issue(cls, issuer: Callable[..., UploadUrlResponse], **retry_state: Any) -> "TokenLease":
        """Call ``issuer`` and wrap its url and token."""
        return cls.from_response(issuer(**retry_state), issuer)

    @classmethod
    def from_response(
        cls, response: UploadUrlResponse, issuer: Callable[..., UploadUrlResponse]
    ) -> "TokenLease":
        return cls(response.upload_url, response.authorization_token, issuer)

    def refresh(self, **retry_state: Any) -> "TokenLease":
        """Return a new lease from the same issuer. This one should be dropped."""
        return self.issue(self.issuer, **retry_state)
