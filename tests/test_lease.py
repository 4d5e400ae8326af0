"""Tests for upload url leases."""

from unittest.mock import MagicMock

from b2_storage.core.lease import TokenLease
from b2_storage.core.models import UploadUrlResponse


def upload_url(n):
    return UploadUrlResponse(upload_url=f"http://test.or/upload/{n}", authorization_token=f"token-{n}")


def test_issue_calls_issuer():
    issuer = MagicMock(return_value=upload_url(1))

    lease = TokenLease.issue(issuer)

    assert (lease.url, lease.auth) == ("http://test.or/upload/1", "token-1")
    issuer.assert_called_once_with()


def test_refresh_returns_new_lease_and_leaves_old_alone():
    issuer = MagicMock(side_effect=[upload_url(1), upload_url(2)])
    lease = TokenLease.issue(issuer)

    fresh = lease.refresh()

    assert fresh.auth == "token-2"
    assert fresh.issuer is issuer
    assert lease.auth == "token-1"
    assert issuer.call_count == 2


def test_account_issues_bucket_lease(account, http):
    lease = account.upload_url("212f1bfa")

    assert lease.url == "http://test.or/upload/file"
    http.b2_get_upload_url.assert_called_once_with("http://test.or/api", {"Authorization": "subway"}, "212f1bfa")

    lease.refresh()
    assert http.b2_get_upload_url.call_count == 2


def test_refresh_passes_retry_state_to_issuer():
    issuer = MagicMock(side_effect=[upload_url(1), upload_url(2)])
    lease = TokenLease.issue(issuer)

    lease.refresh(retries=2, backoff=None)

    issuer.assert_called_with(retries=2, backoff=None)
