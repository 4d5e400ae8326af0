"""Shared fixtures for B2 storage tests."""

import json
from unittest.mock import MagicMock, patch

import pytest
import requests

from b2_storage.core.account import Account
from b2_storage.core.http import B2Http
from b2_storage.core.models import (
    AuthorizeResponse,
    BucketList,
    FileNames,
    FileVersion,
    UploadPartResponse,
    UploadUrlResponse,
)

AUTHORIZE_BODY = {
    "absoluteMinimumPartSize": 30000,
    "recommendedPartSize": 100000,
    "apiUrl": "http://test.or/api",
    "downloadUrl": "http://test.or/download",
    "allowed": {"capabilities": ["writeFiles", "listFiles", "listBuckets", "deleteFiles"]},
    "accountId": "c0ffee",
    "authorizationToken": "subway",
}


def make_response(status=200, body=None, headers=None):
    """Build a requests.Response without touching the network."""
    response = requests.Response()
    response.status_code = status
    response._content = json.dumps(body if body is not None else {}).encode()
    response.headers.update(headers or {})
    response.url = "http://test.or/api"
    return response


def make_http_error(status, code="", headers=None):
    response = make_response(status, {"status": status, "code": code, "message": f"test {code}"}, headers)
    return requests.HTTPError(f"{status} Error: test {code}", response=response)


@pytest.fixture
def http_error():
    """Factory for HTTPError with a provider error body."""
    return make_http_error


@pytest.fixture
def response():
    """Factory for plain responses."""
    return make_response


@pytest.fixture(autouse=True)
def sleep():
    """Don't call time.sleep, we'd rather run the tests fast."""
    with patch("b2_storage.core.retry.time.sleep") as mock_sleep:
        yield mock_sleep


def authorize_response(token="subway", **overrides):
    body = dict(AUTHORIZE_BODY, authorizationToken=token)
    body.update(overrides)
    return AuthorizeResponse.model_validate(body)


@pytest.fixture
def http():
    """B2Http with every transport call mocked."""
    mock_http = MagicMock(spec=B2Http)
    mock_http.b2_authorize_account.return_value = authorize_response()
    mock_http.b2_list_buckets.return_value = BucketList.model_validate(
        {
            "buckets": [
                {"accountId": "c0ffee", "bucketId": "53e4dc20f68719ab", "bucketName": "magoodyhey", "bucketType": "allPrivate"},
                {"accountId": "c0ffee", "bucketId": "9750fb6a1c8d432e", "bucketName": "rootet", "bucketType": "allPrivate"},
            ]
        }
    )
    mock_http.b2_list_file_names.return_value = FileNames.model_validate(
        {"files": [{"fileId": "4_z_f1", "fileName": "dir/test_file", "contentLength": 6144}]}
    )
    mock_http.b2_get_upload_url.return_value = UploadUrlResponse.model_validate(
        {"uploadUrl": "http://test.or/upload/file", "authorizationToken": "f68719ab53e4dc20"}
    )
    mock_http.b2_get_upload_part_url.return_value = UploadUrlResponse.model_validate(
        {"uploadUrl": "http://test.or/upload/part", "authorizationToken": "part-token"}
    )
    mock_http.b2_upload_file.return_value = FileVersion.model_validate(
        {"fileId": "4_z_small", "fileName": "dir/not_a_dest", "contentLength": 6144}
    )
    mock_http.b2_start_large_file.return_value = FileVersion.model_validate(
        {"fileId": "4_z_large", "fileName": "dir/large", "action": "start"}
    )

    def upload_part(url, headers, data):
        return UploadPartResponse.model_validate(
            {
                "fileId": "4_z_large",
                "partNumber": int(headers["X-Bz-Part-Number"]),
                "contentLength": len(data),
                "contentSha1": headers["X-Bz-Content-Sha1"],
            }
        )

    mock_http.b2_upload_part.side_effect = upload_part
    mock_http.b2_finish_large_file.return_value = FileVersion.model_validate(
        {"fileId": "4_z_large", "fileName": "dir/large", "action": "upload"}
    )
    return mock_http


@pytest.fixture
def account(http):
    return Account("c0ffee", "7ea", http=http)


@pytest.fixture
def auth_response():
    """Factory for authorize responses with a given token."""
    return authorize_response
