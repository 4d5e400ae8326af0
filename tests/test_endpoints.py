"""Tests for retry-aware endpoint methods."""

import logging
from unittest.mock import MagicMock

import pytest

from b2_storage.core.endpoints import Endpoint, EndpointClient, endpoint, validate_dependencies
from b2_storage.core.exceptions import TooManyRetries
from b2_storage.core.retry import MAX_RETRIES


class TestDependencyChecking:
    def test_warns_on_missing_dependency(self, caplog):
        with caplog.at_level(logging.WARNING):

            class Uploader(EndpointClient):
                @endpoint("b2_upload_file")
                def b2_upload_file(self, call):
                    pass

        assert len(caplog.records) == 1
        message = caplog.records[0].getMessage()
        assert "b2_get_upload_url" in message
        assert "not found" in message

    def test_warns_on_dependency_without_retries(self):
        class Lister(EndpointClient):
            def b2_authorize_account(self):
                pass

            @endpoint("b2_get_upload_url")
            def b2_get_upload_url(self, call):
                pass

        problems = validate_dependencies(Lister)
        assert len(problems) == 1
        assert "b2_authorize_account" in problems[0]
        assert "must accept retries" in problems[0]

    def test_no_warnings_when_all_is_fine(self, caplog):
        with caplog.at_level(logging.WARNING):

            class Complete(EndpointClient):
                def b2_authorize_account(self, retries=0, backoff=None):
                    pass

                @endpoint("b2_get_upload_url")
                def b2_get_upload_url(self, call):
                    pass

                @endpoint("b2_upload_file")
                def b2_upload_file(self, call):
                    pass

        assert caplog.records == []
        assert set(Complete.endpoints) == {"b2_get_upload_url", "b2_upload_file"}

    def test_endpoint_must_keep_its_operation_name(self):
        with pytest.raises((TypeError, RuntimeError)):

            class Misnamed(EndpointClient):
                @endpoint("b2_list_buckets")
                def list_buckets(self, call):
                    pass


class Client(EndpointClient):
    def __init__(self, http):
        self.http = http
        self.token = "first"
        self.binds = 0

    @endpoint("b2_authorize_account")
    def b2_authorize_account(self, call):
        self.token = call()
        return self.token

    @endpoint("b2_list_buckets")
    def b2_list_buckets(self, call, body):
        self.binds += 1
        return call(self.token, body)


class TestEndpointCalls:
    @pytest.fixture
    def http(self):
        return MagicMock()

    def test_class_access_returns_descriptor(self):
        assert isinstance(Client.b2_list_buckets, Endpoint)

    def test_binding_runs_on_every_attempt(self, http, http_error):
        http.b2_list_buckets.side_effect = [http_error(503), http_error(500), "buckets"]
        client = Client(http)

        assert client.b2_list_buckets({"accountId": "c0ffee"}) == "buckets"
        assert client.binds == 3

    def test_recovery_sequence_threads_state_through_self(self, http, http_error):
        http.b2_authorize_account.return_value = "second"
        http.b2_list_buckets.side_effect = [http_error(401, "expired_auth_token"), "buckets"]
        client = Client(http)

        assert client.b2_list_buckets({"accountId": "c0ffee"}) == "buckets"
        http.b2_authorize_account.assert_called_once_with()
        # the retried call sees the token from the recovery step
        assert [c.args[0] for c in http.b2_list_buckets.call_args_list] == ["first", "second"]

    def test_recovery_passes_retries_and_backoff(self, http, http_error):
        http.b2_list_buckets.side_effect = [http_error(401, "bad_auth_token", {"Retry-After": "3"}), "buckets"]
        client = Client(http)
        calls = []
        original = client.b2_authorize_account

        def authorize(**kwargs):
            calls.append(kwargs)
            return original(**kwargs)

        client.b2_authorize_account = authorize
        client.b2_list_buckets({})

        assert calls == [{"retries": 1, "backoff": 3}]

    def test_persistent_auth_failure_gives_up(self, http, http_error):
        http.b2_list_buckets.side_effect = http_error(401, "bad_auth_token")
        client = Client(http)

        with pytest.raises(TooManyRetries) as exc_info:
            client.b2_list_buckets({})

        assert http.b2_authorize_account.call_count == MAX_RETRIES - 1
        assert http.b2_list_buckets.call_count == MAX_RETRIES
        # the last failure is kept for diagnostics
        assert exc_info.value.__cause__.response.status_code == 401
