"""Tests for the recovery rules."""

import pytest

from b2_storage.core import recovery
from b2_storage.core.recovery import (
    AUTHORIZE,
    DELETE_FILE_VERSION,
    FINISH_LARGE_FILE,
    GET_UPLOAD_PART_URL,
    GET_UPLOAD_URL,
    LIST_BUCKETS,
    LIST_FILE_NAMES,
    START_LARGE_FILE,
    UPLOAD_FILE,
    UPLOAD_PART,
    retry_dependencies,
    retry_sequence,
)

API_CALLS = [GET_UPLOAD_URL, LIST_BUCKETS, LIST_FILE_NAMES, DELETE_FILE_VERSION, START_LARGE_FILE, GET_UPLOAD_PART_URL, FINISH_LARGE_FILE]


class TestRetrySequence:
    @pytest.mark.parametrize("operation", API_CALLS)
    @pytest.mark.parametrize("code", ["expired_auth_token", "bad_auth_token"])
    def test_auth_token_failure_reauthorizes(self, operation, code):
        assert retry_sequence(operation, 401, code) == (AUTHORIZE, operation)

    @pytest.mark.parametrize("operation", API_CALLS + [AUTHORIZE])
    @pytest.mark.parametrize("status", [408, 429, 500, 503, 599])
    def test_outages_retry_same_call(self, operation, status):
        assert retry_sequence(operation, status, "whatever") == (operation,)

    @pytest.mark.parametrize("code", ["expired_auth_token", "bad_auth_token"])
    def test_authorize_never_recovers_through_itself(self, code):
        assert retry_sequence(AUTHORIZE, 401, code) == ()

    @pytest.mark.parametrize(
        "operation,lease",
        [(UPLOAD_PART, GET_UPLOAD_PART_URL), (UPLOAD_FILE, GET_UPLOAD_URL)],
    )
    @pytest.mark.parametrize(
        "status,code",
        [(401, "expired_auth_token"), (401, "bad_auth_token"), (408, "slow_client"), (500, ""), (503, "service_unavailable")],
    )
    def test_upload_failure_gets_new_lease(self, operation, lease, status, code):
        assert retry_sequence(operation, status, code) == (lease, operation)

    @pytest.mark.parametrize("operation", [UPLOAD_PART, UPLOAD_FILE])
    def test_upload_rate_limit_keeps_lease(self, operation):
        assert retry_sequence(operation, 429, "too_many_requests") == (operation,)

    @pytest.mark.parametrize("operation", API_CALLS + [AUTHORIZE, UPLOAD_PART, UPLOAD_FILE])
    @pytest.mark.parametrize(
        "status,code",
        [(400, "bad_request"), (403, "cap_exceeded"), (401, "invalid_account"), (401, None), (404, "not_found"), (600, "")],
    )
    def test_everything_else_fails_immediately(self, operation, status, code):
        assert retry_sequence(operation, status, code) == ()

    def test_unknown_operation_has_no_recovery(self):
        assert retry_sequence("b2_hide_file", 503, "") == ()

    def test_first_rule_wins(self):
        first = next(rule for rule in recovery.RULES if rule.matches(UPLOAD_PART, 401, "bad_auth_token"))
        assert first.sequence == retry_sequence(UPLOAD_PART, 401, "bad_auth_token")


class TestRetryDependencies:
    def test_uploads_depend_on_their_lease(self):
        dependencies = retry_dependencies()
        assert dependencies[UPLOAD_PART] == frozenset({GET_UPLOAD_PART_URL})
        assert dependencies[UPLOAD_FILE] == frozenset({GET_UPLOAD_URL})

    @pytest.mark.parametrize("operation", API_CALLS)
    def test_api_calls_depend_on_authorize(self, operation):
        assert retry_dependencies()[operation] == frozenset({AUTHORIZE})

    def test_authorize_depends_on_nothing(self):
        assert retry_dependencies()[AUTHORIZE] == frozenset()

    def test_every_dependency_is_a_known_operation(self):
        for names in retry_dependencies().values():
            assert names <= set(recovery.OPERATIONS)
