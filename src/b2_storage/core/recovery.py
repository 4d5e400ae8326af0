"""Recovery rules for the B2 API.

Some failures are recovered by calling the same endpoint again. Others need a
call to a different endpoint first: an expired account token means
b2_authorize_account, a dead upload url means asking for a new one. The rules
below are the cross-product of those cases, sourced from
https://www.backblaze.com/b2/docs/integration_checklist.html
"""

from collections import defaultdict
from typing import Dict, FrozenSet, NamedTuple, Optional, Tuple, Union

AUTHORIZE = "b2_authorize_account"
GET_UPLOAD_URL = "b2_get_upload_url"
UPLOAD_FILE = "b2_upload_file"
LIST_BUCKETS = "b2_list_buckets"
LIST_FILE_NAMES = "b2_list_file_names"
DELETE_FILE_VERSION = "b2_delete_file_version"
START_LARGE_FILE = "b2_start_large_file"
GET_UPLOAD_PART_URL = "b2_get_upload_part_url"
UPLOAD_PART = "b2_upload_part"
FINISH_LARGE_FILE = "b2_finish_large_file"

OPERATIONS = (
    AUTHORIZE,
    GET_UPLOAD_URL,
    UPLOAD_FILE,
    LIST_BUCKETS,
    LIST_FILE_NAMES,
    DELETE_FILE_VERSION,
    START_LARGE_FILE,
    GET_UPLOAD_PART_URL,
    UPLOAD_PART,
    FINISH_LARGE_FILE,
)

# Upload endpoints don't exist as api calls. They use the url handed out by
# their lease endpoint, which is why a failed upload asks for a new url.
LEASE_OPERATIONS = {
    UPLOAD_FILE: GET_UPLOAD_URL,
    UPLOAD_PART: GET_UPLOAD_PART_URL,
}

AUTH_TOKEN_CODES = ("expired_auth_token", "bad_auth_token")

ANY_CODE = None
SERVER_ERRORS = (500, 599)

Status = Union[int, Tuple[int, int]]


class RecoveryRule(NamedTuple):
    operation: str
    status: Status
    code: Optional[str]
    sequence: Tuple[str, ...]

    def matches(self, operation: str, status: int, code: str) -> bool:
        if operation != self.operation:
            return False
        if isinstance(self.status, tuple):
            low, high = self.status
            if not low <= status <= high:
                return False
        elif status != self.status:
            return False
        return self.code is ANY_CODE or code == self.code


def _build_rules() -> Tuple[RecoveryRule, ...]:
    rules = []
    for operation in OPERATIONS:
        if operation in LEASE_OPERATIONS:
            with_new_lease = (LEASE_OPERATIONS[operation], operation)
            for code in AUTH_TOKEN_CODES:
                rules.append(RecoveryRule(operation, 401, code, with_new_lease))
            rules.append(RecoveryRule(operation, 408, ANY_CODE, with_new_lease))
            rules.append(RecoveryRule(operation, SERVER_ERRORS, ANY_CODE, with_new_lease))
            rules.append(RecoveryRule(operation, 429, ANY_CODE, (operation,)))
            continue

        if operation != AUTHORIZE:
            for code in AUTH_TOKEN_CODES:
                rules.append(RecoveryRule(operation, 401, code, (AUTHORIZE, operation)))
        for status in (408, 429, SERVER_ERRORS):
            rules.append(RecoveryRule(operation, status, ANY_CODE, (operation,)))
    return tuple(rules)


RULES = _build_rules()


def retry_sequence(operation: str, status: int, code: Optional[str]) -> Tuple[str, ...]:
    """Return the operations to call to recover from a failed ``operation``.

    First match wins. An empty tuple means no retry: 400, 403 and most 401
    should just fail immediately.
    """
    code = code or ""
    for rule in RULES:
        if rule.matches(operation, status, code):
            return rule.sequence
    return ()


def retry_dependencies() -> Dict[str, FrozenSet[str]]:
    """Map each operation to the other operations its recoveries call."""
    dependencies = defaultdict(set)
    for rule in RULES:
        dependencies[rule.operation].update(
            name for name in rule.sequence if name != rule.operation
        )
    return {operation: frozenset(names) for operation, names in dependencies.items()}
