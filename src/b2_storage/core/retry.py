"""Retry engine for B2 API calls."""

import logging
import time
from typing import Callable, Iterator, Optional, Sequence, TypeVar

import requests
from pydantic import ValidationError

from . import recovery
from .exceptions import RetryAfterTooLong, TooManyRetries
from .models import ErrorBody

logger = logging.getLogger(__name__)

MAX_RETRIES = 3

# Anything longer than this from Retry-After is treated as a misconfiguration.
MAX_RETRY_AFTER = 60

T = TypeVar("T")


class RecoverySequence(Exception):
    """Raised when recovery needs calls to endpoints other than the failed one.

    The engine can't resolve this itself because only the caller knows how to
    thread the results of those calls into the next attempt.
    """

    def __init__(self, operations: Sequence[str], backoff: Optional[int] = None, retries: int = 0) -> None:
        if not operations or not all(isinstance(name, str) for name in operations):
            raise ValueError(f"provide a sequence of operation names, not {operations!r}")
        super().__init__(repr(list(operations)))
        self.operations = tuple(operations)
        self.backoff = backoff
        # attempts already made when recovery was needed
        self.retries = retries

    def __iter__(self) -> Iterator[str]:
        return iter(self.operations)


def retry_after(response: requests.Response) -> Optional[int]:
    """Return the server specified Retry-After in seconds, if any."""
    value = response.headers.get("Retry-After")
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning(f"ignoring unparseable Retry-After {value!r}")
        return None


def error_code(response: requests.Response) -> str:
    """Return the provider ``code`` from an error body, or ''."""
    try:
        return ErrorBody.model_validate(response.json()).code
    except (ValueError, ValidationError):
        return ""


def execute(
    operation: str,
    retries: int,
    backoff: Optional[int],
    invoke: Callable[[], T],
    last_error: Optional[Exception] = None,
) -> T:
    """Call ``invoke`` for ``operation``, retrying recoverable failures.

    ``retries`` is how many attempts have already been made, ``backoff`` an
    optional server supplied delay from the previous failure and
    ``last_error`` that failure, kept as the cause of TooManyRetries.

    Returns whatever ``invoke`` returns. Raises RecoverySequence when the
    failure has to be recovered through other operations, TooManyRetries when
    retries are used up, and re-raises unrecoverable errors unchanged.
    """
    if retries >= MAX_RETRIES:
        raise TooManyRetries(operation, MAX_RETRIES) from last_error

    # default exponential backoff for retries > 0
    if backoff is None:
        backoff = retries ** 2

    if backoff > 0:
        logger.info(f"calling {operation} retry {retries} after sleep {backoff}")
        time.sleep(backoff)
    else:
        logger.info(f"calling {operation}")

    try:
        return invoke()
    except requests.HTTPError as exc:
        response = exc.response
        if response is None:
            logger.info(f"{operation} failed without a response: {exc}")
            return execute(operation, retries + 1, None, invoke, exc)

        logger.info(f"{operation} failed: {exc}")
        # can end up None, if Retry-After isn't specified
        server_backoff = retry_after(response)
        if server_backoff is not None:
            logger.info(f"server specified Retry-After of {server_backoff}")
            if server_backoff > MAX_RETRY_AFTER:
                raise RetryAfterTooLong(operation, server_backoff, MAX_RETRY_AFTER) from exc

        sequence = recovery.retry_sequence(operation, response.status_code, error_code(response))

        if sequence == (operation,):
            return execute(operation, retries + 1, server_backoff, invoke, exc)
        if sequence:
            logger.info(f"initiating recovery sequence of {list(sequence)}")
            raise RecoverySequence(sequence, server_backoff, retries) from exc
        raise
    except requests.RequestException as exc:
        # Socket errors etc, so no http status and no body.
        # Retry with default exponential backoff.
        logger.info(f"{operation} failed: {exc}")
        return execute(operation, retries + 1, None, invoke, exc)
