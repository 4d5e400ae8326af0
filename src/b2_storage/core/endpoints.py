"""Retry-aware endpoint methods.

Backblaze's retry rules are not simple (see ``recovery``). Some failures are
retried by calling a different endpoint first, so a plain retry loop around
the HTTP call is not enough. Any class that wants these retries defines
methods named after the operations in the recovery sequences, and the
``endpoint`` decorator turns a binding method into one of those.

The binding method receives the transport call plus the caller's arguments.
It is re-run on every attempt, so whatever it reads from ``self`` (api url,
tokens, upload urls) is fresh each time. Arguments are unchanged between
retries.
"""

import functools
import inspect
import logging
from typing import Any, Callable, Dict, List, Optional

from . import retry
from .exceptions import TooManyRetries
from .recovery import retry_dependencies

logger = logging.getLogger(__name__)


class Endpoint:
    """Descriptor binding one named operation to the retry engine."""

    def __init__(self, name: str, bind: Callable[..., Any]) -> None:
        self.name = name
        self.bind = bind
        functools.update_wrapper(self, bind)

    def __set_name__(self, owner: type, attr: str) -> None:
        if attr != self.name:
            raise TypeError(
                f"{owner.__name__}.{attr} must be named {self.name} so recovery can find it"
            )

    def __get__(self, instance: Any, owner: Optional[type] = None) -> Any:
        if instance is None:
            return self
        return functools.partial(self.invoke, instance)

    def invoke(
        self,
        instance: Any,
        *args: Any,
        retries: int = 0,
        backoff: Optional[int] = None,
    ) -> Any:
        """Call the endpoint on ``instance``, following any recovery sequence."""

        def attempt() -> Any:
            call = getattr(instance.http, self.name)
            return self.bind(instance, call, *args)

        try:
            return retry.execute(self.name, retries, backoff, attempt)
        except retry.RecoverySequence as sequence:
            # the engine may have retried in place before recovery was needed
            retries = sequence.retries + 1
            # we want the last return value from the recovery sequence
            result = None
            try:
                for step in sequence:
                    method = getattr(instance, step)
                    if step == self.name:
                        # same endpoint, so it takes the same arguments
                        result = method(*args, retries=retries, backoff=sequence.backoff)
                    else:
                        result = method(retries=retries, backoff=sequence.backoff)
            except TooManyRetries as exc:
                if exc.__cause__ is None:
                    raise exc from sequence.__cause__
                raise
            return result


def endpoint(name: str) -> Callable[[Callable[..., Any]], Endpoint]:
    """Decorate a binding method as the retry-aware endpoint ``name``."""

    def decorator(bind: Callable[..., Any]) -> Endpoint:
        return Endpoint(name, bind)

    return decorator


def _accepts_retries(method: Callable[..., Any]) -> bool:
    try:
        parameters = inspect.signature(method).parameters.values()
    except (TypeError, ValueError):
        return False
    return any(
        p.name == "retries" or p.kind is inspect.Parameter.VAR_KEYWORD for p in parameters
    )


def validate_dependencies(cls: type) -> List[str]:
    """Check that every operation a recovery may call exists on ``cls``.

    Code paths with retries are rarely executed, so a missing dependency is
    logged as a warning rather than raised. Returns the warnings.
    """
    dependencies = retry_dependencies()
    problems = []
    for name in getattr(cls, "endpoints", {}):
        for dependency in sorted(dependencies.get(name, ())):
            method = getattr(cls, dependency, None)
            if method is None:
                problems.append(
                    f"{cls.__module__}.{cls.__qualname__}#{dependency} required by {name} but it was not found"
                )
            elif isinstance(method, Endpoint):
                continue
            elif not callable(method) or not _accepts_retries(method):
                problems.append(
                    f"{cls.__module__}.{cls.__qualname__}#{dependency} required by {name} must accept retries"
                )
    for problem in problems:
        logger.warning(problem)
    return problems


class EndpointClient:
    """Base for classes that declare endpoints.

    Subclasses must provide ``http``, the transport with one method per
    operation name.
    """

    endpoints: Dict[str, Endpoint] = {}
    http: Any = None

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        registry = {}
        for klass in reversed(cls.__mro__):
            for value in vars(klass).values():
                if isinstance(value, Endpoint):
                    registry[value.name] = value
        cls.endpoints = registry
        validate_dependencies(cls)
