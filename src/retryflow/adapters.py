"""Result-shaping entry points built on :class:`RetryExecutor`.

Each adapter takes an explicit :class:`RetryPolicy` (``DEFAULT_POLICY`` when
omitted: 3 retries, 3 second delay, any failure retried). The ``max_retries``,
``delay_seconds`` and ``eligible_failures`` keywords are shortcuts that
override single fields of that policy for one call.
"""

from __future__ import annotations

import functools
import logging as py_logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

from .errors import RetryFailure
from .executor import RetryExecutor
from .observer import FailureObserver
from .policy import DEFAULT_POLICY, RetryPolicy

logger = py_logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

_DEFAULT_EXECUTOR = RetryExecutor()


class OutcomeKind(str, Enum):
    VALUE = "value"
    FALLBACK = "fallback"
    RECONCILED = "reconciled"


@dataclass(frozen=True)
class RetryOutcome(Generic[T]):
    kind: OutcomeKind
    value: T | None
    failure: RetryFailure | None = None

    @property
    def succeeded(self) -> bool:
        return self.failure is None


def _resolve(
    policy: RetryPolicy,
    max_retries: int | None,
    delay_seconds: float | None,
    eligible_failures: Iterable[type[BaseException]] | None,
) -> RetryPolicy:
    return policy.with_overrides(
        max_retries=max_retries,
        delay_seconds=delay_seconds,
        eligible_failures=None if eligible_failures is None else tuple(eligible_failures),
    )


def retry(
    operation: Callable[[], T],
    policy: RetryPolicy = DEFAULT_POLICY,
    *,
    observer: FailureObserver | None = None,
    executor: RetryExecutor | None = None,
    max_retries: int | None = None,
    delay_seconds: float | None = None,
    eligible_failures: Iterable[type[BaseException]] | None = None,
) -> T:
    """Return the operation's value or raise ``RetryExhausted``/``IneligibleFailure``."""
    resolved = _resolve(policy, max_retries, delay_seconds, eligible_failures)
    return (executor or _DEFAULT_EXECUTOR).execute(operation, resolved, observer)


def retry_any_fail(
    operation: Callable[[], object],
    observer: FailureObserver,
    policy: RetryPolicy = DEFAULT_POLICY,
    *,
    executor: RetryExecutor | None = None,
    max_retries: int | None = None,
    delay_seconds: float | None = None,
    eligible_failures: Iterable[type[BaseException]] | None = None,
) -> None:
    """Run for side effects only; every failure goes to ``observer``, none to the caller."""
    try:
        retry(
            operation,
            policy,
            observer=observer,
            executor=executor,
            max_retries=max_retries,
            delay_seconds=delay_seconds,
            eligible_failures=eligible_failures,
        )
    except RetryFailure as exc:
        logger.debug("Discarding terminal failure for observer-driven retry: %s", exc.message)


def retry_or_else(
    operation: Callable[[], T],
    fallback: Callable[[], T] | None = None,
    policy: RetryPolicy = DEFAULT_POLICY,
    *,
    observer: FailureObserver | None = None,
    executor: RetryExecutor | None = None,
    max_retries: int | None = None,
    delay_seconds: float | None = None,
    eligible_failures: Iterable[type[BaseException]] | None = None,
) -> T | None:
    """Return the operation's value, or ``fallback()`` once the retries give up.

    The fallback runs at most once and is not retried. Without a fallback the
    result of a failed sequence is ``None``.
    """
    return run_outcome(
        operation,
        policy,
        fallback=fallback,
        observer=observer,
        executor=executor,
        max_retries=max_retries,
        delay_seconds=delay_seconds,
        eligible_failures=eligible_failures,
    ).value


def retry_reconcile(
    operation: Callable[[], T],
    reconciler: Callable[[T | None, RetryFailure | None], R],
    policy: RetryPolicy = DEFAULT_POLICY,
    *,
    observer: FailureObserver | None = None,
    executor: RetryExecutor | None = None,
    max_retries: int | None = None,
    delay_seconds: float | None = None,
    eligible_failures: Iterable[type[BaseException]] | None = None,
) -> R:
    """Hand ``(value, None)`` or ``(None, failure)`` to ``reconciler`` exactly once."""
    outcome = run_outcome(
        operation,
        policy,
        reconciler=reconciler,
        observer=observer,
        executor=executor,
        max_retries=max_retries,
        delay_seconds=delay_seconds,
        eligible_failures=eligible_failures,
    )
    return outcome.value  # type: ignore[return-value]


def run_outcome(
    operation: Callable[[], T],
    policy: RetryPolicy = DEFAULT_POLICY,
    *,
    fallback: Callable[[], Any] | None = None,
    reconciler: Callable[[Any, RetryFailure | None], Any] | None = None,
    observer: FailureObserver | None = None,
    executor: RetryExecutor | None = None,
    max_retries: int | None = None,
    delay_seconds: float | None = None,
    eligible_failures: Iterable[type[BaseException]] | None = None,
) -> RetryOutcome[Any]:
    """Run the retry sequence and report which branch produced the result.

    With a ``reconciler`` the outcome is always ``RECONCILED``. Otherwise a
    successful run is ``VALUE`` and a failed one is ``FALLBACK``, carrying the
    terminal failure alongside the fallback's result.
    """
    if fallback is not None and reconciler is not None:
        raise ValueError("fallback and reconciler are mutually exclusive")

    value: Any = None
    failure: RetryFailure | None = None
    try:
        value = retry(
            operation,
            policy,
            observer=observer,
            executor=executor,
            max_retries=max_retries,
            delay_seconds=delay_seconds,
            eligible_failures=eligible_failures,
        )
    except RetryFailure as exc:
        failure = exc

    if reconciler is not None:
        return RetryOutcome(OutcomeKind.RECONCILED, reconciler(value, failure), failure)
    if failure is None:
        return RetryOutcome(OutcomeKind.VALUE, value)
    logger.debug("Using fallback after terminal failure: %s", failure.message)
    return RetryOutcome(OutcomeKind.FALLBACK, fallback() if fallback is not None else None, failure)


def retrying(
    policy: RetryPolicy = DEFAULT_POLICY,
    *,
    observer: FailureObserver | None = None,
    executor: RetryExecutor | None = None,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Decorator form of :func:`retry`; each call is retried with its own arguments."""

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            def operation() -> T:
                return func(*args, **kwargs)

            operation.__qualname__ = func.__qualname__
            return retry(operation, policy, observer=observer, executor=executor)

        return wrapper

    return decorator
