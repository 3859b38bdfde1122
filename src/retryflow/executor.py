"""Constant-delay retry loop."""

from __future__ import annotations

import logging as py_logging
import time
from collections.abc import Callable
from typing import Protocol, TypeVar

from .errors import ErrorCode, IneligibleFailure, RetryExhausted, describe_failure
from .observer import FailureObserver, notify_observer
from .policy import DEFAULT_POLICY, RetryPolicy

logger = py_logging.getLogger(__name__)

T = TypeVar("T")


class CancelSignal(Protocol):
    """Anything shaped like ``threading.Event``."""

    def is_set(self) -> bool: ...

    def set(self) -> None: ...

    def wait(self, timeout: float | None = None) -> bool: ...


class RetryExecutor:
    """Runs a zero-argument operation until it succeeds or the policy gives up.

    Attempts run one after another on the calling thread. The only blocking
    point is the delay between attempts, which ends early when
    ``cancel_event`` is set or when ``sleep`` raises ``InterruptedError``.
    Either way no further attempt is made and the terminal failure is built
    from the first attempt's error.

    The executor holds no per-call state, so one instance can be shared by
    concurrent callers.
    """

    def __init__(
        self,
        *,
        sleep: Callable[[float], None] = time.sleep,
        cancel_event: CancelSignal | None = None,
    ) -> None:
        self.sleep = sleep
        self.cancel_event = cancel_event

    def execute(
        self,
        operation: Callable[[], T],
        policy: RetryPolicy = DEFAULT_POLICY,
        observer: FailureObserver | None = None,
    ) -> T:
        if not callable(operation):
            raise TypeError(f"operation must be callable, got {type(operation).__name__}")
        name = _operation_name(operation)

        logger.debug("Executing %s (attempt 1/%s)", name, policy.max_attempts)
        try:
            return operation()
        except Exception as exc:
            reference = exc
        notify_observer(observer, reference)

        if not policy.is_eligible(reference):
            logger.error("%s failed with ineligible error, not retrying: %s", name, describe_failure(reference))
            raise IneligibleFailure(
                f"{name} failed with a non-retryable error: {describe_failure(reference)}",
                hint="Add the error type to the eligible failures to retry it.",
                cause=reference,
                attempts=1,
                last_error=reference,
            ) from reference

        attempts = 1
        last_error: Exception = reference
        for retry_number in range(1, policy.max_retries + 1):
            logger.warning(
                "%s attempt %s failed: %s. Retrying in %.2fs (%s left)...",
                name,
                attempts,
                describe_failure(last_error),
                policy.delay_seconds,
                policy.max_retries - retry_number + 1,
            )
            if not self._wait(policy.delay_seconds):
                logger.warning("%s retry interrupted after %s attempts, abandoning", name, attempts)
                raise RetryExhausted(
                    f"{name} retry interrupted after {attempts} attempts: {describe_failure(reference)}",
                    code=ErrorCode.INTERRUPTED,
                    cause=reference,
                    attempts=attempts,
                    last_error=last_error,
                    interrupted=True,
                ) from reference

            attempts += 1
            logger.debug("Executing %s (attempt %s/%s)", name, attempts, policy.max_attempts)
            try:
                result = operation()
            except Exception as exc:
                last_error = exc
                notify_observer(observer, exc)
                continue
            logger.info("%s succeeded after %s attempts", name, attempts)
            return result

        logger.error("%s failed after %s attempts: %s", name, attempts, describe_failure(reference))
        raise RetryExhausted(
            f"{name} failed after {attempts} attempts: {describe_failure(reference)}",
            hint="Inspect the original error or raise the retry limit.",
            cause=reference,
            attempts=attempts,
            last_error=last_error,
        ) from reference

    def _wait(self, delay: float) -> bool:
        """Pause between attempts. Returns False when the pause was interrupted."""
        event = self.cancel_event
        if event is not None and event.is_set():
            return False
        try:
            if delay > 0:
                if event is not None:
                    return not event.wait(delay)
                self.sleep(delay)
        except InterruptedError:
            if event is not None:
                event.set()
            return False
        return True


def _operation_name(operation: Callable[..., object]) -> str:
    name = getattr(operation, "__qualname__", None) or getattr(operation, "__name__", None)
    if isinstance(name, str) and name:
        return name
    return type(operation).__name__


def execute(
    operation: Callable[[], T],
    policy: RetryPolicy = DEFAULT_POLICY,
    observer: FailureObserver | None = None,
    *,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    return RetryExecutor(sleep=sleep).execute(operation, policy, observer)
