"""Failure observer callbacks."""

from __future__ import annotations

import logging as py_logging
import threading
from collections.abc import Callable

from .errors import describe_failure

logger = py_logging.getLogger(__name__)

FailureObserver = Callable[[BaseException], object]


def notify_observer(observer: FailureObserver | None, error: BaseException) -> None:
    """Deliver ``error`` to ``observer`` without letting the observer fail the caller."""
    if observer is None:
        return
    try:
        observer(error)
    except Exception as exc:
        logger.warning(
            "Failure observer raised %s while handling %s",
            describe_failure(exc),
            describe_failure(error),
            exc_info=logger.isEnabledFor(py_logging.DEBUG),
        )


class LoggingObserver:
    """Logs every failed attempt it is shown.

    ``failures`` is a running total over every execution the instance observes,
    so a fresh instance (or :meth:`reset`) is needed to number one execution
    from 1. The total is updated under a lock and the instance may be shared
    between threads.
    """

    def __init__(self, name: str = "operation", *, level: int = py_logging.WARNING) -> None:
        self.name = name
        self.level = level
        self.failures = 0
        self._lock = threading.Lock()

    def __call__(self, error: BaseException) -> None:
        with self._lock:
            self.failures += 1
            count = self.failures
        logger.log(self.level, "%s failed (failure %s): %s", self.name, count, describe_failure(error))

    def reset(self) -> None:
        with self._lock:
            self.failures = 0


class CompositeObserver:
    def __init__(self, observers: list[FailureObserver]) -> None:
        self.observers = [item for item in observers if item is not None]

    def __call__(self, error: BaseException) -> None:
        for observer in self.observers:
            notify_observer(observer, error)


def chain_observers(*observers: FailureObserver | None) -> FailureObserver | None:
    present = [item for item in observers if item is not None]
    if not present:
        return None
    if len(present) == 1:
        return present[0]
    return CompositeObserver(present)
