from __future__ import annotations

import logging as py_logging
import threading

import pytest

from retryflow.observer import CompositeObserver, LoggingObserver, chain_observers, notify_observer


def test_notify_observer_without_observer_is_noop() -> None:
    notify_observer(None, ValueError("ignored"))


def test_notify_observer_swallows_and_logs_observer_failure(caplog: pytest.LogCaptureFixture) -> None:
    def observer(error: BaseException) -> None:
        raise RuntimeError("metrics backend down")

    with caplog.at_level(py_logging.WARNING, logger="retryflow.observer"):
        notify_observer(observer, ValueError("original"))

    assert "metrics backend down" in caplog.text
    assert "ValueError: original" in caplog.text


def test_notify_observer_does_not_swallow_keyboard_interrupt() -> None:
    def observer(error: BaseException) -> None:
        raise KeyboardInterrupt

    with pytest.raises(KeyboardInterrupt):
        notify_observer(observer, ValueError("original"))


def test_logging_observer_counts_failures(caplog: pytest.LogCaptureFixture) -> None:
    observer = LoggingObserver("fetch-prices")

    with caplog.at_level(py_logging.WARNING, logger="retryflow.observer"):
        observer(TimeoutError("slow"))
        observer(TimeoutError("slower"))

    assert observer.failures == 2
    assert "fetch-prices failed (failure 2): TimeoutError: slower" in caplog.text


def test_logging_observer_total_is_exact_across_threads() -> None:
    observer = LoggingObserver("shared", level=py_logging.DEBUG)
    error = ConnectionError("reset")

    def hammer() -> None:
        for _ in range(500):
            observer(error)

    threads = [threading.Thread(target=hammer) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert observer.failures == 4000


def test_logging_observer_reset_numbers_next_execution_from_one(caplog: pytest.LogCaptureFixture) -> None:
    observer = LoggingObserver("sync-job")
    observer(TimeoutError("first run"))
    observer(TimeoutError("first run again"))

    observer.reset()
    with caplog.at_level(py_logging.WARNING, logger="retryflow.observer"):
        observer(TimeoutError("second run"))

    assert observer.failures == 1
    assert "sync-job failed (failure 1): TimeoutError: second run" in caplog.text

def test_composite_observer_isolates_each_observer() -> None:
    seen: list[str] = []

    def broken(error: BaseException) -> None:
        raise RuntimeError("nope")

    composite = CompositeObserver([broken, lambda error: seen.append(str(error))])
    composite(ValueError("x"))

    assert seen == ["x"]


def test_chain_observers_collapses_trivial_cases() -> None:
    def only(error: BaseException) -> None:
        return None

    assert chain_observers() is None
    assert chain_observers(None, None) is None
    assert chain_observers(None, only) is only
    assert isinstance(chain_observers(only, only), CompositeObserver)
