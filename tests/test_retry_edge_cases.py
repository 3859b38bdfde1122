"""Retry edge case tests."""

from __future__ import annotations

import pytest

from retryflow.errors import RetryConfigError
from retryflow.executor import RetryExecutor
from retryflow.policy import RetryPolicy


def test_zero_delay_never_sleeps() -> None:
    sleeps: list[float] = []
    call_count = {"count": 0}

    def operation() -> str:
        call_count["count"] += 1
        if call_count["count"] < 3:
            raise RuntimeError("temp")
        return "ok"

    result = RetryExecutor(sleep=sleeps.append).execute(operation, RetryPolicy(max_retries=3, delay_seconds=0))

    assert result == "ok"
    assert call_count["count"] == 3
    assert sleeps == []


def test_constant_delay_between_every_attempt() -> None:
    sleeps: list[float] = []

    def operation() -> str:
        raise RuntimeError("down")

    with pytest.raises(Exception):
        RetryExecutor(sleep=sleeps.append).execute(operation, RetryPolicy(max_retries=4, delay_seconds=1.5))

    assert sleeps == [1.5, 1.5, 1.5, 1.5]


def test_bool_is_not_a_retry_count() -> None:
    with pytest.raises(RetryConfigError):
        RetryPolicy(max_retries=True)


def test_operation_returning_none_is_a_success() -> None:
    seen: list[BaseException] = []

    result = RetryExecutor(sleep=lambda _: None).execute(lambda: None, RetryPolicy(), seen.append)

    assert result is None
    assert seen == []


def test_single_exception_class_is_accepted_as_eligibility() -> None:
    policy = RetryPolicy(eligible_failures=TimeoutError)  # type: ignore[arg-type]

    assert policy.eligible_failures == (TimeoutError,)


def test_executor_is_reusable_across_calls() -> None:
    executor = RetryExecutor(sleep=lambda _: None)
    policy = RetryPolicy(max_retries=1)

    assert executor.execute(lambda: 1, policy) == 1
    assert executor.execute(lambda: 2, policy) == 2
