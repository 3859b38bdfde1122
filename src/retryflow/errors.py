"""Failure taxonomy and exit code contract."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class ErrorCode(IntEnum):
    SUCCESS = 0
    INVALID_ARGS = 2
    CONFIG_ERROR = 3
    RUNTIME_ERROR = 4
    RETRY_EXHAUSTED = 5
    INELIGIBLE_FAILURE = 6
    INTERRUPTED = 7


@dataclass
class RetryFlowError(Exception):
    message: str
    code: ErrorCode = ErrorCode.RUNTIME_ERROR
    hint: str = ""

    def __str__(self) -> str:
        if self.hint:
            return f"{self.message} Hint: {self.hint}"
        return self.message


@dataclass
class RetryConfigError(RetryFlowError, ValueError):
    code: ErrorCode = ErrorCode.CONFIG_ERROR


@dataclass
class RetryFailure(RetryFlowError):
    """Terminal outcome of a retry sequence that never produced a value.

    ``cause`` is always the reference failure, the one raised by the very first
    attempt. ``last_error`` is whatever the final attempt raised and is only
    kept for diagnostics.
    """

    cause: BaseException | None = None
    attempts: int = 0
    last_error: BaseException | None = None

    def __post_init__(self) -> None:
        if self.cause is not None:
            self.__cause__ = self.cause


@dataclass
class RetryExhausted(RetryFailure):
    code: ErrorCode = ErrorCode.RETRY_EXHAUSTED
    interrupted: bool = False


@dataclass
class IneligibleFailure(RetryFailure):
    code: ErrorCode = ErrorCode.INELIGIBLE_FAILURE


def describe_failure(error: BaseException) -> str:
    text = str(error)
    if text:
        return f"{type(error).__name__}: {text}"
    return type(error).__name__


def user_facing_error(message: str, *, hint: str = "") -> str:
    if hint:
        return f"Error: {message}. Next step: {hint}"
    return f"Error: {message}."
