"""Retry policy value object."""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from .errors import RetryConfigError

DEFAULT_MAX_RETRIES = 3
DEFAULT_DELAY_SECONDS = 3.0


@dataclass(frozen=True)
class RetryPolicy:
    """Constant-delay retry configuration.

    ``max_retries`` counts attempts beyond the first one. An empty
    ``eligible_failures`` tuple is an open policy: every failure may be
    retried. A non-empty tuple closes the policy to the listed kinds.
    """

    max_retries: int = DEFAULT_MAX_RETRIES
    delay_seconds: float = DEFAULT_DELAY_SECONDS
    eligible_failures: tuple[type[BaseException], ...] = ()
    exact_match: bool = False

    def __post_init__(self) -> None:
        if isinstance(self.max_retries, bool) or not isinstance(self.max_retries, int):
            raise RetryConfigError("max_retries must be an integer", hint="Use 0 or more.")
        if self.max_retries < 0:
            raise RetryConfigError("max_retries must be >= 0", hint="Use 0 or more.")
        if isinstance(self.delay_seconds, bool) or not isinstance(self.delay_seconds, (int, float)):
            raise RetryConfigError("delay_seconds must be a number", hint="Use 0 or more seconds.")
        if self.delay_seconds < 0:
            raise RetryConfigError("delay_seconds must be >= 0", hint="Use 0 or more seconds.")

        kinds = tuple(_normalize_kinds(self.eligible_failures))
        for kind in kinds:
            if not isinstance(kind, type) or not issubclass(kind, BaseException):
                raise RetryConfigError(
                    f"Invalid eligible failure kind: {kind!r}",
                    hint="List exception classes only.",
                )
        object.__setattr__(self, "eligible_failures", kinds)

    @property
    def is_open(self) -> bool:
        return not self.eligible_failures

    @property
    def max_attempts(self) -> int:
        return 1 + self.max_retries

    def is_eligible(self, error: BaseException) -> bool:
        if self.is_open:
            return True
        if self.exact_match:
            return type(error) in self.eligible_failures
        return isinstance(error, self.eligible_failures)

    def with_overrides(self, **changes: Any) -> RetryPolicy:
        overrides = {key: value for key, value in changes.items() if value is not None}
        if not overrides:
            return self
        return dataclasses.replace(self, **overrides)


def _normalize_kinds(value: object) -> Iterable[object]:
    if value is None:
        return ()
    if isinstance(value, type):
        return (value,)
    if isinstance(value, Iterable) and not isinstance(value, (str, bytes)):
        return value
    return (value,)


DEFAULT_POLICY = RetryPolicy()
