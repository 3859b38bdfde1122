"""Constant-delay retry execution for fallible zero-argument operations."""

from .adapters import (
    OutcomeKind,
    RetryOutcome,
    retry,
    retry_any_fail,
    retry_or_else,
    retry_reconcile,
    retrying,
    run_outcome,
)
from .errors import (
    ErrorCode,
    IneligibleFailure,
    RetryConfigError,
    RetryExhausted,
    RetryFailure,
    RetryFlowError,
)
from .executor import RetryExecutor, execute
from .observer import FailureObserver, LoggingObserver, chain_observers, notify_observer
from .policy import DEFAULT_POLICY, RetryPolicy

__all__ = [
    "chain_observers",
    "DEFAULT_POLICY",
    "ErrorCode",
    "execute",
    "FailureObserver",
    "IneligibleFailure",
    "LoggingObserver",
    "notify_observer",
    "OutcomeKind",
    "retry",
    "retry_any_fail",
    "retry_or_else",
    "retry_reconcile",
    "RetryConfigError",
    "RetryExecutor",
    "RetryExhausted",
    "RetryFailure",
    "RetryFlowError",
    "RetryOutcome",
    "RetryPolicy",
    "retrying",
    "run_outcome",
]
