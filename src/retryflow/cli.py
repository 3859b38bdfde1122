"""Command-line entrypoint: run a shell command with retries."""

from __future__ import annotations

import argparse
import logging as py_logging
import signal
import subprocess
import sys
import time
from collections.abc import Callable, Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path

from .adapters import retry
from .command import CommandResult, CommandRunner, RetryableCommandFailed
from .config import RetrySettings, load_settings
from .errors import ErrorCode, RetryFailure, RetryFlowError, describe_failure, user_facing_error
from .executor import RetryExecutor
from .logging import LOG_LEVELS, configure_from_settings, configure_logging, normalize_level
from .observer import LoggingObserver

_VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARN", "ERROR")


def _non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("must be an integer") from exc
    if number < 0:
        raise argparse.ArgumentTypeError("must be >= 0")
    return number


def _non_negative_float(value: str) -> float:
    try:
        number = float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError("must be a number") from exc
    if number < 0:
        raise argparse.ArgumentTypeError("must be >= 0")
    return number


def _log_level_type(value: str) -> str:
    normalized = normalize_level(value)
    if normalized not in LOG_LEVELS:
        accepted = ", ".join(_VALID_LOG_LEVELS)
        raise argparse.ArgumentTypeError(f"--log-level must be one of: {accepted}")
    return normalized


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="retryflow",
        allow_abbrev=False,
        description="Run a command, retrying it with a constant delay when it fails.",
    )
    parser.add_argument("--max-retries", type=_non_negative_int, default=None)
    parser.add_argument("--delay", type=_non_negative_float, default=None, help="Seconds between attempts")
    parser.add_argument(
        "--retry-on-exit",
        type=int,
        action="append",
        default=[],
        metavar="CODE",
        help="Only retry these exit codes (repeatable)",
    )
    parser.add_argument("--timeout", type=_non_negative_float, default=None, help="Per-attempt timeout")
    parser.add_argument("--config", type=Path, default=None)
    parser.add_argument("--log-level", type=_log_level_type, default=None)
    parser.add_argument("--log-file", type=Path, default=None)
    parser.add_argument("command", nargs=argparse.REMAINDER)
    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = build_parser()
    return parser.parse_args(argv)


class SignalCancel:
    """Cancel flag that a signal handler may set.

    ``threading.Event.set`` takes a lock the interrupted main thread may
    already hold, so the handler only flips a bool and the wait polls it.
    """

    def __init__(
        self,
        *,
        poll_seconds: float = 0.05,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.poll_seconds = poll_seconds
        self.sleep = sleep
        self.clock = clock
        self._requested = False

    def is_set(self) -> bool:
        return self._requested

    def set(self) -> None:
        self._requested = True

    def wait(self, timeout: float | None = None) -> bool:
        deadline = None if timeout is None else self.clock() + timeout
        while not self._requested:
            if deadline is None:
                self.sleep(self.poll_seconds)
                continue
            remaining = deadline - self.clock()
            if remaining <= 0:
                break
            self.sleep(min(self.poll_seconds, remaining))
        return self._requested

    def handle_signal(self, signum: int, frame: object) -> None:
        del signum, frame
        self._requested = True


@contextmanager
def _cancel_on_sigterm(cancel: SignalCancel) -> Iterator[None]:
    try:
        previous = signal.signal(signal.SIGTERM, cancel.handle_signal)
    except ValueError:
        # signal handlers can only be installed from the main thread
        yield
        return
    try:
        yield
    finally:
        signal.signal(signal.SIGTERM, previous)


def run_command(
    namespace: argparse.Namespace,
    *,
    settings: RetrySettings | None = None,
    runner: Callable[..., subprocess.CompletedProcess] | None = None,
    executor: RetryExecutor | None = None,
) -> CommandResult:
    command = list(namespace.command)
    if command and command[0] == "--":
        command = command[1:]
    if not command:
        raise RetryFlowError(
            "No command given",
            code=ErrorCode.INVALID_ARGS,
            hint="Pass the command after '--', e.g. retryflow -- curl -f URL",
        )

    settings = settings or load_settings(namespace.config)
    policy = settings.to_policy().with_overrides(
        max_retries=namespace.max_retries,
        delay_seconds=namespace.delay,
    )
    if namespace.retry_on_exit:
        policy = policy.with_overrides(eligible_failures=(RetryableCommandFailed,))

    operation = CommandRunner(
        command,
        timeout_seconds=namespace.timeout,
        retry_exit_codes=namespace.retry_on_exit,
        runner=runner or subprocess.run,
    )
    observer = LoggingObserver(operation.__qualname__)

    if executor is not None:
        return retry(operation, policy, observer=observer, executor=executor)

    cancel = SignalCancel()
    with _cancel_on_sigterm(cancel):
        return retry(operation, policy, observer=observer, executor=RetryExecutor(cancel_event=cancel))


def main(
    argv: Sequence[str] | None = None,
    *,
    runner: Callable[..., subprocess.CompletedProcess] | None = None,
    executor: RetryExecutor | None = None,
) -> int:
    logger = configure_logging()
    parser = build_parser()
    try:
        namespace = parser.parse_args(argv)
    except SystemExit as exc:
        if exc.code not in (None, 0):
            logger.warning("Argument parsing failed with exit code %s", exc.code)
        return int(exc.code or 0)

    try:
        settings = load_settings(namespace.config)
        logger = configure_from_settings(settings, level=namespace.log_level, log_file=namespace.log_file)
        logger.debug("Starting command flow")

        result = run_command(namespace, settings=settings, runner=runner, executor=executor)
    except RetryFailure as exc:
        logger.error(
            "Command did not succeed (code=%s, attempts=%s): %s",
            int(exc.code),
            exc.attempts,
            exc.message,
            exc_info=logger.isEnabledFor(py_logging.DEBUG),
        )
        output = getattr(exc.cause, "output", "")
        if output:
            print(output, file=sys.stderr)
        print(user_facing_error(exc.message, hint=exc.hint), file=sys.stderr)
        return int(exc.code)
    except RetryFlowError as exc:
        logger.error("Handled RetryFlowError (code=%s): %s", int(exc.code), exc.message)
        print(user_facing_error(exc.message, hint=exc.hint), file=sys.stderr)
        return int(exc.code)
    except Exception as exc:
        logger.exception("Unhandled exception in CLI entrypoint")
        print(user_facing_error(f"Unexpected runtime failure ({describe_failure(exc)})"), file=sys.stderr)
        return int(ErrorCode.RUNTIME_ERROR)

    if result.stdout:
        print(result.stdout, end="")
    return int(ErrorCode.SUCCESS)


def run(argv: Sequence[str] | None = None) -> int:
    return main(argv)
