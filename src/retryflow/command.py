"""Subprocess commands as retryable operations."""

from __future__ import annotations

import logging as py_logging
import shlex
import subprocess
from collections.abc import Callable, Sequence
from dataclasses import dataclass

logger = py_logging.getLogger(__name__)


class CommandFailed(Exception):
    def __init__(self, argv: Sequence[str], returncode: int, output: str = "") -> None:
        self.argv = list(argv)
        self.returncode = returncode
        self.output = output
        super().__init__(f"Command exited with status {returncode}: {shlex.join(self.argv)}")


class RetryableCommandFailed(CommandFailed):
    """Non-zero exit whose status is listed as retryable."""


class CommandTimedOut(Exception):
    def __init__(self, argv: Sequence[str], timeout_seconds: float) -> None:
        self.argv = list(argv)
        self.timeout_seconds = timeout_seconds
        super().__init__(f"Command timed out after {timeout_seconds:g}s: {shlex.join(self.argv)}")


@dataclass(frozen=True)
class CommandResult:
    argv: list[str]
    returncode: int
    stdout: str
    stderr: str


class CommandRunner:
    """Zero-argument callable that runs ``argv`` once per call.

    A non-zero exit raises :class:`CommandFailed`, or
    :class:`RetryableCommandFailed` when the status is in ``retry_exit_codes``.
    With no ``retry_exit_codes`` every non-zero exit raises the retryable kind.
    """

    def __init__(
        self,
        argv: Sequence[str],
        *,
        timeout_seconds: float | None = None,
        retry_exit_codes: Sequence[int] = (),
        runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
    ) -> None:
        if not argv:
            raise ValueError("argv must not be empty")
        self.argv = list(argv)
        self.timeout_seconds = timeout_seconds
        self.retry_exit_codes = frozenset(retry_exit_codes)
        self.runner = runner
        self.__qualname__ = shlex.join(self.argv)

    def __call__(self) -> CommandResult:
        logger.debug("Running command %s", shlex.join(self.argv))
        try:
            completed = self.runner(
                self.argv,
                shell=False,
                capture_output=True,
                text=True,
                timeout=self.timeout_seconds,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            raise CommandTimedOut(self.argv, self.timeout_seconds or 0.0) from exc

        result = CommandResult(
            argv=self.argv,
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )
        if result.returncode == 0:
            return result

        output = f"{result.stdout}{result.stderr}".strip()
        if not self.retry_exit_codes or result.returncode in self.retry_exit_codes:
            raise RetryableCommandFailed(self.argv, result.returncode, output)
        raise CommandFailed(self.argv, result.returncode, output)
