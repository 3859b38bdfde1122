"""TOML/env settings for retry policies."""

from __future__ import annotations

import builtins
import importlib
import os
import sys
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

if sys.version_info >= (3, 11):
    import tomllib
else:  # pragma: no cover
    import tomli as tomllib

from .errors import RetryConfigError
from .logging import LOG_LEVELS, normalize_level
from .policy import DEFAULT_DELAY_SECONDS, DEFAULT_MAX_RETRIES, RetryPolicy

DEFAULT_CONFIG_PATH = Path("~/.config/retryflow/config.toml").expanduser()
MAX_RETRIES_ENV = "RETRYFLOW_MAX_RETRIES"
DELAY_SECONDS_ENV = "RETRYFLOW_DELAY_SECONDS"
CONFIG_SECTION = "retry"


class RetrySettings(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    max_retries: int = Field(default=DEFAULT_MAX_RETRIES, ge=0)
    delay_seconds: float = Field(default=DEFAULT_DELAY_SECONDS, ge=0)
    eligible_failures: list[str] = Field(default_factory=list)
    exact_match: bool = False
    log_level: str = "INFO"
    log_file: str = ""

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        normalized = normalize_level(value)
        if normalized not in LOG_LEVELS:
            raise ValueError(f"Invalid log level: {value}")
        return normalized

    @field_validator("eligible_failures")
    @classmethod
    def _validate_eligible_failures(cls, value: list[str]) -> list[str]:
        names: list[str] = []
        for item in value:
            name = item.strip()
            if name and name not in names:
                names.append(name)
        return names

    def to_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_retries=self.max_retries,
            delay_seconds=self.delay_seconds,
            eligible_failures=tuple(resolve_exception(name) for name in self.eligible_failures),
            exact_match=self.exact_match,
        )


def resolve_exception(name: str) -> type[BaseException]:
    """Turn ``"ConnectionError"`` or ``"socket.timeout"`` into the exception class."""
    dotted = name.strip()
    if not dotted:
        raise RetryConfigError("Empty exception name", hint="Use names like 'ConnectionError'.")

    module_name, _, attr = dotted.rpartition(".")
    if not module_name:
        found = getattr(builtins, attr, None)
    else:
        try:
            module = importlib.import_module(module_name)
        except ImportError as exc:
            raise RetryConfigError(
                f"Cannot import module for exception: {dotted}",
                hint="Use a module.ClassName path that is importable.",
            ) from exc
        found = getattr(module, attr, None)

    if not isinstance(found, type) or not issubclass(found, BaseException):
        raise RetryConfigError(
            f"Not an exception class: {dotted}",
            hint="Use names like 'ConnectionError' or 'socket.timeout'.",
        )
    return found


def get_config_path(path: str | Path | None = None) -> Path:
    if path is None:
        return DEFAULT_CONFIG_PATH
    return Path(path).expanduser()


def _sanitize(raw: dict[str, object]) -> RetrySettings:
    settings = RetrySettings()
    for key in RetrySettings.model_fields:
        if key not in raw:
            continue
        try:
            setattr(settings, key, raw[key])
        except ValidationError:
            continue

    env_overrides = {
        "max_retries": os.getenv(MAX_RETRIES_ENV, "").strip(),
        "delay_seconds": os.getenv(DELAY_SECONDS_ENV, "").strip(),
    }
    for key, value in env_overrides.items():
        if not value:
            continue
        try:
            setattr(settings, key, value)
        except ValidationError as exc:
            raise RetryConfigError(
                f"Invalid {key} override from environment: {value!r}",
                hint="Use a non-negative number.",
            ) from exc
    return settings


def load_settings(path: str | Path | None = None) -> RetrySettings:
    resolved = get_config_path(path)
    raw: object = {}
    if resolved.exists():
        try:
            with resolved.open("rb") as handle:
                raw = tomllib.load(handle)
        except (tomllib.TOMLDecodeError, OSError):
            raw = {}
    section = raw.get(CONFIG_SECTION, raw) if isinstance(raw, dict) else {}
    if not isinstance(section, dict):
        section = {}
    return _sanitize(section)
