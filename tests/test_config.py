from __future__ import annotations

import socket
from pathlib import Path

import pytest

from retryflow.config import RetrySettings, load_settings, resolve_exception
from retryflow.errors import RetryConfigError


def _write(path: Path, text: str) -> Path:
    path.write_text(text, encoding="utf-8")
    return path


def test_load_defaults_when_config_missing(tmp_path: Path) -> None:
    settings = load_settings(tmp_path / "config.toml")

    assert settings.max_retries == 3
    assert settings.delay_seconds == 3.0
    assert settings.eligible_failures == []
    assert settings.exact_match is False
    assert settings.log_level == "INFO"


def test_load_retry_section(tmp_path: Path) -> None:
    path = _write(
        tmp_path / "config.toml",
        "\n".join(
            [
                "[retry]",
                "max_retries = 5",
                "delay_seconds = 0.5",
                'eligible_failures = ["ConnectionError", "socket.timeout", "ConnectionError"]',
                "exact_match = true",
                'log_level = "warning"',
            ]
        ),
    )

    settings = load_settings(path)

    assert settings.max_retries == 5
    assert settings.delay_seconds == 0.5
    assert settings.eligible_failures == ["ConnectionError", "socket.timeout"]
    assert settings.exact_match is True
    assert settings.log_level == "WARN"


def test_invalid_values_fall_back_per_field(tmp_path: Path) -> None:
    path = _write(
        tmp_path / "config.toml",
        '[retry]\nmax_retries = -2\ndelay_seconds = 1.25\nlog_level = "LOUD"\n',
    )

    settings = load_settings(path)

    assert settings.max_retries == 3
    assert settings.delay_seconds == 1.25
    assert settings.log_level == "INFO"


def test_malformed_toml_returns_defaults(tmp_path: Path) -> None:
    path = _write(tmp_path / "config.toml", "[retry\nmax_retries = ")

    assert load_settings(path) == RetrySettings()


def test_environment_overrides_file(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    path = _write(tmp_path / "config.toml", "[retry]\nmax_retries = 5\n")
    monkeypatch.setenv("RETRYFLOW_MAX_RETRIES", "7")
    monkeypatch.setenv("RETRYFLOW_DELAY_SECONDS", "0.1")

    settings = load_settings(path)

    assert settings.max_retries == 7
    assert settings.delay_seconds == 0.1


def test_invalid_environment_override_raises(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("RETRYFLOW_MAX_RETRIES", "many")

    with pytest.raises(RetryConfigError, match="RETRYFLOW|max_retries"):
        load_settings(tmp_path / "missing.toml")


def test_resolve_exception_builtin_and_dotted() -> None:
    assert resolve_exception("ConnectionError") is ConnectionError
    assert resolve_exception(" socket.timeout ") is socket.timeout


@pytest.mark.parametrize("name", ["", "NotARealError", "len", "no_such_module.Error", "os.path"])
def test_resolve_exception_rejects_unknown_names(name: str) -> None:
    with pytest.raises(RetryConfigError):
        resolve_exception(name)


def test_settings_to_policy() -> None:
    settings = RetrySettings(
        max_retries=1,
        delay_seconds=0,
        eligible_failures=["TimeoutError"],
        exact_match=True,
    )

    policy = settings.to_policy()

    assert policy.max_retries == 1
    assert policy.delay_seconds == 0
    assert policy.eligible_failures == (TimeoutError,)
    assert policy.exact_match is True
