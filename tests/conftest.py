from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from retryflow.logging import reset_logging

_PROPERTY_DIR = "property"


@pytest.hookimpl(trylast=True)
def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    del config
    for item in items:
        path = Path(str(getattr(item, "path", item.fspath)))

        if "integration" in path.parts:
            item.add_marker(pytest.mark.integration)
            item.add_marker(pytest.mark.slow)

        if _PROPERTY_DIR in path.parts:
            item.add_marker(pytest.mark.property)


@pytest.fixture(autouse=True)
def _reset_retryflow_logger() -> Iterator[None]:
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_retry_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("RETRYFLOW_MAX_RETRIES", raising=False)
    monkeypatch.delenv("RETRYFLOW_DELAY_SECONDS", raising=False)
