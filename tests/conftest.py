from __future__ import annotations

from pathlib import Path

import pytest

from retryloop.config import ATTEMPTS_ENV, MAX_BACKOFF_ENV, TIMEOUT_ENV


@pytest.hookimpl(trylast=True)
def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    del config
    for item in items:
        path = Path(str(getattr(item, "path", item.fspath)))
        if "integration" in path.parts:
            item.add_marker(pytest.mark.integration)
            item.add_marker(pytest.mark.slow)


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    for name in (ATTEMPTS_ENV, MAX_BACKOFF_ENV, TIMEOUT_ENV):
        monkeypatch.delenv(name, raising=False)
