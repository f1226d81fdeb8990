"""Pytest configuration for the test suite."""

import sys
import textwrap
import uuid
from typing import Any, Optional

import pytest
from loguru import logger


class RecordingDriver:
    """Driver adapter double that records queries and returns canned rows."""

    def __init__(self, rows: Optional[list[Any]] = None) -> None:
        self.rows = rows if rows is not None else []
        self.calls: list[tuple[str, type, Optional[dict[str, Any]]]] = []

    def query(self, query, entity_type, parameters=None):
        self.calls.append((query, entity_type, parameters))
        return list(self.rows)

    @property
    def queries(self) -> list[str]:
        return [call[0] for call in self.calls]


@pytest.fixture
def recording_driver():
    """Driver adapter double with no rows."""
    return RecordingDriver()


@pytest.fixture
def log_messages():
    """Capture loguru output for the duration of a test."""
    messages: list[str] = []
    handler_id = logger.add(lambda message: messages.append(str(message)), level="DEBUG")
    yield messages
    logger.remove(handler_id)


@pytest.fixture
def package_factory(tmp_path, monkeypatch):
    """Write a throwaway package to disk and return its import name."""
    monkeypatch.syspath_prepend(str(tmp_path))
    created: list[str] = []

    def _create(modules: dict[str, str]) -> str:
        name = f"repo_pkg_{uuid.uuid4().hex[:8]}"
        created.append(name)
        for relative, source in modules.items():
            path = tmp_path / name / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(textwrap.dedent(source))
        return name

    yield _create
    for name in created:
        for module in [m for m in sys.modules if m == name or m.startswith(f"{name}.")]:
            del sys.modules[module]
