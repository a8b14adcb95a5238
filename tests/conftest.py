"""
Pytest configuration for querylab.

Provides fixtures for:
- The packaged sample dataset as an entity store
- Tiny hand-built stores for engine edge cases
- A temporary SQLite file and settings isolation
"""

from __future__ import annotations

from pathlib import Path
from typing import Generator

import pytest

from querylab.config import get_settings
from querylab.domain.models import Dataset, Department
from querylab.engine.store import EntityStore
from querylab.infrastructure.fixtures import build_store, load
from tests.factories import make_employee


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """
    Clear cached settings around every test.

    Environment overrides applied with monkeypatch are picked up by the next
    `get_settings()` call and do not leak into other tests.
    """
    for name in ("FIXTURE_PATH", "SQLITE_PATH", "LOG_LEVEL", "LOG_JSON", "LOG_ENGINE_LEVEL", "APP_ENV"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(scope="session")
def sample_store() -> EntityStore:
    """The packaged sample dataset, loaded once per session."""
    return load()


@pytest.fixture
def sqlite_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """
    A fresh SQLite file for the raw SQL scenarios.

    Also exported as SQLITE_PATH so code reading settings uses it.
    """
    path = tmp_path / "practice.db"
    monkeypatch.setenv("SQLITE_PATH", str(path))
    get_settings.cache_clear()
    return path


@pytest.fixture
def tiny_store() -> EntityStore:
    """
    Two departments, one of them empty, and three employees with salaries
    100/200/300 of which only the first is active.
    """
    dataset = Dataset(
        departments=[
            Department(department_id=1, name="Ops"),
            Department(department_id=2, name="Empty"),
        ],
        employees=[
            make_employee(1, salary="100", is_active=True),
            make_employee(2, salary="200", is_active=False, manager_id=1),
            make_employee(3, salary="300", is_active=False, manager_id=1),
        ],
    )
    return build_store(dataset)
