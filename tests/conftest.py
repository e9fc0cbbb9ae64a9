# tests/conftest.py

from __future__ import annotations

from pathlib import Path

import pytest

from task_thrower.config import Settings
from task_thrower.infra.db.task_repo_memory import InMemoryTaskRepo

from factories import FakeClock


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def memory_repo(clock: FakeClock) -> InMemoryTaskRepo:
    return InMemoryTaskRepo(clock=clock)


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    """Memory-backed settings with logs under tmp_path."""
    return Settings(
        store="memory",
        db_path=str(tmp_path / "tasks.db"),
        log_level="DEBUG",
        log_dir=str(tmp_path / "logs"),
        batch_size=450,
    )
