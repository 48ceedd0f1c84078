from __future__ import annotations

from pathlib import Path
import pytest

from tests.fakes import MemoryPersister, RecordingLock


@pytest.fixture()
def lock() -> RecordingLock:
    return RecordingLock()


@pytest.fixture()
def persister() -> MemoryPersister:
    return MemoryPersister()


@pytest.fixture()
def config_path(tmp_path: Path) -> Path:
    """
    location of a registry document inside a throwaway directory.
    the file itself is not created.
    """
    return tmp_path / "config" / "repos.json"
