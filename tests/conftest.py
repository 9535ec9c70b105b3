"""Shared fixtures."""
from pathlib import Path

import pytest

from efiscal.data.store import NotaStore


@pytest.fixture
def store(tmp_path: Path) -> NotaStore:
    """An empty, loaded store persisting into the test's temp dir."""
    return NotaStore(tmp_path / "notas.csv").load()
