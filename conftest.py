"""Pytest configuration — ensures the project root is importable."""

import itertools
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent))

from roi_calculator.store import MemoryBackend, ScenarioStore  # noqa: E402


@pytest.fixture(autouse=True)
def _isolated_storage(tmp_path, monkeypatch):
    """Keep every test away from the real ~/.roi_calculator directory."""
    monkeypatch.setenv("ROI_CALC_STORAGE_DIR", str(tmp_path / "storage"))
    yield


@pytest.fixture
def backend() -> MemoryBackend:
    return MemoryBackend()


@pytest.fixture
def store(backend: MemoryBackend) -> ScenarioStore:
    """Store with predictable ids ("s1", "s2", ...) and timestamps."""
    ids = (f"s{n}" for n in itertools.count(1))
    clock = itertools.count(1_700_000_000_000, 1000)
    return ScenarioStore(backend, id_factory=lambda: next(ids), clock=lambda: next(clock))
