"""Shared fixtures for logroller tests."""

import tempfile
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from logroller.core.naming import NANOS_PER_SECOND

# 2024-01-01T00:00:00Z
START_NS = 1704067200 * NANOS_PER_SECOND


class FakeClock:
    """Deterministic clock that advances by a fixed step on every reading."""
    
    def __init__(self, start_ns: int = START_NS, step_ns: int = NANOS_PER_SECOND):
        self.current = start_ns
        self.step_ns = step_ns
        self.readings = 0
        self._lock = threading.Lock()
    
    def now_ns(self) -> int:
        with self._lock:
            value = self.current
            self.current += self.step_ns
            self.readings += 1
            return value
    
    def advance(self, ns: int) -> None:
        with self._lock:
            self.current += ns


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def executor():
    """Caller-owned executor so tests can wait for background deletions."""
    pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="test-cleanup")
    yield pool
    pool.shutdown(wait=True)
