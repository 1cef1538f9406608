"""Pytest configuration and fixtures for plotsync tests."""
import os
import tempfile

# Keep log files out of the source tree during tests
os.environ.setdefault("LOGS_DIR", tempfile.mkdtemp(prefix="plotsync-logs-"))

import itertools

import pytest

from plotsync.api_client import SubmitResult
from plotsync.queue.offline_queue import ActionQueue, ImageUploadQueue
from plotsync.store import FileStore, MemoryStore


class FakeClock:
    """Millisecond clock that advances one tick per call."""

    def __init__(self, start: int = 1_700_000_000_000):
        self._ticks = itertools.count(start)

    def __call__(self) -> int:
        return next(self._ticks)


class ScriptedSubmit:
    """Submit double that records calls and fails on chosen attempt numbers."""

    def __init__(self, fail_on=()):
        self.fail_on = set(fail_on)
        self.calls = []

    def __call__(self, payload):
        self.calls.append(payload)
        if len(self.calls) in self.fail_on:
            return SubmitResult.failed("HTTP 503: unavailable", 503)
        return SubmitResult(success=True, status_code=200)


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def file_store(tmp_path) -> FileStore:
    return FileStore(tmp_path / "store")


@pytest.fixture
def action_queue(memory_store) -> ActionQueue:
    return ActionQueue(memory_store, key="test_actions", clock=FakeClock())


@pytest.fixture
def image_queue(memory_store) -> ImageUploadQueue:
    return ImageUploadQueue(memory_store, key="test_images", clock=FakeClock())


@pytest.fixture
def scripted_submit():
    return ScriptedSubmit
