"""Shared test fixtures for the papernote test suite.

Provides common fixtures used across unit tests: photo records, a watch
state with a fixed session start, mock device bridge, recognizer and
delivery channel, and a note log writing into a temp directory.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Callable
from unittest.mock import AsyncMock

import pytest

from papernote.domain.models import DeliveryReceipt, PhotoRecord, WatchState
from papernote.watcher.notes import NoteLog

SESSION_START_MS = 1_700_000_000_000


# ---------------------------------------------------------------------------
# Photo / State Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def make_record() -> Callable[..., PhotoRecord]:
    """Factory for PhotoRecords relative to the session start."""

    def _make(filename: str, offset_s: int = 10) -> PhotoRecord:
        return PhotoRecord(
            remote_path=f"/sdcard/DCIM/Camera/{filename}",
            filename=filename,
            captured_at_ms=SESSION_START_MS + offset_s * 1000,
        )

    return _make


@pytest.fixture
def watch_state() -> WatchState:
    """A WatchState whose session started at SESSION_START_MS."""
    return WatchState(session_start_ms=SESSION_START_MS, active_target="emulator-5554")


# ---------------------------------------------------------------------------
# Mock Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_bridge() -> AsyncMock:
    """A DeviceBridge that lists nothing and pulls successfully."""
    mock = AsyncMock()
    mock.list_photos.return_value = []
    mock.pull.return_value = True
    return mock


@pytest.fixture
def mock_recognizer() -> AsyncMock:
    """A Recognizer that reads 'buy milk' from every photo."""
    mock = AsyncMock()
    mock.recognize.return_value = "buy milk"
    mock.provider_name = "mock"
    return mock


@pytest.fixture
def mock_channel() -> AsyncMock:
    """A SessionChannel that accepts every delivery."""
    mock = AsyncMock()
    mock.name = "mock"
    mock.deliver.return_value = DeliveryReceipt(channel="mock")
    return mock


@pytest.fixture
def note_log(tmp_path: Path) -> NoteLog:
    """An initialized NoteLog with a fixed clock."""
    log = NoteLog(tmp_path / "notes.md", clock=lambda: datetime(2025, 1, 1, 9, 30, 0))
    log.initialize()
    return log
