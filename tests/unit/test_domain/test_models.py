"""Tests for domain models."""

from __future__ import annotations

import time
from datetime import datetime

import pytest
from pydantic import ValidationError

from papernote.domain.models import (
    AttemptKind,
    DeviceInfo,
    DeviceState,
    NoteEntry,
    PhotoRecord,
    RecognitionAttempt,
    WatchState,
)


class TestPhotoRecord:
    def test_rejects_non_positive_timestamp(self) -> None:
        with pytest.raises(ValidationError):
            PhotoRecord(remote_path="/c/a.jpg", filename="a.jpg", captured_at_ms=0)

    def test_frozen(self) -> None:
        record = PhotoRecord(remote_path="/c/a.jpg", filename="a.jpg", captured_at_ms=1)
        with pytest.raises(ValidationError):
            record.filename = "b.jpg"


class TestWatchState:
    def test_session_start_defaults_to_now(self) -> None:
        before = int(time.time() * 1000)
        state = WatchState()
        assert before <= state.session_start_ms <= int(time.time() * 1000)
        assert state.processed == set()
        assert state.busy is False

    def test_session_start_is_read_only(self) -> None:
        state = WatchState(session_start_ms=1000)
        with pytest.raises(AttributeError):
            state.session_start_ms = 0  # type: ignore[misc]

    def test_is_candidate(self) -> None:
        state = WatchState(session_start_ms=10_000)
        at_start = PhotoRecord(remote_path="/c/a.jpg", filename="a.jpg", captured_at_ms=10_000)
        before = PhotoRecord(remote_path="/c/b.jpg", filename="b.jpg", captured_at_ms=9_999)

        assert state.is_candidate(at_start)
        assert not state.is_candidate(before)

        state.mark_processed(at_start)
        assert not state.is_candidate(at_start)


def test_device_info() -> None:
    usb = DeviceInfo(serial="R58M123", state=DeviceState.DEVICE)
    wireless = DeviceInfo(serial="192.168.1.42:5555", state=DeviceState.OFFLINE)
    assert usb.is_ready and not usb.is_wireless(5555)
    assert wireless.is_wireless(5555) and not wireless.is_ready


def test_recognition_attempt_constructors() -> None:
    assert RecognitionAttempt.success("hi").kind == AttemptKind.SUCCESS
    limited = RecognitionAttempt.rate_limited("slow down")
    assert (limited.kind, limited.status_code) == (AttemptKind.RATE_LIMITED, 429)
    fatal = RecognitionAttempt.fatal("bad key", status_code=401)
    assert (fatal.kind, fatal.status_code) == (AttemptKind.FATAL, 401)


def test_note_entry_markdown() -> None:
    entry = NoteEntry(
        number=3,
        timestamp=datetime(2025, 1, 1, 14, 5, 9),
        source_filename="IMG_3.jpg",
        text="line one\nline two",
    )
    assert entry.to_markdown() == (
        "\n## Note #3 (14:05:09)\n"
        "**Source:** IMG_3.jpg\n"
        "\n```\nline one\nline two\n```\n"
        "\n---\n"
    )
