"""Core domain models for the papernote system.

These models represent the data flowing through the watch pipeline:
photos listed on the device, the per-session watch state, recognition
attempts, delivery receipts, and entries written to the note log.
"""

from __future__ import annotations

import enum
import time
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class DeviceState(str, enum.Enum):
    """Connection state reported by `adb devices`."""

    DEVICE = "device"  # Authorized and ready
    UNAUTHORIZED = "unauthorized"  # Waiting for the on-device USB debugging prompt
    OFFLINE = "offline"
    UNKNOWN = "unknown"


class AttemptKind(str, enum.Enum):
    """Outcome of a single submission to the recognition API."""

    SUCCESS = "success"
    RATE_LIMITED = "rate_limited"
    FATAL = "fatal"


# ---------------------------------------------------------------------------
# Device Models
# ---------------------------------------------------------------------------


class DeviceInfo(BaseModel):
    """One row of `adb devices` output."""

    model_config = ConfigDict(frozen=True)

    serial: str
    state: DeviceState = DeviceState.UNKNOWN

    @property
    def is_ready(self) -> bool:
        return self.state == DeviceState.DEVICE

    def is_wireless(self, port: int) -> bool:
        return self.serial.endswith(f":{port}")


class PhotoRecord(BaseModel):
    """A camera photo listed on the device.

    Identity is the filename: camera apps never reuse a filename within a
    capture session.
    """

    model_config = ConfigDict(frozen=True)

    remote_path: str = Field(min_length=1, description="Absolute path on the device")
    filename: str = Field(min_length=1)
    captured_at_ms: int = Field(gt=0, description="Modification time, epoch milliseconds")


class WatchState(BaseModel):
    """Mutable state of one watch session.

    Owned by the watch loop. session_start_ms is fixed at construction,
    processed only ever grows, and busy is True exactly while one photo
    is being fetched, recognized, and delivered.
    """

    processed: set[str] = Field(default_factory=set)
    busy: bool = False
    active_target: str | None = None

    _session_start_ms: int = PrivateAttr()

    def __init__(self, session_start_ms: int | None = None, **data: object) -> None:
        super().__init__(**data)
        self._session_start_ms = (
            session_start_ms if session_start_ms is not None else int(time.time() * 1000)
        )

    @property
    def session_start_ms(self) -> int:
        return self._session_start_ms

    def is_candidate(self, record: PhotoRecord) -> bool:
        """Whether a listed photo may enter the pipeline."""
        return (
            record.captured_at_ms >= self._session_start_ms
            and record.filename not in self.processed
        )

    def mark_processed(self, record: PhotoRecord) -> None:
        self.processed.add(record.filename)


# ---------------------------------------------------------------------------
# Recognition / Delivery / Notes Models
# ---------------------------------------------------------------------------


class WatchStats(BaseModel):
    """Per-session counters, one per pipeline outcome."""

    detected: int = 0
    fetch_failures: int = 0
    empty: int = 0
    recognition_failures: int = 0
    delivered: int = 0
    delivery_failures: int = 0
    recorded: int = 0


class RecognitionAttempt(BaseModel):
    """Tagged result of one recognition API call."""

    kind: AttemptKind
    text: str = ""
    error: str = ""
    status_code: int | None = None

    @classmethod
    def success(cls, text: str) -> RecognitionAttempt:
        return cls(kind=AttemptKind.SUCCESS, text=text)

    @classmethod
    def rate_limited(cls, error: str, status_code: int | None = 429) -> RecognitionAttempt:
        return cls(kind=AttemptKind.RATE_LIMITED, error=error, status_code=status_code)

    @classmethod
    def fatal(cls, error: str, status_code: int | None = None) -> RecognitionAttempt:
        return cls(kind=AttemptKind.FATAL, error=error, status_code=status_code)


class DeliveryReceipt(BaseModel):
    """Acknowledgement that text reached the assistant session."""

    channel: str
    delivered_at: datetime = Field(default_factory=datetime.now)
    detail: str = Field(default="", description="Channel-specific output, e.g. CLI stdout")


class NoteEntry(BaseModel):
    """One section appended to the note log."""

    number: int = Field(ge=1)
    timestamp: datetime
    source_filename: str
    text: str
    delivered: bool = True

    def to_markdown(self) -> str:
        undelivered = "" if self.delivered else "**Delivery:** failed\n"
        return (
            f"\n## Note #{self.number} ({self.timestamp.strftime('%H:%M:%S')})\n"
            f"**Source:** {self.source_filename}\n"
            f"{undelivered}"
            f"\n```\n{self.text}\n```\n"
            f"\n---\n"
        )
