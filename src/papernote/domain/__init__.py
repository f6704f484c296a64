"""Domain models for papernote.

This package contains the core data structures, enumerations, and value
objects used throughout the system. All models use Pydantic v2 for
validation and serialization.
"""

from papernote.domain.models import (
    AttemptKind,
    DeliveryReceipt,
    DeviceInfo,
    DeviceState,
    NoteEntry,
    PhotoRecord,
    RecognitionAttempt,
    WatchState,
    WatchStats,
)

__all__ = [
    "AttemptKind",
    "DeliveryReceipt",
    "DeviceInfo",
    "DeviceState",
    "NoteEntry",
    "PhotoRecord",
    "RecognitionAttempt",
    "WatchState",
    "WatchStats",
]
