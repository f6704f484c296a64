"""Abstract base class for device photo access.

The watch loop only ever talks to a DeviceBridge, so device transport
(adb over USB, adb over TCP, a fake in tests) can change without
touching the orchestration.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path

from papernote.domain.models import PhotoRecord

logger = logging.getLogger(__name__)


class DeviceBridge(ABC):
    """Lists and copies photos from a bound device.

    Both operations are fail-soft: device hiccups surface as an empty
    listing or a False pull, never as an exception, so a flaky
    connection cannot kill the watch loop.
    """

    @abstractmethod
    async def list_photos(self, target: str | None) -> list[PhotoRecord]:
        """Return the most recently modified photos, newest first.

        Args:
            target: Device serial or host:port to query. None lets the
                    bridge use whatever single device is attached.

        Returns:
            At most the bridge's configured limit of records. Empty on
            any failure.
        """
        ...

    @abstractmethod
    async def pull(self, remote_path: str, local_path: Path, target: str | None = None) -> bool:
        """Copy one remote file to local_path, overwriting it.

        Returns:
            True on success, False on any failure.
        """
        ...


class DeviceError(Exception):
    """Raised when a device command fails."""

    def __init__(self, message: str, target: str | None = None) -> None:
        super().__init__(message)
        self.target = target


class ConnectionBootstrapError(DeviceError):
    """Raised when no usable device can be bound at startup."""
