"""Abstract base class for delivering notes to the assistant session.

All channels deliver to exactly one destination and complete (or fail)
before returning, so the watch loop can keep one note in flight at a
time.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from papernote.domain.models import DeliveryReceipt

logger = logging.getLogger(__name__)


class SessionChannel(ABC):
    """Abstract interface for sending text to a coding-assistant session.

    Example usage::

        channel = ClaudeCliChannel(command="claude")
        receipt = await channel.deliver("Add a --dry-run flag to the sync command")
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Short channel identifier used in logs and receipts."""
        ...

    @abstractmethod
    async def deliver(self, text: str) -> DeliveryReceipt:
        """Deliver one note's text to the session.

        Args:
            text: The transcribed note, sent as-is.

        Returns:
            A DeliveryReceipt once the session has accepted the text.

        Raises:
            DeliveryError: If the text could not be delivered.
        """
        ...


class DeliveryError(Exception):
    """Raised when a note cannot be delivered to the session."""

    def __init__(self, message: str, channel: str = "") -> None:
        super().__init__(message)
        self.channel = channel
