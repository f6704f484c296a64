"""Append-only Markdown log of transcribed notes."""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Callable

from papernote.domain.models import NoteEntry

logger = logging.getLogger(__name__)

NOTES_HEADER = """# Paper Notes -> Coding Assistant

This file is automatically updated when you take photos of handwritten notes.
The coding assistant can read this file to see your instructions.

---

"""


class NoteLog:
    """Numbers notes and appends them to a Markdown file."""

    def __init__(
        self,
        path: Path | str,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._path = Path(path)
        self._clock = clock
        self._counter = 0

    @property
    def path(self) -> Path:
        return self._path

    @property
    def count(self) -> int:
        return self._counter

    def initialize(self) -> None:
        """Start a fresh log, replacing any previous contents."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(NOTES_HEADER, encoding="utf-8")
        self._counter = 0
        logger.info("Initialized note log %s", self._path)

    def append(self, text: str, source_filename: str, delivered: bool = True) -> NoteEntry:
        """Write the next numbered note and return it."""
        entry = NoteEntry(
            number=self._counter + 1,
            timestamp=self._clock(),
            source_filename=source_filename,
            text=text,
            delivered=delivered,
        )
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._path, "a", encoding="utf-8") as f:
            f.write(entry.to_markdown())
        self._counter = entry.number
        return entry
