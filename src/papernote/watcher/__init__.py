"""Photo watch pipeline for papernote.

Public API:
    PhotoWatchLoop -- Polling orchestrator
    NoteLog -- Append-only Markdown note log
"""

from papernote.watcher.loop import PhotoWatchLoop
from papernote.watcher.notes import NoteLog

__all__ = ["NoteLog", "PhotoWatchLoop"]
