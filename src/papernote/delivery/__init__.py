"""Session delivery module for papernote.

Hands transcribed notes to the coding-assistant session through
pluggable channels. The abstract interface supports both a long-lived
tmux pane and a one-shot CLI invocation per note.

Public API:
    SessionChannel -- Abstract base class
    TmuxChannel / TmuxWorkspace -- Paste into a pane of the tmux workspace
    ClaudeCliChannel -- Run the assistant CLI once per note
"""

from papernote.delivery.base import DeliveryError, SessionChannel

__all__ = ["SessionChannel", "DeliveryError", "TmuxChannel", "TmuxWorkspace", "ClaudeCliChannel"]


def __getattr__(name: str) -> type:
    """Lazy import for concrete channel implementations."""
    if name in ("TmuxChannel", "TmuxWorkspace"):
        from papernote.delivery import tmux
        return getattr(tmux, name)
    if name == "ClaudeCliChannel":
        from papernote.delivery.claude_cli import ClaudeCliChannel
        return ClaudeCliChannel
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
