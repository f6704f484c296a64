"""papernote -- Handwritten notes in, coding-assistant instructions out.

This package watches an Android device's camera roll over adb, transcribes
newly captured photos of handwritten notes with a vision LLM, and hands the
text to a single live coding-assistant session (a tmux pane or a one-shot
CLI invocation). Each transcription is also appended to a Markdown note log.
"""

__version__ = "0.1.0"
