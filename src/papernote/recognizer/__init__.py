"""Handwriting recognition module for papernote.

Provides a provider-agnostic interface for sending note photos to
vision-capable LLMs and receiving the verbatim transcription, with a
shared retry-on-rate-limit policy.

Public API:
    Recognizer -- Abstract base class
    RecognitionError / MaxRetriesExceeded -- Failure types
    OpenAIRecognizer -- OpenAI / OpenRouter / Gemini (OpenAI-compatible)
    AnthropicRecognizer -- Claude API implementation
"""

from papernote.recognizer.base import (
    MaxRetriesExceeded,
    RecognitionError,
    Recognizer,
    backoff_delay,
)

__all__ = [
    "Recognizer",
    "RecognitionError",
    "MaxRetriesExceeded",
    "backoff_delay",
    "AnthropicRecognizer",
    "OpenAIRecognizer",
]


def __getattr__(name: str) -> type:
    """Lazy import for concrete implementations that require external deps."""
    if name == "AnthropicRecognizer":
        from papernote.recognizer.anthropic import AnthropicRecognizer
        return AnthropicRecognizer
    if name == "OpenAIRecognizer":
        from papernote.recognizer.openai import OpenAIRecognizer
        return OpenAIRecognizer
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
