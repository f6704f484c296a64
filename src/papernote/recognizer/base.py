"""Abstract base class for handwriting recognizers.

All recognizer implementations share the retry policy defined here and
only differ in how a single submission reaches their API. A submission
never raises: providers classify the outcome into a tagged
RecognitionAttempt and the loop in Recognizer.recognize decides whether
to return, wait and retry, or fail.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Awaitable, Callable

from papernote.domain.models import AttemptKind, RecognitionAttempt
from papernote.utils.imaging import encode_image_file

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 3

TRANSCRIPTION_PROMPT = """You are an OCR system. Transcribe ALL handwritten text in this image EXACTLY as written.
Output ONLY the transcribed text, preserving line breaks and formatting.
Do not correct spelling or grammar.
Do not add any commentary or markdown. Just the raw text."""

SleepFn = Callable[[float], Awaitable[None]]


def backoff_delay(attempt: int) -> float:
    """Seconds to wait after a rate-limited attempt (0 -> 2, 1 -> 4, 2 -> 8)."""
    return float(2 ** (attempt + 1))


def is_rate_limit_message(message: str) -> bool:
    """Heuristic for providers that only signal rate limiting in text."""
    return "429" in message or "RESOURCE_EXHAUSTED" in message.upper()


class Recognizer(ABC):
    """Abstract interface for extracting handwritten text from an image."""

    def __init__(
        self,
        model: str,
        max_retries: int = DEFAULT_MAX_RETRIES,
        prompt: str | None = None,
        max_image_dimension: int = 0,
        sleep: SleepFn | None = None,
    ) -> None:
        self._model = model
        self._max_retries = max_retries
        self._prompt = prompt or TRANSCRIPTION_PROMPT
        self._max_image_dimension = max_image_dimension
        self._sleep: SleepFn = sleep or asyncio.sleep

    @property
    def model(self) -> str:
        return self._model

    @property
    def max_retries(self) -> int:
        return self._max_retries

    @property
    def provider_name(self) -> str:
        return type(self).__name__

    async def recognize(self, image_path: Path | str) -> str:
        """Transcribe the handwriting in a local image.

        Rate-limited submissions are retried up to max_retries times with
        delays of 2, 4, 8... seconds. Any other failure is raised at once.

        Returns:
            The transcription, stripped. An empty string means no text was
            found; that is not an error.

        Raises:
            RecognitionError: If the image cannot be read or is empty, or the API fails.
            MaxRetriesExceeded: If every attempt was rate limited.
        """
        try:
            b64_image, mime_type = encode_image_file(image_path, self._max_image_dimension)
        except OSError as e:
            raise RecognitionError(
                f"Cannot read image {image_path}: {e}", provider=self.provider_name
            ) from e
        if not b64_image:
            raise RecognitionError(f"Image {image_path} is empty", provider=self.provider_name)

        last: RecognitionAttempt | None = None
        for attempt in range(self._max_retries + 1):
            last = await self._submit(b64_image, mime_type)

            if last.kind == AttemptKind.SUCCESS:
                return last.text.strip()

            if last.kind == AttemptKind.FATAL:
                raise RecognitionError(
                    f"Recognition failed: {last.error}",
                    provider=self.provider_name,
                    attempts=attempt + 1,
                    status_code=last.status_code,
                )

            if attempt < self._max_retries:
                delay = backoff_delay(attempt)
                logger.warning("Rate limited, retrying in %.0fs...", delay)
                print(f"  Rate limited, retrying in {delay:.0f}s...")
                await self._sleep(delay)

        raise MaxRetriesExceeded(
            f"Max retries exceeded ({last.error if last else 'rate limited'})",
            provider=self.provider_name,
            attempts=self._max_retries + 1,
            status_code=last.status_code if last else None,
        )

    @abstractmethod
    async def _submit(self, b64_image: str, mime_type: str) -> RecognitionAttempt:
        """Send one transcription request and classify the outcome.

        Implementations must not raise for API failures; they return
        RecognitionAttempt.rate_limited() or RecognitionAttempt.fatal().
        """
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """Check that the API is reachable and the credentials are accepted."""
        ...


class RecognitionError(Exception):
    """Raised when handwriting recognition fails."""

    def __init__(
        self,
        message: str,
        provider: str = "",
        attempts: int = 0,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.provider = provider
        self.attempts = attempts
        self.status_code = status_code


class MaxRetriesExceeded(RecognitionError):
    """Raised when the API kept rate limiting past the retry budget."""
