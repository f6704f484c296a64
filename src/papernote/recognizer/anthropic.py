"""Anthropic Claude recognizer implementation.

Uses the Anthropic Python SDK to send note photos to Claude models with
vision capability.
"""

from __future__ import annotations

import logging

import anthropic

from papernote.domain.models import RecognitionAttempt
from papernote.recognizer.base import Recognizer, SleepFn, is_rate_limit_message

logger = logging.getLogger(__name__)


class AnthropicRecognizer(Recognizer):
    """Recognizer using Anthropic's Claude messages API.

    Example usage::

        recognizer = AnthropicRecognizer(
            api_key="sk-ant-...",
            model="claude-sonnet-4-20250514",
        )
        text = await recognizer.recognize("incoming_photos/IMG_0001.jpg")
    """

    def __init__(
        self,
        api_key: str,
        model: str = "claude-sonnet-4-20250514",
        base_url: str | None = None,
        max_tokens: int = 2048,
        max_retries: int = 3,
        prompt: str | None = None,
        max_image_dimension: int = 0,
        sleep: SleepFn | None = None,
    ) -> None:
        super().__init__(
            model=model,
            max_retries=max_retries,
            prompt=prompt,
            max_image_dimension=max_image_dimension,
            sleep=sleep,
        )
        self._api_key = api_key
        self._base_url = base_url
        self._max_tokens = max_tokens
        self._client = None

    @property
    def provider_name(self) -> str:
        return "anthropic"

    async def _ensure_client(self) -> None:
        """Lazily initialize the Anthropic async client."""
        if self._client is not None:
            return
        kwargs = {"api_key": self._api_key, "max_retries": 0}
        if self._base_url:
            kwargs["base_url"] = self._base_url
        self._client = anthropic.AsyncAnthropic(**kwargs)
        logger.info("Initialized Anthropic client (model=%s)", self._model)

    async def _submit(self, b64_image: str, mime_type: str) -> RecognitionAttempt:
        await self._ensure_client()
        content = [
            {
                "type": "image",
                "source": {"type": "base64", "media_type": mime_type, "data": b64_image},
            },
            {"type": "text", "text": self._prompt},
        ]

        try:
            response = await self._client.messages.create(
                model=self._model,
                max_tokens=self._max_tokens,
                messages=[{"role": "user", "content": content}],
            )
        except anthropic.RateLimitError as e:
            return RecognitionAttempt.rate_limited(str(e), status_code=429)
        except anthropic.APIStatusError as e:
            if e.status_code == 429:
                return RecognitionAttempt.rate_limited(str(e), status_code=429)
            return RecognitionAttempt.fatal(
                f"Anthropic API call failed: {e}", status_code=e.status_code
            )
        except Exception as e:
            if is_rate_limit_message(str(e)):
                return RecognitionAttempt.rate_limited(str(e), status_code=None)
            return RecognitionAttempt.fatal(f"Anthropic API call failed: {e}")

        text = "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )
        logger.debug("Recognizer raw response: %s", text[:200])
        return RecognitionAttempt.success(text)

    async def health_check(self) -> bool:
        """Check the API key with a tiny text-only request."""
        try:
            await self._ensure_client()
            await self._client.messages.create(
                model=self._model,
                max_tokens=1,
                messages=[{"role": "user", "content": "ping"}],
            )
            return True
        except Exception as e:
            logger.warning("Health check failed: %s", e)
            return False
