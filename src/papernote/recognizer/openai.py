"""OpenAI-compatible recognizer implementation.

Works with OpenAI, OpenRouter, Gemini's OpenAI-compatible endpoint, and
any other OpenAI-compatible API by setting a custom base_url.
"""

from __future__ import annotations

import logging

import openai

from papernote.domain.models import RecognitionAttempt
from papernote.recognizer.base import Recognizer, SleepFn, is_rate_limit_message

logger = logging.getLogger(__name__)


class OpenAIRecognizer(Recognizer):
    """Recognizer using the chat completions API with an image part."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o",
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
        return "openai"

    async def _ensure_client(self) -> None:
        """Lazily initialize the OpenAI async client."""
        if self._client is not None:
            return
        kwargs = {"api_key": self._api_key, "max_retries": 0}
        if self._base_url:
            kwargs["base_url"] = self._base_url
        self._client = openai.AsyncOpenAI(**kwargs)
        logger.info("Initialized OpenAI client (model=%s, base_url=%s)", self._model, self._base_url)

    async def _submit(self, b64_image: str, mime_type: str) -> RecognitionAttempt:
        await self._ensure_client()
        messages = [
            {
                "role": "user",
                "content": [
                    {
                        "type": "image_url",
                        "image_url": {
                            "url": f"data:{mime_type};base64,{b64_image}",
                            "detail": "high",
                        },
                    },
                    {"type": "text", "text": self._prompt},
                ],
            },
        ]

        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                max_tokens=self._max_tokens,
                messages=messages,
            )
        except openai.RateLimitError as e:
            return RecognitionAttempt.rate_limited(str(e), status_code=429)
        except openai.APIStatusError as e:
            if e.status_code == 429:
                return RecognitionAttempt.rate_limited(str(e), status_code=429)
            return RecognitionAttempt.fatal(
                f"OpenAI API call failed: {e}", status_code=e.status_code
            )
        except Exception as e:
            if is_rate_limit_message(str(e)):
                return RecognitionAttempt.rate_limited(str(e), status_code=None)
            return RecognitionAttempt.fatal(f"OpenAI API call failed: {e}")

        raw_text = (response.choices[0].message.content or "") if response.choices else ""
        logger.debug("Recognizer raw response: %s", raw_text[:200])
        return RecognitionAttempt.success(raw_text)

    async def health_check(self) -> bool:
        """Check if the API is reachable."""
        try:
            await self._ensure_client()
            await self._client.models.list()
            return True
        except Exception as e:
            logger.warning("Health check failed: %s", e)
            return False
