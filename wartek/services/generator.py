from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional

import openai

from wartek.core.config import settings
from wartek.core.errors import UpstreamServiceError

logger = logging.getLogger(__name__)

# Every failure surfaces as UpstreamServiceError
class OpenAITextGenerator:
    def __init__(
        self,
        api_key: Optional[str],
        model: str,
        base_url: Optional[str] = None,
        timeout_s: int = 30,
    ) -> None:
        self.model = model
        self._client = None
        if api_key:
            self._client = openai.AsyncOpenAI(api_key=api_key, base_url=base_url, timeout=timeout_s)

    async def generate(self, prompt: str) -> str:
        if self._client is None:
            raise UpstreamServiceError("Text generation API key missing")
        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
            )
        except openai.OpenAIError as e:
            logger.error("Text generation failed: %s", type(e).__name__)
            raise UpstreamServiceError("Text generation failed") from e

        if not response.choices:
            raise UpstreamServiceError("Text generation returned no choices")
        return (response.choices[0].message.content or "").strip()

@lru_cache(maxsize=1)
def get_text_generator() -> OpenAITextGenerator:
    return OpenAITextGenerator(
        api_key=settings.openai_api_key,
        model=settings.ai_model,
        base_url=settings.openai_base_url,
        timeout_s=settings.ai_timeout_seconds,
    )
