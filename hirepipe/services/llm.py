"""Text-generation capability backed by the Anthropic Messages API."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Protocol

from anthropic import APIError, AsyncAnthropic

from hirepipe.core.config import Settings
from hirepipe.core.errors import UpstreamError

logger = logging.getLogger("hirepipe.llm")

_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


class TextGenerator(Protocol):
    async def generate(self, prompt: str, *, max_tokens: int) -> str: ...


class AnthropicTextGenerator:
    """Single-prompt wrapper around an injected `AsyncAnthropic` client."""

    def __init__(self, client: AsyncAnthropic, model: str):
        self.client = client
        self.model = model

    @classmethod
    def from_settings(cls, settings: Settings) -> "AnthropicTextGenerator":
        client = AsyncAnthropic(
            api_key=settings.anthropic_api_key or None,
            timeout=settings.llm_timeout_seconds,
            max_retries=settings.llm_max_retries,
        )
        return cls(client, settings.anthropic_model)

    async def generate(self, prompt: str, *, max_tokens: int) -> str:
        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=max_tokens,
                messages=[{"role": "user", "content": prompt}],
            )
        except APIError as exc:
            logger.error("llm_call_failed", extra={"model": self.model, "error": str(exc)})
            raise UpstreamError(f"LLM request failed: {exc}") from exc

        for block in response.content:
            if getattr(block, "type", None) == "text":
                return block.text
        raise UpstreamError("No text response from Claude", reason="no_text_response")

    async def close(self) -> None:
        await self.client.close()


def parse_json_response(text: str, what: str) -> Any:
    """Decode a JSON reply, tolerating a surrounding ```json fence."""
    candidate = text.strip()
    match = _FENCE_RE.match(candidate)
    if match:
        candidate = match.group(1)
    try:
        return json.loads(candidate)
    except (TypeError, ValueError) as exc:
        raise UpstreamError(f"Failed to parse {what} JSON from Claude response", reason="bad_llm_json") from exc
