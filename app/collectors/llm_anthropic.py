"""Anthropic (Claude) LLM collector."""

import logging

import httpx

from app.collectors.llm_base import BaseLlmCollector, LlmResponse

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-3-5-sonnet-20241022"
API_URL = "https://api.anthropic.com/v1/messages"
API_VERSION = "2023-06-01"


class AnthropicCollector(BaseLlmCollector):
    """Higher-quality model through the Anthropic Messages API."""

    provider = "anthropic"
    default_model = DEFAULT_MODEL

    async def query_llm(self, prompt: str) -> LlmResponse:
        """Send a prompt to the Messages API and join its text blocks."""
        payload = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "messages": [{"role": "user", "content": prompt}],
        }

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            resp = await client.post(
                API_URL,
                json=payload,
                headers={
                    "x-api-key": self.api_key,
                    "anthropic-version": API_VERSION,
                    "Content-Type": "application/json",
                },
            )
            resp.raise_for_status()
            data = resp.json()

        blocks = data.get("content") or []
        text = "".join(b.get("text", "") for b in blocks if b.get("type") == "text")

        usage = data.get("usage") or {}
        total_tokens = usage.get("input_tokens", 0) + usage.get("output_tokens", 0)

        return LlmResponse(text=text, model=data.get("model", self.model), tokens=total_tokens)
