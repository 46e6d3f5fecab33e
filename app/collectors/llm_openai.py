"""OpenAI (ChatGPT) LLM collector."""

import logging

import httpx

from app.collectors.llm_base import BaseLlmCollector, LlmResponse

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o-mini"
API_URL = "https://api.openai.com/v1/chat/completions"


class OpenAiCollector(BaseLlmCollector):
    """Fast, low-cost model through the OpenAI Chat Completions API."""

    provider = "openai"
    default_model = DEFAULT_MODEL
    api_url = API_URL

    def _payload(self, prompt: str) -> dict:
        return {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }

    async def query_llm(self, prompt: str) -> LlmResponse:
        """Send a prompt to an OpenAI-compatible Chat Completions endpoint."""
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            resp = await client.post(
                self.api_url,
                json=self._payload(prompt),
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
            )
            resp.raise_for_status()
            data = resp.json()

        choice = data["choices"][0]
        text = choice["message"]["content"] or ""

        usage = data.get("usage") or {}
        total_tokens = usage.get("prompt_tokens", 0) + usage.get("completion_tokens", 0)

        return LlmResponse(text=text, model=data.get("model", self.model), tokens=total_tokens)
