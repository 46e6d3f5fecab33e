"""Base LLM collector.

A collector wraps one vendor's chat API behind ``query(prompt)``. Subclasses
only implement ``query_llm`` (the HTTP call and response parsing); the base
class turns transport and HTTP failures into ``ProviderError`` and extracts
citations from the returned text.

Calls are never retried here. Retry policy belongs to the caller.
"""

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

import httpx

from app.analysis.citation_extractor import extract_citations
from app.core.exceptions import ProviderConfigError, ProviderError
from app.core.metrics import PROVIDER_LATENCY

logger = logging.getLogger(__name__)

DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 1024
DEFAULT_TIMEOUT = 60.0


@dataclass
class LlmResponse:
    """Raw response from an LLM API."""

    text: str
    model: str
    tokens: int = 0


@dataclass
class ProviderResponse:
    """Normalized provider reply: response text plus the URLs it cites."""

    text: str
    citations: list[str] = field(default_factory=list)
    model: str = ""
    tokens: int = 0


def error_message(resp: httpx.Response) -> str:
    """Best-effort error message from a vendor error body."""
    try:
        body = resp.json()
        err = body.get("error", {})
        if isinstance(err, dict):
            return err.get("message") or resp.text[:500]
        return str(err) or resp.text[:500]
    except ValueError:
        return resp.text[:500]


class BaseLlmCollector(ABC):
    """Base class for all LLM collectors."""

    provider: str = ""
    default_model: str = ""

    def __init__(
        self,
        api_key: str,
        model: str | None = None,
        temperature: float = DEFAULT_TEMPERATURE,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        if not api_key or not api_key.strip():
            raise ProviderConfigError(f"{self.provider} API key is required")
        self.api_key = api_key
        self.model = model or self.default_model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout

    @abstractmethod
    async def query_llm(self, prompt: str) -> LlmResponse:
        """Send *prompt* as a single user turn. Raises httpx errors on failure."""
        ...

    async def query(self, prompt: str) -> ProviderResponse:
        """Query the provider and normalize the reply into text + citations."""
        logger.debug("Querying %s (model=%s, prompt_length=%d)", self.provider, self.model, len(prompt))
        start = time.perf_counter()
        try:
            raw = await self.query_llm(prompt)
        except httpx.HTTPStatusError as e:
            message = error_message(e.response)
            logger.error("%s API %d for model=%s: %s", self.provider, e.response.status_code, self.model, message)
            raise ProviderError(self.provider, message, status=e.response.status_code) from e
        except httpx.HTTPError as e:
            logger.error("%s request failed for model=%s: %s", self.provider, self.model, e)
            raise ProviderError(self.provider, str(e) or type(e).__name__) from e
        except (KeyError, IndexError, TypeError, ValueError) as e:
            logger.error("%s returned an unexpected payload: %r", self.provider, e)
            raise ProviderError(self.provider, f"unexpected response format: {e}") from e
        finally:
            PROVIDER_LATENCY.labels(provider=self.provider).observe(time.perf_counter() - start)

        citations = extract_citations(raw.text)
        logger.debug(
            "%s response received (text_length=%d, citations=%d, tokens=%d)",
            self.provider,
            len(raw.text),
            len(citations),
            raw.tokens,
        )
        return ProviderResponse(text=raw.text, citations=citations, model=raw.model, tokens=raw.tokens)
