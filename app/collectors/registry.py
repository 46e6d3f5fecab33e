"""Provider registry.

Maps provider ids to constructed collectors. Built once at application
startup from settings and handed to the service layer; tests build their own
registry around fake collectors.
"""

import logging
from enum import Enum

from app.collectors.llm_anthropic import AnthropicCollector
from app.collectors.llm_base import BaseLlmCollector
from app.collectors.llm_groq import GroqCollector
from app.collectors.llm_openai import OpenAiCollector
from app.core.config import Settings
from app.core.exceptions import ProviderConfigError, ProviderUnavailable

logger = logging.getLogger(__name__)


class LlmProvider(str, Enum):
    """Supported backends. DEFAULT_PROVIDER (settings.default_provider) picks the one used when none is given."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GROQ = "groq"


PROVIDER_CLASSES: dict[LlmProvider, type[BaseLlmCollector]] = {
    LlmProvider.OPENAI: OpenAiCollector,
    LlmProvider.ANTHROPIC: AnthropicCollector,
    LlmProvider.GROQ: GroqCollector,
}


class ProviderRegistry:
    """Explicit provider id → collector map."""

    def __init__(self, collectors: dict[str, BaseLlmCollector] | None = None):
        self._collectors: dict[str, BaseLlmCollector] = dict(collectors or {})

    def register(self, provider: str, collector: BaseLlmCollector) -> None:
        self._collectors[str(provider)] = collector

    def get(self, provider: str) -> BaseLlmCollector:
        """Return the collector for *provider* or raise ProviderUnavailable."""
        key = provider.value if isinstance(provider, LlmProvider) else provider
        collector = self._collectors.get(key)
        if collector is None:
            raise ProviderUnavailable(key)
        return collector

    def available(self) -> list[str]:
        """Configured provider ids, in enum order for known providers."""
        known = [p.value for p in LlmProvider if p.value in self._collectors]
        return known + sorted(k for k in self._collectors if k not in known)

    def __contains__(self, provider: str) -> bool:
        return provider in self._collectors

    def __len__(self) -> int:
        return len(self._collectors)


def build_registry(settings: Settings) -> ProviderRegistry:
    """Construct a collector for every provider whose API key is set."""
    keys = {
        LlmProvider.OPENAI: (settings.openai_api_key, settings.openai_model),
        LlmProvider.ANTHROPIC: (settings.anthropic_api_key, settings.anthropic_model),
        LlmProvider.GROQ: (settings.groq_api_key, settings.groq_model),
    }

    registry = ProviderRegistry()
    for provider, (api_key, model) in keys.items():
        if not api_key:
            continue
        try:
            collector = PROVIDER_CLASSES[provider](
                api_key=api_key,
                model=model,
                temperature=settings.llm_temperature,
                max_tokens=settings.llm_max_tokens,
                timeout=settings.llm_timeout,
            )
        except ProviderConfigError as e:
            logger.warning("%s provider initialization failed: %s", provider.value, e)
            continue
        registry.register(provider.value, collector)
        logger.info("%s integration enabled (model=%s)", provider.value, collector.model)

    if not registry:
        logger.warning("No LLM provider API keys configured, visibility checks will fail")
    return registry
