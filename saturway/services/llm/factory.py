"""LLM provider factory."""
from __future__ import annotations

from functools import lru_cache

from saturway.core.errors import ValidationError
from saturway.services.llm.anthropic_provider import AnthropicProvider
from saturway.services.llm.base import LLMProvider
from saturway.services.llm.openai_provider import OpenAIProvider

PROVIDERS = {
    AnthropicProvider.name: AnthropicProvider,
    OpenAIProvider.name: OpenAIProvider,
}


@lru_cache
def get_provider(name: str) -> LLMProvider:
    provider_cls = PROVIDERS.get(name.strip().lower())
    if provider_cls is None:
        raise ValidationError(f"Unknown AI provider: {name}")
    return provider_cls()
