"""Claude provider on the official anthropic SDK."""
from __future__ import annotations

from typing import Any, List, Optional

import anthropic

from saturway.core.config import settings
from saturway.core.errors import ProviderError
from saturway.services.llm.base import ChatMessage, LLMProvider, LLMReply


class AnthropicProvider(LLMProvider):
    name = "claude"

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        timeout: Optional[float] = None,
        client: Any = None,
    ):
        self.api_key = api_key if api_key is not None else settings.anthropic_api_key
        self.model = model or settings.anthropic_model
        self.max_tokens = max_tokens or settings.anthropic_max_tokens
        self.timeout = timeout if timeout is not None else settings.ai_request_timeout_s
        self._client = client

    def _get_client(self) -> Any:
        if self._client is None:
            if not self.api_key:
                raise ProviderError("claude not configured", provider=self.name)
            self._client = anthropic.Anthropic(api_key=self.api_key, timeout=self.timeout, max_retries=0)
        return self._client

    def complete(self, messages: List[ChatMessage]) -> LLMReply:
        client = self._get_client()
        system_parts = [m["content"] for m in messages if m.get("role") == "system"]
        conversation = [
            {"role": m["role"], "content": m["content"]}
            for m in messages
            if m.get("role") in ("user", "assistant")
        ]
        kwargs: dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": conversation,
        }
        if system_parts:
            kwargs["system"] = "\n\n".join(system_parts)

        try:
            response = client.messages.create(**kwargs)
        except anthropic.APITimeoutError as exc:
            raise ProviderError("claude request timed out", provider=self.name) from exc
        except anthropic.APIError as exc:
            raise ProviderError(f"claude request failed: {exc}", provider=self.name) from exc

        content = getattr(response, "content", None) or []
        first = content[0] if content else None
        if first is None or getattr(first, "type", None) != "text":
            raise ProviderError("Unexpected response format from claude", provider=self.name)

        usage = getattr(response, "usage", None)
        tokens = 0
        if usage is not None:
            tokens = int(getattr(usage, "input_tokens", 0) or 0) + int(getattr(usage, "output_tokens", 0) or 0)
        return LLMReply(text=first.text, tokens_used=tokens)
