"""OpenAI chat-completions provider."""
from __future__ import annotations

from typing import Any, List, Optional

import openai

from saturway.core.config import settings
from saturway.core.errors import ProviderError
from saturway.services.llm.base import ChatMessage, LLMProvider, LLMReply


class OpenAIProvider(LLMProvider):
    name = "openai"

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        timeout: Optional[float] = None,
        client: Any = None,
    ):
        self.api_key = api_key if api_key is not None else settings.openai_api_key
        self.model = model or settings.openai_model
        self.max_tokens = max_tokens or settings.openai_max_tokens
        self.timeout = timeout if timeout is not None else settings.ai_request_timeout_s
        self._client = client

    def _get_client(self) -> Any:
        if self._client is None:
            if not self.api_key:
                raise ProviderError("openai not configured", provider=self.name)
            self._client = openai.OpenAI(api_key=self.api_key, timeout=self.timeout, max_retries=0)
        return self._client

    def complete(self, messages: List[ChatMessage]) -> LLMReply:
        client = self._get_client()
        try:
            completion = client.chat.completions.create(
                model=self.model,
                max_tokens=self.max_tokens,
                messages=[{"role": m["role"], "content": m["content"]} for m in messages],
            )
        except openai.APITimeoutError as exc:
            raise ProviderError("openai request timed out", provider=self.name) from exc
        except openai.OpenAIError as exc:
            raise ProviderError(f"openai request failed: {exc}", provider=self.name) from exc

        try:
            text = completion.choices[0].message.content or ""
        except (AttributeError, IndexError) as exc:
            raise ProviderError("Unexpected response format from openai", provider=self.name) from exc

        usage = getattr(completion, "usage", None)
        tokens = int(getattr(usage, "total_tokens", 0) or 0) if usage is not None else 0
        return LLMReply(text=text, tokens_used=tokens)
