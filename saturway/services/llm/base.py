"""LLM provider interface."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List

ChatMessage = Dict[str, str]


@dataclass
class LLMReply:
    text: str
    tokens_used: int = 0


class LLMProvider:
    """Base interface for chat-completion providers."""

    name: str = "base"

    def complete(self, messages: List[ChatMessage]) -> LLMReply:
        raise NotImplementedError
