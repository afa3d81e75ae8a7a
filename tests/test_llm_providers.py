from __future__ import annotations

from types import SimpleNamespace

import anthropic
import httpx
import openai
import pytest

from saturway.core.errors import ProviderError, ValidationError
from saturway.services.llm.anthropic_provider import AnthropicProvider
from saturway.services.llm.factory import get_provider
from saturway.services.llm.openai_provider import OpenAIProvider

_REQUEST = httpx.Request("POST", "https://llm.invalid/v1")


class _Recorder:
    def __init__(self, response=None, error: Exception | None = None):
        self.response = response
        self.error = error
        self.kwargs: dict = {}

    def create(self, **kwargs):
        self.kwargs = kwargs
        if self.error:
            raise self.error
        return self.response


def _anthropic_client(recorder: _Recorder) -> SimpleNamespace:
    return SimpleNamespace(messages=recorder)


def _openai_client(recorder: _Recorder) -> SimpleNamespace:
    return SimpleNamespace(chat=SimpleNamespace(completions=recorder))


def test_anthropic_lifts_system_messages_and_counts_tokens():
    recorder = _Recorder(
        SimpleNamespace(
            content=[SimpleNamespace(type="text", text="Sure.")],
            usage=SimpleNamespace(input_tokens=10, output_tokens=5),
        )
    )
    provider = AnthropicProvider(api_key="k", model="claude-test", client=_anthropic_client(recorder))

    reply = provider.complete(
        [
            {"role": "system", "content": "Be brief."},
            {"role": "user", "content": "Plan my day"},
        ]
    )

    assert reply.text == "Sure."
    assert reply.tokens_used == 15
    assert recorder.kwargs["system"] == "Be brief."
    assert recorder.kwargs["messages"] == [{"role": "user", "content": "Plan my day"}]
    assert recorder.kwargs["model"] == "claude-test"


def test_anthropic_non_text_first_block_is_provider_error():
    recorder = _Recorder(SimpleNamespace(content=[SimpleNamespace(type="tool_use")], usage=None))
    provider = AnthropicProvider(api_key="k", client=_anthropic_client(recorder))

    with pytest.raises(ProviderError) as excinfo:
        provider.complete([{"role": "user", "content": "hi"}])
    assert excinfo.value.message == "Unexpected response format from claude"


def test_anthropic_timeout_is_provider_error():
    recorder = _Recorder(error=anthropic.APITimeoutError(request=_REQUEST))
    provider = AnthropicProvider(api_key="k", client=_anthropic_client(recorder))

    with pytest.raises(ProviderError) as excinfo:
        provider.complete([{"role": "user", "content": "hi"}])
    assert excinfo.value.provider == "claude"
    assert excinfo.value.status_code == 502


def test_anthropic_without_key_is_not_configured():
    provider = AnthropicProvider(api_key="")

    with pytest.raises(ProviderError) as excinfo:
        provider.complete([{"role": "user", "content": "hi"}])
    assert excinfo.value.message == "claude not configured"


def test_openai_returns_first_choice():
    recorder = _Recorder(
        SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content="Do the report first."))],
            usage=SimpleNamespace(total_tokens=33),
        )
    )
    provider = OpenAIProvider(api_key="k", model="gpt-test", max_tokens=100, client=_openai_client(recorder))

    reply = provider.complete([{"role": "user", "content": "Plan my day"}])

    assert reply.text == "Do the report first."
    assert reply.tokens_used == 33
    assert recorder.kwargs["max_tokens"] == 100


def test_openai_connection_error_is_provider_error():
    recorder = _Recorder(error=openai.APIConnectionError(request=_REQUEST))
    provider = OpenAIProvider(api_key="k", client=_openai_client(recorder))

    with pytest.raises(ProviderError):
        provider.complete([{"role": "user", "content": "hi"}])


def test_openai_empty_choices_is_provider_error():
    recorder = _Recorder(SimpleNamespace(choices=[], usage=None))
    provider = OpenAIProvider(api_key="k", client=_openai_client(recorder))

    with pytest.raises(ProviderError):
        provider.complete([{"role": "user", "content": "hi"}])


def test_factory_resolves_known_providers_and_rejects_others():
    assert isinstance(get_provider("claude"), AnthropicProvider)
    assert isinstance(get_provider("openai"), OpenAIProvider)

    with pytest.raises(ValidationError):
        get_provider("mystery")
