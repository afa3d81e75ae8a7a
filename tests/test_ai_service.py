from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import List

import pytest

from saturway.core.config import settings
from saturway.core.errors import CacheError, ProviderError
from saturway.services import energy_service, task_service
from saturway.services.ai_service import (
    FALLBACK_REVIEW_SUMMARY,
    FALLBACK_SCHEDULE_INSIGHT,
    FALLBACK_SUGGESTIONS,
    AIService,
    chat_cache_key,
)
from saturway.services.cache_service import CacheStore, MemoryCacheStore
from saturway.services.llm.base import LLMProvider, LLMReply

FIXED_NOW = datetime(2025, 1, 1, 9, 30, tzinfo=timezone.utc)


class _ScriptedProvider(LLMProvider):
    name = "scripted"

    def __init__(self, replies: List[str] | None = None, error: Exception | None = None):
        self.replies = list(replies or [])
        self.error = error
        self.calls: List[list] = []

    def complete(self, messages):
        self.calls.append(messages)
        if self.error:
            raise self.error
        return LLMReply(text=self.replies.pop(0), tokens_used=42)


class _BrokenCache(CacheStore):
    def get(self, key):
        raise CacheError("Cache backend unavailable")

    def set(self, key, value, ttl_s):
        raise CacheError("Cache backend unavailable")

    def delete(self, key):
        raise CacheError("Cache backend unavailable")


def _service(provider: LLMProvider, cache: CacheStore | None = None) -> AIService:
    return AIService(
        cache=cache or MemoryCacheStore(),
        provider_factory=lambda name: provider,
        clock=lambda: FIXED_NOW,
        cache_ttl_s=3600,
    )


def test_chat_second_identical_call_is_served_from_cache():
    provider = _ScriptedProvider(["first answer", "second answer"])
    service = _service(provider)
    messages = [{"role": "user", "content": "Plan my day"}]

    assert service.chat("user-1", messages) == "first answer"
    assert service.chat("user-1", messages) == "first answer"
    assert len(provider.calls) == 1


def test_cache_hit_reports_zero_tokens():
    provider = _ScriptedProvider(["hello"])
    service = _service(provider)

    miss = service.converse("user-1", "hi")
    hit = service.converse("user-1", "hi")

    assert (miss.tokens_used, miss.cached) == (42, False)
    assert (hit.tokens_used, hit.cached) == (0, True)
    assert hit.text == "hello"


def test_empty_string_reply_is_cached():
    provider = _ScriptedProvider([""])
    service = _service(provider)
    messages = [{"role": "user", "content": "say nothing"}]

    assert service.chat("u", messages) == ""
    assert service.chat("u", messages) == ""
    assert len(provider.calls) == 1


def test_cache_keys_differ_per_user_and_per_character():
    base = [{"role": "user", "content": "Plan my day"}]
    changed = [{"role": "user", "content": "Plan my day!"}]

    assert chat_cache_key("user-1", base) == chat_cache_key("user-1", [dict(base[0])])
    assert chat_cache_key("user-1", base) != chat_cache_key("user-1", changed)
    assert chat_cache_key("user-1", base) != chat_cache_key("user-2", base)
    assert chat_cache_key("user-1", base).startswith("ai:chat:")


def test_chat_propagates_provider_error_and_caches_nothing():
    provider = _ScriptedProvider(error=ProviderError("claude request timed out", provider="claude"))
    cache = MemoryCacheStore()
    service = _service(provider, cache)
    messages = [{"role": "user", "content": "hi"}]

    with pytest.raises(ProviderError):
        service.chat("u", messages)
    assert cache.get(chat_cache_key("u", messages)) is None


def test_cache_errors_are_not_treated_as_misses():
    provider = _ScriptedProvider(["never used"])
    service = _service(provider, _BrokenCache())

    with pytest.raises(CacheError):
        service.chat("u", [{"role": "user", "content": "hi"}])
    assert provider.calls == []


def test_optimize_schedule_returns_fenced_json_exactly(session_factory, make_user):
    user_id = make_user()
    expected = {
        "schedule": [
            {
                "time": "09:00",
                "taskId": "t-1",
                "title": "Deep work",
                "reason": "Energy peaks in the morning",
                "estimatedDuration": 90,
                "priority": "high",
                "energyMatch": 5,
            },
            {"time": "10:30", "taskId": None, "title": "Break"},
        ],
        "insights": ["Front-load hard tasks."],
    }
    reply = "Here is your plan:\n```json\n" + json.dumps(expected, indent=2) + "\n```\nGood luck!"
    service = _service(_ScriptedProvider([reply]))

    with session_factory() as db:
        assert service.optimize_schedule(db, user_id) == expected


def test_optimize_schedule_without_json_falls_back(session_factory, make_user):
    user_id = make_user()
    service = _service(_ScriptedProvider(["I'm sorry, I can't help with that."]))

    with session_factory() as db:
        result = service.optimize_schedule(db, user_id)

    assert result == {"schedule": [], "insights": [FALLBACK_SCHEDULE_INSIGHT]}


@pytest.mark.parametrize(
    "reply",
    [
        "",
        "```json\n[1, 2, 3]\n```",
        '{"schedule": "not a list", "insights": []}',
        '{"schedule": [{"energyMatch": 9}], "insights": []}',
        "```json\n{\"schedule\": [\n```",
    ],
)
def test_optimize_schedule_never_raises_on_malformed_text(session_factory, make_user, reply):
    user_id = make_user()
    service = _service(_ScriptedProvider([reply]))

    with session_factory() as db:
        result = service.optimize_schedule(db, user_id)

    assert result == {"schedule": [], "insights": [FALLBACK_SCHEDULE_INSIGHT]}


def test_optimize_schedule_degrades_on_provider_error(session_factory, make_user):
    user_id = make_user()
    service = _service(_ScriptedProvider(error=ProviderError("openai request failed", provider="openai")))

    with session_factory() as db:
        result = service.optimize_schedule(db, user_id)

    assert result["schedule"] == []
    assert result["insights"] == [FALLBACK_SCHEDULE_INSIGHT]


def test_optimize_schedule_prompt_lists_requested_pending_tasks(session_factory, make_user):
    user_id = make_user()
    provider = _ScriptedProvider(['{"schedule": [], "insights": []}'])
    service = _service(provider)

    with session_factory() as db:
        keep = task_service.create_task(db, user_id, title="Draft proposal")
        task_service.create_task(db, user_id, title="Unrelated chore")
        service.optimize_schedule(db, user_id, context={"task_ids": [str(keep.id)], "energy_level": 7})

    prompt = provider.calls[0][0]["content"]
    assert "Draft proposal" in prompt
    assert "Unrelated chore" not in prompt
    assert "Date to plan: 2025-01-01" in prompt
    assert "Current Time: 2025-01-01T09:00:00+00:00" in prompt
    assert "- Current energy: 7/10" in prompt


def test_optimize_schedule_uses_latest_energy_check_in(session_factory, make_user):
    user_id = make_user()
    provider = _ScriptedProvider(['{"schedule": [], "insights": []}'])
    service = _service(provider)

    with session_factory() as db:
        energy_service.create_energy_log(db, user_id, value=80)
        service.optimize_schedule(db, user_id)

    assert "- Current energy: 8/10" in provider.calls[0][0]["content"]


def test_task_suggestions_extracts_array_from_prose(session_factory, make_user):
    user_id = make_user()
    service = _service(_ScriptedProvider(['Here are some ideas: ["Plan week", "Clean inbox"]']))

    with session_factory() as db:
        assert service.generate_task_suggestions(db, user_id) == ["Plan week", "Clean inbox"]


@pytest.mark.parametrize("reply", ["no array here", '["ok", 3]', '["unterminated'])
def test_task_suggestions_fallback(session_factory, make_user, reply):
    user_id = make_user()
    service = _service(_ScriptedProvider([reply]))

    with session_factory() as db:
        assert service.generate_task_suggestions(db, user_id) == FALLBACK_SUGGESTIONS


def test_summarize_review_parses_reply_and_falls_back():
    good = _service(_ScriptedProvider(['{"summary": "Solid day.", "advice": "Sleep early."}']))
    summary = good.summarize_review("u", "shipped", "meetings", 60)
    assert (summary.summary, summary.advice) == ("Solid day.", "Sleep early.")

    bad = _service(_ScriptedProvider(["Nice!"]))
    assert bad.summarize_review("u", "", "", 40).summary == FALLBACK_REVIEW_SUMMARY


def test_review_prompt_reports_energy_on_ten_point_scale():
    provider = _ScriptedProvider(['{"summary": "ok", "advice": "ok"}'])
    _service(provider).summarize_review("u", "shipped", "meetings", 60)

    assert "Energy at the end of the day: 6/10" in provider.calls[0][0]["content"]


def test_fallback_provider_is_selectable_per_call(monkeypatch):
    monkeypatch.setattr(settings, "ai_default_provider", "claude")
    monkeypatch.setattr(settings, "ai_fallback_provider", "openai")
    provider = _ScriptedProvider(["from fallback", "from primary", "named"])
    requested: List[str] = []

    def factory(name: str) -> LLMProvider:
        requested.append(name)
        return provider

    service = AIService(cache=MemoryCacheStore(), provider_factory=factory, clock=lambda: FIXED_NOW, cache_ttl_s=3600)
    service.chat("u", [{"role": "user", "content": "one"}], provider="fallback")
    service.chat("u", [{"role": "user", "content": "two"}])
    service.chat("u", [{"role": "user", "content": "three"}], provider="openai")

    assert requested == ["openai", "claude", "openai"]
