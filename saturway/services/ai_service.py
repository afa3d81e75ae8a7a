"""AI orchestration: cached chat, schedule optimisation, suggestions and insights."""
from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import dataclass
from datetime import date as date_type
from datetime import datetime
from functools import lru_cache
from typing import Any, Callable, Dict, List, Optional, Sequence
from uuid import UUID

from sqlalchemy.orm import Session

from saturway.core.config import settings
from saturway.core.errors import ProviderError
from saturway.core.time_utils import utcnow
from saturway.observability.metrics import log_metric
from saturway.observability.tracing import trace
from saturway.services import energy_service, mood_service, task_service
from saturway.services.ai_parsing import (
    ParseFallback,
    ParseOk,
    ReviewSummary,
    parse_review_summary,
    parse_schedule,
    parse_string_list,
)
from saturway.services.cache_service import CacheStore, create_key, get_cache_store
from saturway.services.insight_rules import InsightDraft, derive_insights
from saturway.services.llm.base import ChatMessage, LLMProvider
from saturway.services.llm.factory import get_provider
from saturway.services.scales import energy_percent_to_ten

logger = logging.getLogger(__name__)

FALLBACK_SCHEDULE_INSIGHT = "Unable to generate schedule at this time. Please try again."
FALLBACK_SUGGESTIONS = ["Review your goals", "Plan your week", "Organize workspace"]
FALLBACK_REVIEW_SUMMARY = "Thanks for reflecting on your day."
FALLBACK_REVIEW_ADVICE = "Pick one small win for tomorrow and protect time for rest."
SUGGESTION_TASK_LIMIT = 50


def serialize_messages(messages: Sequence[ChatMessage]) -> str:
    return json.dumps(list(messages), sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def prompt_hash(user_id: UUID | str, serialized: str) -> str:
    return hashlib.sha256(f"{user_id}:{serialized}".encode("utf-8")).hexdigest()


def chat_cache_key(user_id: UUID | str, messages: Sequence[ChatMessage]) -> str:
    return create_key("ai", "chat", prompt_hash(user_id, serialize_messages(messages)))


@dataclass
class ChatResult:
    text: str
    tokens_used: int
    cached: bool


class AIService:
    def __init__(
        self,
        *,
        cache: Optional[CacheStore] = None,
        provider_factory: Callable[[str], LLMProvider] = get_provider,
        clock: Callable[[], datetime] = utcnow,
        cache_ttl_s: Optional[int] = None,
    ):
        self.cache = cache if cache is not None else get_cache_store()
        self.provider_factory = provider_factory
        self.clock = clock
        self.cache_ttl_s = cache_ttl_s if cache_ttl_s is not None else settings.ai_cache_ttl_s

    def _complete(
        self,
        user_id: UUID | str,
        messages: List[ChatMessage],
        provider: Optional[str] = None,
    ) -> ChatResult:
        provider_name = resolve_provider(provider)
        key = chat_cache_key(user_id, messages)
        metadata = {"provider": provider_name, "message_count": len(messages)}

        with trace("ai.chat", metadata=metadata, user_id=str(user_id)):
            cached = self.cache.get(key)
            if cached is not None:
                log_metric("ai.chat.cache_hit", 1, metadata)
                return ChatResult(text=cached, tokens_used=0, cached=True)

            log_metric("ai.chat.cache_miss", 1, metadata)
            reply = self.provider_factory(provider_name).complete(messages)
            self.cache.set(key, reply.text, self.cache_ttl_s)
            return ChatResult(text=reply.text, tokens_used=reply.tokens_used, cached=False)

    def chat(
        self,
        user_id: UUID | str,
        messages: List[ChatMessage],
        provider: Optional[str] = None,
    ) -> str:
        """Send ``messages`` to the provider, answering repeats from the cache.

        Provider failures propagate as ``ProviderError``; cache failures as ``CacheError``.
        """
        return self._complete(user_id, messages, provider).text

    def converse(
        self,
        user_id: UUID | str,
        message: str,
        history: Optional[List[ChatMessage]] = None,
        provider: Optional[str] = None,
    ) -> ChatResult:
        messages = [{"role": m["role"], "content": m["content"]} for m in history or []]
        messages.append({"role": "user", "content": message})
        return self._complete(user_id, messages, provider)

    def _current_hour(self) -> str:
        return self.clock().replace(minute=0, second=0, microsecond=0).isoformat()

    def optimize_schedule(
        self,
        db: Session,
        user_id: UUID,
        date: Optional[date_type] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Ask the model for a day plan. Always returns ``{schedule, insights}``."""
        context = context or {}
        if context.get("energy_level") is None:
            # No explicit reading: fall back to the latest energy check-in of today.
            last_energy = energy_service.today_energy(db, user_id)["last_value"]
            if last_energy is not None:
                context = {**context, "energy_level": energy_percent_to_ten(last_energy)}
        tasks = task_service.tasks_by_status(db, user_id, "pending")
        requested = {str(task_id) for task_id in context.get("task_ids") or []}
        if requested:
            tasks = [task for task in tasks if str(task.id) in requested]
        mood = mood_service.mood_stats(db, user_id, 7)

        prompt = build_schedule_prompt(
            tasks=[
                {
                    "id": str(task.id),
                    "title": task.title,
                    "priority": task.priority,
                    "dueDate": task.due_date.isoformat() if task.due_date else None,
                }
                for task in tasks
            ],
            mood_stats=mood,
            target_date=(date or self.clock().date()).isoformat(),
            current_time=self._current_hour(),
            context=context,
        )

        metadata = {"task_count": len(tasks), "trend": mood["trend"]}
        with trace("ai.optimize_schedule", metadata=metadata, user_id=str(user_id)):
            try:
                response = self.chat(user_id, [{"role": "user", "content": prompt}])
            except ProviderError as exc:
                logger.warning("Schedule optimisation provider failure: %s", exc)
                log_metric("ai.parse.fallback", 1, {"operation": "optimize_schedule", "reason": "provider"})
                return schedule_fallback()

            result = parse_schedule(response)
            if isinstance(result, ParseFallback):
                logger.warning("Failed to parse AI schedule response: %s", result.reason)
                log_metric("ai.parse.fallback", 1, {"operation": "optimize_schedule", "reason": "parse"})
                return schedule_fallback()
            return result.value.to_payload()

    def generate_task_suggestions(self, db: Session, user_id: UUID) -> List[str]:
        tasks = task_service.list_tasks(db, user_id, limit=SUGGESTION_TASK_LIMIT)
        mood = mood_service.mood_stats(db, user_id, 7)
        prompt = build_suggestions_prompt(
            completed=[task.title for task in tasks if task.status == "completed"],
            pending=[task.title for task in tasks if task.status == "pending"],
            mood_stats=mood,
        )

        with trace("ai.task_suggestions", metadata={"task_count": len(tasks)}, user_id=str(user_id)):
            try:
                response = self.chat(user_id, [{"role": "user", "content": prompt}])
            except ProviderError as exc:
                logger.warning("Task suggestion provider failure: %s", exc)
                log_metric("ai.parse.fallback", 1, {"operation": "task_suggestions", "reason": "provider"})
                return list(FALLBACK_SUGGESTIONS)

            result = parse_string_list(response)
            if isinstance(result, ParseOk):
                return result.value
            logger.warning("Failed to parse AI suggestions: %s", result.reason)
            log_metric("ai.parse.fallback", 1, {"operation": "task_suggestions", "reason": "parse"})
            return list(FALLBACK_SUGGESTIONS)

    def get_insights(self, db: Session, user_id: UUID) -> List[InsightDraft]:
        return derive_insights(
            task_service.task_stats(db, user_id),
            mood_service.mood_stats(db, user_id, 7),
        )

    def summarize_review(self, user_id: UUID, good: str, bad: str, end_energy: int) -> ReviewSummary:
        prompt = (
            "You are a kind productivity coach. Summarise the user's day in one or two sentences "
            "and give one concrete piece of advice for tomorrow.\n\n"
            f"What went well: {good or '-'}\n"
            f"What was hard: {bad or '-'}\n"
            f"Energy at the end of the day: {energy_percent_to_ten(end_energy)}/10\n\n"
            'Return ONLY JSON: {"summary": "...", "advice": "..."}'
        )
        try:
            response = self.chat(user_id, [{"role": "user", "content": prompt}])
        except ProviderError as exc:
            logger.warning("Review summary provider failure: %s", exc)
            log_metric("ai.parse.fallback", 1, {"operation": "review_summary", "reason": "provider"})
            return ReviewSummary(summary=FALLBACK_REVIEW_SUMMARY, advice=FALLBACK_REVIEW_ADVICE)

        result = parse_review_summary(response)
        if isinstance(result, ParseOk):
            return result.value
        logger.warning("Failed to parse AI review summary: %s", result.reason)
        log_metric("ai.parse.fallback", 1, {"operation": "review_summary", "reason": "parse"})
        return ReviewSummary(summary=FALLBACK_REVIEW_SUMMARY, advice=FALLBACK_REVIEW_ADVICE)


def resolve_provider(provider: Optional[str] = None) -> str:
    """Map ``None``/``"primary"`` and ``"fallback"`` onto configured provider names."""
    if provider is None or provider == "primary":
        return settings.ai_default_provider
    if provider == "fallback":
        return settings.ai_fallback_provider
    return provider


def schedule_fallback() -> Dict[str, Any]:
    return {"schedule": [], "insights": [FALLBACK_SCHEDULE_INSIGHT]}


def _preferences_block(context: Dict[str, Any]) -> str:
    lines: List[str] = []
    if context.get("energy_level") is not None:
        lines.append(f"- Current energy: {context['energy_level']}/10")
    if context.get("focus_level") is not None:
        lines.append(f"- Current focus: {context['focus_level']}/10")
    preferences = context.get("preferences") or {}
    if preferences.get("work_hours_start") and preferences.get("work_hours_end"):
        lines.append(f"- Work hours: {preferences['work_hours_start']}-{preferences['work_hours_end']}")
    if preferences.get("break_duration") is not None:
        lines.append(f"- Preferred break length: {preferences['break_duration']} minutes")
    if preferences.get("prioritize_urgent") is not None:
        lines.append(f"- Put urgent tasks first: {'yes' if preferences['prioritize_urgent'] else 'no'}")
    if not lines:
        return ""
    return "User's Current State and Preferences:\n" + "\n".join(lines) + "\n\n"


def build_schedule_prompt(
    *,
    tasks: List[Dict[str, Any]],
    mood_stats: Dict[str, Any],
    target_date: str,
    current_time: str,
    context: Dict[str, Any],
) -> str:
    return (
        "You are a productivity AI assistant. Help optimize the user's schedule.\n\n"
        f"Date to plan: {target_date}\n"
        f"Current Time: {current_time}\n\n"
        f"User's Tasks ({len(tasks)}):\n{json.dumps(tasks, indent=2, ensure_ascii=False)}\n\n"
        "User's Recent Mood Statistics:\n"
        f"- Average Energy: {mood_stats['average_energy']}/10\n"
        f"- Average Focus: {mood_stats['average_focus']}/10\n"
        f"- Trend: {mood_stats['trend']}\n\n"
        f"{_preferences_block(context)}"
        "Based on this information:\n"
        "1. Create an optimal schedule for the day\n"
        "2. Consider the user's energy and focus levels\n"
        "3. Prioritize high-priority tasks during peak energy times\n"
        "4. Provide insights and recommendations\n\n"
        "Return a JSON response in this exact format:\n"
        "{\n"
        '  "schedule": [\n'
        "    {\n"
        '      "time": "09:00",\n'
        '      "taskId": "uuid-or-null",\n'
        '      "title": "Task title or break",\n'
        '      "reason": "Why schedule this now",\n'
        '      "estimatedDuration": 60,\n'
        '      "priority": "high",\n'
        '      "energyMatch": 4\n'
        "    }\n"
        "  ],\n"
        '  "insights": ["Your energy levels are highest in the morning..."]\n'
        "}"
    )


def build_suggestions_prompt(*, completed: List[str], pending: List[str], mood_stats: Dict[str, Any]) -> str:
    return (
        "Based on this user's task history and mood data, suggest 3-5 new productive tasks "
        "they might want to add.\n\n"
        f"Completed Tasks: {', '.join(completed)}\n"
        f"Pending Tasks: {', '.join(pending)}\n\n"
        "Mood Stats:\n"
        f"- Average Energy: {mood_stats['average_energy']}/10\n"
        f"- Average Focus: {mood_stats['average_focus']}/10\n\n"
        "Return ONLY a JSON array of strings:\n"
        '["Task suggestion 1", "Task suggestion 2", ...]'
    )


@lru_cache
def get_ai_service() -> AIService:
    return AIService()
