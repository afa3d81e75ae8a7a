"""AI feature routes: schedule optimisation, suggestions, insights and chat."""
from __future__ import annotations

from typing import Any, Dict, List
from uuid import UUID, uuid5

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from saturway.api.schemas.ai import (
    ChatRequest,
    ChatResponse,
    InsightOut,
    InsightsResponse,
    OptimizeScheduleRequest,
    OptimizeScheduleResponse,
    ScheduleSuggestionOut,
    TaskSuggestionOut,
    TaskSuggestionsResponse,
)
from saturway.core.security import get_current_user_id
from saturway.core.time_utils import utcnow
from saturway.db.deps import get_db
from saturway.observability.metrics import log_metric, timed
from saturway.observability.tracing import trace
from saturway.services.ai_service import AIService, get_ai_service

router = APIRouter()


def _to_suggestion(item: Dict[str, Any]) -> ScheduleSuggestionOut:
    energy_match = item.get("energyMatch")
    if not isinstance(energy_match, int) or not 1 <= energy_match <= 5:
        energy_match = 3
    return ScheduleSuggestionOut(
        task_id=item.get("taskId"),
        title=item.get("title"),
        suggested_time=item.get("time") or "",
        duration=item.get("estimatedDuration") or 0,
        reasoning=item.get("reason") or "",
        energy_match=energy_match,
    )


@router.post("/ai/optimize-schedule", response_model=OptimizeScheduleResponse, tags=["ai"])
def optimize_schedule(
    http_request: Request,
    payload: OptimizeScheduleRequest | None = None,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    ai: AIService = Depends(get_ai_service),
) -> OptimizeScheduleResponse:
    """Plan the user's day. Model failures yield an empty plan with an explanatory insight."""
    request_id = getattr(http_request.state, "request_id", None)
    payload = payload or OptimizeScheduleRequest()
    context: Dict[str, Any] = {
        "task_ids": payload.tasks,
        "energy_level": payload.energy_level,
        "focus_level": payload.focus_level,
        "preferences": payload.preferences.model_dump() if payload.preferences else {},
    }
    with timed("ai.optimize_schedule", metadata={"user_id": str(user_id)}):
        with trace("ai.optimize_schedule.request", metadata={"task_ids": len(payload.tasks)}, user_id=str(user_id), request_id=request_id):
            result = ai.optimize_schedule(db, user_id, date=payload.date, context=context)

    return OptimizeScheduleResponse(
        suggestions=[_to_suggestion(item) for item in result["schedule"]],
        reasoning=" ".join(result["insights"]),
    )


@router.post("/ai/suggestions", response_model=TaskSuggestionsResponse, tags=["ai"])
def task_suggestions(
    http_request: Request,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    ai: AIService = Depends(get_ai_service),
) -> TaskSuggestionsResponse:
    request_id = getattr(http_request.state, "request_id", None)
    with timed("ai.task_suggestions", metadata={"user_id": str(user_id)}):
        with trace("ai.task_suggestions.request", metadata={"route": "/ai/suggestions"}, user_id=str(user_id), request_id=request_id):
            titles = ai.generate_task_suggestions(db, user_id)
    return TaskSuggestionsResponse(suggestions=[TaskSuggestionOut(title=title) for title in titles])


@router.get("/ai/insights", response_model=InsightsResponse, tags=["ai"])
def get_insights(
    http_request: Request,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    ai: AIService = Depends(get_ai_service),
) -> InsightsResponse:
    request_id = getattr(http_request.state, "request_id", None)
    with trace("ai.insights", metadata={"route": "/ai/insights"}, user_id=str(user_id), request_id=request_id):
        drafts = ai.get_insights(db, user_id)

    created_at = utcnow()
    insights: List[InsightOut] = [
        InsightOut(
            # Stable per user and message so clients can key on it across fetches.
            id=str(uuid5(user_id, draft.message)),
            title=draft.title,
            description=draft.message,
            category=draft.category,
            priority=draft.priority,
            actionable=draft.actionable,
            created_at=created_at,
        )
        for draft in drafts
    ]
    log_metric("ai.insights.count", len(insights), metadata={"user_id": str(user_id)})
    return InsightsResponse(insights=insights)


@router.post("/ai/chat", response_model=ChatResponse, tags=["ai"])
def chat(
    payload: ChatRequest,
    http_request: Request,
    user_id: UUID = Depends(get_current_user_id),
    ai: AIService = Depends(get_ai_service),
) -> ChatResponse:
    """Free-form chat. Provider failures surface as 502."""
    request_id = getattr(http_request.state, "request_id", None)
    history = [message.model_dump() for message in payload.history]
    with timed("ai.chat", metadata={"user_id": str(user_id)}):
        with trace("ai.chat.request", metadata={"history": len(history)}, user_id=str(user_id), request_id=request_id):
            result = ai.converse(user_id, payload.message, history, provider=payload.provider)
    return ChatResponse(response=result.text, tokens_used=result.tokens_used)
