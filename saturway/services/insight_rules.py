"""Rule-based insights over task and mood aggregates. No model calls."""
from __future__ import annotations

from dataclasses import asdict, dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Mapping

HIGH_COMPLETION_PCT = 70
LOW_COMPLETION_PCT = 30
LOW_LEVEL = 5


@dataclass(frozen=True)
class InsightDraft:
    message: str
    title: str
    category: str
    priority: str
    actionable: bool

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def completion_rate(task_stats: Mapping[str, Any]) -> float:
    total = task_stats.get("total") or 0
    if total <= 0:
        return 0.0
    return (task_stats.get("completed") or 0) / total * 100


def whole_percent(task_stats: Mapping[str, Any]) -> int:
    """Completion rate as a whole percent, halves rounded up."""
    total = task_stats.get("total") or 0
    if total <= 0:
        return 0
    rate = Decimal(task_stats.get("completed") or 0) * 100 / Decimal(total)
    return int(rate.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def derive_insights(task_stats: Mapping[str, Any], mood_stats: Mapping[str, Any]) -> List[InsightDraft]:
    """Deterministic insights from ``task_stats`` and ``mood_stats``.

    ``task_stats`` needs ``total``, ``completed`` and ``pending``; ``mood_stats``
    needs ``average_energy``, ``average_focus`` (1-10) and ``trend``.
    """
    insights: List[InsightDraft] = []

    rate = completion_rate(task_stats)
    if rate > HIGH_COMPLETION_PCT:
        insights.append(
            InsightDraft(
                message=f"Great job! You've completed {whole_percent(task_stats)}% of your tasks.",
                title="Strong progress",
                category="productivity",
                priority="low",
                actionable=False,
            )
        )
    elif rate < LOW_COMPLETION_PCT:
        insights.append(
            InsightDraft(
                message=f"You have {task_stats.get('pending') or 0} pending tasks. Let's tackle them!",
                title="Tasks waiting",
                category="productivity",
                priority="medium",
                actionable=True,
            )
        )

    trend = mood_stats.get("trend")
    if trend == "improving":
        insights.append(
            InsightDraft(
                message="Your mood is improving! Keep up the great work.",
                title="Mood on the rise",
                category="motivation",
                priority="low",
                actionable=False,
            )
        )
    elif trend == "declining":
        insights.append(
            InsightDraft(
                message="Your energy seems low lately. Consider taking breaks.",
                title="Energy dipping",
                category="wellness",
                priority="high",
                actionable=True,
            )
        )

    if (mood_stats.get("average_energy") or 0) < LOW_LEVEL:
        insights.append(
            InsightDraft(
                message="Your energy levels are below average. Prioritize rest and self-care.",
                title="Low energy",
                category="wellness",
                priority="high",
                actionable=True,
            )
        )

    if (mood_stats.get("average_focus") or 0) < LOW_LEVEL:
        insights.append(
            InsightDraft(
                message="Focus seems challenging lately. Try shorter work sessions with breaks.",
                title="Focus support",
                category="scheduling",
                priority="medium",
                actionable=True,
            )
        )

    return insights
