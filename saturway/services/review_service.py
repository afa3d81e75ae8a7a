"""End-of-day reviews, one per user per UTC day."""
from __future__ import annotations

from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from saturway.core.errors import ValidationError
from saturway.core.time_utils import utc_today
from saturway.db.models.review import Review
from saturway.services.ai_service import AIService
from saturway.services.scales import ENERGY_STEPS, is_valid_energy_step


def get_today_review(db: Session, user_id: UUID) -> Optional[Review]:
    return (
        db.query(Review)
        .filter(Review.user_id == user_id, Review.date == utc_today())
        .one_or_none()
    )


def create_review(
    db: Session,
    user_id: UUID,
    ai: AIService,
    *,
    good: str = "",
    bad: str = "",
    end_energy: int,
) -> Review:
    """Create or replace today's review and attach the AI summary."""
    if not is_valid_energy_step(end_energy):
        raise ValidationError(
            f"endEnergy must be one of {', '.join(str(step) for step in ENERGY_STEPS)}",
            details=[{"field": "endEnergy", "message": f"got {end_energy!r}"}],
        )

    summary = ai.summarize_review(user_id, good, bad, end_energy)

    review = get_today_review(db, user_id)
    if review is None:
        review = Review(user_id=user_id, date=utc_today())
    review.good = good or ""
    review.bad = bad or ""
    review.end_energy = end_energy
    review.ai_summary = summary.summary
    review.ai_advice = summary.advice
    db.add(review)
    db.commit()
    db.refresh(review)
    return review
