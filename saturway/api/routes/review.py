"""Daily review API routes."""
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from saturway.api.schemas.common import Envelope
from saturway.api.schemas.review import ReviewCreateRequest, ReviewData, ReviewOut
from saturway.core.security import get_current_user_id
from saturway.db.deps import get_db
from saturway.observability.metrics import log_metric
from saturway.observability.tracing import trace
from saturway.services import review_service
from saturway.services.ai_service import AIService, get_ai_service

router = APIRouter()


@router.get("/review/today", response_model=Envelope[ReviewData], tags=["review"])
def get_today_review(
    http_request: Request,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> Envelope[ReviewData]:
    request_id = getattr(http_request.state, "request_id", None)
    with trace("review.today", metadata={"route": "/review/today"}, user_id=str(user_id), request_id=request_id):
        review = review_service.get_today_review(db, user_id)
    return Envelope(data=ReviewData(review=ReviewOut.model_validate(review) if review else None))


@router.post("/review", response_model=Envelope[ReviewData], status_code=status.HTTP_201_CREATED, tags=["review"])
def create_review(
    payload: ReviewCreateRequest,
    http_request: Request,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    ai: AIService = Depends(get_ai_service),
) -> Envelope[ReviewData]:
    request_id = getattr(http_request.state, "request_id", None)
    with trace("review.create", metadata={"end_energy": payload.end_energy}, user_id=str(user_id), request_id=request_id):
        review = review_service.create_review(
            db,
            user_id,
            ai,
            good=payload.good,
            bad=payload.bad,
            end_energy=payload.end_energy,
        )
    log_metric("review.create.success", 1, metadata={"user_id": str(user_id)})
    return Envelope(data=ReviewData(review=ReviewOut.model_validate(review)))
