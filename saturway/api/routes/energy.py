"""Energy check-in API routes."""
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from saturway.api.schemas.common import Envelope
from saturway.api.schemas.energy import EnergyLogData, EnergyLogOut, EnergyLogRequest, EnergyTodayData
from saturway.core.security import get_current_user_id
from saturway.db.deps import get_db
from saturway.observability.metrics import log_metric
from saturway.observability.tracing import trace
from saturway.services import energy_service

router = APIRouter()


@router.post("/energy", response_model=Envelope[EnergyLogData], status_code=status.HTTP_201_CREATED, tags=["energy"])
def create_energy_log(
    payload: EnergyLogRequest,
    http_request: Request,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> Envelope[EnergyLogData]:
    request_id = getattr(http_request.state, "request_id", None)
    metadata = {"value": payload.value, "source": payload.source}
    with trace("energy.create", metadata=metadata, user_id=str(user_id), request_id=request_id):
        entry = energy_service.create_energy_log(db, user_id, value=payload.value, source=payload.source)
    log_metric("energy.create.success", 1, metadata={"user_id": str(user_id), "source": payload.source})
    return Envelope(data=EnergyLogData(energy_log=EnergyLogOut.model_validate(entry)))


@router.get("/energy/today", response_model=Envelope[EnergyTodayData], tags=["energy"])
def get_today_energy(
    http_request: Request,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> Envelope[EnergyTodayData]:
    request_id = getattr(http_request.state, "request_id", None)
    with trace("energy.today", metadata={"route": "/energy/today"}, user_id=str(user_id), request_id=request_id):
        today = energy_service.today_energy(db, user_id)
    return Envelope(
        data=EnergyTodayData(
            logs=[EnergyLogOut.model_validate(log) for log in today["logs"]],
            last_value=today["last_value"],
            avg_value=today["avg_value"],
        )
    )
