"""Energy check-ins on the five-step percent scale."""
from __future__ import annotations

from typing import Any, Dict
from uuid import UUID

from sqlalchemy import asc
from sqlalchemy.orm import Session

from saturway.core.errors import ValidationError
from saturway.core.time_utils import start_of_day, utc_today
from saturway.db.models.energy_log import ENERGY_SOURCES, EnergyLog
from saturway.services.scales import ENERGY_STEPS, is_valid_energy_step


def create_energy_log(db: Session, user_id: UUID, *, value: int, source: str = "today") -> EnergyLog:
    if not is_valid_energy_step(value):
        raise ValidationError(
            f"Energy value must be one of {', '.join(str(step) for step in ENERGY_STEPS)}",
            details=[{"field": "value", "message": f"got {value!r}"}],
        )
    if source not in ENERGY_SOURCES:
        raise ValidationError(f"Invalid energy source: {source}")

    entry = EnergyLog(user_id=user_id, value=value, source=source)
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry


def today_energy(db: Session, user_id: UUID) -> Dict[str, Any]:
    """Logs of the current UTC day plus the last and average value (``None`` when empty)."""
    since = start_of_day(utc_today())
    logs = (
        db.query(EnergyLog)
        .filter(EnergyLog.user_id == user_id, EnergyLog.created_at >= since)
        .order_by(asc(EnergyLog.created_at))
        .all()
    )
    if not logs:
        return {"logs": [], "last_value": None, "avg_value": None}
    return {
        "logs": logs,
        "last_value": logs[-1].value,
        "avg_value": round(sum(log.value for log in logs) / len(logs)),
    }
