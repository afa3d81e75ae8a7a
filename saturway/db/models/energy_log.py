"""Energy log ORM model (append-only, five-step percent scale)."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import CheckConstraint, Column, ForeignKey, Index, Integer, String, func
from sqlalchemy.dialects.postgresql import UUID

from saturway.core.time_utils import utcnow
from saturway.db.base import Base
from saturway.db.types import UTCDateTime

ENERGY_SOURCES = ("today", "review", "onboarding")


class EnergyLog(Base):
    __tablename__ = "energy_logs"
    __table_args__ = (
        Index("ix_energy_logs_user_created", "user_id", "created_at"),
        CheckConstraint("value IN (20, 40, 60, 80, 100)", name="ck_energy_logs_value_step"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    value = Column(Integer, nullable=False)
    source = Column(String(20), nullable=False, default="today", server_default="today")
    created_at = Column(UTCDateTime, nullable=False, default=utcnow, server_default=func.now())
