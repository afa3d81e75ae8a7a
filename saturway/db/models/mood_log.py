"""Mood log ORM model (append-only)."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import CheckConstraint, Column, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import UUID

from saturway.core.time_utils import utcnow
from saturway.db.base import Base
from saturway.db.types import UTCDateTime


class MoodLog(Base):
    __tablename__ = "mood_logs"
    __table_args__ = (
        Index("ix_mood_logs_user_id", "user_id"),
        Index("ix_mood_logs_user_logged_at", "user_id", "logged_at"),
        CheckConstraint("energy_level BETWEEN 1 AND 10", name="ck_mood_logs_energy_range"),
        CheckConstraint("focus_level BETWEEN 1 AND 10", name="ck_mood_logs_focus_range"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    # Canonical 1-10 scale.
    energy_level = Column(Integer, nullable=False)
    focus_level = Column(Integer, nullable=False)
    notes = Column(Text, nullable=True)
    source = Column(String(20), nullable=True)
    logged_at = Column(UTCDateTime, nullable=False, default=utcnow)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow, server_default=func.now())
