"""Habit and habit log ORM models."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Boolean, Column, Date, ForeignKey, Index, Integer, String, Text, UniqueConstraint, func, text as sa_text
from sqlalchemy.dialects.postgresql import UUID

from saturway.core.time_utils import utcnow
from saturway.db.base import Base
from saturway.db.types import UTCDateTime

HABIT_STATUSES = ("active", "completed", "abandoned")


class Habit(Base):
    __tablename__ = "habits"
    __table_args__ = (Index("ix_habits_user_status", "user_id", "status"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    start_date = Column(Date, nullable=False)
    target_days = Column(Integer, nullable=False, default=40, server_default="40")
    status = Column(String(20), nullable=False, default="active", server_default="active")
    done_days = Column(Integer, nullable=False, default=0, server_default="0")
    longest_streak = Column(Integer, nullable=False, default=0, server_default="0")
    completed_at = Column(UTCDateTime, nullable=True)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(UTCDateTime, nullable=False, default=utcnow, server_default=func.now(), onupdate=utcnow)


class HabitLog(Base):
    __tablename__ = "habit_logs"
    __table_args__ = (
        UniqueConstraint("habit_id", "date", name="uq_habit_logs_habit_date"),
        Index("ix_habit_logs_habit_id", "habit_id"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    habit_id = Column(UUID(as_uuid=True), ForeignKey("habits.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False)
    done = Column(Boolean, nullable=False, default=True, server_default=sa_text("true"))
    created_at = Column(UTCDateTime, nullable=False, default=utcnow, server_default=func.now())
