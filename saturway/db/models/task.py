"""Task ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Column, ForeignKey, Index, String, Text, func
from sqlalchemy.dialects.postgresql import UUID

from saturway.core.time_utils import utcnow
from saturway.db.base import Base
from saturway.db.types import JSONBCompat, UTCDateTime

TASK_PRIORITIES = ("low", "medium", "high", "urgent")
TASK_STATUSES = ("pending", "in_progress", "completed", "cancelled")


class Task(Base):
    __tablename__ = "tasks"
    __table_args__ = (
        Index("ix_tasks_user_id", "user_id"),
        Index("ix_tasks_status", "status"),
        Index("ix_tasks_due_date", "due_date"),
        Index("ix_tasks_user_status", "user_id", "status"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    priority = Column(String(20), nullable=False, default="medium", server_default="medium")
    status = Column(String(20), nullable=False, default="pending", server_default="pending")
    due_date = Column(UTCDateTime, nullable=True)
    completed_at = Column(UTCDateTime, nullable=True)
    # Free-form, written by AI features (suggested time, estimated duration, ...).
    ai_metadata = Column(JSONBCompat, nullable=True)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(
        UTCDateTime,
        nullable=False,
        default=utcnow,
        server_default=func.now(),
        onupdate=utcnow,
    )
