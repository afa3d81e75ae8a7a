"""Daily review ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Column, Date, ForeignKey, Integer, Text, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID

from saturway.core.time_utils import utcnow
from saturway.db.base import Base
from saturway.db.types import UTCDateTime


class Review(Base):
    __tablename__ = "reviews"
    __table_args__ = (UniqueConstraint("user_id", "date", name="uq_reviews_user_date"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    date = Column(Date, nullable=False)
    good = Column(Text, nullable=False, default="")
    bad = Column(Text, nullable=False, default="")
    end_energy = Column(Integer, nullable=False)
    ai_summary = Column(Text, nullable=False, default="")
    ai_advice = Column(Text, nullable=False, default="")
    created_at = Column(UTCDateTime, nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(UTCDateTime, nullable=False, default=utcnow, server_default=func.now(), onupdate=utcnow)
