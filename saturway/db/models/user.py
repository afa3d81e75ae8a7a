"""User ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import BigInteger, Boolean, Column, String, Text, func, text as sa_text
from sqlalchemy.dialects.postgresql import UUID

from saturway.db.base import Base
from saturway.db.types import JSONBCompat, UTCDateTime


class User(Base):
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    telegram_id = Column(BigInteger, nullable=False, unique=True)
    username = Column(String(255), nullable=True)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    language_code = Column(String(10), nullable=True)
    is_premium = Column(Boolean, nullable=False, server_default=sa_text("false"), default=False)
    photo_url = Column(Text, nullable=True)
    settings = Column(JSONBCompat, nullable=False, default=dict)
    created_at = Column(UTCDateTime, nullable=False, server_default=func.now())
    updated_at = Column(UTCDateTime, nullable=False, server_default=func.now(), onupdate=func.now())
