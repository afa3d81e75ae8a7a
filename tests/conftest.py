from __future__ import annotations

from typing import Callable, Dict
from uuid import UUID

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from saturway.core.security import create_access_token
from saturway.db.base import Base
from saturway.db.deps import get_db
from saturway.db.models.user import User
from saturway.main import app
from saturway.services.ai_service import get_ai_service


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )

    @event.listens_for(engine, "connect")
    def set_fk(conn, record):  # pragma: no cover - sqlite setup
        cursor = conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    yield TestingSessionLocal
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    get_ai_service.cache_clear()


@pytest.fixture()
def make_user(session_factory) -> Callable[..., UUID]:
    counter = {"next": 1000}

    def _make(telegram_id: int | None = None, **fields) -> UUID:
        if telegram_id is None:
            counter["next"] += 1
            telegram_id = counter["next"]
        session = session_factory()
        try:
            user = User(telegram_id=telegram_id, settings={}, **fields)
            session.add(user)
            session.commit()
            return user.id
        finally:
            session.close()

    return _make


def _bearer(user_id: UUID, telegram_id: int = 1) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_id, telegram_id)}"}


@pytest.fixture()
def headers_for() -> Callable[..., Dict[str, str]]:
    return _bearer


@pytest.fixture()
def user_headers(make_user):
    user_id = make_user()
    return user_id, _bearer(user_id)
