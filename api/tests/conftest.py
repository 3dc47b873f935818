import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import heartconnect.main as m
from heartconnect import models  # noqa: F401
from heartconnect.auth import security
from heartconnect.database import Base
from heartconnect.deps import get_storage
from heartconnect.repo import SqlStorage
from heartconnect.services.rate_limit import limiter
from heartconnect.services.realtime import RealtimeHub

TEST_JWT_SECRET = "test-secret-for-heartconnect-api-suite"


@pytest.fixture
def storage():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    yield SqlStorage(session_factory=factory)
    engine.dispose()


@pytest.fixture
def make_member(storage):
    """Create a user with a complete profile. Profile fields use storage (snake_case) names."""

    def _make(user_id: str, premium: bool = False, **profile_fields):
        storage.upsert_user(user_id, email=f"{user_id}@example.com", first_name=user_id.title())
        fields = {
            "age": 30,
            "gender": "woman",
            "photos": [f"https://img.example.com/{user_id}.jpg"],
            "looking_for": "everyone",
            "age_range_min": 18,
            "age_range_max": 99,
        }
        fields.update(profile_fields)
        storage.create_profile(user_id, fields)
        if premium:
            storage.set_premium(user_id, True)
        return storage.get_user_with_profile(user_id)

    return _make


@pytest.fixture
def token_for(monkeypatch):
    monkeypatch.setattr(security, "JWT_SECRET", TEST_JWT_SECRET)

    def _token(user_id: str, **claims):
        claims.setdefault("email", f"{user_id}@example.com")
        claims.setdefault("first_name", user_id.title())
        return security.create_access_token(user_id, **claims)

    return _token


@pytest.fixture
def auth_headers(token_for):
    def _headers(user_id: str, **claims):
        return {"Authorization": f"Bearer {token_for(user_id, **claims)}"}

    return _headers


@pytest.fixture
def client(storage, token_for, monkeypatch):
    monkeypatch.setattr(m, "wait_for_db", lambda *args, **kwargs: None)
    monkeypatch.setattr(m, "run_migrations", lambda *args, **kwargs: None)
    m.app.dependency_overrides[get_storage] = lambda: storage
    m.app.state.realtime = RealtimeHub()
    limiter.reset()
    with TestClient(m.app) as c:
        yield c
    m.app.dependency_overrides.clear()
    limiter.reset()
