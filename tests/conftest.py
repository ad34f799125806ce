import os
from datetime import datetime, timedelta, timezone

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["AUTH_JWT_SECRET"] = "test-secret-key-with-at-least-32-characters"
os.environ["AUTH_JWT_AUDIENCE"] = "authenticated"

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.config import settings
from app.db.database import Base, get_db
from app.main import app
from app.services.seed import seed_demo_data

SEED_USER_ID = "7d4c2f1e-0000-4000-8000-000000000001"
SEED_EMAIL = "test@example.com"


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def seeded(db):
    return seed_demo_data(db, SEED_USER_ID, email=SEED_EMAIL)


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def make_token(subject: str, email: str, **metadata) -> str:
    payload = {
        "sub": subject,
        "email": email,
        "aud": settings.auth_jwt_audience,
        "exp": datetime.now(timezone.utc) + timedelta(minutes=5),
        "user_metadata": metadata,
    }
    return jwt.encode(payload, settings.auth_jwt_secret, algorithm=settings.auth_jwt_algorithm)


@pytest.fixture()
def auth_headers():
    def build(subject: str = SEED_USER_ID, email: str = SEED_EMAIL, **metadata) -> dict[str, str]:
        return {"Authorization": f"Bearer {make_token(subject, email, **metadata)}"}

    return build
