import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("APP_ENV", "test")

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from promptdesk.config import get_settings
from promptdesk.db.database import Base, enable_sqlite_foreign_keys, get_db
from promptdesk.db.models import ChatMessage, Project, Prompt, User
from promptdesk.main import _get_google_user, app, get_completer


USER_SUB = "google-sub-1"


class FakeCompleter:
    def __init__(self, reply="Hello from the model", error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    def __call__(self, messages):
        self.calls.append([dict(m) for m in messages])
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(eng)
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def user(db):
    u = User(subject=USER_SUB, email="ana@example.com", name="Ana")
    db.add(u)
    db.commit()
    db.refresh(u)
    return u


@pytest.fixture
def other_user(db):
    u = User(subject="google-sub-2", email="bo@example.com", name="Bo")
    db.add(u)
    db.commit()
    db.refresh(u)
    return u


@pytest.fixture
def project(db, user):
    p = Project(user_id=user.id, name="Thesis", description="notes")
    db.add(p)
    db.commit()
    db.refresh(p)
    return p


def add_prompt(db, project, content, name="prompt", created_at=None):
    p = Prompt(project_id=project.id, name=name, content=content, created_at=created_at or datetime.utcnow())
    db.add(p)
    db.commit()
    return p


def add_history(db, project, user, count, start=None):
    """Alternating user/assistant rows, one second apart, contents m0..m{count-1}."""
    start = start or datetime(2024, 1, 1, 12, 0, 0)
    rows = []
    for i in range(count):
        rows.append(
            ChatMessage(
                project_id=project.id,
                user_id=user.id,
                role="user" if i % 2 == 0 else "assistant",
                content=f"m{i}",
                created_at=start + timedelta(seconds=i),
            )
        )
    db.add_all(rows)
    db.commit()
    return rows


@pytest.fixture
def completer():
    return FakeCompleter()


@pytest.fixture
def client(session_factory, user, completer):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[_get_google_user] = lambda: {"sub": USER_SUB, "email": "ana@example.com"}
    app.dependency_overrides[get_completer] = lambda: completer
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def completion_env(monkeypatch):
    monkeypatch.setenv("OPENROUTER_API_KEY", "sk-test")
    monkeypatch.setenv("OPENROUTER_BASE_URL", "https://openrouter.test/api/v1")
    monkeypatch.setenv("COMPLETION_MODEL", "test/model")
    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()
