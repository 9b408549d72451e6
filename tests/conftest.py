"""Pytest configuration and shared fixtures."""

import itertools

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from devstudio.conversation import DevStudioEngine
from devstudio.db import models  # noqa: F401 - register tables on Base.metadata
from devstudio.db.bootstrap import ensure_default_categories, ensure_devstudio_app
from devstudio.db.session import Base, get_db
from devstudio.services import app_service, conversation_service

USER_ID = 1001
OTHER_USER_ID = 2002


@pytest.fixture
def db_engine():
    """One in-memory SQLite database shared by every connection of a test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(db_engine) -> Session:
    """Session with the default categories already seeded."""
    session = sessionmaker(bind=db_engine, autocommit=False, autoflush=False)()
    ensure_default_categories(session)
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def token_factory():
    counter = itertools.count(1)
    return lambda: f"token-{next(counter)}"


@pytest.fixture
def engine(db, token_factory) -> DevStudioEngine:
    return DevStudioEngine(db, token_factory=token_factory)


@pytest.fixture
def send(engine):
    """Send one message as a user and return the reply."""

    def _send(text: str, user_id: int = USER_ID) -> str:
        return engine.process(user_id, text)

    return _send


@pytest.fixture
def state_of(db):
    """Current (state, data) of a user's conversation."""

    def _state_of(user_id: int = USER_ID):
        record = conversation_service.get_state(db, user_id)
        db.refresh(record)
        return record.state, record.data

    return _state_of


@pytest.fixture
def make_app(db):
    """Insert an app directly through the app store."""
    counter = itertools.count(1)

    def _make_app(
        title: str = "Price Watcher",
        username: str | None = None,
        creator_id: int = USER_ID,
        welcome: str = "",
    ):
        number = next(counter)
        return app_service.create_app(
            db,
            title=title,
            description="Watches prices around the clock",
            icon="📈",
            category_id=ensure_default_categories(db)[0].id,
            creator_id=creator_id,
            bot_username=username or f"watcher{number}app",
            welcome_message=welcome,
            api_token=f"seed-token-{number}",
        )

    return _make_app


@pytest.fixture
def client(db):
    from main import app

    ensure_devstudio_app(db)

    def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    # Not used as a context manager: startup would run init_db against the real database.
    test_client = TestClient(app)
    try:
        yield test_client
    finally:
        app.dependency_overrides.clear()
