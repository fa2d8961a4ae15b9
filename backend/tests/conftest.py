"""Shared fixtures.

Each test gets a fresh in-memory SQLite database (``StaticPool`` so the test
client and the fixture session see the same connection), a fixed
``Settings`` instance and a notifier that records replies instead of
calling the WhatsApp API.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from expense_bot import models  # noqa: F401  registers tables
from expense_bot.config import Settings, get_settings
from expense_bot.database import Base, get_db
from expense_bot.main import app, get_notifier

ALLOWED_PHONE = "56961068305"
OTHER_ALLOWED_PHONE = "56965741027"
STRANGER_PHONE = "56900000000"


class RecordingNotifier:
    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []

    async def send(self, to: str, text: str) -> bool:
        self.sent.append((to, text))
        return True


@pytest.fixture
def settings() -> Settings:
    return Settings(
        meta_token="test-token",
        phone_number_id="123456",
        verify_token="s3cret",
        allowed_phones=(ALLOWED_PHONE, OTHER_ALLOWED_PHONE),
        display_names={OTHER_ALLOWED_PHONE: "Rebeca"},
        database_url="sqlite://",
    )


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    db = TestingSession()
    try:
        yield db
    finally:
        db.close()
        engine.dispose()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def client(db_session, settings, notifier):
    def _get_db():
        yield db_session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_notifier] = lambda: notifier
    try:
        # Not used as a context manager: the lifespan would create the real database.
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def envelope(sender: str, body: str, message_id: str | None = None) -> dict:
    """A WhatsApp Cloud API webhook payload carrying one text message."""
    message = {"from": sender, "type": "text", "text": {"body": body}}
    if message_id is not None:
        message["id"] = message_id
    return {
        "object": "whatsapp_business_account",
        "entry": [{"id": "1", "changes": [{"field": "messages", "value": {"messages": [message]}}]}],
    }
