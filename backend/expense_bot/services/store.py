"""Persistence adapters used by the bot.

Adapters only flush; the caller commits, so the session write and the record
append of one turn land in a single transaction.
"""
import logging
from typing import Union

from pydantic import ValidationError
from sqlalchemy.orm import Session

from .. import models
from ..schemas import ChatSession, Draft, Step

logger = logging.getLogger(__name__)

KNOWN_STEPS = {step.value for step in Step}


class SessionStore:
    """Conversation state per sender, one JSON document per phone."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: str) -> ChatSession:
        state = self.db.get(models.BotState, user_id)
        if not state:
            return ChatSession()
        try:
            return ChatSession.model_validate(state.data)
        except ValidationError:
            logger.warning("Unreadable session for %s: %r", user_id, state.data)
        step = state.data.get("step") if isinstance(state.data, dict) else None
        if not isinstance(step, str):
            step = None
        if step in KNOWN_STEPS:
            return ChatSession(step=Step(step))
        # Unknown step (e.g. written by an older deployment): kept as-is so the
        # conversation answers with its fallback help.
        return ChatSession.model_construct(step=step, draft=Draft())

    def set(self, user_id: str, data: Union[ChatSession, dict]) -> None:
        """Upsert; top-level keys missing from ``data`` keep their stored value."""
        if isinstance(data, ChatSession):
            data = data.model_dump(mode="json")
        state = self.db.get(models.BotState, user_id)
        if not state:
            state = models.BotState(user_id=user_id, data=ChatSession().model_dump(mode="json"))
            self.db.add(state)
        # Assign a new dict so SQLAlchemy sees the JSON column change.
        state.data = {**state.data, **data}
        self.db.flush()


class RecordSink:
    """Append-only expense records read by the dashboard."""

    def __init__(self, db: Session):
        self.db = db

    def append(self, phone: str, draft: Draft) -> models.Expense:
        expense = models.Expense(
            amount=draft.amount,
            date=draft.iso_date,
            category=draft.category.value,
            note=draft.description or "",
            phone=phone,
        )
        self.db.add(expense)
        self.db.flush()
        return expense


class DeliveryLog:
    """Remembers inbound message ids so a redelivered webhook is handled once."""

    def __init__(self, db: Session):
        self.db = db

    def claim(self, message_id: str, phone: str) -> bool:
        """Return False if ``message_id`` was already handled."""
        if self.db.get(models.ProcessedMessage, message_id):
            return False
        # A concurrent duplicate loses on the primary key at flush time.
        self.db.add(models.ProcessedMessage(message_id=message_id, phone=phone))
        self.db.flush()
        return True
