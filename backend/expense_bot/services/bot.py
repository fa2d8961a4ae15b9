import logging
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

from ..config import Settings
from ..schemas import InboundMessage
from .conversation import Turn, advance
from .notifier import WhatsAppNotifier
from .store import DeliveryLog, RecordSink, SessionStore

logger = logging.getLogger(__name__)


def local_today(tz_name: str) -> str:
    """Today's calendar date (YYYY-MM-DD) in the given IANA zone."""
    return datetime.now(ZoneInfo(tz_name)).date().isoformat()


async def handle_message(db: Session, message: InboundMessage, settings: Settings,
                         notifier: WhatsAppNotifier) -> Optional[Turn]:
    """Run one conversation turn for an inbound message.

    Returns None when the message is dropped (sender not allowed, or a
    redelivery). Database errors propagate; the webhook masks them.
    """
    phone = message.sender
    if not settings.is_allowed(phone):
        # Not reported back, so the allow-list is not revealed.
        logger.info("Dropping message from %s: not in ALLOWED_PHONES", phone)
        return None

    if message.id and not DeliveryLog(db).claim(message.id, phone):
        logger.info("Duplicate delivery %s from %s, skipped", message.id, phone)
        return None

    store = SessionStore(db)
    session = store.get(phone)
    turn = advance(
        session,
        message.body,
        today=local_today(settings.local_timezone),
        display_name=settings.display_name(phone),
    )
    logger.debug("%s: %s -> %s", phone, getattr(session.step, "value", session.step), turn.session.step.value)

    store.set(phone, turn.session)
    expense = None
    if turn.record is not None:
        expense = RecordSink(db).append(phone, turn.record)
    db.commit()

    if expense is not None:
        logger.info("Saved expense #%s for %s: %s %s", expense.id, phone, expense.amount, expense.category)

    await notifier.send(phone, turn.reply)
    return turn
