import hmac
import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import Depends, FastAPI, Query, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from sqlalchemy.orm import Session

from . import models, schemas
from .config import Settings, get_settings, parse_log_level
from .database import get_db, init_db
from .services.bot import handle_message
from .services.notifier import WhatsAppNotifier

_log_level_name = get_settings().log_level
_log_level = parse_log_level(_log_level_name)
logging.basicConfig(
    level=logging.INFO if _log_level is None else _log_level,
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)
logger = logging.getLogger(__name__)
if _log_level is None:
    logger.warning("Unknown LOG_LEVEL %r, using INFO", _log_level_name)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    settings = get_settings()
    if not settings.allowed_phones:
        logger.warning("ALLOWED_PHONES is empty, every inbound message will be dropped")
    if not settings.meta_token:
        logger.warning("META_TOKEN not set, replies will not be sent")
    logger.info("Expense bot started")
    yield
    logger.info("Expense bot stopped")

app = FastAPI(lifespan=lifespan)

# The dashboard reads /expenses/ from the browser.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_notifier(settings: Settings = Depends(get_settings)) -> WhatsAppNotifier:
    return WhatsAppNotifier(settings)


@app.get("/")
def read_root():
    return {"message": "Expense bot is running"}


@app.get("/api/webhook")
def verify_webhook(
    mode: Optional[str] = Query(None, alias="hub.mode"),
    token: Optional[str] = Query(None, alias="hub.verify_token"),
    challenge: str = Query("", alias="hub.challenge"),
    settings: Settings = Depends(get_settings),
):
    expected = settings.verify_token
    if mode == "subscribe" and expected and token and hmac.compare_digest(token, expected):
        return PlainTextResponse(challenge)
    logger.warning("Webhook verification rejected (mode=%r)", mode)
    return PlainTextResponse("Forbidden", status_code=403)


@app.post("/api/webhook")
async def receive_webhook(
    request: Request,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    notifier: WhatsAppNotifier = Depends(get_notifier),
):
    # Always 200: anything else makes the platform redeliver the same event.
    try:
        payload = schemas.WebhookPayload.model_validate(await request.json())
        message = payload.first_message()
        if message is not None:
            await handle_message(db, message, settings, notifier)
    except Exception:
        db.rollback()
        logger.exception("Webhook delivery failed")
    return Response(status_code=200)


@app.get("/expenses/", response_model=List[schemas.Expense])
def read_expenses(skip: int = 0, limit: int = 100, db: Session = Depends(get_db)):
    return (
        db.query(models.Expense)
        .order_by(models.Expense.date.desc(), models.Expense.id.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )
