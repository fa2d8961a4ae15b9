from enum import Enum
from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Optional


class Category(str, Enum):
    RACIONAL = "Racional"
    NEGOCIO = "Negocio"
    REBECA = "Rebeca"


class Step(str, Enum):
    IDLE = "idle"
    ASK_AMOUNT = "ask_amount"
    ASK_CATEGORY = "ask_category"
    ASK_DESCRIPTION = "ask_description"
    CONFIRM = "confirm"


# --- Conversation session (stored as JSON in bot_states.data) ---

class Draft(BaseModel):
    amount: Optional[float] = None
    category: Optional[Category] = None
    description: Optional[str] = None
    iso_date: Optional[str] = None


class ChatSession(BaseModel):
    step: Step = Step.IDLE
    draft: Draft = Field(default_factory=Draft)


# --- WhatsApp Cloud API webhook envelope ---

class TextBody(BaseModel):
    body: str = ""


class InboundMessage(BaseModel):
    id: Optional[str] = None
    sender: str = Field(alias="from")
    type: Optional[str] = None
    text: Optional[TextBody] = None

    @property
    def body(self) -> str:
        return (self.text.body if self.text else "").strip()


class ChangeValue(BaseModel):
    messages: List[InboundMessage] = Field(default_factory=list)


class Change(BaseModel):
    value: ChangeValue = Field(default_factory=ChangeValue)


class Entry(BaseModel):
    changes: List[Change] = Field(default_factory=list)


class WebhookPayload(BaseModel):
    entry: List[Entry] = Field(default_factory=list)

    def first_message(self) -> Optional[InboundMessage]:
        """Return entry[0].changes[0].value.messages[0], if present."""
        if not self.entry or not self.entry[0].changes:
            return None
        messages = self.entry[0].changes[0].value.messages
        return messages[0] if messages else None


# --- Dashboard read model ---

class ExpenseBase(BaseModel):
    amount: float
    date: str
    category: str
    note: str = ""
    phone: Optional[str] = None


class Expense(ExpenseBase):
    id: int
    created_at: datetime

    class Config:
        from_attributes = True
