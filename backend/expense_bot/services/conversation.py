"""Expense entry conversation.

One sender walks a fixed form: amount -> category -> description -> confirm.
``advance`` is pure: it takes the stored session and the inbound text and
returns the next session, the reply to send and, on a confirmed form, the
draft to persist. The caller owns all I/O (store, record sink, notifier).
"""
import re
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from ..schemas import ChatSession, Draft, Step
from .parsers import format_amount, normalize_category, parse_amount

# Checked before any state handler, in this order.
RESET_KEYWORDS = re.compile(r"^(egreso|hola|inicio|men[uú])$", re.IGNORECASE)
CANCEL_KEYWORDS = re.compile(r"^cancel(ar)?$", re.IGNORECASE)

# Only meaningful in the confirm step.
AFFIRM_KEYWORDS = re.compile(r"^(s[ií]|1|guardar)$", re.IGNORECASE)
DENY_KEYWORDS = re.compile(r"^(no|2)$", re.IGNORECASE)

SKIP_DESCRIPTION = "-"

CATEGORY_MENU = "1. Racional\n2. Negocio\n3. Rebeca"
AMOUNT_RETRY = "Monto inválido 🙈. Prueba con 21.990 o 21990."
CATEGORY_PROMPT = "🏷️ Categoría (responde con número):\n" + CATEGORY_MENU
CATEGORY_RETRY = "Elige 1, 2 o 3:\n" + CATEGORY_MENU
DESCRIPTION_PROMPT = "📝 Descripción (opcional). Escribe “-” para omitir."
CONFIRM_HINT = "Responde 1 para guardar o 2 para cancelar."
CANCELLED = "🛑 Cancelado. Manda cualquier mensaje para registrar otro."
FALLBACK_HELP = (
    "Hola 👋 Manda cualquier mensaje para registrar un egreso.\n"
    "Flujo: monto → (1/2/3) → descripción → confirmar."
)


@dataclass
class TurnContext:
    today: str                          # YYYY-MM-DD in the bot's local zone
    display_name: Optional[str] = None


@dataclass
class Turn:
    session: ChatSession
    reply: str
    record: Optional[Draft] = None      # set only when the sender confirmed


def _greeting(name: Optional[str]) -> str:
    return f"Hola, {name}!" if name else "Hola!"


def amount_prompt(name: Optional[str] = None) -> str:
    return f"{_greeting(name)}\n\n💸 ¿Monto del egreso? (ej: 21.990)\nEscribe “cancelar” para salir."


def confirmation_summary(draft: Draft) -> str:
    return (
        "Confirma:\n"
        f"• Monto: ${format_amount(draft.amount)}\n"
        f"• Categoría: {draft.category.value}\n"
        f"• Desc: {draft.description or '(sin descripción)'}\n"
        f"• Fecha: {draft.iso_date}\n\n"
        f"¿Guardo? {CONFIRM_HINT}"
    )


def success_message(draft: Draft, name: Optional[str] = None) -> str:
    detail = f'Se registró el egreso de ${format_amount(draft.amount)} en "{draft.category.value}"'
    if draft.description:
        detail += f" ({draft.description})"
    detail += f" para la fecha {draft.iso_date}."
    return f"✅ Listo{', ' + name if name else ''}! {detail}\nYa figura en la web."


def _start(ctx: TurnContext) -> Turn:
    return Turn(ChatSession(step=Step.ASK_AMOUNT), amount_prompt(ctx.display_name))


def _cancel() -> Turn:
    return Turn(ChatSession(), CANCELLED)


def _on_idle(session: ChatSession, text: str, ctx: TurnContext) -> Turn:
    return _start(ctx)


def _on_amount(session: ChatSession, text: str, ctx: TurnContext) -> Turn:
    amount = parse_amount(text)
    if amount is None:
        return Turn(session, AMOUNT_RETRY)
    session.draft.amount = amount
    session.step = Step.ASK_CATEGORY
    return Turn(session, CATEGORY_PROMPT)


def _on_category(session: ChatSession, text: str, ctx: TurnContext) -> Turn:
    category = normalize_category(text)
    if category is None:
        return Turn(session, CATEGORY_RETRY)
    session.draft.category = category
    session.step = Step.ASK_DESCRIPTION
    return Turn(session, DESCRIPTION_PROMPT)


def _on_description(session: ChatSession, text: str, ctx: TurnContext) -> Turn:
    session.draft.description = "" if text == SKIP_DESCRIPTION else text
    session.draft.iso_date = ctx.today
    session.step = Step.CONFIRM
    return Turn(session, confirmation_summary(session.draft))


def _on_confirm(session: ChatSession, text: str, ctx: TurnContext) -> Turn:
    if DENY_KEYWORDS.match(text):
        return _cancel()
    if not AFFIRM_KEYWORDS.match(text):
        return Turn(session, CONFIRM_HINT)
    draft = session.draft
    if draft.amount is None or draft.category is None:
        # Stored draft lost a field; start the form again instead of saving half a record.
        return _start(ctx)
    record = draft.model_copy(update={
        "description": draft.description or "",
        "iso_date": draft.iso_date or ctx.today,
    })
    return Turn(ChatSession(), success_message(record, ctx.display_name), record=record)


Handler = Callable[[ChatSession, str, TurnContext], Turn]

TRANSITIONS: Dict[Step, Handler] = {
    Step.IDLE: _on_idle,
    Step.ASK_AMOUNT: _on_amount,
    Step.ASK_CATEGORY: _on_category,
    Step.ASK_DESCRIPTION: _on_description,
    Step.CONFIRM: _on_confirm,
}


def advance(session: ChatSession, text: str, *, today: str, display_name: Optional[str] = None) -> Turn:
    text = (text or "").strip()
    ctx = TurnContext(today=today, display_name=display_name)

    if RESET_KEYWORDS.match(text):
        return _start(ctx)
    if CANCEL_KEYWORDS.match(text):
        return _cancel()

    handler = TRANSITIONS.get(session.step)
    if handler is None:
        return Turn(ChatSession(), FALLBACK_HELP)
    return handler(session.model_copy(deep=True), text, ctx)
