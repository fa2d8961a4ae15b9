import re
from typing import Optional

from ..schemas import Category

# Thousands separators and the currency sign people type around amounts: "$21.990", "21 990"
_AMOUNT_NOISE = re.compile(r"[.$,\s]")
_DIGITS = re.compile(r"[0-9]+")

# Amounts are stored as floats; below 2**53 every whole peso is exact.
MAX_AMOUNT_DIGITS = 15

CATEGORY_ALIASES = {
    "1": Category.RACIONAL,
    "racional": Category.RACIONAL,
    "ra": Category.RACIONAL,
    "2": Category.NEGOCIO,
    "negocio": Category.NEGOCIO,
    "ne": Category.NEGOCIO,
    "3": Category.REBECA,
    "rebeca": Category.REBECA,
    "re": Category.REBECA,
    "rebe": Category.REBECA,
}


def parse_amount(raw) -> Optional[int]:
    """Parse a whole-peso amount such as "21.990" or "21990"; None when invalid."""
    clean = _AMOUNT_NOISE.sub("", str(raw or ""))
    if not _DIGITS.fullmatch(clean):
        return None
    significant = clean.lstrip("0")
    if not significant or len(significant) > MAX_AMOUNT_DIGITS:
        return None
    return int(significant)


def normalize_category(raw) -> Optional[Category]:
    return CATEGORY_ALIASES.get(str(raw or "").strip().lower())


def format_amount(amount: float) -> str:
    """21990 -> "21.990" (es-CL grouping, no decimals)."""
    return f"{round(amount):,}".replace(",", ".")
