import logging
import os
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from dotenv import load_dotenv

load_dotenv()

DEFAULT_DATABASE_URL = "sqlite:///./expenses.db"
DEFAULT_TIMEZONE = "America/Santiago"
DEFAULT_GRAPH_API_VERSION = "v20.0"


def _split_csv(raw: Optional[str]) -> Tuple[str, ...]:
    return tuple(s.strip() for s in (raw or "").split(",") if s.strip())


def _parse_display_names(raw: Optional[str]) -> Dict[str, str]:
    """Parse ``phone:Name,phone:Name`` into a lookup table."""
    names = {}
    for pair in _split_csv(raw):
        phone, sep, name = pair.partition(":")
        if sep and phone.strip() and name.strip():
            names[phone.strip()] = name.strip()
    return names


@dataclass(frozen=True)
class Settings:
    meta_token: Optional[str] = None
    phone_number_id: Optional[str] = None
    graph_api_version: str = DEFAULT_GRAPH_API_VERSION
    verify_token: Optional[str] = None
    allowed_phones: Tuple[str, ...] = ()
    display_names: Dict[str, str] = field(default_factory=dict)
    database_url: str = DEFAULT_DATABASE_URL
    local_timezone: str = DEFAULT_TIMEZONE
    log_level: str = "INFO"

    def is_allowed(self, phone: str) -> bool:
        return phone in self.allowed_phones

    def display_name(self, phone: str) -> Optional[str]:
        return self.display_names.get(phone)


def get_settings() -> Settings:
    # Read on every call so a changed environment is picked up without a restart.
    return Settings(
        meta_token=os.getenv("META_TOKEN"),
        phone_number_id=os.getenv("PHONE_NUMBER_ID"),
        graph_api_version=os.getenv("GRAPH_API_VERSION", DEFAULT_GRAPH_API_VERSION),
        verify_token=os.getenv("VERIFY_TOKEN"),
        allowed_phones=_split_csv(os.getenv("ALLOWED_PHONES")),
        display_names=_parse_display_names(os.getenv("DISPLAY_NAMES")),
        database_url=os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL),
        local_timezone=os.getenv("LOCAL_TIMEZONE", DEFAULT_TIMEZONE),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


def parse_log_level(name: Optional[str]) -> Optional[int]:
    """Level name ("INFO") or number ("20") to a logging level; None if unknown."""
    name = (name or "").strip().upper()
    if name.isdigit():
        return int(name)
    level = getattr(logging, name, None)
    return level if isinstance(level, int) else None
