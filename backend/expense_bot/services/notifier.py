import logging
from typing import Optional

import httpx

from ..config import Settings

logger = logging.getLogger(__name__)

GRAPH_BASE_URL = "https://graph.facebook.com"


class WhatsAppNotifier:
    """Sends text replies through the WhatsApp Cloud API.

    Best effort: a failed send is retried once, then logged and dropped.
    The sender has no other channel, so nothing is raised to the caller.
    """

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None,
                 timeout: float = 10.0, attempts: int = 2):
        self.token = settings.meta_token
        self.phone_number_id = settings.phone_number_id
        self.url = f"{GRAPH_BASE_URL}/{settings.graph_api_version}/{settings.phone_number_id}/messages"
        self.transport = transport
        self.timeout = timeout
        self.attempts = attempts

    async def send(self, to: str, text: str) -> bool:
        if not self.token or not self.phone_number_id:
            logger.warning("META_TOKEN or PHONE_NUMBER_ID not set, reply to %s not sent", to)
            return False

        payload = {"messaging_product": "whatsapp", "to": to, "text": {"body": text}}
        headers = {"Authorization": f"Bearer {self.token}"}

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            for attempt in range(1, self.attempts + 1):
                try:
                    response = await client.post(self.url, json=payload, headers=headers)
                    response.raise_for_status()
                    return True
                except httpx.HTTPStatusError as e:
                    logger.warning("Send to %s failed (attempt %d/%d): HTTP %s %s",
                                   to, attempt, self.attempts, e.response.status_code, e.response.text)
                except httpx.HTTPError as e:
                    logger.warning("Send to %s failed (attempt %d/%d): %r", to, attempt, self.attempts, e)
                except Exception:
                    # Bad URL from config, encoding errors and the like: still never raised to the caller.
                    logger.exception("Send to %s failed (attempt %d/%d)", to, attempt, self.attempts)

        logger.error("Giving up on reply to %s after %d attempts", to, self.attempts)
        return False
