"""
Expo Push Service
Best-effort delivery of push notifications to the mobile app
"""

import logging
import re
from typing import Optional

import httpx

from ..config import EXPO_ACCESS_TOKEN, EXPO_PUSH_URL, PUSH_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

EXPO_TOKEN_PATTERN = re.compile(r"^(ExponentPushToken|ExpoPushToken)\[[^\]]+\]$")


def is_expo_push_token(token: Optional[str]) -> bool:
    """Check the token looks like ExponentPushToken[xxx] / ExpoPushToken[xxx]"""
    return bool(token) and bool(EXPO_TOKEN_PATTERN.match(token))


class ExpoPushClient:
    """Thin client for the Expo push API"""

    def __init__(
        self,
        push_url: str = EXPO_PUSH_URL,
        timeout: float = PUSH_TIMEOUT_SECONDS,
        access_token: Optional[str] = EXPO_ACCESS_TOKEN,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.push_url = push_url
        self.timeout = timeout
        self.access_token = access_token
        self.transport = transport

    async def send(
        self, token: str, title: str, body: str, data: Optional[dict] = None
    ) -> tuple[bool, Optional[str]]:
        """
        Send one push message.

        Returns:
            Tuple of (success: bool, error_message: Optional[str]). Never raises.
        """
        if not is_expo_push_token(token):
            logger.warning(f"⚠️ Not an Expo push token: {token!r}")
            return False, "Invalid push token"

        headers = {"Accept": "application/json", "Content-Type": "application/json"}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"

        message = {"to": token, "title": title, "body": body, "sound": "default", "data": data or {}}

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.push_url, json=message, headers=headers)

            if response.status_code != 200:
                logger.error(f"❌ Expo push HTTP {response.status_code}: {response.text[:200]}")
                return False, f"HTTP {response.status_code}"

            ticket = response.json().get("data") or {}
            if isinstance(ticket, list):
                ticket = ticket[0] if ticket else {}
            if ticket.get("status") != "ok":
                error = ticket.get("message") or "Push rejected"
                logger.warning(f"⚠️ Expo push rejected for {token}: {error}")
                return False, error

            logger.info(f"📱 Push delivered to {token}")
            return True, None

        except httpx.TimeoutException:
            logger.error(f"⏰ Expo push timed out after {self.timeout}s")
            return False, "Timeout"
        except httpx.HTTPError as e:
            logger.error(f"❌ Expo push failed: {e}")
            return False, str(e)
        except ValueError as e:
            logger.error(f"❌ Expo push returned an unreadable response: {e}")
            return False, "Invalid response"
