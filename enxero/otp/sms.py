"""Outbound SMS delivery.

Two senders share the :class:`SmsSender` interface:

* ``InfobipSmsSender`` — POSTs to the Infobip ``/sms/2/text/advanced`` API
* ``ConsoleSmsSender`` — writes the message to the log (development)

The active sender is chosen from ``SMS_PROVIDER`` and kept on
``app.state.sms_sender``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional, Protocol

import httpx
from fastapi import Request

logger = logging.getLogger(__name__)

# Infobip status group 1 = PENDING (accepted for delivery)
_INFOBIP_ACCEPTED_GROUP = 1


@dataclass
class SmsResult:
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


class SmsSender(Protocol):
    async def send(self, to: str, text: str) -> SmsResult: ...


class ConsoleSmsSender:
    """Logs messages instead of sending them."""

    async def send(self, to: str, text: str) -> SmsResult:
        logger.info("SMS to %s: %s", to, text)
        return SmsResult(success=True, message_id="console")


class InfobipSmsSender:
    def __init__(
        self,
        api_key: str,
        sender_id: str,
        base_url: str,
        *,
        timeout: float = 10.0,
    ) -> None:
        self.api_key = api_key
        self.sender_id = sender_id
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    async def send(self, to: str, text: str) -> SmsResult:
        payload = {
            "messages": [
                {
                    "from": self.sender_id,
                    "destinations": [{"to": to}],
                    "text": text,
                }
            ]
        }
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            resp = await client.post(
                f"{self.base_url}/sms/2/text/advanced",
                json=payload,
                headers={
                    "Authorization": f"App {self.api_key}",
                    "Accept": "application/json",
                },
            )

        if resp.status_code >= 400:
            return SmsResult(success=False, error=f"HTTP {resp.status_code}: {resp.text[:200]}")

        return self._parse_response(resp.json())

    @staticmethod
    def _parse_response(body: dict[str, Any]) -> SmsResult:
        messages = body.get("messages") or []
        if not messages:
            return SmsResult(success=False, error="Empty response from SMS provider")

        message = messages[0]
        status = message.get("status") or {}
        if status.get("groupId") == _INFOBIP_ACCEPTED_GROUP:
            return SmsResult(success=True, message_id=message.get("messageId"))
        return SmsResult(
            success=False,
            message_id=message.get("messageId"),
            error=status.get("description") or status.get("name") or "Rejected by SMS provider",
        )


def build_sms_sender(settings: Any) -> SmsSender:
    provider = settings.SMS_PROVIDER.lower()
    if provider == "infobip":
        if not settings.SMS_API_KEY:
            logger.warning("SMS_PROVIDER=infobip but SMS_API_KEY is empty; falling back to console")
            return ConsoleSmsSender()
        return InfobipSmsSender(
            settings.SMS_API_KEY,
            settings.SMS_SENDER_ID,
            settings.SMS_ENDPOINT,
            timeout=settings.SMS_TIMEOUT_SECONDS,
        )
    return ConsoleSmsSender()


def get_sms_sender(request: Request) -> SmsSender:
    """FastAPI dependency: the sender configured on the app."""
    return request.app.state.sms_sender
