"""
Administrator notification over WhatsApp, sent through the Twilio REST API.

Sending is best effort: a missing credential skips the message with a
warning and a transport or API failure is logged and reported in the
result. ``notify`` never raises, so a flaky notification can never undo
a booking that is already saved.
"""

import logging
from typing import Optional

import httpx

from booking_bot.config import NotifyConfig, settings
from booking_bot.schemas.booking_schema import NotificationPayload, NotificationResult

logger = logging.getLogger(__name__)

MESSAGES_PATH = "/2010-04-01/Accounts/{account_sid}/Messages.json"


def build_admin_message(payload: NotificationPayload) -> str:
    return "\n".join(
        [
            "New booking confirmed",
            f"Name: {payload.name}",
            f"Phone: {payload.phone}",
            f"Email: {payload.email}",
            f"Address: {payload.address}",
            f"Areas: {payload.areas}",
            f"Pet Issue: {payload.pet_issue}",
            f"Date: {payload.slot}",
            f"Worker: {payload.worker}",
        ]
    )


class AdminNotifier:
    """Posts booking summaries to the administrator's WhatsApp number."""

    def __init__(
        self,
        config: Optional[NotifyConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.config = config or settings.notify
        self._client = client

    @property
    def messages_url(self) -> str:
        base = self.config.api_base_url.rstrip("/")
        return base + MESSAGES_PATH.format(account_sid=self.config.account_sid)

    async def notify(self, payload: NotificationPayload) -> NotificationResult:
        if not self.config.enabled:
            logger.warning("Missing Twilio settings, skipping admin notification")
            return NotificationResult(skipped=True)

        form = {
            "From": self.config.from_number,
            "To": self.config.admin_number,
            "Body": build_admin_message(payload),
        }
        auth = (self.config.account_sid, self.config.auth_token)
        try:
            if self._client is not None:
                response = await self._client.post(self.messages_url, data=form, auth=auth)
            else:
                async with httpx.AsyncClient(timeout=self.config.timeout_sec) as client:
                    response = await client.post(self.messages_url, data=form, auth=auth)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "Admin notification rejected: HTTP %d", exc.response.status_code
            )
            return NotificationResult(error=f"HTTP {exc.response.status_code}")
        except httpx.HTTPError as exc:
            logger.error("Failed to notify admin via WhatsApp: %s", exc)
            return NotificationResult(error=str(exc) or exc.__class__.__name__)

        sid = None
        try:
            sid = response.json().get("sid")
        except ValueError:
            logger.debug("Notification response was not JSON")
        logger.info("Admin notified via WhatsApp (sid=%s)", sid)
        return NotificationResult(success=True, sid=sid)

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
