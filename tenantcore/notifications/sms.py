"""
SMS Service

Sends text messages through the Twilio Messages REST API. In preview mode
the message is rendered to a phone-styled HTML file instead.
"""
import logging
import secrets
import string
import time
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

import httpx
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from tenantcore.config import Settings, get_settings
from tenantcore.notifications.preview import open_in_browser, render_preview, write_preview

logger = logging.getLogger(__name__)

TWILIO_API_BASE = "https://api.twilio.com/2010-04-01"


class SmsResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool
    message_id: Optional[str] = None
    status: Optional[str] = None
    preview_data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


def preview_message_id() -> str:
    suffix = "".join(secrets.choice(string.ascii_lowercase + string.digits) for _ in range(6))
    return f"preview_{int(time.time() * 1000)}_{suffix}"


class SmsService:
    def __init__(self, settings: Optional[Settings] = None, client: Optional[httpx.AsyncClient] = None):
        self.settings = settings or get_settings()
        self.preview = self.settings.sms_preview
        self._client = client
        if self.preview:
            logger.info("SMS service running in PREVIEW MODE")

    @property
    def messages_url(self) -> str:
        return f"{TWILIO_API_BASE}/Accounts/{self.settings.twilio_account_sid}/Messages.json"

    async def send_sms(
        self,
        to: str,
        body: str,
        sender: Optional[str] = None,
        media_url: Optional[Union[str, List[str]]] = None,
    ) -> SmsResponse:
        """
        Send an SMS message.

        Args:
            to: Destination number in E.164 form
            body: Message text
            sender: From number, defaults to TWILIO_FROM_NUMBER
            media_url: Optional MMS media URL or list of URLs

        Returns:
            SmsResponse; failures are reported in ``error`` rather than raised
        """
        sender = sender or self.settings.twilio_from_number
        media = [media_url] if isinstance(media_url, str) else list(media_url or [])
        if self.preview:
            return self._send_preview(to, body, sender, media)
        return await self._send_twilio(to, body, sender, media)

    async def _send_twilio(self, to: str, body: str, sender: str, media: List[str]) -> SmsResponse:
        data = {"To": to, "From": sender, "Body": body}
        if media:
            data["MediaUrl"] = media
        auth = (self.settings.twilio_account_sid, self.settings.twilio_auth_token)
        try:
            if self._client is not None:
                response = await self._client.post(self.messages_url, data=data, auth=auth)
            else:
                async with httpx.AsyncClient(timeout=30) as client:
                    response = await client.post(self.messages_url, data=data, auth=auth)
            payload = response.json()
            if response.status_code >= 400:
                raise RuntimeError(payload.get("message") or f"Twilio returned {response.status_code}")
            logger.info(f"SMS sent successfully to {to}: {payload.get('sid')}")
            return SmsResponse(success=True, message_id=payload.get("sid"), status=payload.get("status"))
        except (httpx.HTTPError, RuntimeError, ValueError) as e:
            logger.error(f"Failed to send SMS: {e}")
            return SmsResponse(success=False, error=str(e))

    def _send_preview(self, to: str, body: str, sender: str, media: List[str]) -> SmsResponse:
        message_id = preview_message_id()
        preview_data = {
            "to": to,
            "from": sender,
            "body": body,
            "sentAt": datetime.now().isoformat(),
        }
        try:
            path = write_preview(
                self.settings.preview_dir,
                "sms-preview",
                message_id,
                render_preview("sms.html", {
                    "message_id": message_id,
                    "to": to,
                    "sender": sender,
                    "body": body,
                    "media_url": media,
                    "sent_at": preview_data["sentAt"],
                }),
            )
        except OSError as e:
            logger.error(f"Failed to write SMS preview: {e}")
            return SmsResponse(success=False, error=str(e))

        logger.info(f"SMS Preview saved: {path} | To: {to} | From: {sender} | Body: {body}")
        if self.settings.preview_open_browser:
            open_in_browser(path)
        return SmsResponse(success=True, message_id=message_id, status="preview", preview_data=preview_data)
