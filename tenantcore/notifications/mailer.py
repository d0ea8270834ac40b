"""
Mailer Service

Sends email over SMTP with aiosmtplib. In preview mode the message is
rendered to an HTML file instead of being delivered, so development needs
no mail server.
"""
import logging
import re
from datetime import datetime
from email import encoders
from email.mime.base import MIMEBase
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formatdate, make_msgid
from typing import Any, Dict, List, Optional, Sequence, Union

import aiosmtplib
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from tenantcore.config import Settings, get_settings
from tenantcore.notifications.preview import open_in_browser, render_preview, write_preview

logger = logging.getLogger(__name__)

Recipients = Union[str, Sequence[str]]


class MailResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool
    message_id: Optional[str] = None
    preview_url: Optional[str] = None
    error: Optional[str] = None


def _join(recipients: Optional[Recipients]) -> str:
    if not recipients:
        return ""
    if isinstance(recipients, str):
        return recipients
    return ", ".join(recipients)


def _domain(address: str) -> str:
    match = re.search(r"@([\w.-]+)", address)
    return match.group(1) if match else "localhost"


class MailerService:
    """SMTP sender with a file-based preview mode."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.preview = self.settings.mail_preview
        if self.preview:
            logger.info("Mailer running in PREVIEW MODE")

    def _smtp_kwargs(self) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {
            "hostname": self.settings.mail_host,
            "port": self.settings.mail_port,
            "use_tls": self.settings.mail_secure,
        }
        if self.settings.mail_user and self.settings.mail_pass:
            kwargs["username"] = self.settings.mail_user
            kwargs["password"] = self.settings.mail_pass
        return kwargs

    def build_message(
        self,
        to: Recipients,
        subject: str,
        text: Optional[str] = None,
        html: Optional[str] = None,
        sender: Optional[str] = None,
        cc: Optional[Recipients] = None,
        bcc: Optional[Recipients] = None,
        attachments: Optional[List[Dict[str, Any]]] = None,
    ) -> MIMEMultipart:
        sender = sender or self.settings.mail_from
        message = MIMEMultipart("mixed")
        message["From"] = sender
        message["To"] = _join(to)
        message["Subject"] = subject
        message["Date"] = formatdate(localtime=True)
        message["Message-ID"] = make_msgid(domain=_domain(sender))
        if cc:
            message["Cc"] = _join(cc)
        # Bcc is passed to the envelope only, never written as a header

        body = MIMEMultipart("alternative")
        if text:
            body.attach(MIMEText(text, "plain", "utf-8"))
        if html:
            body.attach(MIMEText(html, "html", "utf-8"))
        message.attach(body)

        for attachment in attachments or []:
            part = MIMEBase(*attachment.get("content_type", "application/octet-stream").split("/", 1))
            content = attachment["content"]
            part.set_payload(content.encode("utf-8") if isinstance(content, str) else content)
            encoders.encode_base64(part)
            part.add_header("Content-Disposition", f'attachment; filename="{attachment["filename"]}"')
            message.attach(part)
        return message

    async def send_mail(
        self,
        to: Recipients,
        subject: str,
        text: Optional[str] = None,
        html: Optional[str] = None,
        sender: Optional[str] = None,
        cc: Optional[Recipients] = None,
        bcc: Optional[Recipients] = None,
        attachments: Optional[List[Dict[str, Any]]] = None,
    ) -> MailResponse:
        """
        Send an email.

        Args:
            to: One address or a list of addresses
            subject: Email subject
            text: Plain text body
            html: HTML body
            sender: From address, defaults to MAIL_FROM
            cc: Carbon copy recipients
            bcc: Blind carbon copy recipients
            attachments: Dicts with ``filename``, ``content`` and optional ``content_type``

        Returns:
            MailResponse; failures are reported in ``error`` rather than raised
        """
        try:
            message = self.build_message(to, subject, text, html, sender, cc, bcc, attachments)
            message_id = message["Message-ID"]

            if self.preview:
                path = write_preview(
                    self.settings.preview_dir,
                    "mail-preview",
                    re.sub(r"[^\w.-]", "_", message_id.strip("<>")),
                    render_preview("mail.html", {
                        "message_id": message_id,
                        "sender": message["From"],
                        "to": message["To"],
                        "cc": _join(cc),
                        "bcc": _join(bcc),
                        "subject": subject,
                        "sent_at": datetime.now().isoformat(),
                        "text": text,
                        "html": html,
                        "attachments": [a["filename"] for a in attachments or []],
                    }),
                )
                preview_url = path.resolve().as_uri()
                logger.info(f"Email Preview URL: {preview_url}")
                if self.settings.preview_open_browser:
                    open_in_browser(path)
                return MailResponse(success=True, message_id=message_id, preview_url=preview_url)

            recipients = [
                address.strip()
                for group in (to, cc, bcc)
                for address in _join(group).split(",")
                if address.strip()
            ]
            await aiosmtplib.send(message, recipients=recipients, **self._smtp_kwargs())
            logger.info(f"Email sent successfully to {_join(to)}: {message_id}")
            return MailResponse(success=True, message_id=message_id)
        except Exception as e:
            logger.error(f"Failed to send email: {e}")
            return MailResponse(success=False, error=str(e))

    async def verify_connection(self) -> bool:
        """Check that the SMTP server accepts a connection and login."""
        if self.preview:
            return True
        kwargs = self._smtp_kwargs()
        username = kwargs.pop("username", None)
        password = kwargs.pop("password", None)
        try:
            smtp = aiosmtplib.SMTP(**kwargs)
            async with smtp:
                if username and password:
                    await smtp.login(username, password)
            logger.info("Mail server connection verified")
            return True
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error(f"Mail server connection failed: {e}")
            return False
