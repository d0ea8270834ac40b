"""
Tests for the mailer and templated email service.
"""
from pathlib import Path
from unittest.mock import AsyncMock, patch

import aiosmtplib
import pytest

from tenantcore.config import Settings
from tenantcore.notifications.email_service import EmailService
from tenantcore.notifications.mailer import MailerService


def _live_settings() -> Settings:
    settings = Settings()
    settings.mail_preview = False
    settings.mail_host = "smtp.example.com"
    settings.mail_user = "mailer"
    settings.mail_pass = "secret"
    return settings


@pytest.mark.asyncio
async def test_preview_writes_html_file(preview_dir):
    mailer = MailerService()
    assert mailer.preview is True

    response = await mailer.send_mail(
        to=["a@example.com", "b@example.com"],
        subject="Preview <subject>",
        html="<p>Hello there</p>",
        cc="c@example.com",
        attachments=[{"filename": "notes.txt", "content": "hi"}],
    )
    assert response.success
    assert response.message_id
    assert response.preview_url.startswith("file://")

    path = Path(response.preview_url.replace("file://", ""))
    assert path.parent == Path(preview_dir, "mail-preview").resolve()
    content = path.read_text()
    assert "<p>Hello there</p>" in content
    assert "a@example.com, b@example.com" in content
    assert "Preview &lt;subject&gt;" in content
    assert "notes.txt" in content


@pytest.mark.asyncio
async def test_preview_does_not_open_browser_by_default():
    with patch("tenantcore.notifications.mailer.open_in_browser") as opener:
        await MailerService().send_mail(to="a@example.com", subject="s", text="plain body")
    opener.assert_not_called()


@pytest.mark.asyncio
async def test_live_send_uses_smtp():
    mailer = MailerService(_live_settings())
    with patch("tenantcore.notifications.mailer.aiosmtplib.send", new_callable=AsyncMock) as send:
        response = await mailer.send_mail(
            to="a@example.com", subject="Hi", text="Hello", cc=["c@example.com"], bcc="hidden@example.com"
        )

    assert response.success
    assert response.preview_url is None
    message = send.await_args.args[0]
    kwargs = send.await_args.kwargs
    assert message["Subject"] == "Hi"
    assert message["Bcc"] is None
    assert kwargs["recipients"] == ["a@example.com", "c@example.com", "hidden@example.com"]
    assert kwargs["hostname"] == "smtp.example.com"
    assert kwargs["username"] == "mailer"


@pytest.mark.asyncio
async def test_live_send_failure_is_returned():
    mailer = MailerService(_live_settings())
    with patch(
        "tenantcore.notifications.mailer.aiosmtplib.send",
        new_callable=AsyncMock,
        side_effect=aiosmtplib.SMTPConnectError("refused"),
    ):
        response = await mailer.send_mail(to="a@example.com", subject="Hi", text="Hello")

    assert response.success is False
    assert "refused" in response.error


@pytest.mark.asyncio
async def test_verify_connection():
    assert await MailerService().verify_connection() is True

    mailer = MailerService(_live_settings())
    with patch.object(aiosmtplib.SMTP, "connect", new_callable=AsyncMock, side_effect=OSError("down")):
        assert await mailer.verify_connection() is False


def test_mail_response_serializes_camel_case():
    from tenantcore.notifications.mailer import MailResponse

    dumped = MailResponse(success=True, message_id="<id>").model_dump(by_alias=True)
    assert dumped["messageId"] == "<id>"
    assert "previewUrl" in dumped


class TestEmailTemplates:
    """Rendering of the bundled templates."""

    def test_render_password_reset(self):
        html = EmailService().render_template("password-reset", {
            "name": "Jane",
            "reset_link": "http://localhost:3000/reset-password?token=abc",
            "expires_in": "1 hour",
        })
        assert "Jane" in html
        assert "reset-password?token=abc" in html
        assert "1 hour" in html

    def test_render_escapes_context(self):
        html = EmailService().render_template("welcome", {"name": "<script>"})
        assert "<script>" not in html
        assert "&lt;script&gt;" in html

    def test_unknown_template(self):
        with pytest.raises(ValueError):
            EmailService().render_template("does-not-exist", {})

    @pytest.mark.asyncio
    async def test_send_invitation(self):
        mailer = MailerService()
        with patch.object(mailer, "send_mail", new_callable=AsyncMock) as send:
            await EmailService(mailer=mailer).send_invitation_email(
                "new@example.com", "Ada", "Acme", "http://localhost:3000/invite/1"
            )
        kwargs = send.await_args.kwargs
        assert kwargs["subject"] == "You've been invited to join Acme"
        assert "http://localhost:3000/invite/1" in kwargs["html"]

    @pytest.mark.asyncio
    async def test_send_templated_and_plain(self):
        mailer = MailerService()
        service = EmailService(mailer=mailer)
        with patch.object(mailer, "send_mail", new_callable=AsyncMock) as send:
            await service.send_templated_email("a@example.com", "Welcome", "welcome", {"name": "Bo"})
            await service.send_email(["a@example.com"], "Plain", text="just text")
        first, second = send.await_args_list
        assert "Bo" in first.kwargs["html"]
        assert second.kwargs["text"] == "just text"
