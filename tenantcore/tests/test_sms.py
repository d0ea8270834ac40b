"""
Tests for the SMS service.
"""
import re
from pathlib import Path

import httpx
import pytest

from tenantcore.config import Settings
from tenantcore.notifications.sms import SmsService


def _live_settings() -> Settings:
    settings = Settings()
    settings.sms_preview = False
    settings.twilio_account_sid = "AC123"
    settings.twilio_auth_token = "token"
    settings.twilio_from_number = "+15550001111"
    return settings


@pytest.mark.asyncio
async def test_preview_sms(preview_dir):
    response = await SmsService().send_sms(to="+15550002222", body="Your code is <1234>", sender="+15550003333")
    assert response.success
    assert response.status == "preview"
    assert re.match(r"^preview_\d+_[a-z0-9]+$", response.message_id)
    assert response.preview_data["to"] == "+15550002222"
    assert response.preview_data["from"] == "+15550003333"

    page = Path(preview_dir, "sms-preview", f"{response.message_id}.html").read_text()
    assert "Your code is &lt;1234&gt;" in page
    assert response.message_id in page


@pytest.mark.asyncio
async def test_live_sms_posts_to_twilio():
    captured = {}

    def handler(request: httpx.Request):
        captured["url"] = str(request.url)
        captured["body"] = request.content.decode()
        captured["auth"] = request.headers["authorization"]
        return httpx.Response(201, json={"sid": "SM42", "status": "queued"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        service = SmsService(_live_settings(), client=client)
        response = await service.send_sms(to="+15550002222", body="Hello", media_url="https://example.com/a.png")

    assert response.success
    assert response.message_id == "SM42"
    assert response.status == "queued"
    assert captured["url"].endswith("/Accounts/AC123/Messages.json")
    assert "From=%2B15550001111" in captured["body"]
    assert "MediaUrl=" in captured["body"]
    assert captured["auth"].startswith("Basic ")


@pytest.mark.asyncio
async def test_live_sms_error_is_returned():
    def handler(request: httpx.Request):
        return httpx.Response(400, json={"code": 21211, "message": "Invalid 'To' Phone Number"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        response = await SmsService(_live_settings(), client=client).send_sms(to="bad", body="Hello")

    assert response.success is False
    assert response.error == "Invalid 'To' Phone Number"


@pytest.mark.asyncio
async def test_live_sms_network_error_is_returned():
    def handler(request: httpx.Request):
        raise httpx.ConnectError("unreachable", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        response = await SmsService(_live_settings(), client=client).send_sms(to="+1555", body="Hello")

    assert response.success is False
    assert "unreachable" in response.error
