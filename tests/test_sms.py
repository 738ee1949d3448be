"""Tests for SMS delivery: message text, Solapi request signing and send via a mocked transport."""

import hashlib
import hmac
import json
from unittest.mock import patch

import httpx
import pytest

from daily_check.config import settings
from daily_check.services import sms
from daily_check.services.sms import build_verification_message, send_verification_sms, solapi_auth_header


def test_build_verification_message_localized():
    assert "인증번호: 123456" in build_verification_message("123456", "KR")
    assert "認証番号: 123456" in build_verification_message("123456", "JP")
    assert "Your verification code: 123456" in build_verification_message("123456", "US")
    assert build_verification_message("1", "US").startswith(f"[{settings.sms_brand}]")


def test_solapi_auth_header_signature():
    header = solapi_auth_header("key", "secret", "2026-01-01T00:00:00Z", "abc")
    expected = hmac.new(b"secret", b"2026-01-01T00:00:00Zabc", hashlib.sha256).hexdigest()
    assert header == f"HMAC-SHA256 apiKey=key, date=2026-01-01T00:00:00Z, salt=abc, signature={expected}"


@pytest.mark.asyncio
async def test_log_provider_succeeds():
    with patch.object(settings, "sms_provider", "log"):
        result = await send_verification_sms("+821012345678", "123456", "KR")
    assert result.success is True
    assert result.message_id.startswith("log_")


@pytest.mark.asyncio
async def test_solapi_provider_posts_message():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"groupId": "G1", "messageId": "M1"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        with (
            patch.object(settings, "sms_provider", "solapi"),
            patch.object(settings, "solapi_api_key", "key"),
            patch.object(settings, "solapi_api_secret", "secret"),
            patch.object(settings, "solapi_sender_number", "0212345678"),
            patch.object(sms, "get_http_client", return_value=client),
        ):
            result = await send_verification_sms("+821012345678", "654321", "KR")

    assert result.success is True
    assert result.message_id == "M1"
    assert seen["url"].endswith("/messages/v4/send")
    assert seen["auth"].startswith("HMAC-SHA256 apiKey=key, ")
    assert seen["body"]["message"]["to"] == "821012345678"
    assert seen["body"]["message"]["from"] == "0212345678"
    assert "654321" in seen["body"]["message"]["text"]


@pytest.mark.asyncio
async def test_solapi_error_status_is_reported():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"errorCode": "InvalidAPIKey"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        with (
            patch.object(settings, "sms_provider", "solapi"),
            patch.object(settings, "solapi_api_key", "key"),
            patch.object(settings, "solapi_api_secret", "secret"),
            patch.object(settings, "solapi_sender_number", "0212345678"),
            patch.object(sms, "get_http_client", return_value=client),
        ):
            result = await send_verification_sms("+821012345678", "654321", "KR")
    assert result.success is False
    assert "401" in result.error


@pytest.mark.asyncio
async def test_solapi_without_credentials_fails():
    with patch.object(settings, "sms_provider", "solapi"), patch.object(settings, "solapi_api_key", ""):
        result = await send_verification_sms("+821012345678", "654321", "KR")
    assert result.success is False
