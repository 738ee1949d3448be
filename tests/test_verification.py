"""Tests for phone verification: send/check endpoints, expiry, attempt limit, cookie fallback, purge."""

import json
import time
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from conftest import TEST_PHONE, add_verification
from daily_check.config import settings
from daily_check.db.session import async_session_maker
from daily_check.models.verification_request import VerificationRequest
from daily_check.services.crypto import get_fernet
from daily_check.services.sms import SmsResult
from daily_check.services.verification import (
    cookie_name,
    decode_cookie_record,
    encode_cookie_record,
    is_phone_verified,
    purge_expired_verifications,
)


async def _get(request_id: str) -> VerificationRequest | None:
    async with async_session_maker() as session:
        r = await session.execute(select(VerificationRequest).where(VerificationRequest.request_id == request_id))
        return r.scalar_one_or_none()


def _check(request_id: str = "req-1", code: str = "123456", phone: str = TEST_PHONE) -> dict:
    return {"request_id": request_id, "phone_number": phone, "code": code}


@pytest.mark.asyncio
async def test_send_code_creates_request_and_cookie(client: AsyncClient):
    with patch.object(settings, "expose_verification_code", True):
        resp = await client.post(
            "/api/v1/auth/verify/send",
            json={"phone_number": "010-1234-5678", "country_code": "KR"},
        )
    assert resp.status_code == 200
    data = resp.json()["data"]
    request_id = data["request_id"]
    assert data["expires_in"] == settings.verification_code_ttl_seconds
    assert len(data["test_code"]) == settings.verification_code_length
    assert cookie_name(request_id) in resp.cookies

    row = await _get(request_id)
    assert row.phone_number == TEST_PHONE
    assert row.code == data["test_code"]
    assert row.attempts == 0 and row.verified is False


@pytest.mark.asyncio
async def test_send_code_hides_code_by_default(client: AsyncClient):
    resp = await client.post("/api/v1/auth/verify/send", json={"phone_number": TEST_PHONE})
    assert resp.status_code == 200
    assert "test_code" not in resp.json()["data"]


@pytest.mark.asyncio
async def test_send_code_invalid_phone(client: AsyncClient):
    resp = await client.post("/api/v1/auth/verify/send", json={"phone_number": "123", "country_code": "KR"})
    assert resp.status_code == 400
    resp = await client.post("/api/v1/auth/verify/send", json={"phone_number": ""})
    assert resp.status_code == 400


@pytest.mark.asyncio
@pytest.mark.parametrize("raw", ["+", "+1", "+abc", "+12 345"])
async def test_send_code_rejects_malformed_international_number(client: AsyncClient, raw: str):
    resp = await client.post("/api/v1/auth/verify/send", json={"phone_number": raw, "country_code": "KR"})
    assert resp.status_code == 400
    assert resp.json()["message"] == "Invalid phone number"
    async with async_session_maker() as session:
        r = await session.execute(select(VerificationRequest.id))
        assert r.first() is None


@pytest.mark.asyncio
async def test_check_code_rejects_malformed_international_number(client: AsyncClient):
    await add_verification()
    resp = await client.post("/api/v1/auth/verify/check", json=_check(phone="+"))
    assert resp.status_code == 400
    assert (await _get("req-1")).verified is False


@pytest.mark.asyncio
async def test_send_code_sms_failure_returns_502(client: AsyncClient):
    failed = AsyncMock(return_value=SmsResult(success=False, error="down"))
    with patch("daily_check.api.v1.verification.send_verification_sms", failed):
        resp = await client.post("/api/v1/auth/verify/send", json={"phone_number": TEST_PHONE})
    assert resp.status_code == 502
    assert resp.json()["success"] is False


@pytest.mark.asyncio
async def test_check_code_success(client: AsyncClient):
    await add_verification()
    resp = await client.post("/api/v1/auth/verify/check", json=_check())
    assert resp.status_code == 200
    assert resp.json()["data"] == {"verified": True, "phone_number": TEST_PHONE}
    assert (await _get("req-1")).verified is True
    async with async_session_maker() as session:
        assert await is_phone_verified(session, TEST_PHONE) is True


@pytest.mark.asyncio
async def test_check_code_missing_params(client: AsyncClient):
    resp = await client.post("/api/v1/auth/verify/check", json={"request_id": "req-1", "phone_number": TEST_PHONE})
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_check_code_unknown_request(client: AsyncClient):
    resp = await client.post("/api/v1/auth/verify/check", json=_check("nope"))
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_check_code_phone_mismatch(client: AsyncClient):
    await add_verification()
    resp = await client.post("/api/v1/auth/verify/check", json=_check(phone="+821099998888"))
    assert resp.status_code == 400
    assert (await _get("req-1")).attempts == 0


@pytest.mark.asyncio
async def test_wrong_code_counts_attempts(client: AsyncClient):
    await add_verification()
    resp = await client.post("/api/v1/auth/verify/check", json=_check(code="000000"))
    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert body["attempts_left"] == settings.verification_max_attempts - 1
    assert (await _get("req-1")).attempts == 1


@pytest.mark.asyncio
async def test_too_many_attempts(client: AsyncClient):
    await add_verification(attempts=settings.verification_max_attempts)
    resp = await client.post("/api/v1/auth/verify/check", json=_check())
    assert resp.status_code == 429
    assert (await _get("req-1")).verified is False


@pytest.mark.asyncio
async def test_attempts_exhausted_then_refused(client: AsyncClient):
    await add_verification()
    for i in range(settings.verification_max_attempts):
        resp = await client.post("/api/v1/auth/verify/check", json=_check(code="000000"))
        assert resp.status_code == 400
        assert resp.json()["attempts_left"] == settings.verification_max_attempts - i - 1
    resp = await client.post("/api/v1/auth/verify/check", json=_check())
    assert resp.status_code == 429


@pytest.mark.asyncio
async def test_expired_code_deletes_request(client: AsyncClient):
    created = datetime.now(timezone.utc) - timedelta(seconds=settings.verification_code_ttl_seconds + 5)
    await add_verification(created_at=created)
    resp = await client.post("/api/v1/auth/verify/check", json=_check())
    assert resp.status_code == 410
    assert await _get("req-1") is None


@pytest.mark.asyncio
async def test_bypass_code_outside_production(client: AsyncClient):
    await add_verification()
    with patch.object(settings, "verification_bypass_code", "999999"):
        resp = await client.post("/api/v1/auth/verify/check", json=_check(code="999999"))
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_bypass_code_ignored_in_production(client: AsyncClient):
    await add_verification()
    with (
        patch.object(settings, "verification_bypass_code", "999999"),
        patch.object(settings, "app_env", "production"),
    ):
        resp = await client.post("/api/v1/auth/verify/check", json=_check(code="999999"))
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_check_falls_back_to_cookie_when_row_missing(client: AsyncClient):
    with patch.object(settings, "expose_verification_code", True):
        resp = await client.post("/api/v1/auth/verify/send", json={"phone_number": TEST_PHONE})
    data = resp.json()["data"]
    async with async_session_maker() as session:
        await session.delete(await session.get(VerificationRequest, (await _get(data["request_id"])).id))
        await session.commit()

    resp = await client.post("/api/v1/auth/verify/check", json=_check(data["request_id"], data["test_code"]))
    assert resp.status_code == 200
    assert (await _get(data["request_id"])).verified is True


@pytest.mark.asyncio
async def test_check_without_row_or_cookie_is_not_found(client: AsyncClient):
    resp = await client.post("/api/v1/auth/verify/send", json={"phone_number": TEST_PHONE})
    request_id = resp.json()["data"]["request_id"]
    client.cookies.clear()
    async with async_session_maker() as session:
        await session.delete(await session.get(VerificationRequest, (await _get(request_id)).id))
        await session.commit()
    resp = await client.post("/api/v1/auth/verify/check", json=_check(request_id))
    assert resp.status_code == 404


def test_cookie_record_rejects_other_request_and_tampering():
    record = VerificationRequest(
        request_id="a",
        phone_number=TEST_PHONE,
        code="111111",
        created_at=datetime.now(timezone.utc),
        attempts=2,
        verified=False,
    )
    value = encode_cookie_record(record)
    decoded = decode_cookie_record(value, "a")
    assert decoded["code"] == "111111" and decoded["attempts"] == 2
    assert decode_cookie_record(value, "b") is None
    assert decode_cookie_record(value[:-2] + "xx", "a") is None
    assert decode_cookie_record(None, "a") is None


@pytest.mark.asyncio
async def test_verified_request_still_requires_the_code(client: AsyncClient):
    await add_verification(verified=True)
    resp = await client.post("/api/v1/auth/verify/check", json=_check(code="wrong!"))
    assert resp.status_code == 400
    assert resp.json()["attempts_left"] == settings.verification_max_attempts - 1
    assert (await _get("req-1")).attempts == 1

    resp = await client.post("/api/v1/auth/verify/check", json=_check())
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_wrong_code_rewrites_cookie_attempts(client: AsyncClient):
    with patch.object(settings, "expose_verification_code", True):
        resp = await client.post("/api/v1/auth/verify/send", json={"phone_number": TEST_PHONE})
    data = resp.json()["data"]
    request_id = data["request_id"]
    wrong = "x" * settings.verification_code_length

    resp = await client.post("/api/v1/auth/verify/check", json=_check(request_id, wrong))
    assert resp.status_code == 400
    record = decode_cookie_record(resp.cookies.get(cookie_name(request_id)), request_id)
    assert record["attempts"] == 1

    # row gone: the restored request keeps the attempt count
    async with async_session_maker() as session:
        await session.delete(await session.get(VerificationRequest, (await _get(request_id)).id))
        await session.commit()
    resp = await client.post("/api/v1/auth/verify/check", json=_check(request_id, wrong))
    assert resp.status_code == 400
    assert resp.json()["attempts_left"] == settings.verification_max_attempts - 2
    assert (await _get(request_id)).attempts == 2


def test_cookie_record_expires_with_code_ttl():
    record = {"request_id": "a", "phone_number": TEST_PHONE, "code": "111111", "attempts": 0, "verified": False}
    issued = int(time.time()) - settings.verification_code_ttl_seconds - 5
    stale = get_fernet().encrypt_at_time(json.dumps(record).encode(), issued).decode()
    assert decode_cookie_record(stale, "a") is None


@pytest.mark.asyncio
async def test_purge_expired_verifications(clean_db):
    now = datetime.now(timezone.utc)
    await add_verification(request_id="fresh")
    await add_verification(request_id="stale", created_at=now - timedelta(seconds=settings.verification_code_ttl_seconds + 1))
    await add_verification(
        request_id="verified-recent",
        created_at=now - timedelta(seconds=settings.verification_code_ttl_seconds + 1),
        verified=True,
    )
    await add_verification(
        request_id="verified-old",
        created_at=now - timedelta(seconds=settings.verified_phone_ttl_seconds + 1),
        verified=True,
    )
    async with async_session_maker() as session:
        deleted = await purge_expired_verifications(session)
        await session.commit()
    assert deleted == 2
    assert await _get("fresh") is not None
    assert await _get("verified-recent") is not None
    assert await _get("stale") is None
    assert await _get("verified-old") is None
