"""Tests for auth endpoints: register, login, logout, session."""

from unittest.mock import patch

import pytest
from httpx import AsyncClient

from conftest import TEST_PASSWORD, TEST_PHONE, add_verification, create_user
from daily_check.config import settings


@pytest.mark.asyncio
async def test_register_with_verified_phone(client: AsyncClient):
    await add_verification(verified=True)
    resp = await client.post(
        "/api/v1/auth/register",
        json={
            "name": "New Parent",
            "phone_number": "010-1234-5678",
            "country_code": "KR",
            "email": "New@Test.com",
            "password": "securepass123",
        },
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["success"] is True
    user = body["data"]["user"]
    assert user["phone_number"] == TEST_PHONE
    assert user["email"] == "new@test.com"
    assert user["is_phone_verified"] is True
    assert settings.session_cookie_name in resp.cookies
    assert resp.cookies.get(settings.phone_cookie_name) == TEST_PHONE


@pytest.mark.asyncio
async def test_register_consumes_verification(client: AsyncClient):
    await add_verification(verified=True)
    payload = {"name": "A", "phone_number": TEST_PHONE, "password": "securepass123"}
    resp = await client.post("/api/v1/auth/register", json=payload)
    assert resp.status_code == 201
    resp = await client.post("/api/v1/auth/register", json=payload)
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_register_unverified_phone_forbidden(client: AsyncClient):
    resp = await client.post(
        "/api/v1/auth/register",
        json={"name": "A", "phone_number": TEST_PHONE, "password": "securepass123"},
    )
    assert resp.status_code == 403
    assert resp.json()["success"] is False


@pytest.mark.asyncio
async def test_register_unverified_allowed_when_not_required(client: AsyncClient):
    with patch.object(settings, "require_phone_verification", False):
        resp = await client.post(
            "/api/v1/auth/register",
            json={"name": "A", "phone_number": TEST_PHONE, "password": "securepass123"},
        )
    assert resp.status_code == 201
    assert resp.json()["data"]["user"]["is_phone_verified"] is False


@pytest.mark.asyncio
async def test_register_missing_fields(client: AsyncClient):
    resp = await client.post("/api/v1/auth/register", json={"phone_number": TEST_PHONE})
    assert resp.status_code == 400
    assert "required" in resp.json()["message"]


@pytest.mark.asyncio
async def test_register_short_password(client: AsyncClient):
    await add_verification(verified=True)
    resp = await client.post(
        "/api/v1/auth/register",
        json={"name": "A", "phone_number": TEST_PHONE, "password": "123"},
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_register_duplicate_phone(client: AsyncClient):
    """Second register with the same phone returns 409. First user created via DB so it persists."""
    await create_user()
    await add_verification(verified=True)
    resp = await client.post(
        "/api/v1/auth/register",
        json={"name": "B", "phone_number": TEST_PHONE, "password": "securepass123"},
    )
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_register_duplicate_email(client: AsyncClient):
    await create_user(phone_number="+821099998888", email="dup@test.com")
    await add_verification(verified=True)
    resp = await client.post(
        "/api/v1/auth/register",
        json={"name": "B", "phone_number": TEST_PHONE, "email": "dup@test.com", "password": "securepass123"},
    )
    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_login_with_phone(client: AsyncClient, test_user):
    resp = await client.post(
        "/api/v1/auth/login",
        json={"phone_number": "01012345678", "country_code": "KR", "password": TEST_PASSWORD},
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["user"]["phone_number"] == TEST_PHONE
    assert settings.session_cookie_name in resp.cookies


@pytest.mark.asyncio
async def test_login_with_email(client: AsyncClient):
    await create_user(email="mail@test.com")
    resp = await client.post("/api/v1/auth/login", json={"email": "mail@test.com", "password": TEST_PASSWORD})
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_login_wrong_password(client: AsyncClient, test_user):
    resp = await client.post("/api/v1/auth/login", json={"phone_number": TEST_PHONE, "password": "wrong"})
    assert resp.status_code == 401
    assert resp.json()["success"] is False


@pytest.mark.asyncio
async def test_login_unknown_user(client: AsyncClient):
    resp = await client.post("/api/v1/auth/login", json={"phone_number": TEST_PHONE, "password": "whatever"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_login_missing_credentials(client: AsyncClient):
    resp = await client.post("/api/v1/auth/login", json={"password": "x"})
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_session_after_login(client: AsyncClient, test_user):
    resp = await client.post("/api/v1/auth/login", json={"phone_number": TEST_PHONE, "password": TEST_PASSWORD})
    assert resp.status_code == 200
    resp = await client.get("/api/v1/auth/session")
    assert resp.status_code == 200
    body = resp.json()
    assert body["authenticated"] is True
    assert body["data"]["user"]["phone_number"] == TEST_PHONE
    assert resp.headers["cache-control"] == "private, max-age=5"


@pytest.mark.asyncio
async def test_session_without_cookie(client: AsyncClient):
    resp = await client.get("/api/v1/auth/session")
    assert resp.status_code == 401
    assert resp.json()["authenticated"] is False
    assert resp.headers["cache-control"] == "private, max-age=5"


@pytest.mark.asyncio
async def test_logout_clears_session(client: AsyncClient, test_user):
    await client.post("/api/v1/auth/login", json={"phone_number": TEST_PHONE, "password": TEST_PASSWORD})
    resp = await client.post("/api/v1/auth/logout")
    assert resp.status_code == 200
    resp = await client.get("/api/v1/auth/session")
    assert resp.status_code == 401
