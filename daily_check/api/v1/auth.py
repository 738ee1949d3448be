"""Auth: register, login, logout, session. The session token travels in an httpOnly cookie."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.responses import JSONResponse
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from daily_check.config import settings
from daily_check.core.auth import (
    clear_session_cookies,
    create_session_token,
    decode_token,
    extract_token,
    hash_password,
    set_session_cookies,
    verify_password,
)
from daily_check.db.session import get_db
from daily_check.models.user import User
from daily_check.schemas.auth import LoginBody, RegisterBody
from daily_check.schemas.envelope import EnvelopeResponse, envelope
from daily_check.schemas.user import user_to_response
from daily_check.services.phone import is_e164, mask_phone, normalize_phone_number, validate_phone_number
from daily_check.services.verification import consume_verifications, is_phone_verified

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["auth"])

MIN_PASSWORD_LENGTH = 6
SESSION_CACHE_CONTROL = "private, max-age=5"


def parse_phone(raw: str, country_code: str | None) -> str:
    """Validate and normalize a submitted phone number to E.164, or raise 400."""
    raw = (raw or "").strip()
    country = (country_code or settings.default_country_code).upper()
    if not raw.startswith("+") and not validate_phone_number(raw, country):
        raise HTTPException(status_code=400, detail="Invalid phone number")
    try:
        phone = normalize_phone_number(raw, country)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    if not is_e164(phone):
        raise HTTPException(status_code=400, detail="Invalid phone number")
    return phone


@router.post(
    "/register",
    status_code=201,
    response_model=EnvelopeResponse,
    summary="Register with a verified phone number",
    responses={
        400: {"description": "Missing fields, short password or invalid phone number"},
        403: {"description": "Phone number not verified"},
        409: {"description": "Phone number or email already registered"},
    },
)
async def register(
    session: Annotated[AsyncSession, Depends(get_db)],
    response: Response,
    body: RegisterBody,
) -> dict:
    name = (body.name or "").strip()
    password = body.password or ""
    if not name or not (body.phone_number or "").strip() or not password:
        raise HTTPException(status_code=400, detail="Name, phone number and password required")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
        )
    phone = parse_phone(body.phone_number, body.country_code)
    email = (body.email or "").strip().lower() or None

    verified = await is_phone_verified(session, phone)
    if settings.require_phone_verification and not verified:
        logger.info("Register rejected, phone %s not verified", mask_phone(phone))
        raise HTTPException(status_code=403, detail="Phone number verification required")

    r = await session.execute(select(User.id).where(User.phone_number == phone))
    if r.first() is not None:
        raise HTTPException(status_code=409, detail="Phone number already registered")
    if email:
        r = await session.execute(select(User.id).where(User.email == email))
        if r.first() is not None:
            raise HTTPException(status_code=409, detail="Email already registered")

    try:
        user = User(
            name=name,
            phone_number=phone,
            email=email,
            password_hash=hash_password(password),
            is_phone_verified=verified,
        )
        session.add(user)
        await session.flush()
        await session.refresh(user)
    except IntegrityError as e:
        logger.warning("Register IntegrityError: %s", e)
        raise HTTPException(status_code=409, detail="Phone number or email already registered") from e

    await consume_verifications(session, phone)
    set_session_cookies(response, create_session_token(user), phone)
    logger.info("User %s registered (%s)", user.id, mask_phone(phone))
    return envelope({"user": user_to_response(user)}, "Registration complete")


@router.post(
    "/login",
    response_model=EnvelopeResponse,
    summary="Login with phone number (or email) and password",
    responses={
        400: {"description": "Credentials missing"},
        401: {"description": "Unknown account or wrong password"},
    },
)
async def login(
    session: Annotated[AsyncSession, Depends(get_db)],
    response: Response,
    body: LoginBody,
) -> dict:
    password = body.password or ""
    email = (body.email or "").strip().lower()
    raw_phone = (body.phone_number or "").strip()
    if not password or not (email or raw_phone):
        raise HTTPException(status_code=400, detail="Phone number (or email) and password required")

    if raw_phone:
        phone = parse_phone(raw_phone, body.country_code)
        r = await session.execute(select(User).where(User.phone_number == phone))
    else:
        r = await session.execute(select(User).where(User.email == email))
    user = r.scalar_one_or_none()
    if not user or not user.password_hash or not verify_password(password, user.password_hash):
        logger.info("Login failed for %s", mask_phone(raw_phone) if raw_phone else "email account")
        raise HTTPException(status_code=401, detail="Invalid phone number, email or password")

    set_session_cookies(response, create_session_token(user), user.phone_number)
    return envelope({"user": user_to_response(user)}, "Login successful")


@router.post("/logout", response_model=EnvelopeResponse, summary="Clear the session cookies")
async def logout(response: Response) -> dict:
    clear_session_cookies(response)
    return envelope(message="Logged out")


@router.get(
    "/session",
    summary="Current session user",
    responses={401: {"description": "No valid session"}},
)
async def get_session(
    request: Request,
    session: Annotated[AsyncSession, Depends(get_db)],
    response: Response,
):
    response.headers["Cache-Control"] = SESSION_CACHE_CONTROL
    user = None
    token = extract_token(request)
    if token:
        try:
            payload = decode_token(token)
            user_id = int(payload.get("sub") or 0)
        except Exception as e:
            logger.debug("Session token rejected: %s", e)
            user_id = 0
        if user_id:
            r = await session.execute(select(User).where(User.id == user_id))
            user = r.scalar_one_or_none()
    if user is None:
        return JSONResponse(
            status_code=401,
            content={"success": False, "authenticated": False, "message": "Not logged in"},
            headers={"Cache-Control": SESSION_CACHE_CONTROL},
        )
    return {"success": True, "authenticated": True, "message": "", "data": {"user": user_to_response(user)}}
