"""Phone verification endpoints: send a one-time code by SMS and check it."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from daily_check.api.v1.auth import parse_phone
from daily_check.config import settings
from daily_check.core.rate_limit import limiter
from daily_check.db.session import get_db
from daily_check.schemas.auth import CheckCodeBody, SendCodeBody
from daily_check.schemas.envelope import EnvelopeResponse, envelope, error_envelope
from daily_check.services.phone import mask_phone
from daily_check.services.sms import send_verification_sms
from daily_check.services.verification import (
    CodeMismatch,
    TooManyAttempts,
    VerificationError,
    VerificationExpired,
    check_verification_code,
    cookie_max_age,
    cookie_name,
    create_verification_request,
    decode_cookie_record,
    encode_cookie_record,
    run_verification_cleanup,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth/verify", tags=["verification"])


@router.post(
    "/send",
    response_model=EnvelopeResponse,
    summary="Send a verification code by SMS",
    responses={
        400: {"description": "Phone number missing or invalid"},
        429: {"description": "Rate limit exceeded"},
        502: {"description": "SMS provider failed"},
    },
)
@limiter.limit(settings.verification_send_rate_limit)
async def send_code(
    request: Request,
    response: Response,
    session: Annotated[AsyncSession, Depends(get_db)],
    body: SendCodeBody,
) -> dict:
    if not (body.phone_number or "").strip():
        raise HTTPException(status_code=400, detail="Phone number required")
    country = (body.country_code or settings.default_country_code).upper()
    phone = parse_phone(body.phone_number, country)

    await run_verification_cleanup()

    verification = await create_verification_request(session, phone)
    result = await send_verification_sms(phone, verification.code, country)
    if not result.success:
        logger.error("SMS to %s failed: %s", mask_phone(phone), result.error)
        raise HTTPException(status_code=502, detail="Failed to send verification code")

    response.set_cookie(
        key=cookie_name(verification.request_id),
        value=encode_cookie_record(verification),
        max_age=settings.verification_code_ttl_seconds,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        path="/",
    )
    data = {
        "request_id": verification.request_id,
        "expires_in": settings.verification_code_ttl_seconds,
    }
    if settings.expose_verification_code and not settings.is_production:
        data["test_code"] = verification.code
    return envelope(data, "Verification code sent")


@router.post(
    "/check",
    response_model=EnvelopeResponse,
    summary="Check a verification code",
    responses={
        400: {"description": "Missing parameters, phone mismatch or wrong code (attempts_left)"},
        404: {"description": "Unknown request"},
        410: {"description": "Code expired"},
        429: {"description": "Too many failed attempts"},
    },
)
async def check_code(
    request: Request,
    response: Response,
    session: Annotated[AsyncSession, Depends(get_db)],
    body: CheckCodeBody,
):
    request_id = (body.request_id or "").strip()
    code = (body.code or "").strip()
    if not request_id or not (body.phone_number or "").strip() or not code:
        raise HTTPException(status_code=400, detail="Missing required parameters")
    phone = parse_phone(body.phone_number, body.country_code)

    name = cookie_name(request_id)
    cookie_record = decode_cookie_record(request.cookies.get(name), request_id)
    try:
        verification = await check_verification_code(session, request_id, phone, code, cookie_record)
    except VerificationError as e:
        # returned, not raised: the attempt counter and deletions must be committed
        failed = JSONResponse(status_code=e.status_code, content=error_envelope(e.message, **e.extra))
        if isinstance(e, (VerificationExpired, TooManyAttempts)):
            failed.delete_cookie(name, path="/")
        elif isinstance(e, CodeMismatch) and e.verification is not None:
            failed.set_cookie(
                key=name,
                value=encode_cookie_record(e.verification),
                max_age=cookie_max_age(e.verification),
                httponly=True,
                secure=settings.cookie_secure,
                samesite="lax",
                path="/",
            )
        return failed

    response.delete_cookie(name, path="/")
    return envelope(
        {"verified": True, "phone_number": verification.phone_number},
        "Phone number verified",
    )
