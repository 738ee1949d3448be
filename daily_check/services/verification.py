"""
Phone verification: issue one-time codes, check them, and answer "is this phone verified".

A request is valid for verification_code_ttl_seconds and allows verification_max_attempts wrong
codes; after that every check is refused until a new code is requested. The database row is the
source of truth; an encrypted cookie carries the same record so a check can still be served when
the row is gone (e.g. purged or written to another database).
"""

from __future__ import annotations

import hmac
import json
import logging
import uuid
from datetime import datetime, timedelta

from prometheus_client import Counter
from sqlalchemy import and_, delete, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from daily_check.config import settings
from daily_check.models.verification_request import VerificationRequest
from daily_check.services.crypto import decrypt_value, encrypt_value
from daily_check.services.phone import generate_verification_code, mask_phone
from daily_check.services.timeutil import ensure_utc, utcnow

logger = logging.getLogger(__name__)

VERIFICATION_CODES_SENT = Counter(
    "daily_check_verification_codes_sent_total",
    "Verification codes issued",
)
VERIFICATION_CHECKS = Counter(
    "daily_check_verification_checks_total",
    "Verification code checks by outcome",
    ["outcome"],
)


class VerificationError(Exception):
    """Base for check failures; status_code is the HTTP status the API answers with."""

    status_code = 400
    outcome = "error"

    def __init__(self, message: str, verification: VerificationRequest | None = None, **extra):
        super().__init__(message)
        self.message = message
        self.verification = verification
        self.extra = extra


class VerificationNotFound(VerificationError):
    status_code = 404
    outcome = "not_found"


class PhoneMismatch(VerificationError):
    outcome = "phone_mismatch"


class VerificationExpired(VerificationError):
    status_code = 410
    outcome = "expired"


class TooManyAttempts(VerificationError):
    status_code = 429
    outcome = "too_many_attempts"


class CodeMismatch(VerificationError):
    outcome = "invalid_code"


def cookie_name(request_id: str) -> str:
    return f"verify_{request_id}"


def is_expired(verification: VerificationRequest, now: datetime | None = None) -> bool:
    now = now or utcnow()
    age = now - ensure_utc(verification.created_at)
    return age > timedelta(seconds=settings.verification_code_ttl_seconds)


def cookie_max_age(verification: VerificationRequest, now: datetime | None = None) -> int:
    """Seconds left of the code TTL, at least 1."""
    now = now or utcnow()
    age = (now - ensure_utc(verification.created_at)).total_seconds()
    return max(1, int(settings.verification_code_ttl_seconds - age))


def _code_matches(code: str, stored: str) -> bool:
    if hmac.compare_digest(code.encode("utf-8"), stored.encode("utf-8")):
        return True
    bypass = settings.verification_bypass_code
    if bypass and not settings.is_production:
        return hmac.compare_digest(code.encode("utf-8"), bypass.encode("utf-8"))
    return False


def encode_cookie_record(verification: VerificationRequest) -> str:
    record = {
        "request_id": verification.request_id,
        "phone_number": verification.phone_number,
        "code": verification.code,
        "created_at": ensure_utc(verification.created_at).isoformat(),
        "attempts": verification.attempts,
        "verified": verification.verified,
    }
    return encrypt_value(json.dumps(record))


def decode_cookie_record(value: str | None, request_id: str) -> dict | None:
    """Decrypted cookie record for request_id, or None if absent, tampered or for another request."""
    raw = decrypt_value(value or "", ttl=settings.verification_code_ttl_seconds)
    if not raw:
        return None
    try:
        record = json.loads(raw)
    except ValueError:
        return None
    if not isinstance(record, dict) or record.get("request_id") != request_id:
        return None
    return record


def _from_cookie_record(record: dict) -> VerificationRequest:
    return VerificationRequest(
        request_id=record["request_id"],
        phone_number=record["phone_number"],
        code=record["code"],
        created_at=datetime.fromisoformat(record["created_at"]),
        attempts=int(record.get("attempts") or 0),
        verified=bool(record.get("verified")),
    )


async def create_verification_request(session: AsyncSession, phone_number: str) -> VerificationRequest:
    """Store a new request with a fresh code for an E.164 phone number."""
    verification = VerificationRequest(
        request_id=uuid.uuid4().hex,
        phone_number=phone_number,
        code=generate_verification_code(settings.verification_code_length),
        created_at=utcnow(),
        attempts=0,
        verified=False,
    )
    session.add(verification)
    await session.flush()
    VERIFICATION_CODES_SENT.inc()
    logger.info("Verification request %s created for %s", verification.request_id, mask_phone(phone_number))
    return verification


async def get_verification_request(session: AsyncSession, request_id: str) -> VerificationRequest | None:
    r = await session.execute(select(VerificationRequest).where(VerificationRequest.request_id == request_id))
    return r.scalar_one_or_none()


async def check_verification_code(
    session: AsyncSession,
    request_id: str,
    phone_number: str,
    code: str,
    cookie_record: dict | None = None,
) -> VerificationRequest:
    """
    Validate a submitted code. Returns the (now verified) request or raises a VerificationError.
    Side effects (attempt counter, deleting an expired request) are flushed before raising;
    the caller must commit them.
    """
    verification = await get_verification_request(session, request_id)
    if verification is None and cookie_record is not None:
        logger.warning("Verification %s missing in database, restoring from cookie", request_id)
        verification = _from_cookie_record(cookie_record)
        session.add(verification)
        await session.flush()
    if verification is None:
        VERIFICATION_CHECKS.labels(outcome=VerificationNotFound.outcome).inc()
        raise VerificationNotFound("Verification request expired or not found")

    try:
        if verification.phone_number != phone_number:
            raise PhoneMismatch("Phone number doesn't match verification request")
        if not verification.verified and is_expired(verification):
            await session.delete(verification)
            await session.flush()
            raise VerificationExpired("Verification code expired. Please request a new code.")
        if verification.attempts >= settings.verification_max_attempts:
            raise TooManyAttempts("Too many failed attempts. Please request a new code.")
        if not _code_matches(code, verification.code):
            verification.attempts += 1
            await session.flush()
            raise CodeMismatch(
                "Invalid verification code",
                verification=verification,
                attempts_left=max(0, settings.verification_max_attempts - verification.attempts),
            )
    except VerificationError as e:
        VERIFICATION_CHECKS.labels(outcome=e.outcome).inc()
        raise

    if verification.verified:
        return verification
    verification.verified = True
    await session.flush()
    VERIFICATION_CHECKS.labels(outcome="verified").inc()
    logger.info("Phone %s verified (request %s)", mask_phone(phone_number), request_id)
    return verification


async def is_phone_verified(session: AsyncSession, phone_number: str) -> bool:
    """True if the phone completed verification within verified_phone_ttl_seconds."""
    since = utcnow() - timedelta(seconds=settings.verified_phone_ttl_seconds)
    r = await session.execute(
        select(VerificationRequest.id)
        .where(
            VerificationRequest.phone_number == phone_number,
            VerificationRequest.verified.is_(True),
            VerificationRequest.created_at >= since,
        )
        .limit(1)
    )
    return r.first() is not None


async def consume_verifications(session: AsyncSession, phone_number: str) -> int:
    """Delete all requests for a phone (after registration or data cleanup)."""
    r = await session.execute(delete(VerificationRequest).where(VerificationRequest.phone_number == phone_number))
    return r.rowcount or 0


async def purge_expired_verifications(session: AsyncSession) -> int:
    """Delete unverified requests past the code TTL and verified ones past the registration window."""
    now = utcnow()
    code_cutoff = now - timedelta(seconds=settings.verification_code_ttl_seconds)
    verified_cutoff = now - timedelta(seconds=settings.verified_phone_ttl_seconds)
    r = await session.execute(
        delete(VerificationRequest).where(
            or_(
                and_(VerificationRequest.verified.is_(False), VerificationRequest.created_at < code_cutoff),
                VerificationRequest.created_at < verified_cutoff,
            )
        )
    )
    deleted = r.rowcount or 0
    if deleted:
        logger.info("Purged %s expired verification requests", deleted)
    return deleted


async def run_verification_cleanup() -> int:
    """Purge in its own session and transaction; failures are logged, never raised."""
    from daily_check.db.session import async_session_maker

    async with async_session_maker() as session:
        try:
            deleted = await purge_expired_verifications(session)
            await session.commit()
            return deleted
        except SQLAlchemyError as e:
            await session.rollback()
            logger.warning("Verification cleanup failed: %s", e)
            return 0
