"""Password hashing and session JWT creation/verification."""

from datetime import datetime, timezone, timedelta
from typing import Any

import bcrypt
from jose import jwt

from daily_check.config import settings


def hash_password(password: str) -> str:
    """Hash password with bcrypt. Bytes truncated to 72 (bcrypt limit)."""
    pwd_bytes = password.encode("utf-8")[:72]
    hashed = bcrypt.hashpw(pwd_bytes, bcrypt.gensalt())
    return hashed.decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    """Verify password with bcrypt. Plain password truncated to 72 bytes."""
    plain_bytes = plain_password.encode("utf-8")[:72]
    return bcrypt.checkpw(plain_bytes, password_hash.encode("utf-8"))


def _get_jwt_signing_key_and_algorithm() -> tuple[str, str]:
    """Return (key, algorithm) for signing session tokens."""
    if settings.use_rs256:
        return settings.jwt_private_key.strip(), "RS256"
    return settings.secret_key, settings.jwt_algorithm


def _get_jwt_verification_key_and_algorithms() -> tuple[str, list[str]]:
    """Return (key, algorithms) for verifying session tokens."""
    if settings.use_rs256:
        return settings.jwt_public_key.strip(), ["RS256"]
    return settings.secret_key, [settings.jwt_algorithm]


def session_claims(user) -> dict[str, Any]:
    """Public identity carried inside the session token."""
    return {
        "id": user.id,
        "phone_number": user.phone_number,
        "name": user.name,
        "email": user.email,
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }


def create_session_token(user) -> str:
    now = datetime.now(timezone.utc)
    expire = now + timedelta(minutes=settings.access_token_expire_minutes)
    payload = {"sub": str(user.id), "user": session_claims(user), "iat": now, "exp": expire}
    key, algorithm = _get_jwt_signing_key_and_algorithm()
    result = jwt.encode(payload, key, algorithm=algorithm)
    return result if isinstance(result, str) else result.decode("utf-8")


def decode_token(token: str) -> dict[str, Any]:
    key, algorithms = _get_jwt_verification_key_and_algorithms()
    return jwt.decode(token, key, algorithms=algorithms)


def extract_token(request) -> str | None:
    """Session token from the auth cookie, falling back to an Authorization: Bearer header."""
    token = request.cookies.get(settings.session_cookie_name)
    if token:
        return token
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None
    return None


def set_session_cookies(response, token: str, phone_number: str | None = None) -> None:
    max_age = settings.access_token_expire_minutes * 60
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=max_age,
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )
    if phone_number:
        response.set_cookie(
            key=settings.phone_cookie_name,
            value=phone_number,
            max_age=max_age,
            path="/",
            samesite="lax",
        )


def clear_session_cookies(response) -> None:
    response.delete_cookie(
        key=settings.session_cookie_name,
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )
    response.delete_cookie(key=settings.phone_cookie_name, path="/", samesite="lax")
