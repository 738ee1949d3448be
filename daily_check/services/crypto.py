import base64
import hashlib

from cryptography.fernet import Fernet, InvalidToken
from daily_check.config import settings


def get_fernet() -> Fernet:
    if settings.encryption_key:
        key = settings.encryption_key.encode() if isinstance(settings.encryption_key, str) else settings.encryption_key
        return Fernet(key)
    # dev: no key configured -> derive one from SECRET_KEY
    digest = hashlib.sha256(settings.secret_key.encode("utf-8")).digest()
    return Fernet(base64.urlsafe_b64encode(digest))


def encrypt_value(value: str) -> str:
    if not value:
        return ""
    return get_fernet().encrypt(value.encode()).decode()


def decrypt_value(encrypted: str, ttl: int | None = None) -> str:
    """Decrypt a Fernet token; returns "" when tampered, undecodable or older than ttl seconds."""
    if not encrypted:
        return ""
    try:
        return get_fernet().decrypt(encrypted.encode(), ttl=ttl).decode()
    except (InvalidToken, ValueError):
        return ""
