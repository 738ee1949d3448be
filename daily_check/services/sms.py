"""
SMS delivery for phone verification codes.
Provider "log" only logs the message (development); "solapi" posts it to the Solapi v4 API
with HMAC-SHA256 request signing. Send failures are returned as SmsResult, not raised.
"""

import hashlib
import hmac
import logging
import secrets
from datetime import datetime, timezone

import httpx
from pydantic import BaseModel

from daily_check.config import settings
from daily_check.services.http_client import get_http_client
from daily_check.services.phone import mask_phone

logger = logging.getLogger(__name__)

SOLAPI_SEND_PATH = "/messages/v4/send"


class SmsResult(BaseModel):
    success: bool
    message_id: str | None = None
    error: str | None = None


def build_verification_message(code: str, country_code: str) -> str:
    """Verification text in the recipient's language."""
    brand = settings.sms_brand
    country = (country_code or "").upper()
    if country == "KR":
        return f"[{brand}] 인증번호: {code}\n이 번호를 인증 화면에 입력해주세요."
    if country == "JP":
        return f"[{brand}] 認証番号: {code}\nこの番号を認証画面に入力してください。"
    if country == "CN":
        return f"[{brand}] 验证码: {code}\n请在验证屏幕上输入此号码。"
    return f"[{brand}] Your verification code: {code}\nPlease enter this code on the verification screen."


def solapi_auth_header(api_key: str, api_secret: str, date: str, salt: str) -> str:
    """Authorization header value: signature is HMAC-SHA256(secret, date + salt) in hex."""
    signature = hmac.new(api_secret.encode("utf-8"), (date + salt).encode("utf-8"), hashlib.sha256).hexdigest()
    return f"HMAC-SHA256 apiKey={api_key}, date={date}, salt={salt}, signature={signature}"


async def _send_via_solapi(phone_number: str, text: str) -> SmsResult:
    if not (settings.solapi_api_key and settings.solapi_api_secret and settings.solapi_sender_number):
        return SmsResult(success=False, error="Solapi credentials are not configured")
    date = datetime.now(timezone.utc).isoformat()
    salt = secrets.token_hex(16)
    url = settings.solapi_base_url.rstrip("/") + SOLAPI_SEND_PATH
    payload = {
        "message": {
            "to": phone_number.lstrip("+"),
            "from": settings.solapi_sender_number,
            "text": text,
        }
    }
    try:
        client = get_http_client()
        r = await client.post(
            url,
            json=payload,
            headers={
                "Authorization": solapi_auth_header(settings.solapi_api_key, settings.solapi_api_secret, date, salt),
            },
        )
    except (httpx.HTTPError, RuntimeError) as e:
        logger.warning("Solapi send failed for %s: %s", mask_phone(phone_number), e)
        return SmsResult(success=False, error=str(e))
    if r.status_code >= 400:
        logger.warning(
            "Solapi send %s -> %s body=%s",
            mask_phone(phone_number),
            r.status_code,
            (r.text or "")[:500],
        )
        return SmsResult(success=False, error=f"Solapi responded with {r.status_code}")
    data = r.json() if r.content else {}
    return SmsResult(success=True, message_id=data.get("messageId") or data.get("groupId"))


async def send_verification_sms(phone_number: str, code: str, country_code: str) -> SmsResult:
    """Send the verification code to an E.164 number using the configured provider."""
    text = build_verification_message(code, country_code)
    provider = (settings.sms_provider or "log").lower()
    if provider == "solapi":
        return await _send_via_solapi(phone_number, text)
    logger.info("[SMS:%s] to=%s text=%r", provider, mask_phone(phone_number), text)
    return SmsResult(success=True, message_id=f"log_{secrets.token_hex(6)}")
