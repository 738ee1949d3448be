"""
Phone number helpers for verification and login.
Numbers are stored in E.164 (+821012345678); display form is country specific (010-1234-5678).
"""

from __future__ import annotations

import re
import secrets
from typing import NamedTuple


class Country(NamedTuple):
    code: str
    name: str
    dial_code: str


COUNTRIES: list[Country] = [
    Country("KR", "Korea, South", "+82"),
    Country("US", "United States", "+1"),
    Country("JP", "Japan", "+81"),
    Country("CN", "China", "+86"),
    Country("GB", "United Kingdom", "+44"),
    Country("DE", "Germany", "+49"),
    Country("FR", "France", "+33"),
    Country("CA", "Canada", "+1"),
    Country("AU", "Australia", "+61"),
    Country("SG", "Singapore", "+65"),
    Country("IN", "India", "+91"),
    Country("TH", "Thailand", "+66"),
    Country("VN", "Vietnam", "+84"),
    Country("MY", "Malaysia", "+60"),
    Country("ID", "Indonesia", "+62"),
]

_COUNTRIES_BY_CODE = {c.code: c for c in COUNTRIES}
_NON_DIGITS = re.compile(r"\D")
_E164 = re.compile(r"^\+\d{8,15}$")


def get_country(country_code: str) -> Country | None:
    return _COUNTRIES_BY_CODE.get((country_code or "").upper())


def digits_only(phone_number: str) -> str:
    return _NON_DIGITS.sub("", phone_number or "")


def mask_phone(phone_number: str) -> str:
    """Mask all but the last 4 digits, for logs."""
    digits = digits_only(phone_number)
    if len(digits) <= 4:
        return "*" * len(digits)
    return "*" * (len(digits) - 4) + digits[-4:]


def generate_verification_code(length: int = 6) -> str:
    """Numeric one-time code from a CSPRNG."""
    return "".join(secrets.choice("0123456789") for _ in range(length))


def format_phone_number(phone_number: str, country_code: str) -> str:
    """Format a national number to E.164. Raises ValueError for an unknown country."""
    digits = digits_only(phone_number)
    country = get_country(country_code)
    if country is None:
        raise ValueError(f"Country code {country_code} not found")
    dial_code = country.dial_code.lstrip("+")

    if dial_code == "1":
        # North American Numbering Plan: +1AAABBBCCCC
        if len(digits) == 10:
            return f"+1{digits}"
        if len(digits) == 11 and digits.startswith("1"):
            return f"+{digits}"

    if dial_code == "82":
        if digits.startswith("82") and len(digits) in (11, 12):
            return f"+{digits}"
        return f"+82{digits[1:] if digits.startswith('0') else digits}"

    # Most countries drop the trunk prefix 0 after the dial code
    national = digits[1:] if digits.startswith("0") else digits
    return f"+{dial_code}{national}"


def normalize_phone_number(phone_number: str, country_code: str) -> str:
    """E.164 for any input: numbers already in +<digits> form are kept, national ones are formatted."""
    if (phone_number or "").strip().startswith("+"):
        return "+" + digits_only(phone_number)
    return format_phone_number(phone_number, country_code)


def is_e164(phone_number: str) -> bool:
    """+ followed by 8-15 digits."""
    return bool(_E164.match(phone_number or ""))


def validate_phone_number(phone_number: str, country_code: str) -> bool:
    if get_country(country_code) is None:
        return False
    digits = digits_only(phone_number)
    code = country_code.upper()
    if code == "KR":
        # Mobile numbers are 10-11 digits with or without the leading 0 (010..., 10...)
        return len(digits) in (10, 11) and (digits.startswith("0") or digits.startswith("10"))
    if code in ("US", "CA"):
        return len(digits) == 10 or (len(digits) == 11 and digits.startswith("1"))
    if code == "JP":
        return len(digits) in (10, 11) and digits.startswith("0")
    return 8 <= len(digits) <= 15


def standardize_phone_number(phone_number: str, country_code: str) -> str:
    """Display form (010-1234-5678, 555-123-4567); input returned unchanged when no rule applies."""
    if get_country(country_code) is None:
        return phone_number
    digits = digits_only(phone_number)
    code = country_code.upper()
    if code in ("KR", "JP"):
        if len(digits) == 11 and digits.startswith("0"):
            return f"{digits[:3]}-{digits[3:7]}-{digits[7:]}"
        if code == "KR" and len(digits) == 10 and digits.startswith("10"):
            return f"0{digits[:2]}-{digits[2:6]}-{digits[6:]}"
    elif code in ("US", "CA"):
        if len(digits) == 10:
            return f"{digits[:3]}-{digits[3:6]}-{digits[6:]}"
        if len(digits) == 11 and digits.startswith("1"):
            return f"{digits[0]}-{digits[1:4]}-{digits[4:7]}-{digits[7:]}"
    return phone_number
