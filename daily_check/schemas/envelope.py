"""Uniform JSON envelope: {success, message, data}."""

from typing import Any

from pydantic import BaseModel


class EnvelopeResponse(BaseModel):
    success: bool = True
    message: str = ""
    data: Any = None


def envelope(data: Any = None, message: str = "") -> dict:
    return {"success": True, "message": message, "data": data}


def error_envelope(message: str, **extra: Any) -> dict:
    return {"success": False, "message": message, **extra}
