"""Request bodies for auth and phone verification. Required fields are checked by the handlers (400)."""

from pydantic import BaseModel


class SendCodeBody(BaseModel):
    phone_number: str = ""
    country_code: str | None = None


class CheckCodeBody(BaseModel):
    request_id: str = ""
    phone_number: str = ""
    country_code: str | None = None
    code: str = ""


class RegisterBody(BaseModel):
    name: str = ""
    phone_number: str = ""
    country_code: str | None = None
    email: str | None = None
    password: str = ""


class LoginBody(BaseModel):
    phone_number: str | None = None
    email: str | None = None
    country_code: str | None = None
    password: str = ""


class ClearTestDataBody(BaseModel):
    phone_number: str = ""
    country_code: str | None = None
