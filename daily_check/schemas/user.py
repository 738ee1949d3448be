from pydantic import BaseModel, Field

from daily_check.services.timeutil import iso


class ChildrenInfo(BaseModel):
    count: int = Field(0, ge=0, le=20)
    age_groups: list[str] = Field(default_factory=list)  # "infant", "toddler", "elementary", ...


class UserUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    email: str | None = Field(None, max_length=255)
    children_info: ChildrenInfo | None = None


def user_to_response(user) -> dict:
    return {
        "id": user.id,
        "phone_number": user.phone_number,
        "email": user.email,
        "name": user.name,
        "is_phone_verified": user.is_phone_verified,
        "children_info": user.children_info,
        "created_at": iso(user.created_at),
    }
