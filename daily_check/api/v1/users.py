"""User profile endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from daily_check.api.deps import get_current_user
from daily_check.db.session import get_db
from daily_check.models.user import User
from daily_check.schemas.envelope import EnvelopeResponse, envelope
from daily_check.schemas.user import UserUpdate, user_to_response

router = APIRouter(prefix="/users", tags=["users"])


@router.get(
    "/me",
    response_model=EnvelopeResponse,
    summary="Current user profile",
    responses={401: {"description": "Not authenticated"}},
)
async def get_me(user: Annotated[User, Depends(get_current_user)]) -> dict:
    return envelope({"user": user_to_response(user)})


@router.patch(
    "/me",
    response_model=EnvelopeResponse,
    summary="Update name, email or children info",
    responses={
        401: {"description": "Not authenticated"},
        409: {"description": "Email already registered"},
    },
)
async def update_me(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    body: UserUpdate,
) -> dict:
    """Only fields present in the body change; an empty email clears it."""
    changes = body.model_dump(exclude_unset=True)
    if "name" in changes:
        name = (changes["name"] or "").strip()
        if not name:
            raise HTTPException(status_code=400, detail="Name cannot be empty")
        user.name = name
    if "email" in changes:
        email = (changes["email"] or "").strip().lower() or None
        if email and email != user.email:
            r = await session.execute(select(User.id).where(User.email == email, User.id != user.id))
            if r.first() is not None:
                raise HTTPException(status_code=409, detail="Email already registered")
        user.email = email
    if "children_info" in changes:
        user.children_info = changes["children_info"]
    await session.flush()
    await session.refresh(user)
    return envelope({"user": user_to_response(user)}, "Profile updated")
