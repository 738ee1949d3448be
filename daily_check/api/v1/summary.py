"""Summary of the trailing days of activity."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from daily_check.api.deps import get_current_user
from daily_check.db.session import get_db
from daily_check.models.user import User
from daily_check.schemas.envelope import EnvelopeResponse, envelope
from daily_check.services.summary import summarize_user
from daily_check.services.timeutil import today

router = APIRouter(prefix="/summary", tags=["summary"])


@router.get(
    "",
    response_model=EnvelopeResponse,
    summary="Sleep, meal and check-in statistics for the last N days",
    responses={400: {"description": "days out of range"}, 401: {"description": "Not authenticated"}},
)
async def get_summary(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    days: int = Query(default=7, ge=1, le=90),
) -> dict:
    return envelope(await summarize_user(session, user.id, today(), days))
