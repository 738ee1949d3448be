"""Test-data cleanup for QA: removes a user by phone number. Refused in production."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from daily_check.api.v1.auth import parse_phone
from daily_check.config import settings
from daily_check.db.session import get_db
from daily_check.models.checkin import WellbeingCheckin
from daily_check.models.meal_entry import MealEntry
from daily_check.models.sleep_entry import SleepEntry
from daily_check.models.user import User
from daily_check.schemas.auth import ClearTestDataBody
from daily_check.schemas.envelope import EnvelopeResponse, envelope
from daily_check.services.phone import mask_phone
from daily_check.services.verification import consume_verifications

logger = logging.getLogger(__name__)
router = APIRouter(tags=["maintenance"])


@router.post(
    "/clear-test-data",
    response_model=EnvelopeResponse,
    summary="Delete a test user, their entries and verification requests",
    responses={
        400: {"description": "Phone number missing or invalid"},
        403: {"description": "Disabled in production"},
        404: {"description": "Nothing matched"},
    },
)
async def clear_test_data(
    session: Annotated[AsyncSession, Depends(get_db)],
    body: ClearTestDataBody,
) -> dict:
    if settings.is_production:
        raise HTTPException(status_code=403, detail="Not available in production")
    if not (body.phone_number or "").strip():
        raise HTTPException(status_code=400, detail="Phone number required")
    phone = parse_phone(body.phone_number, body.country_code)

    r = await session.execute(select(User).where(User.phone_number == phone))
    user = r.scalar_one_or_none()
    deleted_user = False
    if user is not None:
        # SQLite ignores ON DELETE CASCADE unless foreign keys are enabled
        for model in (MealEntry, SleepEntry, WellbeingCheckin):
            await session.execute(delete(model).where(model.user_id == user.id))
        await session.delete(user)
        deleted_user = True
    deleted_verifications = await consume_verifications(session, phone)

    if not deleted_user and not deleted_verifications:
        raise HTTPException(status_code=404, detail="No test data found for this phone number")
    logger.info(
        "Cleared test data for %s (user=%s, verifications=%s)",
        mask_phone(phone),
        deleted_user,
        deleted_verifications,
    )
    return envelope(
        {"deleted_user": deleted_user, "deleted_verifications": deleted_verifications},
        "Test data cleared",
    )
