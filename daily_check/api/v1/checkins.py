"""Wellbeing check-ins: one per user per calendar day."""

import logging
from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from daily_check.api.deps import get_current_user
from daily_check.db.session import get_db, upsert_insert
from daily_check.models.checkin import WellbeingCheckin
from daily_check.models.user import User
from daily_check.schemas.checkin import CheckinCreate, CheckinInput, CheckinUpdate
from daily_check.schemas.envelope import EnvelopeResponse, envelope
from daily_check.services.timeutil import iso, today, utcnow

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/checkins", tags=["checkins"])


def _row_to_response(row: WellbeingCheckin) -> dict:
    return {
        "id": row.id,
        "date": row.date.isoformat(),
        "date_time": iso(row.date_time),
        "input": row.input,
        "output": row.output,
    }


async def _get_for_date(session: AsyncSession, user_id: int, day: date) -> WellbeingCheckin | None:
    r = await session.execute(
        select(WellbeingCheckin).where(WellbeingCheckin.user_id == user_id, WellbeingCheckin.date == day)
    )
    return r.scalar_one_or_none()


async def _get_owned(session: AsyncSession, user_id: int, checkin_id: int) -> WellbeingCheckin:
    r = await session.execute(
        select(WellbeingCheckin).where(WellbeingCheckin.id == checkin_id, WellbeingCheckin.user_id == user_id)
    )
    row = r.scalar_one_or_none()
    if not row:
        raise HTTPException(status_code=404, detail="Check-in not found")
    return row


@router.get("", response_model=EnvelopeResponse, summary="List check-ins, optionally for one day")
async def list_checkins(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    date: date | None = None,
) -> dict:
    q = select(WellbeingCheckin).where(WellbeingCheckin.user_id == user.id)
    if date is not None:
        q = q.where(WellbeingCheckin.date == date)
    r = await session.execute(q.order_by(WellbeingCheckin.date.desc()))
    return envelope({"checkins": [_row_to_response(row) for row in r.scalars().all()]})


@router.post(
    "",
    response_model=EnvelopeResponse,
    status_code=201,
    summary="Save the check-in for a day (default today); replaces an existing one",
    responses={200: {"description": "Existing check-in replaced"}, 400: {"description": "Invalid input"}},
)
async def upsert_checkin(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    response: Response,
    body: CheckinCreate,
) -> dict:
    day = body.date or today()
    data = body.input.model_dump(exclude_none=True)
    updated = await _get_for_date(session, user.id, day) is not None

    stmt = upsert_insert(session, WellbeingCheckin).values(
        user_id=user.id, date=day, date_time=utcnow(), input=data, output=None
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["user_id", "date"],
        set_={
            "date_time": stmt.excluded.date_time,
            "input": stmt.excluded.input,
            "output": stmt.excluded.output,
        },
    ).returning(WellbeingCheckin.id)
    checkin_id = (await session.execute(stmt)).scalar_one()
    row = await session.get(WellbeingCheckin, checkin_id, populate_existing=True)
    if updated:
        response.status_code = 200
    logger.debug("Check-in %s for user %s on %s (updated=%s)", row.id, user.id, day, updated)
    return envelope({"checkin": _row_to_response(row), "updated": updated}, "Check-in saved")


@router.patch(
    "/{checkin_id}",
    response_model=EnvelopeResponse,
    summary="Merge fields into a check-in",
    responses={
        400: {"description": "Merged input invalid"},
        404: {"description": "Not found"},
        409: {"description": "Another check-in exists for the new date"},
    },
)
async def update_checkin(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    checkin_id: int,
    body: CheckinUpdate,
) -> dict:
    row = await _get_owned(session, user.id, checkin_id)
    if body.date is not None and body.date != row.date:
        clash = await _get_for_date(session, user.id, body.date)
        if clash is not None:
            raise HTTPException(status_code=409, detail="A check-in already exists for that date")
        row.date = body.date
    if body.input:
        merged = {**(row.input or {}), **body.input}
        try:
            row.input = CheckinInput.model_validate(merged).model_dump(exclude_none=True)
        except ValidationError as e:
            msg = "; ".join(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors())
            raise HTTPException(status_code=400, detail=msg or "Invalid check-in input") from e
    try:
        await session.flush()
    except IntegrityError as e:
        logger.warning("Check-in %s update hit the (user, date) constraint: %s", checkin_id, e)
        raise HTTPException(status_code=409, detail="A check-in already exists for that date") from e
    await session.refresh(row)
    return envelope({"checkin": _row_to_response(row)}, "Check-in updated")


@router.delete("/{checkin_id}", response_model=EnvelopeResponse, summary="Delete a check-in")
async def delete_checkin(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    checkin_id: int,
) -> dict:
    row = await _get_owned(session, user.id, checkin_id)
    await session.delete(row)
    return envelope(message="Check-in deleted")
