"""Sleep API. An entry belongs to the day its start time falls on."""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from daily_check.api.deps import get_current_user
from daily_check.db.session import get_db
from daily_check.models.sleep_entry import SleepEntry
from daily_check.models.user import User
from daily_check.schemas.envelope import EnvelopeResponse, envelope
from daily_check.schemas.sleep import SleepCreate, SleepUpdate
from daily_check.services.timeutil import day_bounds, ensure_utc, iso, to_utc

router = APIRouter(prefix="/sleep", tags=["sleep"])


def _row_to_response(row: SleepEntry) -> dict:
    start, end = ensure_utc(row.start_time), ensure_utc(row.end_time)
    return {
        "id": row.id,
        "start_time": iso(start),
        "end_time": iso(end),
        "duration_hours": round((end - start).total_seconds() / 3600, 2),
        "quality": row.quality,
        "woke_up_during_night": row.woke_up_during_night,
        "wake_up_count": row.wake_up_count,
        "wake_up_reason": row.wake_up_reason,
    }


def _check_range(start, end) -> None:
    if ensure_utc(end) <= ensure_utc(start):
        raise HTTPException(status_code=400, detail="end_time must be after start_time")


async def _get_owned(session: AsyncSession, user_id: int, entry_id: int) -> SleepEntry:
    r = await session.execute(select(SleepEntry).where(SleepEntry.id == entry_id, SleepEntry.user_id == user_id))
    entry = r.scalar_one_or_none()
    if not entry:
        raise HTTPException(status_code=404, detail="Sleep entry not found")
    return entry


@router.get("", response_model=EnvelopeResponse, summary="List sleep entries, optionally for one day")
async def list_sleep(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    date: date | None = None,
) -> dict:
    q = select(SleepEntry).where(SleepEntry.user_id == user.id)
    if date is not None:
        start, end = day_bounds(date)
        q = q.where(SleepEntry.start_time >= start, SleepEntry.start_time < end)
    r = await session.execute(q.order_by(SleepEntry.start_time.asc()))
    return envelope({"sleep": [_row_to_response(row) for row in r.scalars().all()]})


@router.post(
    "",
    response_model=EnvelopeResponse,
    status_code=201,
    summary="Log a sleep period",
    responses={400: {"description": "Invalid body or end before start"}},
)
async def create_sleep(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    body: SleepCreate,
) -> dict:
    start, end = to_utc(body.start_time), to_utc(body.end_time)
    _check_range(start, end)
    entry = SleepEntry(
        user_id=user.id,
        start_time=start,
        end_time=end,
        quality=body.quality,
        woke_up_during_night=body.woke_up_during_night,
        wake_up_count=body.wake_up_count,
        wake_up_reason=body.wake_up_reason.value if body.wake_up_reason else None,
    )
    session.add(entry)
    await session.flush()
    await session.refresh(entry)
    return envelope({"sleep": _row_to_response(entry)}, "Sleep saved")


@router.patch("/{entry_id}", response_model=EnvelopeResponse, summary="Update a sleep entry")
async def update_sleep(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    entry_id: int,
    body: SleepUpdate,
) -> dict:
    entry = await _get_owned(session, user.id, entry_id)
    changes = body.model_dump(exclude_unset=True)
    for key in ("start_time", "end_time", "quality"):
        if key in changes and changes[key] is None:
            raise HTTPException(status_code=400, detail=f"{key} cannot be null")
    for key in ("start_time", "end_time"):
        if key in changes:
            changes[key] = to_utc(changes[key])
    if changes.get("wake_up_reason") is not None:
        changes["wake_up_reason"] = changes["wake_up_reason"].value
    _check_range(changes.get("start_time", entry.start_time), changes.get("end_time", entry.end_time))

    for key, value in changes.items():
        setattr(entry, key, value)
    await session.flush()
    await session.refresh(entry)
    return envelope({"sleep": _row_to_response(entry)}, "Sleep updated")


@router.delete("/{entry_id}", response_model=EnvelopeResponse, summary="Delete a sleep entry")
async def delete_sleep(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    entry_id: int,
) -> dict:
    entry = await _get_owned(session, user.id, entry_id)
    await session.delete(entry)
    return envelope(message="Sleep entry deleted")
