"""Meals API: at most one entry per user, calendar day and meal type."""

import logging
from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from daily_check.api.deps import get_current_user
from daily_check.db.session import get_db, upsert_insert
from daily_check.models.meal_entry import MealEntry, MealType
from daily_check.models.user import User
from daily_check.schemas.envelope import EnvelopeResponse, envelope
from daily_check.schemas.meal import MealCreate, MealUpdate
from daily_check.services.timeutil import iso, local_date, to_utc

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/meals", tags=["meals"])


def _row_to_response(row: MealEntry) -> dict:
    return {
        "id": row.id,
        "meal_type": row.meal_type,
        "date_time": iso(row.date_time),
        "day": row.day.isoformat(),
        "status": row.status,
        "quality": row.quality,
        "description": row.description,
        "with_children": row.with_children,
        "food_types": row.food_types,
        "water_intake": row.water_intake,
    }


async def _find_same_slot(
    session: AsyncSession, user_id: int, meal_type: str, day: date, exclude_id: int | None = None
) -> MealEntry | None:
    q = select(MealEntry).where(
        MealEntry.user_id == user_id,
        MealEntry.meal_type == meal_type,
        MealEntry.day == day,
    )
    if exclude_id is not None:
        q = q.where(MealEntry.id != exclude_id)
    r = await session.execute(q.order_by(MealEntry.id).limit(1))
    return r.scalar_one_or_none()


async def _get_owned(session: AsyncSession, user_id: int, entry_id: int) -> MealEntry:
    r = await session.execute(select(MealEntry).where(MealEntry.id == entry_id, MealEntry.user_id == user_id))
    entry = r.scalar_one_or_none()
    if not entry:
        raise HTTPException(status_code=404, detail="Meal entry not found")
    return entry


@router.get(
    "",
    response_model=EnvelopeResponse,
    summary="List meals, optionally for one day and meal type",
    responses={401: {"description": "Not authenticated"}},
)
async def list_meals(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    date: date | None = None,
    type: MealType | None = None,
) -> dict:
    q = select(MealEntry).where(MealEntry.user_id == user.id)
    if date is not None:
        q = q.where(MealEntry.day == date)
    if type is not None:
        q = q.where(MealEntry.meal_type == type.value)
    r = await session.execute(q.order_by(MealEntry.date_time.asc(), MealEntry.id.asc()))
    return envelope({"meals": [_row_to_response(row) for row in r.scalars().all()]})


@router.post(
    "",
    response_model=EnvelopeResponse,
    status_code=201,
    summary="Log a meal; replaces the entry of the same type on the same day",
    responses={
        200: {"description": "Existing entry replaced"},
        400: {"description": "Invalid body"},
        401: {"description": "Not authenticated"},
    },
)
async def create_meal(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    response: Response,
    body: MealCreate,
) -> dict:
    when = to_utc(body.date_time)
    day = local_date(when)
    fields = body.model_dump(exclude={"meal_type", "date_time", "status"})
    existing = await _find_same_slot(session, user.id, body.meal_type.value, day)
    updated = existing is not None

    values = {
        "user_id": user.id,
        "meal_type": body.meal_type.value,
        "day": day,
        "date_time": when,
        "status": body.status.value,
        **fields,
    }
    stmt = upsert_insert(session, MealEntry).values(values)
    stmt = stmt.on_conflict_do_update(
        index_elements=["user_id", "day", "meal_type"],
        set_={key: stmt.excluded[key] for key in values if key not in ("user_id", "day", "meal_type")},
    ).returning(MealEntry.id)
    entry_id = (await session.execute(stmt)).scalar_one()
    entry = await session.get(MealEntry, entry_id, populate_existing=True)
    if updated:
        response.status_code = 200
        logger.debug("Meal %s replaced for user %s", entry.id, user.id)
    return envelope(
        {"meal": _row_to_response(entry), "updated": updated},
        "Meal updated" if updated else "Meal saved",
    )


@router.patch(
    "/{entry_id}",
    response_model=EnvelopeResponse,
    summary="Update a meal entry",
    responses={404: {"description": "Not found"}, 409: {"description": "Slot already taken"}},
)
async def update_meal(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    entry_id: int,
    body: MealUpdate,
) -> dict:
    entry = await _get_owned(session, user.id, entry_id)
    changes = body.model_dump(exclude_unset=True)
    if changes.get("date_time") is not None:
        changes["date_time"] = to_utc(changes["date_time"])
    for key in ("meal_type", "status"):
        if changes.get(key) is not None:
            changes[key] = changes[key].value
    for key in ("meal_type", "date_time", "status"):
        if key in changes and changes[key] is None:
            raise HTTPException(status_code=400, detail=f"{key} cannot be null")

    new_type = changes.get("meal_type", entry.meal_type)
    new_day = local_date(changes["date_time"]) if "date_time" in changes else entry.day
    if "meal_type" in changes or "date_time" in changes:
        clash = await _find_same_slot(session, user.id, new_type, new_day, exclude_id=entry.id)
        if clash is not None:
            raise HTTPException(status_code=409, detail="A meal of this type is already logged for that day")
        changes["day"] = new_day

    for key, value in changes.items():
        setattr(entry, key, value)
    try:
        await session.flush()
    except IntegrityError as e:
        logger.warning("Meal %s update hit the (user, day, type) constraint: %s", entry_id, e)
        raise HTTPException(status_code=409, detail="A meal of this type is already logged for that day") from e
    await session.refresh(entry)
    return envelope({"meal": _row_to_response(entry)}, "Meal updated")


@router.delete(
    "/{entry_id}",
    response_model=EnvelopeResponse,
    summary="Delete a meal entry",
    responses={404: {"description": "Not found"}},
)
async def delete_meal(
    session: Annotated[AsyncSession, Depends(get_db)],
    user: Annotated[User, Depends(get_current_user)],
    entry_id: int,
) -> dict:
    entry = await _get_owned(session, user.id, entry_id)
    await session.delete(entry)
    return envelope(message="Meal deleted")
