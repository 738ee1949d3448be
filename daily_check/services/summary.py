"""Activity summary over a trailing window: sleep, meals and check-in statistics."""

from collections import Counter
from datetime import date, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from daily_check.models.checkin import WellbeingCheckin
from daily_check.models.meal_entry import MealEntry, MealStatus
from daily_check.models.sleep_entry import SleepEntry
from daily_check.services.timeutil import day_bounds, ensure_utc

TOP_N = 3


def _top(counter: Counter) -> list[str]:
    return [name for name, _ in counter.most_common(TOP_N)]


def sleep_stats(entries) -> dict | None:
    """Average duration (hours) and quality, wake-ups counted only when the night was interrupted."""
    if not entries:
        return None
    hours = [
        (ensure_utc(e.end_time) - ensure_utc(e.start_time)).total_seconds() / 3600 for e in entries
    ]
    return {
        "entries": len(entries),
        "average_duration_hours": round(sum(hours) / len(hours), 2),
        "average_quality": round(sum(e.quality for e in entries) / len(entries), 2),
        "total_wake_ups": sum((e.wake_up_count or 0) for e in entries if e.woke_up_during_night),
    }


def meal_stats(entries) -> dict:
    food_types: Counter = Counter()
    for e in entries:
        food_types.update(e.food_types or [])
    skipped = sum(1 for e in entries if e.status == MealStatus.skipped.value)
    return {
        "logged": len(entries),
        "eaten": len(entries) - skipped,
        "skipped": skipped,
        "food_types": dict(food_types),
    }


def checkin_stats(entries) -> dict:
    emotions: Counter = Counter()
    activities: Counter = Counter()
    stress = []
    for e in entries:
        data = e.input or {}
        emotions.update(data.get("main_emotions") or [])
        activities.update(data.get("today_activities") or [])
        if data.get("stress_level") is not None:
            stress.append(data["stress_level"])
    return {
        "count": len(entries),
        "average_stress_level": round(sum(stress) / len(stress), 2) if stress else None,
        "top_emotions": _top(emotions),
        "top_activities": _top(activities),
    }


def build_summary(meals, sleep, checkins, from_date: date, to_date: date) -> dict:
    return {
        "from_date": from_date.isoformat(),
        "to_date": to_date.isoformat(),
        "sleep": sleep_stats(sleep),
        "meals": meal_stats(meals),
        "checkins": checkin_stats(checkins),
    }


async def summarize_user(session: AsyncSession, user_id: int, to_date: date, days: int = 7) -> dict:
    """Summary for the `days` calendar days ending at to_date (inclusive)."""
    from_date = to_date - timedelta(days=days - 1)
    start, _ = day_bounds(from_date)
    _, end = day_bounds(to_date)

    r_meals = await session.execute(
        select(MealEntry).where(
            MealEntry.user_id == user_id,
            MealEntry.date_time >= start,
            MealEntry.date_time < end,
        )
    )
    r_sleep = await session.execute(
        select(SleepEntry).where(
            SleepEntry.user_id == user_id,
            SleepEntry.start_time >= start,
            SleepEntry.start_time < end,
        )
    )
    r_checkins = await session.execute(
        select(WellbeingCheckin).where(
            WellbeingCheckin.user_id == user_id,
            WellbeingCheckin.date >= from_date,
            WellbeingCheckin.date <= to_date,
        )
    )
    return build_summary(
        r_meals.scalars().all(),
        r_sleep.scalars().all(),
        r_checkins.scalars().all(),
        from_date,
        to_date,
    )
