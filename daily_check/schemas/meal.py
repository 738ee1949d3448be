from datetime import datetime

from pydantic import BaseModel, Field

from daily_check.models.meal_entry import MealStatus, MealType


class MealCreate(BaseModel):
    """Body for POST /meals. One entry per meal type and day: a second POST replaces the first."""

    meal_type: MealType
    date_time: datetime
    status: MealStatus
    quality: int | None = Field(None, ge=1, le=5)
    description: str | None = Field(None, max_length=2000)
    with_children: bool | None = None
    food_types: list[str] | None = None
    water_intake: float | None = Field(None, ge=0, le=10000)


class MealUpdate(BaseModel):
    """Optional fields for PATCH; same bounds as MealCreate."""

    meal_type: MealType | None = None
    date_time: datetime | None = None
    status: MealStatus | None = None
    quality: int | None = Field(None, ge=1, le=5)
    description: str | None = Field(None, max_length=2000)
    with_children: bool | None = None
    food_types: list[str] | None = None
    water_intake: float | None = Field(None, ge=0, le=10000)
