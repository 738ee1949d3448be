from datetime import date, datetime
from sqlalchemy import Boolean, Date, DateTime, Float, ForeignKey, Integer, JSON, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
import enum
from daily_check.db.base import Base


class MealType(str, enum.Enum):
    breakfast = "breakfast"
    lunch = "lunch"
    dinner = "dinner"
    snack = "snack"


class MealStatus(str, enum.Enum):
    eaten = "eaten"
    skipped = "skipped"


class MealEntry(Base):
    __tablename__ = "meal_entries"
    __table_args__ = (UniqueConstraint("user_id", "day", "meal_type", name="uq_meal_entries_user_day_type"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    meal_type: Mapped[str] = mapped_column(String(16), nullable=False)
    date_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    day: Mapped[date] = mapped_column(Date, nullable=False, index=True)  # calendar day of date_time in settings.timezone
    status: Mapped[str] = mapped_column(String(16), nullable=False, default=MealStatus.eaten.value)
    quality: Mapped[int | None] = mapped_column(Integer, nullable=True)  # 1-5
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    with_children: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    food_types: Mapped[list | None] = mapped_column(JSON, nullable=True)  # e.g. ["vegetables", "meat"]
    water_intake: Mapped[float | None] = mapped_column(Float, nullable=True)

    user: Mapped["User"] = relationship("User", back_populates="meals")
