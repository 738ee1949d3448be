from __future__ import annotations

from datetime import datetime, timezone
from sqlalchemy import Boolean, DateTime, JSON, String
from sqlalchemy.orm import Mapped, mapped_column, relationship
from daily_check.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    phone_number: Mapped[str | None] = mapped_column(String(32), unique=True, nullable=True, index=True)  # E.164
    email: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_phone_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    children_info: Mapped[dict | None] = mapped_column(JSON, nullable=True)  # {"count": 2, "age_groups": [...]}
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    meals: Mapped[list["MealEntry"]] = relationship("MealEntry", back_populates="user", passive_deletes=True)
    sleep_entries: Mapped[list["SleepEntry"]] = relationship(
        "SleepEntry", back_populates="user", passive_deletes=True
    )
    checkins: Mapped[list["WellbeingCheckin"]] = relationship(
        "WellbeingCheckin", back_populates="user", passive_deletes=True
    )
