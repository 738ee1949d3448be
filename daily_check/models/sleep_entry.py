from datetime import datetime
from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship
import enum
from daily_check.db.base import Base


class WakeUpReason(str, enum.Enum):
    child = "child"
    stress = "stress"
    other = "other"


class SleepEntry(Base):
    __tablename__ = "sleep_entries"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    quality: Mapped[int] = mapped_column(Integer, nullable=False)  # 1-5
    woke_up_during_night: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    wake_up_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    wake_up_reason: Mapped[str | None] = mapped_column(String(16), nullable=True)

    user: Mapped["User"] = relationship("User", back_populates="sleep_entries")
