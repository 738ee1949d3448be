from datetime import datetime

from pydantic import BaseModel, Field

from daily_check.models.sleep_entry import WakeUpReason


class SleepCreate(BaseModel):
    start_time: datetime
    end_time: datetime
    quality: int = Field(..., ge=1, le=5)
    woke_up_during_night: bool | None = None
    wake_up_count: int | None = Field(None, ge=0, le=50)
    wake_up_reason: WakeUpReason | None = None


class SleepUpdate(BaseModel):
    start_time: datetime | None = None
    end_time: datetime | None = None
    quality: int | None = Field(None, ge=1, le=5)
    woke_up_during_night: bool | None = None
    wake_up_count: int | None = Field(None, ge=0, le=50)
    wake_up_reason: WakeUpReason | None = None
