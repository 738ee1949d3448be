"""Wellbeing check-in schemas. The structured input is stored as JSON on the check-in row."""

import datetime as dt

from pydantic import BaseModel, Field


class CheckinInput(BaseModel):
    stress_level: int = Field(..., ge=1, le=10)
    main_emotions: list[str] = Field(..., min_length=1)  # "joy", "sadness", ...
    other_emotion_detail: str | None = None
    today_activities: list[str] = Field(..., min_length=1)  # "exercise", "childcare", ...
    other_activity_detail: str | None = None
    conversation_partner: str | None = None  # "spouse", "friend", ...
    other_conversation_partner_detail: str | None = None
    spouse_conversation_topics: list[str] | None = None
    other_spouse_topic_detail: str | None = None
    parenting_challenges: list[str] | None = None
    self_care_time: int | None = Field(None, ge=0, le=24 * 60)  # minutes


class CheckinCreate(BaseModel):
    date: dt.date | None = Field(None, description="YYYY-MM-DD; default today")
    input: CheckinInput


class CheckinUpdate(BaseModel):
    """PATCH body: `input` keys are merged into the stored input, then re-validated."""

    date: dt.date | None = None
    input: dict | None = None
