# app/schemas/event.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.schemas.stats import ChurchStatsRead


def _blank_id(v):
    # "" from a cleared <select> means "no member"
    if v == "" or v == 0:
        return None
    return v


def to_naive_utc(v: Optional[datetime]) -> Optional[datetime]:
    """Event dates are stored without a timezone, as UTC wall time."""
    if v is not None and v.tzinfo is not None:
        return v.astimezone(timezone.utc).replace(tzinfo=None)
    return v


class EventBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=300)
    description: Optional[str] = None
    event_type: Optional[str] = Field(None, max_length=100, description="service, outreach, meeting, ...")
    start_date: datetime
    end_date: Optional[datetime] = None
    location: Optional[str] = Field(None, max_length=300)

    # Service roles (members of the same church)
    preacher_id: Optional[int] = None
    worship_leader_id: Optional[int] = None
    singer_id: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)

    @field_validator("preacher_id", "worship_leader_id", "singer_id", mode="before")
    @classmethod
    def _blank_ids(cls, v):
        return _blank_id(v)

    @field_validator("start_date", "end_date", mode="after")
    @classmethod
    def _utc_dates(cls, v):
        return to_naive_utc(v)


class EventCreate(EventBase):
    @model_validator(mode="after")
    def _end_after_start(self):
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class EventUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=300)
    description: Optional[str] = None
    event_type: Optional[str] = Field(None, max_length=100)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    location: Optional[str] = Field(None, max_length=300)
    preacher_id: Optional[int] = None
    worship_leader_id: Optional[int] = None
    singer_id: Optional[int] = None

    @field_validator("preacher_id", "worship_leader_id", "singer_id", mode="before")
    @classmethod
    def _blank_ids(cls, v):
        return _blank_id(v)

    @field_validator("start_date", "end_date", mode="after")
    @classmethod
    def _utc_dates(cls, v):
        return to_naive_utc(v)


class EventRead(EventBase):
    id: int
    church_id: int
    attendees_count: int = 0
    faith_decisions: int = 0


class AttendeeIn(BaseModel):
    member_id: int = Field(..., gt=0)
    attended: bool = True
    made_faith_decision: bool = False
    notes: Optional[str] = None


class AttendeeRead(AttendeeIn):
    id: int
    event_id: int

    model_config = ConfigDict(from_attributes=True)


class EventDetailRead(EventRead):
    attendees: List[AttendeeRead] = []


class RosterReplace(BaseModel):
    """The complete roster. Rows not listed are removed."""
    attendees: List[AttendeeIn]


class RosterReplaceRead(BaseModel):
    event_id: int
    attendee_count: int
    faith_decision_count: int
    attended_count: int
    stats: ChurchStatsRead


class EventMutationRead(BaseModel):
    event: EventRead
    stats: ChurchStatsRead


class EventDeleteRead(BaseModel):
    deleted_id: int
    stats: ChurchStatsRead


class EventPage(BaseModel):
    items: List[EventRead]
    total: int
    page: int
    limit: int
