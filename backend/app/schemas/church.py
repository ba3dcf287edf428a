# app/schemas/church.py
from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ChurchBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    address: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=30)
    responsible: Optional[str] = Field(None, max_length=200)
    logo_url: Optional[str] = Field(None, max_length=500)
    attendance_window_weeks: Optional[int] = Field(
        None, gt=0, description="Average over the most recent N weeks; empty = all weeks"
    )

    model_config = ConfigDict(from_attributes=True)


class ChurchCreate(ChurchBase):
    # aggregate fields are not accepted here; unknown keys are ignored
    pass


class ChurchUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    address: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=30)
    responsible: Optional[str] = Field(None, max_length=200)
    logo_url: Optional[str] = Field(None, max_length=500)
    attendance_window_weeks: Optional[int] = Field(None, gt=0)

    model_config = ConfigDict(from_attributes=True)


class ChurchRead(ChurchBase):
    id: int
    membership_count: int
    avg_weekly_attendance: int
    faith_decisions_year: int
    faith_decisions_ref_year: Optional[int] = None
    ordained_preachers: int
    unordained_preachers: int
    ordained_deacons: int
    unordained_deacons: int
    stats_updated_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
