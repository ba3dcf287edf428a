# app/schemas/stats.py
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ChurchStatsRead(BaseModel):
    """Church aggregate snapshot, as stored on the church row."""
    church_id: int
    reference_year: int
    membership_count: int = Field(0, ge=0)
    avg_weekly_attendance: int = Field(0, ge=0)
    faith_decisions_year: int = Field(0, ge=0)
    ordained_preachers: int = Field(0, ge=0)
    unordained_preachers: int = Field(0, ge=0)
    ordained_deacons: int = Field(0, ge=0)
    unordained_deacons: int = Field(0, ge=0)

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_snapshot(cls, snapshot) -> "ChurchStatsRead":
        return cls.model_validate(snapshot.as_dict())


class ErrorRead(BaseModel):
    detail: str
    category: str
    member_ids: Optional[list[int]] = None
