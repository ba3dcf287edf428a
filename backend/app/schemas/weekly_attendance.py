from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.schemas.stats import ChurchStatsRead


class WeeklyAttendanceCreate(BaseModel):
    week_date: date
    attendance_count: int = Field(..., ge=0)
    notes: Optional[str] = None


class WeeklyAttendanceUpdate(BaseModel):
    week_date: Optional[date] = None
    attendance_count: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = None


class WeeklyAttendanceRead(BaseModel):
    id: int
    church_id: int
    week_date: date
    attendance_count: int
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class WeeklyAttendanceMutationRead(BaseModel):
    record: WeeklyAttendanceRead
    stats: ChurchStatsRead


class WeeklyAttendanceDeleteRead(BaseModel):
    deleted_id: int
    stats: ChurchStatsRead


class WeeklyAttendanceList(BaseModel):
    records: List[WeeklyAttendanceRead]
    avg_weekly_attendance: int
    total: int
    page: int
    limit: int
