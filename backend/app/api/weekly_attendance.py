from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.dependencies import get_church_scope, get_db, get_reference_year
from app.schemas.stats import ChurchStatsRead
from app.schemas.weekly_attendance import (
    WeeklyAttendanceCreate,
    WeeklyAttendanceDeleteRead,
    WeeklyAttendanceList,
    WeeklyAttendanceMutationRead,
    WeeklyAttendanceRead,
    WeeklyAttendanceUpdate,
)
from app.services import weekly_attendance as svc
from app.services.stats import read_church_stats

router = APIRouter(prefix="/weekly-attendance", tags=["Weekly Attendance"])
logger = logging.getLogger(__name__)


@router.get("/", response_model=WeeklyAttendanceList)
def list_records(
    year: Optional[int] = Query(None, ge=1900, le=2999),
    page: int = Query(1, ge=1),
    limit: int = Query(52, ge=1, le=520),
    church_id: int = Depends(get_church_scope),
    db: Session = Depends(get_db),
) -> WeeklyAttendanceList:
    rows, total = svc.list_records(db, church_id, year=year, page=page, limit=limit)
    # stored average; listing never recomputes
    stats = read_church_stats(db, church_id)
    return WeeklyAttendanceList(
        records=[WeeklyAttendanceRead.model_validate(r) for r in rows],
        avg_weekly_attendance=stats.avg_weekly_attendance,
        total=total,
        page=page,
        limit=limit,
    )


@router.post("/", response_model=WeeklyAttendanceMutationRead, status_code=201)
def create_record(
    data: WeeklyAttendanceCreate,
    church_id: int = Depends(get_church_scope),
    reference_year: int = Depends(get_reference_year),
    db: Session = Depends(get_db),
) -> WeeklyAttendanceMutationRead:
    logger.info("create_weekly_attendance church_id=%s week=%s", church_id, data.week_date)
    result = svc.create_record(db, church_id, data, reference_year=reference_year)
    return WeeklyAttendanceMutationRead(
        record=WeeklyAttendanceRead.model_validate(result.value),
        stats=ChurchStatsRead.from_snapshot(result.snapshot),
    )


@router.patch("/{record_id}", response_model=WeeklyAttendanceMutationRead)
def update_record(
    record_id: int,
    data: WeeklyAttendanceUpdate,
    church_id: int = Depends(get_church_scope),
    reference_year: int = Depends(get_reference_year),
    db: Session = Depends(get_db),
) -> WeeklyAttendanceMutationRead:
    result = svc.update_record(db, church_id, record_id, data, reference_year=reference_year)
    return WeeklyAttendanceMutationRead(
        record=WeeklyAttendanceRead.model_validate(result.value),
        stats=ChurchStatsRead.from_snapshot(result.snapshot),
    )


@router.delete("/{record_id}", response_model=WeeklyAttendanceDeleteRead)
def delete_record(
    record_id: int,
    church_id: int = Depends(get_church_scope),
    reference_year: int = Depends(get_reference_year),
    db: Session = Depends(get_db),
) -> WeeklyAttendanceDeleteRead:
    result = svc.delete_record(db, church_id, record_id, reference_year=reference_year)
    return WeeklyAttendanceDeleteRead(
        deleted_id=result.value, stats=ChurchStatsRead.from_snapshot(result.snapshot)
    )
