# app/services/weekly_attendance.py
"""
Weekly attendance CRUD. Each create/update/delete recomputes the church's
avg_weekly_attendance through the stats coordinator.
"""
from __future__ import annotations

from datetime import date
from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.church import Church
from app.models.weekly_attendance import WeeklyAttendance
from app.schemas.weekly_attendance import WeeklyAttendanceCreate, WeeklyAttendanceUpdate
from app.services.stats import DuplicateWeekError, MutationResult, NotFoundError, run_mutation


def get_record(db: Session, church_id: int, record_id: int) -> WeeklyAttendance:
    rec = db.get(WeeklyAttendance, record_id)
    if rec is None or rec.church_id != church_id:
        raise NotFoundError("WeeklyAttendance", record_id)
    return rec


def list_records(
    db: Session,
    church_id: int,
    *,
    year: Optional[int] = None,
    page: int = 1,
    limit: int = 52,
) -> Tuple[List[WeeklyAttendance], int]:
    conds = [WeeklyAttendance.church_id == church_id]
    if year:
        conds.append(WeeklyAttendance.week_date >= date(year, 1, 1))
        conds.append(WeeklyAttendance.week_date <= date(year, 12, 31))

    total = db.execute(select(func.count(WeeklyAttendance.id)).where(*conds)).scalar() or 0
    rows = (
        db.execute(
            select(WeeklyAttendance)
            .where(*conds)
            .order_by(WeeklyAttendance.week_date.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        .scalars()
        .all()
    )
    return rows, int(total)


def _ensure_week_free(db: Session, church_id: int, week_date: date, exclude_id: Optional[int] = None) -> None:
    stmt = select(WeeklyAttendance.id).where(
        WeeklyAttendance.church_id == church_id,
        WeeklyAttendance.week_date == week_date,
    )
    if exclude_id is not None:
        stmt = stmt.where(WeeklyAttendance.id != exclude_id)
    if db.execute(stmt).first():
        raise DuplicateWeekError(f"A record for week {week_date.isoformat()} already exists; edit it instead.")


def _flush_or_duplicate(db: Session, week_date: date) -> None:
    try:
        db.flush()
    except IntegrityError as e:
        raise DuplicateWeekError(f"A record for week {week_date.isoformat()} already exists.") from e


def create_record(
    db: Session,
    church_id: int,
    data: WeeklyAttendanceCreate,
    *,
    reference_year: Optional[int] = None,
) -> MutationResult:
    def _mutate(_db: Session, church: Church) -> WeeklyAttendance:
        _ensure_week_free(_db, church.id, data.week_date)
        rec = WeeklyAttendance(
            church_id=church.id,
            week_date=data.week_date,
            attendance_count=data.attendance_count,
            notes=data.notes or None,
        )
        _db.add(rec)
        _flush_or_duplicate(_db, data.week_date)
        return rec

    return run_mutation(db, church_id, _mutate, reference_year=reference_year, label="weekly_attendance.create")


def update_record(
    db: Session,
    church_id: int,
    record_id: int,
    data: WeeklyAttendanceUpdate,
    *,
    reference_year: Optional[int] = None,
) -> MutationResult:
    patch = data.model_dump(exclude_unset=True)

    def _mutate(_db: Session, church: Church) -> WeeklyAttendance:
        rec = get_record(_db, church.id, record_id)
        new_week = patch.get("week_date")
        if new_week is not None and new_week != rec.week_date:
            _ensure_week_free(_db, church.id, new_week, exclude_id=rec.id)
            rec.week_date = new_week
        if patch.get("attendance_count") is not None:
            rec.attendance_count = patch["attendance_count"]
        if "notes" in patch:
            rec.notes = patch["notes"] or None
        _flush_or_duplicate(_db, rec.week_date)
        return rec

    return run_mutation(db, church_id, _mutate, reference_year=reference_year, label="weekly_attendance.update")


def delete_record(
    db: Session,
    church_id: int,
    record_id: int,
    *,
    reference_year: Optional[int] = None,
) -> MutationResult:
    def _mutate(_db: Session, church: Church) -> int:
        rec = get_record(_db, church.id, record_id)
        _db.delete(rec)
        return record_id

    return run_mutation(db, church_id, _mutate, reference_year=reference_year, label="weekly_attendance.delete")
