# app/services/stats/recompute.py
"""
Aggregate recomputer: derive every church statistic from the source tables.

Pure read. Given a church id, a reference year and a counting policy it
returns an AggregateSnapshot; it never writes. Running it twice with no
mutation in between yields equal snapshots.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, FrozenSet, List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app import config
from app.models.church import Church
from app.models.event import Event, EventAttendee
from app.models.member import ChurchRole, Member, MemberType
from app.models.weekly_attendance import WeeklyAttendance
from app.services.stats.errors import NotFoundError, ValidationError


@dataclass(frozen=True)
class StatsPolicy:
    """How counts are taken. membership_types=None counts every member type."""
    membership_types: Optional[FrozenSet[MemberType]] = None
    attendance_window_weeks: Optional[int] = None

    @classmethod
    def from_config(cls, church: Optional[Church] = None) -> "StatsPolicy":
        raw = config.membership_count_types()
        types: Optional[FrozenSet[MemberType]] = None
        if raw is not None:
            try:
                types = frozenset(MemberType(t) for t in raw)
            except ValueError as e:
                raise ValidationError(f"MEMBERSHIP_COUNT_TYPES has an unknown member type: {e}") from e
        window = church.attendance_window_weeks if church is not None else None
        return cls(membership_types=types, attendance_window_weeks=window)


@dataclass(frozen=True)
class AggregateSnapshot:
    church_id: int
    reference_year: int
    membership_count: int = 0
    avg_weekly_attendance: int = 0
    faith_decisions_year: int = 0
    ordained_preachers: int = 0
    unordained_preachers: int = 0
    ordained_deacons: int = 0
    unordained_deacons: int = 0
    weeks_counted: int = field(default=0, compare=False)

    def column_values(self) -> Dict[str, int]:
        """Values for the churches aggregate columns."""
        return {
            "membership_count": self.membership_count,
            "avg_weekly_attendance": self.avg_weekly_attendance,
            "faith_decisions_year": self.faith_decisions_year,
            "faith_decisions_ref_year": self.reference_year,
            "ordained_preachers": self.ordained_preachers,
            "unordained_preachers": self.unordained_preachers,
            "ordained_deacons": self.ordained_deacons,
            "unordained_deacons": self.unordained_deacons,
        }

    def as_dict(self) -> Dict[str, int]:
        return asdict(self)


# ---------------------------------------------------------------------------
# Individual aggregates
# ---------------------------------------------------------------------------

def round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def mean_rounded(counts: List[int]) -> int:
    """Arithmetic mean rounded half-up; 0 for an empty list."""
    if not counts:
        return 0
    return round_half_up(Decimal(sum(counts)) / Decimal(len(counts)))


def count_members(db: Session, church_id: int, types: Optional[FrozenSet[MemberType]] = None) -> int:
    stmt = select(func.count(Member.id)).where(Member.church_id == church_id)
    if types is not None:
        if not types:
            return 0
        stmt = stmt.where(Member.member_type.in_(sorted(types, key=lambda t: t.value)))
    return int(db.execute(stmt).scalar() or 0)


def weekly_attendance_counts(db: Session, church_id: int, window: Optional[int] = None) -> List[int]:
    """Attendance counts, newest week first; the most recent `window` when set."""
    stmt = (
        select(WeeklyAttendance.attendance_count)
        .where(WeeklyAttendance.church_id == church_id)
        .order_by(WeeklyAttendance.week_date.desc())
    )
    if window:
        stmt = stmt.limit(window)
    return [int(c or 0) for c in db.execute(stmt).scalars().all()]


def year_bounds(year: int) -> tuple[datetime, datetime]:
    """[Jan 1 of year, Jan 1 of year+1)"""
    return datetime(year, 1, 1), datetime(year + 1, 1, 1)


def count_faith_decisions(db: Session, church_id: int, year: int) -> int:
    start, end = year_bounds(year)
    stmt = (
        select(func.count(EventAttendee.id))
        .join(Event, Event.id == EventAttendee.event_id)
        .where(
            Event.church_id == church_id,
            EventAttendee.made_faith_decision.is_(True),
            Event.start_date >= start,
            Event.start_date < end,
        )
    )
    return int(db.execute(stmt).scalar() or 0)


def count_roles(db: Session, church_id: int) -> Dict[ChurchRole, int]:
    rows = db.execute(
        select(Member.church_role, func.count(Member.id))
        .where(Member.church_id == church_id, Member.church_role.is_not(None))
        .group_by(Member.church_role)
    ).all()
    counts = {role: 0 for role in ChurchRole}
    for role, n in rows:
        counts[ChurchRole(role)] = int(n or 0)
    return counts


# ---------------------------------------------------------------------------
# Full snapshot
# ---------------------------------------------------------------------------

def recompute_church_stats(
    db: Session,
    church_id: int,
    *,
    reference_year: int,
    policy: Optional[StatsPolicy] = None,
) -> AggregateSnapshot:
    """Compute the full aggregate snapshot for one church from its source rows."""
    if policy is None:
        church = db.get(Church, church_id)
        if church is None:
            raise NotFoundError("Church", church_id)
        policy = StatsPolicy.from_config(church)

    counts = weekly_attendance_counts(db, church_id, policy.attendance_window_weeks)
    roles = count_roles(db, church_id)

    return AggregateSnapshot(
        church_id=church_id,
        reference_year=reference_year,
        membership_count=count_members(db, church_id, policy.membership_types),
        avg_weekly_attendance=mean_rounded(counts),
        faith_decisions_year=count_faith_decisions(db, church_id, reference_year),
        ordained_preachers=roles[ChurchRole.ORDAINED_PREACHER],
        unordained_preachers=roles[ChurchRole.UNORDAINED_PREACHER],
        ordained_deacons=roles[ChurchRole.ORDAINED_DEACON],
        unordained_deacons=roles[ChurchRole.UNORDAINED_DEACON],
        weeks_counted=len(counts),
    )


def snapshot_from_church(church: Church) -> AggregateSnapshot:
    """Read the stored aggregate columns back as a snapshot (no recompute)."""
    return AggregateSnapshot(
        church_id=church.id,
        reference_year=church.faith_decisions_ref_year or config.reference_year(),
        membership_count=church.membership_count or 0,
        avg_weekly_attendance=church.avg_weekly_attendance or 0,
        faith_decisions_year=church.faith_decisions_year or 0,
        ordained_preachers=church.ordained_preachers or 0,
        unordained_preachers=church.unordained_preachers or 0,
        ordained_deacons=church.ordained_deacons or 0,
        unordained_deacons=church.unordained_deacons or 0,
    )
