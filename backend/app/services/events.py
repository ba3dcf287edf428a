# app/services/events.py
"""
Events and their attendee rosters.

An event's date decides which year its faith decisions count toward, so
event create/update/delete go through the stats coordinator as well as the
roster replace.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.models.church import Church
from app.models.event import SERVICE_EVENT_TYPE, Event, EventAttendee
from app.models.member import Member
from app.schemas.event import AttendeeIn, EventCreate, EventUpdate, to_naive_utc
from app.services.stats import (
    AttendeeEntry,
    CrossTenantReferenceError,
    MutationResult,
    NotFoundError,
    ValidationError,
    replace_roster,
    run_mutation,
)

ROLE_FIELDS = ("preacher_id", "worship_leader_id", "singer_id")


# ─────────────────────────────────────────────────────────────────────────────
# Utilities
# ─────────────────────────────────────────────────────────────────────────────

def is_service(event_type: Optional[str]) -> bool:
    return (event_type or "").strip().lower() == SERVICE_EVENT_TYPE


def _check_role_members(db: Session, church_id: int, values: Dict[str, Any]) -> None:
    for field in ROLE_FIELDS:
        member_id = values.get(field)
        if member_id is None:
            continue
        member = db.get(Member, member_id)
        if member is None:
            raise NotFoundError("Member", member_id)
        if member.church_id != church_id:
            raise CrossTenantReferenceError("Member", member_id, church_id)


def _apply_role_rules(values: Dict[str, Any], event_type: Optional[str]) -> None:
    """Role assignments only exist on service events."""
    if not is_service(event_type):
        for field in ROLE_FIELDS:
            values[field] = None


def get_event(db: Session, church_id: int, event_id: int) -> Event:
    ev = db.get(Event, event_id)
    if ev is None or ev.church_id != church_id:
        raise NotFoundError("Event", event_id)
    return ev


def list_events(
    db: Session,
    church_id: int,
    *,
    event_type: Optional[str] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    page: int = 1,
    limit: int = 20,
) -> Tuple[List[Event], int]:
    conds = [Event.church_id == church_id]
    if event_type:
        conds.append(func.lower(Event.event_type) == event_type.strip().lower())
    start, end = to_naive_utc(start), to_naive_utc(end)
    if start is not None:
        conds.append(Event.start_date >= start)
    if end is not None:
        conds.append(Event.start_date <= end)

    total = db.execute(select(func.count(Event.id)).where(*conds)).scalar() or 0
    rows = (
        db.execute(
            select(Event)
            .where(*conds)
            .order_by(Event.start_date.desc(), Event.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        .scalars()
        .all()
    )
    return rows, int(total)


def list_attendees(db: Session, church_id: int, event_id: int) -> List[EventAttendee]:
    get_event(db, church_id, event_id)
    return (
        db.execute(
            select(EventAttendee)
            .where(EventAttendee.event_id == event_id)
            .order_by(EventAttendee.id)
        )
        .scalars()
        .all()
    )


# ─────────────────────────────────────────────────────────────────────────────
# Mutations (all through the coordinator)
# ─────────────────────────────────────────────────────────────────────────────

def create_event(
    db: Session,
    church_id: int,
    data: EventCreate,
    *,
    reference_year: Optional[int] = None,
) -> MutationResult:
    values = data.model_dump()
    _apply_role_rules(values, values.get("event_type"))

    def _mutate(_db: Session, church: Church) -> Event:
        _check_role_members(_db, church.id, values)
        ev = Event(church_id=church.id, **values)
        _db.add(ev)
        return ev

    return run_mutation(db, church_id, _mutate, reference_year=reference_year, label="event.create")


def update_event(
    db: Session,
    church_id: int,
    event_id: int,
    data: EventUpdate,
    *,
    reference_year: Optional[int] = None,
) -> MutationResult:
    patch = data.model_dump(exclude_unset=True)
    for k in ("title", "start_date"):
        if k in patch and patch[k] is None:
            patch.pop(k)

    def _mutate(_db: Session, church: Church) -> Event:
        ev = get_event(_db, church.id, event_id)
        merged = {f: getattr(ev, f) for f in ROLE_FIELDS}
        merged.update(patch)
        event_type = merged.get("event_type", ev.event_type)
        _apply_role_rules(merged, event_type)
        _check_role_members(_db, church.id, merged)

        start = merged.get("start_date", ev.start_date)
        end = merged.get("end_date", ev.end_date)
        if end is not None and end < start:
            raise ValidationError("end_date must not be before start_date")

        for k, v in merged.items():
            setattr(ev, k, v)
        return ev

    return run_mutation(db, church_id, _mutate, reference_year=reference_year, label="event.update")


def delete_event(
    db: Session,
    church_id: int,
    event_id: int,
    *,
    reference_year: Optional[int] = None,
) -> MutationResult:
    def _mutate(_db: Session, church: Church) -> int:
        ev = get_event(_db, church.id, event_id)
        # loads the roster so the ORM cascade removes it on every backend
        _ = ev.attendees
        _db.delete(ev)
        return event_id

    return run_mutation(db, church_id, _mutate, reference_year=reference_year, label="event.delete")


def replace_attendees(
    db: Session,
    church_id: int,
    event_id: int,
    attendees: List[AttendeeIn],
    *,
    reference_year: Optional[int] = None,
) -> MutationResult:
    """Replace the whole roster; value is a RosterResult."""
    entries = [
        AttendeeEntry(
            member_id=a.member_id,
            attended=a.attended,
            made_faith_decision=a.made_faith_decision,
            notes=a.notes,
        )
        for a in attendees
    ]

    def _mutate(_db: Session, church: Church):
        ev = get_event(_db, church.id, event_id)
        return replace_roster(_db, ev, entries)

    return run_mutation(db, church_id, _mutate, reference_year=reference_year, label="event.roster")
