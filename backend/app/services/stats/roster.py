# app/services/stats/roster.py
"""
Roster replacer: swap an event's whole attendee list for a proposed one.

Delete-then-insert inside the caller's transaction. The post-state is
exactly the proposed list; unchanged rows are rewritten too. Validation
runs before anything is deleted, and any later failure rolls back with the
caller's transaction, so a partial roster is never observable.
"""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from app.models.event import Event, EventAttendee
from app.models.member import Member
from app.services.stats.errors import (
    CrossTenantReferenceError,
    DuplicateAttendeeError,
    NotFoundError,
    ValidationError,
)


@dataclass(frozen=True)
class AttendeeEntry:
    member_id: int
    attended: bool = True
    made_faith_decision: bool = False
    notes: Optional[str] = None


@dataclass(frozen=True)
class RosterResult:
    event_id: int
    attendee_count: int
    faith_decision_count: int
    attended_count: int


def check_unique_members(entries: Iterable[AttendeeEntry]) -> None:
    dupes = [mid for mid, n in Counter(e.member_id for e in entries).items() if n > 1]
    if dupes:
        raise DuplicateAttendeeError(dupes)


def check_members_in_church(db: Session, church_id: int, member_ids: Iterable[int]) -> None:
    """Every id must exist and belong to church_id."""
    ids = sorted(set(member_ids))
    if not ids:
        return
    owners: Dict[int, int] = {
        mid: cid
        for mid, cid in db.execute(
            select(Member.id, Member.church_id).where(Member.id.in_(ids))
        ).all()
    }
    for mid in ids:
        if mid not in owners:
            raise NotFoundError("Member", mid)
        if owners[mid] != church_id:
            raise CrossTenantReferenceError("Member", mid, church_id)


def replace_roster(db: Session, event: Event, entries: List[AttendeeEntry]) -> RosterResult:
    """
    Replace event.attendees with `entries`. Flushes but does not commit;
    the stats coordinator owns the transaction.
    """
    for e in entries:
        if e.member_id is None or int(e.member_id) <= 0:
            raise ValidationError("Every attendee needs a positive member_id.")

    check_unique_members(entries)
    check_members_in_church(db, event.church_id, (e.member_id for e in entries))

    db.execute(
        delete(EventAttendee)
        .where(EventAttendee.event_id == event.id)
        .execution_options(synchronize_session="fetch")
    )

    db.add_all(
        [
            EventAttendee(
                event_id=event.id,
                member_id=e.member_id,
                attended=bool(e.attended),
                made_faith_decision=bool(e.made_faith_decision),
                notes=e.notes or None,
            )
            for e in entries
        ]
    )

    result = RosterResult(
        event_id=event.id,
        attendee_count=len(entries),
        faith_decision_count=sum(1 for e in entries if e.made_faith_decision),
        attended_count=sum(1 for e in entries if e.attended),
    )
    # the event counter holds people who actually attended
    event.attendees_count = result.attended_count
    event.faith_decisions = result.faith_decision_count
    db.flush()
    db.expire(event, ["attendees"])
    return result
