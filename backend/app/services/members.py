# app/services/members.py
"""
Member CRUD. Every write goes through the stats coordinator, which
recomputes membership_count, the role counters and (on delete, since
attendee rows go with the member) faith_decisions_year.
"""
from __future__ import annotations

from typing import List, Optional, Tuple

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.orm import Session

from app.models.church import Church
from app.models.event import Event, EventAttendee
from app.models.member import ChurchRole, Member, MemberType
from app.schemas.member import MemberCreate, MemberUpdate
from app.services.stats import MutationResult, NotFoundError, run_mutation

_EVENT_ROLE_COLUMNS = ("preacher_id", "worship_leader_id", "singer_id")


def get_member(db: Session, church_id: int, member_id: int) -> Member:
    """Member of this church; members of other churches read as not found."""
    member = db.get(Member, member_id)
    if member is None or member.church_id != church_id:
        raise NotFoundError("Member", member_id)
    return member


def list_members(
    db: Session,
    church_id: int,
    *,
    member_type: Optional[MemberType] = None,
    church_role: Optional[ChurchRole] = None,
    baptized: Optional[bool] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
) -> Tuple[List[Member], int]:
    conds = [Member.church_id == church_id]
    if member_type is not None:
        conds.append(Member.member_type == member_type)
    if church_role is not None:
        conds.append(Member.church_role == church_role)
    if baptized is not None:
        conds.append(Member.baptized.is_(baptized))
    if search:
        like = f"%{search.strip()}%"
        conds.append(
            or_(
                Member.first_name.ilike(like),
                Member.last_name.ilike(like),
                Member.email.ilike(like),
            )
        )

    total = db.execute(select(func.count(Member.id)).where(*conds)).scalar() or 0
    rows = (
        db.execute(
            select(Member)
            .where(*conds)
            .order_by(Member.last_name, Member.first_name, Member.id)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        .scalars()
        .all()
    )
    return rows, int(total)


def create_member(
    db: Session,
    church_id: int,
    data: MemberCreate,
    *,
    reference_year: Optional[int] = None,
) -> MutationResult:
    values = data.model_dump()

    def _mutate(_db: Session, church: Church) -> Member:
        member = Member(church_id=church.id, **values)
        _db.add(member)
        return member

    return run_mutation(db, church_id, _mutate, reference_year=reference_year, label="member.create")


def update_member(
    db: Session,
    church_id: int,
    member_id: int,
    data: MemberUpdate,
    *,
    reference_year: Optional[int] = None,
) -> MutationResult:
    patch = data.model_dump(exclude_unset=True)
    # required columns cannot be cleared by sending null
    for k in ("first_name", "last_name", "member_type", "baptized"):
        if k in patch and patch[k] is None:
            patch.pop(k)

    def _mutate(_db: Session, church: Church) -> Member:
        member = get_member(_db, church.id, member_id)
        for k, v in patch.items():
            setattr(member, k, v)
        return member

    return run_mutation(db, church_id, _mutate, reference_year=reference_year, label="member.update")


def _recount_event_rosters(db: Session, event_ids: List[int]) -> None:
    for event_id in event_ids:
        attended, faith = db.execute(
            select(
                func.count(EventAttendee.id).filter(EventAttendee.attended.is_(True)),
                func.count(EventAttendee.id).filter(EventAttendee.made_faith_decision.is_(True)),
            ).where(EventAttendee.event_id == event_id)
        ).one()
        db.execute(
            update(Event)
            .where(Event.id == event_id)
            .values(attendees_count=int(attended or 0), faith_decisions=int(faith or 0))
        )


def delete_member(
    db: Session,
    church_id: int,
    member_id: int,
    *,
    reference_year: Optional[int] = None,
) -> MutationResult:
    """
    Delete a member. Its attendee rows are removed with it (and the affected
    events' roster counters refreshed); service-role assignments pointing at
    it are cleared.
    """

    def _mutate(_db: Session, church: Church) -> int:
        member = get_member(_db, church.id, member_id)

        event_ids = (
            _db.execute(
                select(EventAttendee.event_id)
                .where(EventAttendee.member_id == member.id)
                .distinct()
            )
            .scalars()
            .all()
        )
        _db.execute(
            delete(EventAttendee)
            .where(EventAttendee.member_id == member.id)
            .execution_options(synchronize_session="fetch")
        )
        _recount_event_rosters(_db, sorted(event_ids))

        for column in _EVENT_ROLE_COLUMNS:
            _db.execute(
                update(Event)
                .where(getattr(Event, column) == member.id)
                .values({column: None})
                .execution_options(synchronize_session="fetch")
            )

        _db.delete(member)
        return member_id

    return run_mutation(db, church_id, _mutate, reference_year=reference_year, label="member.delete")
