from __future__ import annotations

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.church import AGGREGATE_FIELDS, Church
from app.schemas.church import ChurchCreate, ChurchUpdate
from app.services.stats import MutationResult, NotFoundError, run_mutation


def create_church(db: Session, data: ChurchCreate) -> Church:
    # aggregates start at their column defaults until the first recompute
    church = Church(**data.model_dump())
    db.add(church)
    db.commit()
    db.refresh(church)
    return church


def get_church(db: Session, church_id: int) -> Church:
    church = db.get(Church, church_id)
    if church is None:
        raise NotFoundError("Church", church_id)
    return church


def list_churches(db: Session) -> List[Church]:
    return db.execute(select(Church).order_by(Church.name, Church.id)).scalars().all()


def update_church(
    db: Session,
    church_id: int,
    data: ChurchUpdate,
    *,
    reference_year: Optional[int] = None,
) -> MutationResult:
    """
    Update descriptive fields. attendance_window_weeks feeds the average,
    so the update goes through the stats coordinator like any other source
    change. Aggregate columns are never taken from the payload.
    """
    patch = {
        k: v for k, v in data.model_dump(exclude_unset=True).items()
        if k not in AGGREGATE_FIELDS
    }

    def _mutate(_db: Session, church: Church) -> Church:
        for k, v in patch.items():
            setattr(church, k, v)
        return church

    return run_mutation(db, church_id, _mutate, reference_year=reference_year, label="church.update")


def delete_church(db: Session, church_id: int) -> None:
    """Full tenant deletion; cascades to members, attendance, events and rosters."""
    church = get_church(db, church_id)
    db.delete(church)
    db.commit()
