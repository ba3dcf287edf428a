# backend/app/api/events.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.dependencies import get_church_scope, get_db, get_reference_year
from app.schemas.event import (
    AttendeeRead,
    EventCreate,
    EventDeleteRead,
    EventDetailRead,
    EventMutationRead,
    EventPage,
    EventRead,
    EventUpdate,
    RosterReplace,
    RosterReplaceRead,
)
from app.schemas.stats import ChurchStatsRead
from app.services import events as svc

router = APIRouter(prefix="/events", tags=["Events"])
logger = logging.getLogger(__name__)

# ─────────────────────────────────────────────────────────────────────────────
# OpenAPI "examples" for the roster body
# ─────────────────────────────────────────────────────────────────────────────
ROSTER_EXAMPLES: Dict[str, Dict[str, Any]] = {
    "replace": {
        "summary": "Full roster",
        "description": "The list replaces every stored attendee of the event.",
        "value": {
            "attendees": [
                {"member_id": 1, "attended": True, "made_faith_decision": True},
                {"member_id": 2, "attended": False, "notes": "Called in sick"},
            ]
        },
    },
    "clear": {
        "summary": "Clear roster",
        "value": {"attendees": []},
    },
}

OPENAPI_ROSTER_EXAMPLES = {
    "requestBody": {
        "content": {
            "application/json": {
                "examples": ROSTER_EXAMPLES
            }
        }
    }
}


@router.get("/", response_model=EventPage)
def list_events(
    event_type: Optional[str] = Query(None, max_length=100),
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=500),
    church_id: int = Depends(get_church_scope),
    db: Session = Depends(get_db),
) -> EventPage:
    rows, total = svc.list_events(
        db, church_id, event_type=event_type, start=start, end=end, page=page, limit=limit
    )
    return EventPage(items=[EventRead.model_validate(e) for e in rows], total=total, page=page, limit=limit)


@router.get("/{event_id}", response_model=EventDetailRead)
def get_event(
    event_id: int,
    church_id: int = Depends(get_church_scope),
    db: Session = Depends(get_db),
) -> EventDetailRead:
    ev = svc.get_event(db, church_id, event_id)
    return EventDetailRead.model_validate(ev)


@router.post("/", response_model=EventMutationRead, status_code=201)
def create_event(
    data: EventCreate,
    church_id: int = Depends(get_church_scope),
    reference_year: int = Depends(get_reference_year),
    db: Session = Depends(get_db),
) -> EventMutationRead:
    logger.info("create_event church_id=%s type=%s start=%s", church_id, data.event_type, data.start_date)
    result = svc.create_event(db, church_id, data, reference_year=reference_year)
    return EventMutationRead(
        event=EventRead.model_validate(result.value),
        stats=ChurchStatsRead.from_snapshot(result.snapshot),
    )


@router.patch("/{event_id}", response_model=EventMutationRead)
def update_event(
    event_id: int,
    data: EventUpdate,
    church_id: int = Depends(get_church_scope),
    reference_year: int = Depends(get_reference_year),
    db: Session = Depends(get_db),
) -> EventMutationRead:
    logger.info("update_event id=%s fields=%s", event_id, sorted(data.model_fields_set))
    result = svc.update_event(db, church_id, event_id, data, reference_year=reference_year)
    return EventMutationRead(
        event=EventRead.model_validate(result.value),
        stats=ChurchStatsRead.from_snapshot(result.snapshot),
    )


@router.delete("/{event_id}", response_model=EventDeleteRead)
def delete_event(
    event_id: int,
    church_id: int = Depends(get_church_scope),
    reference_year: int = Depends(get_reference_year),
    db: Session = Depends(get_db),
) -> EventDeleteRead:
    logger.info("delete_event id=%s church_id=%s", event_id, church_id)
    result = svc.delete_event(db, church_id, event_id, reference_year=reference_year)
    return EventDeleteRead(deleted_id=result.value, stats=ChurchStatsRead.from_snapshot(result.snapshot))


# =========== ATTENDEES ===========

@router.get("/{event_id}/attendees", response_model=List[AttendeeRead])
def list_attendees(
    event_id: int,
    church_id: int = Depends(get_church_scope),
    db: Session = Depends(get_db),
) -> List[AttendeeRead]:
    return [AttendeeRead.model_validate(a) for a in svc.list_attendees(db, church_id, event_id)]


@router.put(
    "/{event_id}/attendees",
    response_model=RosterReplaceRead,
    openapi_extra=OPENAPI_ROSTER_EXAMPLES,
)
def replace_attendees(
    event_id: int,
    payload: RosterReplace,
    church_id: int = Depends(get_church_scope),
    reference_year: int = Depends(get_reference_year),
    db: Session = Depends(get_db),
) -> RosterReplaceRead:
    """
    Replace the event's whole roster (delete-then-insert, one transaction).
    Repeating the same body is harmless; a different body overwrites.
    """
    logger.info("replace_attendees event_id=%s size=%s", event_id, len(payload.attendees))
    result = svc.replace_attendees(db, church_id, event_id, payload.attendees, reference_year=reference_year)
    roster = result.value
    return RosterReplaceRead(
        event_id=roster.event_id,
        attendee_count=roster.attendee_count,
        faith_decision_count=roster.faith_decision_count,
        attended_count=roster.attended_count,
        stats=ChurchStatsRead.from_snapshot(result.snapshot),
    )
