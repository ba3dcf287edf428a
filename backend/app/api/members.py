# backend/app/api/members.py
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.dependencies import get_church_scope, get_db, get_reference_year
from app.models.member import ChurchRole, MemberType
from app.schemas.member import (
    MemberCreate,
    MemberDeleteRead,
    MemberMutationRead,
    MemberPage,
    MemberRead,
    MemberUpdate,
)
from app.schemas.stats import ChurchStatsRead
from app.services import members as svc

router = APIRouter(prefix="/members", tags=["Members"])
logger = logging.getLogger(__name__)


@router.get("/", response_model=MemberPage)
def list_members(
    member_type: Optional[MemberType] = None,
    church_role: Optional[ChurchRole] = None,
    baptized: Optional[bool] = None,
    search: Optional[str] = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=500),
    church_id: int = Depends(get_church_scope),
    db: Session = Depends(get_db),
) -> MemberPage:
    rows, total = svc.list_members(
        db,
        church_id,
        member_type=member_type,
        church_role=church_role,
        baptized=baptized,
        search=search,
        page=page,
        limit=limit,
    )
    return MemberPage(
        items=[MemberRead.model_validate(m) for m in rows], total=total, page=page, limit=limit
    )


@router.get("/{member_id}", response_model=MemberRead)
def get_member(
    member_id: int,
    church_id: int = Depends(get_church_scope),
    db: Session = Depends(get_db),
):
    return svc.get_member(db, church_id, member_id)


@router.post("/", response_model=MemberMutationRead, status_code=201)
def create_member(
    data: MemberCreate,
    church_id: int = Depends(get_church_scope),
    reference_year: int = Depends(get_reference_year),
    db: Session = Depends(get_db),
) -> MemberMutationRead:
    logger.info("create_member church_id=%s type=%s role=%s", church_id, data.member_type, data.church_role)
    result = svc.create_member(db, church_id, data, reference_year=reference_year)
    return MemberMutationRead(
        member=MemberRead.model_validate(result.value),
        stats=ChurchStatsRead.from_snapshot(result.snapshot),
    )


@router.patch("/{member_id}", response_model=MemberMutationRead)
def update_member(
    member_id: int,
    data: MemberUpdate,
    church_id: int = Depends(get_church_scope),
    reference_year: int = Depends(get_reference_year),
    db: Session = Depends(get_db),
) -> MemberMutationRead:
    logger.info("update_member id=%s fields=%s", member_id, sorted(data.model_fields_set))
    result = svc.update_member(db, church_id, member_id, data, reference_year=reference_year)
    return MemberMutationRead(
        member=MemberRead.model_validate(result.value),
        stats=ChurchStatsRead.from_snapshot(result.snapshot),
    )


@router.delete("/{member_id}", response_model=MemberDeleteRead)
def delete_member(
    member_id: int,
    church_id: int = Depends(get_church_scope),
    reference_year: int = Depends(get_reference_year),
    db: Session = Depends(get_db),
) -> MemberDeleteRead:
    logger.info("delete_member id=%s church_id=%s", member_id, church_id)
    result = svc.delete_member(db, church_id, member_id, reference_year=reference_year)
    return MemberDeleteRead(deleted_id=result.value, stats=ChurchStatsRead.from_snapshot(result.snapshot))
