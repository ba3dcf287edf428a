from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from app.dependencies import get_db, get_reference_year
from app.schemas.church import ChurchCreate, ChurchRead, ChurchUpdate
from app.schemas.stats import ChurchStatsRead
from app.services import churches as svc
from app.services.stats import read_church_stats, refresh_church_stats

router = APIRouter(prefix="/churches", tags=["Churches"])
logger = logging.getLogger(__name__)


@router.post("/", response_model=ChurchRead, status_code=201)
def create_church(data: ChurchCreate, db: Session = Depends(get_db)):
    return svc.create_church(db, data)


@router.get("/", response_model=List[ChurchRead])
def list_churches(db: Session = Depends(get_db)):
    return svc.list_churches(db)


@router.get("/{church_id}", response_model=ChurchRead)
def get_church(church_id: int, db: Session = Depends(get_db)):
    return svc.get_church(db, church_id)


@router.patch("/{church_id}", response_model=ChurchRead)
def update_church(
    church_id: int,
    data: ChurchUpdate,
    db: Session = Depends(get_db),
    reference_year: int = Depends(get_reference_year),
):
    result = svc.update_church(db, church_id, data, reference_year=reference_year)
    return ChurchRead.model_validate(result.value)


# 204 must have no body; use Response explicitly
@router.delete("/{church_id}", status_code=204, response_class=Response)
def delete_church(church_id: int, db: Session = Depends(get_db)) -> Response:
    logger.info("delete_church id=%s", church_id)
    svc.delete_church(db, church_id)
    return Response(status_code=204)


# ---- Aggregates ---------------------------------------------------------------

@router.get("/{church_id}/stats", response_model=ChurchStatsRead)
def get_church_stats(church_id: int, db: Session = Depends(get_db)) -> ChurchStatsRead:
    """Stored aggregates. Reading never triggers a recompute."""
    return ChurchStatsRead.from_snapshot(read_church_stats(db, church_id))


@router.post("/{church_id}/stats/refresh", response_model=ChurchStatsRead)
def refresh_stats(
    church_id: int,
    db: Session = Depends(get_db),
    reference_year: int = Depends(get_reference_year),
) -> ChurchStatsRead:
    """Recompute from source rows and persist (first population or repair)."""
    logger.info("refresh_stats church_id=%s year=%s", church_id, reference_year)
    return ChurchStatsRead.from_snapshot(
        refresh_church_stats(db, church_id, reference_year=reference_year)
    )
