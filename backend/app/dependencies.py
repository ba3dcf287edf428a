"""
Shared FastAPI dependency helpers.

`get_db` provides a SQLAlchemy session per request and closes it afterward.
`get_church_scope` reads the tenant the auth layer resolved for the caller
(the `X-Church-Id` header); this service performs no authorization of its
own. `get_reference_year` lets a request pin the faith-decision year.
"""

from typing import Generator, Optional

from fastapi import Header, HTTPException, Query, status
from sqlalchemy.orm import Session

from app import config
from app.db import SessionLocal  # noqa: E402


def get_db() -> Generator[Session, None, None]:
    """Yield a database session and close it after the request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_church_scope(
    church_id: Optional[int] = Header(default=None, alias="X-Church-Id"),
) -> int:
    """Current tenant (church) id, supplied upstream by the auth layer."""
    if church_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing X-Church-Id")
    if church_id <= 0:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid X-Church-Id")
    return church_id


def get_reference_year(
    reference_year: Optional[int] = Query(
        None, ge=1900, le=2999, description="Year for faith_decisions_year; default from config"
    ),
) -> int:
    return reference_year or config.reference_year()
