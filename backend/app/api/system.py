# app/api/system.py
from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from app import config
from app.dependencies import get_db

router = APIRouter(tags=["ops"])


def _db_driver_from_url(url: str | None) -> str | None:
    if not url or "://" not in url:
        return None
    scheme = url.split("://", 1)[0]  # e.g., "postgresql+psycopg2"
    if "+" in scheme:
        return scheme.split("+", 1)[1]  # "psycopg2"
    return scheme  # fallback


@router.get("/health")
def health(db: Session = Depends(get_db)):
    """Liveness check with a lightweight DB probe."""
    status = {"status": "ok", "driver": _db_driver_from_url(config.database_url())}
    try:
        db.execute(text("SELECT 1"))
    except Exception as e:  # report, don't raise: this endpoint is the probe
        status["status"] = f"error: {type(e).__name__}"

    return {
        "status": "ok",
        "time": datetime.now().isoformat(timespec="seconds"),
        "db": status,
    }


@router.get("/version")
def version():
    """Minimal runtime info."""
    return {
        "app": "Church Stats Backend",
        "db_driver": _db_driver_from_url(config.database_url()),
        "reference_year": config.reference_year(),
    }
