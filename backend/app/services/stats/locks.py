from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Iterator

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.church import Church
from app.services.stats.errors import ConcurrencyConflictError, NotFoundError

# ----------------------------
# In-process lock per church
# ----------------------------

_registry_guard = threading.Lock()
_church_locks: Dict[int, threading.Lock] = {}


def _lock_for(church_id: int) -> threading.Lock:
    with _registry_guard:
        lock = _church_locks.get(church_id)
        if lock is None:
            lock = threading.Lock()
            _church_locks[church_id] = lock
        return lock


@contextmanager
def church_lock(church_id: int, timeout: float) -> Iterator[None]:
    """
    Serialize mutating work on one church inside this process.
    Different churches never share a lock.
    """
    lock = _lock_for(church_id)
    if not lock.acquire(timeout=timeout):
        raise ConcurrencyConflictError(f"Church {church_id} is busy; try again shortly.")
    try:
        yield
    finally:
        lock.release()


# ----------------------------
# Row lock (cross-process)
# ----------------------------

def lock_church_row(db: Session, church_id: int) -> Church:
    """
    SELECT ... FOR UPDATE on the church row, held until commit/rollback.
    SQLite has no row locks; there the in-process lock is the only guard.
    """
    church = (
        db.execute(
            select(Church).where(Church.id == church_id).with_for_update()
        )
        .scalars()
        .first()
    )
    if church is None:
        raise NotFoundError("Church", church_id)
    return church
