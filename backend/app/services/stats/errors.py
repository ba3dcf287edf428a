# app/services/stats/errors.py
"""
Error taxonomy for the church stats engine.

Every error carries a `category` (stable, machine-readable) and the HTTP
status the API layer renders it with. Raw SQLAlchemy/driver errors are
translated here and never reach clients.
"""
from __future__ import annotations

from typing import Iterable, Optional

from sqlalchemy.exc import DBAPIError, OperationalError

# PostgreSQL SQLSTATEs
_PG_SERIALIZATION_FAILURE = "40001"
_PG_DEADLOCK_DETECTED = "40P01"
_PG_LOCK_NOT_AVAILABLE = "55P03"
_PG_QUERY_CANCELED = "57014"  # statement_timeout / lock_timeout


class StatsError(Exception):
    category = "stats_error"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(StatsError):
    """Malformed input (missing field, bad range, bad reference)."""
    category = "validation_error"
    status_code = 422


class DuplicateAttendeeError(ValidationError):
    category = "duplicate_attendee"

    def __init__(self, member_ids: Iterable[int]):
        self.member_ids = sorted(set(member_ids))
        ids = ", ".join(str(i) for i in self.member_ids)
        super().__init__(f"Roster lists the same member more than once: {ids}")


class CrossTenantReferenceError(ValidationError):
    category = "cross_tenant_reference"

    def __init__(self, entity: str, entity_id: int, church_id: int):
        self.entity = entity
        self.entity_id = entity_id
        self.church_id = church_id
        super().__init__(f"{entity} {entity_id} does not belong to church {church_id}")


class NotFoundError(StatsError):
    category = "not_found"
    status_code = 404

    def __init__(self, entity: str, entity_id: object):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")


class DuplicateWeekError(StatsError):
    category = "duplicate_week"
    status_code = 409


class ConcurrencyConflictError(StatsError):
    """Lock or serialization conflict. Safe to retry."""
    category = "concurrency_conflict"
    status_code = 409


class StorageTimeoutError(StatsError):
    """Statement/transaction timeout from the storage driver. Not retried."""
    category = "storage_timeout"
    status_code = 503


def _pgcode(exc: DBAPIError) -> Optional[str]:
    orig = getattr(exc, "orig", None)
    return getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)


def translate_db_error(exc: DBAPIError) -> Optional[StatsError]:
    """
    Map a driver error to ConcurrencyConflictError / StorageTimeoutError.

    Returns None when the error is not one of those kinds; the caller then
    re-raises the original.
    """
    code = _pgcode(exc)
    if code in (_PG_SERIALIZATION_FAILURE, _PG_DEADLOCK_DETECTED, _PG_LOCK_NOT_AVAILABLE):
        return ConcurrencyConflictError(f"Concurrent update conflict ({code}); try again.")
    if code == _PG_QUERY_CANCELED:
        return StorageTimeoutError("The database did not answer in time.")

    if isinstance(exc, OperationalError):
        text = str(getattr(exc, "orig", exc)).lower()
        if "database is locked" in text or "deadlock" in text:
            return ConcurrencyConflictError("Database is busy; try again.")
        if "timeout" in text or "timed out" in text:
            return StorageTimeoutError("The database did not answer in time.")
    return None
