# app/services/stats/coordinator.py
"""
Stats coordinator: the single write path for church aggregate columns.

Every mutation of members, weekly attendance, events or an event roster is
handed to `run_mutation` as a callable. Within one transaction it

    started -> source_mutated -> recomputed -> persisted -> acknowledged

i.e. takes the church lock, applies the mutation, recomputes the full
snapshot from the (uncommitted) source rows, writes the aggregate columns
and commits. Any failure after `started` rolls the whole transaction back,
so the church keeps its pre-request state.

Same-church requests are serialized twice: a per-church lock inside the
process and SELECT ... FOR UPDATE on the church row across processes.
Only ConcurrencyConflictError is retried (bounded, with backoff).
"""
from __future__ import annotations

import enum
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Generic, Optional, Tuple, TypeVar

from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.orm import Session

from app import config
from app.models.church import Church
from app.services.stats.errors import (
    ConcurrencyConflictError,
    NotFoundError,
    ValidationError,
    translate_db_error,
)
from app.services.stats.locks import church_lock, lock_church_row
from app.services.stats.recompute import (
    AggregateSnapshot,
    StatsPolicy,
    recompute_church_stats,
    snapshot_from_church,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# A mutation receives the session and the locked church row. It may add,
# change or delete source rows but must not commit.
Mutation = Callable[[Session, Church], T]


class Stage(str, enum.Enum):
    STARTED = "started"
    SOURCE_MUTATED = "source_mutated"
    RECOMPUTED = "recomputed"
    PERSISTED = "persisted"
    ACKNOWLEDGED = "acknowledged"


@dataclass(frozen=True)
class MutationResult(Generic[T]):
    value: T
    snapshot: AggregateSnapshot
    attempts: int = 1


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _persist_snapshot(church: Church, snapshot: AggregateSnapshot) -> None:
    for column, value in snapshot.column_values().items():
        setattr(church, column, value)
    church.stats_updated_at = _utcnow()


def _run_once(
    db: Session,
    church_id: int,
    mutate: Mutation,
    reference_year: int,
    label: str,
) -> Tuple[T, AggregateSnapshot]:
    stage = Stage.STARTED
    with church_lock(church_id, config.stats_lock_timeout_s()):
        # rollback happens before the lock is released
        try:
            church = lock_church_row(db, church_id)

            value = mutate(db, church)
            db.flush()
            stage = Stage.SOURCE_MUTATED

            snapshot = recompute_church_stats(
                db,
                church_id,
                reference_year=reference_year,
                policy=StatsPolicy.from_config(church),
            )
            stage = Stage.RECOMPUTED

            _persist_snapshot(church, snapshot)
            db.flush()
            stage = Stage.PERSISTED

            db.commit()
        except IntegrityError as e:
            db.rollback()
            logger.info("%s rolled back at %s (church_id=%s): integrity error", label, stage.value, church_id)
            raise ValidationError("The change conflicts with existing records.") from e
        except DBAPIError as e:
            db.rollback()
            logger.warning(
                "%s rolled back at %s (church_id=%s): %s", label, stage.value, church_id, type(e).__name__
            )
            translated = translate_db_error(e)
            if translated is not None:
                raise translated from e
            raise
        except BaseException:
            # includes cancellation: nothing partial survives
            db.rollback()
            logger.info("%s rolled back at %s (church_id=%s)", label, stage.value, church_id)
            raise

    logger.info(
        "%s %s church_id=%s members=%s avg_weekly=%s faith_%s=%s roles=%s/%s/%s/%s",
        label,
        Stage.ACKNOWLEDGED.value,
        church_id,
        snapshot.membership_count,
        snapshot.avg_weekly_attendance,
        snapshot.reference_year,
        snapshot.faith_decisions_year,
        snapshot.ordained_preachers,
        snapshot.unordained_preachers,
        snapshot.ordained_deacons,
        snapshot.unordained_deacons,
    )
    return value, snapshot


def run_mutation(
    db: Session,
    church_id: int,
    mutate: Mutation,
    *,
    reference_year: Optional[int] = None,
    label: str = "mutation",
) -> MutationResult:
    """
    Apply `mutate` and refresh the church aggregates as one unit.

    Returns the mutation's value and the fresh snapshot. Retries only
    ConcurrencyConflictError, up to STATS_MAX_ATTEMPTS with exponential
    backoff; everything else surfaces on the first failure.
    """
    year = reference_year or config.reference_year()
    max_attempts = config.stats_max_attempts()
    backoff_s = config.stats_retry_backoff_ms() / 1000.0

    attempt = 1
    while True:
        try:
            value, snapshot = _run_once(db, church_id, mutate, year, label)
            return MutationResult(value=value, snapshot=snapshot, attempts=attempt)
        except ConcurrencyConflictError:
            if attempt >= max_attempts:
                logger.warning("%s gave up after %s attempts (church_id=%s)", label, attempt, church_id)
                raise
            delay = backoff_s * (2 ** (attempt - 1))
            logger.warning(
                "%s conflict on church_id=%s, retry %s/%s in %.3fs",
                label, church_id, attempt + 1, max_attempts, delay,
            )
            time.sleep(delay)
            attempt += 1


def refresh_church_stats(
    db: Session,
    church_id: int,
    *,
    reference_year: Optional[int] = None,
) -> AggregateSnapshot:
    """Recompute and persist without touching source rows (first population, repair)."""
    result = run_mutation(
        db, church_id, lambda _db, _church: None, reference_year=reference_year, label="refresh"
    )
    return result.snapshot


def read_church_stats(db: Session, church_id: int) -> AggregateSnapshot:
    """Stored aggregates as they are. Never recomputes."""
    church = db.get(Church, church_id)
    if church is None:
        raise NotFoundError("Church", church_id)
    return snapshot_from_church(church)
