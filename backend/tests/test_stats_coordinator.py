# backend/tests/test_stats_coordinator.py
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import date, timedelta

import pytest
from sqlalchemy.exc import DBAPIError, OperationalError

from app.db import SessionLocal
from app.models import Church, ChurchRole, Member, WeeklyAttendance
from app.schemas.member import MemberCreate
from app.schemas.weekly_attendance import WeeklyAttendanceCreate
from app.services import members as member_svc
from app.services import weekly_attendance as weekly_svc
from app.services.stats import (
    ConcurrencyConflictError,
    NotFoundError,
    StorageTimeoutError,
    read_church_stats,
    refresh_church_stats,
    run_mutation,
)
from app.services.stats.errors import translate_db_error
from app.services.stats.locks import church_lock


def _add_member(first, role=None):
    def _mutate(db, church):
        m = Member(church_id=church.id, first_name=first, last_name="X", church_role=role)
        db.add(m)
        return m
    return _mutate


def test_mutation_and_aggregates_commit_together(db, make_church):
    church = make_church()
    result = run_mutation(db, church.id, _add_member("Ana", ChurchRole.ORDAINED_PREACHER))

    assert result.attempts == 1
    assert result.snapshot.membership_count == 1
    assert result.snapshot.ordained_preachers == 1

    stored = read_church_stats(db, church.id)
    assert stored == result.snapshot
    assert db.get(Church, church.id).stats_updated_at is not None


def test_failure_after_source_change_rolls_back(db, make_church):
    church = make_church()
    run_mutation(db, church.id, _add_member("Ana"))

    def _boom(session, ch):
        session.add(Member(church_id=ch.id, first_name="Ghost", last_name="X"))
        session.flush()
        raise RuntimeError("storage went away")

    with pytest.raises(RuntimeError):
        run_mutation(db, church.id, _boom)

    assert db.query(Member).filter(Member.church_id == church.id).count() == 1
    assert read_church_stats(db, church.id).membership_count == 1


def test_conflict_is_retried(db, make_church, monkeypatch):
    monkeypatch.setenv("STATS_MAX_ATTEMPTS", "3")
    church = make_church()
    calls = []

    def _flaky(session, ch):
        calls.append(1)
        if len(calls) == 1:
            raise ConcurrencyConflictError("busy")
        return _add_member("Ana")(session, ch)

    result = run_mutation(db, church.id, _flaky)
    assert result.attempts == 2
    assert len(calls) == 2
    assert result.snapshot.membership_count == 1


def test_conflict_gives_up_after_max_attempts(db, make_church, monkeypatch):
    monkeypatch.setenv("STATS_MAX_ATTEMPTS", "2")
    church = make_church()
    calls = []

    def _always_busy(session, ch):
        calls.append(1)
        raise ConcurrencyConflictError("busy")

    with pytest.raises(ConcurrencyConflictError):
        run_mutation(db, church.id, _always_busy)
    assert len(calls) == 2


def test_other_errors_are_not_retried(db, make_church, monkeypatch):
    monkeypatch.setenv("STATS_MAX_ATTEMPTS", "5")
    church = make_church()
    calls = []

    def _bad(session, ch):
        calls.append(1)
        raise ValueError("nope")

    with pytest.raises(ValueError):
        run_mutation(db, church.id, _bad)
    assert len(calls) == 1


def test_unknown_church_is_not_found(db):
    with pytest.raises(NotFoundError):
        run_mutation(db, 424242, _add_member("Ana"))
    with pytest.raises(NotFoundError):
        read_church_stats(db, 424242)


def test_read_never_recomputes_and_refresh_repairs(db, make_church):
    church = make_church()
    # written behind the coordinator's back
    db.add(Member(church_id=church.id, first_name="Raw", last_name="Insert"))
    db.commit()

    assert read_church_stats(db, church.id).membership_count == 0
    first = refresh_church_stats(db, church.id, reference_year=2025)
    second = refresh_church_stats(db, church.id, reference_year=2025)
    assert first.membership_count == 1
    assert first == second
    assert read_church_stats(db, church.id) == first


def test_concurrent_weekly_inserts_all_counted(make_church):
    church = make_church()
    counts = [10, 20, 30, 40, 50, 60, 70, 80]

    def _insert(i):
        session = SessionLocal()
        try:
            data = WeeklyAttendanceCreate(week_date=date(2025, 1, 5) + timedelta(weeks=i), attendance_count=counts[i])
            weekly_svc.create_record(session, church.id, data, reference_year=2025)
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=4) as pool:
        list(pool.map(_insert, range(len(counts))))

    session = SessionLocal()
    try:
        assert session.query(WeeklyAttendance).filter(WeeklyAttendance.church_id == church.id).count() == 8
        assert read_church_stats(session, church.id).avg_weekly_attendance == 45
    finally:
        session.close()


def test_concurrent_member_creates_all_counted(make_church):
    church = make_church()

    def _create(i):
        session = SessionLocal()
        try:
            role = ChurchRole.ORDAINED_DEACON if i % 2 == 0 else None
            member_svc.create_member(
                session, church.id, MemberCreate(first_name=f"M{i}", last_name="Paz", church_role=role)
            )
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=5) as pool:
        list(pool.map(_create, range(10)))

    session = SessionLocal()
    try:
        stats = read_church_stats(session, church.id)
        assert stats.membership_count == 10
        assert stats.ordained_deacons == 5
    finally:
        session.close()


def test_church_lock_times_out_with_conflict():
    with church_lock(99, timeout=1):
        with pytest.raises(ConcurrencyConflictError):
            with church_lock(99, timeout=0.01):
                pass
    # released afterwards
    with church_lock(99, timeout=0.01):
        pass


class _PgError(Exception):
    def __init__(self, pgcode):
        super().__init__(f"pg error {pgcode}")
        self.pgcode = pgcode


@pytest.mark.parametrize(
    "pgcode, expected",
    [
        ("40001", ConcurrencyConflictError),
        ("40P01", ConcurrencyConflictError),
        ("55P03", ConcurrencyConflictError),
        ("57014", StorageTimeoutError),
    ],
)
def test_translate_postgres_errors(pgcode, expected):
    err = DBAPIError("UPDATE churches ...", {}, _PgError(pgcode))
    assert isinstance(translate_db_error(err), expected)


def test_translate_sqlite_locked_and_passthrough():
    locked = OperationalError("INSERT ...", {}, Exception("database is locked"))
    assert isinstance(translate_db_error(locked), ConcurrencyConflictError)

    other = OperationalError("INSERT ...", {}, Exception("no such table: members"))
    assert translate_db_error(other) is None
