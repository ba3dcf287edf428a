# backend/tests/conftest.py
from __future__ import annotations

import os
import tempfile

# Point the app at a throwaway SQLite file before anything imports app.db.
# A file (not :memory:) so every thread/connection sees the same database.
_TMP_DIR = tempfile.mkdtemp(prefix="church-stats-tests-")
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(_TMP_DIR, "test.db")
os.environ["STATS_REFERENCE_YEAR"] = "2025"
os.environ["STATS_RETRY_BACKOFF_MS"] = "0"
os.environ.pop("MEMBERSHIP_COUNT_TYPES", None)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

import app.models  # noqa: E402,F401
from app.db import Base, SessionLocal, engine  # noqa: E402
from app.main import app  # noqa: E402
from app.models import Church  # noqa: E402


@pytest.fixture(autouse=True)
def _fresh_schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_church(db):
    def _make(name: str = "Iglesia Central", **kw) -> Church:
        church = Church(name=name, **kw)
        db.add(church)
        db.commit()
        db.refresh(church)
        return church

    return _make
