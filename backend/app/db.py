from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base

from app import config

DATABASE_URL = config.database_url()
_IS_SQLITE = DATABASE_URL.startswith("sqlite")


def _connect_args() -> dict:
    if _IS_SQLITE:
        # SQLite connections are shared across request threads
        return {"check_same_thread": False}
    timeout = config.statement_timeout_ms()
    if timeout:
        return {"options": f"-c statement_timeout={int(timeout)}"}
    return {}


engine = create_engine(
    DATABASE_URL,
    echo=config.sql_echo(),
    pool_pre_ping=not _IS_SQLITE,
    connect_args=_connect_args(),
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


if _IS_SQLITE:
    @event.listens_for(engine, "connect")
    def _sqlite_foreign_keys(dbapi_conn, _record):
        # cascades on church/event/member deletes rely on FK enforcement
        cur = dbapi_conn.cursor()
        cur.execute("PRAGMA foreign_keys=ON")
        cur.close()


# Dependency to inject DB session
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
