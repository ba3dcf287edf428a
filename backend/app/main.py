import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app import config

# Ensure all SQLAlchemy models are imported so relationships resolve
import app.models  # noqa: F401

from app.api import (
    churches,           # /churches (+ /churches/{id}/stats)
    members,            # /members
    weekly_attendance,  # /weekly-attendance
    events,             # /events (+ /events/{id}/attendees)
)

# Ops/system endpoints (/health, /version)
from app.api.system import router as system_router
from app.schemas.stats import ErrorRead
from app.services.stats import DuplicateAttendeeError, StatsError

logging.basicConfig(
    level=config.log_level(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Church Stats Backend")

# --- CORS for local frontend dev ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Domain errors -> HTTP ---
@app.exception_handler(StatsError)
def stats_error_handler(request: Request, exc: StatsError) -> JSONResponse:
    body = ErrorRead(detail=exc.message, category=exc.category)
    if isinstance(exc, DuplicateAttendeeError):
        body.member_ids = exc.member_ids
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(exclude_none=True))


# Routers
app.include_router(system_router)  # /health, /version

app.include_router(churches.router)
app.include_router(members.router)
app.include_router(weekly_attendance.router)
app.include_router(events.router)
