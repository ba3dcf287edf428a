# backend/app/models/__init__.py
"""
Central model registry.

Import this once at startup (e.g., in main.py) so SQLAlchemy sees all mapped
classes before relationships are configured.
"""
from app.db import Base  # re-export Base

from .church import AGGREGATE_FIELDS, Church  # noqa: F401
from .member import ChurchRole, Member, MemberType  # noqa: F401
from .weekly_attendance import WeeklyAttendance  # noqa: F401
from .event import SERVICE_EVENT_TYPE, Event, EventAttendee  # noqa: F401

__all__ = [
    "Base",
    "AGGREGATE_FIELDS",
    "Church",
    "ChurchRole",
    "Member",
    "MemberType",
    "WeeklyAttendance",
    "SERVICE_EVENT_TYPE",
    "Event",
    "EventAttendee",
]
