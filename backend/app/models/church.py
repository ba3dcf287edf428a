# backend/app/models/church.py
"""SQLAlchemy model for the Church (tenant) row.

The aggregate columns (membership_count ... unordained_deacons) are derived
data. They are written only by app.services.stats.coordinator after a
recompute; API payloads never reach them.
"""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import CheckConstraint, DateTime, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db import Base

AGGREGATE_FIELDS = (
    "membership_count",
    "avg_weekly_attendance",
    "faith_decisions_year",
    "faith_decisions_ref_year",
    "ordained_preachers",
    "unordained_preachers",
    "ordained_deacons",
    "unordained_deacons",
)


class Church(Base):
    __tablename__ = "churches"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    address: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    responsible: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    logo_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    # Trailing window (most recent N weekly records) for the attendance average.
    # NULL means the mean over every record.
    attendance_window_weeks: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # --- Aggregates (derived) ---------------------------------------------
    membership_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    avg_weekly_attendance: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    faith_decisions_year: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    faith_decisions_ref_year: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    ordained_preachers: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    unordained_preachers: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    ordained_deacons: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    unordained_deacons: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    stats_updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(), nullable=False, server_default=func.now())

    # --- Relationships (church owns every child collection) ---------------
    members: Mapped[List["Member"]] = relationship(  # noqa: F821
        "Member", back_populates="church", cascade="all, delete-orphan", passive_deletes=True
    )
    weekly_attendances: Mapped[List["WeeklyAttendance"]] = relationship(  # noqa: F821
        "WeeklyAttendance", back_populates="church", cascade="all, delete-orphan", passive_deletes=True
    )
    events: Mapped[List["Event"]] = relationship(  # noqa: F821
        "Event", back_populates="church", cascade="all, delete-orphan", passive_deletes=True
    )

    __table_args__ = (
        CheckConstraint(
            "attendance_window_weeks IS NULL OR attendance_window_weeks > 0",
            name="ck_churches_attendance_window_positive",
        ),
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Church id={self.id} name={self.name!r} members={self.membership_count}>"
