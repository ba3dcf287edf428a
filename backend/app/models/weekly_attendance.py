# app/models/weekly_attendance.py
from __future__ import annotations

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship

from app.db import Base


class WeeklyAttendance(Base):
    """One attendance headcount per church per week (week_date marks the week)."""

    __tablename__ = "weekly_attendances"

    id = Column(Integer, primary_key=True, index=True)
    church_id = Column(
        Integer,
        ForeignKey("churches.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    week_date = Column(Date, nullable=False)
    attendance_count = Column(Integer, nullable=False, default=0)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    church = relationship("Church", back_populates="weekly_attendances")

    __table_args__ = (
        UniqueConstraint("church_id", "week_date", name="uq_weekly_attendances_church_week"),
        CheckConstraint("attendance_count >= 0", name="ck_weekly_attendances_count_non_negative"),
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<WeeklyAttendance church_id={self.church_id} week={self.week_date} count={self.attendance_count}>"
