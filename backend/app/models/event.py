from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db import Base

# Event type that carries preacher / worship leader / singer assignments
SERVICE_EVENT_TYPE = "service"


class Event(Base):
    __tablename__ = "events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    church_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("churches.id", ondelete="CASCADE"), nullable=False, index=True
    )

    title: Mapped[str] = mapped_column(String(300), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)
    # Free text: service, outreach, meeting, sales, ...
    event_type: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)
    start_date: Mapped[datetime] = mapped_column(DateTime(), nullable=False, index=True)
    end_date: Mapped[Optional[datetime]] = mapped_column(DateTime(), nullable=True)
    location: Mapped[Optional[str]] = mapped_column(String(300), nullable=True)

    # Service roles; each must be a member of the same church
    preacher_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("members.id", ondelete="SET NULL"), nullable=True
    )
    worship_leader_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("members.id", ondelete="SET NULL"), nullable=True
    )
    singer_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("members.id", ondelete="SET NULL"), nullable=True
    )

    # Roster counters, written by the roster replacer
    attendees_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    faith_decisions: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")

    created_at: Mapped[datetime] = mapped_column(DateTime(), nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    church = relationship("Church", back_populates="events")
    attendees: Mapped[List["EventAttendee"]] = relationship(
        "EventAttendee",
        back_populates="event",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="EventAttendee.id",
    )
    preacher = relationship("Member", foreign_keys=[preacher_id])
    worship_leader = relationship("Member", foreign_keys=[worship_leader_id])
    singer = relationship("Member", foreign_keys=[singer_id])

    __table_args__ = (
        CheckConstraint("end_date IS NULL OR end_date >= start_date", name="ck_events_end_after_start"),
    )

    def __repr__(self) -> str:
        return f"<Event id={self.id} title={self.title!r} start={self.start_date}>"


class EventAttendee(Base):
    """Event <-> Member roster row. At most one row per (event, member)."""

    __tablename__ = "event_attendees"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    event_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True
    )
    member_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True
    )
    attended: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    made_faith_decision: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    notes: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)

    event = relationship("Event", back_populates="attendees")
    member = relationship("Member", back_populates="event_attendances")

    __table_args__ = (
        UniqueConstraint("event_id", "member_id", name="uq_event_attendees_event_member"),
    )

    def __repr__(self) -> str:
        return (
            f"<EventAttendee event_id={self.event_id} member_id={self.member_id} "
            f"attended={self.attended} faith={self.made_faith_decision}>"
        )
