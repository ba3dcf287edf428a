# app/models/member.py
"""SQLAlchemy model for church members.

Creating, editing or deleting a member changes membership_count and the
ministerial role counters of the owning church; the service layer routes
those writes through the stats coordinator.
"""
from __future__ import annotations

import enum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import relationship

from app.db import Base


class MemberType(str, enum.Enum):
    STANDARD = "standard"
    VISITOR = "visitor"
    RELATIVE = "relative"
    INFANT = "infant"
    OTHER = "other"


class ChurchRole(str, enum.Enum):
    """Ministerial role classification: ordained/unordained x preacher/deacon."""
    ORDAINED_PREACHER = "ordained_preacher"
    UNORDAINED_PREACHER = "unordained_preacher"
    ORDAINED_DEACON = "ordained_deacon"
    UNORDAINED_DEACON = "unordained_deacon"


def _enum_values(e):
    return [m.value for m in e]


class Member(Base):
    __tablename__ = "members"

    id = Column(Integer, primary_key=True, index=True)
    church_id = Column(
        Integer,
        ForeignKey("churches.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    age = Column(Integer, nullable=True)
    sex = Column(String(1), nullable=True)
    birth_date = Column(Date, nullable=True)
    baptized = Column(Boolean, nullable=False, default=False)

    member_type = Column(
        Enum(MemberType, name="membertype", values_callable=_enum_values),
        nullable=False,
        default=MemberType.STANDARD,
        index=True,
    )
    # NULL = no ministerial role
    church_role = Column(
        Enum(ChurchRole, name="churchrole", values_callable=_enum_values),
        nullable=True,
        index=True,
    )

    phone = Column(String(30), nullable=True)
    email = Column(String(150), nullable=True)
    address = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    church = relationship("Church", back_populates="members")

    # Deleting a member removes its attendance rows (see services/members.py)
    event_attendances = relationship(
        "EventAttendee",
        back_populates="member",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("age IS NULL OR (age >= 0 AND age <= 150)", name="ck_members_age_range"),
        CheckConstraint("sex IS NULL OR sex IN ('M', 'F')", name="ck_members_sex"),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Member id={self.id} church_id={self.church_id} role={self.church_role}>"
