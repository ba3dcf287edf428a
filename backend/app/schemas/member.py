# app/schemas/member.py
from __future__ import annotations

from datetime import date
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.member import ChurchRole, MemberType
from app.schemas.stats import ChurchStatsRead


def _blank_to_none(v):
    # forms post "" for untouched optional fields
    if isinstance(v, str) and v.strip() == "":
        return None
    return v


class MemberBase(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    age: Optional[int] = Field(None, ge=0, le=150)
    sex: Optional[Literal["M", "F"]] = None
    birth_date: Optional[date] = None
    baptized: bool = False
    member_type: MemberType = MemberType.STANDARD
    church_role: Optional[ChurchRole] = None
    phone: Optional[str] = Field(None, max_length=30)
    email: Optional[str] = Field(None, max_length=150)
    address: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

    @field_validator("age", "sex", "birth_date", "church_role", "phone", "email", "address", mode="before")
    @classmethod
    def _empty_strings(cls, v):
        return _blank_to_none(v)


class MemberCreate(MemberBase):
    pass


class MemberUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    age: Optional[int] = Field(None, ge=0, le=150)
    sex: Optional[Literal["M", "F"]] = None
    birth_date: Optional[date] = None
    baptized: Optional[bool] = None
    member_type: Optional[MemberType] = None
    church_role: Optional[ChurchRole] = None
    phone: Optional[str] = Field(None, max_length=30)
    email: Optional[str] = Field(None, max_length=150)
    address: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

    @field_validator("age", "sex", "birth_date", "church_role", "phone", "email", "address", mode="before")
    @classmethod
    def _empty_strings(cls, v):
        return _blank_to_none(v)


class MemberRead(MemberBase):
    id: int
    church_id: int


class MemberMutationRead(BaseModel):
    member: MemberRead
    stats: ChurchStatsRead


class MemberDeleteRead(BaseModel):
    deleted_id: int
    stats: ChurchStatsRead


class MemberPage(BaseModel):
    items: List[MemberRead]
    total: int
    page: int
    limit: int
