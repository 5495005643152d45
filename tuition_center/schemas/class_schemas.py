# tuition_center/schemas/class_schemas.py
from typing import Optional, List
from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, Field, field_validator

from .common import CamelModel
from ..core.clock import local_now, to_local_naive


def _future_start(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    value = to_local_naive(value)
    if value <= local_now():
        raise ValueError('Class start time must be in the future')
    return value


class ClassCreate(CamelModel):
    subject: str = Field(..., min_length=2, max_length=100)
    description: Optional[str] = None
    level: str = Field(..., min_length=1, max_length=50)
    start_time: datetime
    duration_minutes: int = Field(..., ge=30, le=300)
    capacity: int = Field(10, ge=1, le=50)
    branch_id: UUID
    classroom_id: Optional[UUID] = None

    @field_validator('subject', 'level')
    @classmethod
    def strip_text(cls, v):
        return v.strip()

    @field_validator('start_time')
    @classmethod
    def validate_start_time(cls, v):
        return _future_start(v)


class ClassUpdate(CamelModel):
    subject: Optional[str] = Field(None, min_length=2, max_length=100)
    description: Optional[str] = None
    level: Optional[str] = Field(None, min_length=1, max_length=50)
    start_time: Optional[datetime] = None
    duration_minutes: Optional[int] = Field(None, ge=30, le=300)
    capacity: Optional[int] = Field(None, ge=1, le=50)
    branch_id: Optional[UUID] = None
    classroom_id: Optional[UUID] = None

    @field_validator('start_time')
    @classmethod
    def validate_start_time(cls, v):
        return _future_start(v)


class TutorAssignment(CamelModel):
    tutor_id: UUID


class ConflictSlotOut(BaseModel):
    id: Optional[str] = None
    subject: str
    level: Optional[str] = None
    start_time: str
    end_time: str
    branch_id: Optional[str] = None
    branch_name: Optional[str] = None


class ConflictReportOut(BaseModel):
    has_conflict: bool
    direct_conflicts: List[ConflictSlotOut]
    travel_conflicts: List[ConflictSlotOut]
