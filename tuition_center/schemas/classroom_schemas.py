# tuition_center/schemas/classroom_schemas.py
from typing import Optional
from uuid import UUID
from pydantic import Field, field_validator

from .common import CamelModel


class ClassroomCreate(CamelModel):
    room_name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    room_capacity: int = Field(..., ge=1, le=100)
    branch_id: UUID

    @field_validator('room_name')
    @classmethod
    def strip_room_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('Room name is required')
        return v


class ClassroomUpdate(CamelModel):
    room_name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    room_capacity: Optional[int] = Field(None, ge=1, le=100)
    active: Optional[bool] = None

    @field_validator('room_name')
    @classmethod
    def strip_room_name(cls, v):
        return v.strip() if v is not None else v
