# tuition_center/schemas/branch_schemas.py
from typing import Optional
from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, Field, field_validator

from .common import CamelModel, clean_phone


def _clean_branch_name(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if len(value) < 2:
        raise ValueError('Branch name must be at least 2 characters long')
    return value


def _clean_address(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if len(value) < 5:
        raise ValueError('Address must be at least 5 characters long')
    return value


class BranchCreate(CamelModel):
    name: str = Field(..., description="Branch name, unique across branches")
    address: str
    phone: Optional[str] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        return _clean_branch_name(v)

    @field_validator('address')
    @classmethod
    def validate_address(cls, v):
        return _clean_address(v)

    @field_validator('phone')
    @classmethod
    def validate_phone(cls, v):
        return clean_phone(v)


class BranchUpdate(CamelModel):
    name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    active: Optional[bool] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        return _clean_branch_name(v)

    @field_validator('address')
    @classmethod
    def validate_address(cls, v):
        return _clean_address(v)

    @field_validator('phone')
    @classmethod
    def validate_phone(cls, v):
        return clean_phone(v)


class BranchOut(BaseModel):
    id: UUID
    name: str
    address: str
    phone: Optional[str] = None
    active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
