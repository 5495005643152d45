# tuition_center/schemas/auth_schemas.py
from typing import Optional
from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, EmailStr, Field, field_validator

from .common import CamelModel, clean_name, clean_phone
from ..models.user import UserRole


class RegisterRequest(CamelModel):
    first_name: str
    last_name: str
    email: EmailStr
    phone: Optional[str] = None
    password: str = Field(..., min_length=8, max_length=72)

    @field_validator('first_name')
    @classmethod
    def validate_first_name(cls, v):
        return clean_name(v, "First name")

    @field_validator('last_name')
    @classmethod
    def validate_last_name(cls, v):
        return clean_name(v, "Last name")

    @field_validator('phone')
    @classmethod
    def validate_phone(cls, v):
        return clean_phone(v)

    @field_validator('email')
    @classmethod
    def normalise_email(cls, v):
        return v.strip().lower()


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator('email')
    @classmethod
    def normalise_email(cls, v):
        return v.strip().lower()


class UserOut(BaseModel):
    id: UUID
    email: str
    role: UserRole
    first_name: str
    last_name: str
    phone: Optional[str] = None
    active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
