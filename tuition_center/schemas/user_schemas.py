# tuition_center/schemas/user_schemas.py
from typing import Optional
from pydantic import field_validator

from .auth_schemas import RegisterRequest
from .common import CamelModel, clean_name, clean_phone


class ProfileUpdate(CamelModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None

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


class StaffCreate(RegisterRequest):
    """Same shape and rules as a parent registration"""


class StaffUpdate(ProfileUpdate):
    active: Optional[bool] = None
