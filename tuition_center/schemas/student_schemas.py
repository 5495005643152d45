# tuition_center/schemas/student_schemas.py
from typing import Optional
from datetime import date
from uuid import UUID
from pydantic import Field, field_validator

from .common import CamelModel, clean_name
from ..core.clock import local_now


def _clean_grade(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if not value:
        raise ValueError('Grade is required')
    return value


def _check_date_of_birth(value: Optional[date]) -> Optional[date]:
    if value is None:
        return None
    today = local_now().date()
    if value > today:
        raise ValueError('Date of birth cannot be in the future')
    if today.year - value.year > 100:
        raise ValueError('Date of birth cannot be more than 100 years ago')
    return value


class StudentCreate(CamelModel):
    first_name: str
    last_name: str
    grade: str = Field(..., max_length=50)
    date_of_birth: Optional[date] = None
    home_branch_id: Optional[UUID] = None

    @field_validator('first_name')
    @classmethod
    def validate_first_name(cls, v):
        return clean_name(v, "First name")

    @field_validator('last_name')
    @classmethod
    def validate_last_name(cls, v):
        return clean_name(v, "Last name")

    @field_validator('grade')
    @classmethod
    def validate_grade(cls, v):
        return _clean_grade(v)

    @field_validator('date_of_birth')
    @classmethod
    def validate_date_of_birth(cls, v):
        return _check_date_of_birth(v)


class StudentUpdate(CamelModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    grade: Optional[str] = Field(None, max_length=50)
    date_of_birth: Optional[date] = None
    home_branch_id: Optional[UUID] = None

    @field_validator('first_name')
    @classmethod
    def validate_first_name(cls, v):
        return clean_name(v, "First name")

    @field_validator('last_name')
    @classmethod
    def validate_last_name(cls, v):
        return clean_name(v, "Last name")

    @field_validator('grade')
    @classmethod
    def validate_grade(cls, v):
        return _clean_grade(v)

    @field_validator('date_of_birth')
    @classmethod
    def validate_date_of_birth(cls, v):
        return _check_date_of_birth(v)
