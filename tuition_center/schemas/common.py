# tuition_center/schemas/common.py
"""Shared request-schema plumbing.

Request bodies use the camelCase keys the frontend sends; responses keep
the snake_case column names.
"""
import re
from typing import Optional
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

NAME_PATTERN = re.compile(r"^[A-Za-z]{2,}$")
PHONE_PATTERN = re.compile(r"^\d{8}$")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DeletionAcknowledgement(CamelModel):
    acknowledged: bool = False


def clean_name(value: Optional[str], label: str) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if not NAME_PATTERN.match(value):
        raise ValueError(f"{label} must contain only letters and be at least 2 characters long")
    return value


def clean_phone(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    value = value.strip()
    if not PHONE_PATTERN.match(value):
        raise ValueError("Phone number must be exactly 8 digits if provided")
    return value
