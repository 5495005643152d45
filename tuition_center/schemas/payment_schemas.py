# tuition_center/schemas/payment_schemas.py
from typing import Optional
from datetime import datetime
from decimal import Decimal
from uuid import UUID
from pydantic import BaseModel, Field, field_validator

from .common import CamelModel
from ..core.clock import to_local_naive
from ..models.payment import PaymentMethod


class PaymentCreate(CamelModel):
    student_id: UUID
    month: str = Field(..., pattern=r"^\d{4}-(0[1-9]|1[0-2])$", description="YYYY-MM")
    amount: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    paid: bool = False
    payment_date: Optional[datetime] = None
    payment_method: Optional[PaymentMethod] = None
    notes: Optional[str] = None

    @field_validator('payment_date')
    @classmethod
    def normalise_payment_date(cls, v):
        return to_local_naive(v) if v is not None else v


class PaymentOut(BaseModel):
    id: UUID
    student_id: UUID
    month: str
    amount: Decimal
    paid: bool
    payment_date: Optional[datetime] = None
    payment_method: Optional[PaymentMethod] = None
    notes: Optional[str] = None

    class Config:
        from_attributes = True
