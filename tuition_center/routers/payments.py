from typing import List
from uuid import UUID
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.security import TokenUser, require_roles
from ..models import UserRole
from ..schemas.payment_schemas import PaymentCreate, PaymentOut
from ..services.payment_service import PaymentService

router = APIRouter(prefix="/api/payments", tags=["Payments"])
parent_only = require_roles(UserRole.PARENT)


@router.get("/my-students")
async def my_students_payments(current_user: TokenUser = Depends(parent_only), db: AsyncSession = Depends(get_db)):
    return await PaymentService(db).list_for_parent(current_user.user_id)


@router.get("/{student_id}/history", response_model=List[PaymentOut])
async def payment_history(
    student_id: UUID,
    current_user: TokenUser = Depends(parent_only),
    db: AsyncSession = Depends(get_db),
):
    """Most recent three months"""
    return await PaymentService(db).history(student_id, current_user.user_id)


@router.post("", status_code=status.HTTP_201_CREATED)
async def record_payment(
    payload: PaymentCreate,
    current_user: TokenUser = Depends(require_roles(UserRole.STAFF, UserRole.ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    payment = await PaymentService(db).record_payment(current_user, payload.model_dump())
    return {"message": "Payment recorded successfully", "payment": PaymentOut.model_validate(payment)}
