# tuition_center/services/payment_service.py
from typing import Any, Dict, List
from uuid import UUID
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .base_service import BaseService
from ..core.exceptions import ConflictError, NotFoundError, PermissionDeniedError
from ..core.security import TokenUser
from ..models import Payment, Student

logger = logging.getLogger(__name__)

# Months shown in a student's payment history
HISTORY_MONTHS = 3


class PaymentService(BaseService[Payment]):
    def __init__(self, db: AsyncSession):
        super().__init__(Payment, db)

    async def list_for_parent(self, parent_id: UUID) -> List[Dict[str, Any]]:
        stmt = (
            select(Payment, Student)
            .join(Student, Payment.student_id == Student.id)
            .where(Student.parent_id == parent_id)
            .order_by(Payment.month.desc(), Student.first_name, Student.last_name)
        )
        rows = (await self.db.execute(stmt)).all()
        return [
            {
                "id": payment.id,
                "month": payment.month,
                "amount": payment.amount,
                "paid": payment.paid,
                "payment_date": payment.payment_date,
                "payment_method": payment.payment_method,
                "student_name": student.full_name,
            }
            for payment, student in rows
        ]

    async def history(self, student_id: UUID, parent_id: UUID) -> List[Payment]:
        stmt = select(Student.id).where(Student.id == student_id, Student.parent_id == parent_id)
        if not (await self.db.execute(stmt)).first():
            raise PermissionDeniedError("Student not found or access denied")

        stmt = (
            select(Payment)
            .where(Payment.student_id == student_id)
            .order_by(Payment.month.desc())
            .limit(HISTORY_MONTHS)
        )
        return list((await self.db.execute(stmt)).scalars().all())

    async def record_payment(self, recorder: TokenUser, data: Dict[str, Any]) -> Payment:
        """One payment row per student and month"""
        async with self.transaction():
            student = await self.db.get(Student, data["student_id"])
            if not student or not student.active:
                raise NotFoundError("Student not found")

            stmt = select(Payment.id).where(
                Payment.student_id == student.id,
                Payment.month == data["month"],
            )
            if (await self.db.execute(stmt)).first():
                raise ConflictError(f"A payment for {data['month']} is already recorded for this student")

            payment = await self.create({**data, "processed_by": recorder.user_id})
        logger.info(f"Payment {payment.month} recorded for student {student.id} by {recorder.user_id}")
        return payment
