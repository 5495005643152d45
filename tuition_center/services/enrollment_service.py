# tuition_center/services/enrollment_service.py
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID
import logging

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from .base_service import BaseService
from .levels import Level
from ..core.clock import add_one_month, local_now
from ..core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from ..models import Branch, ClassModel, Enrollment, EnrollmentStatus, Student, User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CancelledEnrollment:
    """What a parent is told about an enrollment dropped by a grade change"""
    enrollment_id: UUID
    class_id: UUID
    subject: str
    level: Optional[str]
    start_time: datetime
    branch_name: Optional[str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enrollment_id": str(self.enrollment_id),
            "class_id": str(self.class_id),
            "subject": self.subject,
            "level": self.level,
            "start_time": self.start_time.isoformat(),
            "branch_name": self.branch_name,
        }


def _enrollment_row(enrollment: Enrollment, student: Student, class_obj: ClassModel,
                    branch_name: Optional[str]) -> Dict[str, Any]:
    return {
        "id": enrollment.id,
        "student_id": enrollment.student_id,
        "class_id": enrollment.class_id,
        "status": enrollment.status,
        "enrolled_at": enrollment.enrolled_at,
        "cancelled_at": enrollment.cancelled_at,
        "student_name": student.full_name,
        "subject": class_obj.subject,
        "level": class_obj.level,
        "start_time": class_obj.start_time,
        "branch_name": branch_name,
    }


class EnrollmentService(BaseService[Enrollment]):
    def __init__(self, db: AsyncSession):
        super().__init__(Enrollment, db)

    async def count_enrolled(self, class_id: UUID) -> int:
        """Seats taken: enrolled rows whose student is still active"""
        stmt = (
            select(func.count(Enrollment.id))
            .join(Student, Enrollment.student_id == Student.id)
            .where(
                Enrollment.class_id == class_id,
                Enrollment.status == EnrollmentStatus.ENROLLED,
                Student.active == True,
            )
        )
        result = await self.db.execute(stmt)
        return result.scalar() or 0

    async def get_active_enrollment(self, student_id: UUID, class_id: UUID) -> Optional[Enrollment]:
        stmt = select(Enrollment).where(
            Enrollment.student_id == student_id,
            Enrollment.class_id == class_id,
            Enrollment.status == EnrollmentStatus.ENROLLED,
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def enroll(self, parent_id: UUID, student_id: UUID, class_id: UUID) -> Dict[str, Any]:
        """Enroll a parent's student into a class opening within the next month"""
        async with self.transaction():
            stmt = select(Student).where(
                Student.id == student_id,
                Student.parent_id == parent_id,
                Student.active == True,
            )
            result = await self.db.execute(stmt)
            student = result.scalar_one_or_none()
            if not student:
                raise PermissionDeniedError("Student not found or access denied")

            now = local_now()
            stmt = select(ClassModel).where(
                ClassModel.id == class_id,
                ClassModel.active == True,
                ClassModel.start_time > now,
                ClassModel.start_time <= add_one_month(now),
            )
            result = await self.db.execute(stmt)
            class_obj = result.scalar_one_or_none()
            if not class_obj:
                raise ValidationError("Class not found, has started, or is more than 1 month away")

            if not Level.parse(class_obj.level).accepts(student.grade):
                raise ValidationError(
                    f"Student grade ({student.grade}) does not match class level ({class_obj.level}). "
                    "Students can only enroll in classes for their grade level or Mixed Levels classes."
                )

            if await self.count_enrolled(class_obj.id) >= class_obj.capacity:
                raise ValidationError("Class is full")

            if await self.get_active_enrollment(student.id, class_obj.id):
                raise ValidationError("Student is already enrolled in this class")

            enrollment = await self.create({
                "student_id": student.id,
                "class_id": class_obj.id,
                "enrolled_by": parent_id,
                "enrolled_at": now,
                "status": EnrollmentStatus.ENROLLED,
            })

        logger.info(f"Enrolled student {student.id} in class {class_obj.id}")
        return {
            "message": f"{student.full_name} enrolled in {class_obj.subject} successfully",
            "enrollment": {
                "id": enrollment.id,
                "enrolled_at": enrollment.enrolled_at,
                "status": enrollment.status,
            },
        }

    async def cancel_enrollment(self, parent_id: UUID, enrollment_id: UUID) -> str:
        """Parent withdraws a student from a class that has not started"""
        async with self.transaction():
            now = local_now()
            stmt = (
                select(Enrollment, Student, ClassModel)
                .join(Student, Enrollment.student_id == Student.id)
                .join(ClassModel, Enrollment.class_id == ClassModel.id)
                .where(
                    Enrollment.id == enrollment_id,
                    Student.parent_id == parent_id,
                    Enrollment.status == EnrollmentStatus.ENROLLED,
                    ClassModel.start_time > now,
                )
            )
            result = await self.db.execute(stmt)
            row = result.first()
            if not row:
                raise NotFoundError("Enrollment not found, access denied, or class has already started")

            enrollment, student, class_obj = row
            enrollment.cancel(now)
            await self.db.flush()

        logger.info(f"Enrollment {enrollment.id} cancelled by parent {parent_id}")
        return f"Enrollment cancelled: {student.full_name} removed from {class_obj.subject}"

    async def apply_grade_change(
        self,
        student_id: UUID,
        old_grade: Optional[str],
        new_grade: Optional[str],
        now: datetime,
    ) -> List[CancelledEnrollment]:
        """Cancel the student's future enrollments that no longer fit ``new_grade``.

        Runs inside the caller's transaction and only flushes; the caller's
        unit of work commits or rolls back the grade update together with
        these cancellations. Mixed-levels classes are always kept, a class
        without a level is never a wildcard, and past classes are left alone.
        Returned summaries follow class start order.
        """
        if old_grade == new_grade:
            return []

        stmt = (
            select(Enrollment, ClassModel, Branch.name)
            .join(ClassModel, Enrollment.class_id == ClassModel.id)
            .outerjoin(Branch, ClassModel.branch_id == Branch.id)
            .where(
                Enrollment.student_id == student_id,
                Enrollment.status == EnrollmentStatus.ENROLLED,
                ClassModel.active == True,
                ClassModel.start_time > now,
            )
            .order_by(ClassModel.start_time, Enrollment.id)
        )
        result = await self.db.execute(stmt)

        cancelled: List[CancelledEnrollment] = []
        for enrollment, class_obj, branch_name in result.all():
            if Level.parse(class_obj.level).accepts(new_grade):
                continue
            enrollment.cancel(now)
            cancelled.append(CancelledEnrollment(
                enrollment_id=enrollment.id,
                class_id=class_obj.id,
                subject=class_obj.subject,
                level=class_obj.level,
                start_time=class_obj.start_time,
                branch_name=branch_name,
            ))

        if cancelled:
            await self.db.flush()
            logger.info(
                f"Grade change {old_grade!r} -> {new_grade!r} for student {student_id} "
                f"cancelled {len(cancelled)} enrollment(s)"
            )
        return cancelled

    async def list_for_parent(self, parent_id: UUID) -> List[Dict[str, Any]]:
        stmt = (
            select(Enrollment, Student, ClassModel, Branch.name)
            .join(Student, Enrollment.student_id == Student.id)
            .join(ClassModel, Enrollment.class_id == ClassModel.id)
            .outerjoin(Branch, ClassModel.branch_id == Branch.id)
            .where(Student.parent_id == parent_id, Student.active == True, ClassModel.active == True)
            .order_by(ClassModel.start_time.desc())
        )
        result = await self.db.execute(stmt)
        return [_enrollment_row(*row) for row in result.all()]

    async def list_for_class(self, class_id: UUID) -> List[Dict[str, Any]]:
        stmt = (
            select(Enrollment, Student, User)
            .join(Student, Enrollment.student_id == Student.id)
            .join(User, Student.parent_id == User.id)
            .where(Enrollment.class_id == class_id, Student.active == True, User.active == True)
            .order_by(Enrollment.enrolled_at)
        )
        result = await self.db.execute(stmt)
        return [
            {
                "id": enrollment.id,
                "student_id": enrollment.student_id,
                "enrolled_at": enrollment.enrolled_at,
                "status": enrollment.status,
                "cancelled_at": enrollment.cancelled_at,
                "student_name": student.full_name,
                "grade": student.grade,
                "parent_name": parent.full_name,
                "parent_email": parent.email,
            }
            for enrollment, student, parent in result.all()
        ]

    async def get_details(self, enrollment_id: UUID, parent_id: Optional[UUID] = None) -> Dict[str, Any]:
        """One enrollment; parents only see their own students' rows"""
        stmt = (
            select(Enrollment, Student, ClassModel, Branch.name)
            .join(Student, Enrollment.student_id == Student.id)
            .join(ClassModel, Enrollment.class_id == ClassModel.id)
            .outerjoin(Branch, ClassModel.branch_id == Branch.id)
            .where(Enrollment.id == enrollment_id, Student.active == True, ClassModel.active == True)
        )
        if parent_id is not None:
            stmt = stmt.where(Student.parent_id == parent_id)
        result = await self.db.execute(stmt)
        row = result.first()
        if not row:
            raise NotFoundError("Enrollment not found")
        return _enrollment_row(*row)
