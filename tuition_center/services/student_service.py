# tuition_center/services/student_service.py
from typing import Any, Dict, List, Optional
from uuid import UUID
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .base_service import BaseService
from .enrollment_service import EnrollmentService
from ..core.clock import local_now
from ..core.exceptions import NotFoundError, ValidationError
from ..models import Branch, Student, User

logger = logging.getLogger(__name__)


def student_to_dict(student: Student, branch: Optional[Branch] = None) -> Dict[str, Any]:
    return {
        "id": student.id,
        "parent_id": student.parent_id,
        "first_name": student.first_name,
        "last_name": student.last_name,
        "grade": student.grade,
        "date_of_birth": student.date_of_birth,
        "home_branch_id": student.home_branch_id,
        "home_branch_name": branch.name if branch else None,
        "home_branch_address": branch.address if branch else None,
        "active": student.active,
        "created_at": student.created_at,
        "updated_at": student.updated_at,
    }


class StudentService(BaseService[Student]):
    def __init__(self, db: AsyncSession):
        super().__init__(Student, db)

    async def _require_branch(self, branch_id: Optional[UUID]) -> Optional[Branch]:
        if branch_id is None:
            return None
        stmt = select(Branch).where(Branch.id == branch_id, Branch.active == True)
        result = await self.db.execute(stmt)
        branch = result.scalar_one_or_none()
        if not branch:
            raise ValidationError("Invalid branch selected")
        return branch

    async def get_owned(self, student_id: UUID, parent_id: UUID) -> Student:
        stmt = select(Student).where(
            Student.id == student_id,
            Student.parent_id == parent_id,
            Student.active == True,
        )
        result = await self.db.execute(stmt)
        student = result.scalar_one_or_none()
        if not student:
            raise NotFoundError("Student not found or access denied")
        return student

    async def list_for_parent(self, parent_id: UUID) -> List[Dict[str, Any]]:
        stmt = (
            select(Student, Branch)
            .outerjoin(Branch, Student.home_branch_id == Branch.id)
            .where(Student.parent_id == parent_id, Student.active == True)
            .order_by(Student.created_at.desc())
        )
        result = await self.db.execute(stmt)
        return [student_to_dict(student, branch) for student, branch in result.all()]

    async def list_all(self) -> List[Dict[str, Any]]:
        """Every active student with the parent's contact details, for staff"""
        stmt = (
            select(Student, Branch, User)
            .join(User, Student.parent_id == User.id)
            .outerjoin(Branch, Student.home_branch_id == Branch.id)
            .where(Student.active == True)
            .order_by(Student.last_name, Student.first_name)
        )
        result = await self.db.execute(stmt)
        rows = []
        for student, branch, parent in result.all():
            row = student_to_dict(student, branch)
            row.update({
                "parent_name": parent.full_name,
                "parent_email": parent.email,
                "parent_phone": parent.phone,
            })
            rows.append(row)
        return rows

    async def get_details(self, student_id: UUID, parent_id: Optional[UUID] = None) -> Dict[str, Any]:
        stmt = (
            select(Student, Branch)
            .outerjoin(Branch, Student.home_branch_id == Branch.id)
            .where(Student.id == student_id, Student.active == True)
        )
        if parent_id is not None:
            stmt = stmt.where(Student.parent_id == parent_id)
        result = await self.db.execute(stmt)
        row = result.first()
        if not row:
            raise NotFoundError("Student not found")
        return student_to_dict(*row)

    async def create_student(self, parent_id: UUID, data: Dict[str, Any]) -> Dict[str, Any]:
        async with self.transaction():
            branch = await self._require_branch(data.get("home_branch_id"))
            student = await self.create({**data, "parent_id": parent_id})
        logger.info(f"Student {student.id} created for parent {parent_id}")
        return student_to_dict(student, branch)

    async def update_student(self, student_id: UUID, parent_id: UUID, data: Dict[str, Any]) -> Dict[str, Any]:
        """Apply a partial update; a grade change cancels enrollments that no longer fit.

        The update and the cascade share one unit of work, so either both
        land or neither does.
        """
        changes = {key: value for key, value in data.items() if value is not None}

        async with self.transaction():
            student = await self.get_owned(student_id, parent_id)
            if "home_branch_id" in changes:
                branch = await self._require_branch(changes["home_branch_id"])
            elif student.home_branch_id:
                branch = await self.db.get(Branch, student.home_branch_id)
            else:
                branch = None

            old_grade = student.grade
            await self.update(student, changes)

            cancelled = []
            if "grade" in changes and changes["grade"] != old_grade:
                cancelled = await EnrollmentService(self.db).apply_grade_change(
                    student.id, old_grade, changes["grade"], local_now()
                )

        message = "Student updated successfully"
        if cancelled:
            subjects = ", ".join(f"{item.subject} ({item.level})" for item in cancelled)
            message += (
                f". {len(cancelled)} enrollment(s) no longer match grade {student.grade} "
                f"and were cancelled: {subjects}"
            )
        return {
            "message": message,
            "student": student_to_dict(student, branch),
            "cancelled_enrollments": [item.to_dict() for item in cancelled],
        }

    async def remove_student(self, student_id: UUID, parent_id: UUID) -> str:
        async with self.transaction():
            student = await self.get_owned(student_id, parent_id)
            await self.soft_delete(student)
        logger.info(f"Student {student.id} deactivated by parent {parent_id}")
        return f"Student {student.full_name} removed successfully"
