# tuition_center/services/branch_service.py
from typing import Any, Dict, List, Optional
from uuid import UUID
import logging

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from .base_service import BaseService
from ..core.clock import local_now
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..models import Attendance, Branch, ClassModel, Enrollment, EnrollmentStatus, Payment, Student

logger = logging.getLogger(__name__)


class BranchService(BaseService[Branch]):
    def __init__(self, db: AsyncSession):
        super().__init__(Branch, db)

    async def list_branches(self, include_inactive: bool = False) -> List[Branch]:
        return await self.get_multi(include_inactive=include_inactive, order_by="name")

    async def get_branch(self, branch_id: UUID) -> Branch:
        branch = await self.get(branch_id)
        if not branch:
            raise NotFoundError("Branch not found")
        return branch

    async def _ensure_unique_name(self, name: str, exclude_id: Optional[UUID] = None) -> None:
        stmt = select(Branch.id).where(func.lower(Branch.name) == name.lower())
        if exclude_id is not None:
            stmt = stmt.where(Branch.id != exclude_id)
        if (await self.db.execute(stmt)).first():
            raise ConflictError("A branch with this name already exists")

    async def create_branch(self, data: Dict[str, Any]) -> Branch:
        async with self.transaction():
            await self._ensure_unique_name(data["name"])
            branch = await self.create(data)
        logger.info(f"Branch {branch.name} created")
        return branch

    async def update_branch(self, branch_id: UUID, data: Dict[str, Any]) -> Branch:
        changes = {key: value for key, value in data.items() if value is not None}
        async with self.transaction():
            branch = await self.get_branch(branch_id)
            if changes.get("name"):
                await self._ensure_unique_name(changes["name"], exclude_id=branch.id)
            await self.update(branch, changes)
        return branch

    async def _impact_counts(self, branch_id: UUID) -> Dict[str, int]:
        now = local_now()
        students = (await self.db.execute(
            select(func.count(Student.id)).where(Student.home_branch_id == branch_id, Student.active == True)
        )).scalar() or 0
        class_starts = (await self.db.execute(
            select(ClassModel.start_time).where(ClassModel.branch_id == branch_id, ClassModel.active == True)
        )).scalars().all()
        enrollments = (await self.db.execute(
            select(func.count(func.distinct(Enrollment.id)))
            .join(ClassModel, Enrollment.class_id == ClassModel.id)
            .where(
                ClassModel.branch_id == branch_id,
                ClassModel.active == True,
                Enrollment.status == EnrollmentStatus.ENROLLED,
            )
        )).scalar() or 0
        payments = (await self.db.execute(
            select(func.count(Payment.id))
            .join(Student, Payment.student_id == Student.id)
            .where(Student.home_branch_id == branch_id, Student.active == True)
        )).scalar() or 0
        attendance = (await self.db.execute(
            select(func.count(Attendance.id))
            .join(ClassModel, Attendance.class_id == ClassModel.id)
            .where(ClassModel.branch_id == branch_id, ClassModel.active == True)
        )).scalar() or 0

        future = sum(1 for start in class_starts if start > now)
        return {
            "studentsAffected": students,
            "totalClasses": len(class_starts),
            "futureClasses": future,
            "pastClasses": len(class_starts) - future,
            "enrollmentsAffected": enrollments,
            "attendanceRecordsLost": attendance,
            "paymentsAffected": payments,
        }

    async def deletion_impact(self, branch_id: UUID) -> Dict[str, Any]:
        branch = await self.get_branch(branch_id)
        impact = await self._impact_counts(branch.id)

        warning_parts = []
        if impact["totalClasses"]:
            warning_parts.append(f"{impact['totalClasses']} class(es) will be permanently deleted")
        if impact["enrollmentsAffected"]:
            warning_parts.append(f"{impact['enrollmentsAffected']} active enrollment(s) will be cancelled")
        if impact["attendanceRecordsLost"]:
            warning_parts.append(f"{impact['attendanceRecordsLost']} attendance record(s) will be lost")
        if impact["studentsAffected"]:
            warning_parts.append(f"{impact['studentsAffected']} student(s) will lose their home branch reference")
        impact["warning"] = f"PERMANENT DELETION: {', '.join(warning_parts)}." if warning_parts else None

        return {
            "branch": {"id": branch.id, "name": branch.name, "address": branch.address},
            "impact": impact,
        }

    async def delete_branch(self, branch_id: UUID, acknowledged: bool) -> Dict[str, Any]:
        """Hard delete; the store cascades classes, enrollments and attendance"""
        if not acknowledged:
            raise ValidationError("Deletion impact must be acknowledged")
        async with self.transaction():
            branch = await self.get_branch(branch_id)
            impact = await self._impact_counts(branch.id)
            name = branch.name
            await self.hard_delete(branch)
        logger.warning(f"Branch {name} permanently deleted with {impact['totalClasses']} class(es)")
        return {
            "message": f'Branch "{name}" and all associated data permanently deleted',
            "deletedData": {
                "studentsAffected": impact["studentsAffected"],
                "classesDeleted": impact["totalClasses"],
                "enrollmentsCancelled": impact["enrollmentsAffected"],
                "attendanceRecordsLost": impact["attendanceRecordsLost"],
            },
        }
