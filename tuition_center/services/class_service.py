# tuition_center/services/class_service.py
from datetime import date, datetime, time
from typing import Any, Dict, List, Optional
from uuid import UUID
import logging

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from .base_service import BaseService
from .classroom_service import ClassroomService
from .conflict_service import ScheduleConflictService
from .enrollment_service import EnrollmentService
from .levels import MIXED_LEVELS
from .scheduling import ConflictReport, format_conflict_message
from ..core.clock import local_now
from ..core.exceptions import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from ..core.security import TokenUser
from ..models import Branch, ClassModel, Classroom, Enrollment, EnrollmentStatus, Student, User, UserRole

logger = logging.getLogger(__name__)


def _enrolled_counts():
    """Per-class count of enrolled rows whose student is active"""
    return (
        select(Enrollment.class_id, func.count(Enrollment.id).label("enrolled_count"))
        .join(Student, Enrollment.student_id == Student.id)
        .where(Enrollment.status == EnrollmentStatus.ENROLLED, Student.active == True)
        .group_by(Enrollment.class_id)
        .subquery()
    )


def class_to_dict(class_obj: ClassModel, branch: Optional[Branch] = None, room_name: Optional[str] = None,
                  tutor: Optional[User] = None, enrolled_count: int = 0,
                  viewer: Optional[TokenUser] = None) -> Dict[str, Any]:
    can_manage = viewer is not None and (
        viewer.role == UserRole.ADMIN
        or (viewer.role == UserRole.STAFF and class_obj.tutor_id == viewer.user_id)
    )
    return {
        "id": class_obj.id,
        "subject": class_obj.subject,
        "description": class_obj.description,
        "level": class_obj.level,
        "start_time": class_obj.start_time,
        "end_time": class_obj.end_time,
        "duration_minutes": class_obj.duration_minutes,
        "capacity": class_obj.capacity,
        "active": class_obj.active,
        "tutor_id": class_obj.tutor_id,
        "tutor_first_name": tutor.first_name if tutor else None,
        "tutor_last_name": tutor.last_name if tutor else None,
        "branch_id": class_obj.branch_id,
        "branch_name": branch.name if branch else None,
        "branch_address": branch.address if branch else None,
        "classroom_id": class_obj.classroom_id,
        "classroom_name": room_name,
        "enrolled_count": enrolled_count,
        "can_edit": can_manage,
        "can_delete": can_manage,
        "created_at": class_obj.created_at,
        "updated_at": class_obj.updated_at,
    }


class ClassService(BaseService[ClassModel]):
    def __init__(self, db: AsyncSession):
        super().__init__(ClassModel, db)
        self.conflicts = ScheduleConflictService(db)
        self.classrooms = ClassroomService(db)

    def _listing(self):
        counts = _enrolled_counts()
        return (
            select(ClassModel, Branch, Classroom.room_name, User, func.coalesce(counts.c.enrolled_count, 0))
            .outerjoin(Branch, ClassModel.branch_id == Branch.id)
            .outerjoin(Classroom, ClassModel.classroom_id == Classroom.id)
            .outerjoin(User, ClassModel.tutor_id == User.id)
            .outerjoin(counts, ClassModel.id == counts.c.class_id)
            .where(ClassModel.active == True)
        )

    async def list_classes(
        self,
        viewer: TokenUser,
        branch_id: Optional[UUID] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[Dict[str, Any]]:
        """Active classes as the viewer may see them.

        Staff see upcoming classes plus their own past ones; parents see
        upcoming classes matching one of their children's grades or open to
        mixed levels.
        """
        now = local_now()
        stmt = self._listing()

        if viewer.role == UserRole.STAFF:
            stmt = stmt.where(or_(ClassModel.start_time > now, ClassModel.tutor_id == viewer.user_id))
        elif viewer.role == UserRole.PARENT:
            stmt = stmt.where(ClassModel.start_time > now)
            grades = (await self.db.execute(
                select(Student.grade)
                .where(Student.parent_id == viewer.user_id, Student.active == True)
                .distinct()
            )).scalars().all()
            if grades:
                stmt = stmt.where(or_(ClassModel.level == MIXED_LEVELS, ClassModel.level.in_(grades)))

        if branch_id:
            stmt = stmt.where(ClassModel.branch_id == branch_id)
        if start_date:
            stmt = stmt.where(ClassModel.start_time >= datetime.combine(start_date, time.min))
        if end_date:
            stmt = stmt.where(ClassModel.start_time <= datetime.combine(end_date, time.max))

        result = await self.db.execute(stmt.order_by(ClassModel.start_time))
        return [class_to_dict(*row, viewer=viewer) for row in result.all()]

    async def get_class(self, class_id: UUID, viewer: Optional[TokenUser] = None) -> Dict[str, Any]:
        result = await self.db.execute(self._listing().where(ClassModel.id == class_id))
        row = result.first()
        if not row:
            raise NotFoundError("Class not found")
        return class_to_dict(*row, viewer=viewer)

    async def _check_classroom(self, classroom_id: UUID, branch_id: UUID, capacity: int,
                               start_time: datetime, duration_minutes: int, viewer: TokenUser,
                               exclude_class_id: Optional[UUID] = None) -> None:
        classroom = await self.classrooms.get(classroom_id)
        if not classroom:
            raise NotFoundError("Classroom not found")
        if not classroom.active and viewer.role != UserRole.ADMIN:
            raise ValidationError("Selected classroom is currently inactive and unavailable for scheduling")
        if classroom.branch_id != branch_id:
            raise ValidationError("Selected classroom does not belong to the selected branch")
        if capacity > classroom.room_capacity:
            raise ValidationError(
                f"Class capacity ({capacity}) cannot exceed classroom capacity ({classroom.room_capacity})"
            )
        await self.classrooms.ensure_room_free(classroom_id, start_time, duration_minutes, exclude_class_id)

    async def _require_branch(self, branch_id: UUID) -> Branch:
        stmt = select(Branch).where(Branch.id == branch_id, Branch.active == True)
        branch = (await self.db.execute(stmt)).scalar_one_or_none()
        if not branch:
            raise NotFoundError("Branch not found or inactive")
        return branch

    async def create_class(self, viewer: TokenUser, data: Dict[str, Any]) -> Dict[str, Any]:
        """Schedule a class taught by its creator"""
        async with self.transaction():
            await self._require_branch(data["branch_id"])
            if data.get("classroom_id"):
                await self._check_classroom(
                    data["classroom_id"], data["branch_id"], data["capacity"],
                    data["start_time"], data["duration_minutes"], viewer,
                )

            await self.conflicts.lock_tutor(viewer.user_id, roles=(UserRole.STAFF, UserRole.ADMIN))
            await self.conflicts.ensure_available(
                viewer.user_id, data["start_time"], data["duration_minutes"], data["branch_id"]
            )

            class_obj = await self.create({
                **data,
                "tutor_id": viewer.user_id,
                "created_by": viewer.user_id,
            })

        logger.info(f"Class {class_obj.id} ({class_obj.subject}) created by {viewer.user_id}")
        return await self.get_class(class_obj.id, viewer)

    async def _get_editable(self, class_id: UUID, viewer: TokenUser, action: str) -> ClassModel:
        stmt = select(ClassModel).where(
            ClassModel.id == class_id,
            ClassModel.active == True,
            ClassModel.start_time > local_now(),
        )
        class_obj = (await self.db.execute(stmt)).scalar_one_or_none()
        if not class_obj:
            verb = "modified" if action == "edit" else "deleted"
            raise NotFoundError(f"Class not found or cannot be {verb} (past class)")
        if viewer.role == UserRole.STAFF and class_obj.tutor_id != viewer.user_id:
            raise PermissionDeniedError(f"You can only {action} classes assigned to you")
        return class_obj

    async def update_class(self, class_id: UUID, viewer: TokenUser, data: Dict[str, Any]) -> Dict[str, Any]:
        """Partial update of an upcoming class.

        Moving the class in time or to another branch re-runs the tutor's
        conflict check; other edits leave the binding alone.
        """
        changes = {key: value for key, value in data.items() if value is not None}

        async with self.transaction():
            class_obj = await self._get_editable(class_id, viewer, "edit")

            enrolled = await EnrollmentService(self.db).count_enrolled(class_obj.id)
            if "capacity" in changes and changes["capacity"] < enrolled:
                raise ValidationError(f"Capacity cannot be less than current enrollment ({enrolled} students)")

            start_time = changes.get("start_time", class_obj.start_time)
            duration = changes.get("duration_minutes", class_obj.duration_minutes)
            branch_id = changes.get("branch_id", class_obj.branch_id)
            capacity = changes.get("capacity", class_obj.capacity)
            classroom_id = changes.get("classroom_id", class_obj.classroom_id)

            if branch_id != class_obj.branch_id:
                await self._require_branch(branch_id)

            room_affected = any(
                key in changes for key in ("classroom_id", "branch_id", "capacity", "start_time", "duration_minutes")
            )
            if classroom_id and room_affected:
                await self._check_classroom(
                    classroom_id, branch_id, capacity, start_time, duration, viewer,
                    exclude_class_id=class_obj.id,
                )

            moved = (
                start_time != class_obj.start_time
                or duration != class_obj.duration_minutes
                or branch_id != class_obj.branch_id
            )
            if moved and class_obj.tutor_id is not None:
                await self.conflicts.lock_tutor(
                    class_obj.tutor_id, roles=(UserRole.STAFF, UserRole.ADMIN), active_only=False
                )
                await self.conflicts.ensure_available(
                    class_obj.tutor_id, start_time, duration, branch_id, exclude_class_id=class_obj.id
                )

            await self.update(class_obj, changes)

        return await self.get_class(class_obj.id, viewer)

    async def delete_class(self, class_id: UUID, viewer: TokenUser) -> str:
        async with self.transaction():
            class_obj = await self._get_editable(class_id, viewer, "delete")
            await self.soft_delete(class_obj)
        logger.info(f"Class {class_obj.id} deactivated by {viewer.user_id}")
        return f'Class "{class_obj.subject}" deleted successfully'

    async def preview_tutor_conflicts(self, class_id: UUID, tutor_id: UUID) -> ConflictReport:
        """Run the conflict check for a prospective tutor without binding"""
        return await self.conflicts.check_conflict(tutor_id, class_id)

    async def assign_tutor(self, class_id: UUID, tutor_id: UUID) -> str:
        """Bind ``tutor_id`` to a class if their day stays free of collisions"""
        async with self.transaction():
            tutor = await self.conflicts.lock_tutor(tutor_id)
            class_obj = await self.get_active(class_id)
            if not class_obj:
                raise NotFoundError("Class not found or inactive")

            if class_obj.tutor_id == tutor.id:
                # pairing unchanged, nothing to re-check
                return f"{tutor.full_name} is already assigned to {class_obj.subject} class"

            report = await self.conflicts.check_conflict(tutor.id, class_obj.id)
            if report.has_conflict:
                logger.warning(f"Rejected assigning tutor {tutor.id} to class {class_obj.id}")
                raise ConflictError(format_conflict_message(report))

            await self.update(class_obj, {"tutor_id": tutor.id})

        logger.info(f"Tutor {tutor.id} assigned to class {class_obj.id}")
        return f"{tutor.full_name} assigned to {class_obj.subject} class successfully"

    async def list_unassigned(self) -> List[Dict[str, Any]]:
        stmt = self._listing().where(ClassModel.tutor_id.is_(None)).order_by(ClassModel.start_time)
        result = await self.db.execute(stmt)
        return [class_to_dict(*row) for row in result.all()]
