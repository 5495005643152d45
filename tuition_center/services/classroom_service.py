# tuition_center/services/classroom_service.py
from datetime import date, datetime, time
from typing import Any, Dict, List, Optional
from uuid import UUID
import logging

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from .base_service import BaseService
from .scheduling import ScheduleSlot, format_time, overlaps
from ..core.clock import day_bounds, local_now
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..models import Attendance, Branch, ClassModel, Classroom, Enrollment, EnrollmentStatus, User

logger = logging.getLogger(__name__)


def classroom_to_dict(classroom: Classroom, branch_name: Optional[str] = None,
                      active_classes_count: int = 0) -> Dict[str, Any]:
    return {
        "id": classroom.id,
        "room_name": classroom.room_name,
        "description": classroom.description,
        "room_capacity": classroom.room_capacity,
        "branch_id": classroom.branch_id,
        "branch_name": branch_name,
        "active": classroom.active,
        "active_classes_count": active_classes_count,
        "created_at": classroom.created_at,
        "updated_at": classroom.updated_at,
    }


class ClassroomService(BaseService[Classroom]):
    def __init__(self, db: AsyncSession):
        super().__init__(Classroom, db)

    def _listing(self):
        active_classes = (
            select(ClassModel.classroom_id, func.count(ClassModel.id).label("active_classes_count"))
            .where(ClassModel.active == True)
            .group_by(ClassModel.classroom_id)
            .subquery()
        )
        return (
            select(Classroom, Branch.name, func.coalesce(active_classes.c.active_classes_count, 0))
            .join(Branch, Classroom.branch_id == Branch.id)
            .outerjoin(active_classes, Classroom.id == active_classes.c.classroom_id)
        )

    async def list_for_branch(self, branch_id: UUID, include_inactive: bool = False) -> List[Dict[str, Any]]:
        stmt = self._listing().where(Classroom.branch_id == branch_id)
        if not include_inactive:
            stmt = stmt.where(Classroom.active == True)
        stmt = stmt.order_by(Classroom.active.desc(), Classroom.room_name)
        result = await self.db.execute(stmt)
        return [classroom_to_dict(*row) for row in result.all()]

    async def list_all(self) -> List[Dict[str, Any]]:
        stmt = self._listing().order_by(Branch.name, Classroom.room_name)
        result = await self.db.execute(stmt)
        return [classroom_to_dict(*row) for row in result.all()]

    async def get_details(self, classroom_id: UUID) -> Dict[str, Any]:
        stmt = self._listing().where(Classroom.id == classroom_id)
        result = await self.db.execute(stmt)
        row = result.first()
        if not row:
            raise NotFoundError("Classroom not found")
        return classroom_to_dict(*row)

    async def _booked_classes(self, classroom_id: UUID, day: date,
                              exclude_class_id: Optional[UUID] = None) -> List[ClassModel]:
        day_start, day_end = day_bounds(datetime.combine(day, time.min))
        stmt = select(ClassModel).where(
            ClassModel.classroom_id == classroom_id,
            ClassModel.active == True,
            ClassModel.start_time >= day_start,
            ClassModel.start_time <= day_end,
        )
        if exclude_class_id is not None:
            stmt = stmt.where(ClassModel.id != exclude_class_id)
        result = await self.db.execute(stmt.order_by(ClassModel.start_time))
        return list(result.scalars().all())

    async def get_availability(self, classroom_id: UUID, day: date,
                               exclude_class_id: Optional[UUID] = None) -> Dict[str, Any]:
        """Slots already booked in a classroom on ``day``"""
        classroom = await self.get_active(classroom_id)
        if not classroom:
            raise NotFoundError("Classroom not found")

        day_start, day_end = day_bounds(datetime.combine(day, time.min))
        stmt = (
            select(ClassModel, User)
            .outerjoin(User, ClassModel.tutor_id == User.id)
            .where(
                ClassModel.classroom_id == classroom_id,
                ClassModel.active == True,
                ClassModel.start_time >= day_start,
                ClassModel.start_time <= day_end,
            )
        )
        if exclude_class_id is not None:
            stmt = stmt.where(ClassModel.id != exclude_class_id)
        result = await self.db.execute(stmt.order_by(ClassModel.start_time))
        return {
            "classroom": {
                "room_name": classroom.room_name,
                "room_capacity": classroom.room_capacity,
                "branch_id": classroom.branch_id,
            },
            "occupied_slots": [
                {
                    "id": class_obj.id,
                    "subject": class_obj.subject,
                    "level": class_obj.level,
                    "start_time": class_obj.start_time,
                    "end_time": class_obj.end_time,
                    "capacity": class_obj.capacity,
                    "tutor_name": tutor.full_name if tutor else None,
                }
                for class_obj, tutor in result.all()
            ],
        }

    async def ensure_room_free(self, classroom_id: UUID, start_time: datetime, duration_minutes: int,
                               exclude_class_id: Optional[UUID] = None) -> None:
        """Reject a booking that overlaps another active class in the same room"""
        wanted = ScheduleSlot(None, "", None, start_time, duration_minutes, None)
        for class_obj in await self._booked_classes(classroom_id, start_time.date(), exclude_class_id):
            booked = ScheduleSlot.from_class(class_obj)
            if overlaps(wanted, booked):
                raise ConflictError(
                    f"Classroom is already booked from {format_time(booked.start_time)} "
                    f"to {format_time(booked.end_time)} for \"{booked.subject}\""
                )

    async def _ensure_unique_name(self, branch_id: UUID, room_name: str,
                                  exclude_id: Optional[UUID] = None) -> None:
        stmt = select(Classroom.id).where(
            func.lower(Classroom.room_name) == room_name.lower(),
            Classroom.branch_id == branch_id,
        )
        if exclude_id is not None:
            stmt = stmt.where(Classroom.id != exclude_id)
        result = await self.db.execute(stmt)
        if result.first():
            raise ConflictError("A classroom with this name already exists in this branch")

    async def create_classroom(self, data: Dict[str, Any]) -> Dict[str, Any]:
        async with self.transaction():
            stmt = select(Branch).where(Branch.id == data["branch_id"], Branch.active == True)
            branch = (await self.db.execute(stmt)).scalar_one_or_none()
            if not branch:
                raise NotFoundError("Branch not found or inactive")
            await self._ensure_unique_name(branch.id, data["room_name"])
            classroom = await self.create(data)
        logger.info(f"Classroom {classroom.room_name} created in branch {branch.name}")
        return classroom_to_dict(classroom, branch.name)

    async def update_classroom(self, classroom_id: UUID, data: Dict[str, Any]) -> Dict[str, Any]:
        changes = {key: value for key, value in data.items() if value is not None}
        async with self.transaction():
            classroom = await self.get(classroom_id)
            if not classroom:
                raise NotFoundError("Classroom not found")

            new_capacity = changes.get("room_capacity")
            if new_capacity is not None and new_capacity < classroom.room_capacity:
                stmt = select(func.count(ClassModel.id), func.max(ClassModel.capacity)).where(
                    ClassModel.classroom_id == classroom.id,
                    ClassModel.capacity > new_capacity,
                    ClassModel.active == True,
                )
                count, max_capacity = (await self.db.execute(stmt)).one()
                if count:
                    raise ValidationError(
                        f"Cannot reduce room capacity below {max_capacity}. "
                        "There are existing classes with higher capacity limits."
                    )

            if changes.get("room_name"):
                await self._ensure_unique_name(classroom.branch_id, changes["room_name"], exclude_id=classroom.id)

            await self.update(classroom, changes)
        return await self.get_details(classroom.id)

    async def deletion_impact(self, classroom_id: UUID) -> Dict[str, Any]:
        stmt = (
            select(Classroom, Branch.name)
            .join(Branch, Classroom.branch_id == Branch.id)
            .where(Classroom.id == classroom_id)
        )
        row = (await self.db.execute(stmt)).first()
        if not row:
            raise NotFoundError("Classroom not found")
        classroom, branch_name = row

        now = local_now()
        classes = (await self.db.execute(
            select(ClassModel.start_time).where(ClassModel.classroom_id == classroom_id, ClassModel.active == True)
        )).scalars().all()
        future_classes = sum(1 for start in classes if start > now)

        enrollments = (await self.db.execute(
            select(func.count(func.distinct(Enrollment.id)))
            .join(ClassModel, Enrollment.class_id == ClassModel.id)
            .where(
                ClassModel.classroom_id == classroom_id,
                ClassModel.active == True,
                Enrollment.status == EnrollmentStatus.ENROLLED,
            )
        )).scalar() or 0
        attendance = (await self.db.execute(
            select(func.count(Attendance.id))
            .join(ClassModel, Attendance.class_id == ClassModel.id)
            .where(ClassModel.classroom_id == classroom_id, ClassModel.active == True)
        )).scalar() or 0

        warning_parts = []
        if classes:
            warning_parts.append(f"{len(classes)} classes will have their classroom assignment removed")
        if enrollments:
            warning_parts.append(f"{enrollments} student enrollments affected")
        if attendance:
            warning_parts.append(f"{attendance} attendance records affected")

        return {
            "classroom": {
                "room_name": classroom.room_name,
                "description": classroom.description,
                "room_capacity": classroom.room_capacity,
                "branch_name": branch_name,
            },
            "impact": {
                "totalClasses": len(classes),
                "futureClasses": future_classes,
                "pastClasses": len(classes) - future_classes,
                "enrollmentsAffected": enrollments,
                "attendanceRecordsAffected": attendance,
                "warning": f"IMPACT: {', '.join(warning_parts)}." if warning_parts else None,
            },
        }

    async def delete_classroom(self, classroom_id: UUID, acknowledged: bool) -> Dict[str, Any]:
        """Hard delete; classes keep running without a room"""
        if not acknowledged:
            raise ValidationError("Deletion impact must be acknowledged")
        async with self.transaction():
            stmt = (
                select(Classroom, Branch.name)
                .join(Branch, Classroom.branch_id == Branch.id)
                .where(Classroom.id == classroom_id)
            )
            row = (await self.db.execute(stmt)).first()
            if not row:
                raise NotFoundError("Classroom not found")
            classroom, branch_name = row
            room_name = classroom.room_name
            await self.hard_delete(classroom)
        logger.info(f"Classroom {room_name} at {branch_name} deleted")
        return {
            "message": "Classroom deleted successfully",
            "deleted": {"room_name": room_name, "branch_name": branch_name},
        }
