# tuition_center/services/attendance_service.py
from datetime import date
from typing import Any, Dict, List, Optional
from uuid import UUID
import logging

from sqlalchemy import select, func, case
from sqlalchemy.ext.asyncio import AsyncSession

from .base_service import BaseService
from ..core.clock import local_now
from ..core.exceptions import PermissionDeniedError, ValidationError
from ..models import (
    Attendance,
    AttendanceStatus,
    Branch,
    ClassModel,
    Enrollment,
    EnrollmentStatus,
    Student,
    User,
)

logger = logging.getLogger(__name__)


class AttendanceService(BaseService[Attendance]):
    """Attendance taken by the tutor of a class"""

    def __init__(self, db: AsyncSession):
        super().__init__(Attendance, db)

    async def _tutored_class(self, class_id: UUID, tutor_id: UUID) -> ClassModel:
        stmt = select(ClassModel).where(
            ClassModel.id == class_id,
            ClassModel.tutor_id == tutor_id,
            ClassModel.active == True,
        )
        class_obj = (await self.db.execute(stmt)).scalar_one_or_none()
        if not class_obj:
            raise PermissionDeniedError("Access denied or class not found")
        return class_obj

    async def list_tutor_classes(self, tutor_id: UUID) -> List[Dict[str, Any]]:
        enrolled = (
            select(Enrollment.class_id, func.count(Enrollment.id).label("enrolled_count"))
            .join(Student, Enrollment.student_id == Student.id)
            .where(Enrollment.status == EnrollmentStatus.ENROLLED, Student.active == True)
            .group_by(Enrollment.class_id)
            .subquery()
        )
        stmt = (
            select(ClassModel, Branch, func.coalesce(enrolled.c.enrolled_count, 0))
            .outerjoin(Branch, ClassModel.branch_id == Branch.id)
            .outerjoin(enrolled, ClassModel.id == enrolled.c.class_id)
            .where(ClassModel.tutor_id == tutor_id, ClassModel.active == True)
            .order_by(ClassModel.start_time.desc())
        )
        rows = (await self.db.execute(stmt)).all()
        return [
            {
                "class_id": class_obj.id,
                "subject": class_obj.subject,
                "description": class_obj.description,
                "level": class_obj.level,
                "start_time": class_obj.start_time,
                "duration_minutes": class_obj.duration_minutes,
                "branch_name": branch.name if branch else None,
                "branch_address": branch.address if branch else None,
                "enrolled_count": enrolled_count,
            }
            for class_obj, branch, enrolled_count in rows
        ]

    async def list_class_students(self, class_id: UUID, tutor_id: UUID) -> List[Dict[str, Any]]:
        await self._tutored_class(class_id, tutor_id)
        stmt = (
            select(Enrollment, Student, User)
            .join(Student, Enrollment.student_id == Student.id)
            .join(User, Student.parent_id == User.id)
            .where(
                Enrollment.class_id == class_id,
                Enrollment.status == EnrollmentStatus.ENROLLED,
                Student.active == True,
                User.active == True,
            )
            .order_by(Student.first_name, Student.last_name)
        )
        rows = (await self.db.execute(stmt)).all()
        return [
            {
                "enrollment_id": enrollment.id,
                "student_id": student.id,
                "enrolled_at": enrollment.enrolled_at,
                "first_name": student.first_name,
                "last_name": student.last_name,
                "grade": student.grade,
                "parent_first_name": parent.first_name,
                "parent_last_name": parent.last_name,
                "parent_email": parent.email,
            }
            for enrollment, student, parent in rows
        ]

    async def list_records(self, class_id: UUID, tutor_id: UUID, on: date) -> List[Dict[str, Any]]:
        await self._tutored_class(class_id, tutor_id)
        stmt = (
            select(Attendance, Student)
            .join(Student, Attendance.student_id == Student.id)
            .where(Attendance.class_id == class_id, Attendance.date == on, Student.active == True)
            .order_by(Student.first_name, Student.last_name)
        )
        rows = (await self.db.execute(stmt)).all()
        return [
            {
                "id": record.id,
                "enrollment_id": record.enrollment_id,
                "student_id": record.student_id,
                "status": record.status,
                "notes": record.notes,
                "marked_at": record.marked_at,
                "first_name": student.first_name,
                "last_name": student.last_name,
                "grade": student.grade,
            }
            for record, student in rows
        ]

    async def mark(self, class_id: UUID, tutor_id: UUID, on: date,
                   records: List[Dict[str, Any]]) -> Dict[str, Any]:
        """Insert or overwrite one record per enrollment for the day, all or nothing"""
        if not records:
            raise ValidationError("Attendance records array cannot be empty")

        async with self.transaction():
            class_obj = await self._tutored_class(class_id, tutor_id)

            enrollment_ids = [record["enrollment_id"] for record in records]
            stmt = select(Enrollment).where(Enrollment.id.in_(enrollment_ids), Enrollment.class_id == class_id)
            enrollments = {e.id: e for e in (await self.db.execute(stmt)).scalars().all()}

            stmt = select(Attendance).where(Attendance.enrollment_id.in_(enrollment_ids), Attendance.date == on)
            existing = {a.enrollment_id: a for a in (await self.db.execute(stmt)).scalars().all()}

            now = local_now()
            saved = []
            for index, record in enumerate(records, start=1):
                enrollment = enrollments.get(record["enrollment_id"])
                if not enrollment or enrollment.student_id != record["student_id"]:
                    raise ValidationError(f"Enrollment in record {index} does not belong to this class")

                values = {
                    "status": AttendanceStatus(record["status"]),
                    "notes": record.get("notes"),
                    "marked_by": tutor_id,
                    "marked_at": now,
                }
                attendance = existing.get(enrollment.id)
                if attendance:
                    for key, value in values.items():
                        setattr(attendance, key, value)
                else:
                    attendance = Attendance(
                        student_id=enrollment.student_id,
                        class_id=class_id,
                        enrollment_id=enrollment.id,
                        date=on,
                        **values,
                    )
                    self.db.add(attendance)
                    existing[enrollment.id] = attendance
                saved.append(attendance)
            await self.db.flush()

        logger.info(f"Attendance marked for {len(saved)} student(s) in class {class_id} on {on}")
        return {
            "message": f"Attendance marked for {len(records)} student(s) in {class_obj.subject}",
            "records": [
                {
                    "id": attendance.id,
                    "enrollmentId": attendance.enrollment_id,
                    "studentId": attendance.student_id,
                    "status": attendance.status,
                    "notes": attendance.notes,
                    "marked_at": attendance.marked_at,
                }
                for attendance in saved
            ],
        }

    async def summary(self, class_id: UUID, tutor_id: UUID, start_date: Optional[date] = None,
                      end_date: Optional[date] = None) -> Dict[str, Any]:
        class_obj = await self._tutored_class(class_id, tutor_id)

        def status_count(status: AttendanceStatus):
            return func.count(case((Attendance.status == status, 1)))

        stmt = (
            select(
                status_count(AttendanceStatus.PRESENT),
                status_count(AttendanceStatus.ABSENT),
                status_count(AttendanceStatus.LATE),
                status_count(AttendanceStatus.EXCUSED),
                func.count(Attendance.id),
                func.count(func.distinct(Attendance.date)),
                func.count(func.distinct(Attendance.student_id)),
            )
            .join(Student, Attendance.student_id == Student.id)
            .where(Attendance.class_id == class_id, Student.active == True)
        )
        if start_date:
            stmt = stmt.where(Attendance.date >= start_date)
        if end_date:
            stmt = stmt.where(Attendance.date <= end_date)

        present, absent, late, excused, total, days, students = (await self.db.execute(stmt)).one()
        return {
            "classInfo": {"id": class_obj.id, "subject": class_obj.subject, "start_time": class_obj.start_time},
            "summary": {
                "present_count": present,
                "absent_count": absent,
                "late_count": late,
                "excused_count": excused,
                "total_records": total,
                "days_recorded": days,
                "unique_students": students,
            },
        }
