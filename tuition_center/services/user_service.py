# tuition_center/services/user_service.py
from typing import Any, Dict, List, Optional
from uuid import UUID
import logging

from sqlalchemy import select, func, case
from sqlalchemy.ext.asyncio import AsyncSession

from .base_service import BaseService
from ..core.clock import local_now
from ..core.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from ..core.security import create_access_token, hash_password, verify_password
from ..models import Branch, ClassModel, Classroom, Enrollment, EnrollmentStatus, Payment, Student, User, UserRole

logger = logging.getLogger(__name__)


def user_to_dict(user: User) -> Dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "role": user.role,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "phone": user.phone,
        "active": user.active,
        "created_at": user.created_at,
        "updated_at": user.updated_at,
    }


class UserService(BaseService[User]):
    """Accounts: parent self-service and admin management of staff"""

    def __init__(self, db: AsyncSession):
        super().__init__(User, db)

    async def get_by_email(self, email: str) -> Optional[User]:
        stmt = select(User).where(User.email == email.strip().lower())
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def _create_account(self, data: Dict[str, Any], role: UserRole) -> User:
        if await self.get_by_email(data["email"]):
            raise ConflictError("An account with this email already exists")
        return await self.create({
            "email": data["email"].strip().lower(),
            "password_hash": hash_password(data["password"]),
            "role": role,
            "first_name": data["first_name"],
            "last_name": data["last_name"],
            "phone": data.get("phone"),
        })

    async def register_parent(self, data: Dict[str, Any]) -> Dict[str, Any]:
        async with self.transaction():
            user = await self._create_account(data, UserRole.PARENT)
        logger.info(f"Parent account registered: {user.email}")
        return {
            "message": "Account created successfully! Welcome to our tuition center.",
            "token": create_access_token(user.id, user.email, user.role),
            "user": user_to_dict(user),
        }

    async def authenticate(self, email: str, password: str) -> Dict[str, Any]:
        user = await self.get_by_email(email)
        if not user or not user.active or not verify_password(password, user.password_hash):
            logger.info(f"Failed login for {email}")
            raise AuthenticationError("Invalid credentials")
        return {
            "message": "Login successful",
            "token": create_access_token(user.id, user.email, user.role),
            "user": user_to_dict(user),
        }

    async def get_profile(self, user_id: UUID) -> User:
        user = await self.get(user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    async def update_profile(self, user_id: UUID, data: Dict[str, Any]) -> User:
        changes = {key: value for key, value in data.items() if value is not None}
        async with self.transaction():
            user = await self.get_profile(user_id)
            await self.update(user, changes)
        return user

    async def delete_parent_account(self, user_id: UUID) -> Dict[str, Any]:
        """Deactivate a parent, their students and those students' live enrollments"""
        async with self.transaction():
            user = await self.get_profile(user_id)
            if user.role != UserRole.PARENT:
                raise PermissionDeniedError("Only parent accounts can be self-deleted")

            students = (await self.db.execute(
                select(Student).where(Student.parent_id == user.id, Student.active == True)
            )).scalars().all()
            student_ids = [student.id for student in students]

            enrollments = []
            payments = 0
            if student_ids:
                enrollments = (await self.db.execute(
                    select(Enrollment).where(
                        Enrollment.student_id.in_(student_ids),
                        Enrollment.status == EnrollmentStatus.ENROLLED,
                    )
                )).scalars().all()
                payments = (await self.db.execute(
                    select(func.count(Payment.id)).where(Payment.student_id.in_(student_ids))
                )).scalar() or 0

            now = local_now()
            for enrollment in enrollments:
                enrollment.cancel(now)
            for student in students:
                student.active = False
            user.active = False
            await self.db.flush()

        logger.info(f"Parent account {user.email} deactivated with {len(students)} student(s)")
        return {
            "message": f"Account for {user.full_name} has been deleted successfully",
            "deletedData": {
                "students": len(students),
                "enrollments": len(enrollments),
                "payments": payments,
            },
        }

    # Staff administration

    async def list_staff(self) -> List[User]:
        stmt = select(User).where(User.role == UserRole.STAFF).order_by(User.first_name, User.last_name)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def _get_staff(self, staff_id: UUID) -> User:
        stmt = select(User).where(User.id == staff_id, User.role == UserRole.STAFF)
        staff = (await self.db.execute(stmt)).scalar_one_or_none()
        if not staff:
            raise NotFoundError("Staff member not found")
        return staff

    async def get_staff_details(self, staff_id: UUID) -> Dict[str, Any]:
        staff = await self._get_staff(staff_id)
        now = local_now()
        stmt = select(
            func.count(ClassModel.id),
            func.count(case((ClassModel.start_time > now, 1))),
        ).where(ClassModel.tutor_id == staff.id, ClassModel.active == True)
        class_count, future_class_count = (await self.db.execute(stmt)).one()
        details = user_to_dict(staff)
        details.update({"class_count": class_count, "future_class_count": future_class_count})
        return details

    async def create_staff(self, data: Dict[str, Any]) -> User:
        async with self.transaction():
            staff = await self._create_account(data, UserRole.STAFF)
        logger.info(f"Staff account created: {staff.email}")
        return staff

    async def update_staff(self, staff_id: UUID, data: Dict[str, Any]) -> User:
        changes = {key: value for key, value in data.items() if value is not None}
        async with self.transaction():
            staff = await self._get_staff(staff_id)
            await self.update(staff, changes)
        return staff

    async def staff_deletion_impact(self, staff_id: UUID) -> Dict[str, Any]:
        staff = await self._get_staff(staff_id)

        enrolled = (
            select(Enrollment.class_id, func.count(Enrollment.id).label("enrolled_count"))
            .where(Enrollment.status == EnrollmentStatus.ENROLLED)
            .group_by(Enrollment.class_id)
            .subquery()
        )
        stmt = (
            select(ClassModel, Branch.name, Classroom.room_name, func.coalesce(enrolled.c.enrolled_count, 0))
            .outerjoin(Branch, ClassModel.branch_id == Branch.id)
            .outerjoin(Classroom, ClassModel.classroom_id == Classroom.id)
            .outerjoin(enrolled, ClassModel.id == enrolled.c.class_id)
            .where(ClassModel.tutor_id == staff.id, ClassModel.active == True)
            .order_by(ClassModel.start_time)
        )
        rows = (await self.db.execute(stmt)).all()
        affected = [
            {
                "id": class_obj.id,
                "subject": class_obj.subject,
                "start_time": class_obj.start_time,
                "duration_minutes": class_obj.duration_minutes,
                "branch_name": branch_name,
                "classroom_name": room_name,
                "enrolled_count": enrolled_count,
            }
            for class_obj, branch_name, room_name, enrolled_count in rows
        ]
        now = local_now()
        return {
            "staff": {"first_name": staff.first_name, "last_name": staff.last_name, "email": staff.email},
            "impact": {
                "totalClasses": len(affected),
                "futureClasses": sum(1 for item in affected if item["start_time"] > now),
                "affectedClasses": affected,
                "warning": (
                    f"This staff member is assigned to {len(affected)} class(es). "
                    "Their deletion will set these classes to have no tutor."
                ) if affected else None,
            },
        }

    async def delete_staff(self, staff_id: UUID, acknowledged: bool) -> Dict[str, Any]:
        """Hard delete; the staff member's classes are left without a tutor"""
        if not acknowledged:
            raise ValidationError("Deletion impact must be acknowledged")
        async with self.transaction():
            staff = await self._get_staff(staff_id)
            affected = (await self.db.execute(
                select(func.count(ClassModel.id)).where(ClassModel.tutor_id == staff.id, ClassModel.active == True)
            )).scalar() or 0
            email = staff.email
            await self.hard_delete(staff)
        logger.warning(f"Staff account {email} deleted, {affected} class(es) now unassigned")
        return {"message": "Staff account deleted successfully", "affectedClasses": affected}

    async def users_overview(self) -> List[Dict[str, Any]]:
        stmt = (
            select(
                User.role,
                func.count(User.id),
                func.count(case((User.active == True, 1))),
            )
            .group_by(User.role)
            .order_by(User.role)
        )
        rows = (await self.db.execute(stmt)).all()
        return [
            {"role": role, "total_count": total, "active_count": active}
            for role, total, active in rows
        ]
