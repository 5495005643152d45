# tests/factories.py
"""Row builders for tests. Each helper commits so services see the data."""
from datetime import date, datetime, timedelta
from typing import Optional

from tuition_center.core.clock import local_now
from tuition_center.core.security import create_access_token, hash_password
from tuition_center.models import (
    Branch,
    ClassModel,
    Enrollment,
    EnrollmentStatus,
    Student,
    User,
    UserRole,
)

PASSWORD = "password123"
_counter = {"n": 0}


def _next() -> int:
    _counter["n"] += 1
    return _counter["n"]


def days_ahead(days: int, hour: int = 10, minute: int = 0) -> datetime:
    """A wall-clock time ``days`` from today, safely away from midnight"""
    return (local_now() + timedelta(days=days)).replace(hour=hour, minute=minute, second=0, microsecond=0)


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id, user.email, user.role)}"}


async def make_user(db, role: UserRole = UserRole.PARENT, first_name: str = "Alex", last_name: str = "Tan",
                    email: Optional[str] = None, active: bool = True) -> User:
    user = User(
        email=email or f"user{_next()}@example.com",
        password_hash=hash_password(PASSWORD),
        role=role,
        first_name=first_name,
        last_name=last_name,
        phone="91234567",
        active=active,
    )
    db.add(user)
    await db.commit()
    return user


async def make_branch(db, name: Optional[str] = None, active: bool = True) -> Branch:
    branch = Branch(name=name or f"Branch {_next()}", address="1 Orchard Road", active=active)
    db.add(branch)
    await db.commit()
    return branch


async def make_class(db, branch: Branch, start_time: datetime, tutor: Optional[User] = None,
                     duration_minutes: int = 60, subject: str = "Math", level: Optional[str] = "Primary 5",
                     capacity: int = 10, active: bool = True) -> ClassModel:
    class_obj = ClassModel(
        subject=subject,
        level=level,
        start_time=start_time,
        duration_minutes=duration_minutes,
        capacity=capacity,
        branch_id=branch.id,
        tutor_id=tutor.id if tutor else None,
        created_by=tutor.id if tutor else None,
        active=active,
    )
    db.add(class_obj)
    await db.commit()
    return class_obj


async def make_student(db, parent: User, grade: Optional[str] = "Primary 5", first_name: str = "Jamie",
                       active: bool = True, date_of_birth: Optional[date] = None) -> Student:
    student = Student(
        parent_id=parent.id,
        first_name=first_name,
        last_name="Tan",
        grade=grade,
        date_of_birth=date_of_birth,
        active=active,
    )
    db.add(student)
    await db.commit()
    return student


async def make_enrollment(db, student: Student, class_obj: ClassModel,
                          status: EnrollmentStatus = EnrollmentStatus.ENROLLED) -> Enrollment:
    enrollment = Enrollment(
        student_id=student.id,
        class_id=class_obj.id,
        enrolled_by=student.parent_id,
        status=status,
    )
    db.add(enrollment)
    await db.commit()
    return enrollment
