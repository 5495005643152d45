"""Import all models here so metadata.create_all sees every table."""
from .base import Base
from .user import User, UserRole
from .branch import Branch
from .classroom import Classroom
from .student import Student
from .class_model import ClassModel
from .enrollment import Enrollment, EnrollmentStatus
from .payment import Payment, PaymentMethod
from .attendance import Attendance, AttendanceStatus

__all__ = [
    "Base",
    "User",
    "UserRole",
    "Branch",
    "Classroom",
    "Student",
    "ClassModel",
    "Enrollment",
    "EnrollmentStatus",
    "Payment",
    "PaymentMethod",
    "Attendance",
    "AttendanceStatus",
]
