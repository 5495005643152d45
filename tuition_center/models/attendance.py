# tuition_center/models/attendance.py
import enum
from sqlalchemy import Column, Date, DateTime, ForeignKey, Text, Enum, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import Base
from ..core.clock import local_now


class AttendanceStatus(str, enum.Enum):
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    EXCUSED = "excused"


class Attendance(Base):
    __tablename__ = "attendance"

    # Foreign Keys
    student_id = Column(UUID(as_uuid=True), ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    class_id = Column(UUID(as_uuid=True), ForeignKey("classes.id", ondelete="CASCADE"), nullable=False, index=True)
    enrollment_id = Column(UUID(as_uuid=True), ForeignKey("enrollments.id", ondelete="CASCADE"), nullable=False)
    marked_by = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    date = Column(Date, nullable=False, index=True)
    status = Column(
        Enum(AttendanceStatus, name="attendance_status", native_enum=False, create_constraint=True,
             values_callable=lambda statuses: [s.value for s in statuses]),
        default=AttendanceStatus.PRESENT,
        nullable=False,
    )
    notes = Column(Text)
    marked_at = Column(DateTime, default=local_now, onupdate=local_now)

    __table_args__ = (
        UniqueConstraint("enrollment_id", "date", name="uq_attendance_enrollment_date"),
    )

    # Relationships
    student = relationship("Student")
    enrollment = relationship("Enrollment")
