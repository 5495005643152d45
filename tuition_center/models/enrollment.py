# tuition_center/models/enrollment.py
import enum
from sqlalchemy import Column, DateTime, ForeignKey, Enum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import Base
from ..core.clock import local_now


class EnrollmentStatus(str, enum.Enum):
    ENROLLED = "enrolled"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    NO_SHOW = "no-show"


class Enrollment(Base):
    __tablename__ = "enrollments"

    # Foreign Keys
    student_id = Column(UUID(as_uuid=True), ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    class_id = Column(UUID(as_uuid=True), ForeignKey("classes.id", ondelete="CASCADE"), nullable=False, index=True)
    enrolled_by = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    # Enrollment Details
    enrolled_at = Column(DateTime, default=local_now, nullable=False, index=True)
    status = Column(
        Enum(EnrollmentStatus, name="enrollment_status", native_enum=False, create_constraint=True,
             values_callable=lambda statuses: [s.value for s in statuses]),
        default=EnrollmentStatus.ENROLLED,
        nullable=False,
        index=True,
    )
    cancelled_at = Column(DateTime, nullable=True)  # set exactly when status becomes cancelled

    # Relationships
    student = relationship("Student", back_populates="enrollments")
    class_ref = relationship("ClassModel", back_populates="enrollments")

    def cancel(self, when) -> None:
        """Terminal transition enrolled -> cancelled"""
        if self.status != EnrollmentStatus.ENROLLED:
            raise ValueError(f"Cannot cancel an enrollment that is {self.status.value}")
        self.status = EnrollmentStatus.CANCELLED
        self.cancelled_at = when
