# tuition_center/models/class_model.py
from datetime import datetime, timedelta
from sqlalchemy import Column, String, Integer, DateTime, Boolean, ForeignKey, Text, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import Base


class ClassModel(Base):
    __tablename__ = "classes"

    # Foreign Keys
    tutor_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    classroom_id = Column(UUID(as_uuid=True), ForeignKey("classrooms.id", ondelete="SET NULL"), nullable=True, index=True)
    branch_id = Column(UUID(as_uuid=True), ForeignKey("branches.id", ondelete="CASCADE"), nullable=False, index=True)
    created_by = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    # Class Information
    subject = Column(String(100), nullable=False)
    description = Column(Text)
    level = Column(String(50))  # grade label, or the mixed-levels sentinel
    start_time = Column(DateTime, nullable=False, index=True)
    duration_minutes = Column(Integer, nullable=False)
    capacity = Column(Integer, nullable=False, default=10)
    active = Column(Boolean, default=True, nullable=False, index=True)

    __table_args__ = (
        CheckConstraint("capacity > 0", name="ck_class_capacity_positive"),
        CheckConstraint("duration_minutes > 0", name="ck_class_duration_positive"),
    )

    # Relationships
    tutor = relationship("User", back_populates="tutored_classes", foreign_keys=[tutor_id])
    branch = relationship("Branch", back_populates="classes")
    classroom = relationship("Classroom", back_populates="classes")
    enrollments = relationship("Enrollment", back_populates="class_ref", passive_deletes=True)

    @property
    def end_time(self) -> datetime:
        return self.start_time + timedelta(minutes=self.duration_minutes)
