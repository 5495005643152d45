# tuition_center/models/student.py
from sqlalchemy import Column, String, Date, Boolean, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import Base


class Student(Base):
    __tablename__ = "students"

    # Foreign Keys
    parent_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    home_branch_id = Column(UUID(as_uuid=True), ForeignKey("branches.id", ondelete="SET NULL"), nullable=True, index=True)

    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    grade = Column(String(50))  # free text label, e.g. "Secondary 1"
    date_of_birth = Column(Date)
    active = Column(Boolean, default=True, nullable=False, index=True)

    # Relationships
    parent = relationship("User", back_populates="students")
    home_branch = relationship("Branch")
    enrollments = relationship("Enrollment", back_populates="student", passive_deletes=True)
    payments = relationship("Payment", back_populates="student", passive_deletes=True)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
