# tuition_center/models/classroom.py
from sqlalchemy import Column, String, Integer, Boolean, ForeignKey, Text, UniqueConstraint, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import Base


class Classroom(Base):
    __tablename__ = "classrooms"

    branch_id = Column(UUID(as_uuid=True), ForeignKey("branches.id", ondelete="CASCADE"), nullable=False, index=True)

    room_name = Column(String(100), nullable=False, index=True)
    description = Column(Text)
    room_capacity = Column(Integer, nullable=False)
    active = Column(Boolean, default=True, nullable=False, index=True)

    __table_args__ = (
        UniqueConstraint("branch_id", "room_name", name="uq_room_per_branch"),
        CheckConstraint("room_capacity > 0", name="ck_room_capacity_positive"),
    )

    # Relationships
    branch = relationship("Branch", back_populates="classrooms")
    classes = relationship("ClassModel", back_populates="classroom")
