# tuition_center/models/branch.py
from sqlalchemy import Column, String, Boolean
from sqlalchemy.orm import relationship
from .base import Base


class Branch(Base):
    __tablename__ = "branches"

    name = Column(String(100), nullable=False, unique=True)
    address = Column(String(500), nullable=False)
    phone = Column(String(20))
    active = Column(Boolean, default=True, nullable=False, index=True)

    # Relationships
    classrooms = relationship("Classroom", back_populates="branch", passive_deletes=True)
    classes = relationship("ClassModel", back_populates="branch", passive_deletes=True)
