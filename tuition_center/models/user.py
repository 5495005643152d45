# tuition_center/models/user.py
import enum
from sqlalchemy import Column, String, Boolean, Enum
from sqlalchemy.orm import relationship
from .base import Base


class UserRole(str, enum.Enum):
    PARENT = "parent"
    STAFF = "staff"
    ADMIN = "admin"


class User(Base):
    __tablename__ = "users"

    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(
        Enum(UserRole, name="user_role", native_enum=False, create_constraint=True,
             values_callable=lambda roles: [r.value for r in roles]),
        nullable=False,
        index=True,
    )
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    phone = Column(String(20))
    active = Column(Boolean, default=True, nullable=False, index=True)

    # Relationships
    students = relationship("Student", back_populates="parent", passive_deletes=True)
    tutored_classes = relationship("ClassModel", back_populates="tutor", foreign_keys="ClassModel.tutor_id")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
