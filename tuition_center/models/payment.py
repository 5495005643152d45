# tuition_center/models/payment.py
import enum
from sqlalchemy import Column, String, Numeric, DateTime, Boolean, ForeignKey, Text, Enum, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from .base import Base


class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    CARD = "card"
    BANK_TRANSFER = "bank_transfer"
    ONLINE = "online"
    CHEQUE = "cheque"


class Payment(Base):
    __tablename__ = "payments"

    student_id = Column(UUID(as_uuid=True), ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    processed_by = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    month = Column(String(7), nullable=False)  # YYYY-MM
    amount = Column(Numeric(10, 2), nullable=False)
    paid = Column(Boolean, default=False, nullable=False, index=True)
    payment_date = Column(DateTime, nullable=True, index=True)
    payment_method = Column(
        Enum(PaymentMethod, name="payment_method", native_enum=False, create_constraint=True,
             values_callable=lambda methods: [m.value for m in methods]),
        nullable=True,
    )
    notes = Column(Text)

    __table_args__ = (
        UniqueConstraint("student_id", "month", name="uq_payment_student_month"),
    )

    # Relationships
    student = relationship("Student", back_populates="payments")
