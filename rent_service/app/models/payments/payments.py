import uuid
from sqlalchemy import Boolean, Column, String, Date, Enum, Integer, Numeric, ForeignKey, DateTime, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from shared.core.database import Base

from ...enum.payments_enum import PaymentStatus


class Payment(Base):
    __tablename__ = "payments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    schedule_id = Column(UUID(as_uuid=True), ForeignKey(
        "payment_schedules.id", ondelete="CASCADE"), nullable=False, index=True)
    due_date = Column(Date, nullable=False, index=True)
    amount = Column(Numeric(14, 2), nullable=False)
    paid_amount = Column(Numeric(14, 2), nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    status = Column(
        Enum(PaymentStatus, name="payment_status_enum"),
        default=PaymentStatus.pending,
        nullable=False
    )
    payment_method = Column(String(32), nullable=True)  # cash, cheque, transfer ...
    transaction_id = Column(String(128), nullable=True)
    notes = Column(Text, nullable=True)
    is_archived = Column(Boolean, default=False, nullable=False)
    version_id = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True),
                        server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True),
                        server_default=func.now(), onupdate=func.now())

    schedule = relationship("PaymentSchedule", back_populates="payments")

    # optimistic lock, a stale write raises StaleDataError on flush
    __mapper_args__ = {"version_id_col": version_id}
