import uuid
from sqlalchemy import Boolean, Column, Date, Integer, Numeric, ForeignKey, DateTime, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from shared.core.database import Base


class PaymentSchedule(Base):
    __tablename__ = "payment_schedules"
    __table_args__ = (
        CheckConstraint("start_date <= end_date",
                        name="ck_payment_schedules_date_range"),
        CheckConstraint("day_of_month BETWEEN 1 AND 31",
                        name="ck_payment_schedules_day_of_month"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    rental_id = Column(UUID(as_uuid=True), ForeignKey(
        "rentals.id"), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    monthly_amount = Column(Numeric(14, 2), nullable=False)
    day_of_month = Column(Integer, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True),
                        server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True),
                        server_default=func.now(), onupdate=func.now())

    # relationships
    rental = relationship("Rental", back_populates="payment_schedules")
    payments = relationship(
        "Payment",
        back_populates="schedule",
        cascade="all, delete-orphan",
        order_by="Payment.due_date",
    )
