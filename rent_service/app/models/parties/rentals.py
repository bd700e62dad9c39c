import uuid
from sqlalchemy import Boolean, Column, String, Date, Numeric, ForeignKey, DateTime
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from shared.core.database import Base


class Rental(Base):
    __tablename__ = "rentals"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    identifier = Column(String(64), nullable=False, unique=True)
    property_id = Column(UUID(as_uuid=True), ForeignKey(
        "properties.id"), nullable=False)
    tenant_id = Column(UUID(as_uuid=True), ForeignKey(
        "tenants.id"), nullable=False)

    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    rent = Column(Numeric(14, 2), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True),
                        server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # relationships
    property = relationship("Property", back_populates="rentals")
    tenant = relationship("Tenant", back_populates="rentals")
    payment_schedules = relationship(
        "PaymentSchedule", back_populates="rental")
