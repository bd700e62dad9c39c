from datetime import datetime, date
from uuid import UUID
from typing import Optional, List
from decimal import Decimal
from pydantic import BaseModel

from ...enum.payments_enum import PaymentStatus


# COLLABORATOR SUMMARIES

class OwnerOut(BaseModel):
    id: UUID
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    address: Optional[str] = None

    model_config = {"from_attributes": True}


class TenantOut(BaseModel):
    id: UUID
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None

    model_config = {"from_attributes": True}


class PropertyOut(BaseModel):
    id: UUID
    name: str
    address: Optional[str] = None
    owner: Optional[OwnerOut] = None

    model_config = {"from_attributes": True}


class RentalOut(BaseModel):
    id: UUID
    identifier: str
    start_date: date
    end_date: Optional[date] = None
    property: Optional[PropertyOut] = None
    tenant: Optional[TenantOut] = None

    model_config = {"from_attributes": True}


# PAYMENT

class PaymentCreate(BaseModel):
    schedule_id: UUID
    due_date: date
    amount: Decimal
    notes: Optional[str] = None


class PaymentUpdate(BaseModel):
    due_date: Optional[date] = None
    payment_method: Optional[str] = None
    transaction_id: Optional[str] = None
    notes: Optional[str] = None


class RecordPaymentRequest(BaseModel):
    amount: Decimal
    payment_method: str
    transaction_id: Optional[str] = None
    notes: Optional[str] = None


class ArchiveMultipleRequest(BaseModel):
    payment_ids: List[UUID]


class PaymentOut(BaseModel):
    id: UUID
    schedule_id: UUID
    due_date: date
    amount: Decimal
    paid_amount: Optional[Decimal] = None
    paid_at: Optional[datetime] = None
    status: PaymentStatus
    payment_method: Optional[str] = None
    transaction_id: Optional[str] = None
    notes: Optional[str] = None
    is_archived: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ScheduleSummaryOut(BaseModel):
    id: UUID
    start_date: date
    end_date: date
    monthly_amount: Decimal
    day_of_month: int
    is_active: bool
    rental: Optional[RentalOut] = None

    model_config = {"from_attributes": True}


class PaymentDetailOut(PaymentOut):
    schedule: Optional[ScheduleSummaryOut] = None


class SweepResult(BaseModel):
    updated: int


class ArchiveResult(BaseModel):
    archived: int
    missing: List[UUID] = []
