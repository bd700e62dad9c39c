from datetime import datetime, date
from uuid import UUID
from typing import Optional, List
from decimal import Decimal
from pydantic import BaseModel

from .payments_schemas import PaymentOut, RentalOut


class PaymentScheduleCreate(BaseModel):
    rental_id: UUID
    start_date: date
    end_date: date
    monthly_amount: Decimal
    day_of_month: int


class PaymentScheduleUpdate(BaseModel):
    end_date: Optional[date] = None
    is_active: Optional[bool] = None


class PaymentAmountUpdate(BaseModel):
    new_amount: Decimal


class PaymentScheduleOut(BaseModel):
    id: UUID
    rental_id: UUID
    start_date: date
    end_date: date
    monthly_amount: Decimal
    day_of_month: int
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    rental: Optional[RentalOut] = None
    payments: List[PaymentOut] = []

    model_config = {"from_attributes": True}


class PaymentStatisticsOut(BaseModel):
    total_payments: int
    paid_payments: int
    late_payments: int
    total_amount: Decimal
    paid_amount: Decimal
    remaining_amount: Decimal


class AmountRevisionOut(BaseModel):
    schedule_id: UUID
    monthly_amount: Decimal
    updated: int
