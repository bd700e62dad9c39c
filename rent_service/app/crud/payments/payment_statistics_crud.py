from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from shared.core.exceptions import NotFoundError

from ...enum.payments_enum import PaymentStatus
from ...models.payments.payment_schedules import PaymentSchedule
from ...models.payments.payments import Payment


def get_payment_statistics(db: Session, schedule_id: UUID) -> dict:
    exists = db.query(PaymentSchedule.id).filter(
        PaymentSchedule.id == schedule_id).first()
    if not exists:
        raise NotFoundError(f"Payment schedule {schedule_id} not found")

    payments = db.query(Payment).filter(Payment.schedule_id == schedule_id).all()

    paid = [p for p in payments if p.status == PaymentStatus.paid]
    total_amount = sum((p.amount for p in payments), Decimal("0"))
    paid_amount = sum((p.paid_amount or Decimal("0") for p in paid), Decimal("0"))

    return {
        "total_payments": len(payments),
        "paid_payments": len(paid),
        "late_payments": sum(1 for p in payments if p.status == PaymentStatus.late),
        "total_amount": total_amount,
        "paid_amount": paid_amount,
        "remaining_amount": total_amount - paid_amount,
    }
