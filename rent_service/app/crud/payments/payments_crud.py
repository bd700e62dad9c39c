import logging
from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from shared.core.exceptions import InvalidStateError, NotFoundError, PersistenceError, ValidationError
from shared.helpers.db_helper import commit_or_raise
from shared.utils.clock import now as clock_now, resolve_today

from ...enum.payments_enum import PaymentStatus
from ...models.parties.properties import Property
from ...models.parties.rentals import Rental
from ...models.payments.payment_schedules import PaymentSchedule
from ...models.payments.payments import Payment
from ...schemas.payments.payments_schemas import (
    PaymentCreate, PaymentUpdate, RecordPaymentRequest
)
from .payment_schedules_crud import initial_status

logger = logging.getLogger(__name__)


def _with_schedule_chain(query):
    return query.options(
        joinedload(Payment.schedule)
        .joinedload(PaymentSchedule.rental)
        .joinedload(Rental.property)
        .joinedload(Property.owner),
        joinedload(Payment.schedule)
        .joinedload(PaymentSchedule.rental)
        .joinedload(Rental.tenant),
    )


def _load_for_update(db: Session, payment_id: UUID) -> Payment:
    payment = (
        db.query(Payment)
        .filter(Payment.id == payment_id)
        .with_for_update()
        .first()
    )
    if not payment:
        raise NotFoundError(f"Payment {payment_id} not found")
    return payment


# ----------------------------------------------------
# Queries
# ----------------------------------------------------
def get_payment(db: Session, payment_id: UUID) -> Payment:
    payment = (
        _with_schedule_chain(db.query(Payment))
        .filter(Payment.id == payment_id)
        .first()
    )
    if not payment:
        raise NotFoundError(f"Payment {payment_id} not found")
    return payment


def _owner_scoped(q, owner_id: Optional[UUID]):
    if owner_id is None:
        return q
    return (
        q.join(PaymentSchedule, PaymentSchedule.id == Payment.schedule_id)
        .join(Rental, Rental.id == PaymentSchedule.rental_id)
        .join(Property, Property.id == Rental.property_id)
        .filter(Property.owner_id == owner_id)
    )


def get_late_payments(db: Session, today: Optional[date] = None, owner_id: Optional[UUID] = None) -> List[Payment]:
    """Pending payments already past due, whether or not the sweep has run."""
    current_day = resolve_today(today)
    q = _with_schedule_chain(db.query(Payment)).filter(
        Payment.status == PaymentStatus.pending,
        Payment.due_date < current_day,
    )
    return _owner_scoped(q, owner_id).order_by(Payment.due_date.asc()).all()


def get_archived_payments(db: Session, owner_id: Optional[UUID] = None) -> List[Payment]:
    q = _with_schedule_chain(db.query(Payment)).filter(
        Payment.is_archived == True)
    return _owner_scoped(q, owner_id).order_by(Payment.due_date.asc()).all()


def get_receipt_payment(db: Session, payment_id: UUID) -> Payment:
    """Payment with its owner / tenant / property chain, for the receipt renderer."""
    payment = get_payment(db, payment_id)
    if payment.paid_at is None:
        raise InvalidStateError(
            "Cannot build a receipt for a payment that has not been made")
    return payment


# ----------------------------------------------------
# Lifecycle
# ----------------------------------------------------
def record_payment(db: Session, payment_id: UUID, payload: RecordPaymentRequest, now: Optional[datetime] = None) -> Payment:
    payment = _load_for_update(db, payment_id)

    if payment.status == PaymentStatus.paid:
        raise InvalidStateError("This payment has already been made")
    if payment.status == PaymentStatus.cancelled:
        raise InvalidStateError("Cannot record a cancelled payment")
    if payload.amount is None or payload.amount <= 0:
        raise ValidationError("amount must be greater than 0")

    if payload.amount >= payment.amount:
        if payload.amount > payment.amount:
            logger.warning("Payment %s overpaid by %s, only the due amount is kept",
                           payment_id, payload.amount - payment.amount)
        payment.status = PaymentStatus.paid
        payment.paid_amount = payment.amount
    else:
        payment.status = PaymentStatus.partially_paid
        payment.paid_amount = payload.amount

    payment.paid_at = now or clock_now()
    payment.payment_method = payload.payment_method
    payment.transaction_id = payload.transaction_id
    payment.notes = payload.notes

    commit_or_raise(db, "record payment")
    logger.info("Payment %s recorded as %s", payment_id, payment.status.value)
    return get_payment(db, payment_id)


def cancel_payment(db: Session, payment_id: UUID) -> Payment:
    payment = _load_for_update(db, payment_id)

    if payment.status == PaymentStatus.paid:
        raise InvalidStateError("Cannot cancel a payment that has already been made")

    payment.status = PaymentStatus.cancelled
    commit_or_raise(db, "cancel payment")
    logger.info("Payment %s cancelled", payment_id)
    return get_payment(db, payment_id)


def update_late_payments_status(db: Session, today: Optional[date] = None) -> dict:
    """Promote every overdue pending payment to late in one conditional UPDATE."""
    current_day = resolve_today(today)
    try:
        updated = (
            db.query(Payment)
            .filter(
                Payment.status == PaymentStatus.pending,
                Payment.due_date < current_day,
            )
            .update(
                {
                    Payment.status: PaymentStatus.late,
                    Payment.version_id: Payment.version_id + 1,
                },
                synchronize_session=False,
            )
        )
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Late sweep failed")
        raise PersistenceError("Could not update late payments") from e

    commit_or_raise(db, "update late payments")
    if updated:
        logger.info("Late sweep moved %d payments to late", updated)
    return {"updated": updated}


def _set_archived(db: Session, payment_id: UUID, archived: bool) -> Payment:
    payment = _load_for_update(db, payment_id)
    payment.is_archived = archived
    commit_or_raise(db, "archive payment" if archived else "unarchive payment")
    return get_payment(db, payment_id)


def archive_payment(db: Session, payment_id: UUID) -> Payment:
    return _set_archived(db, payment_id, True)


def unarchive_payment(db: Session, payment_id: UUID) -> Payment:
    return _set_archived(db, payment_id, False)


def archive_multiple_payments(db: Session, payment_ids: List[UUID]) -> dict:
    ids = list(dict.fromkeys(payment_ids))
    if not ids:
        return {"archived": 0, "missing": []}

    try:
        found = {
            row.id for row in db.query(Payment.id).filter(Payment.id.in_(ids)).all()
        }
        archived = (
            db.query(Payment)
            .filter(Payment.id.in_(ids))
            .update(
                {
                    Payment.is_archived: True,
                    Payment.version_id: Payment.version_id + 1,
                },
                synchronize_session=False,
            )
        )
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Bulk archive of %d payments failed", len(ids))
        raise PersistenceError("Could not archive payments") from e

    commit_or_raise(db, "archive payments")
    return {"archived": archived, "missing": [i for i in ids if i not in found]}


# ----------------------------------------------------
# Manual maintenance
# ----------------------------------------------------
def create_payment(db: Session, payload: PaymentCreate, today: Optional[date] = None) -> Payment:
    if payload.amount is None or payload.amount <= 0:
        raise ValidationError("amount must be greater than 0")

    schedule = db.query(PaymentSchedule).filter(
        PaymentSchedule.id == payload.schedule_id).first()
    if not schedule:
        raise NotFoundError(f"Payment schedule {payload.schedule_id} not found")

    payment = Payment(
        schedule_id=schedule.id,
        due_date=payload.due_date,
        amount=payload.amount,
        notes=payload.notes,
        status=initial_status(payload.due_date, resolve_today(today)),
    )
    db.add(payment)
    commit_or_raise(db, "create payment")
    return get_payment(db, payment.id)


def update_payment(db: Session, payment_id: UUID, payload: PaymentUpdate, today: Optional[date] = None) -> Payment:
    payment = _load_for_update(db, payment_id)
    data = payload.model_dump(exclude_unset=True)

    due_date = data.pop("due_date", None)
    if due_date is not None and due_date != payment.due_date:
        if payment.status not in (PaymentStatus.pending, PaymentStatus.late):
            raise InvalidStateError(
                f"Cannot move the due date of a {payment.status.value} payment")
        payment.due_date = due_date
        # late never goes back to pending
        if payment.status == PaymentStatus.pending:
            payment.status = initial_status(due_date, resolve_today(today))

    for k, v in data.items():
        setattr(payment, k, v)

    commit_or_raise(db, "update payment")
    return get_payment(db, payment_id)


def delete_payment(db: Session, payment_id: UUID) -> dict:
    payment = _load_for_update(db, payment_id)
    if payment.status == PaymentStatus.paid:
        raise InvalidStateError("Cannot delete a payment that has already been made")

    db.delete(payment)
    commit_or_raise(db, "delete payment")
    return {"success": True, "message": "Payment deleted successfully"}
