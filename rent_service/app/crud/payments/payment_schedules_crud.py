import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload, selectinload

from shared.core.exceptions import InvalidStateError, NotFoundError, PersistenceError, ValidationError
from shared.helpers.db_helper import commit_or_raise
from shared.utils.clock import due_date_for, months_between, next_month_start, resolve_today

from ...enum.payments_enum import PaymentStatus
from ...models.parties.properties import Property
from ...models.parties.rentals import Rental
from ...models.payments.payment_schedules import PaymentSchedule
from ...models.payments.payments import Payment
from ...schemas.payments.payment_schedules_schemas import (
    PaymentScheduleCreate, PaymentScheduleUpdate
)

logger = logging.getLogger(__name__)


def _with_rental_chain(query):
    return query.options(
        joinedload(PaymentSchedule.rental)
        .joinedload(Rental.property)
        .joinedload(Property.owner),
        joinedload(PaymentSchedule.rental).joinedload(Rental.tenant),
        selectinload(PaymentSchedule.payments),
    )


# ----------------------------------------------------
# Schedule generation
# ----------------------------------------------------
def validate_schedule_terms(start_date: date, end_date: date, monthly_amount: Decimal, day_of_month: int):
    if start_date > end_date:
        raise ValidationError("start_date must be on or before end_date")
    if not 1 <= day_of_month <= 31:
        raise ValidationError("day_of_month must be between 1 and 31")
    if monthly_amount is None or monthly_amount <= 0:
        raise ValidationError("monthly_amount must be greater than 0")


def initial_status(due_date: date, today: date) -> PaymentStatus:
    return PaymentStatus.late if due_date < today else PaymentStatus.pending


def generate_payments(schedule: PaymentSchedule, today: date) -> List[Payment]:
    """
    One payment per calendar month touched by the schedule's range, due on
    day_of_month of that month. "today" is evaluated once by the caller so
    every row of a schedule is judged against the same day.
    """
    return [
        _payment_for_month(schedule, month_start, today)
        for month_start in months_between(schedule.start_date, schedule.end_date)
    ]


def _payment_for_month(schedule: PaymentSchedule, month_start: date, today: date) -> Payment:
    due = due_date_for(month_start.year, month_start.month, schedule.day_of_month)
    return Payment(
        schedule_id=schedule.id,
        due_date=due,
        amount=schedule.monthly_amount,
        status=initial_status(due, today),
    )


def create_schedule(db: Session, payload: PaymentScheduleCreate, today: Optional[date] = None) -> PaymentSchedule:
    validate_schedule_terms(
        payload.start_date, payload.end_date, payload.monthly_amount, payload.day_of_month)

    rental = db.query(Rental).filter(Rental.id == payload.rental_id).first()
    if not rental:
        raise NotFoundError(f"Rental {payload.rental_id} not found")

    current_day = resolve_today(today)
    schedule = PaymentSchedule(**payload.model_dump())

    # schedule row first so the payments can reference its id, all in one transaction
    try:
        db.add(schedule)
        db.flush()
        payments = generate_payments(schedule, current_day)
        db.add_all(payments)
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Schedule generation failed for rental %s",
                         payload.rental_id)
        raise PersistenceError("Could not create payment schedule") from e

    commit_or_raise(db, "create payment schedule")
    logger.info("Created schedule %s with %d payments for rental %s",
                schedule.id, len(payments), payload.rental_id)
    return get_schedule(db, schedule.id)


# ----------------------------------------------------
# Queries
# ----------------------------------------------------
def get_schedule_or_none(db: Session, schedule_id: UUID) -> Optional[PaymentSchedule]:
    return (
        _with_rental_chain(db.query(PaymentSchedule))
        .filter(PaymentSchedule.id == schedule_id)
        .first()
    )


def get_schedule(db: Session, schedule_id: UUID) -> PaymentSchedule:
    schedule = get_schedule_or_none(db, schedule_id)
    if not schedule:
        raise NotFoundError(f"Payment schedule {schedule_id} not found")
    return schedule


def get_schedules(db: Session, owner_id: Optional[UUID] = None) -> List[PaymentSchedule]:
    q = _with_rental_chain(db.query(PaymentSchedule))
    if owner_id is not None:
        q = (
            q.join(Rental, Rental.id == PaymentSchedule.rental_id)
            .join(Property, Property.id == Rental.property_id)
            .filter(Property.owner_id == owner_id)
        )
    return q.order_by(PaymentSchedule.start_date.asc()).all()


def get_schedules_by_tenant(db: Session, tenant_id: UUID, owner_id: Optional[UUID] = None) -> List[PaymentSchedule]:
    q = (
        _with_rental_chain(db.query(PaymentSchedule))
        .join(Rental, Rental.id == PaymentSchedule.rental_id)
        .filter(Rental.tenant_id == tenant_id)
    )
    if owner_id is not None:
        q = q.join(Property, Property.id == Rental.property_id).filter(
            Property.owner_id == owner_id)
    return q.order_by(PaymentSchedule.start_date.asc()).all()


def get_schedules_by_property(db: Session, property_id: UUID, owner_id: Optional[UUID] = None) -> List[PaymentSchedule]:
    q = (
        _with_rental_chain(db.query(PaymentSchedule))
        .join(Rental, Rental.id == PaymentSchedule.rental_id)
        .filter(Rental.property_id == property_id)
    )
    if owner_id is not None:
        q = q.join(Property, Property.id == Rental.property_id).filter(
            Property.owner_id == owner_id)
    return q.order_by(PaymentSchedule.start_date.asc()).all()


# ----------------------------------------------------
# Maintenance
# ----------------------------------------------------
def _resize_schedule(schedule: PaymentSchedule, end_date: date, today: date):
    """
    Keep one payment per month of the range after an end_date change.
    Extending generates the new months with the same late/pending rule as
    creation. Shortening drops the unpaid payments of the months cut off and
    is refused when one of them already holds money.
    """
    old_cutoff = next_month_start(schedule.end_date)
    new_cutoff = next_month_start(end_date)

    if new_cutoff > old_cutoff:
        added = [
            _payment_for_month(schedule, month_start, today)
            for month_start in months_between(old_cutoff, end_date)
        ]
        schedule.payments.extend(added)
        logger.info("Schedule %s extended to %s, %d payments added",
                    schedule.id, end_date, len(added))
    elif new_cutoff < old_cutoff:
        dropped = [p for p in schedule.payments if p.due_date >= new_cutoff]
        if any(p.status in (PaymentStatus.paid, PaymentStatus.partially_paid) for p in dropped):
            raise InvalidStateError(
                "Cannot shorten the schedule past payments that have already been made")
        for payment in dropped:
            schedule.payments.remove(payment)
        logger.info("Schedule %s shortened to %s, %d payments removed",
                    schedule.id, end_date, len(dropped))

    schedule.end_date = end_date


def update_schedule(db: Session, schedule_id: UUID, payload: PaymentScheduleUpdate, today: Optional[date] = None) -> PaymentSchedule:
    schedule = get_schedule(db, schedule_id)
    data = payload.model_dump(exclude_unset=True)

    end_date = data.pop("end_date", None)
    if end_date is not None:
        if end_date < schedule.start_date:
            raise ValidationError("end_date must be on or after start_date")
        _resize_schedule(schedule, end_date, resolve_today(today))

    for k, v in data.items():
        if v is not None:
            setattr(schedule, k, v)

    commit_or_raise(db, "update payment schedule")
    return get_schedule(db, schedule_id)


def deactivate_schedule(db: Session, schedule_id: UUID) -> PaymentSchedule:
    schedule = get_schedule(db, schedule_id)
    schedule.is_active = False
    commit_or_raise(db, "deactivate payment schedule")
    logger.info("Deactivated schedule %s", schedule_id)
    return get_schedule(db, schedule_id)


def delete_schedule(db: Session, schedule_id: UUID) -> dict:
    schedule = get_schedule(db, schedule_id)
    payment_count = len(schedule.payments)
    db.delete(schedule)
    commit_or_raise(db, "delete payment schedule")
    logger.info("Deleted schedule %s and %d payments",
                schedule_id, payment_count)
    return {"success": True, "message": f"Payment schedule and {payment_count} payments deleted successfully"}


def update_payment_amount(db: Session, schedule_id: UUID, new_amount: Decimal, today: Optional[date] = None) -> dict:
    """
    Revise the monthly amount. Only payments still pending and due between
    today and the end of the schedule take the new amount; late, paid,
    partially paid and past rows keep theirs.
    """
    if new_amount is None or new_amount <= 0:
        raise ValidationError("new_amount must be greater than 0")

    current_day = resolve_today(today)
    try:
        schedule = db.query(PaymentSchedule).filter(
            PaymentSchedule.id == schedule_id).first()
        if not schedule:
            raise NotFoundError(f"Payment schedule {schedule_id} not found")

        schedule.monthly_amount = new_amount
        updated = (
            db.query(Payment)
            .filter(
                Payment.schedule_id == schedule_id,
                Payment.status == PaymentStatus.pending,
                Payment.due_date >= current_day,
                Payment.due_date <= schedule.end_date,
            )
            .update(
                {
                    Payment.amount: new_amount,
                    Payment.version_id: Payment.version_id + 1,
                },
                synchronize_session=False,
            )
        )
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Amount revision failed for schedule %s", schedule_id)
        raise PersistenceError("Could not update payment amount") from e

    commit_or_raise(db, "update payment amount")
    logger.info("Schedule %s monthly amount set to %s, %d future payments revised",
                schedule_id, new_amount, updated)
    return {"schedule_id": schedule_id, "monthly_amount": new_amount, "updated": updated}
