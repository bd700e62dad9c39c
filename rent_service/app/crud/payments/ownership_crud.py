from uuid import UUID

from sqlalchemy.orm import Session

from shared.core.auth import OWNER_ACCOUNT
from shared.core.exceptions import ForbiddenError, NotFoundError
from shared.core.schemas import UserToken

from ...models.parties.properties import Property
from ...models.parties.rentals import Rental
from ...models.payments.payment_schedules import PaymentSchedule
from ...models.payments.payments import Payment


class OwnershipChecker:
    """Resolves who a schedule or payment belongs to and rejects outsiders."""

    def __init__(self, db: Session):
        self.db = db

    def _parties_for_schedule(self, schedule_id: UUID):
        row = (
            self.db.query(Property.owner_id, Rental.tenant_id)
            .select_from(PaymentSchedule)
            .join(Rental, Rental.id == PaymentSchedule.rental_id)
            .join(Property, Property.id == Rental.property_id)
            .filter(PaymentSchedule.id == schedule_id)
            .first()
        )
        if not row:
            raise NotFoundError(f"Payment schedule {schedule_id} not found")
        return row

    def _parties_for_payment(self, payment_id: UUID):
        row = (
            self.db.query(Property.owner_id, Rental.tenant_id)
            .select_from(Payment)
            .join(PaymentSchedule, PaymentSchedule.id == Payment.schedule_id)
            .join(Rental, Rental.id == PaymentSchedule.rental_id)
            .join(Property, Property.id == Rental.property_id)
            .filter(Payment.id == payment_id)
            .first()
        )
        if not row:
            raise NotFoundError(f"Payment {payment_id} not found")
        return row

    def _parties_for_rental(self, rental_id: UUID):
        row = (
            self.db.query(Property.owner_id, Rental.tenant_id)
            .select_from(Rental)
            .join(Property, Property.id == Rental.property_id)
            .filter(Rental.id == rental_id)
            .first()
        )
        if not row:
            raise NotFoundError(f"Rental {rental_id} not found")
        return row

    @staticmethod
    def _check(row, user: UserToken, allow_tenant: bool):
        owner_id, tenant_id = row
        try:
            user_id = UUID(user.user_id)
        except ValueError:
            raise ForbiddenError("Token does not identify a known account")

        if user.account_type.lower() == OWNER_ACCOUNT:
            if owner_id == user_id:
                return
        elif allow_tenant and tenant_id == user_id:
            return
        raise ForbiddenError("You are not allowed to access this record")

    def ensure_schedule_access(self, schedule_id: UUID, user: UserToken, allow_tenant: bool = False):
        self._check(self._parties_for_schedule(schedule_id), user, allow_tenant)

    def ensure_payment_access(self, payment_id: UUID, user: UserToken, allow_tenant: bool = False):
        self._check(self._parties_for_payment(payment_id), user, allow_tenant)

    def ensure_rental_access(self, rental_id: UUID, user: UserToken):
        self._check(self._parties_for_rental(rental_id), user, False)
