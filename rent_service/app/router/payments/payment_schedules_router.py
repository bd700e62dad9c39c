from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from shared.core.auth import OWNER_ACCOUNT, allow_owner, validate_current_token
from shared.core.database import get_rent_db as get_db
from shared.core.exceptions import ForbiddenError
from shared.core.schemas import UserToken

from ...crud.payments import payment_schedules_crud as crud
from ...crud.payments.ownership_crud import OwnershipChecker
from ...crud.payments.payment_statistics_crud import get_payment_statistics
from ...schemas.payments.payment_schedules_schemas import (
    AmountRevisionOut, PaymentAmountUpdate, PaymentScheduleCreate, PaymentScheduleOut,
    PaymentScheduleUpdate, PaymentStatisticsOut,
)

router = APIRouter(
    prefix="/api/payments",
    tags=["payment schedules"],
    dependencies=[Depends(validate_current_token)]
)


def get_ownership_checker(db: Session = Depends(get_db)) -> OwnershipChecker:
    return OwnershipChecker(db)


def user_uuid(current_user: UserToken) -> UUID:
    try:
        return UUID(current_user.user_id)
    except ValueError:
        raise ForbiddenError("Token does not identify a known account")


@router.post("/schedules", response_model=PaymentScheduleOut)
def create_schedule(
    payload: PaymentScheduleCreate,
    db: Session = Depends(get_db),
    checker: OwnershipChecker = Depends(get_ownership_checker),
    current_user: UserToken = Depends(allow_owner)
):
    checker.ensure_rental_access(payload.rental_id, current_user)
    return crud.create_schedule(db, payload)


@router.get("/schedules", response_model=List[PaymentScheduleOut])
def get_schedules(
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_owner)
):
    return crud.get_schedules(db, owner_id=user_uuid(current_user))


@router.get("/schedules/property/{property_id}", response_model=List[PaymentScheduleOut])
def get_schedules_by_property(
    property_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_owner)
):
    return crud.get_schedules_by_property(db, property_id, owner_id=user_uuid(current_user))


@router.get("/schedules/tenant/{tenant_id}", response_model=List[PaymentScheduleOut])
def get_schedules_by_tenant(
    tenant_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    if current_user.account_type.lower() == OWNER_ACCOUNT:
        return crud.get_schedules_by_tenant(db, tenant_id, owner_id=user_uuid(current_user))
    if user_uuid(current_user) != tenant_id:
        raise ForbiddenError("Tenants can only see their own schedules")
    return crud.get_schedules_by_tenant(db, tenant_id)


@router.get("/schedules/{schedule_id}", response_model=PaymentScheduleOut)
def get_schedule(
    schedule_id: UUID,
    db: Session = Depends(get_db),
    checker: OwnershipChecker = Depends(get_ownership_checker),
    current_user: UserToken = Depends(validate_current_token)
):
    checker.ensure_schedule_access(schedule_id, current_user, allow_tenant=True)
    return crud.get_schedule(db, schedule_id)


@router.put("/schedules/{schedule_id}", response_model=PaymentScheduleOut)
def update_schedule(
    schedule_id: UUID,
    payload: PaymentScheduleUpdate,
    db: Session = Depends(get_db),
    checker: OwnershipChecker = Depends(get_ownership_checker),
    current_user: UserToken = Depends(allow_owner)
):
    checker.ensure_schedule_access(schedule_id, current_user)
    return crud.update_schedule(db, schedule_id, payload)


@router.put("/schedules/{schedule_id}/deactivate", response_model=PaymentScheduleOut)
def deactivate_schedule(
    schedule_id: UUID,
    db: Session = Depends(get_db),
    checker: OwnershipChecker = Depends(get_ownership_checker),
    current_user: UserToken = Depends(allow_owner)
):
    checker.ensure_schedule_access(schedule_id, current_user)
    return crud.deactivate_schedule(db, schedule_id)


@router.put("/schedules/{schedule_id}/amount", response_model=AmountRevisionOut)
def update_payment_amount(
    schedule_id: UUID,
    payload: PaymentAmountUpdate,
    db: Session = Depends(get_db),
    checker: OwnershipChecker = Depends(get_ownership_checker),
    current_user: UserToken = Depends(allow_owner)
):
    checker.ensure_schedule_access(schedule_id, current_user)
    return crud.update_payment_amount(db, schedule_id, payload.new_amount)


@router.delete("/schedules/{schedule_id}", response_model=None)
def delete_schedule(
    schedule_id: UUID,
    db: Session = Depends(get_db),
    checker: OwnershipChecker = Depends(get_ownership_checker),
    current_user: UserToken = Depends(allow_owner)
):
    checker.ensure_schedule_access(schedule_id, current_user)
    return crud.delete_schedule(db, schedule_id)


@router.get("/statistics/{schedule_id}", response_model=PaymentStatisticsOut)
def payment_statistics(
    schedule_id: UUID,
    db: Session = Depends(get_db),
    checker: OwnershipChecker = Depends(get_ownership_checker),
    current_user: UserToken = Depends(validate_current_token)
):
    checker.ensure_schedule_access(schedule_id, current_user, allow_tenant=True)
    return get_payment_statistics(db, schedule_id)
