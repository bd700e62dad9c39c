from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from shared.core.auth import allow_owner, validate_current_token
from shared.core.database import get_rent_db as get_db
from shared.core.exceptions import NotFoundError
from shared.core.schemas import UserToken

from ...crud.payments import payments_crud as crud
from ...crud.payments.ownership_crud import OwnershipChecker
from ...schemas.payments.payments_schemas import (
    ArchiveMultipleRequest, ArchiveResult, PaymentCreate, PaymentDetailOut, PaymentOut,
    PaymentUpdate, RecordPaymentRequest, SweepResult,
)
from .payment_schedules_router import get_ownership_checker, user_uuid

router = APIRouter(
    prefix="/api/payments",
    tags=["payments"],
    dependencies=[Depends(validate_current_token)]
)


@router.post("/", response_model=PaymentOut)
def create_payment(
    payload: PaymentCreate,
    db: Session = Depends(get_db),
    checker: OwnershipChecker = Depends(get_ownership_checker),
    current_user: UserToken = Depends(allow_owner)
):
    checker.ensure_schedule_access(payload.schedule_id, current_user)
    return crud.create_payment(db, payload)


@router.get("/late", response_model=List[PaymentDetailOut])
def get_late_payments(
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_owner)
):
    return crud.get_late_payments(db, owner_id=user_uuid(current_user))


@router.get("/archived", response_model=List[PaymentDetailOut])
def get_archived_payments(
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_owner)
):
    return crud.get_archived_payments(db, owner_id=user_uuid(current_user))


@router.post("/update-late-status", response_model=SweepResult)
def update_late_status(
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(allow_owner)
):
    return crud.update_late_payments_status(db)


@router.post("/archive-multiple", response_model=ArchiveResult)
def archive_multiple_payments(
    payload: ArchiveMultipleRequest,
    db: Session = Depends(get_db),
    checker: OwnershipChecker = Depends(get_ownership_checker),
    current_user: UserToken = Depends(allow_owner)
):
    owned = []
    for payment_id in payload.payment_ids:
        # unknown ids fall through to the crud, which reports them as missing
        try:
            checker.ensure_payment_access(payment_id, current_user)
        except NotFoundError:
            pass
        owned.append(payment_id)
    return crud.archive_multiple_payments(db, owned)


@router.get("/{payment_id}", response_model=PaymentDetailOut)
def get_payment(
    payment_id: UUID,
    db: Session = Depends(get_db),
    checker: OwnershipChecker = Depends(get_ownership_checker),
    current_user: UserToken = Depends(validate_current_token)
):
    checker.ensure_payment_access(payment_id, current_user, allow_tenant=True)
    return crud.get_payment(db, payment_id)


@router.put("/{payment_id}", response_model=PaymentOut)
def update_payment(
    payment_id: UUID,
    payload: PaymentUpdate,
    db: Session = Depends(get_db),
    checker: OwnershipChecker = Depends(get_ownership_checker),
    current_user: UserToken = Depends(allow_owner)
):
    checker.ensure_payment_access(payment_id, current_user)
    return crud.update_payment(db, payment_id, payload)


@router.delete("/{payment_id}", response_model=None)
def delete_payment(
    payment_id: UUID,
    db: Session = Depends(get_db),
    checker: OwnershipChecker = Depends(get_ownership_checker),
    current_user: UserToken = Depends(allow_owner)
):
    checker.ensure_payment_access(payment_id, current_user)
    return crud.delete_payment(db, payment_id)


@router.post("/{payment_id}/record", response_model=PaymentOut)
def record_payment(
    payment_id: UUID,
    payload: RecordPaymentRequest,
    db: Session = Depends(get_db),
    checker: OwnershipChecker = Depends(get_ownership_checker),
    current_user: UserToken = Depends(allow_owner)
):
    checker.ensure_payment_access(payment_id, current_user)
    return crud.record_payment(db, payment_id, payload)


@router.put("/{payment_id}/cancel", response_model=PaymentOut)
def cancel_payment(
    payment_id: UUID,
    db: Session = Depends(get_db),
    checker: OwnershipChecker = Depends(get_ownership_checker),
    current_user: UserToken = Depends(allow_owner)
):
    checker.ensure_payment_access(payment_id, current_user)
    return crud.cancel_payment(db, payment_id)


@router.put("/{payment_id}/archive", response_model=PaymentOut)
def archive_payment(
    payment_id: UUID,
    db: Session = Depends(get_db),
    checker: OwnershipChecker = Depends(get_ownership_checker),
    current_user: UserToken = Depends(allow_owner)
):
    checker.ensure_payment_access(payment_id, current_user)
    return crud.archive_payment(db, payment_id)


@router.put("/{payment_id}/unarchive", response_model=PaymentOut)
def unarchive_payment(
    payment_id: UUID,
    db: Session = Depends(get_db),
    checker: OwnershipChecker = Depends(get_ownership_checker),
    current_user: UserToken = Depends(allow_owner)
):
    checker.ensure_payment_access(payment_id, current_user)
    return crud.unarchive_payment(db, payment_id)


@router.get("/{payment_id}/receipt-data", response_model=PaymentDetailOut)
def get_receipt_data(
    payment_id: UUID,
    db: Session = Depends(get_db),
    checker: OwnershipChecker = Depends(get_ownership_checker),
    current_user: UserToken = Depends(validate_current_token)
):
    checker.ensure_payment_access(payment_id, current_user, allow_tenant=True)
    return crud.get_receipt_payment(db, payment_id)
