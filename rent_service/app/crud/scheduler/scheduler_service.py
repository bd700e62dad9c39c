import logging
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from shared.core.exceptions import AppError

from ..payments.payments_crud import update_late_payments_status

logger = logging.getLogger(__name__)


def process_late_payments(db: Session, today: Optional[date] = None) -> int:
    """Scheduled entry point for the late sweep; never raises into the timer loop."""
    try:
        result = update_late_payments_status(db, today)
        return result["updated"]
    except AppError:
        logger.exception("Late payment sweep failed")
        return 0
    finally:
        db.close()
