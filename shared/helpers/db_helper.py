import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from shared.core.exceptions import InvalidStateError, PersistenceError
from shared.utils.app_status_code import AppStatusCode

logger = logging.getLogger(__name__)


def commit_or_raise(db: Session, action: str):
    """
    Commit the unit of work. Anything the database rejects is rolled back as
    a whole and re-raised as a domain error, so multi-row writes never leave
    half of their rows behind.
    """
    try:
        db.commit()
    except StaleDataError as e:
        db.rollback()
        logger.warning("Concurrent update rejected while trying to %s", action)
        raise InvalidStateError(
            f"Could not {action}: the record was modified concurrently, reload and retry",
            status_code=AppStatusCode.CONCURRENT_UPDATE,
        ) from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("Transaction rolled back while trying to %s", action)
        raise PersistenceError(f"Could not {action}") from e
