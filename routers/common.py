import logging

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


def not_found(entity: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{entity} not found")


def bad_request(message: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)


def commit_or_conflict(db: Session, conflict_message: str):
    """
    Commit the session, turning a unique-constraint violation into a 400.

    The duplicate pre-checks in the routers are not atomic with the write; the
    store's unique indexes catch whatever slips past them.
    """
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning("Integrity conflict: %s", conflict_message)
        raise bad_request(conflict_message)
