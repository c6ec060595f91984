import logging
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from ..core.errors import DataAccessError

logger = logging.getLogger(__name__)


@contextmanager
def backend_call(session: Session, operation: str):
    """Maps any store failure inside the block to DataAccessError."""
    try:
        yield
    except SQLAlchemyError as e:
        session.rollback()
        payload = getattr(e, "orig", None) or e
        logger.error("%s failed: %s", operation, payload)
        raise DataAccessError(operation, str(payload)) from e


def apply_updates(record, updates: dict) -> bool:
    """Sets the given fields on record; returns True if anything changed."""
    changed = False
    for field, value in updates.items():
        if getattr(record, field) != value:
            setattr(record, field, value)
            changed = True
    return changed
