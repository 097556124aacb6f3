import logging
from typing import Iterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from mindmuse.core.errors import PersistenceError
from mindmuse.db.base import SessionLocal

logger = logging.getLogger(__name__)


def get_db() -> Iterator[Session]:
    """One session per request, always closed."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def commit_or_raise(db: Session, what: str) -> None:
    """Commit, or roll back and surface the failure as PersistenceError."""
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("[DB] commit failed while %s: %r", what, exc)
        raise PersistenceError(f"Failed to save {what}") from exc
