"""
Single-transaction unit of work for service operations
"""
import logging
from contextlib import contextmanager
from typing import Any, Iterator

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from itam.db.integrity import translate_integrity_error

logger = logging.getLogger(__name__)


@contextmanager
def atomic(db: Session, operation: str, **context: Any) -> Iterator[Session]:
    """
    Run every write of one operation in one transaction

    Commits when the block exits cleanly. On any exception the session is
    rolled back, so no partial effect is ever committed; constraint
    violations are re-raised as domain errors.

    Usage:
        with atomic(db, "create_assignment", asset_id=asset.id):
            db.add(assignment)
            asset.status = AssetStatus.IN_USE
    """
    try:
        yield db
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.warning("%s rejected by database constraint: %s", operation, exc.orig)
        raise translate_integrity_error(exc, **context) from exc
    except Exception:
        db.rollback()
        logger.debug("%s rolled back", operation)
        raise
