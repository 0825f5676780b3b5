# partim/utils/db_errors.py
"""
Translate SQLAlchemy failures into domain errors.

    with storage_errors(db, "clock in", conflict="Officer already has an open shift"):
        ...

IntegrityError -> ConflictError, any other SQLAlchemyError -> StorageError.
The session is rolled back before the domain error propagates.
"""

from contextlib import contextmanager
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from partim.exceptions import ConflictError, PartimError, StorageError
from partim.utils.logger import get_logger

logger = get_logger(__name__)


@contextmanager
def storage_errors(db: Session, action: str, conflict: Optional[str] = None):
    try:
        yield
    except PartimError:
        db.rollback()
        raise
    except IntegrityError as exc:
        db.rollback()
        logger.warning(f"{action}: integrity violation ({exc.orig})")
        raise ConflictError(conflict or f"{action}: record already exists") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(f"{action}: storage failure", exc_info=True)
        raise StorageError(f"{action} failed: storage unavailable") from exc
