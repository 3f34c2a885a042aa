"""
Unit-of-work helper: one commit or one rollback per mutating operation.
"""
import logging
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from bgv.core.config import is_production
from bgv.core.exceptions import AppError, TransactionError

logger = logging.getLogger(__name__)


@contextmanager
def transaction(db: Session, action: str):
    """
    Commit everything written inside the block, or roll all of it back.

    Domain errors are re-raised untouched; database errors become
    TransactionError("Failed to <action>") carrying the raw driver message
    outside production.
    """
    try:
        yield db
        db.commit()
    except AppError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Transaction failed: action={action}, error={e}", exc_info=True)
        raise TransactionError(
            f"Failed to {action}",
            error=None if is_production() else str(e),
        ) from e
    except Exception:
        db.rollback()
        raise
