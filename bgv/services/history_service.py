"""
Verification history: append-only audit trail of case actions.
"""
import logging
from typing import List, Optional
from sqlalchemy.orm import Session

from bgv.db.models.verification_history import VerificationHistory, HISTORY_ACTIONS

logger = logging.getLogger(__name__)


def log_verification_action(
    db: Session,
    application_id: int,
    verifier_id: Optional[int],
    action: str,
    notes: Optional[str] = None,
) -> VerificationHistory:
    """
    Stage a history row in the caller's transaction.

    Does not commit; the row is written or discarded together with the
    status change it records.
    """
    if action not in HISTORY_ACTIONS:
        raise ValueError(f"Unknown verification action: {action}")

    entry = VerificationHistory(
        application_id=application_id,
        verifier_id=verifier_id,
        action=action,
        notes=notes,
    )
    db.add(entry)
    logger.debug(f"History staged: application_id={application_id}, action={action}, verifier_id={verifier_id}")
    return entry


def list_history(db: Session, application_id: int) -> List[VerificationHistory]:
    return (
        db.query(VerificationHistory)
        .filter(VerificationHistory.application_id == application_id)
        .order_by(VerificationHistory.created_at.asc(), VerificationHistory.id.asc())
        .all()
    )
