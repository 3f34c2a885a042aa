"""
Assignment Service.

Two kinds of assignment live here:
- case assignment: one application handed to one verifier (Application.assigned_verifier_id)
- company grants: a verifier allowed to work a company's applications (VerifierAssignment)

A case can only go to an active verifier holding an active grant for the
application's company.
"""
import logging
from datetime import datetime
from typing import List, Optional, Tuple
from sqlalchemy.orm import Session

from bgv.core.exceptions import ApplicationNotOwned, ConflictError, NotFoundError, ValidationError
from bgv.db.models.application import Application
from bgv.db.models.company import Company, VerifierAssignment
from bgv.db.models.user import User
from bgv.db.transaction import transaction
from bgv.services.application_service import get_application
from bgv.services.history_service import log_verification_action

logger = logging.getLogger(__name__)


def get_owned_application(db: Session, application_id: int, verifier_id: int) -> Application:
    """
    Load an application only if it is assigned to the verifier.

    Raises:
        ApplicationNotOwned: Absent or assigned to someone else (same 404 either way)
    """
    application = (
        db.query(Application)
        .filter(Application.id == application_id, Application.assigned_verifier_id == verifier_id)
        .first()
    )
    if not application:
        logger.info(f"Ownership check failed: application_id={application_id}, verifier_id={verifier_id}")
        raise ApplicationNotOwned()
    return application


def has_active_assignment(db: Session, verifier_id: int, company_id: int) -> bool:
    return (
        db.query(VerifierAssignment.id)
        .filter(
            VerifierAssignment.verifier_id == verifier_id,
            VerifierAssignment.company_id == company_id,
            VerifierAssignment.is_active.is_(True),
        )
        .first()
        is not None
    )


def _get_active_verifier(db: Session, verifier_id: int) -> User:
    verifier = db.query(User).filter(User.id == verifier_id).first()
    if not verifier or verifier.user_type != "verifier" or not verifier.is_active:
        raise ValidationError("Verifier not found or inactive")
    return verifier


def _ensure_can_work(db: Session, application: Application, verifier_id: int) -> User:
    verifier = _get_active_verifier(db, verifier_id)
    if not has_active_assignment(db, verifier_id, application.company_id):
        raise ValidationError("Verifier is not assigned to this application's company")
    return verifier


def _assign(db: Session, application: Application, verifier_id: int, notes: str) -> None:
    application.assigned_verifier_id = verifier_id
    application.assigned_at = datetime.utcnow()
    application.application_status = "assigned"
    application.rejection_reason = None
    log_verification_action(db, application.id, verifier_id, "assigned", notes)


def assign_to_verifier(
    db: Session,
    application_id: int,
    verifier_id: Optional[int],
    actor_id: Optional[int] = None,
) -> Application:
    """
    Admin hands an application to a verifier.

    Re-assigning an already assigned application moves it to the new
    verifier and resets the status to "assigned".
    """
    if not verifier_id:
        raise ValidationError("Verifier ID is required")

    application = get_application(db, application_id)
    verifier = _ensure_can_work(db, application, verifier_id)

    with transaction(db, "assign application"):
        _assign(db, application, verifier_id, f"Application assigned to {verifier.full_name}")

    db.refresh(application)
    logger.info(f"Application assigned: application_id={application_id}, verifier_id={verifier_id}, actor_id={actor_id}")
    return application


def assign_to_current_verifier(db: Session, application_id: int, verifier_id: int) -> Tuple[Application, bool]:
    """
    Verifier picks up an unassigned application.

    Returns:
        (application, newly_assigned). newly_assigned is False when the
        verifier already owned it; nothing is written in that case.

    Raises:
        ConflictError: Another verifier owns the application
    """
    application = get_application(db, application_id)

    if application.assigned_verifier_id == verifier_id:
        return application, False
    if application.assigned_verifier_id is not None:
        raise ConflictError("Application is already assigned to another verifier")

    _ensure_can_work(db, application, verifier_id)

    with transaction(db, "assign application"):
        _assign(db, application, verifier_id, "Application self-assigned by verifier")

    db.refresh(application)
    logger.info(f"Application self-assigned: application_id={application_id}, verifier_id={verifier_id}")
    return application, True


def start_review(db: Session, application_id: int, verifier_id: int) -> Application:
    """Move an owned application to "under_review"."""
    application = get_owned_application(db, application_id, verifier_id)

    with transaction(db, "start review"):
        application.application_status = "under_review"
        application.rejection_reason = None
        log_verification_action(db, application_id, verifier_id, "started_review", "Review started")

    db.refresh(application)
    logger.info(f"Review started: application_id={application_id}, verifier_id={verifier_id}")
    return application


def assign_verifier_to_company(db: Session, company_id: int, verifier_id: Optional[int]) -> VerifierAssignment:
    """Grant (or re-activate) a verifier's access to a company."""
    if not verifier_id:
        raise ValidationError("Verifier ID is required")

    company = db.query(Company).filter(Company.id == company_id).first()
    if not company:
        raise NotFoundError("Company not found")
    _get_active_verifier(db, verifier_id)

    grant = (
        db.query(VerifierAssignment)
        .filter(VerifierAssignment.verifier_id == verifier_id, VerifierAssignment.company_id == company_id)
        .first()
    )
    with transaction(db, "assign verifier to company"):
        if grant is None:
            grant = VerifierAssignment(verifier_id=verifier_id, company_id=company_id)
            db.add(grant)
        grant.is_active = True
        grant.assigned_at = datetime.utcnow()

    db.refresh(grant)
    logger.info(f"Verifier granted company: verifier_id={verifier_id}, company_id={company_id}")
    return grant


def unassign_verifier_from_company(db: Session, company_id: int, verifier_id: int) -> None:
    """
    Revoke a verifier's company grant.

    Applications already assigned to the verifier stay assigned.
    """
    grant = (
        db.query(VerifierAssignment)
        .filter(
            VerifierAssignment.verifier_id == verifier_id,
            VerifierAssignment.company_id == company_id,
            VerifierAssignment.is_active.is_(True),
        )
        .first()
    )
    if not grant:
        raise NotFoundError("Verifier assignment not found")

    with transaction(db, "unassign verifier from company"):
        grant.is_active = False

    logger.info(f"Verifier grant revoked: verifier_id={verifier_id}, company_id={company_id}")


def list_company_verifiers(db: Session, company_id: int) -> List[User]:
    return (
        db.query(User)
        .join(VerifierAssignment, VerifierAssignment.verifier_id == User.id)
        .filter(VerifierAssignment.company_id == company_id, VerifierAssignment.is_active.is_(True))
        .order_by(User.first_name.asc(), User.last_name.asc())
        .all()
    )


def list_verifier_companies(db: Session, verifier_id: int) -> List[Company]:
    return (
        db.query(Company)
        .join(VerifierAssignment, VerifierAssignment.company_id == Company.id)
        .filter(VerifierAssignment.verifier_id == verifier_id, VerifierAssignment.is_active.is_(True))
        .order_by(Company.name.asc())
        .all()
    )
