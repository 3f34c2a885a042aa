"""
Application Service.
Intake, lookup, editing and deletion of background verification cases.
"""
import logging
from typing import Any, Dict, List, Optional
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from bgv.core.exceptions import NotFoundError, ValidationError
from bgv.db.models.application import Application, APPLICATION_STATUSES
from bgv.db.models.application_document import ApplicationDocument
from bgv.db.models.company import Company
from bgv.db.models.question import ApplicationQuestionAnswer
from bgv.db.models.review import FieldReview, FileReview, ApplicationReview
from bgv.db.models.verification_history import VerificationHistory
from bgv.db.transaction import transaction
from bgv.services import history_service, question_service
from bgv.services.storage import StorageProvider

logger = logging.getLogger(__name__)

# Columns owned by the workflow; never written from applicant or admin payloads
PROTECTED_COLUMNS = {
    "id",
    "company_id",
    "application_status",
    "assigned_verifier_id",
    "assigned_at",
    "reviewed_at",
    "review_notes",
    "rejection_reason",
    "created_at",
    "updated_at",
}

APPLICANT_COLUMNS = [
    column.name for column in Application.__table__.columns if column.name not in PROTECTED_COLUMNS
]

REQUIRED_APPLICANT_FIELDS = ("applicant_first_name", "applicant_last_name", "applicant_email")

COUNTER_COLUMNS = ("bike_quantity", "car_quantity", "ac_quantity")


def _applicant_values(data: Dict[str, Any]) -> Dict[str, Any]:
    """Keep only applicant columns, normalising empty strings to None."""
    values = {}
    for key, value in data.items():
        if key not in APPLICANT_COLUMNS:
            continue
        if isinstance(value, str) and value.strip() == "":
            value = None
        values[key] = value
    return values


def create_application(
    db: Session,
    company_id: int,
    data: Dict[str, Any],
    answers: Optional[Dict[Any, Any]] = None,
) -> Application:
    """
    Create a new application in status "pending" for an active company.

    Args:
        db: Database session
        company_id: Company the applicant is verifying for
        data: Applicant fields keyed by column name; unknown keys are ignored
        answers: Optional {question_id: answer_text} for custom form questions

    Returns:
        The persisted Application

    Raises:
        NotFoundError: Company missing or inactive
        ValidationError: Name or email missing
    """
    company = db.query(Company).filter(Company.id == company_id, Company.is_active.is_(True)).first()
    if not company:
        raise NotFoundError("Company not found")

    values = _applicant_values(data)
    missing = [field for field in REQUIRED_APPLICANT_FIELDS if not values.get(field)]
    if missing:
        raise ValidationError(
            "Required fields missing: applicant_first_name, applicant_last_name, and applicant_email are required"
        )

    for counter in COUNTER_COLUMNS:
        if values.get(counter) is None:
            values[counter] = 0
    if values.get("use_current_as_permanent") is None:
        values["use_current_as_permanent"] = False

    application = Application(company_id=company_id, application_status="pending", **values)

    with transaction(db, "create application"):
        db.add(application)
        db.flush()
        if answers:
            question_service.save_answers(db, application.id, answers)

    db.refresh(application)
    logger.info(f"Application created: application_id={application.id}, company_id={company_id}")
    return application


def get_application(db: Session, application_id: int) -> Application:
    application = db.query(Application).filter(Application.id == application_id).first()
    if not application:
        raise NotFoundError("Application not found")
    return application


def list_applications(
    db: Session,
    status: Optional[str] = None,
    company_id: Optional[int] = None,
    verifier_id: Optional[int] = None,
    search: Optional[str] = None,
    limit: Optional[int] = None,
) -> List[Application]:
    """
    List applications newest first with optional filters.

    search matches applicant first name, last name, email or company name
    (case-insensitive substring).
    """
    query = db.query(Application).outerjoin(Company, Company.id == Application.company_id)

    if status:
        if status not in APPLICATION_STATUSES:
            raise ValidationError(f"Invalid status filter: {status}")
        query = query.filter(Application.application_status == status)
    if company_id:
        query = query.filter(Application.company_id == company_id)
    if verifier_id:
        query = query.filter(Application.assigned_verifier_id == verifier_id)
    if search:
        pattern = f"%{search.strip().lower()}%"
        query = query.filter(or_(
            func.lower(Application.applicant_first_name).like(pattern),
            func.lower(Application.applicant_last_name).like(pattern),
            func.lower(Application.applicant_email).like(pattern),
            func.lower(Company.name).like(pattern),
        ))

    query = query.order_by(Application.created_at.desc(), Application.id.desc())
    if limit:
        query = query.limit(limit)
    return query.all()


def list_company_applications(db: Session, company_id: int, status: Optional[str] = None) -> List[Application]:
    return list_applications(db, status=status, company_id=company_id)


def list_verifier_applications(db: Session, verifier_id: int, status: Optional[str] = None) -> List[Application]:
    """Applications currently assigned to the verifier."""
    return list_applications(db, status=status, verifier_id=verifier_id)


def update_application(db: Session, application_id: int, data: Dict[str, Any]) -> Application:
    """
    Edit applicant fields.

    Workflow columns (status, assignment, review outcome, company) are never
    touched here; they only change through assignment and review operations.
    """
    application = get_application(db, application_id)
    values = _applicant_values(data)

    for field in REQUIRED_APPLICANT_FIELDS:
        if field in values and not values[field]:
            raise ValidationError(f"{field} cannot be empty")
    for counter in COUNTER_COLUMNS:
        if counter in values and values[counter] is None:
            values[counter] = 0
    if "use_current_as_permanent" in values and values["use_current_as_permanent"] is None:
        values["use_current_as_permanent"] = False

    if not values:
        return application

    with transaction(db, "update application"):
        for key, value in values.items():
            setattr(application, key, value)

    db.refresh(application)
    logger.info(f"Application updated: application_id={application_id}, fields={sorted(values)}")
    return application


def delete_application(db: Session, storage: StorageProvider, application_id: int) -> Dict[str, Any]:
    """
    Delete an application with its reviews, answers, history and documents.

    Database rows go in one transaction. Stored files are removed afterwards;
    a storage failure is logged and does not undo the delete.

    Returns:
        {deletedApplicationId, applicantName, deletedFiles}
    """
    application = get_application(db, application_id)
    applicant_name = application.applicant_full_name
    documents = (
        db.query(ApplicationDocument)
        .filter(ApplicationDocument.application_id == application_id)
        .all()
    )
    storage_keys = [doc.storage_key or doc.file_path for doc in documents]

    with transaction(db, "delete application"):
        for model in (FileReview, FieldReview, ApplicationReview, VerificationHistory, ApplicationQuestionAnswer):
            db.query(model).filter(model.application_id == application_id).delete(synchronize_session=False)
        db.query(ApplicationDocument).filter(
            ApplicationDocument.application_id == application_id
        ).delete(synchronize_session=False)
        db.query(Application).filter(Application.id == application_id).delete(synchronize_session=False)

    db.expire_all()

    deleted_files = 0
    for key in storage_keys:
        try:
            if storage.delete_file(key):
                deleted_files += 1
        except Exception as e:
            logger.warning(f"Stored file not deleted: application_id={application_id}, key={key}, error={e}")

    logger.info(
        f"Application deleted: application_id={application_id}, "
        f"documents={len(storage_keys)}, files_removed={deleted_files}"
    )
    return {
        "deletedApplicationId": application_id,
        "applicantName": applicant_name,
        "deletedFiles": deleted_files,
    }


def get_application_stats(db: Session, verifier_id: Optional[int] = None) -> Dict[str, int]:
    """
    Count applications per status.

    When verifier_id is given only that verifier's assigned applications are counted.
    """
    query = db.query(Application.application_status, func.count(Application.id))
    if verifier_id:
        query = query.filter(Application.assigned_verifier_id == verifier_id)
    rows = query.group_by(Application.application_status).all()

    stats = {status: 0 for status in APPLICATION_STATUSES}
    for status, count in rows:
        stats[status] = count
    stats["total"] = sum(stats[status] for status in APPLICATION_STATUSES)
    return stats


def get_history(db: Session, application_id: int) -> List[VerificationHistory]:
    """Verification history of an application, oldest first."""
    get_application(db, application_id)
    return history_service.list_history(db, application_id)
