"""
Review Service.

Per-field and per-file review decisions, the rolled-up review summary and
the final approve/reject decision on an application.

Field decisions, file decisions and the summary are upserted: a second
review of the same item overwrites the first. Every mutating operation is
one transaction and requires the caller to own the application.
"""
import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence
from sqlalchemy import and_
from sqlalchemy.orm import Session

from bgv.core.exceptions import ValidationError
from bgv.db.models.application import Application
from bgv.db.models.application_document import ApplicationDocument
from bgv.db.models.question import ApplicationQuestionAnswer
from bgv.db.models.review import FieldReview, FileReview, ApplicationReview, REVIEW_STATUSES
from bgv.db.models.user import User
from bgv.db.transaction import transaction
from bgv.services.application_service import get_application
from bgv.services.assignment_service import get_owned_application
from bgv.services.history_service import log_verification_action
from bgv.services.question_service import get_answers
from bgv.services.review_items import QuestionAnswer, catalogue_items, parse_reviewable_key

logger = logging.getLogger(__name__)

FINAL_STATUSES = ("approved", "rejected")


def _snapshot(value: Any) -> Optional[str]:
    """Field value as stored at review time."""
    if value is None or value == "":
        return None
    if isinstance(value, str):
        return value
    return json.dumps(value, default=str)


def _upsert_field_review(
    db: Session,
    application_id: int,
    reviewer_id: int,
    field_name: str,
    field_value: Any,
    status: str,
    notes: Optional[str],
    reviewed_at: datetime,
) -> FieldReview:
    review = (
        db.query(FieldReview)
        .filter(FieldReview.application_id == application_id, FieldReview.field_name == field_name)
        .first()
    )
    if review is None:
        review = FieldReview(application_id=application_id, field_name=field_name)
        db.add(review)
    review.field_value = _snapshot(field_value)
    review.review_status = status
    review.review_notes = notes
    review.reviewed_by = reviewer_id
    review.reviewed_at = reviewed_at
    # Later entries in the same batch must see this row
    db.flush()
    return review


def _upsert_file_review(
    db: Session,
    application_id: int,
    reviewer_id: int,
    file_id: int,
    status: str,
    notes: Optional[str],
    reviewed_at: datetime,
) -> FileReview:
    review = (
        db.query(FileReview)
        .filter(FileReview.application_id == application_id, FileReview.file_id == file_id)
        .first()
    )
    if review is None:
        review = FileReview(application_id=application_id, file_id=file_id)
        db.add(review)
    review.review_status = status
    review.review_notes = notes
    review.reviewed_by = reviewer_id
    review.reviewed_at = reviewed_at
    db.flush()
    return review


def _upsert_summary(
    db: Session,
    application_id: int,
    reviewer_id: int,
    overall_status: str,
    notes: Optional[str],
    reviewed_at: datetime,
) -> ApplicationReview:
    summary = db.query(ApplicationReview).filter(ApplicationReview.application_id == application_id).first()
    if summary is None:
        summary = ApplicationReview(application_id=application_id)
        db.add(summary)
    summary.overall_status = overall_status
    summary.review_notes = notes
    summary.reviewed_by = reviewer_id
    summary.reviewed_at = reviewed_at
    db.flush()
    return summary


def _ensure_item_belongs(db: Session, application_id: int, field_name: str) -> None:
    """A question_answer_<id> key must name an answer of this application."""
    item = parse_reviewable_key(field_name)
    if not isinstance(item, QuestionAnswer):
        return
    answer = (
        db.query(ApplicationQuestionAnswer.id)
        .filter(
            ApplicationQuestionAnswer.id == item.answer_id,
            ApplicationQuestionAnswer.application_id == application_id,
        )
        .first()
    )
    if answer is None:
        raise ValidationError(f"Question answer {item.answer_id} not found for application {application_id}")


def submit_review(
    db: Session,
    application_id: int,
    reviewer_id: int,
    field_reviews: Optional[Sequence[Any]] = None,
    file_reviews: Optional[Sequence[Any]] = None,
    overall_notes: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Record a batch of field and file decisions and move the application to "under_review".

    Args:
        db: Database session
        application_id: Application being reviewed
        reviewer_id: Verifier submitting; must own the application
        field_reviews: Items with field_name, field_value, status, notes
        file_reviews: Items with file_id, status, notes
        overall_notes: Notes stored on the review summary

    Returns:
        {applicationId, fieldReviewsCount, fileReviewsCount, overallStatus}

    Raises:
        ApplicationNotOwned: Before anything is written
        ValidationError: Bad item; the whole batch is rolled back
        TransactionError: Database failure; the whole batch is rolled back
    """
    field_reviews = list(field_reviews or [])
    file_reviews = list(file_reviews or [])

    application = get_owned_application(db, application_id, reviewer_id)
    now = datetime.utcnow()

    with transaction(db, "submit review"):
        for item in field_reviews:
            if not item.field_name or not item.status:
                raise ValidationError("Field review requires fieldName and status")
            if item.status not in REVIEW_STATUSES:
                raise ValidationError(f"Invalid review status '{item.status}' for field {item.field_name}")
            _ensure_item_belongs(db, application_id, item.field_name)
            _upsert_field_review(
                db, application_id, reviewer_id,
                item.field_name, item.field_value, item.status, item.notes, now,
            )

        for item in file_reviews:
            if not item.file_id or not item.status:
                raise ValidationError("File review requires fileId and status")
            if item.status not in REVIEW_STATUSES:
                raise ValidationError(f"Invalid review status '{item.status}' for file {item.file_id}")
            document = (
                db.query(ApplicationDocument.id)
                .filter(ApplicationDocument.id == item.file_id, ApplicationDocument.application_id == application_id)
                .first()
            )
            if document is None:
                raise ValidationError(f"File {item.file_id} not found for application {application_id}")
            _upsert_file_review(db, application_id, reviewer_id, item.file_id, item.status, item.notes, now)

        _upsert_summary(db, application_id, reviewer_id, "under_review", overall_notes, now)
        application.application_status = "under_review"
        application.rejection_reason = None

    logger.info(
        f"Review submitted: application_id={application_id}, reviewer_id={reviewer_id}, "
        f"fields={len(field_reviews)}, files={len(file_reviews)}"
    )
    return {
        "applicationId": application_id,
        "fieldReviewsCount": len(field_reviews),
        "fileReviewsCount": len(file_reviews),
        "overallStatus": "under_review",
    }


def _review_entry(review: Optional[FieldReview], reviewer_email: Optional[str], **defaults) -> Dict[str, Any]:
    if review is None:
        return {
            "id": None,
            "application_id": defaults["application_id"],
            "field_name": defaults["field_name"],
            "field_value": defaults["field_value"],
            "review_status": "pending",
            "review_notes": None,
            "reviewed_by": None,
            "reviewed_at": None,
            "reviewer_email": None,
        }
    return {
        "id": review.id,
        "application_id": review.application_id,
        "field_name": review.field_name,
        "field_value": review.field_value,
        "review_status": review.review_status,
        "review_notes": review.review_notes,
        "reviewed_by": review.reviewed_by,
        "reviewed_at": review.reviewed_at,
        "reviewer_email": reviewer_email,
    }


def _count(entries: List[Dict[str, Any]], status: str) -> int:
    return sum(1 for entry in entries if entry["review_status"] == status)


def get_review(db: Session, application_id: int) -> Dict[str, Any]:
    """
    Full review state of an application.

    Every catalogue field and every question answer appears exactly once:
    the stored decision when there is one, otherwise a "pending" entry
    carrying the live value. Every document appears once with its decision
    or "pending". Nothing is written.

    Returns:
        {applicationId, fieldReviews, fileReviews, summary, counts}
    """
    application = get_application(db, application_id)

    stored = (
        db.query(FieldReview, User.email)
        .outerjoin(User, User.id == FieldReview.reviewed_by)
        .filter(FieldReview.application_id == application_id)
        .all()
    )
    by_name = {review.field_name: (review, email) for review, email in stored}

    field_entries = []
    for item in catalogue_items():
        review, email = by_name.get(item.storage_key, (None, None))
        field_entries.append(_review_entry(
            review, email,
            application_id=application_id,
            field_name=item.storage_key,
            field_value=getattr(application, item.name, None),
        ))

    for answer in get_answers(db, application_id):
        key = QuestionAnswer(answer.id).storage_key
        review, email = by_name.get(key, (None, None))
        entry = _review_entry(
            review, email,
            application_id=application_id,
            field_name=key,
            field_value=answer.answer_text or "",
        )
        entry["question_id"] = answer.question_id
        entry["question_text"] = answer.question.question_text if answer.question else None
        field_entries.append(entry)

    file_rows = (
        db.query(ApplicationDocument, FileReview, User.email)
        .outerjoin(
            FileReview,
            and_(FileReview.file_id == ApplicationDocument.id, FileReview.application_id == application_id),
        )
        .outerjoin(User, User.id == FileReview.reviewed_by)
        .filter(ApplicationDocument.application_id == application_id)
        .order_by(ApplicationDocument.document_type.asc(), ApplicationDocument.document_name.asc())
        .all()
    )
    file_entries = []
    for document, review, email in file_rows:
        file_entries.append({
            "id": document.id,
            "document_type": document.document_type,
            "document_name": document.document_name,
            "file_path": document.file_path,
            "file_size": document.file_size,
            "mime_type": document.mime_type,
            "uploaded_at": document.uploaded_at,
            "review_id": review.id if review else None,
            "review_status": review.review_status if review else "pending",
            "review_notes": review.review_notes if review else None,
            "reviewed_by": review.reviewed_by if review else None,
            "reviewed_at": review.reviewed_at if review else None,
            "reviewer_email": email if review else None,
        })

    summary_row = (
        db.query(ApplicationReview, User.email)
        .outerjoin(User, User.id == ApplicationReview.reviewed_by)
        .filter(ApplicationReview.application_id == application_id)
        .first()
    )
    summary = None
    if summary_row:
        review, email = summary_row
        summary = {
            "id": review.id,
            "application_id": review.application_id,
            "overall_status": review.overall_status,
            "review_notes": review.review_notes,
            "reviewed_by": review.reviewed_by,
            "reviewed_at": review.reviewed_at,
            "reviewer_email": email,
        }

    counts = {
        "totalFields": len(field_entries),
        "approvedFields": _count(field_entries, "approved"),
        "rejectedFields": _count(field_entries, "rejected"),
        "pendingFields": _count(field_entries, "pending"),
        "totalFiles": len(file_entries),
        "approvedFiles": _count(file_entries, "approved"),
        "rejectedFiles": _count(file_entries, "rejected"),
        "pendingFiles": _count(file_entries, "pending"),
    }

    return {
        "applicationId": application_id,
        "fieldReviews": field_entries,
        "fileReviews": file_entries,
        "summary": summary,
        "counts": counts,
    }


def _apply_decision(
    db: Session,
    application: Application,
    reviewer_id: int,
    overall_status: str,
    notes: Optional[str],
    rejection_reason: Optional[str],
    reviewed_at: datetime,
) -> None:
    """Stage the final status on the application and append the history row."""
    application.application_status = overall_status
    application.reviewed_at = reviewed_at
    application.rejection_reason = rejection_reason if overall_status == "rejected" else None
    history_notes = rejection_reason if overall_status == "rejected" else notes
    log_verification_action(db, application.id, reviewer_id, overall_status, history_notes)


def finalize_review(
    db: Session,
    application_id: int,
    reviewer_id: int,
    overall_status: Optional[str],
    final_notes: Optional[str] = None,
    rejection_reason: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Approve or reject an owned application.

    Finalizing again, or without a prior submit_review, is allowed;
    the latest decision wins and approving clears any rejection reason.

    Raises:
        ValidationError: Bad status or missing rejection reason, before any lookup
        ApplicationNotOwned: Absent or not assigned to the reviewer
    """
    if overall_status not in FINAL_STATUSES:
        raise ValidationError('Overall status must be either "approved" or "rejected"')
    if overall_status == "rejected" and not (rejection_reason or "").strip():
        raise ValidationError("Rejection reason is required when rejecting an application")

    application = get_owned_application(db, application_id, reviewer_id)
    now = datetime.utcnow()

    with transaction(db, "finalize review"):
        _upsert_summary(db, application_id, reviewer_id, overall_status, final_notes, now)
        _apply_decision(db, application, reviewer_id, overall_status, final_notes, rejection_reason, now)

    logger.info(f"Review finalized: application_id={application_id}, reviewer_id={reviewer_id}, status={overall_status}")
    return {
        "applicationId": application_id,
        "overallStatus": overall_status,
        "finalizedAt": now.isoformat(),
    }


def approve_application(
    db: Session,
    application_id: int,
    verifier_id: int,
    review_notes: Optional[str] = None,
) -> Application:
    """Approve without going through the review summary."""
    application = get_owned_application(db, application_id, verifier_id)

    with transaction(db, "approve application"):
        application.review_notes = review_notes
        _apply_decision(db, application, verifier_id, "approved", review_notes, None, datetime.utcnow())

    db.refresh(application)
    logger.info(f"Application approved: application_id={application_id}, verifier_id={verifier_id}")
    return application


def reject_application(
    db: Session,
    application_id: int,
    verifier_id: int,
    rejection_reason: Optional[str],
) -> Application:
    """Reject without going through the review summary."""
    if not (rejection_reason or "").strip():
        raise ValidationError("Rejection reason is required")

    application = get_owned_application(db, application_id, verifier_id)

    with transaction(db, "reject application"):
        _apply_decision(db, application, verifier_id, "rejected", None, rejection_reason, datetime.utcnow())

    db.refresh(application)
    logger.info(f"Application rejected: application_id={application_id}, verifier_id={verifier_id}")
    return application
