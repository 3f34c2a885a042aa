from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from bgv.api.responses import success_response
from bgv.core.auth_dependency import get_db, require_verifier
from bgv.db.models.user import User
from bgv.schemas.application import ApplicationResponse, ApproveRequest, RejectRequest
from bgv.schemas.review import FinalizeReviewRequest, ReviewSubmitRequest
from bgv.services import review_service

router = APIRouter(prefix="/applications", tags=["Reviews"])


# ✅ SUBMIT FIELD + FILE DECISIONS
@router.post("/{application_id}/review")
def submit_review(
    application_id: int,
    payload: ReviewSubmitRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_verifier),
):
    result = review_service.submit_review(
        db,
        application_id,
        user.id,
        field_reviews=payload.field_reviews,
        file_reviews=payload.file_reviews,
        overall_notes=payload.overall_notes,
    )
    return success_response("Review submitted successfully", result)


# ✅ FULL REVIEW STATE
@router.get("/{application_id}/review")
def get_review(
    application_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_verifier),
):
    return success_response("Review retrieved successfully", review_service.get_review(db, application_id))


# ✅ FINAL DECISION
@router.post("/{application_id}/finalize-review")
def finalize_review(
    application_id: int,
    payload: FinalizeReviewRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_verifier),
):
    result = review_service.finalize_review(
        db,
        application_id,
        user.id,
        payload.overall_status,
        final_notes=payload.final_notes,
        rejection_reason=payload.rejection_reason,
    )
    return success_response(f"Application {payload.overall_status} successfully", result)


@router.post("/{application_id}/approve")
def approve_application(
    application_id: int,
    payload: ApproveRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_verifier),
):
    application = review_service.approve_application(db, application_id, user.id, payload.review_notes)
    return success_response("Application approved successfully", ApplicationResponse.model_validate(application))


@router.post("/{application_id}/reject")
def reject_application(
    application_id: int,
    payload: RejectRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_verifier),
):
    application = review_service.reject_application(db, application_id, user.id, payload.rejection_reason)
    return success_response("Application rejected successfully", ApplicationResponse.model_validate(application))
