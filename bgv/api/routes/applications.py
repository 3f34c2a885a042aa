import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from bgv.api.responses import success_response
from bgv.core.auth_dependency import get_db, require_admin, require_verifier, require_admin_or_verifier
from bgv.db.models.user import User
from bgv.schemas.application import (
    AnswerResponse,
    ApplicationDetail,
    ApplicationListItem,
    ApplicationResponse,
    ApplicationUpdate,
    AssignRequest,
    DocumentResponse,
    HistoryResponse,
)
from bgv.services import (
    application_service,
    assignment_service,
    document_service,
    question_service,
)
from bgv.services.storage import StorageProvider, get_storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/applications", tags=["Applications"])


# ✅ ADMIN LISTING
@router.get("")
def list_applications(
    status: Optional[str] = Query(None),
    company_id: Optional[int] = Query(None),
    verifier_id: Optional[int] = Query(None),
    search: Optional[str] = Query(None),
    limit: Optional[int] = Query(None, ge=1, le=1000),
    db: Session = Depends(get_db),
    user: User = Depends(require_admin),
):
    applications = application_service.list_applications(
        db, status=status, company_id=company_id, verifier_id=verifier_id, search=search, limit=limit
    )
    return success_response(
        "Applications retrieved successfully",
        [ApplicationListItem.from_application(app) for app in applications],
    )


# ✅ VERIFIER QUEUE
@router.get("/my")
def list_my_applications(
    status: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    user: User = Depends(require_verifier),
):
    applications = application_service.list_verifier_applications(db, user.id, status=status)
    return success_response(
        "Applications retrieved successfully",
        [ApplicationListItem.from_application(app) for app in applications],
    )


@router.get("/stats/overview")
def application_stats(
    db: Session = Depends(get_db),
    user: User = Depends(require_admin),
):
    return success_response("Application statistics", application_service.get_application_stats(db))


@router.delete("/documents/{document_id}")
def delete_document(
    document_id: int,
    db: Session = Depends(get_db),
    storage: StorageProvider = Depends(get_storage),
    user: User = Depends(require_admin),
):
    result = document_service.delete_document(db, storage, document_id)
    return success_response("Document deleted successfully", result)


# ✅ DETAIL (ADMIN: ANY, VERIFIER: OWN)
@router.get("/{application_id}")
def get_application(
    application_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin_or_verifier),
):
    if user.user_type == "verifier":
        application = assignment_service.get_owned_application(db, application_id, user.id)
    else:
        application = application_service.get_application(db, application_id)

    detail = ApplicationDetail(
        **ApplicationResponse.model_validate(application).model_dump(),
        company_name=application.company.name if application.company else None,
        assigned_verifier_name=application.assigned_verifier.full_name if application.assigned_verifier else None,
        assigned_verifier_email=application.assigned_verifier.email if application.assigned_verifier else None,
        documents=[DocumentResponse.model_validate(doc) for doc in document_service.list_documents(db, application_id)],
        answers=[AnswerResponse.from_answer(answer) for answer in question_service.get_answers(db, application_id)],
    )
    return success_response("Application retrieved successfully", detail)


@router.get("/{application_id}/history")
def get_history(
    application_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin_or_verifier),
):
    if user.user_type == "verifier":
        assignment_service.get_owned_application(db, application_id, user.id)
    history = application_service.get_history(db, application_id)
    return success_response(
        "Verification history retrieved successfully",
        [HistoryResponse.model_validate(entry) for entry in history],
    )


@router.put("/{application_id}")
def update_application(
    application_id: int,
    payload: ApplicationUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin),
):
    application = application_service.update_application(
        db, application_id, payload.model_dump(exclude_unset=True)
    )
    return success_response("Application updated successfully", ApplicationResponse.model_validate(application))


@router.delete("/{application_id}")
def delete_application(
    application_id: int,
    db: Session = Depends(get_db),
    storage: StorageProvider = Depends(get_storage),
    user: User = Depends(require_admin),
):
    result = application_service.delete_application(db, storage, application_id)
    return success_response("Application deleted successfully", result)


# ✅ ASSIGNMENT
@router.post("/{application_id}/assign")
def assign_application(
    application_id: int,
    payload: AssignRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin),
):
    application = assignment_service.assign_to_verifier(db, application_id, payload.verifier_id, actor_id=user.id)
    return success_response("Application assigned successfully", ApplicationResponse.model_validate(application))


@router.post("/{application_id}/auto-assign")
def auto_assign_application(
    application_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_verifier),
):
    application, newly_assigned = assignment_service.assign_to_current_verifier(db, application_id, user.id)
    message = "Application assigned to you successfully" if newly_assigned else "Application is already assigned to you"
    return success_response(message, ApplicationResponse.model_validate(application))


@router.post("/{application_id}/start-review")
def start_review(
    application_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_verifier),
):
    application = assignment_service.start_review(db, application_id, user.id)
    return success_response("Review started successfully", ApplicationResponse.model_validate(application))
