import json
import logging
from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Depends, Query, Request
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session
from starlette.datastructures import UploadFile

from bgv.api.responses import success_response
from bgv.core.auth_dependency import get_db, require_admin
from bgv.core.exceptions import ValidationError
from bgv.db.models.user import User
from bgv.schemas.application import ApplicationCreate, ApplicationListItem, DocumentResponse
from bgv.schemas.auth import UserResponse
from bgv.schemas.company import (
    CompanyCreate,
    CompanyFormResponse,
    CompanyResponse,
    CompanyUpdate,
    VerifierGrantRequest,
)
from bgv.services import application_service, assignment_service, company_service, document_service
from bgv.services.storage import IncomingFile, StorageProvider, get_storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/companies", tags=["Companies"])


class ApplicationSubmission:
    """Parsed public form post: applicant fields, question answers and files."""

    def __init__(self, fields: ApplicationCreate, answers: Dict[str, Any], uploads: List[IncomingFile]):
        self.fields = fields
        self.answers = answers
        self.uploads = uploads


def _parse_answers(raw: Any) -> Dict[str, Any]:
    if raw in (None, ""):
        return {}
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            raise ValidationError("answers must be a JSON object of {questionId: answer}")
    if not isinstance(raw, dict):
        raise ValidationError("answers must be a JSON object of {questionId: answer}")
    return raw


async def parse_submission(request: Request) -> ApplicationSubmission:
    """Read a multipart form (fields + files + answers JSON) or a plain JSON body."""
    fields: Dict[str, Any] = {}
    uploads: List[IncomingFile] = []
    raw_answers: Any = None

    if request.headers.get("content-type", "").startswith("application/json"):
        try:
            body = await request.json()
        except ValueError:
            raise ValidationError("Invalid JSON body")
        if not isinstance(body, dict):
            raise ValidationError("Invalid JSON body")
        raw_answers = body.pop("answers", None)
        fields = body
    else:
        form = await request.form()
        for key, value in form.multi_items():
            if isinstance(value, UploadFile):
                if value.filename:
                    uploads.append(IncomingFile(
                        field_name=key,
                        filename=value.filename,
                        content_type=value.content_type,
                        data=await value.read(),
                    ))
            elif key == "answers":
                raw_answers = value
            else:
                fields[key] = value

    try:
        payload = ApplicationCreate.model_validate(fields)
    except PydanticValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first.get("loc", ()))
        raise ValidationError(f"Invalid value for {location}: {first.get('msg')}")

    return ApplicationSubmission(payload, _parse_answers(raw_answers), uploads)


# ✅ PUBLIC: APPLICANT FORM METADATA
@router.get("/{company_id}/form")
def get_company_form(company_id: int, db: Session = Depends(get_db)):
    form = company_service.get_company_form(db, company_id)
    return success_response("Company form retrieved successfully", CompanyFormResponse(**form))


# ✅ PUBLIC: APPLICANT SUBMISSION
@router.post("/{company_id}/applications", status_code=201)
def submit_application(
    company_id: int,
    submission: ApplicationSubmission = Depends(parse_submission),
    db: Session = Depends(get_db),
    storage: StorageProvider = Depends(get_storage),
):
    application = application_service.create_application(
        db,
        company_id,
        submission.fields.model_dump(exclude_unset=True),
        answers=submission.answers,
    )
    documents = document_service.attach_documents(db, storage, application.id, submission.uploads)
    return success_response("Application submitted successfully", {
        "applicationId": application.id,
        "status": application.application_status,
        "documents": [DocumentResponse.model_validate(doc) for doc in documents],
    })


# ✅ ADMIN: COMPANY CRUD
@router.post("", status_code=201)
def create_company(
    payload: CompanyCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin),
):
    company = company_service.create_company(db, payload.model_dump(exclude_unset=True), created_by=user.id)
    return success_response("Company created successfully", CompanyResponse.model_validate(company))


@router.get("")
def list_companies(
    include_inactive: bool = Query(False),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    user: User = Depends(require_admin),
):
    companies = company_service.list_companies(db, include_inactive=include_inactive, search=search)
    return success_response(
        "Companies retrieved successfully",
        [CompanyResponse.model_validate(company) for company in companies],
    )


@router.get("/{company_id}")
def get_company(
    company_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin),
):
    company = company_service.get_company(db, company_id)
    data = CompanyResponse.model_validate(company).model_dump()
    data["application_count"] = company_service.count_applications(db, company_id)
    return success_response("Company retrieved successfully", data)


@router.put("/{company_id}")
def update_company(
    company_id: int,
    payload: CompanyUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin),
):
    company = company_service.update_company(db, company_id, payload.model_dump(exclude_unset=True))
    return success_response("Company updated successfully", CompanyResponse.model_validate(company))


@router.delete("/{company_id}")
def delete_company(
    company_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin),
):
    company = company_service.deactivate_company(db, company_id)
    return success_response("Company deleted successfully", CompanyResponse.model_validate(company))


@router.get("/{company_id}/applications")
def list_company_applications(
    company_id: int,
    status: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    user: User = Depends(require_admin),
):
    company_service.get_company(db, company_id)
    applications = application_service.list_company_applications(db, company_id, status=status)
    return success_response(
        "Applications retrieved successfully",
        [ApplicationListItem.from_application(app) for app in applications],
    )


# ✅ ADMIN: VERIFIER GRANTS
@router.post("/{company_id}/verifiers", status_code=201)
def assign_verifier(
    company_id: int,
    payload: VerifierGrantRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin),
):
    grant = assignment_service.assign_verifier_to_company(db, company_id, payload.verifier_id)
    return success_response("Verifier assigned to company successfully", {
        "verifierId": grant.verifier_id,
        "companyId": grant.company_id,
        "isActive": grant.is_active,
    })


@router.get("/{company_id}/verifiers")
def list_company_verifiers(
    company_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin),
):
    company_service.get_company(db, company_id)
    verifiers = assignment_service.list_company_verifiers(db, company_id)
    return success_response(
        "Verifiers retrieved successfully",
        [UserResponse.model_validate(verifier) for verifier in verifiers],
    )


@router.delete("/{company_id}/verifiers/{verifier_id}")
def unassign_verifier(
    company_id: int,
    verifier_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin),
):
    assignment_service.unassign_verifier_from_company(db, company_id, verifier_id)
    return success_response("Verifier unassigned from company successfully")
