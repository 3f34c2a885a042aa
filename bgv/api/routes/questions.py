from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from bgv.api.responses import success_response
from bgv.core.auth_dependency import get_db, require_admin, require_admin_or_verifier
from bgv.db.models.user import User
from bgv.schemas.application import AnswerResponse
from bgv.schemas.question import AnswerSave, QuestionCreate, QuestionResponse, QuestionUpdate
from bgv.services import application_service, assignment_service, question_service

router = APIRouter(prefix="/questions", tags=["Questions"])


# ✅ PUBLIC: QUESTIONS ON THE APPLICANT FORM
@router.get("/active")
def list_active_questions(db: Session = Depends(get_db)):
    questions = question_service.list_active_questions(db)
    return success_response(
        "Questions retrieved successfully",
        [QuestionResponse.model_validate(question) for question in questions],
    )


# ✅ ANSWERS OF ONE APPLICATION (ADMIN: ANY, VERIFIER: OWN)
def _load_application(db: Session, application_id: int, user: User):
    if user.user_type == "verifier":
        return assignment_service.get_owned_application(db, application_id, user.id)
    return application_service.get_application(db, application_id)


@router.get("/applications/{application_id}/answers")
def get_application_answers(
    application_id: int,
    form_section: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    user: User = Depends(require_admin_or_verifier),
):
    _load_application(db, application_id, user)
    answers = question_service.get_answers(db, application_id, section=form_section)
    return success_response(
        "Answers retrieved successfully",
        [AnswerResponse.from_answer(answer) for answer in answers],
    )


@router.post("/applications/{application_id}/answers")
def save_application_answer(
    application_id: int,
    payload: AnswerSave,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin_or_verifier),
):
    _load_application(db, application_id, user)
    answer = question_service.save_answer(db, application_id, payload.question_id, payload.answer_text)
    return success_response("Answer saved successfully", AnswerResponse.from_answer(answer))


# ✅ ADMIN: QUESTION CRUD
@router.get("")
def list_questions(
    active_only: bool = Query(False),
    section: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    user: User = Depends(require_admin),
):
    questions = question_service.list_questions(db, active_only=active_only, section=section)
    return success_response(
        "Questions retrieved successfully",
        [QuestionResponse.model_validate(question) for question in questions],
    )


@router.post("", status_code=201)
def create_question(
    payload: QuestionCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin),
):
    question = question_service.create_question(
        db,
        payload.question_text,
        payload.form_section,
        display_order=payload.display_order,
        is_active=payload.is_active,
        created_by=user.id,
    )
    return success_response("Question created successfully", QuestionResponse.model_validate(question))


@router.get("/{question_id}")
def get_question(
    question_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin),
):
    question = question_service.get_question(db, question_id)
    return success_response("Question retrieved successfully", QuestionResponse.model_validate(question))


@router.put("/{question_id}")
def update_question(
    question_id: int,
    payload: QuestionUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin),
):
    question = question_service.update_question(db, question_id, payload.model_dump(exclude_unset=True))
    return success_response("Question updated successfully", QuestionResponse.model_validate(question))


@router.delete("/{question_id}")
def delete_question(
    question_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin),
):
    question_service.delete_question(db, question_id)
    return success_response("Question deleted successfully")
