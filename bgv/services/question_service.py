"""
Question Service.
Admin-managed extra questions for the applicant form and the answers stored per application.
"""
import logging
from typing import Any, Dict, List, Optional
from sqlalchemy.orm import Session

from bgv.core.exceptions import NotFoundError, ValidationError
from bgv.db.models.question import FormQuestion, ApplicationQuestionAnswer
from bgv.db.transaction import transaction

logger = logging.getLogger(__name__)


def list_questions(db: Session, active_only: bool = False, section: Optional[str] = None) -> List[FormQuestion]:
    query = db.query(FormQuestion)
    if active_only:
        query = query.filter(FormQuestion.is_active.is_(True))
    if section:
        query = query.filter(FormQuestion.form_section == section)
    return query.order_by(FormQuestion.form_section.asc(), FormQuestion.display_order.asc(), FormQuestion.id.asc()).all()


def list_active_questions(db: Session) -> List[FormQuestion]:
    """Questions shown on the public applicant form."""
    return list_questions(db, active_only=True)


def get_question(db: Session, question_id: int) -> FormQuestion:
    question = db.query(FormQuestion).filter(FormQuestion.id == question_id).first()
    if not question:
        raise NotFoundError("Question not found")
    return question


def create_question(
    db: Session,
    question_text: Optional[str],
    form_section: Optional[str],
    display_order: int = 0,
    is_active: bool = True,
    created_by: Optional[int] = None,
) -> FormQuestion:
    if not question_text or not question_text.strip():
        raise ValidationError("Question text is required")
    if not form_section or not form_section.strip():
        raise ValidationError("Form section is required")

    question = FormQuestion(
        question_text=question_text.strip(),
        form_section=form_section.strip(),
        display_order=display_order or 0,
        is_active=is_active,
        created_by=created_by,
    )
    with transaction(db, "create question"):
        db.add(question)

    db.refresh(question)
    logger.info(f"Form question created: question_id={question.id}, section={question.form_section}")
    return question


def update_question(db: Session, question_id: int, data: Dict[str, Any]) -> FormQuestion:
    question = get_question(db, question_id)

    if "question_text" in data and not (data["question_text"] or "").strip():
        raise ValidationError("Question text cannot be empty")
    if "form_section" in data and not (data["form_section"] or "").strip():
        raise ValidationError("Form section cannot be empty")

    with transaction(db, "update question"):
        for key in ("question_text", "form_section", "display_order", "is_active"):
            if key in data and data[key] is not None:
                value = data[key]
                setattr(question, key, value.strip() if isinstance(value, str) else value)

    db.refresh(question)
    return question


def delete_question(db: Session, question_id: int) -> None:
    """
    Deactivate a question.

    Answers already given keep pointing at it, so the row is never removed.
    """
    question = get_question(db, question_id)
    with transaction(db, "delete question"):
        question.is_active = False
    logger.info(f"Form question deactivated: question_id={question_id}")


def save_answers(db: Session, application_id: int, answers: Dict[Any, Any]) -> int:
    """
    Stage answers to form questions in the caller's transaction.

    Keys are question ids (int or numeric string). Unknown questions and
    blank answers are skipped; an existing answer is overwritten.

    Returns:
        Number of answers written
    """
    written = 0
    for raw_id, answer_text in answers.items():
        try:
            question_id = int(raw_id)
        except (TypeError, ValueError):
            logger.warning(f"Skipping answer with invalid question id: application_id={application_id}, key={raw_id}")
            continue

        if answer_text is None or str(answer_text).strip() == "":
            continue

        question = db.query(FormQuestion).filter(FormQuestion.id == question_id).first()
        if not question:
            logger.warning(f"Skipping answer for unknown question: application_id={application_id}, question_id={question_id}")
            continue

        answer = (
            db.query(ApplicationQuestionAnswer)
            .filter(
                ApplicationQuestionAnswer.application_id == application_id,
                ApplicationQuestionAnswer.question_id == question_id,
            )
            .first()
        )
        if answer is None:
            answer = ApplicationQuestionAnswer(application_id=application_id, question_id=question_id)
            db.add(answer)
        answer.answer_text = str(answer_text)
        db.flush()
        written += 1

    return written


def get_answers(db: Session, application_id: int, section: Optional[str] = None) -> List[ApplicationQuestionAnswer]:
    """Answers of one application with their question loaded, in form order."""
    query = (
        db.query(ApplicationQuestionAnswer)
        .join(FormQuestion, FormQuestion.id == ApplicationQuestionAnswer.question_id)
        .filter(ApplicationQuestionAnswer.application_id == application_id)
    )
    if section:
        query = query.filter(FormQuestion.form_section == section)
    return (
        query
        .order_by(FormQuestion.form_section.asc(), FormQuestion.display_order.asc(), ApplicationQuestionAnswer.id.asc())
        .all()
    )


def save_answer(
    db: Session,
    application_id: int,
    question_id: Optional[int],
    answer_text: Optional[str],
) -> ApplicationQuestionAnswer:
    """
    Write one answer outside the applicant form, overwriting any earlier answer.

    A missing answer_text is stored as an empty string.

    Raises:
        ValidationError: No question id
        NotFoundError: Question absent
    """
    if not question_id:
        raise ValidationError("Question ID is required")
    get_question(db, question_id)

    answer = (
        db.query(ApplicationQuestionAnswer)
        .filter(
            ApplicationQuestionAnswer.application_id == application_id,
            ApplicationQuestionAnswer.question_id == question_id,
        )
        .first()
    )
    with transaction(db, "save answer"):
        if answer is None:
            answer = ApplicationQuestionAnswer(application_id=application_id, question_id=question_id)
            db.add(answer)
        answer.answer_text = answer_text or ""

    db.refresh(answer)
    logger.info(f"Answer saved: application_id={application_id}, question_id={question_id}")
    return answer
