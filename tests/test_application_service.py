"""
Unit tests for application intake, editing, listing and deletion.
"""
from datetime import date

import pytest

from bgv.core.exceptions import NotFoundError, ValidationError
from bgv.db.models.application import Application
from bgv.db.models.application_document import ApplicationDocument
from bgv.db.models.question import ApplicationQuestionAnswer, FormQuestion
from bgv.db.models.review import ApplicationReview, FieldReview, FileReview
from bgv.db.models.verification_history import VerificationHistory
from bgv.schemas.review import FieldReviewItem, FileReviewItem
from bgv.services import application_service, assignment_service, review_service

from conftest import make_application, make_company, make_document

APPLICANT = {
    "applicant_first_name": "Ravi",
    "applicant_last_name": "Kumar",
    "applicant_email": "ravi.kumar@example.com",
}


def test_create_application_starts_pending(db, company):
    application = application_service.create_application(
        db, company.id, {**APPLICANT, "applicant_dob": date(1990, 1, 2), "gender": ""}
    )

    assert application.application_status == "pending"
    assert application.company_id == company.id
    assert application.assigned_verifier_id is None
    assert application.gender is None
    assert application.bike_quantity == 0
    assert application.use_current_as_permanent is False


def test_create_ignores_workflow_fields(db, company):
    other = make_company(db, "Globex")

    application = application_service.create_application(db, company.id, {
        **APPLICANT,
        "company_id": other.id,
        "application_status": "approved",
        "rejection_reason": "n/a",
    })

    assert application.company_id == company.id
    assert application.application_status == "pending"
    assert application.rejection_reason is None


@pytest.mark.parametrize("missing", ["applicant_first_name", "applicant_last_name", "applicant_email"])
def test_create_requires_name_and_email(db, company, missing):
    data = {**APPLICANT, missing: "  "}
    with pytest.raises(ValidationError):
        application_service.create_application(db, company.id, data)
    assert db.query(Application).count() == 0


def test_create_for_inactive_company(db):
    closed = make_company(db, "Closed Ltd", is_active=False)
    with pytest.raises(NotFoundError) as exc:
        application_service.create_application(db, closed.id, APPLICANT)
    assert exc.value.message == "Company not found"


def test_create_saves_question_answers(db, company):
    question = FormQuestion(question_text="Notice period?", form_section="employment", is_active=True)
    db.add(question)
    db.commit()

    application = application_service.create_application(
        db, company.id, APPLICANT, answers={str(question.id): "30 days", "999": "ignored", "oops": "ignored"}
    )

    answers = db.query(ApplicationQuestionAnswer).all()
    assert len(answers) == 1
    assert answers[0].application_id == application.id
    assert answers[0].answer_text == "30 days"


def test_update_application_keeps_workflow_columns(db, company, verifier):
    application = make_application(db, company, verifier=verifier, status="rejected", rejection_reason="Forged")

    updated = application_service.update_application(db, application.id, {
        "current_district": "Nashik",
        "application_status": "approved",
        "rejection_reason": None,
        "assigned_verifier_id": None,
    })

    assert updated.current_district == "Nashik"
    assert updated.application_status == "rejected"
    assert updated.rejection_reason == "Forged"
    assert updated.assigned_verifier_id == verifier.id


def test_update_cannot_blank_required_field(db, company):
    application = make_application(db, company)
    with pytest.raises(ValidationError):
        application_service.update_application(db, application.id, {"applicant_email": ""})


def test_list_applications_filters(db, company, verifier):
    globex = make_company(db, "Globex")
    first = make_application(db, company, applicant_first_name="Meera")
    second = make_application(db, globex, verifier=verifier, applicant_last_name="Iyer")

    assert {a.id for a in application_service.list_applications(db)} == {first.id, second.id}
    assert [a.id for a in application_service.list_applications(db, status="assigned")] == [second.id]
    assert [a.id for a in application_service.list_applications(db, company_id=company.id)] == [first.id]
    assert [a.id for a in application_service.list_verifier_applications(db, verifier.id)] == [second.id]
    assert [a.id for a in application_service.list_applications(db, search="meera")] == [first.id]
    assert [a.id for a in application_service.list_applications(db, search="GLOBEX")] == [second.id]
    assert len(application_service.list_applications(db, limit=1)) == 1

    with pytest.raises(ValidationError):
        application_service.list_applications(db, status="archived")


def test_application_stats(db, company, verifier):
    make_application(db, company)
    make_application(db, company, verifier=verifier)
    make_application(db, company, verifier=verifier, status="approved")

    stats = application_service.get_application_stats(db)

    assert stats["pending"] == 1
    assert stats["assigned"] == 1
    assert stats["approved"] == 1
    assert stats["rejected"] == 0
    assert stats["total"] == 3


def test_delete_application_removes_everything(db, assigned_application, verifier, storage):
    document = make_document(db, assigned_application)
    review_service.submit_review(
        db,
        assigned_application.id,
        verifier.id,
        field_reviews=[FieldReviewItem(field_name="gender", status="approved")],
        file_reviews=[FileReviewItem(file_id=document.id, status="approved")],
    )
    review_service.finalize_review(db, assigned_application.id, verifier.id, "approved")
    application_id, storage_key = assigned_application.id, document.storage_key

    result = application_service.delete_application(db, storage, application_id)

    assert result["deletedApplicationId"] == application_id
    assert result["applicantName"] == "Asha Verma"
    assert result["deletedFiles"] == 1
    assert storage.deleted == [storage_key]
    for model in (Application, ApplicationDocument, FieldReview, FileReview, ApplicationReview, VerificationHistory):
        assert db.query(model).count() == 0


def test_delete_application_survives_storage_failure(db, assigned_application, storage):
    make_document(db, assigned_application)
    storage.fail_deletes = True

    result = application_service.delete_application(db, storage, assigned_application.id)

    assert result["deletedFiles"] == 0
    assert db.query(Application).count() == 0
    assert db.query(ApplicationDocument).count() == 0


def test_delete_missing_application(db, storage):
    with pytest.raises(NotFoundError):
        application_service.delete_application(db, storage, 31337)


def test_history_is_oldest_first(db, company, verifier):
    application = make_application(db, company)

    assignment_service.assign_to_verifier(db, application.id, verifier.id)
    assignment_service.start_review(db, application.id, verifier.id)
    review_service.finalize_review(db, application.id, verifier.id, "rejected", rejection_reason="Mismatch")

    actions = [entry.action for entry in application_service.get_history(db, application.id)]
    assert actions == ["assigned", "started_review", "rejected"]

    with pytest.raises(NotFoundError):
        application_service.get_history(db, 5555)
