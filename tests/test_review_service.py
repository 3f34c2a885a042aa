"""
Unit tests for the review service.
Covers batch atomicity, upsert semantics, ownership and the final decision rules.
"""
import pytest

from bgv.core.exceptions import ApplicationNotOwned, NotFoundError, ValidationError
from bgv.db.models.application import Application
from bgv.db.models.review import ApplicationReview, FieldReview, FileReview
from bgv.db.models.verification_history import VerificationHistory
from bgv.schemas.review import FieldReviewItem, FileReviewItem
from bgv.services import review_service
from bgv.services.review_items import REVIEWABLE_FIELDS

from conftest import make_answer, make_application, make_document


def field(name, status="approved", value=None, notes=None):
    return FieldReviewItem(field_name=name, field_value=value, status=status, notes=notes)


def file_item(file_id, status="approved", notes=None):
    return FileReviewItem(file_id=file_id, status=status, notes=notes)


def test_submit_review_records_decisions(db, assigned_application, verifier):
    document = make_document(db, assigned_application)

    result = review_service.submit_review(
        db,
        assigned_application.id,
        verifier.id,
        field_reviews=[field("applicant_first_name", value="Asha"), field("pan_number", "rejected", notes="Blurry")],
        file_reviews=[file_item(document.id)],
        overall_notes="First pass",
    )

    assert result == {
        "applicationId": assigned_application.id,
        "fieldReviewsCount": 2,
        "fileReviewsCount": 1,
        "overallStatus": "under_review",
    }
    rows = {row.field_name: row for row in db.query(FieldReview).all()}
    assert rows["applicant_first_name"].field_value == "Asha"
    assert rows["pan_number"].review_status == "rejected"
    assert rows["pan_number"].review_notes == "Blurry"
    assert rows["pan_number"].reviewed_by == verifier.id
    assert db.query(FileReview).one().review_status == "approved"

    summary = db.query(ApplicationReview).one()
    assert summary.overall_status == "under_review"
    assert summary.review_notes == "First pass"
    assert db.get(Application, assigned_application.id).application_status == "under_review"


def test_submit_review_writes_no_history(db, assigned_application, verifier):
    review_service.submit_review(db, assigned_application.id, verifier.id, field_reviews=[field("gender")])
    assert db.query(VerificationHistory).count() == 0


def test_resubmitting_a_field_overwrites_it(db, assigned_application, verifier):
    review_service.submit_review(db, assigned_application.id, verifier.id, field_reviews=[field("gender", "approved")])
    review_service.submit_review(
        db, assigned_application.id, verifier.id, field_reviews=[field("gender", "rejected", notes="Mismatch")]
    )

    rows = db.query(FieldReview).filter(FieldReview.field_name == "gender").all()
    assert len(rows) == 1
    assert rows[0].review_status == "rejected"
    assert rows[0].review_notes == "Mismatch"
    assert db.query(ApplicationReview).count() == 1


def test_same_field_twice_in_one_batch_keeps_last(db, assigned_application, verifier):
    review_service.submit_review(
        db,
        assigned_application.id,
        verifier.id,
        field_reviews=[field("gender", "approved"), field("gender", "rejected")],
    )

    rows = db.query(FieldReview).all()
    assert len(rows) == 1
    assert rows[0].review_status == "rejected"


def test_non_string_values_are_snapshotted_as_text(db, assigned_application, verifier):
    review_service.submit_review(
        db,
        assigned_application.id,
        verifier.id,
        field_reviews=[field("bike_quantity", value=2), field("use_current_as_permanent", value=True), field("place", value="")],
    )

    rows = {row.field_name: row.field_value for row in db.query(FieldReview).all()}
    assert rows == {"bike_quantity": "2", "use_current_as_permanent": "true", "place": None}


def test_unknown_file_rolls_back_whole_batch(db, assigned_application, verifier):
    with pytest.raises(ValidationError) as exc:
        review_service.submit_review(
            db,
            assigned_application.id,
            verifier.id,
            field_reviews=[field("applicant_first_name"), field("gender")],
            file_reviews=[file_item(9999)],
        )

    assert exc.value.message == f"File 9999 not found for application {assigned_application.id}"
    assert db.query(FieldReview).count() == 0
    assert db.query(ApplicationReview).count() == 0
    assert db.get(Application, assigned_application.id).application_status == "assigned"


def test_file_of_another_application_is_rejected(db, company, verifier, assigned_application):
    other = make_application(db, company, applicant_email="other@example.com")
    foreign_document = make_document(db, other)

    with pytest.raises(ValidationError):
        review_service.submit_review(
            db, assigned_application.id, verifier.id, file_reviews=[file_item(foreign_document.id)]
        )
    assert db.query(FileReview).count() == 0


@pytest.mark.parametrize("item", [
    FieldReviewItem(field_name="gender"),
    FieldReviewItem(status="approved"),
    FieldReviewItem(field_name="gender", status="maybe"),
])
def test_invalid_field_review_writes_nothing(db, assigned_application, verifier, item):
    with pytest.raises(ValidationError):
        review_service.submit_review(
            db, assigned_application.id, verifier.id, field_reviews=[field("applicant_last_name"), item]
        )

    assert db.query(FieldReview).count() == 0
    assert db.get(Application, assigned_application.id).application_status == "assigned"


def test_submit_on_unowned_application_is_not_found(db, assigned_application, other_verifier):
    with pytest.raises(ApplicationNotOwned) as exc:
        review_service.submit_review(db, assigned_application.id, other_verifier.id, field_reviews=[field("gender")])

    assert exc.value.status_code == 404
    assert exc.value.message == "Application not found or not assigned to you"
    assert db.query(FieldReview).count() == 0
    assert db.query(ApplicationReview).count() == 0


def test_submit_on_missing_application_has_same_error(db, verifier):
    with pytest.raises(ApplicationNotOwned):
        review_service.submit_review(db, 12345, verifier.id, field_reviews=[field("gender")])


def test_get_review_defaults_to_live_values(db, assigned_application):
    review = review_service.get_review(db, assigned_application.id)

    assert review["applicationId"] == assigned_application.id
    assert [entry["field_name"] for entry in review["fieldReviews"]] == REVIEWABLE_FIELDS
    by_name = {entry["field_name"]: entry for entry in review["fieldReviews"]}
    assert by_name["applicant_first_name"]["field_value"] == "Asha"
    assert by_name["current_district"]["field_value"] == "Pune"
    assert by_name["applicant_dob"]["field_value"] == assigned_application.applicant_dob
    assert all(entry["review_status"] == "pending" for entry in review["fieldReviews"])
    assert review["summary"] is None
    assert review["counts"]["totalFields"] == len(REVIEWABLE_FIELDS)
    assert review["counts"]["pendingFields"] == len(REVIEWABLE_FIELDS)


def test_get_review_includes_question_answers(db, assigned_application, verifier):
    answered = make_answer(db, assigned_application, "Any criminal record?", "No")
    blank = make_answer(db, assigned_application, "Previous addresses?", None)
    review_service.submit_review(
        db, assigned_application.id, verifier.id,
        field_reviews=[field(f"question_answer_{answered.id}", "rejected", value="No")],
    )

    review = review_service.get_review(db, assigned_application.id)

    by_name = {entry["field_name"]: entry for entry in review["fieldReviews"]}
    answered_entry = by_name[f"question_answer_{answered.id}"]
    assert answered_entry["review_status"] == "rejected"
    assert answered_entry["question_text"] == "Any criminal record?"
    assert answered_entry["reviewer_email"] == verifier.email

    blank_entry = by_name[f"question_answer_{blank.id}"]
    assert blank_entry["field_value"] == ""
    assert blank_entry["review_status"] == "pending"
    assert review["counts"]["totalFields"] == len(REVIEWABLE_FIELDS) + 2


def test_get_review_counts_add_up(db, assigned_application, verifier):
    first = make_document(db, assigned_application, "aadhar_card")
    make_document(db, assigned_application, "pan_card")
    make_answer(db, assigned_application)
    review_service.submit_review(
        db,
        assigned_application.id,
        verifier.id,
        field_reviews=[field("gender", "approved"), field("pan_number", "rejected"), field("place", "pending")],
        file_reviews=[file_item(first.id, "rejected")],
    )

    counts = review_service.get_review(db, assigned_application.id)["counts"]

    assert counts["approvedFields"] == 1
    assert counts["rejectedFields"] == 1
    assert counts["approvedFields"] + counts["rejectedFields"] + counts["pendingFields"] == counts["totalFields"]
    assert counts["totalFields"] == len(REVIEWABLE_FIELDS) + 1
    assert counts["totalFiles"] == 2
    assert counts["approvedFiles"] == 0
    assert counts["rejectedFiles"] == 1
    assert counts["pendingFiles"] == 1


def test_get_review_shows_file_decisions(db, assigned_application, verifier):
    document = make_document(db, assigned_application)
    review_service.submit_review(
        db, assigned_application.id, verifier.id, file_reviews=[file_item(document.id, "approved", "Clear scan")]
    )

    review = review_service.get_review(db, assigned_application.id)

    [entry] = review["fileReviews"]
    assert entry["id"] == document.id
    assert entry["review_status"] == "approved"
    assert entry["review_notes"] == "Clear scan"
    assert entry["reviewer_email"] == verifier.email
    assert review["summary"]["overall_status"] == "under_review"


def test_get_review_missing_application(db):
    with pytest.raises(NotFoundError) as exc:
        review_service.get_review(db, 4040)
    assert exc.value.message == "Application not found"


def test_finalize_reject_requires_reason_before_lookup(db, assigned_application, verifier):
    for application_id in (assigned_application.id, 999999):
        with pytest.raises(ValidationError) as exc:
            review_service.finalize_review(db, application_id, verifier.id, "rejected", final_notes="No")
        assert exc.value.message == "Rejection reason is required when rejecting an application"

    application = db.get(Application, assigned_application.id)
    assert application.application_status == "assigned"
    assert application.reviewed_at is None
    assert db.query(ApplicationReview).count() == 0
    assert db.query(VerificationHistory).count() == 0


@pytest.mark.parametrize("status", [None, "", "under_review", "APPROVED"])
def test_finalize_rejects_unknown_status(db, assigned_application, verifier, status):
    with pytest.raises(ValidationError) as exc:
        review_service.finalize_review(db, assigned_application.id, verifier.id, status)
    assert exc.value.message == 'Overall status must be either "approved" or "rejected"'


def test_finalize_on_unowned_application(db, assigned_application, other_verifier):
    with pytest.raises(ApplicationNotOwned):
        review_service.finalize_review(db, assigned_application.id, other_verifier.id, "approved")
    assert db.query(ApplicationReview).count() == 0


def test_finalize_reject_then_approve_clears_reason(db, assigned_application, verifier):
    rejected = review_service.finalize_review(
        db, assigned_application.id, verifier.id, "rejected", final_notes="Docs forged", rejection_reason="Forged PAN"
    )
    assert rejected["overallStatus"] == "rejected"
    application = db.get(Application, assigned_application.id)
    assert application.application_status == "rejected"
    assert application.rejection_reason == "Forged PAN"
    assert application.reviewed_at is not None

    approved = review_service.finalize_review(db, assigned_application.id, verifier.id, "approved", final_notes="Cleared")

    assert approved["applicationId"] == assigned_application.id
    assert approved["finalizedAt"]
    db.expire_all()
    application = db.get(Application, assigned_application.id)
    assert application.application_status == "approved"
    assert application.rejection_reason is None
    summary = db.query(ApplicationReview).one()
    assert summary.overall_status == "approved"
    assert summary.review_notes == "Cleared"
    actions = [row.action for row in db.query(VerificationHistory).order_by(VerificationHistory.id).all()]
    assert actions == ["rejected", "approved"]


def test_finalize_without_prior_submission(db, assigned_application, verifier):
    review_service.finalize_review(db, assigned_application.id, verifier.id, "approved")

    assert db.query(FieldReview).count() == 0
    assert db.query(ApplicationReview).one().overall_status == "approved"


def test_submit_after_finalize_reopens_review(db, assigned_application, verifier):
    review_service.finalize_review(db, assigned_application.id, verifier.id, "approved")
    review_service.submit_review(db, assigned_application.id, verifier.id, field_reviews=[field("gender")])

    db.expire_all()
    assert db.get(Application, assigned_application.id).application_status == "under_review"
    assert db.query(ApplicationReview).one().overall_status == "under_review"


def test_approve_application_sets_notes_and_clears_reason(db, company, verifier):
    application = make_application(db, company, verifier=verifier, status="rejected", rejection_reason="Old reason")

    approved = review_service.approve_application(db, application.id, verifier.id, "All good")

    assert approved.application_status == "approved"
    assert approved.review_notes == "All good"
    assert approved.rejection_reason is None
    assert db.query(VerificationHistory).one().action == "approved"


def test_reject_application_requires_reason(db, assigned_application, verifier):
    with pytest.raises(ValidationError):
        review_service.reject_application(db, assigned_application.id, verifier.id, "  ")

    rejected = review_service.reject_application(db, assigned_application.id, verifier.id, "Address mismatch")
    assert rejected.application_status == "rejected"
    assert rejected.rejection_reason == "Address mismatch"
    history = db.query(VerificationHistory).one()
    assert history.action == "rejected"
    assert history.notes == "Address mismatch"


def test_submit_after_rejection_clears_reason(db, assigned_application, verifier):
    review_service.finalize_review(db, assigned_application.id, verifier.id, "rejected", rejection_reason="Forged")
    review_service.submit_review(db, assigned_application.id, verifier.id, field_reviews=[field("gender")])

    db.expire_all()
    application = db.get(Application, assigned_application.id)
    assert application.application_status == "under_review"
    assert application.rejection_reason is None


def test_submit_rejects_answer_of_another_application(db, company, assigned_application, verifier):
    other = make_application(db, company)
    foreign = make_answer(db, other)

    with pytest.raises(ValidationError) as exc:
        review_service.submit_review(
            db,
            assigned_application.id,
            verifier.id,
            field_reviews=[field("gender"), field(f"question_answer_{foreign.id}", value="No")],
        )

    assert exc.value.message == f"Question answer {foreign.id} not found for application {assigned_application.id}"
    assert db.query(FieldReview).count() == 0


def test_submit_accepts_own_answer_key(db, assigned_application, verifier):
    answer = make_answer(db, assigned_application)

    review_service.submit_review(
        db, assigned_application.id, verifier.id,
        field_reviews=[field(f"question_answer_{answer.id}", "rejected", value="No")],
    )

    assert db.query(FieldReview).one().field_name == f"question_answer_{answer.id}"
