"""
Pydantic schemas for review endpoints.

Request bodies use camelCase keys (fieldReviews, fileId, overallStatus...);
snake_case is accepted too.
"""
from typing import Any, List, Optional
from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True


class FieldReviewItem(CamelModel):
    """Decision on one static field or question answer (field_name = question_answer_<id>)."""
    field_name: Optional[str] = None
    field_value: Optional[Any] = None
    status: Optional[str] = Field(None, description="pending | approved | rejected")
    notes: Optional[str] = None


class FileReviewItem(CamelModel):
    file_id: Optional[int] = None
    status: Optional[str] = Field(None, description="pending | approved | rejected")
    notes: Optional[str] = None


class ReviewSubmitRequest(CamelModel):
    field_reviews: List[FieldReviewItem] = []
    file_reviews: List[FileReviewItem] = []
    overall_notes: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "fieldReviews": [
                    {"fieldName": "applicant_first_name", "fieldValue": "Asha", "status": "approved", "notes": ""},
                    {"fieldName": "question_answer_3", "fieldValue": "Yes", "status": "rejected", "notes": "Mismatch"},
                ],
                "fileReviews": [{"fileId": 12, "status": "approved", "notes": "Clear scan"}],
                "overallNotes": "First pass done",
            }
        }


class FinalizeReviewRequest(CamelModel):
    overall_status: Optional[str] = Field(None, description="approved | rejected")
    final_notes: Optional[str] = None
    rejection_reason: Optional[str] = None
