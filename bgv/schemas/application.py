"""
Pydantic schemas for application endpoints.
"""
from typing import Any, List, Optional
from datetime import date, datetime
from pydantic import BaseModel, EmailStr, Field, model_validator


class ApplicationFields(BaseModel):
    """Applicant-editable fields. Blank strings are treated as missing."""
    # Applicant basics
    applicant_first_name: Optional[str] = Field(None, max_length=100)
    applicant_last_name: Optional[str] = Field(None, max_length=100)
    applicant_email: Optional[EmailStr] = None
    applicant_phone: Optional[str] = None
    applicant_dob: Optional[date] = None
    applicant_address: Optional[str] = None
    position_applied: Optional[str] = None
    department: Optional[str] = None

    # Personal information
    gender: Optional[str] = None
    languages: Optional[str] = None
    father_name: Optional[str] = None
    mother_name: Optional[str] = None
    emergency_contact_number: Optional[str] = None

    # Current address
    current_house_no: Optional[str] = None
    current_area_locality: Optional[str] = None
    current_area_locality_2: Optional[str] = None
    current_district: Optional[str] = None
    current_police_station: Optional[str] = None
    current_pincode: Optional[str] = None
    current_tehsil: Optional[str] = None
    current_post_office: Optional[str] = None
    current_landmark: Optional[str] = None

    # Permanent address
    use_current_as_permanent: Optional[bool] = None
    permanent_house_no: Optional[str] = None
    permanent_area_locality: Optional[str] = None
    permanent_area_locality_2: Optional[str] = None
    permanent_district: Optional[str] = None
    permanent_police_station: Optional[str] = None
    permanent_pincode: Optional[str] = None
    permanent_tehsil: Optional[str] = None
    permanent_post_office: Optional[str] = None
    permanent_landmark: Optional[str] = None

    # Education
    highest_education: Optional[str] = None
    institute_name: Optional[str] = None
    education_city: Optional[str] = None
    grades: Optional[str] = None
    education_from_date: Optional[date] = None
    education_to_date: Optional[date] = None
    education_address: Optional[str] = None

    # References
    reference1_name: Optional[str] = None
    reference1_address: Optional[str] = None
    reference1_relation: Optional[str] = None
    reference1_contact: Optional[str] = None
    reference1_police_station: Optional[str] = None
    reference2_name: Optional[str] = None
    reference2_address: Optional[str] = None
    reference2_relation: Optional[str] = None
    reference2_contact: Optional[str] = None
    reference2_police_station: Optional[str] = None
    reference3_name: Optional[str] = None
    reference3_address: Optional[str] = None
    reference3_relation: Optional[str] = None
    reference3_contact: Optional[str] = None
    reference3_police_station: Optional[str] = None
    reference_address: Optional[str] = None

    # Identity numbers
    aadhar_number: Optional[str] = None
    pan_number: Optional[str] = None

    # Employment
    company_name: Optional[str] = None
    designation: Optional[str] = None
    employee_id: Optional[str] = None
    employment_location: Optional[str] = None
    employment_from_date: Optional[date] = None
    employment_to_date: Optional[date] = None
    hr_number: Optional[str] = None
    hr_email: Optional[str] = None
    work_responsibility: Optional[str] = None
    salary: Optional[str] = None
    reason_of_leaving: Optional[str] = None
    previous_manager: Optional[str] = None

    # Neighbours
    neighbour1_family_members: Optional[str] = None
    neighbour1_name: Optional[str] = None
    neighbour1_mobile: Optional[str] = None
    neighbour1_since: Optional[str] = None
    neighbour1_remark: Optional[str] = None
    neighbour2_name: Optional[str] = None
    neighbour2_mobile: Optional[str] = None
    neighbour2_since: Optional[str] = None
    neighbour2_remark: Optional[str] = None

    # Residence
    residing_date: Optional[date] = None
    residing_remark: Optional[str] = None
    bike_quantity: Optional[int] = Field(None, ge=0)
    car_quantity: Optional[int] = Field(None, ge=0)
    ac_quantity: Optional[int] = Field(None, ge=0)
    place: Optional[str] = None

    # Tenancy
    house_owner_name: Optional[str] = None
    house_owner_contact: Optional[str] = None
    house_owner_address: Optional[str] = None
    residing: Optional[str] = None

    # Computed addresses
    current_address: Optional[str] = None
    permanent_address: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def blank_strings_to_none(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {
                key: (None if isinstance(value, str) and value.strip() == "" else value)
                for key, value in data.items()
            }
        return data

    class Config:
        coerce_numbers_to_str = True


class ApplicationCreate(ApplicationFields):
    """JSON body for creating an application; the company comes from the URL."""

    class Config:
        json_schema_extra = {
            "example": {
                "applicant_first_name": "Asha",
                "applicant_last_name": "Verma",
                "applicant_email": "asha.verma@example.com",
                "applicant_phone": "9876543210",
                "applicant_dob": "1994-03-12",
                "current_district": "Pune",
                "bike_quantity": 1,
            }
        }


class ApplicationUpdate(ApplicationFields):
    """Admin edit; only fields present in the body are changed."""
    pass


class ApplicationResponse(ApplicationFields):
    id: int
    company_id: int
    application_status: str
    assigned_verifier_id: Optional[int] = None
    assigned_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
    review_notes: Optional[str] = None
    rejection_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
        coerce_numbers_to_str = True


class ApplicationListItem(BaseModel):
    """Row of the application listings."""
    id: int
    company_id: int
    company_name: Optional[str] = None
    applicant_first_name: str
    applicant_last_name: str
    applicant_email: str
    applicant_phone: Optional[str] = None
    application_status: str
    assigned_verifier_id: Optional[int] = None
    assigned_verifier_name: Optional[str] = None
    assigned_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_application(cls, application) -> "ApplicationListItem":
        return cls(
            id=application.id,
            company_id=application.company_id,
            company_name=application.company.name if application.company else None,
            applicant_first_name=application.applicant_first_name,
            applicant_last_name=application.applicant_last_name,
            applicant_email=application.applicant_email,
            applicant_phone=application.applicant_phone,
            application_status=application.application_status,
            assigned_verifier_id=application.assigned_verifier_id,
            assigned_verifier_name=application.assigned_verifier.full_name if application.assigned_verifier else None,
            assigned_at=application.assigned_at,
            reviewed_at=application.reviewed_at,
            created_at=application.created_at,
        )


class DocumentResponse(BaseModel):
    id: int
    application_id: int
    document_type: str
    document_name: str
    file_path: str
    file_size: int
    mime_type: Optional[str] = None
    uploaded_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AnswerResponse(BaseModel):
    id: int
    question_id: int
    question_text: Optional[str] = None
    form_section: Optional[str] = None
    answer_text: Optional[str] = None

    @classmethod
    def from_answer(cls, answer) -> "AnswerResponse":
        return cls(
            id=answer.id,
            question_id=answer.question_id,
            question_text=answer.question.question_text if answer.question else None,
            form_section=answer.question.form_section if answer.question else None,
            answer_text=answer.answer_text,
        )


class ApplicationDetail(ApplicationResponse):
    company_name: Optional[str] = None
    assigned_verifier_name: Optional[str] = None
    assigned_verifier_email: Optional[str] = None
    documents: List[DocumentResponse] = []
    answers: List[AnswerResponse] = []


class HistoryResponse(BaseModel):
    id: int
    application_id: int
    verifier_id: Optional[int] = None
    action: str
    notes: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AssignRequest(BaseModel):
    verifier_id: Optional[int] = Field(None, description="Verifier to hand the application to")


class ApproveRequest(BaseModel):
    review_notes: Optional[str] = None


class RejectRequest(BaseModel):
    rejection_reason: Optional[str] = None
