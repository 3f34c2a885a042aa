"""
Reviewable items of an application.

A reviewer decides on two kinds of data points that share the field_reviews
table: static applicant columns and answers to admin-defined questions.
Each kind maps deterministically to the field_name used as storage key.
"""
from dataclasses import dataclass
from typing import List, Union

QUESTION_ANSWER_PREFIX = "question_answer_"

# Applicant columns shown on the review screen, in display order
REVIEWABLE_FIELDS: List[str] = [
    # Personal information
    "applicant_first_name", "applicant_last_name", "applicant_email", "applicant_phone", "applicant_dob",
    "gender", "languages", "father_name", "mother_name", "emergency_contact_number",

    # Address information
    "current_house_no", "current_area_locality", "current_area_locality_2", "current_district",
    "current_police_station", "current_pincode", "current_tehsil", "current_post_office",
    "current_landmark", "use_current_as_permanent", "permanent_house_no", "permanent_area_locality",
    "permanent_area_locality_2", "permanent_district", "permanent_police_station", "permanent_pincode",
    "permanent_tehsil", "permanent_post_office", "permanent_landmark", "current_address", "permanent_address",

    # Education information
    "highest_education", "institute_name", "education_city", "grades", "education_from_date",
    "education_to_date", "education_address",

    # Reference information
    "reference1_name", "reference1_address", "reference1_relation", "reference1_contact",
    "reference1_police_station", "reference2_name", "reference2_address", "reference2_relation",
    "reference2_contact", "reference2_police_station", "reference3_name", "reference3_address",
    "reference3_relation", "reference3_contact", "reference3_police_station", "reference_address",

    # Identity documents
    "aadhar_number", "pan_number",

    # Employment information
    "company_name", "designation", "employee_id", "employment_location", "employment_from_date",
    "employment_to_date", "hr_number", "hr_email", "work_responsibility", "salary",
    "reason_of_leaving", "previous_manager",

    # Neighbour information
    "neighbour1_family_members", "neighbour1_name", "neighbour1_mobile", "neighbour1_since",
    "neighbour1_remark", "neighbour2_name", "neighbour2_mobile", "neighbour2_since", "neighbour2_remark",

    # Residence information
    "residing_date", "residing_remark", "bike_quantity", "car_quantity", "ac_quantity", "place",

    # Tenancy information
    "house_owner_name", "house_owner_contact", "house_owner_address", "residing",
]


@dataclass(frozen=True)
class StaticField:
    """A column of the applications table."""
    name: str

    @property
    def storage_key(self) -> str:
        return self.name


@dataclass(frozen=True)
class QuestionAnswer:
    """One row of application_question_answers."""
    answer_id: int

    @property
    def storage_key(self) -> str:
        return f"{QUESTION_ANSWER_PREFIX}{self.answer_id}"


ReviewableItem = Union[StaticField, QuestionAnswer]


def parse_reviewable_key(key: str) -> ReviewableItem:
    """
    Map a stored field_name back to its item.

    Keys shaped like ``question_answer_<digits>`` are question answers,
    anything else is a static field name.
    """
    if key.startswith(QUESTION_ANSWER_PREFIX):
        suffix = key[len(QUESTION_ANSWER_PREFIX):]
        if suffix.isdigit():
            return QuestionAnswer(int(suffix))
    return StaticField(key)


def catalogue_items() -> List[StaticField]:
    return [StaticField(name) for name in REVIEWABLE_FIELDS]
