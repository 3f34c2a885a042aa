"""
Application model - one applicant's background verification case.
"""
from sqlalchemy import Column, Integer, String, Text, Date, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from bgv.db.base import Base

APPLICATION_STATUSES = ("pending", "assigned", "under_review", "approved", "rejected")


class Application(Base):
    """
    Applicant case record.

    application_status is the single source of truth for the case outcome;
    rejection_reason is non-null exactly when the status is "rejected".
    """
    __tablename__ = "applications"

    id = Column(Integer, primary_key=True, index=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False, index=True)

    # Case lifecycle
    application_status = Column(String(20), nullable=False, default="pending", index=True)
    assigned_verifier_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    assigned_at = Column(DateTime(timezone=True), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    review_notes = Column(Text, nullable=True)
    rejection_reason = Column(Text, nullable=True)

    # Applicant basics
    applicant_first_name = Column(String(100), nullable=False)
    applicant_last_name = Column(String(100), nullable=False)
    applicant_email = Column(String(255), nullable=False, index=True)
    applicant_phone = Column(String(30), nullable=True)
    applicant_dob = Column(Date, nullable=True)
    applicant_address = Column(Text, nullable=True)
    position_applied = Column(String(255), nullable=True)
    department = Column(String(255), nullable=True)

    # Personal information
    gender = Column(String(20), nullable=True)
    languages = Column(String(255), nullable=True)
    father_name = Column(String(255), nullable=True)
    mother_name = Column(String(255), nullable=True)
    emergency_contact_number = Column(String(30), nullable=True)

    # Current address
    current_house_no = Column(String(100), nullable=True)
    current_area_locality = Column(String(255), nullable=True)
    current_area_locality_2 = Column(String(255), nullable=True)
    current_district = Column(String(100), nullable=True)
    current_police_station = Column(String(255), nullable=True)
    current_pincode = Column(String(20), nullable=True)
    current_tehsil = Column(String(100), nullable=True)
    current_post_office = Column(String(255), nullable=True)
    current_landmark = Column(String(255), nullable=True)

    # Permanent address
    use_current_as_permanent = Column(Boolean, nullable=False, default=False)
    permanent_house_no = Column(String(100), nullable=True)
    permanent_area_locality = Column(String(255), nullable=True)
    permanent_area_locality_2 = Column(String(255), nullable=True)
    permanent_district = Column(String(100), nullable=True)
    permanent_police_station = Column(String(255), nullable=True)
    permanent_pincode = Column(String(20), nullable=True)
    permanent_tehsil = Column(String(100), nullable=True)
    permanent_post_office = Column(String(255), nullable=True)
    permanent_landmark = Column(String(255), nullable=True)

    # Education
    highest_education = Column(String(255), nullable=True)
    institute_name = Column(String(255), nullable=True)
    education_city = Column(String(100), nullable=True)
    grades = Column(String(50), nullable=True)
    education_from_date = Column(Date, nullable=True)
    education_to_date = Column(Date, nullable=True)
    education_address = Column(Text, nullable=True)

    # References
    reference1_name = Column(String(255), nullable=True)
    reference1_address = Column(Text, nullable=True)
    reference1_relation = Column(String(100), nullable=True)
    reference1_contact = Column(String(30), nullable=True)
    reference1_police_station = Column(String(255), nullable=True)
    reference2_name = Column(String(255), nullable=True)
    reference2_address = Column(Text, nullable=True)
    reference2_relation = Column(String(100), nullable=True)
    reference2_contact = Column(String(30), nullable=True)
    reference2_police_station = Column(String(255), nullable=True)
    reference3_name = Column(String(255), nullable=True)
    reference3_address = Column(Text, nullable=True)
    reference3_relation = Column(String(100), nullable=True)
    reference3_contact = Column(String(30), nullable=True)
    reference3_police_station = Column(String(255), nullable=True)
    reference_address = Column(Text, nullable=True)

    # Identity numbers
    aadhar_number = Column(String(20), nullable=True)
    pan_number = Column(String(20), nullable=True)

    # Employment
    company_name = Column(String(255), nullable=True)
    designation = Column(String(255), nullable=True)
    employee_id = Column(String(100), nullable=True)
    employment_location = Column(String(255), nullable=True)
    employment_from_date = Column(Date, nullable=True)
    employment_to_date = Column(Date, nullable=True)
    hr_number = Column(String(30), nullable=True)
    hr_email = Column(String(255), nullable=True)
    work_responsibility = Column(Text, nullable=True)
    salary = Column(String(50), nullable=True)
    reason_of_leaving = Column(Text, nullable=True)
    previous_manager = Column(String(255), nullable=True)

    # Neighbours
    neighbour1_family_members = Column(String(255), nullable=True)
    neighbour1_name = Column(String(255), nullable=True)
    neighbour1_mobile = Column(String(30), nullable=True)
    neighbour1_since = Column(String(100), nullable=True)
    neighbour1_remark = Column(Text, nullable=True)
    neighbour2_name = Column(String(255), nullable=True)
    neighbour2_mobile = Column(String(30), nullable=True)
    neighbour2_since = Column(String(100), nullable=True)
    neighbour2_remark = Column(Text, nullable=True)

    # Residence
    residing_date = Column(Date, nullable=True)
    residing_remark = Column(Text, nullable=True)
    bike_quantity = Column(Integer, nullable=False, default=0)
    car_quantity = Column(Integer, nullable=False, default=0)
    ac_quantity = Column(Integer, nullable=False, default=0)
    place = Column(String(255), nullable=True)

    # Tenancy
    house_owner_name = Column(String(255), nullable=True)
    house_owner_contact = Column(String(30), nullable=True)
    house_owner_address = Column(Text, nullable=True)
    residing = Column(String(50), nullable=True)  # "owned" | "rented" | free text

    # Computed addresses
    current_address = Column(Text, nullable=True)
    permanent_address = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    company = relationship("Company")
    assigned_verifier = relationship("User", foreign_keys=[assigned_verifier_id])

    __table_args__ = (
        Index("idx_applications_company_status", "company_id", "application_status"),
        Index("idx_applications_verifier_status", "assigned_verifier_id", "application_status"),
    )

    @property
    def applicant_full_name(self) -> str:
        return f"{self.applicant_first_name} {self.applicant_last_name}"

    def __repr__(self):
        return f"<Application(id={self.id}, company_id={self.company_id}, status='{self.application_status}')>"
