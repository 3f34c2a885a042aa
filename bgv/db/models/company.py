"""
Client companies and the verifier-to-company grants that scope who may work their cases.
"""
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from bgv.db.base import Base


class Company(Base):
    __tablename__ = "companies"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    email = Column(String(255), unique=True, index=True, nullable=True)
    industry = Column(String(100), nullable=True)
    address = Column(Text, nullable=True)
    contact_person = Column(String(255), nullable=True)
    contact_phone = Column(String(50), nullable=True)
    verification_form_link = Column(String(500), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Company(id={self.id}, name='{self.name}')>"


class VerifierAssignment(Base):
    """
    Standing grant letting a verifier work applications of one company.

    Revoking a grant flips is_active instead of deleting the row.
    """
    __tablename__ = "verifier_assignments"

    id = Column(Integer, primary_key=True, index=True)
    verifier_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    assigned_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    verifier = relationship("User")
    company = relationship("Company")

    __table_args__ = (
        UniqueConstraint("verifier_id", "company_id", name="uq_verifier_assignments_verifier_company"),
    )

    def __repr__(self):
        return f"<VerifierAssignment(verifier_id={self.verifier_id}, company_id={self.company_id}, is_active={self.is_active})>"
