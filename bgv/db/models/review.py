"""
Review records: per-field decisions, per-file decisions and the per-application summary.

All three are upserted, never appended - only the latest decision is kept.
"""
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from bgv.db.base import Base

REVIEW_STATUSES = ("pending", "approved", "rejected")
SUMMARY_STATUSES = ("under_review", "approved", "rejected")


class FieldReview(Base):
    __tablename__ = "field_reviews"

    id = Column(Integer, primary_key=True, index=True)
    application_id = Column(Integer, ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True)
    field_name = Column(String(100), nullable=False)  # catalogue name or question_answer_<id>
    field_value = Column(Text, nullable=True)  # snapshot taken at review time
    review_status = Column(String(20), nullable=False, default="pending")
    review_notes = Column(Text, nullable=True)
    reviewed_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    reviewer = relationship("User")

    __table_args__ = (
        UniqueConstraint("application_id", "field_name", name="uq_field_reviews_application_field"),
    )


class FileReview(Base):
    __tablename__ = "file_reviews"

    id = Column(Integer, primary_key=True, index=True)
    application_id = Column(Integer, ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True)
    file_id = Column(Integer, ForeignKey("application_documents.id", ondelete="CASCADE"), nullable=False, index=True)
    review_status = Column(String(20), nullable=False, default="pending")
    review_notes = Column(Text, nullable=True)
    reviewed_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    reviewer = relationship("User")

    __table_args__ = (
        UniqueConstraint("application_id", "file_id", name="uq_file_reviews_application_file"),
    )


class ApplicationReview(Base):
    """Rolled-up overall status and notes; at most one row per application."""
    __tablename__ = "application_reviews"

    id = Column(Integer, primary_key=True, index=True)
    application_id = Column(
        Integer, ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, unique=True, index=True
    )
    overall_status = Column(String(20), nullable=False, default="under_review")
    review_notes = Column(Text, nullable=True)
    reviewed_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    reviewer = relationship("User")
