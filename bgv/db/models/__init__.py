"""
Database models module.

This module imports all database models to ensure they are registered with SQLAlchemy's Base.metadata
before table creation.

All models must be imported here to be included in database migrations and table creation.
"""
from bgv.db.models.user import User
from bgv.db.models.company import Company, VerifierAssignment
from bgv.db.models.application import Application
from bgv.db.models.application_document import ApplicationDocument
from bgv.db.models.review import FieldReview, FileReview, ApplicationReview
from bgv.db.models.verification_history import VerificationHistory
from bgv.db.models.question import FormQuestion, ApplicationQuestionAnswer

__all__ = [
    "User",
    "Company",
    "VerifierAssignment",
    "Application",
    "ApplicationDocument",
    "FieldReview",
    "FileReview",
    "ApplicationReview",
    "VerificationHistory",
    "FormQuestion",
    "ApplicationQuestionAnswer",
]
