from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey
from sqlalchemy.sql import func
from bgv.db.base import Base

HISTORY_ACTIONS = ("assigned", "started_review", "approved", "rejected")


class VerificationHistory(Base):
    """
    Append-only audit log of state-changing actions on an application.

    Rows are never updated; nothing reads them to make decisions.
    """
    __tablename__ = "verification_history"

    id = Column(Integer, primary_key=True, index=True)
    application_id = Column(Integer, ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True)
    verifier_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    action = Column(String(30), nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<VerificationHistory(application_id={self.application_id}, action='{self.action}')>"
