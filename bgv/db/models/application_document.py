"""
Uploaded applicant documents. Only metadata lives here; bytes are in the storage provider.
"""
from sqlalchemy import Column, Integer, String, BigInteger, DateTime, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from bgv.db.base import Base


class ApplicationDocument(Base):
    __tablename__ = "application_documents"

    id = Column(Integer, primary_key=True, index=True)
    application_id = Column(Integer, ForeignKey("applications.id", ondelete="CASCADE"), nullable=False, index=True)
    document_type = Column(String(100), nullable=False)  # form field name, e.g. "aadhar_card"
    document_name = Column(String(255), nullable=False)  # original file name
    file_path = Column(String(1000), nullable=False)  # disk path or object URL
    storage_key = Column(String(1000), nullable=True)  # provider key used for deletion
    file_size = Column(BigInteger, nullable=False, default=0)
    mime_type = Column(String(100), nullable=True)
    uploaded_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    application = relationship("Application", backref="documents")

    def __repr__(self):
        return f"<ApplicationDocument(id={self.id}, application_id={self.application_id}, type='{self.document_type}')>"
