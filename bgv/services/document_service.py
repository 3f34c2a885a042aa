"""
Document Service.
Stores applicant uploads through the configured provider and keeps their metadata.
"""
import logging
from typing import List

from sqlalchemy.orm import Session

from bgv.core import config
from bgv.core.exceptions import NotFoundError, ValidationError
from bgv.db.models.application_document import ApplicationDocument
from bgv.db.models.review import FileReview
from bgv.db.transaction import transaction
from bgv.services.storage import IncomingFile, StorageProvider

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = {
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
    "application/pdf",
}

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".pdf"}


def validate_upload(upload: IncomingFile) -> None:
    """
    Reject files that are not images or PDFs, empty, or larger than MAX_UPLOAD_BYTES.

    Raises:
        ValidationError
    """
    filename = (upload.filename or "").lower()
    extension = filename[filename.rfind("."):] if "." in filename else ""
    if upload.content_type not in ALLOWED_MIME_TYPES or extension not in ALLOWED_EXTENSIONS:
        raise ValidationError(f"Invalid file type for {upload.filename}. Only images and PDF files are allowed.")
    if upload.size == 0:
        raise ValidationError(f"File {upload.filename} is empty")
    if upload.size > config.MAX_UPLOAD_BYTES:
        raise ValidationError(
            f"File {upload.filename} exceeds the maximum size of {config.MAX_UPLOAD_BYTES // (1024 * 1024)}MB"
        )


def attach_documents(
    db: Session,
    storage: StorageProvider,
    application_id: int,
    uploads: List[IncomingFile],
) -> List[ApplicationDocument]:
    """
    Store each upload and record it against the application.

    A file that fails validation or storage is logged and skipped; the
    remaining files are still attached.

    Returns:
        Documents that were stored
    """
    stored = []
    for upload in uploads:
        try:
            validate_upload(upload)
            saved = storage.save_file(upload, application_id)
        except Exception as e:
            logger.warning(
                f"Skipping upload: application_id={application_id}, field={upload.field_name}, "
                f"filename={upload.filename}, error={e}"
            )
            continue

        document = ApplicationDocument(
            application_id=application_id,
            document_type=upload.field_name,
            document_name=upload.filename,
            file_path=saved.file_path,
            storage_key=saved.key,
            file_size=saved.size,
            mime_type=saved.mime_type,
        )
        with transaction(db, "save document"):
            db.add(document)
        db.refresh(document)
        stored.append(document)

    if uploads:
        logger.info(
            f"Documents attached: application_id={application_id}, "
            f"stored={len(stored)}, received={len(uploads)}, provider={storage.provider_name}"
        )
    return stored


def list_documents(db: Session, application_id: int) -> List[ApplicationDocument]:
    return (
        db.query(ApplicationDocument)
        .filter(ApplicationDocument.application_id == application_id)
        .order_by(ApplicationDocument.document_type.asc(), ApplicationDocument.document_name.asc())
        .all()
    )


def get_document(db: Session, document_id: int) -> ApplicationDocument:
    document = db.query(ApplicationDocument).filter(ApplicationDocument.id == document_id).first()
    if not document:
        raise NotFoundError("Document not found")
    return document


def delete_document(db: Session, storage: StorageProvider, document_id: int) -> dict:
    """
    Delete one document row with its file review, then remove the stored bytes.

    The stored file is removed best-effort: a provider failure is logged
    and the database delete stands.
    """
    document = get_document(db, document_id)
    application_id = document.application_id
    key = document.storage_key or document.file_path

    with transaction(db, "delete document"):
        db.query(FileReview).filter(FileReview.file_id == document_id).delete(synchronize_session=False)
        db.query(ApplicationDocument).filter(ApplicationDocument.id == document_id).delete(synchronize_session=False)

    db.expire_all()

    file_removed = False
    try:
        file_removed = storage.delete_file(key)
    except Exception as e:
        logger.warning(f"Stored file not deleted: document_id={document_id}, key={key}, error={e}")

    logger.info(f"Document deleted: document_id={document_id}, application_id={application_id}, file_removed={file_removed}")
    return {"deletedDocumentId": document_id, "applicationId": application_id, "fileRemoved": file_removed}
