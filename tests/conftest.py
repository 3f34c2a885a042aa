"""
Shared fixtures: in-memory SQLite database, API client and record factories.
"""
import os

# Must be set before bgv modules read their configuration
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_DIR", "")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from datetime import date
from typing import List

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from bgv.core.auth_dependency import get_db
from bgv.core.security import hash_password, create_user_token
from bgv.db import models  # noqa: F401
from bgv.db.base import Base
from bgv.db.models.application import Application
from bgv.db.models.application_document import ApplicationDocument
from bgv.db.models.company import Company, VerifierAssignment
from bgv.db.models.question import FormQuestion, ApplicationQuestionAnswer
from bgv.db.models.user import User
from bgv.main import app
from bgv.services.storage import IncomingFile, StorageProvider, StoredFile, get_storage

# Setup in-memory SQLite database for testing
TEST_DATABASE_URL = "sqlite:///:memory:"
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

TEST_PASSWORD = "testpass123"


class RecordingStorage(StorageProvider):
    """In-memory provider that records calls and can be told to fail deletes."""
    provider_name = "memory"

    def __init__(self):
        self.saved: List[str] = []
        self.deleted: List[str] = []
        self.fail_deletes = False

    def save_file(self, upload: IncomingFile, application_id: int) -> StoredFile:
        key = f"applications/{application_id}/{upload.filename}"
        self.saved.append(key)
        return StoredFile(file_path=f"memory://{key}", key=key, size=upload.size, mime_type=upload.content_type)

    def delete_file(self, key: str) -> bool:
        if self.fail_deletes:
            raise RuntimeError("storage unavailable")
        self.deleted.append(key)
        return True


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=test_engine)
    db = TestSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def storage():
    return RecordingStorage()


@pytest.fixture
def client(db, storage):
    """API client sharing the test session and storage."""
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def make_user(db, email: str, user_type: str = "verifier", first_name: str = "Test", is_active: bool = True) -> User:
    user = User(
        email=email,
        password_hash=hash_password(TEST_PASSWORD),
        first_name=first_name,
        last_name="User",
        user_type=user_type,
        is_active=is_active,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_company(db, name: str = "Acme Corp", is_active: bool = True) -> Company:
    company = Company(name=name, email=f"{name.lower().replace(' ', '')}@example.com", is_active=is_active)
    db.add(company)
    db.commit()
    db.refresh(company)
    return company


def grant(db, verifier: User, company: Company, is_active: bool = True) -> VerifierAssignment:
    assignment = VerifierAssignment(verifier_id=verifier.id, company_id=company.id, is_active=is_active)
    db.add(assignment)
    db.commit()
    return assignment


def make_application(db, company: Company, verifier: User = None, status: str = None, **fields) -> Application:
    values = {
        "applicant_first_name": "Asha",
        "applicant_last_name": "Verma",
        "applicant_email": "asha.verma@example.com",
        "applicant_phone": "9876543210",
        "applicant_dob": date(1994, 3, 12),
        "current_district": "Pune",
    }
    values.update(fields)
    application = Application(company_id=company.id, application_status="pending", **values)
    if verifier is not None:
        application.assigned_verifier_id = verifier.id
        application.application_status = "assigned"
    if status:
        application.application_status = status
    db.add(application)
    db.commit()
    db.refresh(application)
    return application


def make_document(db, application: Application, document_type: str = "aadhar_card") -> ApplicationDocument:
    document = ApplicationDocument(
        application_id=application.id,
        document_type=document_type,
        document_name=f"{document_type}.pdf",
        file_path=f"memory://applications/{application.id}/{document_type}.pdf",
        storage_key=f"applications/{application.id}/{document_type}.pdf",
        file_size=2048,
        mime_type="application/pdf",
    )
    db.add(document)
    db.commit()
    db.refresh(document)
    return document


def make_answer(db, application: Application, question_text: str = "Any criminal record?", answer_text="No"):
    question = FormQuestion(question_text=question_text, form_section="personal", display_order=1, is_active=True)
    db.add(question)
    db.commit()
    answer = ApplicationQuestionAnswer(application_id=application.id, question_id=question.id, answer_text=answer_text)
    db.add(answer)
    db.commit()
    db.refresh(answer)
    return answer


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_user_token(user)}"}


@pytest.fixture
def admin(db):
    return make_user(db, "admin@example.com", user_type="admin", first_name="Admin")


@pytest.fixture
def company(db):
    return make_company(db)


@pytest.fixture
def verifier(db, company):
    """Active verifier granted access to the default company."""
    user = make_user(db, "verifier@example.com", first_name="Vera")
    grant(db, user, company)
    return user


@pytest.fixture
def other_verifier(db, company):
    user = make_user(db, "other.verifier@example.com", first_name="Otto")
    grant(db, user, company)
    return user


@pytest.fixture
def assigned_application(db, company, verifier):
    """Application in status "assigned", owned by the default verifier."""
    return make_application(db, company, verifier=verifier)
