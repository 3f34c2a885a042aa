"""
Company Service.
Client companies whose applicants are verified.
"""
import logging
from typing import Any, Dict, List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session

from bgv.core import config
from bgv.core.exceptions import ConflictError, NotFoundError, ValidationError
from bgv.db.models.application import Application
from bgv.db.models.company import Company
from bgv.db.transaction import transaction

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("name", "email", "industry", "address", "contact_person", "contact_phone", "is_active")


def form_link(company_id: int) -> str:
    return f"{config.FRONTEND_URL}/user-form/{company_id}"


def _ensure_email_free(db: Session, email: Optional[str], company_id: Optional[int] = None) -> None:
    if not email:
        return
    query = db.query(Company.id).filter(func.lower(Company.email) == email.lower())
    if company_id is not None:
        query = query.filter(Company.id != company_id)
    if query.first():
        raise ConflictError("Company with this email already exists")


def create_company(db: Session, data: Dict[str, Any], created_by: Optional[int] = None) -> Company:
    """Create a company and give it its public applicant form link."""
    name = (data.get("name") or "").strip()
    if not name:
        raise ValidationError("Company name is required")
    _ensure_email_free(db, data.get("email"))

    company = Company(
        name=name,
        email=data.get("email") or None,
        industry=data.get("industry"),
        address=data.get("address"),
        contact_person=data.get("contact_person"),
        contact_phone=data.get("contact_phone"),
        is_active=data.get("is_active", True) is not False,
        created_by=created_by,
    )
    with transaction(db, "create company"):
        db.add(company)
        db.flush()
        company.verification_form_link = form_link(company.id)

    db.refresh(company)
    logger.info(f"Company created: company_id={company.id}, created_by={created_by}")
    return company


def get_company(db: Session, company_id: int) -> Company:
    company = db.query(Company).filter(Company.id == company_id).first()
    if not company:
        raise NotFoundError("Company not found")
    return company


def list_companies(db: Session, include_inactive: bool = False, search: Optional[str] = None) -> List[Company]:
    query = db.query(Company)
    if not include_inactive:
        query = query.filter(Company.is_active.is_(True))
    if search:
        query = query.filter(func.lower(Company.name).like(f"%{search.strip().lower()}%"))
    return query.order_by(Company.name.asc()).all()


def update_company(db: Session, company_id: int, data: Dict[str, Any]) -> Company:
    company = get_company(db, company_id)

    if "name" in data and not (data["name"] or "").strip():
        raise ValidationError("Company name cannot be empty")
    if data.get("email"):
        _ensure_email_free(db, data["email"], company_id)

    with transaction(db, "update company"):
        for key in EDITABLE_FIELDS:
            if key in data:
                value = data[key]
                setattr(company, key, value.strip() if key == "name" else value)

    db.refresh(company)
    logger.info(f"Company updated: company_id={company_id}")
    return company


def deactivate_company(db: Session, company_id: int) -> Company:
    """
    Soft-delete a company.

    Its applications stay; the public form stops accepting submissions.
    """
    company = get_company(db, company_id)
    with transaction(db, "deactivate company"):
        company.is_active = False
    db.refresh(company)
    logger.info(f"Company deactivated: company_id={company_id}")
    return company


def get_company_form(db: Session, company_id: int) -> Dict[str, Any]:
    """What the public applicant form needs to know about a company."""
    company = db.query(Company).filter(Company.id == company_id, Company.is_active.is_(True)).first()
    if not company:
        raise NotFoundError("Company not found")
    return {"id": company.id, "name": company.name, "is_active": company.is_active}


def count_applications(db: Session, company_id: int) -> int:
    return db.query(func.count(Application.id)).filter(Application.company_id == company_id).scalar() or 0
