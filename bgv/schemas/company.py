"""
Pydantic schemas for company and verifier-grant endpoints.
"""
from typing import Optional
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field


class CompanyCreate(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    email: Optional[EmailStr] = None
    industry: Optional[str] = None
    address: Optional[str] = None
    contact_person: Optional[str] = None
    contact_phone: Optional[str] = None


class CompanyUpdate(CompanyCreate):
    is_active: Optional[bool] = None


class CompanyResponse(BaseModel):
    id: int
    name: str
    email: Optional[str] = None
    industry: Optional[str] = None
    address: Optional[str] = None
    contact_person: Optional[str] = None
    contact_phone: Optional[str] = None
    verification_form_link: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CompanyFormResponse(BaseModel):
    id: int
    name: str
    is_active: bool


class VerifierGrantRequest(BaseModel):
    verifier_id: Optional[int] = None
