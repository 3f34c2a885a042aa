"""
Pydantic schemas for authentication and user endpoints.
"""
from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel


class LoginRequest(BaseModel):
    """Request schema for staff login."""
    email: EmailStr = Field(..., description="User's email address")
    password: str = Field(..., description="User's password")

    class Config:
        json_schema_extra = {
            "example": {
                "email": "admin@example.com",
                "password": "SecurePass123"
            }
        }


class UserCreate(BaseModel):
    """Request schema for creating an admin or verifier account."""
    email: EmailStr = Field(..., description="User's email address")
    password: str = Field(..., min_length=6, description="User's password (min 6 characters)")
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: Optional[str] = Field(default="", max_length=100)
    user_type: str = Field(default="verifier", pattern="^(admin|verifier)$")

    @field_validator("password")
    @classmethod
    def validate_password_length(cls, v: str) -> str:
        """Validate password length in bytes (bcrypt limit is 72 bytes)."""
        if len(v.encode("utf-8")) > 72:
            raise ValueError("Password too long (bcrypt limit 72 bytes)")
        return v


class UserResponse(BaseModel):
    id: int
    email: str
    first_name: str
    last_name: str
    user_type: str
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProfileUpdate(BaseModel):
    """Own-profile edit; omitted or blank fields are left unchanged."""
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    email: Optional[EmailStr] = None


class PasswordChange(BaseModel):
    """Body keys are currentPassword / newPassword; snake_case is accepted too."""
    current_password: Optional[str] = None
    new_password: Optional[str] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class VerifierCompany(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True


class VerifierResponse(UserResponse):
    companies: List[VerifierCompany] = []


class ProfileResponse(UserResponse):
    full_name: str
    updated_at: Optional[datetime] = None
    assigned_companies: Optional[List[VerifierCompany]] = None
