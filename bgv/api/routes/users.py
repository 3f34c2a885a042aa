from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from bgv.api.responses import success_response
from bgv.core.auth_dependency import get_db, get_current_user, require_admin, require_verifier
from bgv.db.models.user import User
from bgv.schemas.auth import (
    PasswordChange,
    ProfileResponse,
    ProfileUpdate,
    UserCreate,
    UserResponse,
    VerifierCompany,
    VerifierResponse,
)
from bgv.services import application_service, assignment_service, user_service

router = APIRouter(prefix="/users", tags=["Users"])


# ✅ ADMIN: CREATE STAFF ACCOUNT
@router.post("", status_code=201)
def create_user(
    payload: UserCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin),
):
    created = user_service.create_user(
        db,
        email=payload.email,
        password=payload.password,
        first_name=payload.first_name,
        last_name=payload.last_name,
        user_type=payload.user_type,
    )
    return success_response("User created successfully", UserResponse.model_validate(created))


# ✅ ADMIN: VERIFIERS WITH THEIR COMPANIES
@router.get("/verifiers")
def list_verifiers(
    include_inactive: bool = Query(False),
    db: Session = Depends(get_db),
    user: User = Depends(require_admin),
):
    verifiers = []
    for verifier in user_service.list_verifiers(db, include_inactive=include_inactive):
        companies = assignment_service.list_verifier_companies(db, verifier.id)
        verifiers.append(VerifierResponse(
            **UserResponse.model_validate(verifier).model_dump(),
            companies=[VerifierCompany.model_validate(company) for company in companies],
        ))
    return success_response("Verifiers retrieved successfully", verifiers)


# ✅ OWN PROFILE
def _profile(db: Session, user: User) -> ProfileResponse:
    profile = ProfileResponse.model_validate(user)
    if user.user_type == "verifier":
        companies = assignment_service.list_verifier_companies(db, user.id)
        profile.assigned_companies = [VerifierCompany.model_validate(company) for company in companies]
    return profile


@router.get("/profile")
def get_profile(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return success_response("Profile retrieved successfully", _profile(db, user))


@router.put("/profile")
def update_profile(
    payload: ProfileUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    updated = user_service.update_profile(db, user.id, payload.model_dump(exclude_unset=True))
    return success_response("Profile updated successfully", _profile(db, updated))


@router.put("/change-password")
def change_password(
    payload: PasswordChange,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    user_service.change_password(db, user.id, payload.current_password, payload.new_password)
    return success_response("Password changed successfully")


# ✅ VERIFIER DASHBOARD COUNTS
@router.get("/verifier/stats")
def verifier_stats(
    db: Session = Depends(get_db),
    user: User = Depends(require_verifier),
):
    return success_response("Verifier statistics", application_service.get_application_stats(db, verifier_id=user.id))
