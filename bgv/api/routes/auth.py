from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from bgv.api.responses import success_response
from bgv.core.auth_dependency import get_db, get_current_user
from bgv.core.exceptions import ValidationError
from bgv.db.models.user import User
from bgv.schemas.auth import LoginRequest, UserResponse
from bgv.services import user_service

router = APIRouter(prefix="/auth", tags=["Auth"])


async def login_credentials(request: Request) -> LoginRequest:
    """Accept JSON ({email, password}) or an OAuth2 form (username = email) for Swagger."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            body = await request.json()
        except ValueError:
            raise ValidationError("Invalid JSON body")
    else:
        form = await request.form()
        body = {"email": form.get("email") or form.get("username"), "password": form.get("password")}

    if not isinstance(body, dict) or not body.get("email") or not body.get("password"):
        raise ValidationError("Email and password are required")
    try:
        return LoginRequest.model_validate(body)
    except PydanticValidationError:
        raise ValidationError("Invalid email or password format")


# ✅ STAFF LOGIN (JSON + SWAGGER FORM)
@router.post("/login")
def login(
    credentials: LoginRequest = Depends(login_credentials),
    db: Session = Depends(get_db),
):
    user, token = user_service.authenticate(db, credentials.email, credentials.password)
    body = success_response("Login successful", {
        "token": token,
        "user": UserResponse.model_validate(user),
    })
    # OAuth2 clients (Swagger "Authorize") read these top-level keys
    body["access_token"] = token
    body["token_type"] = "bearer"
    return body


# ✅ CURRENT USER
@router.get("/me")
def me(user: User = Depends(get_current_user)):
    return success_response("User profile", UserResponse.model_validate(user))
