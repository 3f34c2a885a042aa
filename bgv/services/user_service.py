"""
User Service.
Staff accounts (admins and verifiers) and login.
"""
import logging
from typing import Any, Dict, List, Optional, Tuple
from sqlalchemy import func
from sqlalchemy.orm import Session

from bgv.core.exceptions import AuthenticationError, ConflictError, NotFoundError, ValidationError
from bgv.core.logging_config import sanitize_log_data
from bgv.core.security import hash_password, verify_password, create_user_token
from bgv.db.models.user import User, USER_TYPES
from bgv.db.transaction import transaction

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(func.lower(User.email) == email.strip().lower()).first()


def create_user(
    db: Session,
    email: Optional[str],
    password: Optional[str],
    first_name: Optional[str],
    last_name: Optional[str] = "",
    user_type: str = "verifier",
) -> User:
    """
    Create a staff user.

    Raises:
        ValidationError: Missing fields, short password or unknown user type
        ConflictError: Email already registered
    """
    logger.debug(f"Create user requested: {sanitize_log_data({'email': email, 'password': password, 'user_type': user_type})}")
    if not email or not password or not first_name:
        raise ValidationError("Email, password and first name are required")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if user_type not in USER_TYPES:
        raise ValidationError(f"Invalid user type: {user_type}")
    if get_user_by_email(db, email):
        raise ConflictError("User with this email already exists")

    user = User(
        email=email.strip().lower(),
        password_hash=hash_password(password),
        first_name=first_name.strip(),
        last_name=(last_name or "").strip(),
        user_type=user_type,
        is_active=True,
    )
    with transaction(db, "create user"):
        db.add(user)

    db.refresh(user)
    logger.info(f"User created: user_id={user.id}, user_type={user_type}")
    return user


def authenticate(db: Session, email: Optional[str], password: Optional[str]) -> Tuple[User, str]:
    """
    Check credentials and issue a token.

    Returns:
        (user, access_token)

    Raises:
        AuthenticationError: Unknown email, inactive user or wrong password
    """
    if not email or not password:
        raise ValidationError("Email and password are required")

    user = get_user_by_email(db, email)
    if not user or not user.is_active or not verify_password(password, user.password_hash):
        logger.warning(f"Login failed: {sanitize_log_data({'email': email, 'password': password})}")
        raise AuthenticationError("Invalid credentials")

    logger.info(f"Login successful: user_id={user.id}, user_type={user.user_type}")
    return user, create_user_token(user)


def list_verifiers(db: Session, include_inactive: bool = False) -> List[User]:
    query = db.query(User).filter(User.user_type == "verifier")
    if not include_inactive:
        query = query.filter(User.is_active.is_(True))
    return query.order_by(User.first_name.asc(), User.last_name.asc()).all()


def get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")
    return user


def update_profile(db: Session, user_id: int, data: Dict[str, Any]) -> User:
    """
    Update the caller's own name or email.

    Blank values are ignored; at least one field must remain.

    Raises:
        ValidationError: Nothing to update
        ConflictError: Email belongs to another user
    """
    logger.debug(f"Profile update requested: user_id={user_id}, data={sanitize_log_data(data)}")
    values = {
        key: value.strip()
        for key, value in data.items()
        if key in ("first_name", "last_name", "email") and isinstance(value, str) and value.strip()
    }
    if not values:
        raise ValidationError("No valid fields to update")

    user = get_user(db, user_id)
    if "email" in values:
        values["email"] = values["email"].lower()
        existing = get_user_by_email(db, values["email"])
        if existing and existing.id != user.id:
            raise ConflictError("Email already taken")

    with transaction(db, "update profile"):
        for key, value in values.items():
            setattr(user, key, value)

    db.refresh(user)
    logger.info(f"Profile updated: user_id={user_id}, fields={sorted(values)}")
    return user


def change_password(db: Session, user_id: int, current_password: Optional[str], new_password: Optional[str]) -> None:
    """
    Replace the caller's password after checking the current one.

    New passwords need at least 6 characters with an uppercase letter,
    a lowercase letter and a digit.

    Raises:
        ValidationError: Missing values, wrong current password or weak new password
    """
    if not current_password or not new_password:
        raise ValidationError("Current password and new password are required")

    user = get_user(db, user_id)
    if not verify_password(current_password, user.password_hash):
        logger.warning(f"Password change rejected: user_id={user_id}")
        raise ValidationError("Current password is incorrect")

    if len(new_password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"New password must be at least {MIN_PASSWORD_LENGTH} characters long")
    if not (
        any(c.islower() for c in new_password)
        and any(c.isupper() for c in new_password)
        and any(c.isdigit() for c in new_password)
    ):
        raise ValidationError(
            "New password must contain at least one uppercase letter, one lowercase letter, and one number"
        )

    with transaction(db, "change password"):
        user.password_hash = hash_password(new_password)

    logger.info(f"Password changed: user_id={user_id}")
