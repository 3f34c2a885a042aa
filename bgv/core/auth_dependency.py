import logging
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import jwt, JWTError, ExpiredSignatureError
from sqlalchemy.orm import Session
from bgv.core.config import SECRET_KEY, ALGORITHM
from bgv.core.exceptions import AuthenticationError, PermissionDeniedError
from bgv.db.session import SessionLocal
from bgv.db.models.user import User

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

ROLE_LABELS = {
    "admin": "Admin",
    "verifier": "Verifier",
}


def get_db():
    """Database session dependency."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the bearer token to an active User row."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Access denied. No token provided.")

    try:
        payload = jwt.decode(credentials.credentials, SECRET_KEY, algorithms=[ALGORITHM])
    except ExpiredSignatureError:
        raise AuthenticationError("Access denied. Token has expired.")
    except JWTError:
        raise AuthenticationError("Access denied. Invalid token.")

    user_id = payload.get("sub")
    if not user_id or not str(user_id).isdigit():
        raise AuthenticationError("Access denied. Invalid token.")

    user = db.query(User).filter(User.id == int(user_id)).first()
    if not user or not user.is_active:
        raise AuthenticationError("Access denied. User not found.")

    return user


def require_role(*roles: str):
    """
    Dependency factory restricting an endpoint to the given user types.

    Returns:
        Dependency that yields the authenticated User

    Raises:
        AuthenticationError 401: Missing or invalid token
        PermissionDeniedError 403: Authenticated user has another role
    """
    label = " or ".join(ROLE_LABELS.get(role, role) for role in roles)

    def role_checker(user: User = Depends(get_current_user)) -> User:
        if user.user_type not in roles:
            logger.warning(f"Role check failed: user_id={user.id}, user_type={user.user_type}, required={roles}")
            raise PermissionDeniedError(f"{label} access required")
        return user

    return role_checker


require_admin = require_role("admin")
require_verifier = require_role("verifier")
require_admin_or_verifier = require_role("admin", "verifier")
