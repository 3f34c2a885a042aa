"""
Script to create (or reset) an admin account.
Run: python -m scripts.create_admin admin@example.com 'S3curePass!' --first-name Company --last-name Admin
"""
import argparse
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from bgv.db.session import SessionLocal
from bgv.db.init_db import init_db
from bgv.db.models.user import User
from bgv.core.security import hash_password
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def create_admin(email: str, password: str, first_name: str = "Admin", last_name: str = "", reset: bool = False) -> bool:
    """Create an admin user, or with reset=True update an existing one's password and role."""
    init_db()
    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == email.lower()).first()

        if user and not reset:
            logger.error(f"User {email} already exists (id={user.id}, type={user.user_type}). Use --reset to update it.")
            return False

        if user:
            user.password_hash = hash_password(password)
            user.user_type = "admin"
            user.is_active = True
            logger.info(f"Updating existing user {email} to admin")
        else:
            user = User(
                email=email.lower(),
                password_hash=hash_password(password),
                first_name=first_name,
                last_name=last_name,
                user_type="admin",
                is_active=True,
            )
            db.add(user)
            logger.info(f"Creating admin user {email}")

        db.commit()
        db.refresh(user)
        logger.info(f"Admin ready: id={user.id}, email={user.email}")
        return True
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating admin: {e}", exc_info=True)
        return False
    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create an admin account")
    parser.add_argument("email")
    parser.add_argument("password")
    parser.add_argument("--first-name", default="Admin")
    parser.add_argument("--last-name", default="")
    parser.add_argument("--reset", action="store_true", help="Update the user if the email already exists")
    args = parser.parse_args()

    if not create_admin(args.email, args.password, args.first_name, args.last_name, args.reset):
        print(f"\n[ERROR] Failed to set up admin {args.email}")
        sys.exit(1)
    print(f"\n[SUCCESS] Admin {args.email} is ready")
