"""User service - accounts, credentials and session revocation."""

import logging
from uuid import UUID

from sqlalchemy.orm import Session

from freelance_os.core.security import hash_password, verify_password
from freelance_os.core.structured_logging import build_log_context
from freelance_os.db.models import User

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def get_user_by_id(db: Session, user_id: UUID) -> User | None:
    """Get user by ID."""
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_email(db: Session, email: str) -> User | None:
    """Get user by email (case-insensitive)."""
    return db.query(User).filter(User.email == normalize_email(email)).first()


def create_user(db: Session, email: str, password: str, display_name: str) -> User:
    """
    Register a new freelancer account.

    Raises:
        ValueError: If the email is already registered
    """
    if get_user_by_email(db, email):
        raise ValueError("An account with this email already exists")

    user = User(
        email=normalize_email(email),
        password_hash=hash_password(password),
        display_name=display_name.strip(),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("user_signed_up", extra=build_log_context(user_id=str(user.id)))
    return user


def authenticate(db: Session, email: str, password: str) -> User | None:
    """Return the active user matching the credentials, else None."""
    user = get_user_by_email(db, email)
    if not user or not user.is_active:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


def revoke_all_sessions(db: Session, user_id: UUID) -> bool:
    """
    Revoke all sessions for a user by bumping token_version.

    Existing tokens with old version will fail validation.

    Returns:
        True if user found and sessions revoked, False if user not found
    """
    user = get_user_by_id(db, user_id)
    if not user:
        return False

    user.token_version += 1
    db.commit()
    return True
