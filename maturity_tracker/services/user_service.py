"""
User Service — registration, credential check and profile updates.
"""

import logging
from dataclasses import dataclass
from typing import Any

from email_validator import EmailNotValidError, validate_email
from sqlalchemy import select

from maturity_tracker.core.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from maturity_tracker.models import db, utcnow
from maturity_tracker.models.auth import ROLE_TEAM_MEMBER, USER_ROLES, User
from maturity_tracker.services.helpers.transaction import transaction
from maturity_tracker.utils.crypto import hash_password, verify_password
from maturity_tracker.utils.helpers import UNSET, is_set

logger = logging.getLogger(__name__)


@dataclass
class ProfileChanges:
    username: Any = UNSET
    email: Any = UNSET
    password: Any = UNSET


def _normalize_email(email: str) -> str:
    try:
        return validate_email(email, check_deliverability=False).normalized
    except EmailNotValidError as e:
        raise ValidationError(f"Invalid email: {e}", details={"email": email}) from e


def _username_taken(username: str, exclude_id: int | None = None) -> bool:
    stmt = select(User.id).where(User.username == username)
    if exclude_id is not None:
        stmt = stmt.where(User.id != exclude_id)
    return db.session.execute(stmt).first() is not None


def _email_taken(email: str, exclude_id: int | None = None) -> bool:
    stmt = select(User.id).where(User.email == email)
    if exclude_id is not None:
        stmt = stmt.where(User.id != exclude_id)
    return db.session.execute(stmt).first() is not None


# ═══════════════════════════════════════════════════════════════
# Registration / login
# ═══════════════════════════════════════════════════════════════
def register_user(username: str, password: str, email: str, role: str | None = None) -> User:
    """Create a user. Role defaults to team_member.

    Whether the caller may create an admin is decided by the route.
    """
    username = (username or "").strip()
    if not username or not password or not email:
        raise ValidationError("Username, password, and email are required")
    role = role or ROLE_TEAM_MEMBER
    if role not in USER_ROLES:
        raise ValidationError(
            "Invalid role", details={"role": f"must be one of: {', '.join(USER_ROLES)}"},
        )
    email = _normalize_email(email)
    if _username_taken(username):
        raise ConflictError("User", "username", username, message="Username already exists")
    if _email_taken(email):
        raise ConflictError("User", "email", email, message="Email already exists")

    with transaction() as session:
        user = User(
            username=username,
            password_hash=hash_password(password),
            email=email,
            role=role,
        )
        session.add(user)

    logger.info("User registered: %s (%s)", username, role, extra={"user_id": user.id})
    return user


def authenticate(username: str, password: str) -> User:
    """Return the user for valid credentials.

    Raises:
        ValidationError:     username or password missing.
        AuthenticationError: unknown user or wrong password.
    """
    if not username or not password:
        raise ValidationError("Username and password are required")
    user = db.session.execute(
        select(User).where(User.username == username)
    ).scalar_one_or_none()
    if user is None or not verify_password(password, user.password_hash):
        logger.warning("Failed login for username=%s", username)
        raise AuthenticationError("Invalid credentials")
    return user


# ═══════════════════════════════════════════════════════════════
# Profile
# ═══════════════════════════════════════════════════════════════
def get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("User", user_id)
    return user


def update_profile(user_id: int, changes: ProfileChanges) -> User:
    """Update username, email and/or password of the current user.

    Empty values are ignored.
    """
    user = get_user(user_id)
    username = (changes.username or "").strip() if is_set(changes.username) else ""
    email = changes.email if is_set(changes.email) else ""
    password = changes.password if is_set(changes.password) else ""
    if not (username or email or password):
        raise ValidationError("No valid fields to update")

    if username and _username_taken(username, exclude_id=user_id):
        raise ConflictError("User", "username", username, message="Username already exists")
    if email:
        email = _normalize_email(email)
        if _email_taken(email, exclude_id=user_id):
            raise ConflictError("User", "email", email, message="Email already exists")

    with transaction():
        if username:
            user.username = username
        if email:
            user.email = email
        if password:
            user.password_hash = hash_password(password)
        user.updated_at = utcnow()

    return user
