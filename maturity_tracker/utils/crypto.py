"""
Crypto utilities — bcrypt password hashing.

Rounds come from the BCRYPT_ROUNDS config key (12 by default, lowered in the
testing config to keep the suite fast).
"""

import bcrypt
from flask import current_app

DEFAULT_ROUNDS = 12


def _rounds() -> int:
    try:
        return int(current_app.config.get("BCRYPT_ROUNDS", DEFAULT_ROUNDS))
    except RuntimeError:
        # Outside app context (scripts)
        return DEFAULT_ROUNDS


def hash_password(plain_password: str) -> str:
    """Hash a plain-text password with bcrypt."""
    salt = bcrypt.gensalt(rounds=_rounds())
    return bcrypt.hashpw(plain_password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    """Verify a plain-text password against its bcrypt hash."""
    if not password_hash or not plain_password:
        return False
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8"),
            password_hash.encode("utf-8"),
        )
    except ValueError:
        # Malformed stored hash
        return False
