"""
Maturity Tracker
Role-based access control for API routes.

Provides:
    - login_required: the request must carry a valid bearer token
    - require_role:   the caller's role must include a minimum role

Security model:
    - g.current_user_id / g.current_user_role are set by
      middleware/jwt_auth.py from the bearer token
    - Every /api/v1/* route except login, register and health requires
      authentication
    - Role hierarchy: admin > team_owner > team_member
"""

import functools
import logging

from flask import g, request

from maturity_tracker.models.auth import ROLE_ADMIN, ROLE_TEAM_MEMBER, ROLE_TEAM_OWNER
from maturity_tracker.utils.errors import E, api_error

logger = logging.getLogger(__name__)

# ── Roles ────────────────────────────────────────────────────────────────────

# Role hierarchy: admin > team_owner > team_member
ROLE_HIERARCHY = {
    ROLE_ADMIN: {ROLE_ADMIN, ROLE_TEAM_OWNER, ROLE_TEAM_MEMBER},
    ROLE_TEAM_OWNER: {ROLE_TEAM_OWNER, ROLE_TEAM_MEMBER},
    ROLE_TEAM_MEMBER: {ROLE_TEAM_MEMBER},
}


def has_role(user_role: str | None, minimum_role: str) -> bool:
    return minimum_role in ROLE_HIERARCHY.get(user_role, set())


# ── Decorators ───────────────────────────────────────────────────────────────

def login_required(f):
    """Decorator: require an authenticated caller."""
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        if getattr(g, "current_user_id", None) is None:
            return api_error(E.UNAUTHORIZED, "Authentication required")
        return f(*args, **kwargs)

    return decorated


def require_role(minimum_role: str):
    """
    Decorator: require a minimum role level.

    Usage:
        @require_role("admin")
        def delete_campaign(cid): ...
    """
    def decorator(f):
        @functools.wraps(f)
        def decorated(*args, **kwargs):
            if getattr(g, "current_user_id", None) is None:
                return api_error(E.UNAUTHORIZED, "Authentication required")

            user_role = getattr(g, "current_user_role", None)
            if not has_role(user_role, minimum_role):
                logger.warning(
                    "Access denied: role '%s' tried to access '%s'-level endpoint %s",
                    user_role, minimum_role, request.path,
                )
                return api_error(E.FORBIDDEN, "Insufficient permissions")

            return f(*args, **kwargs)
        return decorated
    return decorator
