"""
Auth blueprint — login, registration and the caller's own profile.

Endpoints:
    POST /api/v1/auth/login     — {username, password} → {token, user}
    POST /api/v1/auth/register  — create a user (admin role needs an admin caller)
    GET  /api/v1/auth/profile   — current user
    PUT  /api/v1/auth/profile   — update username / email / password
"""

import logging

from flask import Blueprint, g, jsonify

from maturity_tracker import limiter
from maturity_tracker.auth import has_role, login_required
from maturity_tracker.blueprints import current_user_id, json_body, register_error_handlers
from maturity_tracker.middleware.rate_limiter import LOGIN_LIMIT
from maturity_tracker.models.auth import ROLE_ADMIN
from maturity_tracker.services import user_service
from maturity_tracker.services.jwt_service import generate_access_token
from maturity_tracker.utils.errors import E, api_error
from maturity_tracker.utils.helpers import changes_from

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__, url_prefix="/api/v1/auth")
register_error_handlers(auth_bp)


@auth_bp.route("/login", methods=["POST"])
@limiter.limit(LOGIN_LIMIT)
def login():
    data = json_body()
    user = user_service.authenticate(data.get("username"), data.get("password"))
    logger.info("User logged in: %s", user.username, extra={"user_id": user.id})
    return jsonify({"token": generate_access_token(user), "user": user.to_dict()}), 200


@auth_bp.route("/register", methods=["POST"])
def register():
    """Register a user. Only an authenticated admin may create another admin."""
    data = json_body()
    if data.get("role") == ROLE_ADMIN and not has_role(
        getattr(g, "current_user_role", None), ROLE_ADMIN
    ):
        return api_error(E.FORBIDDEN, "Only admins can create admin users")

    user = user_service.register_user(
        data.get("username"), data.get("password"), data.get("email"), data.get("role"),
    )
    return jsonify({"token": generate_access_token(user), "user": user.to_dict()}), 201


@auth_bp.route("/profile", methods=["GET"])
@login_required
def get_profile():
    return jsonify(user_service.get_user(current_user_id()).to_dict()), 200


@auth_bp.route("/profile", methods=["PUT"])
@login_required
def update_profile():
    changes = changes_from(user_service.ProfileChanges, json_body())
    user = user_service.update_profile(current_user_id(), changes)
    return jsonify(user.to_dict()), 200
