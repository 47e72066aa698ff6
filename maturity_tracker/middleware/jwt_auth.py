"""
JWT Auth Middleware — Parses JWT from Authorization header, sets g.current_user_*.

  Authorization: Bearer <token>  →  g.current_user_id, g.current_user_role,
                                    g.current_username

A missing, expired or invalid token leaves the request anonymous; the
route decorators in maturity_tracker.auth decide whether that is a 401.
"""

import logging

import jwt as pyjwt
from flask import g, request

from maturity_tracker.services.jwt_service import decode_access_token

logger = logging.getLogger(__name__)

# Paths that skip JWT auth entirely
JWT_SKIP_PREFIXES = (
    "/api/v1/auth/login",
    "/api/v1/health",
    "/static/",
)


def init_jwt_middleware(app):
    """Register JWT middleware as a before_request hook."""

    @app.before_request
    def _jwt_auth():
        g.current_user_id = None
        g.current_user_role = None
        g.current_username = None

        path = request.path
        if not path.startswith("/api/v1/"):
            return
        for prefix in JWT_SKIP_PREFIXES:
            if path.startswith(prefix):
                return

        auth_header = request.headers.get("Authorization", "")
        if not auth_header.startswith("Bearer "):
            return

        token = auth_header[7:]  # Strip "Bearer "

        try:
            payload = decode_access_token(token)
        except pyjwt.ExpiredSignatureError:
            logger.debug("Expired token on %s", path)
            return
        except pyjwt.InvalidTokenError:
            logger.debug("Invalid token on %s", path)
            return

        g.current_user_id = payload["sub"]
        g.current_user_role = payload.get("role")
        g.current_username = payload.get("username")
