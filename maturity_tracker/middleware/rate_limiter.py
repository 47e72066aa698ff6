"""
Rate limiting configuration.

The Limiter instance is created in maturity_tracker/__init__.py with no
default limits; this module applies limits per blueprint. The login route
carries its own stricter limit (see blueprints/auth_bp.py).

Usage:
    from maturity_tracker.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)
"""

import logging

logger = logging.getLogger(__name__)

LOGIN_LIMIT = "10/minute"
WRITE_LIMIT = "60/minute"
READ_LIMIT = "200/minute"


def init_rate_limits(app, limiter):
    """
    Apply rate limits to API blueprints.

    Limits (per remote IP):
        - Campaign / evaluation routes: 60/minute
        - Catalog routes:               200/minute
        - Health check:                 exempt

    Rate limiting is disabled in testing mode.
    """

    if app.config.get("TESTING"):
        app.logger.info("Rate limiter disabled (TESTING=True)")
        return

    for bp_name in ("campaigns", "evaluations"):
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.limit(WRITE_LIMIT)(bp)

    for bp_name in ("teams", "services", "maturity_models"):
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.limit(READ_LIMIT)(bp)

    bp = app.blueprints.get("health")
    if bp:
        limiter.exempt(bp)

    app.logger.info(
        "Rate limiter configured — login: %s, write: %s, read: %s",
        LOGIN_LIMIT, WRITE_LIMIT, READ_LIMIT,
    )
