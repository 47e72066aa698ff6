"""
Maturity Tracker
Flask Application Factory.

Usage:
    from maturity_tracker import create_app
    app = create_app()           # defaults to APP_ENV or "development"
    app = create_app("testing")  # explicit config
"""

import logging
import os

from flask import Flask, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate

from maturity_tracker.config import config
from maturity_tracker.models import db
from maturity_tracker.middleware.logging_config import configure_logging
from maturity_tracker.middleware.timing import init_request_timing
from maturity_tracker.middleware.jwt_auth import init_jwt_middleware
from maturity_tracker.middleware.rate_limiter import init_rate_limits

logger = logging.getLogger(__name__)

# ── SQLite FK enforcement (global engine event) ─────────────────────────
from sqlalchemy import event as _sa_event, engine as _sa_engine


@_sa_event.listens_for(_sa_engine.Engine, "connect")
def _enable_sqlite_fk(dbapi_conn, connection_record):
    """Enable foreign key enforcement for SQLite connections."""
    if "sqlite" in type(dbapi_conn).__module__:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


migrate = Migrate()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],                     # no global limit; applied per blueprint
    storage_uri=os.getenv("REDIS_URL") or "memory://",
)


def create_app(config_name=None):
    """
    Create and configure the Flask application.

    Args:
        config_name: Configuration environment name.
                     One of: "development", "testing", "production".
                     Defaults to APP_ENV env var, or "development" if unset.

    Returns:
        Configured Flask application instance.
    """
    if config_name is None:
        config_name = os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config[config_name]())
    os.makedirs(app.instance_path, exist_ok=True)

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    # ── Extensions ───────────────────────────────────────────────────────
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)
    cors_origins = app.config.get("CORS_ORIGINS", "*")
    if cors_origins and cors_origins != "*":
        CORS(app, origins=[o.strip() for o in cors_origins.split(",") if o.strip()])
    else:
        CORS(app)

    # ── Request timing + JWT principal ───────────────────────────────────
    init_request_timing(app)
    init_jwt_middleware(app)

    # ── Import all models so create_all / Alembic see them ───────────────
    from maturity_tracker.models import auth as _auth_models              # noqa: F401
    from maturity_tracker.models import roster as _roster_models          # noqa: F401
    from maturity_tracker.models import catalog as _catalog_models        # noqa: F401
    from maturity_tracker.models import campaign as _campaign_models      # noqa: F401
    from maturity_tracker.models import evaluation as _evaluation_models  # noqa: F401

    # ── Auto-create tables (CREATE IF NOT EXISTS) ────────────────────────
    with app.app_context():
        db.create_all()
        app.logger.debug("db.create_all() completed")

    # ── Blueprints ───────────────────────────────────────────────────────
    from maturity_tracker.blueprints.auth_bp import auth_bp
    from maturity_tracker.blueprints.campaign_bp import campaign_bp
    from maturity_tracker.blueprints.evaluation_bp import evaluation_bp
    from maturity_tracker.blueprints.health_bp import health_bp
    from maturity_tracker.blueprints.maturity_model_bp import maturity_model_bp
    from maturity_tracker.blueprints.service_bp import service_bp
    from maturity_tracker.blueprints.team_bp import team_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(team_bp)
    app.register_blueprint(service_bp)
    app.register_blueprint(maturity_model_bp)
    app.register_blueprint(campaign_bp)
    app.register_blueprint(evaluation_bp)
    app.register_blueprint(health_bp)

    # ── CLI commands ─────────────────────────────────────────────────────
    @app.cli.command("seed-demo")
    def seed_demo_cmd():
        """Seed the demo users, catalog, roster and hackathon campaign."""
        from maturity_tracker.services.seed_service import seed_demo
        result = seed_demo()
        logger.info("seed-demo finished: %s", result)

    # ── Error handlers ───────────────────────────────────────────────────
    @app.errorhandler(404)
    def not_found(e):
        return {"error": "Not found", "path": request.path}, 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return {"error": "Method not allowed"}, 405

    @app.errorhandler(413)
    def too_large(e):
        return {"error": "Request body too large"}, 413

    @app.errorhandler(429)
    def rate_limited(e):
        return {"error": "Too many requests", "retry_after": e.description}, 429

    @app.errorhandler(500)
    def server_error(e):
        logger.error("500 error: %s", e, exc_info=True)
        return {"error": "Internal server error"}, 500

    # ── Rate limiting (after blueprints registered) ──────────────────────
    init_rate_limits(app, limiter)

    return app
