"""
Shared pytest fixtures for the Maturity Tracker test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - admin_user / owner_user / member_user and matching *_headers
    - categories, model, team, service, service2, campaign, active_campaign:
      a small catalog with one 3-measurement model (2 measurements in the
      "Observability and Monitoring" category, 1 in "Change Management")
"""

import pytest

from maturity_tracker import create_app
from maturity_tracker.models import db as _db
from maturity_tracker.models.auth import ROLE_ADMIN, ROLE_TEAM_MEMBER, ROLE_TEAM_OWNER, User
from maturity_tracker.models.catalog import MeasurementCategory
from maturity_tracker.services import campaign_service, maturity_model_service, roster_service
from maturity_tracker.services.jwt_service import generate_access_token
from maturity_tracker.utils.crypto import hash_password

TEST_PASSWORD = "secret123"


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    application = create_app("testing")
    return application


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


# ── Users & auth headers ─────────────────────────────────────────────────


def _make_user(username: str, role: str) -> User:
    user = User(
        username=username,
        email=f"{username}@example.com",
        password_hash=hash_password(TEST_PASSWORD),
        role=role,
    )
    _db.session.add(user)
    _db.session.commit()
    return user


def _bearer(user: User) -> dict:
    return {"Authorization": f"Bearer {generate_access_token(user)}"}


@pytest.fixture()
def admin_user():
    return _make_user("admin", ROLE_ADMIN)


@pytest.fixture()
def owner_user():
    return _make_user("teamowner", ROLE_TEAM_OWNER)


@pytest.fixture()
def member_user():
    return _make_user("teammember", ROLE_TEAM_MEMBER)


@pytest.fixture()
def admin_headers(admin_user):
    return _bearer(admin_user)


@pytest.fixture()
def owner_headers(owner_user):
    return _bearer(owner_user)


@pytest.fixture()
def member_headers(member_user):
    return _bearer(member_user)


# ── Catalog, roster & campaigns ──────────────────────────────────────────


@pytest.fixture()
def categories():
    """{"observability": id, "change": id, "security": id}"""
    rows = {
        "observability": MeasurementCategory(name="Observability and Monitoring"),
        "change": MeasurementCategory(name="Change Management"),
        "security": MeasurementCategory(name="Security and Compliance"),
    }
    _db.session.add_all(rows.values())
    _db.session.commit()
    return {key: c.id for key, c in rows.items()}


@pytest.fixture()
def model(admin_user, categories):
    """A maturity model with 3 measurements; returns the model detail dict."""
    m = maturity_model_service.create_model("Operational Excellence", admin_user.id, "ops")
    for name, category in (
        ("Has centralized logging", "observability"),
        ("Has infrastructure metrics published", "observability"),
        ("Has automated tests", "change"),
    ):
        maturity_model_service.add_measurement(m["id"], {
            "name": name,
            "category_id": categories[category],
            "evidence_type": "URL",
        })
    return maturity_model_service.get_model(m["id"])


@pytest.fixture()
def team(owner_user):
    return roster_service.create_team("Platform Team", owner_user.id, "platform")


@pytest.fixture()
def service(team, owner_user):
    return roster_service.create_service({
        "name": "API Gateway",
        "owner_id": owner_user.id,
        "team_id": team["id"],
        "service_type": "API Service",
    })


@pytest.fixture()
def service2(team, owner_user):
    return roster_service.create_service({
        "name": "Customer Portal",
        "owner_id": owner_user.id,
        "team_id": team["id"],
        "service_type": "UI Application",
    })


@pytest.fixture()
def campaign(model, admin_user):
    """Draft campaign on the 3-measurement model."""
    return campaign_service.create_campaign("Hackathon 2025", model["id"], admin_user.id)


@pytest.fixture()
def active_campaign(campaign):
    return campaign_service.update_campaign_status(campaign["id"], "active")
