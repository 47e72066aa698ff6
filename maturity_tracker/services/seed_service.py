"""Demo dataset — `flask seed-demo`.

Builds the sample organisation through the regular service functions so the
seeded rows obey the same rules as API-created ones: three users, the six
measurement categories, three teams, six services, three maturity models
with default level rules and 14 measurements, and an active hackathon
campaign enrolling every service.

Seeding is skipped when the admin user already exists.
"""

import logging
from datetime import date, timedelta

from sqlalchemy import select

from maturity_tracker.models import db
from maturity_tracker.models.auth import ROLE_ADMIN, ROLE_TEAM_MEMBER, ROLE_TEAM_OWNER, User
from maturity_tracker.models.campaign import CAMPAIGN_ACTIVE
from maturity_tracker.models.catalog import MeasurementCategory
from maturity_tracker.services import (
    campaign_service,
    maturity_model_service,
    roster_service,
    user_service,
)
from maturity_tracker.services.helpers.transaction import transaction

logger = logging.getLogger(__name__)

DEMO_USERS = (
    ("admin", "admin123", "admin@example.com", ROLE_ADMIN),
    ("teamowner", "owner123", "owner@example.com", ROLE_TEAM_OWNER),
    ("teammember", "member123", "member@example.com", ROLE_TEAM_MEMBER),
)

CATEGORIES = (
    ("Service Reliability", "Measures related to service reliability and availability"),
    ("Performance and Scalability", "Measures related to performance and scalability of services"),
    ("Change Management", "Measures related to change management processes"),
    ("Security and Compliance", "Measures related to security and compliance requirements"),
    ("Observability and Monitoring", "Measures related to observability and monitoring capabilities"),
    ("Documentation Management", "Measures related to documentation management"),
)

# (name, owner username, description)
TEAMS = (
    ("Platform Team", "admin", "Team responsible for platform services"),
    ("Frontend Team", "teamowner", "Team responsible for frontend applications"),
    ("Backend Team", "teamowner", "Team responsible for backend services"),
)

# (name, owner username, team, description, type, resource location)
SERVICES = (
    ("API Gateway", "admin", "Platform Team", "API Gateway service for routing requests",
     "API Service", "https://github.com/example/api-gateway"),
    ("User Authentication Service", "admin", "Platform Team", "Service for user authentication",
     "API Service", "https://github.com/example/auth-service"),
    ("Customer Portal", "teamowner", "Frontend Team", "Customer-facing web portal",
     "UI Application", "https://github.com/example/customer-portal"),
    ("Admin Dashboard", "teamowner", "Frontend Team", "Admin dashboard application",
     "UI Application", "https://github.com/example/admin-dashboard"),
    ("Payment Processing Service", "teamowner", "Backend Team", "Service for processing payments",
     "API Service", "https://github.com/example/payment-service"),
    ("Notification Service", "teamowner", "Backend Team", "Service for sending notifications",
     "API Service", "https://github.com/example/notification-service"),
)

MODELS = (
    ("Operational Excellence",
     "Maturity model for operational excellence focusing on reliability, monitoring, and automation"),
    ("Security Compliance", "Maturity model for security compliance"),
    ("Performance Optimization", "Maturity model for performance optimization"),
)

# model → (name, category, description, evidence type, sample evidence)
MEASUREMENTS = {
    "Operational Excellence": (
        ("Has centralized logging", "Observability and Monitoring",
         "Service logs are centralized and easily accessible",
         "URL", "https://logging.example.com/service-logs"),
        ("Has infrastructure metrics published", "Observability and Monitoring",
         "Service publishes infrastructure metrics to a central monitoring system",
         "URL", "https://metrics.example.com/service-metrics"),
        ("Has automated deployment pipeline", "Change Management",
         "Service has an automated deployment pipeline",
         "URL", "https://ci.example.com/service-pipeline"),
        ("Has documented API", "Documentation Management",
         "Service has documented API",
         "URL", "https://docs.example.com/service-api"),
        ("Has automated tests", "Change Management",
         "Service has automated tests with good coverage",
         "URL", "https://ci.example.com/service-tests"),
        ("Has SLOs defined", "Service Reliability",
         "Service has defined Service Level Objectives",
         "Document", "SLO Documentation"),
        ("Has error budget policy", "Service Reliability",
         "Service has defined error budget policy",
         "Document", "Error Budget Policy Document"),
        ("Has auto-scaling configured", "Performance and Scalability",
         "Service has auto-scaling configured",
         "Document", "Auto-scaling Configuration Document"),
    ),
    "Security Compliance": (
        ("Has security scanning in CI/CD", "Security and Compliance",
         "Service has security scanning in CI/CD pipeline",
         "URL", "https://ci.example.com/service-security-scan"),
        ("Has vulnerability management process", "Security and Compliance",
         "Service has a vulnerability management process",
         "Document", "Vulnerability Management Process Document"),
        ("Has access control documentation", "Documentation Management",
         "Service has access control documentation",
         "Document", "Access Control Documentation"),
    ),
    "Performance Optimization": (
        ("Has performance testing in CI/CD", "Performance and Scalability",
         "Service has performance testing in CI/CD pipeline",
         "URL", "https://ci.example.com/service-performance-test"),
        ("Has auto-scaling configuration", "Performance and Scalability",
         "Service has auto-scaling configuration",
         "Document", "Auto-scaling Configuration Document"),
        ("Has performance metrics dashboard", "Observability and Monitoring",
         "Service has a performance metrics dashboard",
         "URL", "https://metrics.example.com/service-performance"),
    ),
}

HACKATHON_CAMPAIGN = "Hackathon 2025 Kona Kona Koding"
HACKATHON_DAYS = 30


def seed_categories() -> dict[str, int]:
    """Insert missing measurement categories; returns {name: id}."""
    existing = {
        c.name: c for c in db.session.execute(select(MeasurementCategory)).scalars()
    }
    with transaction() as session:
        for name, description in CATEGORIES:
            if name not in existing:
                existing[name] = MeasurementCategory(name=name, description=description)
                session.add(existing[name])
    return {name: c.id for name, c in existing.items()}


def seed_demo() -> dict:
    """Seed the demo organisation. Returns counts of what was created."""
    if db.session.execute(select(User.id).where(User.username == "admin")).first():
        logger.info("Demo data already present; skipping")
        return {"skipped": True}

    users = {
        username: user_service.register_user(username, password, email, role).id
        for username, password, email, role in DEMO_USERS
    }
    categories = seed_categories()

    teams = {
        name: roster_service.create_team(name, users[owner], description)["id"]
        for name, owner, description in TEAMS
    }

    service_ids = [
        roster_service.create_service({
            "name": name,
            "owner_id": users[owner],
            "team_id": teams[team],
            "description": description,
            "service_type": service_type,
            "resource_location": location,
        })["id"]
        for name, owner, team, description, service_type, location in SERVICES
    ]

    models = {
        name: maturity_model_service.create_model(name, users["admin"], description)["id"]
        for name, description in MODELS
    }
    measurement_count = 0
    for model_name, rows in MEASUREMENTS.items():
        for name, category, description, evidence_type, sample in rows:
            maturity_model_service.add_measurement(models[model_name], {
                "name": name,
                "category_id": categories[category],
                "description": description,
                "evidence_type": evidence_type,
                "sample_evidence": sample,
            })
            measurement_count += 1

    start = date.today()
    campaign = campaign_service.create_campaign(
        HACKATHON_CAMPAIGN,
        models["Operational Excellence"],
        users["admin"],
        start_date=start,
        end_date=start + timedelta(days=HACKATHON_DAYS),
    )
    campaign_service.update_campaign_status(campaign["id"], CAMPAIGN_ACTIVE)
    for service_id in service_ids:
        campaign_service.add_participant(campaign["id"], service_id)

    summary = {
        "users": len(users),
        "categories": len(categories),
        "teams": len(teams),
        "services": len(service_ids),
        "maturity_models": len(models),
        "measurements": measurement_count,
        "campaign_id": campaign["id"],
    }
    logger.info("Demo data seeded: %s", summary)
    return summary
