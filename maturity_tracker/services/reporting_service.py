"""Campaign roll-ups — implementation percentage per service, team and category.

implementation_percentage = round(100 * implemented / total, 2), or None when
the group has no evaluations. Rows are ordered by percentage (highest first,
None last), then by name.

The three roll-ups are independent read queries.
"""

from __future__ import annotations

import logging

from sqlalchemy import and_, case, func, select

from maturity_tracker.core.exceptions import NotFoundError
from maturity_tracker.models import db
from maturity_tracker.models.campaign import Campaign, CampaignParticipant
from maturity_tracker.models.catalog import MaturityLevelRule, Measurement, MeasurementCategory
from maturity_tracker.models.evaluation import STATUS_IMPLEMENTED, MeasurementEvaluation
from maturity_tracker.models.roster import Service, Team

logger = logging.getLogger(__name__)


def _implemented_count():
    return func.coalesce(
        func.sum(case((MeasurementEvaluation.status == STATUS_IMPLEMENTED, 1), else_=0)),
        0,
    )


def _percentage(implemented: int, total: int) -> float | None:
    if not total:
        return None
    return round(100.0 * implemented / total, 2)


def _ordered(rows: list[dict], name_key: str) -> list[dict]:
    return sorted(
        rows,
        key=lambda r: (
            r["implementation_percentage"] is None,
            -(r["implementation_percentage"] or 0),
            r[name_key],
        ),
    )


def _participant_evaluations_join():
    return and_(
        MeasurementEvaluation.campaign_id == CampaignParticipant.campaign_id,
        MeasurementEvaluation.service_id == CampaignParticipant.service_id,
    )


# ── Roll-ups ──────────────────────────────────────────────────────────────────


def summary_by_service(campaign_id: int) -> list[dict]:
    """Per participating service: implemented / total evaluations."""
    rows = db.session.execute(
        select(
            Service.id,
            Service.name,
            Team.id,
            Team.name,
            _implemented_count(),
            func.count(MeasurementEvaluation.id),
        )
        .select_from(CampaignParticipant)
        .join(Service, CampaignParticipant.service_id == Service.id)
        .join(Team, Service.team_id == Team.id)
        .outerjoin(MeasurementEvaluation, _participant_evaluations_join())
        .where(CampaignParticipant.campaign_id == campaign_id)
        .group_by(Service.id, Service.name, Team.id, Team.name)
    ).all()

    return _ordered(
        [
            {
                "service_id": service_id,
                "service_name": service_name,
                "team_id": team_id,
                "team_name": team_name,
                "implemented_count": int(implemented),
                "total_count": int(total),
                "implementation_percentage": _percentage(implemented, total),
            }
            for service_id, service_name, team_id, team_name, implemented, total in rows
        ],
        "service_name",
    )


def summary_by_team(campaign_id: int) -> list[dict]:
    """Per team with at least one participating service."""
    rows = db.session.execute(
        select(
            Team.id,
            Team.name,
            func.count(func.distinct(Service.id)),
            _implemented_count(),
            func.count(MeasurementEvaluation.id),
        )
        .select_from(CampaignParticipant)
        .join(Service, CampaignParticipant.service_id == Service.id)
        .join(Team, Service.team_id == Team.id)
        .outerjoin(MeasurementEvaluation, _participant_evaluations_join())
        .where(CampaignParticipant.campaign_id == campaign_id)
        .group_by(Team.id, Team.name)
    ).all()

    return _ordered(
        [
            {
                "team_id": team_id,
                "team_name": team_name,
                "services_count": int(services),
                "implemented_count": int(implemented),
                "total_count": int(total),
                "implementation_percentage": _percentage(implemented, total),
            }
            for team_id, team_name, services, implemented, total in rows
        ],
        "team_name",
    )


def summary_by_category(campaign_id: int) -> list[dict]:
    """Per measurement category across all evaluations of the campaign."""
    rows = db.session.execute(
        select(
            MeasurementCategory.id,
            MeasurementCategory.name,
            _implemented_count(),
            func.count(MeasurementEvaluation.id),
        )
        .select_from(MeasurementEvaluation)
        .join(Measurement, MeasurementEvaluation.measurement_id == Measurement.id)
        .join(MeasurementCategory, Measurement.category_id == MeasurementCategory.id)
        .where(MeasurementEvaluation.campaign_id == campaign_id)
        .group_by(MeasurementCategory.id, MeasurementCategory.name)
    ).all()

    return _ordered(
        [
            {
                "category_id": category_id,
                "category_name": category_name,
                "implemented_count": int(implemented),
                "total_count": int(total),
                "implementation_percentage": _percentage(implemented, total),
            }
            for category_id, category_name, implemented, total in rows
        ],
        "category_name",
    )


# ── Maturity levels ───────────────────────────────────────────────────────────


def classify_maturity_level(maturity_model_id: int, percentage: float | None) -> int | None:
    """Return the level whose [min, max] band contains percentage.

    None when percentage is None or falls between two bands.
    """
    if percentage is None:
        return None
    rules = db.session.execute(
        select(MaturityLevelRule)
        .where(MaturityLevelRule.maturity_model_id == maturity_model_id)
        .order_by(MaturityLevelRule.level)
    ).scalars().all()
    for rule in rules:
        if rule.contains(percentage):
            return rule.level
    return None


def campaign_summary(campaign_id: int, include_levels: bool = False) -> dict:
    """All three roll-ups for one campaign.

    With include_levels, each service row also carries maturity_level from
    the campaign model's level rules.

    Raises:
        NotFoundError: campaign does not exist.
    """
    campaign = db.session.get(Campaign, campaign_id)
    if campaign is None:
        raise NotFoundError("Campaign", campaign_id)

    services = summary_by_service(campaign_id)
    if include_levels:
        for row in services:
            row["maturity_level"] = classify_maturity_level(
                campaign.maturity_model_id, row["implementation_percentage"],
            )

    return {
        "campaign_id": campaign.id,
        "campaign_name": campaign.name,
        "service_summaries": services,
        "team_summaries": summary_by_team(campaign_id),
        "category_summaries": summary_by_category(campaign_id),
    }
