"""Campaign lifecycle service layer.

Campaign CRUD, the status lifecycle and participant enrollment with its
evaluation fan-out.

Rules:
  - A completed or cancelled campaign is frozen: its status, participants and
    evaluations never change again.
  - Enrolling a service creates one "Not Implemented" evaluation per model
    measurement in the same transaction as the participant row. Measurements
    added to the model later are not back-filled.
  - All validation happens before the transaction opens.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy import delete, func, select

from maturity_tracker.core.exceptions import (
    ConflictError,
    InvalidStateError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from maturity_tracker.models import db, utcnow
from maturity_tracker.models.auth import User
from maturity_tracker.models.campaign import (
    CAMPAIGN_DRAFT,
    CAMPAIGN_STATUSES,
    Campaign,
    CampaignParticipant,
)
from maturity_tracker.models.catalog import MaturityModel, Measurement
from maturity_tracker.models.evaluation import (
    STATUS_NOT_IMPLEMENTED,
    EvaluationHistory,
    MeasurementEvaluation,
)
from maturity_tracker.models.roster import Service, Team
from maturity_tracker.services.helpers.transaction import transaction
from maturity_tracker.services.helpers.validators import require_id
from maturity_tracker.utils.helpers import UNSET, is_set, parse_date_input

logger = logging.getLogger(__name__)


@dataclass
class CampaignChanges:
    """Partial update of a campaign; fields left UNSET are not touched."""

    name: Any = UNSET
    start_date: Any = UNSET
    end_date: Any = UNSET
    status: Any = UNSET


# ── Lookups ───────────────────────────────────────────────────────────────────


def _get_campaign(campaign_id: int) -> Campaign:
    campaign = db.session.get(Campaign, campaign_id)
    if campaign is None:
        raise NotFoundError("Campaign", campaign_id)
    return campaign


def _get_service(service_id: int) -> Service:
    service = db.session.get(Service, service_id)
    if service is None:
        raise NotFoundError("Service", service_id)
    return service


def _get_participant(campaign_id: int, service_id: int) -> CampaignParticipant | None:
    return db.session.execute(
        select(CampaignParticipant).where(
            CampaignParticipant.campaign_id == campaign_id,
            CampaignParticipant.service_id == service_id,
        )
    ).scalar_one_or_none()


def _parse_date(field: str, value):
    try:
        return parse_date_input(value)
    except ValueError as exc:
        raise ValidationError(str(exc), details={field: value}) from exc


def _check_status_value(status) -> None:
    if status not in CAMPAIGN_STATUSES:
        raise ValidationError(
            "Invalid status",
            details={"status": f"must be one of: {', '.join(CAMPAIGN_STATUSES)}"},
        )


def _new_evaluation(campaign_id: int, service_id: int, measurement_id: int) -> MeasurementEvaluation:
    """Build and stage one fan-out evaluation row."""
    evaluation = MeasurementEvaluation(
        campaign_id=campaign_id,
        service_id=service_id,
        measurement_id=measurement_id,
        status=STATUS_NOT_IMPLEMENTED,
    )
    db.session.add(evaluation)
    return evaluation


# ── Read ──────────────────────────────────────────────────────────────────────


def list_campaigns() -> list[dict]:
    """Return all campaigns, newest first, each with its participants_count."""
    counts = dict(
        db.session.execute(
            select(CampaignParticipant.campaign_id, func.count(CampaignParticipant.id))
            .group_by(CampaignParticipant.campaign_id)
        ).all()
    )
    campaigns = db.session.execute(
        select(Campaign).order_by(Campaign.created_at.desc(), Campaign.id.desc())
    ).scalars().all()

    result = []
    for campaign in campaigns:
        d = campaign.to_dict()
        d["participants_count"] = counts.get(campaign.id, 0)
        result.append(d)
    return result


def get_campaign(campaign_id: int) -> dict:
    """Return one campaign with its participants and evaluation status counts.

    Participants are ordered by team name, then service name.

    Raises:
        NotFoundError: If the campaign does not exist.
    """
    campaign = _get_campaign(campaign_id)

    participants = db.session.execute(
        select(CampaignParticipant)
        .join(Service, CampaignParticipant.service_id == Service.id)
        .join(Team, Service.team_id == Team.id)
        .where(CampaignParticipant.campaign_id == campaign_id)
        .order_by(Team.name, Service.name)
    ).scalars().all()

    status_counts = db.session.execute(
        select(MeasurementEvaluation.status, func.count(MeasurementEvaluation.id))
        .where(MeasurementEvaluation.campaign_id == campaign_id)
        .group_by(MeasurementEvaluation.status)
        .order_by(MeasurementEvaluation.status)
    ).all()

    d = campaign.to_dict()
    d["participants"] = [p.to_dict() for p in participants]
    d["evaluation_summary"] = [
        {"status": status, "count": count} for status, count in status_counts
    ]
    return d


# ── Create / update ───────────────────────────────────────────────────────────


def create_campaign(
    name: str,
    maturity_model_id: int,
    created_by: int,
    start_date=None,
    end_date=None,
) -> dict:
    """Create a campaign in draft status.

    Args:
        name:              Display name (required).
        maturity_model_id: Model whose measurements participants are evaluated on.
        created_by:        ID of the creating user.
        start_date:        Optional ISO date string or date.
        end_date:          Optional ISO date string or date.

    Returns:
        The new campaign with empty participants and evaluation_summary.

    Raises:
        ValidationError: name missing or a date is malformed.
        NotFoundError:   maturity model or creator does not exist.
    """
    name = (name or "").strip()
    if not name:
        raise ValidationError("name is required", details={"name": "required"})
    if maturity_model_id is None:
        raise ValidationError(
            "maturity_model_id is required", details={"maturity_model_id": "required"},
        )
    require_id("maturity_model_id", maturity_model_id)
    start = _parse_date("start_date", start_date)
    end = _parse_date("end_date", end_date)

    if db.session.get(MaturityModel, maturity_model_id) is None:
        raise NotFoundError("Maturity model", maturity_model_id)
    if db.session.get(User, created_by) is None:
        raise NotFoundError("User", created_by)

    with transaction() as session:
        campaign = Campaign(
            name=name,
            maturity_model_id=maturity_model_id,
            start_date=start,
            end_date=end,
            status=CAMPAIGN_DRAFT,
            created_by=created_by,
        )
        session.add(campaign)

    logger.info(
        "Campaign created",
        extra={"campaign_id": campaign.id, "maturity_model_id": maturity_model_id},
    )
    d = campaign.to_dict()
    d["participants"] = []
    d["evaluation_summary"] = []
    return d


def update_campaign_status(campaign_id: int, new_status: str) -> dict:
    """Change a campaign's status.

    Any enumerated status is accepted unless the campaign is completed or
    cancelled, in which case only a self-transition is allowed.

    Raises:
        NotFoundError:          campaign does not exist.
        ValidationError:        new_status is not a campaign status.
        InvalidTransitionError: campaign is terminal and new_status differs.
    """
    _get_campaign(campaign_id)
    _check_status_value(new_status)
    return update_campaign(campaign_id, CampaignChanges(status=new_status))


def update_campaign(campaign_id: int, changes: CampaignChanges) -> dict:
    """Apply a partial update (name, dates, status) to a campaign.

    A null status counts as not supplied.
    """
    campaign = _get_campaign(campaign_id)
    if changes.status is None:
        changes.status = UNSET

    if is_set(changes.status):
        _check_status_value(changes.status)
        if campaign.is_terminal and changes.status != campaign.status:
            raise InvalidTransitionError("Campaign", campaign.status, changes.status)
    if is_set(changes.name):
        name = (changes.name or "").strip()
        if not name:
            raise ValidationError("name cannot be empty", details={"name": "required"})
    start = _parse_date("start_date", changes.start_date) if is_set(changes.start_date) else UNSET
    end = _parse_date("end_date", changes.end_date) if is_set(changes.end_date) else UNSET

    previous_status = campaign.status
    with transaction():
        if is_set(changes.name):
            campaign.name = name
        if is_set(start):
            campaign.start_date = start
        if is_set(end):
            campaign.end_date = end
        if is_set(changes.status):
            campaign.status = changes.status
            campaign.updated_at = utcnow()

    if campaign.status != previous_status:
        logger.info(
            "Campaign status %s -> %s", previous_status, campaign.status,
            extra={"campaign_id": campaign_id},
        )
    return get_campaign(campaign_id)


def delete_campaign(campaign_id: int) -> None:
    """Delete a campaign with its history, evaluations and participants.

    Raises:
        NotFoundError: campaign does not exist.
    """
    campaign = _get_campaign(campaign_id)

    evaluation_ids = select(MeasurementEvaluation.id).where(
        MeasurementEvaluation.campaign_id == campaign_id
    )
    with transaction() as session:
        session.execute(
            delete(EvaluationHistory).where(
                EvaluationHistory.evaluation_id.in_(evaluation_ids)
            )
        )
        session.execute(
            delete(MeasurementEvaluation).where(
                MeasurementEvaluation.campaign_id == campaign_id
            )
        )
        session.execute(
            delete(CampaignParticipant).where(
                CampaignParticipant.campaign_id == campaign_id
            )
        )
        session.delete(campaign)

    logger.info("Campaign deleted", extra={"campaign_id": campaign_id})


# ── Participants ──────────────────────────────────────────────────────────────


def add_participant(campaign_id: int, service_id: int) -> dict:
    """Enroll a service and fan out its evaluations.

    Creates the participant and one "Not Implemented" evaluation per
    measurement of the campaign's model, all in one transaction.

    Raises:
        NotFoundError:     campaign or service does not exist.
        InvalidStateError: campaign is completed or cancelled.
        ConflictError:     service is already a participant.
        InternalError:     storage failed; nothing was written.
    """
    campaign = _get_campaign(campaign_id)
    if campaign.is_terminal:
        raise InvalidStateError(
            f"Cannot add participants to a {campaign.status} campaign",
            state=campaign.status,
        )
    require_id("service_id", service_id)
    _get_service(service_id)
    if _get_participant(campaign_id, service_id) is not None:
        raise ConflictError(
            "Participant", "service_id", service_id,
            message="Service is already a participant in this campaign",
        )

    measurement_ids = db.session.execute(
        select(Measurement.id)
        .where(Measurement.maturity_model_id == campaign.maturity_model_id)
        .order_by(Measurement.id)
    ).scalars().all()

    with transaction() as session:
        participant = CampaignParticipant(campaign_id=campaign_id, service_id=service_id)
        session.add(participant)
        session.flush()
        for measurement_id in measurement_ids:
            _new_evaluation(campaign_id, service_id, measurement_id)
            session.flush()

    logger.info(
        "Participant enrolled with %d evaluations", len(measurement_ids),
        extra={"campaign_id": campaign_id, "service_id": service_id},
    )
    return participant.to_dict()


def remove_participant(campaign_id: int, service_id: int) -> None:
    """Withdraw a service from a campaign.

    Deletes the pair's evaluations together with their history rows, then the
    participant, in one transaction.

    Raises:
        NotFoundError:     campaign does not exist or service is not enrolled.
        InvalidStateError: campaign is completed or cancelled.
    """
    campaign = _get_campaign(campaign_id)
    if campaign.is_terminal:
        raise InvalidStateError(
            f"Cannot remove participants from a {campaign.status} campaign",
            state=campaign.status,
        )
    participant = _get_participant(campaign_id, service_id)
    if participant is None:
        raise NotFoundError("Participant", service_id)

    evaluation_ids = select(MeasurementEvaluation.id).where(
        MeasurementEvaluation.campaign_id == campaign_id,
        MeasurementEvaluation.service_id == service_id,
    )
    with transaction() as session:
        session.execute(
            delete(EvaluationHistory).where(
                EvaluationHistory.evaluation_id.in_(evaluation_ids)
            )
        )
        session.execute(
            delete(MeasurementEvaluation).where(
                MeasurementEvaluation.campaign_id == campaign_id,
                MeasurementEvaluation.service_id == service_id,
            )
        )
        session.delete(participant)

    logger.info(
        "Participant removed",
        extra={"campaign_id": campaign_id, "service_id": service_id},
    )
