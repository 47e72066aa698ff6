"""Evaluation engine — status changes, stamping and the audit trail.

Rules:
  - Evaluations can change only while their campaign is active.
  - Every status change writes one EvaluationHistory row in the same
    transaction as the change itself (bulk updates write one per evaluation).
  - "Implemented" and "Evidence Rejected" stamp evaluated_by / evaluated_at;
    other statuses leave a previous stamp untouched.
  - Which target statuses are allowed is decided in one place,
    validate_status_transition().
"""

from __future__ import annotations

import logging

from sqlalchemy import select

from maturity_tracker.core.exceptions import (
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from maturity_tracker.models import db, utcnow
from maturity_tracker.models.campaign import CAMPAIGN_ACTIVE, Campaign, CampaignParticipant
from maturity_tracker.models.catalog import Measurement, MeasurementCategory
from maturity_tracker.models.evaluation import (
    BULK_UPDATE_NOTE,
    EVALUATION_STATUSES,
    STAMPING_STATUSES,
    EvaluationHistory,
    MeasurementEvaluation,
)
from maturity_tracker.models.roster import Service
from maturity_tracker.services.helpers.transaction import transaction
from maturity_tracker.services.helpers.validators import require_id
from maturity_tracker.utils.helpers import UNSET, is_set

logger = logging.getLogger(__name__)


def validate_status_transition(current: str | None, requested) -> None:
    """Reject a requested evaluation status.

    Any of the five evaluation statuses is accepted from any current status;
    a stricter transition graph belongs here.

    Raises:
        ValidationError: requested is not an evaluation status.
    """
    if not requested:
        raise ValidationError("Status is required", details={"status": "required"})
    if requested not in EVALUATION_STATUSES:
        raise ValidationError(
            "Invalid status",
            details={"status": f"must be one of: {', '.join(EVALUATION_STATUSES)}"},
        )


def _require_active_campaign(campaign_id: int) -> Campaign:
    campaign = db.session.get(Campaign, campaign_id)
    if campaign is None:
        raise NotFoundError("Campaign", campaign_id)
    if campaign.status != CAMPAIGN_ACTIVE:
        raise InvalidStateError(
            "Evaluations can only be updated in active campaigns",
            state=campaign.status,
        )
    return campaign


def _apply_status(
    evaluation: MeasurementEvaluation,
    status: str,
    actor_id: int,
    note: str | None,
    now,
) -> None:
    """Record history for one evaluation, then change its status and stamp."""
    db.session.add(
        EvaluationHistory(
            evaluation_id=evaluation.id,
            previous_status=evaluation.status,
            new_status=status,
            changed_by=actor_id,
            notes=note,
        )
    )
    evaluation.status = status
    if status in STAMPING_STATUSES:
        evaluation.evaluated_by = actor_id
        evaluation.evaluated_at = now
    evaluation.updated_at = now


# ── Single update ─────────────────────────────────────────────────────────────


def update_evaluation(
    evaluation_id: int,
    status: str,
    actor_id: int,
    evidence_location=UNSET,
    notes=UNSET,
) -> dict:
    """Change one evaluation's status.

    evidence_location / notes are written only when supplied; an empty string
    clears the stored value. The history row carries the supplied notes.

    Returns:
        The refreshed evaluation with measurement, category and evaluator data.

    Raises:
        NotFoundError:     evaluation or its campaign does not exist.
        ValidationError:   status is not an evaluation status.
        InvalidStateError: the campaign is not active.
    """
    evaluation = db.session.get(MeasurementEvaluation, evaluation_id)
    if evaluation is None:
        raise NotFoundError("Evaluation", evaluation_id)
    validate_status_transition(evaluation.status, status)
    _require_active_campaign(evaluation.campaign_id)

    previous = evaluation.status
    history_note = notes or None
    with transaction():
        _apply_status(evaluation, status, actor_id, history_note, utcnow())
        if is_set(evidence_location):
            evaluation.evidence_location = evidence_location or None
        if is_set(notes):
            evaluation.notes = notes or None

    logger.info(
        "Evaluation %s -> %s", previous, status,
        extra={
            "evaluation_id": evaluation_id,
            "campaign_id": evaluation.campaign_id,
            "service_id": evaluation.service_id,
        },
    )
    return evaluation.to_dict()


def get_history(evaluation_id: int) -> list[dict]:
    """Return the evaluation's audit trail, newest first.

    Raises:
        NotFoundError: evaluation does not exist.
    """
    if db.session.get(MeasurementEvaluation, evaluation_id) is None:
        raise NotFoundError("Evaluation", evaluation_id)

    rows = db.session.execute(
        select(EvaluationHistory)
        .where(EvaluationHistory.evaluation_id == evaluation_id)
        .order_by(EvaluationHistory.created_at.desc(), EvaluationHistory.id.desc())
    ).scalars().all()
    return [r.to_dict() for r in rows]


# ── Bulk update ───────────────────────────────────────────────────────────────


def bulk_update(
    campaign_id: int,
    service_id: int,
    status: str,
    actor_id: int,
    category_id: int | None = None,
) -> int:
    """Set every evaluation of one participant (optionally one category) to status.

    Each evaluation gets its own history row noted "Bulk update"; the batch
    is one transaction.

    Returns:
        Number of evaluations updated.

    Raises:
        NotFoundError:     campaign absent, service not enrolled, or nothing
                           matches the filter.
        ValidationError:   status is not an evaluation status.
        InvalidStateError: the campaign is not active.
    """
    if db.session.get(Campaign, campaign_id) is None:
        raise NotFoundError("Campaign", campaign_id)
    validate_status_transition(None, status)
    if category_id is not None:
        require_id("category_id", category_id)
    _require_active_campaign(campaign_id)

    participant = db.session.execute(
        select(CampaignParticipant.id).where(
            CampaignParticipant.campaign_id == campaign_id,
            CampaignParticipant.service_id == service_id,
        )
    ).scalar_one_or_none()
    if participant is None:
        raise NotFoundError(
            "Participant", service_id, message="Service is not a participant in this campaign",
        )

    stmt = select(MeasurementEvaluation).where(
        MeasurementEvaluation.campaign_id == campaign_id,
        MeasurementEvaluation.service_id == service_id,
    )
    if category_id is not None:
        stmt = stmt.join(
            Measurement, MeasurementEvaluation.measurement_id == Measurement.id
        ).where(Measurement.category_id == category_id)
    evaluations = db.session.execute(stmt.order_by(MeasurementEvaluation.id)).scalars().all()
    if not evaluations:
        raise NotFoundError("Evaluation", message="No evaluations found")

    now = utcnow()
    with transaction():
        for evaluation in evaluations:
            _apply_status(evaluation, status, actor_id, BULK_UPDATE_NOTE, now)

    logger.info(
        "Bulk update to %s on %d evaluations", status, len(evaluations),
        extra={"campaign_id": campaign_id, "service_id": service_id},
    )
    return len(evaluations)


# ── Listing ───────────────────────────────────────────────────────────────────


def list_evaluations(campaign_id: int, service_id: int) -> dict:
    """Return one participant's evaluations, ordered by category then measurement.

    Raises:
        NotFoundError: campaign or service absent, or service not enrolled.
    """
    campaign = db.session.get(Campaign, campaign_id)
    if campaign is None:
        raise NotFoundError("Campaign", campaign_id)
    service = db.session.get(Service, service_id)
    if service is None:
        raise NotFoundError("Service", service_id)
    enrolled = db.session.execute(
        select(CampaignParticipant.id).where(
            CampaignParticipant.campaign_id == campaign_id,
            CampaignParticipant.service_id == service_id,
        )
    ).scalar_one_or_none()
    if enrolled is None:
        raise NotFoundError(
            "Participant", service_id, message="Service is not a participant in this campaign",
        )

    evaluations = db.session.execute(
        select(MeasurementEvaluation)
        .join(Measurement, MeasurementEvaluation.measurement_id == Measurement.id)
        .join(MeasurementCategory, Measurement.category_id == MeasurementCategory.id)
        .where(
            MeasurementEvaluation.campaign_id == campaign_id,
            MeasurementEvaluation.service_id == service_id,
        )
        .order_by(MeasurementCategory.name, Measurement.name)
    ).scalars().all()

    return {
        "campaign": {"id": campaign.id, "name": campaign.name},
        "service": {"id": service.id, "name": service.name},
        "evaluations": [e.to_dict() for e in evaluations],
    }
