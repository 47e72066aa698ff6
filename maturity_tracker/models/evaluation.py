"""
Maturity Tracker
Evaluation domain models.

Models:
    - MeasurementEvaluation: status of one (campaign, service, measurement)
    - EvaluationHistory:     immutable, append-only audit of status changes

Rows in measurement_evaluations are created only by participant enrollment
fan-out; there is no direct create path.
"""

from maturity_tracker.models import db, iso, utcnow

STATUS_NOT_IMPLEMENTED = "Not Implemented"
STATUS_EVIDENCE_SUBMITTED = "Evidence Submitted"
STATUS_VALIDATING_EVIDENCE = "Validating Evidence"
STATUS_EVIDENCE_REJECTED = "Evidence Rejected"
STATUS_IMPLEMENTED = "Implemented"

EVALUATION_STATUSES = (
    STATUS_NOT_IMPLEMENTED,
    STATUS_EVIDENCE_SUBMITTED,
    STATUS_VALIDATING_EVIDENCE,
    STATUS_EVIDENCE_REJECTED,
    STATUS_IMPLEMENTED,
)

# Statuses that record who evaluated and when.
STAMPING_STATUSES = frozenset({STATUS_IMPLEMENTED, STATUS_EVIDENCE_REJECTED})

BULK_UPDATE_NOTE = "Bulk update"


class MeasurementEvaluation(db.Model):
    """Evaluation status of one measurement for one enrolled service."""

    __tablename__ = "measurement_evaluations"
    __table_args__ = (
        db.UniqueConstraint(
            "campaign_id", "service_id", "measurement_id",
            name="uq_evaluation_campaign_service_measurement",
        ),
        db.Index("idx_evaluation_campaign_service", "campaign_id", "service_id"),
    )

    id = db.Column(db.Integer, primary_key=True)
    campaign_id = db.Column(db.Integer, db.ForeignKey("campaigns.id"), nullable=False)
    service_id = db.Column(db.Integer, db.ForeignKey("services.id"), nullable=False)
    measurement_id = db.Column(
        db.Integer, db.ForeignKey("measurements.id"), nullable=False, index=True,
    )
    status = db.Column(
        db.String(30), nullable=False, default=STATUS_NOT_IMPLEMENTED, index=True,
    )
    evidence_location = db.Column(db.Text, nullable=True)
    notes = db.Column(db.Text, nullable=True)
    evaluated_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    evaluated_at = db.Column(db.DateTime(timezone=True), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow,
    )

    measurement = db.relationship("Measurement", lazy="joined")
    evaluator = db.relationship("User", lazy="joined")

    def to_dict(self):
        measurement = self.measurement
        category = measurement.category if measurement else None
        return {
            "id": self.id,
            "campaign_id": self.campaign_id,
            "service_id": self.service_id,
            "status": self.status,
            "evidence_location": self.evidence_location,
            "notes": self.notes,
            "evaluated_by": self.evaluated_by,
            "evaluated_at": iso(self.evaluated_at),
            "evaluator_username": self.evaluator.username if self.evaluator else None,
            "measurement_id": self.measurement_id,
            "measurement_name": measurement.name if measurement else None,
            "measurement_description": measurement.description if measurement else None,
            "evidence_type": measurement.evidence_type if measurement else None,
            "sample_evidence": measurement.sample_evidence if measurement else None,
            "category_id": category.id if category else None,
            "category_name": category.name if category else None,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }

    def __repr__(self):
        return (
            f"<MeasurementEvaluation {self.id}: c={self.campaign_id} "
            f"s={self.service_id} m={self.measurement_id} [{self.status}]>"
        )


class EvaluationHistory(db.Model):
    """
    Immutable audit row for one evaluation status change.

    Never updated; removed only together with its evaluation.
    """

    __tablename__ = "evaluation_history"

    id = db.Column(db.Integer, primary_key=True)
    evaluation_id = db.Column(
        db.Integer, db.ForeignKey("measurement_evaluations.id"), nullable=False, index=True,
    )
    previous_status = db.Column(db.String(30), nullable=False)
    new_status = db.Column(db.String(30), nullable=False)
    changed_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    actor = db.relationship("User", lazy="joined")

    def to_dict(self):
        return {
            "id": self.id,
            "evaluation_id": self.evaluation_id,
            "previous_status": self.previous_status,
            "new_status": self.new_status,
            "notes": self.notes,
            "created_at": iso(self.created_at),
            "changed_by_id": self.changed_by,
            "changed_by_username": self.actor.username if self.actor else None,
        }
