"""
Maturity Tracker
Campaign domain models.

Models:
    - Campaign:             a time-boxed run of one maturity model
    - CampaignParticipant:  a service enrolled in a campaign

Status lifecycle:
    draft → active | completed | cancelled
    active → draft | completed | cancelled
    completed, cancelled → (frozen; only a self-transition is accepted)
"""

from maturity_tracker.models import db, iso, utcnow

CAMPAIGN_DRAFT = "draft"
CAMPAIGN_ACTIVE = "active"
CAMPAIGN_COMPLETED = "completed"
CAMPAIGN_CANCELLED = "cancelled"

CAMPAIGN_STATUSES = (
    CAMPAIGN_DRAFT,
    CAMPAIGN_ACTIVE,
    CAMPAIGN_COMPLETED,
    CAMPAIGN_CANCELLED,
)

TERMINAL_CAMPAIGN_STATUSES = frozenset({CAMPAIGN_COMPLETED, CAMPAIGN_CANCELLED})


class Campaign(db.Model):
    """An assessment campaign of one maturity model."""

    __tablename__ = "campaigns"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    maturity_model_id = db.Column(
        db.Integer, db.ForeignKey("maturity_models.id"), nullable=False, index=True,
    )
    start_date = db.Column(db.Date, nullable=True)
    end_date = db.Column(db.Date, nullable=True)
    status = db.Column(
        db.String(20), nullable=False, default=CAMPAIGN_DRAFT, index=True,
        comment="draft | active | completed | cancelled",
    )
    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow,
    )

    creator = db.relationship("User", lazy="joined")
    maturity_model = db.relationship("MaturityModel", lazy="joined")

    @property
    def is_terminal(self):
        return self.status in TERMINAL_CAMPAIGN_STATUSES

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "start_date": iso(self.start_date),
            "end_date": iso(self.end_date),
            "status": self.status,
            "created_by_id": self.created_by,
            "created_by_username": self.creator.username if self.creator else None,
            "maturity_model_id": self.maturity_model_id,
            "maturity_model_name": self.maturity_model.name if self.maturity_model else None,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }

    def __repr__(self):
        return f"<Campaign {self.id}: {self.name} [{self.status}]>"


class CampaignParticipant(db.Model):
    """Enrollment of one service in one campaign."""

    __tablename__ = "campaign_participants"
    __table_args__ = (
        db.UniqueConstraint("campaign_id", "service_id", name="uq_participant_campaign_service"),
    )

    id = db.Column(db.Integer, primary_key=True)
    campaign_id = db.Column(
        db.Integer, db.ForeignKey("campaigns.id"), nullable=False, index=True,
    )
    service_id = db.Column(
        db.Integer, db.ForeignKey("services.id"), nullable=False, index=True,
    )
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow,
    )

    service = db.relationship("Service", lazy="joined")

    def to_dict(self):
        service = self.service
        return {
            "id": self.id,
            "service_id": self.service_id,
            "service_name": service.name if service else None,
            "service_type": service.service_type if service else None,
            "team_id": service.team_id if service else None,
            "team_name": service.team.name if service and service.team else None,
        }
