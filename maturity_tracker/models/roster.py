"""
Maturity Tracker
Roster domain models — teams and the services they own.

Models:
    - Team:    named group with an owner; owns zero or more services
    - Service: an API, UI application, workflow or module that can be
               enrolled in campaigns
"""

from maturity_tracker.models import db, iso, utcnow

SERVICE_TYPES = (
    "API Service",
    "UI Application",
    "Workflow",
    "Application Module",
)


class Team(db.Model):
    """A team. Deletable only while it owns no services."""

    __tablename__ = "teams"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False, unique=True)
    owner_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    description = db.Column(db.Text, default="")
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow,
    )

    owner = db.relationship("User", lazy="joined")
    services = db.relationship(
        "Service", back_populates="team", order_by="Service.name", lazy="select",
    )

    def to_dict(self, include_services=False):
        d = {
            "id": self.id,
            "name": self.name,
            "description": self.description or "",
            "owner_id": self.owner_id,
            "owner_username": self.owner.username if self.owner else None,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }
        if include_services:
            d["services"] = [
                {"id": s.id, "name": s.name, "service_type": s.service_type}
                for s in self.services
            ]
        return d

    def __repr__(self):
        return f"<Team {self.id}: {self.name}>"


class Service(db.Model):
    """A service owned by a team. Deletable only while enrolled in no campaign."""

    __tablename__ = "services"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    owner_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    team_id = db.Column(db.Integer, db.ForeignKey("teams.id"), nullable=False, index=True)
    description = db.Column(db.Text, default="")
    service_type = db.Column(
        db.String(30), nullable=False,
        comment="API Service | UI Application | Workflow | Application Module",
    )
    resource_location = db.Column(db.String(500), default="")
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow,
    )

    owner = db.relationship("User", lazy="joined")
    team = db.relationship("Team", back_populates="services", lazy="joined")

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description or "",
            "service_type": self.service_type,
            "resource_location": self.resource_location or "",
            "owner_id": self.owner_id,
            "owner_username": self.owner.username if self.owner else None,
            "team_id": self.team_id,
            "team_name": self.team.name if self.team else None,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }

    def __repr__(self):
        return f"<Service {self.id}: {self.name}>"
