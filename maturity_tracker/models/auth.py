"""
Maturity Tracker
Identity domain model.

Models:
    - User: an authenticated principal with one of three roles.

Roles:
    admin        — every operation, including evaluation status changes
    team_owner   — manage teams, services, campaigns and participants
    team_member  — read-only access
"""

from maturity_tracker.models import db, iso, utcnow

ROLE_ADMIN = "admin"
ROLE_TEAM_OWNER = "team_owner"
ROLE_TEAM_MEMBER = "team_member"

USER_ROLES = (ROLE_ADMIN, ROLE_TEAM_OWNER, ROLE_TEAM_MEMBER)


class User(db.Model):
    """Platform user. Never hard-deleted; password_hash is never serialised."""

    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(150), nullable=False, unique=True, index=True)
    password_hash = db.Column(db.String(256), nullable=False)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    role = db.Column(
        db.String(20), nullable=False, default=ROLE_TEAM_MEMBER,
        comment="admin | team_owner | team_member",
    )
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow,
    )

    def to_dict(self):
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "role": self.role,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }

    def __repr__(self):
        return f"<User {self.id}: {self.username} ({self.role})>"
