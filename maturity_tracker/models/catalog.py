"""
Maturity Tracker
Model catalog — maturity models, measurement categories, measurements and
per-model maturity level rules.

Models:
    - MaturityModel:        a named rubric of measurements
    - MeasurementCategory:  small fixed taxonomy (seeded)
    - Measurement:          one checkable criterion with a typed evidence kind
    - MaturityLevelRule:    percentage band → maturity level (0-4)
"""

from maturity_tracker.models import db, iso, utcnow

EVIDENCE_TYPES = ("URL", "Document", "Image", "Text")

MATURITY_LEVELS = (0, 1, 2, 3, 4)

# Bands applied to every newly created model.
DEFAULT_LEVEL_RULES = (
    {"level": 0, "min_percentage": 0.0, "max_percentage": 24.99},
    {"level": 1, "min_percentage": 25.0, "max_percentage": 49.99},
    {"level": 2, "min_percentage": 50.0, "max_percentage": 74.99},
    {"level": 3, "min_percentage": 75.0, "max_percentage": 99.99},
    {"level": 4, "min_percentage": 100.0, "max_percentage": 100.0},
)


class MaturityModel(db.Model):
    """A maturity model. Deletable only while no campaign references it."""

    __tablename__ = "maturity_models"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False, unique=True)
    owner_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    description = db.Column(db.Text, default="")
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow,
    )

    owner = db.relationship("User", lazy="joined")
    measurements = db.relationship(
        "Measurement", back_populates="maturity_model", lazy="select",
    )
    rules = db.relationship(
        "MaturityLevelRule", back_populates="maturity_model",
        order_by="MaturityLevelRule.level", lazy="select",
    )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description or "",
            "owner_id": self.owner_id,
            "owner_username": self.owner.username if self.owner else None,
            "created_at": iso(self.created_at),
            "updated_at": iso(self.updated_at),
        }

    def __repr__(self):
        return f"<MaturityModel {self.id}: {self.name}>"


class MeasurementCategory(db.Model):
    __tablename__ = "measurement_categories"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False, unique=True)
    description = db.Column(db.Text, default="")
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow,
    )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description or "",
        }

    def __repr__(self):
        return f"<MeasurementCategory {self.id}: {self.name}>"


class Measurement(db.Model):
    """A single criterion within a maturity model."""

    __tablename__ = "measurements"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(300), nullable=False)
    maturity_model_id = db.Column(
        db.Integer, db.ForeignKey("maturity_models.id"), nullable=False, index=True,
    )
    category_id = db.Column(
        db.Integer, db.ForeignKey("measurement_categories.id"), nullable=False, index=True,
    )
    description = db.Column(db.Text, default="")
    evidence_type = db.Column(
        db.String(20), nullable=False, comment="URL | Document | Image | Text",
    )
    sample_evidence = db.Column(db.Text, default="")
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow,
    )

    maturity_model = db.relationship("MaturityModel", back_populates="measurements")
    category = db.relationship("MeasurementCategory", lazy="joined")

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description or "",
            "evidence_type": self.evidence_type,
            "sample_evidence": self.sample_evidence or "",
            "category_id": self.category_id,
            "category_name": self.category.name if self.category else None,
        }

    def __repr__(self):
        return f"<Measurement {self.id}: {self.name}>"


class MaturityLevelRule(db.Model):
    """Percentage band for one maturity level of one model."""

    __tablename__ = "maturity_level_rules"

    id = db.Column(db.Integer, primary_key=True)
    maturity_model_id = db.Column(
        db.Integer, db.ForeignKey("maturity_models.id"), nullable=False, index=True,
    )
    level = db.Column(db.Integer, nullable=False)
    min_percentage = db.Column(db.Float, nullable=False)
    max_percentage = db.Column(db.Float, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(
        db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow,
    )

    maturity_model = db.relationship("MaturityModel", back_populates="rules")

    def contains(self, percentage):
        return self.min_percentage <= percentage <= self.max_percentage

    def to_dict(self):
        return {
            "id": self.id,
            "level": self.level,
            "min_percentage": self.min_percentage,
            "max_percentage": self.max_percentage,
        }
