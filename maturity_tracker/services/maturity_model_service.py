"""Model catalog service — maturity models, measurements, level rules, categories.

New models get the default level bands (0-4). A model referenced by any
campaign cannot be deleted; otherwise its rules and measurements go with it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy import delete, func, select

from maturity_tracker.core.exceptions import (
    ConflictError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from maturity_tracker.models import db, utcnow
from maturity_tracker.models.auth import User
from maturity_tracker.models.campaign import Campaign
from maturity_tracker.models.catalog import (
    DEFAULT_LEVEL_RULES,
    EVIDENCE_TYPES,
    MATURITY_LEVELS,
    MaturityLevelRule,
    MaturityModel,
    Measurement,
    MeasurementCategory,
)
from maturity_tracker.services.helpers.transaction import transaction
from maturity_tracker.services.helpers.validators import require_id
from maturity_tracker.utils.helpers import UNSET, is_set

logger = logging.getLogger(__name__)


@dataclass
class ModelChanges:
    """Partial update of a maturity model."""

    name: Any = UNSET
    owner_id: Any = UNSET
    description: Any = UNSET


def _get_model(model_id: int) -> MaturityModel:
    model = db.session.get(MaturityModel, model_id)
    if model is None:
        raise NotFoundError("Maturity model", model_id)
    return model


def _require_user(user_id: int) -> None:
    require_id("owner_id", user_id)
    if db.session.get(User, user_id) is None:
        raise NotFoundError("Owner", user_id)


def _name_taken(name: str, exclude_id: int | None = None) -> bool:
    stmt = select(MaturityModel.id).where(MaturityModel.name == name)
    if exclude_id is not None:
        stmt = stmt.where(MaturityModel.id != exclude_id)
    return db.session.execute(stmt).first() is not None


def _detail(model: MaturityModel) -> dict:
    measurements = db.session.execute(
        select(Measurement)
        .join(MeasurementCategory, Measurement.category_id == MeasurementCategory.id)
        .where(Measurement.maturity_model_id == model.id)
        .order_by(MeasurementCategory.name, Measurement.name)
    ).scalars().all()
    d = model.to_dict()
    d["measurements"] = [m.to_dict() for m in measurements]
    d["rules"] = [r.to_dict() for r in model.rules]
    return d


# ── Maturity models ───────────────────────────────────────────────────────────


def list_models() -> list[dict]:
    """All models by name, each with its measurements_count."""
    counts = dict(
        db.session.execute(
            select(Measurement.maturity_model_id, func.count(Measurement.id))
            .group_by(Measurement.maturity_model_id)
        ).all()
    )
    models = db.session.execute(
        select(MaturityModel).order_by(MaturityModel.name)
    ).scalars().all()
    result = []
    for model in models:
        d = model.to_dict()
        d["measurements_count"] = counts.get(model.id, 0)
        result.append(d)
    return result


def get_model(model_id: int) -> dict:
    """One model with its measurements (by category, name) and level rules."""
    return _detail(_get_model(model_id))


def create_model(name: str, owner_id: int, description: str | None = None) -> dict:
    """Create a model together with the default level rules.

    Raises:
        ValidationError: name or owner_id missing.
        ConflictError:   a model with this name exists.
        NotFoundError:   owner does not exist.
    """
    name = (name or "").strip()
    if not name or not owner_id:
        raise ValidationError("Name and owner_id are required")
    if _name_taken(name):
        raise ConflictError(
            "Maturity model", "name", name,
            message="Maturity model with this name already exists",
        )
    _require_user(owner_id)

    with transaction() as session:
        model = MaturityModel(name=name, owner_id=owner_id, description=description or "")
        session.add(model)
        session.flush()
        for rule in DEFAULT_LEVEL_RULES:
            session.add(MaturityLevelRule(maturity_model_id=model.id, **rule))

    logger.info("Maturity model created: %s", name, extra={"maturity_model_id": model.id})
    return _detail(model)


def update_model(model_id: int, changes: ModelChanges) -> dict:
    """Apply a partial update (name, owner, description).

    Raises:
        NotFoundError:   model or new owner does not exist.
        ConflictError:   new name belongs to another model.
        ValidationError: nothing to update.
    """
    model = _get_model(model_id)
    if not any(is_set(v) for v in (changes.name, changes.owner_id, changes.description)):
        raise ValidationError("No valid fields to update")
    if is_set(changes.owner_id):
        _require_user(changes.owner_id)
    if is_set(changes.name):
        name = (changes.name or "").strip()
        if not name:
            raise ValidationError("name cannot be empty", details={"name": "required"})
        if _name_taken(name, exclude_id=model_id):
            raise ConflictError(
                "Maturity model", "name", name,
                message="Maturity model with this name already exists",
            )

    with transaction():
        if is_set(changes.name):
            model.name = name
        if is_set(changes.owner_id):
            model.owner_id = changes.owner_id
        if is_set(changes.description):
            model.description = changes.description or ""
        model.updated_at = utcnow()

    return model.to_dict()


def delete_model(model_id: int) -> None:
    """Delete a model with its rules and measurements.

    Raises:
        NotFoundError:     model does not exist.
        InvalidStateError: a campaign uses the model.
    """
    model = _get_model(model_id)
    in_use = db.session.execute(
        select(Campaign.id).where(Campaign.maturity_model_id == model_id)
    ).first()
    if in_use is not None:
        raise InvalidStateError(
            "Cannot delete maturity model that is used in campaigns. "
            "Please delete campaigns first."
        )

    with transaction() as session:
        session.execute(
            delete(MaturityLevelRule).where(MaturityLevelRule.maturity_model_id == model_id)
        )
        session.execute(
            delete(Measurement).where(Measurement.maturity_model_id == model_id)
        )
        session.delete(model)

    logger.info("Maturity model deleted", extra={"maturity_model_id": model_id})


# ── Measurements ──────────────────────────────────────────────────────────────


def add_measurement(model_id: int, data: dict) -> dict:
    """Add a measurement to a model.

    Existing campaign participants are not back-filled with an evaluation for
    the new measurement.

    Raises:
        ValidationError: name, category_id or evidence_type missing or invalid.
        NotFoundError:   model or category does not exist.
    """
    name = (data.get("name") or "").strip()
    category_id = data.get("category_id")
    evidence_type = data.get("evidence_type")
    if not name or not category_id or not evidence_type:
        raise ValidationError("Name, category_id, and evidence_type are required")
    if evidence_type not in EVIDENCE_TYPES:
        raise ValidationError(
            "Invalid evidence_type",
            details={"evidence_type": f"must be one of: {', '.join(EVIDENCE_TYPES)}"},
        )
    _get_model(model_id)
    require_id("category_id", category_id)
    if db.session.get(MeasurementCategory, category_id) is None:
        raise NotFoundError("Measurement category", category_id)

    with transaction() as session:
        measurement = Measurement(
            name=name,
            maturity_model_id=model_id,
            category_id=category_id,
            description=data.get("description") or "",
            evidence_type=evidence_type,
            sample_evidence=data.get("sample_evidence") or "",
        )
        session.add(measurement)

    logger.info(
        "Measurement added: %s", name,
        extra={"maturity_model_id": model_id, "measurement_id": measurement.id},
    )
    return measurement.to_dict()


# ── Level rules ───────────────────────────────────────────────────────────────


def _validate_rule(rule) -> None:
    if not isinstance(rule, dict) or any(
        rule.get(k) is None for k in ("level", "min_percentage", "max_percentage")
    ):
        raise ValidationError("Each rule must have level, min_percentage, and max_percentage")
    level = rule["level"]
    if isinstance(level, bool) or not isinstance(level, int) or level not in MATURITY_LEVELS:
        raise ValidationError(
            "Invalid level", details={"level": "must be between 0 and 4"},
        )
    try:
        low = float(rule["min_percentage"])
        high = float(rule["max_percentage"])
    except (TypeError, ValueError) as exc:
        raise ValidationError("Invalid percentage range") from exc
    if low < 0 or high > 100 or low > high:
        raise ValidationError("Invalid percentage range")


def replace_rules(model_id: int, rules) -> list[dict]:
    """Replace all level rules of a model.

    Raises:
        ValidationError: rules empty, incomplete, a level repeated or not an integer 0-4,
                         or a range outside 0 ≤ min ≤ max ≤ 100.
        NotFoundError:   model does not exist.
    """
    if not isinstance(rules, list) or not rules:
        raise ValidationError("Rules array is required")
    model = _get_model(model_id)
    for rule in rules:
        _validate_rule(rule)
    levels = [rule["level"] for rule in rules]
    if len(set(levels)) != len(levels):
        raise ValidationError(
            "Duplicate level", details={"level": "each level may appear only once"},
        )

    with transaction() as session:
        session.execute(
            delete(MaturityLevelRule).where(MaturityLevelRule.maturity_model_id == model_id)
        )
        for rule in rules:
            session.add(
                MaturityLevelRule(
                    maturity_model_id=model_id,
                    level=rule["level"],
                    min_percentage=float(rule["min_percentage"]),
                    max_percentage=float(rule["max_percentage"]),
                )
            )

    db.session.expire(model, ["rules"])
    logger.info("Level rules replaced (%d)", len(rules), extra={"maturity_model_id": model_id})
    return [r.to_dict() for r in model.rules]


# ── Categories ────────────────────────────────────────────────────────────────


def list_categories() -> list[dict]:
    rows = db.session.execute(
        select(MeasurementCategory).order_by(MeasurementCategory.name)
    ).scalars().all()
    return [c.to_dict() for c in rows]
