"""Roster service — teams and the services they own.

A team cannot be deleted while it owns services; a service cannot be deleted
while it participates in any campaign.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy import func, select

from maturity_tracker.core.exceptions import (
    ConflictError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from maturity_tracker.models import db, utcnow
from maturity_tracker.models.auth import User
from maturity_tracker.models.campaign import CampaignParticipant
from maturity_tracker.models.roster import SERVICE_TYPES, Service, Team
from maturity_tracker.services.helpers.transaction import transaction
from maturity_tracker.services.helpers.validators import require_id
from maturity_tracker.utils.helpers import UNSET, is_set

logger = logging.getLogger(__name__)


@dataclass
class TeamChanges:
    name: Any = UNSET
    owner_id: Any = UNSET
    description: Any = UNSET


@dataclass
class ServiceChanges:
    name: Any = UNSET
    owner_id: Any = UNSET
    team_id: Any = UNSET
    description: Any = UNSET
    service_type: Any = UNSET
    resource_location: Any = UNSET


def _require_owner(owner_id: int) -> None:
    require_id("owner_id", owner_id)
    if db.session.get(User, owner_id) is None:
        raise NotFoundError("Owner", owner_id)


def _get_team(team_id: int) -> Team:
    require_id("team_id", team_id)
    team = db.session.get(Team, team_id)
    if team is None:
        raise NotFoundError("Team", team_id)
    return team


def _get_service(service_id: int) -> Service:
    service = db.session.get(Service, service_id)
    if service is None:
        raise NotFoundError("Service", service_id)
    return service


def _check_service_type(service_type) -> None:
    if service_type not in SERVICE_TYPES:
        raise ValidationError(
            f"Invalid service type. Must be one of: {', '.join(SERVICE_TYPES)}",
            details={"service_type": service_type},
        )


def _team_name_taken(name: str, exclude_id: int | None = None) -> bool:
    stmt = select(Team.id).where(Team.name == name)
    if exclude_id is not None:
        stmt = stmt.where(Team.id != exclude_id)
    return db.session.execute(stmt).first() is not None


# ── Teams ─────────────────────────────────────────────────────────────────────


def list_teams() -> list[dict]:
    """All teams by name, each with services_count."""
    counts = dict(
        db.session.execute(
            select(Service.team_id, func.count(Service.id)).group_by(Service.team_id)
        ).all()
    )
    teams = db.session.execute(select(Team).order_by(Team.name)).scalars().all()
    result = []
    for team in teams:
        d = team.to_dict()
        d["services_count"] = counts.get(team.id, 0)
        result.append(d)
    return result


def get_team(team_id: int) -> dict:
    return _get_team(team_id).to_dict(include_services=True)


def create_team(name: str, owner_id: int, description: str | None = None) -> dict:
    """Create a team.

    Raises:
        ValidationError: name or owner_id missing.
        ConflictError:   team name exists.
        NotFoundError:   owner does not exist.
    """
    name = (name or "").strip()
    if not name or not owner_id:
        raise ValidationError("Name and owner_id are required")
    if _team_name_taken(name):
        raise ConflictError("Team", "name", name, message="Team with this name already exists")
    _require_owner(owner_id)

    with transaction() as session:
        team = Team(name=name, owner_id=owner_id, description=description or "")
        session.add(team)

    logger.info("Team created: %s", name, extra={"team_id": team.id})
    return team.to_dict(include_services=True)


def update_team(team_id: int, changes: TeamChanges) -> dict:
    team = _get_team(team_id)
    if is_set(changes.owner_id):
        _require_owner(changes.owner_id)
    if is_set(changes.name):
        name = (changes.name or "").strip()
        if not name:
            raise ValidationError("name cannot be empty", details={"name": "required"})
        if _team_name_taken(name, exclude_id=team_id):
            raise ConflictError("Team", "name", name, message="Team with this name already exists")
    if not any(is_set(v) for v in (changes.name, changes.owner_id, changes.description)):
        raise ValidationError("No valid fields to update")

    with transaction():
        if is_set(changes.name):
            team.name = name
        if is_set(changes.owner_id):
            team.owner_id = changes.owner_id
        if is_set(changes.description):
            team.description = changes.description or ""
        team.updated_at = utcnow()

    return team.to_dict(include_services=True)


def delete_team(team_id: int) -> None:
    """Delete a team that owns no services.

    Raises:
        NotFoundError:     team does not exist.
        InvalidStateError: the team still owns services.
    """
    team = _get_team(team_id)
    owns_services = db.session.execute(
        select(Service.id).where(Service.team_id == team_id)
    ).first()
    if owns_services is not None:
        raise InvalidStateError(
            "Cannot delete team with associated services. "
            "Please delete or reassign services first."
        )
    with transaction() as session:
        session.delete(team)
    logger.info("Team deleted", extra={"team_id": team_id})


# ── Services ──────────────────────────────────────────────────────────────────


def list_services(team_id: int | None = None) -> list[dict]:
    """All services by name, optionally only one team's."""
    stmt = select(Service).order_by(Service.name)
    if team_id is not None:
        stmt = stmt.where(Service.team_id == team_id)
    return [s.to_dict() for s in db.session.execute(stmt).scalars().all()]


def get_service(service_id: int) -> dict:
    return _get_service(service_id).to_dict()


def create_service(data: dict) -> dict:
    """Create a service.

    Args:
        data: name, owner_id, team_id, service_type (required);
              description, resource_location (optional).

    Raises:
        ValidationError: a required field is missing or service_type is invalid.
        NotFoundError:   owner or team does not exist.
    """
    name = (data.get("name") or "").strip()
    owner_id = data.get("owner_id")
    team_id = data.get("team_id")
    service_type = data.get("service_type")
    if not name or not owner_id or not team_id or not service_type:
        raise ValidationError("Name, owner_id, team_id, and service_type are required")
    _check_service_type(service_type)
    _require_owner(owner_id)
    _get_team(team_id)

    with transaction() as session:
        service = Service(
            name=name,
            owner_id=owner_id,
            team_id=team_id,
            description=data.get("description") or "",
            service_type=service_type,
            resource_location=data.get("resource_location") or "",
        )
        session.add(service)

    logger.info("Service created: %s", name, extra={"service_id": service.id})
    return service.to_dict()


def update_service(service_id: int, changes: ServiceChanges) -> dict:
    service = _get_service(service_id)
    if is_set(changes.service_type):
        _check_service_type(changes.service_type)
    if is_set(changes.owner_id):
        _require_owner(changes.owner_id)
    if is_set(changes.team_id):
        _get_team(changes.team_id)
    if is_set(changes.name) and not (changes.name or "").strip():
        raise ValidationError("name cannot be empty", details={"name": "required"})
    fields = (
        "name", "owner_id", "team_id", "description", "service_type", "resource_location",
    )
    supplied = [f for f in fields if is_set(getattr(changes, f))]
    if not supplied:
        raise ValidationError("No valid fields to update")

    with transaction():
        for field in supplied:
            value = getattr(changes, field)
            if field == "name":
                value = value.strip()
            elif field in ("description", "resource_location"):
                value = value or ""
            setattr(service, field, value)
        service.updated_at = utcnow()

    return service.to_dict()


def delete_service(service_id: int) -> None:
    """Delete a service that participates in no campaign.

    Raises:
        NotFoundError:     service does not exist.
        InvalidStateError: the service is a campaign participant.
    """
    service = _get_service(service_id)
    enrolled = db.session.execute(
        select(CampaignParticipant.id).where(CampaignParticipant.service_id == service_id)
    ).first()
    if enrolled is not None:
        raise InvalidStateError(
            "Cannot delete service that is part of a campaign. "
            "Please remove from campaigns first."
        )
    with transaction() as session:
        session.delete(service)
    logger.info("Service deleted", extra={"service_id": service_id})
