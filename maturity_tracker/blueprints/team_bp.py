"""
Team blueprint.

Endpoints:
    GET    /api/v1/teams         — list (with services_count)
    GET    /api/v1/teams/<id>    — detail (with services)
    POST   /api/v1/teams         — create            [team_owner]
    PUT    /api/v1/teams/<id>    — partial update    [team_owner]
    DELETE /api/v1/teams/<id>    — delete if empty   [admin]
"""

from flask import Blueprint, jsonify

from maturity_tracker.auth import login_required, require_role
from maturity_tracker.blueprints import json_body, register_error_handlers
from maturity_tracker.models.auth import ROLE_ADMIN, ROLE_TEAM_OWNER
from maturity_tracker.services import roster_service
from maturity_tracker.utils.helpers import changes_from

team_bp = Blueprint("teams", __name__, url_prefix="/api/v1/teams")
register_error_handlers(team_bp)


@team_bp.route("", methods=["GET"])
@login_required
def list_teams():
    return jsonify(roster_service.list_teams()), 200


@team_bp.route("/<int:team_id>", methods=["GET"])
@login_required
def get_team(team_id):
    return jsonify(roster_service.get_team(team_id)), 200


@team_bp.route("", methods=["POST"])
@require_role(ROLE_TEAM_OWNER)
def create_team():
    data = json_body()
    team = roster_service.create_team(
        data.get("name"), data.get("owner_id"), data.get("description"),
    )
    return jsonify(team), 201


@team_bp.route("/<int:team_id>", methods=["PUT"])
@require_role(ROLE_TEAM_OWNER)
def update_team(team_id):
    changes = changes_from(roster_service.TeamChanges, json_body())
    return jsonify(roster_service.update_team(team_id, changes)), 200


@team_bp.route("/<int:team_id>", methods=["DELETE"])
@require_role(ROLE_ADMIN)
def delete_team(team_id):
    roster_service.delete_team(team_id)
    return "", 204
