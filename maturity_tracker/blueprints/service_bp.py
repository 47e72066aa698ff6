"""
Service blueprint.

Endpoints:
    GET    /api/v1/services              — list (?team_id= filter)
    GET    /api/v1/services/<id>         — detail
    POST   /api/v1/services              — create                  [team_owner]
    PUT    /api/v1/services/<id>         — partial update          [team_owner]
    DELETE /api/v1/services/<id>         — delete if not enrolled  [admin]
"""

from flask import Blueprint, jsonify, request

from maturity_tracker.auth import login_required, require_role
from maturity_tracker.blueprints import json_body, register_error_handlers
from maturity_tracker.models.auth import ROLE_ADMIN, ROLE_TEAM_OWNER
from maturity_tracker.services import roster_service
from maturity_tracker.utils.helpers import changes_from

service_bp = Blueprint("services", __name__, url_prefix="/api/v1/services")
register_error_handlers(service_bp)


@service_bp.route("", methods=["GET"])
@login_required
def list_services():
    team_id = request.args.get("team_id", type=int)
    return jsonify(roster_service.list_services(team_id)), 200


@service_bp.route("/<int:service_id>", methods=["GET"])
@login_required
def get_service(service_id):
    return jsonify(roster_service.get_service(service_id)), 200


@service_bp.route("", methods=["POST"])
@require_role(ROLE_TEAM_OWNER)
def create_service():
    return jsonify(roster_service.create_service(json_body())), 201


@service_bp.route("/<int:service_id>", methods=["PUT"])
@require_role(ROLE_TEAM_OWNER)
def update_service(service_id):
    changes = changes_from(roster_service.ServiceChanges, json_body())
    return jsonify(roster_service.update_service(service_id, changes)), 200


@service_bp.route("/<int:service_id>", methods=["DELETE"])
@require_role(ROLE_ADMIN)
def delete_service(service_id):
    roster_service.delete_service(service_id)
    return "", 204
