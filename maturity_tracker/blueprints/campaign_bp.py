"""
Campaign blueprint — campaign lifecycle, participants and roll-up summaries.

Endpoints:
    GET    /api/v1/campaigns                                  — list (newest first)
    GET    /api/v1/campaigns/<id>                             — detail with participants
    GET    /api/v1/campaigns/<id>/summary                     — service/team/category roll-ups
    POST   /api/v1/campaigns                                  — create in draft    [team_owner]
    PUT    /api/v1/campaigns/<id>                             — name/dates/status  [team_owner]
    DELETE /api/v1/campaigns/<id>                             — delete             [admin]
    POST   /api/v1/campaigns/<id>/participants                — enroll a service   [team_owner]
    DELETE /api/v1/campaigns/<id>/participants/<service_id>   — withdraw           [team_owner]
"""

from flask import Blueprint, jsonify, request

from maturity_tracker.auth import login_required, require_role
from maturity_tracker.blueprints import current_user_id, json_body, register_error_handlers
from maturity_tracker.core.exceptions import ValidationError
from maturity_tracker.models.auth import ROLE_ADMIN, ROLE_TEAM_OWNER
from maturity_tracker.services import campaign_service, reporting_service
from maturity_tracker.utils.helpers import changes_from

campaign_bp = Blueprint("campaigns", __name__, url_prefix="/api/v1/campaigns")
register_error_handlers(campaign_bp)


@campaign_bp.route("", methods=["GET"])
@login_required
def list_campaigns():
    return jsonify(campaign_service.list_campaigns()), 200


@campaign_bp.route("/<int:campaign_id>", methods=["GET"])
@login_required
def get_campaign(campaign_id):
    return jsonify(campaign_service.get_campaign(campaign_id)), 200


@campaign_bp.route("/<int:campaign_id>/summary", methods=["GET"])
@login_required
def campaign_summary(campaign_id):
    """Roll-ups for one campaign.

    Query params: include_levels=true adds maturity_level to service rows.
    """
    include_levels = request.args.get("include_levels", "").lower() in ("1", "true", "yes")
    return jsonify(reporting_service.campaign_summary(campaign_id, include_levels)), 200


@campaign_bp.route("", methods=["POST"])
@require_role(ROLE_TEAM_OWNER)
def create_campaign():
    data = json_body()
    campaign = campaign_service.create_campaign(
        data.get("name"),
        data.get("maturity_model_id"),
        current_user_id(),
        start_date=data.get("start_date"),
        end_date=data.get("end_date"),
    )
    return jsonify(campaign), 201


@campaign_bp.route("/<int:campaign_id>", methods=["PUT"])
@require_role(ROLE_TEAM_OWNER)
def update_campaign(campaign_id):
    changes = changes_from(campaign_service.CampaignChanges, json_body())
    return jsonify(campaign_service.update_campaign(campaign_id, changes)), 200


@campaign_bp.route("/<int:campaign_id>", methods=["DELETE"])
@require_role(ROLE_ADMIN)
def delete_campaign(campaign_id):
    campaign_service.delete_campaign(campaign_id)
    return "", 204


@campaign_bp.route("/<int:campaign_id>/participants", methods=["POST"])
@require_role(ROLE_TEAM_OWNER)
def add_participant(campaign_id):
    service_id = json_body().get("service_id")
    if not service_id:
        raise ValidationError("service_id is required", details={"service_id": "required"})
    return jsonify(campaign_service.add_participant(campaign_id, service_id)), 201


@campaign_bp.route("/<int:campaign_id>/participants/<int:service_id>", methods=["DELETE"])
@require_role(ROLE_TEAM_OWNER)
def remove_participant(campaign_id, service_id):
    campaign_service.remove_participant(campaign_id, service_id)
    return "", 204
