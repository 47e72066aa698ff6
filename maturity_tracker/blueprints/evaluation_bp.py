"""
Evaluation blueprint — per-participant evaluations, status changes, history.

Endpoints:
    GET  /api/v1/evaluations/campaign/<cid>/service/<sid>        — list
    GET  /api/v1/evaluations/<id>/history                         — audit trail
    PUT  /api/v1/evaluations/<id>                                 — change status   [admin]
    POST /api/v1/evaluations/campaign/<cid>/service/<sid>/bulk    — bulk status     [admin]
"""

from flask import Blueprint, jsonify

from maturity_tracker.auth import login_required, require_role
from maturity_tracker.blueprints import current_user_id, json_body, register_error_handlers
from maturity_tracker.models.auth import ROLE_ADMIN
from maturity_tracker.services import evaluation_service
from maturity_tracker.utils.helpers import UNSET

evaluation_bp = Blueprint("evaluations", __name__, url_prefix="/api/v1/evaluations")
register_error_handlers(evaluation_bp)


@evaluation_bp.route("/campaign/<int:campaign_id>/service/<int:service_id>", methods=["GET"])
@login_required
def list_evaluations(campaign_id, service_id):
    return jsonify(evaluation_service.list_evaluations(campaign_id, service_id)), 200


@evaluation_bp.route("/<int:evaluation_id>/history", methods=["GET"])
@login_required
def get_history(evaluation_id):
    return jsonify(evaluation_service.get_history(evaluation_id)), 200


@evaluation_bp.route("/<int:evaluation_id>", methods=["PUT"])
@require_role(ROLE_ADMIN)
def update_evaluation(evaluation_id):
    """Body: {status, evidence_location?, notes?}"""
    data = json_body()
    evaluation = evaluation_service.update_evaluation(
        evaluation_id,
        data.get("status"),
        current_user_id(),
        evidence_location=data.get("evidence_location", UNSET),
        notes=data.get("notes", UNSET),
    )
    return jsonify(evaluation), 200


@evaluation_bp.route(
    "/campaign/<int:campaign_id>/service/<int:service_id>/bulk", methods=["POST"],
)
@require_role(ROLE_ADMIN)
def bulk_update(campaign_id, service_id):
    """Body: {status, category_id?}"""
    data = json_body()
    count = evaluation_service.bulk_update(
        campaign_id,
        service_id,
        data.get("status"),
        current_user_id(),
        category_id=data.get("category_id"),
    )
    return jsonify({"message": f"{count} evaluations updated successfully", "count": count}), 200
