"""
Maturity model blueprint — models, measurements, level rules, categories.

Endpoints:
    GET    /api/v1/maturity-models                    — list
    GET    /api/v1/maturity-models/<id>               — detail with measurements and rules
    POST   /api/v1/maturity-models                    — create with default rules   [admin]
    PUT    /api/v1/maturity-models/<id>               — partial update              [admin]
    DELETE /api/v1/maturity-models/<id>               — delete if unused            [admin]
    POST   /api/v1/maturity-models/<id>/measurements  — add a measurement           [admin]
    PUT    /api/v1/maturity-models/<id>/rules         — replace level rules         [admin]
    GET    /api/v1/measurement-categories             — category taxonomy
"""

from flask import Blueprint, jsonify

from maturity_tracker.auth import login_required, require_role
from maturity_tracker.blueprints import json_body, register_error_handlers
from maturity_tracker.models.auth import ROLE_ADMIN
from maturity_tracker.services import maturity_model_service as mms
from maturity_tracker.utils.helpers import changes_from

maturity_model_bp = Blueprint("maturity_models", __name__, url_prefix="/api/v1")
register_error_handlers(maturity_model_bp)


@maturity_model_bp.route("/maturity-models", methods=["GET"])
@login_required
def list_models():
    return jsonify(mms.list_models()), 200


@maturity_model_bp.route("/maturity-models/<int:model_id>", methods=["GET"])
@login_required
def get_model(model_id):
    return jsonify(mms.get_model(model_id)), 200


@maturity_model_bp.route("/maturity-models", methods=["POST"])
@require_role(ROLE_ADMIN)
def create_model():
    data = json_body()
    model = mms.create_model(data.get("name"), data.get("owner_id"), data.get("description"))
    return jsonify(model), 201


@maturity_model_bp.route("/maturity-models/<int:model_id>", methods=["PUT"])
@require_role(ROLE_ADMIN)
def update_model(model_id):
    changes = changes_from(mms.ModelChanges, json_body())
    return jsonify(mms.update_model(model_id, changes)), 200


@maturity_model_bp.route("/maturity-models/<int:model_id>", methods=["DELETE"])
@require_role(ROLE_ADMIN)
def delete_model(model_id):
    mms.delete_model(model_id)
    return "", 204


@maturity_model_bp.route("/maturity-models/<int:model_id>/measurements", methods=["POST"])
@require_role(ROLE_ADMIN)
def add_measurement(model_id):
    return jsonify(mms.add_measurement(model_id, json_body())), 201


@maturity_model_bp.route("/maturity-models/<int:model_id>/rules", methods=["PUT"])
@require_role(ROLE_ADMIN)
def replace_rules(model_id):
    return jsonify(mms.replace_rules(model_id, json_body().get("rules"))), 200


@maturity_model_bp.route("/measurement-categories", methods=["GET"])
@login_required
def list_categories():
    return jsonify(mms.list_categories()), 200
