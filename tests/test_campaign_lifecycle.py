"""
Campaign lifecycle service tests.

Coverage:
  - create_campaign: draft status, validation (non-integer ids), missing model / creator
  - status changes: free movement while open, frozen once completed/cancelled
  - add_participant: evaluation fan-out, duplicates, terminal campaigns,
    all-or-nothing on storage failure, no back-fill of later measurements
  - remove_participant: evaluations and history go with the participant
  - delete_campaign, list_campaigns, get_campaign ordering and status counts
"""

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from maturity_tracker.core.exceptions import (
    ConflictError,
    InternalError,
    InvalidStateError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from maturity_tracker.models import db
from maturity_tracker.models.campaign import Campaign, CampaignParticipant
from maturity_tracker.models.evaluation import EvaluationHistory, MeasurementEvaluation
from maturity_tracker.services import (
    campaign_service,
    evaluation_service,
    maturity_model_service,
    roster_service,
)
from maturity_tracker.services.campaign_service import CampaignChanges


# ── Helpers ──────────────────────────────────────────────────────────────


def _count(model, *where):
    return db.session.execute(select(func.count(model.id)).where(*where)).scalar()


def _evaluations(campaign_id, service_id=None):
    stmt = select(MeasurementEvaluation).where(MeasurementEvaluation.campaign_id == campaign_id)
    if service_id is not None:
        stmt = stmt.where(MeasurementEvaluation.service_id == service_id)
    return db.session.execute(stmt.order_by(MeasurementEvaluation.id)).scalars().all()


# ═════════════════════════════════════════════════════════════════════════
# Create / status
# ═════════════════════════════════════════════════════════════════════════


class TestCreateCampaign:
    def test_new_campaign_is_draft(self, model, admin_user):
        c = campaign_service.create_campaign(
            "Q3 Review", model["id"], admin_user.id,
            start_date="2025-07-01", end_date="2025-09-30",
        )
        assert c["status"] == "draft"
        assert c["participants"] == []
        assert c["evaluation_summary"] == []
        assert c["start_date"] == "2025-07-01"
        assert c["created_by_id"] == admin_user.id

    def test_name_required(self, model, admin_user):
        with pytest.raises(ValidationError):
            campaign_service.create_campaign("  ", model["id"], admin_user.id)

    def test_bad_date_rejected(self, model, admin_user):
        with pytest.raises(ValidationError):
            campaign_service.create_campaign("X", model["id"], admin_user.id, start_date="July")

    def test_unknown_model(self, admin_user):
        with pytest.raises(NotFoundError):
            campaign_service.create_campaign("X", 999, admin_user.id)
        assert _count(Campaign) == 0

    @pytest.mark.parametrize("model_id", [{"id": 1}, "1", True, 1.0])
    def test_non_integer_model_id(self, model, admin_user, model_id):
        with pytest.raises(ValidationError, match="maturity_model_id"):
            campaign_service.create_campaign("X", model_id, admin_user.id)
        assert _count(Campaign) == 0


class TestCampaignStatus:
    def test_draft_to_active(self, campaign):
        updated = campaign_service.update_campaign_status(campaign["id"], "active")
        assert updated["status"] == "active"

    def test_open_statuses_move_freely(self, campaign):
        campaign_service.update_campaign_status(campaign["id"], "active")
        updated = campaign_service.update_campaign_status(campaign["id"], "draft")
        assert updated["status"] == "draft"

    def test_unknown_status_rejected(self, campaign):
        with pytest.raises(ValidationError):
            campaign_service.update_campaign_status(campaign["id"], "archived")

    @pytest.mark.parametrize("terminal", ["completed", "cancelled"])
    def test_terminal_campaign_is_frozen(self, campaign, terminal):
        campaign_service.update_campaign_status(campaign["id"], terminal)
        with pytest.raises(InvalidTransitionError):
            campaign_service.update_campaign_status(campaign["id"], "active")
        assert db.session.get(Campaign, campaign["id"]).status == terminal

    def test_terminal_self_transition_allowed(self, campaign):
        campaign_service.update_campaign_status(campaign["id"], "completed")
        updated = campaign_service.update_campaign_status(campaign["id"], "completed")
        assert updated["status"] == "completed"

    def test_missing_campaign(self):
        with pytest.raises(NotFoundError):
            campaign_service.update_campaign_status(999, "active")

    def test_partial_update_keeps_other_fields(self, model, admin_user):
        c = campaign_service.create_campaign(
            "Q3 Review", model["id"], admin_user.id, start_date="2025-07-01",
        )
        updated = campaign_service.update_campaign(c["id"], CampaignChanges(name="Q3 Final"))
        assert updated["name"] == "Q3 Final"
        assert updated["start_date"] == "2025-07-01"
        assert updated["status"] == "draft"

    def test_null_status_left_unchanged(self, campaign):
        campaign_service.update_campaign_status(campaign["id"], "active")
        updated = campaign_service.update_campaign(
            campaign["id"], CampaignChanges(name="Renamed", status=None),
        )
        assert updated["name"] == "Renamed"
        assert updated["status"] == "active"


# ═════════════════════════════════════════════════════════════════════════
# Participants
# ═════════════════════════════════════════════════════════════════════════


class TestAddParticipant:
    def test_fan_out_one_evaluation_per_measurement(self, active_campaign, service, model):
        participant = campaign_service.add_participant(active_campaign["id"], service["id"])
        assert participant["service_id"] == service["id"]
        assert participant["team_name"] == "Platform Team"

        rows = _evaluations(active_campaign["id"], service["id"])
        assert len(rows) == 3
        assert {r.status for r in rows} == {"Not Implemented"}
        assert {r.measurement_id for r in rows} == {m["id"] for m in model["measurements"]}
        assert all(r.evaluated_by is None for r in rows)

    def test_enroll_in_draft_campaign(self, campaign, service):
        campaign_service.add_participant(campaign["id"], service["id"])
        assert len(_evaluations(campaign["id"])) == 3

    def test_duplicate_rejected(self, active_campaign, service):
        campaign_service.add_participant(active_campaign["id"], service["id"])
        with pytest.raises(ConflictError, match="already a participant"):
            campaign_service.add_participant(active_campaign["id"], service["id"])
        assert _count(CampaignParticipant) == 1
        assert len(_evaluations(active_campaign["id"])) == 3

    def test_unknown_service(self, active_campaign):
        with pytest.raises(NotFoundError):
            campaign_service.add_participant(active_campaign["id"], 999)

    @pytest.mark.parametrize("service_id", [{"id": 1}, "1", True])
    def test_non_integer_service_id(self, active_campaign, service, service_id):
        with pytest.raises(ValidationError, match="service_id"):
            campaign_service.add_participant(active_campaign["id"], service_id)
        assert _count(CampaignParticipant) == 0
        assert _evaluations(active_campaign["id"]) == []

    def test_unknown_campaign(self, service):
        with pytest.raises(NotFoundError):
            campaign_service.add_participant(999, service["id"])

    @pytest.mark.parametrize("terminal", ["completed", "cancelled"])
    def test_terminal_campaign_rejects_enrollment(self, campaign, service, terminal):
        campaign_service.update_campaign_status(campaign["id"], terminal)
        with pytest.raises(InvalidStateError, match=f"{terminal} campaign"):
            campaign_service.add_participant(campaign["id"], service["id"])
        assert _count(CampaignParticipant) == 0
        assert _count(MeasurementEvaluation) == 0

    def test_storage_failure_writes_nothing(self, active_campaign, service, monkeypatch):
        real = campaign_service._new_evaluation
        calls = {"n": 0}

        def flaky(*args):
            calls["n"] += 1
            if calls["n"] == 2:
                raise SQLAlchemyError("simulated insert failure")
            return real(*args)

        monkeypatch.setattr(campaign_service, "_new_evaluation", flaky)
        with pytest.raises(InternalError):
            campaign_service.add_participant(active_campaign["id"], service["id"])

        assert _count(CampaignParticipant) == 0
        assert _count(MeasurementEvaluation) == 0

    def test_later_measurements_not_backfilled(self, active_campaign, service, model, categories):
        campaign_service.add_participant(active_campaign["id"], service["id"])
        maturity_model_service.add_measurement(model["id"], {
            "name": "Has SLOs defined",
            "category_id": categories["security"],
            "evidence_type": "Document",
        })
        assert len(_evaluations(active_campaign["id"], service["id"])) == 3


class TestRemoveParticipant:
    def test_removes_evaluations_and_history(self, active_campaign, service, service2, admin_user):
        cid = active_campaign["id"]
        campaign_service.add_participant(cid, service["id"])
        campaign_service.add_participant(cid, service2["id"])
        target = _evaluations(cid, service["id"])[0]
        evaluation_service.update_evaluation(target.id, "Implemented", admin_user.id)

        campaign_service.remove_participant(cid, service["id"])

        assert _count(CampaignParticipant, CampaignParticipant.campaign_id == cid) == 1
        assert _evaluations(cid, service["id"]) == []
        assert len(_evaluations(cid, service2["id"])) == 3
        assert _count(EvaluationHistory) == 0

    def test_not_enrolled(self, active_campaign, service):
        with pytest.raises(NotFoundError):
            campaign_service.remove_participant(active_campaign["id"], service["id"])

    def test_terminal_campaign_rejects_withdrawal(self, active_campaign, service):
        campaign_service.add_participant(active_campaign["id"], service["id"])
        campaign_service.update_campaign_status(active_campaign["id"], "completed")
        with pytest.raises(InvalidStateError):
            campaign_service.remove_participant(active_campaign["id"], service["id"])
        assert _count(CampaignParticipant) == 1
        assert len(_evaluations(active_campaign["id"])) == 3

    def test_service_with_enrollment_cannot_be_deleted(self, active_campaign, service):
        campaign_service.add_participant(active_campaign["id"], service["id"])
        with pytest.raises(InvalidStateError):
            roster_service.delete_service(service["id"])


# ═════════════════════════════════════════════════════════════════════════
# Read / delete
# ═════════════════════════════════════════════════════════════════════════


class TestCampaignQueries:
    def test_list_includes_participant_counts(self, active_campaign, service, service2, model, admin_user):
        campaign_service.add_participant(active_campaign["id"], service["id"])
        campaign_service.add_participant(active_campaign["id"], service2["id"])
        other = campaign_service.create_campaign("Empty", model["id"], admin_user.id)

        counts = {c["id"]: c["participants_count"] for c in campaign_service.list_campaigns()}
        assert counts == {active_campaign["id"]: 2, other["id"]: 0}

    def test_get_orders_participants_by_team_then_service(
        self, active_campaign, team, owner_user,
    ):
        beta = roster_service.create_team("Beta Team", owner_user.id)
        alpha = roster_service.create_team("Alpha Team", owner_user.id)
        for name, team_id in (("Zeta", alpha["id"]), ("Beta Svc", beta["id"]), ("Alpha Svc", alpha["id"])):
            s = roster_service.create_service({
                "name": name, "owner_id": owner_user.id,
                "team_id": team_id, "service_type": "Workflow",
            })
            campaign_service.add_participant(active_campaign["id"], s["id"])

        detail = campaign_service.get_campaign(active_campaign["id"])
        assert [p["service_name"] for p in detail["participants"]] == [
            "Alpha Svc", "Zeta", "Beta Svc",
        ]
        assert detail["evaluation_summary"] == [{"status": "Not Implemented", "count": 9}]

    def test_get_missing(self):
        with pytest.raises(NotFoundError):
            campaign_service.get_campaign(999)

    def test_delete_removes_everything(self, active_campaign, service, admin_user):
        cid = active_campaign["id"]
        campaign_service.add_participant(cid, service["id"])
        evaluation_service.update_evaluation(_evaluations(cid)[0].id, "Implemented", admin_user.id)

        campaign_service.delete_campaign(cid)

        assert db.session.get(Campaign, cid) is None
        assert _count(CampaignParticipant) == 0
        assert _count(MeasurementEvaluation) == 0
        assert _count(EvaluationHistory) == 0

    def test_model_in_use_cannot_be_deleted(self, campaign, model):
        with pytest.raises(InvalidStateError):
            maturity_model_service.delete_model(model["id"])
