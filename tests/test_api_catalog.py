"""
HTTP tests for teams, services, maturity models and categories.

Coverage:
  - team / service CRUD with role gates and delete guards
  - maturity model CRUD, default level rules, measurements, rule replacement
  - non-integer ids and repeated rule levels answer 400
  - measurement category listing
"""

from maturity_tracker.utils.errors import E


# ═════════════════════════════════════════════════════════════════════════
# Teams
# ═════════════════════════════════════════════════════════════════════════


class TestTeams:
    def test_create_and_list(self, client, owner_user, owner_headers, member_headers):
        res = client.post(
            "/api/v1/teams",
            json={"name": "Data Team", "owner_id": owner_user.id, "description": "data"},
            headers=owner_headers,
        )
        assert res.status_code == 201
        assert res.get_json()["services"] == []

        res = client.get("/api/v1/teams", headers=member_headers)
        assert res.status_code == 200
        teams = res.get_json()
        assert [t["name"] for t in teams] == ["Data Team"]
        assert teams[0]["services_count"] == 0

    def test_member_cannot_create(self, client, member_user, member_headers):
        res = client.post(
            "/api/v1/teams",
            json={"name": "Data Team", "owner_id": member_user.id},
            headers=member_headers,
        )
        assert res.status_code == 403

    def test_duplicate_name(self, client, team, owner_user, owner_headers):
        res = client.post(
            "/api/v1/teams",
            json={"name": "Platform Team", "owner_id": owner_user.id},
            headers=owner_headers,
        )
        assert res.status_code == 409

    def test_missing_fields(self, client, owner_headers):
        res = client.post("/api/v1/teams", json={"name": "X"}, headers=owner_headers)
        assert res.status_code == 400
        assert res.get_json()["code"] == E.VALIDATION_INVALID

    def test_non_integer_owner_id(self, client, owner_user, owner_headers):
        res = client.post(
            "/api/v1/teams",
            json={"name": "Data Team", "owner_id": {"id": owner_user.id}},
            headers=owner_headers,
        )
        assert res.status_code == 400
        assert res.get_json()["details"] == {"owner_id": "must be an integer"}
        assert client.get("/api/v1/teams", headers=owner_headers).get_json() == []

    def test_update(self, client, team, owner_headers):
        res = client.put(
            f"/api/v1/teams/{team['id']}", json={"description": "new"}, headers=owner_headers,
        )
        assert res.status_code == 200
        assert res.get_json()["description"] == "new"
        assert res.get_json()["name"] == "Platform Team"

    def test_delete_guarded_by_services(self, client, service, team, admin_headers):
        res = client.delete(f"/api/v1/teams/{team['id']}", headers=admin_headers)
        assert res.status_code == 409
        assert res.get_json()["code"] == E.CONFLICT_STATE

    def test_delete_empty_team(self, client, team, admin_headers):
        assert client.delete(f"/api/v1/teams/{team['id']}", headers=admin_headers).status_code == 204
        assert client.get(f"/api/v1/teams/{team['id']}", headers=admin_headers).status_code == 404


# ═════════════════════════════════════════════════════════════════════════
# Services
# ═════════════════════════════════════════════════════════════════════════


class TestServices:
    def test_create(self, client, team, owner_user, owner_headers):
        res = client.post(
            "/api/v1/services",
            json={
                "name": "Search",
                "owner_id": owner_user.id,
                "team_id": team["id"],
                "service_type": "Application Module",
                "resource_location": "https://github.com/example/search",
            },
            headers=owner_headers,
        )
        assert res.status_code == 201
        body = res.get_json()
        assert body["team_name"] == "Platform Team"
        assert body["resource_location"] == "https://github.com/example/search"

    def test_invalid_type(self, client, team, owner_user, owner_headers):
        res = client.post(
            "/api/v1/services",
            json={
                "name": "Search",
                "owner_id": owner_user.id,
                "team_id": team["id"],
                "service_type": "Database",
            },
            headers=owner_headers,
        )
        assert res.status_code == 400
        assert res.get_json()["error"].startswith("Invalid service type")

    def test_filter_by_team(self, client, service, service2, owner_user, owner_headers):
        other = client.post(
            "/api/v1/teams", json={"name": "Other", "owner_id": owner_user.id}, headers=owner_headers,
        ).get_json()
        client.post(
            "/api/v1/services",
            json={
                "name": "Lonely", "owner_id": owner_user.id,
                "team_id": other["id"], "service_type": "Workflow",
            },
            headers=owner_headers,
        )
        res = client.get(f"/api/v1/services?team_id={other['id']}", headers=owner_headers)
        assert [s["name"] for s in res.get_json()] == ["Lonely"]
        assert len(client.get("/api/v1/services", headers=owner_headers).get_json()) == 3

    def test_delete_enrolled_service(self, client, active_campaign, service, owner_headers, admin_headers):
        client.post(
            f"/api/v1/campaigns/{active_campaign['id']}/participants",
            json={"service_id": service["id"]}, headers=owner_headers,
        )
        res = client.delete(f"/api/v1/services/{service['id']}", headers=admin_headers)
        assert res.status_code == 409

    def test_delete(self, client, service, admin_headers):
        assert client.delete(f"/api/v1/services/{service['id']}", headers=admin_headers).status_code == 204


# ═════════════════════════════════════════════════════════════════════════
# Maturity models
# ═════════════════════════════════════════════════════════════════════════


class TestMaturityModels:
    def test_create_with_default_rules(self, client, admin_user, admin_headers):
        res = client.post(
            "/api/v1/maturity-models",
            json={"name": "Security", "owner_id": admin_user.id},
            headers=admin_headers,
        )
        assert res.status_code == 201
        rules = res.get_json()["rules"]
        assert [r["level"] for r in rules] == [0, 1, 2, 3, 4]

    def test_owner_cannot_create(self, client, owner_user, owner_headers):
        res = client.post(
            "/api/v1/maturity-models",
            json={"name": "Security", "owner_id": owner_user.id},
            headers=owner_headers,
        )
        assert res.status_code == 403

    def test_list_with_counts(self, client, model, member_headers):
        res = client.get("/api/v1/maturity-models", headers=member_headers)
        assert res.get_json()[0]["measurements_count"] == 3

    def test_detail_orders_measurements(self, client, model, member_headers):
        res = client.get(f"/api/v1/maturity-models/{model['id']}", headers=member_headers)
        assert [m["name"] for m in res.get_json()["measurements"]] == [
            "Has automated tests",
            "Has centralized logging",
            "Has infrastructure metrics published",
        ]

    def test_add_measurement(self, client, model, categories, admin_headers):
        res = client.post(
            f"/api/v1/maturity-models/{model['id']}/measurements",
            json={
                "name": "Has SLOs defined",
                "category_id": categories["security"],
                "evidence_type": "Document",
            },
            headers=admin_headers,
        )
        assert res.status_code == 201
        assert res.get_json()["category_name"] == "Security and Compliance"

    def test_add_measurement_bad_evidence_type(self, client, model, categories, admin_headers):
        res = client.post(
            f"/api/v1/maturity-models/{model['id']}/measurements",
            json={"name": "X", "category_id": categories["security"], "evidence_type": "Video"},
            headers=admin_headers,
        )
        assert res.status_code == 400

    def test_add_measurement_non_integer_category(self, client, model, categories, admin_headers):
        res = client.post(
            f"/api/v1/maturity-models/{model['id']}/measurements",
            json={"name": "X", "category_id": str(categories["security"]), "evidence_type": "Document"},
            headers=admin_headers,
        )
        assert res.status_code == 400
        assert res.get_json()["code"] == E.VALIDATION_INVALID

    def test_replace_rules(self, client, model, admin_headers):
        res = client.put(
            f"/api/v1/maturity-models/{model['id']}/rules",
            json={"rules": [{"level": 0, "min_percentage": 0, "max_percentage": 100}]},
            headers=admin_headers,
        )
        assert res.status_code == 200
        assert len(res.get_json()) == 1

    def test_replace_rules_requires_array(self, client, model, admin_headers):
        res = client.put(
            f"/api/v1/maturity-models/{model['id']}/rules", json={}, headers=admin_headers,
        )
        assert res.status_code == 400

    def test_replace_rules_duplicate_level(self, client, model, admin_headers):
        res = client.put(
            f"/api/v1/maturity-models/{model['id']}/rules",
            json={"rules": [
                {"level": 2, "min_percentage": 0, "max_percentage": 50},
                {"level": 2, "min_percentage": 51, "max_percentage": 100},
            ]},
            headers=admin_headers,
        )
        assert res.status_code == 400
        assert res.get_json()["error"] == "Duplicate level"
        detail = client.get(f"/api/v1/maturity-models/{model['id']}", headers=admin_headers)
        assert [r["level"] for r in detail.get_json()["rules"]] == [0, 1, 2, 3, 4]

    def test_delete_guarded_by_campaign(self, client, campaign, model, admin_headers):
        res = client.delete(f"/api/v1/maturity-models/{model['id']}", headers=admin_headers)
        assert res.status_code == 409

    def test_delete(self, client, model, admin_headers):
        res = client.delete(f"/api/v1/maturity-models/{model['id']}", headers=admin_headers)
        assert res.status_code == 204


class TestCategories:
    def test_sorted_by_name(self, client, categories, member_headers):
        res = client.get("/api/v1/measurement-categories", headers=member_headers)
        assert [c["name"] for c in res.get_json()] == [
            "Change Management",
            "Observability and Monitoring",
            "Security and Compliance",
        ]
