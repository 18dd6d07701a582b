"""FastAPI スケジュールテンプレート API のユニットテスト"""

from datetime import datetime

import pytest
from conftest import CHILD_ID, make_instance
from fastapi.testclient import TestClient
from keepaneye.entrypoints.api.app import app
from keepaneye.entrypoints.api.deps import get_current_uid, get_engine

_UID = "test-uid"


@pytest.fixture
def client(engine):
    app.dependency_overrides[get_current_uid] = lambda: _UID
    app.dependency_overrides[get_engine] = lambda: engine

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


class TestListTemplates:
    def test_lists_active_templates(self, client, rule_store):
        rule_store.deactivate_rule("R-MON")

        response = client.get("/api/schedule-templates", params={"childId": CHILD_ID})

        assert response.status_code == 200
        templates = response.json()["templates"]
        assert [t["id"] for t in templates] == ["R-DAILY"]
        assert templates[0]["time_of_day"] == "08:00:00"
        assert templates[0]["frequency"] == "daily"

    def test_child_id_is_required(self, client):
        assert client.get("/api/schedule-templates").status_code == 422


class TestBulkUpsert:
    """POST /api/schedule-templates/bulk-upsert"""

    def test_creates_then_matches(self, client):
        body = {
            "childId": CHILD_ID,
            "items": [
                {
                    "title": "お風呂",
                    "type": "bath",
                    "timeOfDay": "18:30:00",
                    "frequency": "weekly",
                    "weekday": 4,
                }
            ],
        }

        first = client.post("/api/schedule-templates/bulk-upsert", json=body)
        second = client.post("/api/schedule-templates/bulk-upsert", json=body)

        assert first.status_code == 200
        [created] = first.json()["results"]
        [matched] = second.json()["results"]
        assert created["created"] is True
        assert matched == {"id": created["id"], "created": False}

    def test_invalid_frequency_returns_400(self, client):
        response = client.post(
            "/api/schedule-templates/bulk-upsert",
            json={
                "childId": CHILD_ID,
                "items": [
                    {"title": "x", "type": "other", "timeOfDay": "08:00", "frequency": "yearly"}
                ],
            },
        )
        assert response.status_code == 400


class TestRetire:
    """DELETE /api/schedule-templates/{id}"""

    def test_retire_deletes_schedules(self, client, rule_store, instance_store):
        instance_store.add_instance(
            make_instance("S1", datetime(2026, 10, 19, 19, 0), rule_id="R-MON")
        )
        instance_store.add_instance(
            make_instance(
                "S2", datetime(2026, 10, 26, 19, 0), rule_id="R-MON", has_been_modified=True
            )
        )

        response = client.delete("/api/schedule-templates/R-MON")

        assert response.status_code == 200
        assert response.json() == {
            "message": "Template deactivated and schedules deleted",
            "childId": CHILD_ID,
        }
        assert instance_store.all() == []
        assert rule_store.get_rule("R-MON").is_active is False

    def test_retire_twice_succeeds(self, client):
        assert client.delete("/api/schedule-templates/R-MON").status_code == 200
        assert client.delete("/api/schedule-templates/R-MON").status_code == 200

    def test_unknown_template_returns_404(self, client):
        response = client.delete("/api/schedule-templates/R-MISSING")
        assert response.status_code == 404
