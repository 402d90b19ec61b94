"""Tests for the HTTP API"""

import pytest
from fastapi.testclient import TestClient

from form_builder.api.app import create_app
from form_builder.db import get_store
from form_builder.db.memory import InMemoryTemplateStore
from form_builder.services.serialization import template_to_dict


@pytest.fixture
def templates():
    return InMemoryTemplateStore()


@pytest.fixture
def client(templates):
    app = create_app()
    app.dependency_overrides[get_store] = lambda: templates
    return TestClient(app)


@pytest.fixture
def stored(templates, booking_template):
    return templates.create(booking_template)


class TestHealth:
    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert response.json()["active_sessions"] == 0


class TestTemplateRoutes:
    def test_list(self, client, stored):
        response = client.get("/api/templates")
        assert response.status_code == 200
        body = response.json()
        assert body["pagination"]["total"] == 1
        summary = body["templates"][0]
        assert summary["id"] == stored.id
        assert summary["field_count"] == 6
        assert summary["required_field_count"] == 4

    def test_list_filters(self, client, stored):
        assert client.get("/api/templates", params={"category": "survey"}).json()["templates"] == []
        assert len(client.get("/api/templates", params={"search": "room"}).json()["templates"]) == 1

    def test_create(self, client, booking_template):
        response = client.post("/api/templates", json=template_to_dict(booking_template))
        assert response.status_code == 201
        assert response.json()["id"]

    def test_create_requires_name(self, client, booking_template):
        data = template_to_dict(booking_template)
        data["name"] = ""
        response = client.post("/api/templates", json=data)
        assert response.status_code == 422
        assert response.json()["detail"] == "Please enter a form name"

    def test_create_rejects_duplicate_field_ids(self, client, booking_template):
        data = template_to_dict(booking_template)
        data["fields"][1]["id"] = data["fields"][0]["id"]
        assert client.post("/api/templates", json=data).status_code == 422

    def test_get_and_missing(self, client, stored):
        assert client.get(f"/api/templates/{stored.id}").json()["name"] == "Room booking"
        assert client.get("/api/templates/nope").status_code == 404

    def test_update(self, client, stored, templates):
        response = client.put(f"/api/templates/{stored.id}", json={"description": "New text"})
        assert response.status_code == 200
        assert templates.get(stored.id).description == "New text"

    def test_duplicate_default_name(self, client, stored):
        response = client.post(f"/api/templates/{stored.id}/duplicate")
        assert response.status_code == 201
        assert response.json()["name"] == "Room booking (Copy)"
        assert response.json()["status"] == "draft"

    def test_delete(self, client, stored):
        assert client.delete(f"/api/templates/{stored.id}").json() == {"deleted": True}
        assert client.delete(f"/api/templates/{stored.id}").status_code == 404

    def test_export_csv(self, client, stored):
        response = client.get(f"/api/templates/{stored.id}/export", params={"format": "csv"})
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "Room_booking.csv" in response.headers["content-disposition"]

    def test_export_unknown_format(self, client, stored):
        response = client.get(f"/api/templates/{stored.id}/export", params={"format": "xml"})
        assert response.status_code == 400

    def test_import(self, client, stored):
        response = client.post("/api/templates/import", json={
            "data": template_to_dict(stored) | {"name": "Imported"},
            "overwrite": True,
        })
        assert response.status_code == 201
        assert response.json()["id"] == stored.id
        assert response.json()["name"] == "Imported"

    def test_preview(self, client, stored):
        response = client.post(f"/api/templates/{stored.id}/preview", json={
            "values": {"pets": True, "unknown": "ignored"},
        })
        assert response.status_code == 200
        assert "pet_details" in response.json()["visible_field_ids"]
        assert response.json()["progress"] is None


class TestBuilderRoutes:
    def _start(self, client, **body):
        response = client.post("/api/builder/sessions", json=body)
        assert response.status_code == 201
        return response.json()["session_id"]

    def test_author_and_save(self, client, templates):
        sid = self._start(client)
        assert client.patch(f"/api/builder/sessions/{sid}/details", json={"name": "Late checkout"}).status_code == 200

        field = client.post(f"/api/builder/sessions/{sid}/fields", json={"type": "time"}).json()
        assert field["label"] == "New time field"

        response = client.patch(
            f"/api/builder/sessions/{sid}/fields/{field['id']}",
            json={"label": "Checkout time", "required": True},
        )
        assert response.json()["label"] == "Checkout time"

        saved = client.post(f"/api/builder/sessions/{sid}/save")
        assert saved.status_code == 200
        assert saved.json()["is_dirty"] is False
        template_id = saved.json()["template"]["id"]
        assert templates.get(template_id).fields[0].required

    def test_save_rejected(self, client):
        sid = self._start(client)
        response = client.post(f"/api/builder/sessions/{sid}/save")
        assert response.status_code == 422
        assert response.json()["detail"] == "Please enter a form name"

    def test_edit_existing_and_publish(self, client, stored, templates):
        sid = self._start(client, template_id=stored.id)
        response = client.post(f"/api/builder/sessions/{sid}/publish")
        assert response.status_code == 200
        assert templates.get(stored.id).is_published

    def test_unknown_template(self, client):
        response = client.post("/api/builder/sessions", json={"template_id": "nope"})
        assert response.status_code == 404

    def test_move_select_and_delete(self, client, stored):
        sid = self._start(client, template_id=stored.id)
        moved = client.post(f"/api/builder/sessions/{sid}/move", json={"from_index": 0, "to_index": 5})
        assert [f["id"] for f in moved.json()["template"]["fields"]][-1] == "name"

        assert client.post(f"/api/builder/sessions/{sid}/move", json={"from_index": 0, "to_index": 9}).status_code == 400

        selected = client.post(f"/api/builder/sessions/{sid}/select", json={"field_id": "email"})
        assert selected.json()["selected_field_id"] == "email"

        assert client.delete(f"/api/builder/sessions/{sid}/fields/email").status_code == 200
        assert client.get(f"/api/builder/sessions/{sid}").json()["selected_field_id"] is None
        assert client.delete(f"/api/builder/sessions/{sid}/fields/email").status_code == 404

    def test_duplicate_field(self, client, stored):
        sid = self._start(client, template_id=stored.id)
        response = client.post(f"/api/builder/sessions/{sid}/fields/room/duplicate")
        assert response.status_code == 201
        assert response.json()["label"] == "Room type (Copy)"

    def test_read_only_properties(self, client, stored):
        sid = self._start(client, template_id=stored.id)
        response = client.patch(f"/api/builder/sessions/{sid}/fields/name", json={"order": 3})
        assert response.status_code == 422

    def test_field_id_in_body_is_rejected(self, client, stored):
        sid = self._start(client, template_id=stored.id)
        response = client.patch(f"/api/builder/sessions/{sid}/fields/name", json={"field_id": "email"})
        assert response.status_code == 422
        assert "field_id" in response.json()["detail"]

    def test_self_dependent_conditional_is_rejected(self, client, stored):
        sid = self._start(client, template_id=stored.id)
        rule = {"field_id": "name", "operator": "equals", "value": "x"}
        response = client.patch(f"/api/builder/sessions/{sid}/fields/name", json={"conditional": rule})
        assert response.status_code == 422
        session = client.get(f"/api/builder/sessions/{sid}").json()
        name = next(f for f in session["template"]["fields"] if f["id"] == "name")
        assert name["conditional"] is None

    def test_closed_session(self, client):
        sid = self._start(client)
        assert client.delete(f"/api/builder/sessions/{sid}").json() == {"deleted": True}
        assert client.get(f"/api/builder/sessions/{sid}").status_code == 404
