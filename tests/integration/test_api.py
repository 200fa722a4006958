"""
API Tests

Exercises the HTTP surface against an in-memory board injected through
the FastAPI dependency override.
"""

import json

import pytest
from fastapi.testclient import TestClient

from instaplot.api.server import app, get_board

from .fixtures import HARBOUR_NIGHT, NEW_CARD_FIELDS


@pytest.fixture
def client(board):
    app.dependency_overrides[get_board] = lambda: board
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestCardEndpoints:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "online", "cards": 2}

    def test_list_cards_in_insertion_order(self, client):
        cards = client.get("/api/v1/cards").json()["cards"]
        assert [c["id"] for c in cards] == ["1", "2"]
        assert cards[1]["is_lie"] is True
        assert cards[0]["manually_placed"] is False

    def test_create_card(self, client):
        response = client.post("/api/v1/cards", json=NEW_CARD_FIELDS)
        assert response.status_code == 201
        assert response.json()["actor"] == "Bob"

    def test_create_card_missing_fields(self, client):
        response = client.post("/api/v1/cards", json={"actor": "Bob"})
        assert response.status_code == 422
        assert response.json()["detail"]["code"] == "VALIDATION_FAILED"

    def test_patch_card(self, client):
        response = client.patch("/api/v1/cards/1", json={"place": "Library"})
        assert response.status_code == 200
        assert response.json()["place"] == "Library"
        assert response.json()["actor"] == "John Smith"

    def test_put_card_commits_whole_draft(self, client):
        body = dict(NEW_CARD_FIELDS, is_lie=True)
        response = client.put("/api/v1/cards/2", json=body)
        assert response.status_code == 200
        data = response.json()
        assert data["claims"] == "Was fishing"
        assert data["is_lie"] is True
        assert (data["x"], data["y"]) == (300.0, 200.0)

    @pytest.mark.parametrize("method,path", [
        ("get", "/api/v1/cards/missing"),
        ("delete", "/api/v1/cards/missing"),
    ])
    def test_unknown_card_is_404(self, client, method, path):
        assert getattr(client, method)(path).status_code == 404

    def test_delete_card(self, client):
        assert client.delete("/api/v1/cards/1").status_code == 200
        assert [c["id"] for c in client.get("/api/v1/cards").json()["cards"]] == ["2"]


class TestPlacementEndpoints:

    def test_drag_marks_manual_placement(self, client):
        data = client.post("/api/v1/cards/1/drag", json={"dx": 5, "dy": 7}).json()
        assert (data["x"], data["y"]) == (105.0, 107.0)
        assert data["manually_placed"] is True

    def test_position(self, client):
        data = client.put("/api/v1/cards/2/position", json={"x": -20, "y": 0}).json()
        assert (data["x"], data["y"]) == (-20.0, 0.0)

    def test_selection_toggle(self, client):
        assert client.post("/api/v1/selection/1").json() == {"selected_id": "1"}
        assert client.post("/api/v1/selection/1").json() == {"selected_id": None}

    def test_axes_change_organizes(self, client):
        client.post("/api/v1/cards/1/drag", json={"dx": 50, "dy": 50})
        data = client.put("/api/v1/axes", json={"x": "actor"}).json()
        assert data["organized"] is True
        assert data["axes"]["x"] == "actor"
        assert [t["label"] for t in data["axes"]["x_ticks"]] == ["John Smith", "Jane Doe"]
        assert all(c["manually_placed"] is False for c in data["cards"])

    def test_invalid_axis_is_422(self, client):
        assert client.put("/api/v1/axes", json={"x": "claims"}).status_code == 422


class TestImportExportEndpoints:

    def test_import_requires_confirmation(self, client):
        response = client.post("/api/v1/import", content=json.dumps(HARBOUR_NIGHT))
        assert response.status_code == 409
        assert response.json()["detail"]["context"]["discard_count"] == "2"

    def test_confirmed_import(self, client):
        response = client.post(
            "/api/v1/import", params={"confirm": "true"}, content=json.dumps(HARBOUR_NIGHT)
        )
        assert response.status_code == 200
        assert response.json()["accepted_count"] == 3
        assert response.json()["summary"] == "Successfully imported 3 cards"

    def test_import_bad_json(self, client):
        response = client.post("/api/v1/import", params={"confirm": "true"}, content="{oops")
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "PARSE_FAILED"

    def test_export(self, client):
        text = client.get("/api/v1/export").json()["text"]
        assert [c["id"] for c in json.loads(text)] == ["1", "2"]


class TestBufferEndpoints:

    def test_buffer_flow(self, client, board):
        assert client.get("/api/v1/buffer").json()["open"] is False
        assert client.put("/api/v1/buffer", json={"text": "[]"}).status_code == 409

        opened = client.post("/api/v1/buffer").json()
        assert opened["open"] is True

        edited = client.put("/api/v1/buffer", json={"text": json.dumps(HARBOUR_NIGHT[:1])}).json()
        assert edited["pending"] is True

        flushed = client.post("/api/v1/buffer/flush").json()
        assert flushed == {"status": "applied", "accepted_count": 1}
        assert [c.id for c in board.cards()] == ["h1"]

        assert client.delete("/api/v1/buffer").json()["open"] is False


class TestLayoutAndAuditEndpoints:

    def test_axis_domain(self, client):
        data = client.get("/api/v1/layout/axes/x").json()
        assert data == {"axis": "x", "attribute": "place",
                        "domain": ["Office Building", "Coffee Shop"]}

    def test_unknown_axis_name_is_400(self, client):
        response = client.get("/api/v1/layout/axes/z")
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "INVALID_AXIS"

    def test_missing_card_error_is_structured(self, client):
        detail = client.get("/api/v1/cards/missing").json()["detail"]
        assert detail["code"] == "CARD_NOT_FOUND"
        assert detail["context"] == {"card_id": "missing"}

    def test_audit_counts_mutations(self, client):
        client.delete("/api/v1/cards/1")
        data = client.get("/api/v1/audit", params={"layer": "records"}).json()
        assert data["counters"]["records.card_deleted"] == 1
        assert [e["action"] for e in data["entries"]][-1] == "card_deleted"
