"""Tests for the Flask API."""

import pytest

from promptgen.api.app import create_app


@pytest.fixture
def client(resolver, settings):
    app = create_app(resolver, settings)
    app.config["TESTING"] = True
    return app.test_client()


class TestInfoEndpoints:
    """Tests for read-only endpoints."""

    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.get_json() == {"status": "healthy"}

    def test_api_info(self, client):
        assert "render" in client.get("/api").get_json()["endpoints"]

    def test_entry_points(self, client):
        data = client.get("/api/entry-points").get_json()
        assert data["count"] == 4
        assert "greeting" in {e["id"] for e in data["entry_points"]}

    def test_separator_sets(self, client):
        data = client.get("/api/separator-sets").get_json()
        assert "oxford-comma" in data["builtin"]
        assert data["custom"][0]["id"] == "semicolons"

    def test_default_resolver_is_empty(self, settings):
        client = create_app(settings=settings).test_client()
        assert client.get("/api/entry-points").get_json()["count"] == 0


class TestRender:
    """Tests for POST /api/render."""

    def test_render(self, client):
        response = client.post(
            "/api/render",
            json={"template_id": "greeting", "context": {"variables": {"name": "Ada"}}},
        )
        assert response.status_code == 200
        data = response.get_json()
        assert data["success"] is True
        assert data["outputs"][0]["text"] == "Hello, Ada!"
        assert data["metadata"]["variables_used"] == ["name"]

    def test_fatal_error_is_a_result(self, client):
        data = client.post("/api/render", json={"template_id": "missing"}).get_json()
        assert data["success"] is False
        assert data["errors"][0]["code"] == "FATAL_ERROR"

    def test_invalid_request(self, client):
        response = client.post("/api/render", json={"options": {"count": 0}})
        assert response.status_code == 400
        assert response.get_json()["details"]

    def test_non_json_body(self, client):
        response = client.post("/api/render", data="hello", content_type="text/plain")
        assert response.status_code == 400


class TestPreviewSeparator:
    """Tests for POST /api/preview-separator."""

    def test_builtin_set(self, client):
        response = client.post("/api/preview-separator", json={"set": "oxford-comma", "items": ["a", "b", "c"]})
        assert response.get_json() == {"text": "a, b, and c"}

    def test_user_defined_set(self, client):
        response = client.post("/api/preview-separator", json={"set": "semicolons", "items": ["a", "b"]})
        assert response.get_json() == {"text": "a; b"}

    def test_inline_rules(self, client):
        rules = {
            "single": {"template": "{item}"},
            "two": {"separator": " + ", "template": "{first}{separator}{second}"},
            "many": {"item_separator": " + ", "last_separator": " + ", "template": "{items}{last_separator}{last}"},
        }
        response = client.post("/api/preview-separator", json={"rules": rules, "items": ["a", "b"]})
        assert response.get_json() == {"text": "a + b"}

    def test_unknown_set(self, client):
        response = client.post("/api/preview-separator", json={"set": "nope", "items": ["a"]})
        assert response.status_code == 400

    def test_items_required(self, client):
        response = client.post("/api/preview-separator", json={"set": "oxford-comma"})
        assert response.status_code == 400


class TestValidate:
    """Tests for POST /api/validate."""

    def test_valid(self, client):
        data = client.post("/api/validate", json={"content": {"type": "text", "value": "x"}}).get_json()
        assert data == {"valid": True, "errors": []}

    def test_invalid(self, client):
        data = client.post("/api/validate", json={"content": {"type": "mystery"}}).get_json()
        assert data["valid"] is False
        assert data["errors"][0] == {
            "code": "UNKNOWN_CONTENT_TYPE",
            "message": "Unknown content type: mystery",
            "path": "root",
        }

    def test_content_required(self, client):
        assert client.post("/api/validate", json={}).status_code == 400
