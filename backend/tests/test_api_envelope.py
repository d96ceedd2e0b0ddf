"""Response envelope, health checks and shared query-parameter handling."""

from unittest.mock import patch

from sqlalchemy.exc import OperationalError

from shopadmin.extensions import db


class TestHealth:

    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json["success"] is True
        assert resp.json["message"] == "Service is healthy"
        data = resp.json["data"]
        assert data["status"] == "ok"
        assert data["timestamp"].endswith("Z")
        assert data["uptime"] >= 0

    def test_health_db(self, client, db_session):
        resp = client.get("/health/db")
        assert resp.status_code == 200
        assert resp.json["data"]["database"] == "connected"

    def test_health_db_unavailable(self, client, db_session):
        failure = OperationalError("SELECT 1", {}, Exception("database is locked"))
        with patch.object(db.session, "execute", side_effect=failure):
            resp = client.get("/health/db")
        assert resp.status_code == 503
        assert resp.json == {"success": False, "message": "Database is unavailable", "errors": []}


class TestEnvelope:

    def test_unknown_route(self, client):
        resp = client.get("/api/admin/nothing-here")
        assert resp.status_code == 404
        assert resp.json["success"] is False

    def test_method_not_allowed(self, client):
        resp = client.put("/health")
        assert resp.status_code == 405
        assert resp.json["success"] is False

    def test_non_object_body(self, client, admin_headers):
        resp = client.post("/api/admin/tags", json=["sale"], headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json["message"] == "Invalid JSON payload"

    def test_validation_error_shape(self, client, admin_headers):
        resp = client.post("/api/admin/tags", json={"name": "x"}, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json["success"] is False
        assert resp.json["message"] == "Validation failed"
        assert resp.json["errors"] == ["slug is required"]

    def test_cors_for_configured_origin(self, app, client):
        origin = app.config["CORS_ORIGINS"][0]
        resp = client.get("/health", headers={"Origin": origin})
        assert resp.headers["Access-Control-Allow-Origin"] == origin

        resp = client.get("/health", headers={"Origin": "https://evil.example"})
        assert "Access-Control-Allow-Origin" not in resp.headers


class TestListQueryParams:

    def test_pagination_meta(self, client, admin_headers):
        for n in range(3):
            client.post("/api/admin/tags", json={"name": f"Tag {n}", "slug": f"tag-{n}"}, headers=admin_headers)

        resp = client.get("/api/admin/tags?page=2&limit=2&sort_by=name&sort_order=asc", headers=admin_headers)
        body = resp.json["data"]
        assert [t["slug"] for t in body["data"]] == ["tag-2"]
        assert body["meta"] == {
            "total": 3, "page": 2, "limit": 2, "total_pages": 2,
            "has_next_page": False, "has_previous_page": True,
        }

    def test_empty_page(self, client, admin_headers):
        body = client.get("/api/admin/tags", headers=admin_headers).json["data"]
        assert body["data"] == []
        assert body["meta"]["total_pages"] == 0
        assert body["meta"]["has_next_page"] is False

    def test_bad_params_collected(self, client, admin_headers):
        resp = client.get("/api/admin/tags?limit=101&page=0&sort_order=sideways", headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json["errors"] == [
            "page must not be less than 1",
            "limit must not be greater than 100",
            "sort_order must be one of: ASC, DESC",
        ]
