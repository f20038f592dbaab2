"""
Application Wiring Tests
========================

Request ids, health, unknown routes and the error envelope for store errors
that escape the service layer.
"""

from sqlalchemy.exc import OperationalError

from citypulse.core.config import Settings
from citypulse.core.telemetry import _parse_headers
from citypulse.main import app


class TestRequestId:
    async def test_echoes_incoming_id(self, client):
        resp = await client.get("/api/health", headers={"X-Request-ID": "abc-123"})
        assert resp.status_code == 200
        assert resp.headers["X-Request-ID"] == "abc-123"

    async def test_generates_id_when_missing(self, client):
        resp = await client.get("/api/health")
        assert resp.json()["status"] == "ok"
        assert len(resp.headers["X-Request-ID"]) == 36


class TestErrorEnvelope:
    async def test_unknown_route(self, client):
        resp = await client.get("/api/does-not-exist")
        assert resp.status_code == 404
        assert resp.json() == {"success": False, "error": "Not Found"}

    async def test_unhandled_store_error_is_500(self, client):
        @app.get("/api/_boom")
        async def boom():
            raise OperationalError("SELECT 1", {}, Exception("connection refused"))

        try:
            resp = await client.get("/api/_boom")
        finally:
            app.router.routes.pop()
        assert resp.status_code == 500
        assert resp.json() == {"success": False, "error": "Request failed, please try again"}


class TestSettings:
    def test_cors_origins_split(self):
        settings = Settings(backend_cors_origins="https://a.example, https://b.example")
        assert settings.backend_cors_origins == ["https://a.example", "https://b.example"]

    def test_reporting_defaults(self):
        reporting = Settings().reporting
        assert (reporting.top_categories, reporting.top_wards) == (8, 10)
        assert (reporting.dashboard_metrics_days, reporting.analytics_metrics_days) == (30, 90)

    def test_otel_header_parsing(self):
        assert _parse_headers("api-key=abc, team = core") == {"api-key": "abc", "team": "core"}
        assert _parse_headers(None) is None
