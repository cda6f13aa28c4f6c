"""
Unit tests for the Updater service routes.
"""

import pytest
from unittest.mock import AsyncMock, patch
from fastapi.testclient import TestClient

from service_updater.app.main import UpdaterService, create_app
from shared.config import get_config
from shared.test_helpers import FakeOrigin, ManualClock


ORIGIN_URL = "https://origin.example.com"


class TestUpdaterService:
    """Test cases for UpdaterService."""

    @pytest.fixture
    def origin(self):
        return FakeOrigin()

    @pytest.fixture
    def clock(self):
        return ManualClock()

    @pytest.fixture
    def config(self):
        return get_config("updater", 8000, host_url=ORIGIN_URL, cache_backend="memory", cache_chunk_size=8)

    @pytest.fixture
    def service(self, config, origin, clock):
        return UpdaterService(config, transport=origin.transport, clock=clock)

    @pytest.fixture
    def client(self, service):
        return TestClient(service.app)

    def test_get_content(self, client, origin):
        origin.set_content(3, "QQ==", "Zg==")

        response = client.get("/get")

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/json"
        assert response.json() == {"code": 0, "msg": "OK", "data": {"v": 3, "c": "QQ==", "s": "Zg=="}}

    def test_get_version_served_from_cache(self, client, origin):
        origin.set_content(3, "QQ==", "Zg==")
        client.get("/get")

        response = client.get("/version")

        assert response.json() == {"code": 0, "msg": "OK", "data": {"v": 3}}
        assert origin.calls == ["/get"]

    @pytest.mark.parametrize("method", ["POST", "PUT", "DELETE", "PATCH"])
    def test_feed_routes_accept_any_method(self, client, origin, method):
        origin.set_content(3, "QQ==", "Zg==")

        content = client.request(method, "/get")
        version = client.request(method, "/version")

        assert content.json() == {"code": 0, "msg": "OK", "data": {"v": 3, "c": "QQ==", "s": "Zg=="}}
        assert version.json() == {"code": 0, "msg": "OK", "data": {"v": 3}}

    def test_no_data(self, client, origin):
        origin.set_status("/get", 503)

        assert client.get("/version").json() == {"code": 1, "msg": "No data"}
        assert client.get("/get").json() == {"code": 1, "msg": "No data"}

    def test_origin_error_is_rendered_in_envelope(self, client, origin):
        origin.set_error("/get", "upstream down")

        response = client.get("/get")

        assert response.status_code == 200
        assert response.json() == {"code": -1, "msg": "upstream down"}

    def test_invalid_origin_data(self, client, origin):
        origin.routes["/get"] = (200, {"code": 0, "msg": "OK", "data": {"v": 3, "c": "QQ=="}})

        assert client.get("/get").json() == {"code": -1, "msg": "Invalid data"}

    def test_unexpected_error_is_generic(self, service, origin):
        client = TestClient(service.app, raise_server_exceptions=False)

        with patch.object(service.engine, 'get_version', new_callable=AsyncMock) as mock_get_version:
            mock_get_version.side_effect = RuntimeError("secret detail")

            response = client.get("/version")

        assert response.status_code == 200
        assert response.json() == {"code": -1, "msg": "Internal server error"}

    @pytest.mark.parametrize("path", ["/", "/nope", "/api/v1/get"])
    def test_unknown_path(self, client, origin, path):
        response = client.get(path)

        assert response.status_code == 200
        assert response.json() == {"code": -1, "msg": "API Not found", "data": {"pathname": path}}
        assert origin.calls == []

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "updater"
        assert data["status"] == "ok"
        assert data["dependencies"] == {"cache": "ok"}

    def test_health_without_cache(self, origin):
        config = get_config("updater", 8000, host_url=ORIGIN_URL, cache_backend="none")
        client = TestClient(create_app(config, transport=origin.transport))

        assert client.get("/health").json()["dependencies"] == {"cache": "disabled"}

    def test_without_cache_every_request_reaches_origin(self, origin):
        config = get_config("updater", 8000, host_url=ORIGIN_URL, cache_backend="none")
        client = TestClient(create_app(config, transport=origin.transport))
        origin.set_content(4, "QQ==", "Zg==")

        client.get("/version")
        client.get("/version")

        assert origin.calls == ["/get", "/get"]

    def test_metrics_endpoint(self, client, origin):
        origin.set_content(3, "QQ==", "Zg==")
        client.get("/get")

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "cache_decisions_total" in response.text
        assert "origin_requests_total" in response.text

    def test_request_id_is_echoed(self, client, origin):
        origin.set_content(3, "QQ==", "Zg==")

        response = client.get("/version", headers={"X-Request-ID": "req-123"})

        assert response.headers["X-Request-ID"] == "req-123"

    def test_request_id_is_generated(self, client):
        response = client.get("/health")

        assert response.headers["X-Request-ID"]

    def test_service_wiring(self, service, config):
        assert service.env.host_url == ORIGIN_URL
        assert service.env.cache is not None
        assert service.engine.timeout_ms == config.cache_timeout_ms
        assert service.app.state.updater_service is service
