"""
Integration tests for the update feed through the HTTP layer.
"""

import base64

import pytest
from fastapi.testclient import TestClient

from service_updater.app.main import UpdaterService
from shared.config import get_config
from shared.test_helpers import FakeOrigin, ManualClock


ORIGIN_URL = "https://origin.example.com"


class TestUpdateFlow:
    """End-to-end freshness lifecycle against a size-limited store."""

    @pytest.fixture
    def origin(self):
        return FakeOrigin()

    @pytest.fixture
    def clock(self):
        return ManualClock()

    @pytest.fixture
    def service(self, origin, clock):
        config = get_config(
            "updater",
            8000,
            host_url=ORIGIN_URL,
            cache_backend="memory",
            cache_max_value_size=64,
            cache_timeout_ms=300000,
        )
        return UpdaterService(config, transport=origin.transport, clock=clock)

    @pytest.fixture
    def client(self, service):
        return TestClient(service.app)

    def test_release_lifecycle(self, client, origin, clock):
        """Populate, serve fresh, confirm stale, then pick up a new release."""
        origin.set_content(3, "QQ==", "Zg==")
        origin.set_version(3)

        assert client.get("/get").json()["data"] == {"v": 3, "c": "QQ==", "s": "Zg=="}
        assert origin.calls == ["/get"]

        clock.advance(10000)
        assert client.get("/version").json()["data"] == {"v": 3}
        assert origin.calls == ["/get"]

        clock.advance(400000)
        assert client.get("/get").json()["data"] == {"v": 3, "c": "QQ==", "s": "Zg=="}
        assert origin.calls == ["/get", "/version"]

        origin.set_version(4)
        origin.set_content(4, "Qg==", "aA==")
        clock.advance(400000)
        assert client.get("/version").json()["data"] == {"v": 4}
        assert origin.calls == ["/get", "/version", "/version", "/get"]

        clock.advance(1000)
        assert client.get("/get").json()["data"] == {"v": 4, "c": "Qg==", "s": "aA=="}
        assert origin.calls == ["/get", "/version", "/version", "/get"]

    def test_large_payload_is_chunked_and_served_intact(self, client, service, origin, clock):
        payload = base64.b64encode(bytes(range(256)) * 4).decode("ascii")
        signature = base64.b64encode(b"s" * 100).decode("ascii")
        origin.set_content(7, payload, signature)

        client.get("/get")
        clock.advance(1000)
        body = client.get("/get").json()

        assert body["data"] == {"v": 7, "c": payload, "s": signature}
        assert origin.calls == ["/get"]
        assert len([k for k in service.kv_store.keys() if k.startswith("content_c")]) > 1

    def test_origin_outage_with_stale_cache(self, client, origin, clock):
        """Failed confirmation and failed refetch surface the refetch error."""
        origin.set_content(3, "QQ==", "Zg==")
        client.get("/get")

        origin.set_error("/version", "maintenance")
        origin.set_error("/get", "upstream down")
        clock.advance(400000)

        assert client.get("/get").json() == {"code": -1, "msg": "upstream down"}
        assert origin.calls == ["/get", "/version", "/get"]

    def test_origin_outage_without_cache(self, client, origin):
        origin.set_error("/get", "upstream down")

        assert client.get("/get").json() == {"code": -1, "msg": "upstream down"}
