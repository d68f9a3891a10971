"""
HTTP route tests

Runs the FastAPI app in-process with TestClient against the fake upstream.

Run:
    pytest backend/tests/test_routes.py -v
"""

import pytest
from fastapi.testclient import TestClient

from conftest import image_size
from main import create_app


@pytest.fixture
def client(config, cache_provider, fetcher):
    app = create_app(config=config, cache_provider=cache_provider, fetcher=fetcher)
    with TestClient(app) as test_client:
        yield test_client


# ============================================
# 1. /resize
# ============================================

class TestResizeRoute:

    def test_resize_then_cache_hit(self, client, upstream):
        first = client.get("/resize/200x200/foo.jpg")
        second = client.get("/resize/200x200/foo.jpg")

        assert first.status_code == 200
        assert first.headers["content-type"] == "image/jpeg"
        assert first.headers["x-cache"] == "MISS"
        assert image_size(first.content) == ((200, 100), "JPEG")

        assert second.status_code == 200
        assert second.headers["x-cache"] == "HIT"
        assert second.content == first.content
        assert upstream.calls["foo.jpg"] == 1

    def test_nested_path(self, client, upstream, jpeg_bytes):
        upstream.add("recipes/2024/bar.jpg", jpeg_bytes, "image/jpeg")

        response = client.get("/resize/100x/recipes/2024/bar.jpg")

        assert response.status_code == 200
        assert upstream.calls["recipes/2024/bar.jpg"] == 1

    def test_malformed_size(self, client):
        response = client.get("/resize/abc/foo.jpg")

        assert response.status_code == 400
        assert "Malformed size" in response.json()["detail"]

    def test_upstream_missing(self, client):
        assert client.get("/resize/200x200/nope.jpg").status_code == 404

    def test_unsupported_content_type(self, client, upstream):
        upstream.add("page.html", b"<html></html>", "text/html")

        assert client.get("/resize/200x200/page.html").status_code == 415


# ============================================
# 2. /health-check and /purge
# ============================================

class TestCacheRoutes:

    def test_health_check_shape(self, client):
        response = client.get("/health-check")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["cache"] == [
            {"file_cache": {"hits": 0, "misses": 0}},
            {"lru_cache": {"hits": 0, "misses": 0, "size": 0}},
        ]
        assert body["used_space"] == "0.000000 Mb"

    def test_health_check_reflects_traffic(self, client):
        client.get("/resize/200x200/foo.jpg")
        client.get("/resize/200x200/foo.jpg")

        body = client.get("/health-check").json()
        file_cache = body["cache"][0]["file_cache"]
        lru_cache = body["cache"][1]["lru_cache"]

        # Absent keys are skipped without a lookup; the second request hits memory
        assert lru_cache == {"hits": 1, "misses": 0, "size": 2}
        assert file_cache == {"hits": 0, "misses": 0}
        assert float(body["used_space"].split()[0]) > 0

    def test_used_space_degrades_to_zero(self, client, cache_provider, monkeypatch):
        def unreadable():
            raise PermissionError("denied")

        monkeypatch.setattr(cache_provider.file_store, "used_bytes", unreadable)

        assert client.get("/health-check").json()["used_space"] == "0.000000 Mb"

    def test_purge(self, client, upstream):
        client.get("/resize/200x200/foo.jpg")

        response = client.get("/purge")

        assert response.status_code == 200
        assert response.text == "OK"
        assert client.get("/health-check").json()["cache"][1]["lru_cache"]["size"] == 0

        client.get("/resize/200x200/foo.jpg")
        assert upstream.calls["foo.jpg"] == 2


# ============================================
# 3. /warmup
# ============================================

class TestWarmupRoute:

    def test_warmup_populates_every_size(self, client, upstream):
        response = client.get("/warmup", params=[("path", "foo.jpg"), ("path", "missing.jpg")])

        body = response.json()
        # 200x200, 100x0 and the 50x50 placeholder, for two paths
        assert body["total"] == 6
        assert body["succeeded"] == 3
        assert body["success"] is False
        assert {f["path"] for f in body["failed"]} == {"missing.jpg"}

        hit = client.get("/resize/200x200/foo.jpg")
        assert hit.headers["x-cache"] == "HIT"

    def test_warmup_without_paths(self, client):
        body = client.get("/warmup").json()

        assert body == {"success": True, "total": 0, "succeeded": 0, "failed": []}

    def test_warmup_failure_entries_name_path_size_and_error(self, client, upstream):
        body = client.get("/warmup", params={"path": "missing.jpg"}).json()

        assert {f["size"] for f in body["failed"]} == {"200x200", "100x0", "50x50"}
        for failure in body["failed"]:
            assert set(failure) == {"path", "size", "error"}
            assert failure["error"]


# ============================================
# 4. OpenAPI schema
# ============================================

class TestResponseSchemas:

    def test_json_endpoints_declare_response_models(self, client):
        spec = client.get("/openapi.json").json()
        schemas = spec["components"]["schemas"]

        assert {"HealthCheckResponse", "WarmupResponse", "WarmupFailure"} <= set(schemas)
        assert set(schemas["HealthCheckResponse"]["properties"]) == {"status", "cache", "used_space"}

        for route, model in (("/health-check", "HealthCheckResponse"), ("/warmup", "WarmupResponse")):
            content = spec["paths"][route]["get"]["responses"]["200"]["content"]["application/json"]
            assert content["schema"]["$ref"] == f"#/components/schemas/{model}"
