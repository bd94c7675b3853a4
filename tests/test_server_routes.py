from fastapi.testclient import TestClient

from mesc import server
from mesc.metrics import MAX_RECENT_DURATIONS, MetricsRecorder, default_metrics
from mesc.rate_limiter import PerKeyRateLimiter
from mesc.server import _log_tool_result, app


def test_health_endpoint():
    client = TestClient(app)
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}
    assert resp.headers.get("X-Request-ID")


def test_metrics_endpoint_counts_requests():
    client = TestClient(app)
    client.get("/health")
    data = client.get("/metrics").json()
    assert data["requests"] >= 2
    assert len(data["recent_request_durations_ms"]) >= 1


def test_status_route_disabled():
    client = TestClient(app)
    resp = client.get("/tools/status")
    assert resp.json()["enabled"] is False


def test_endpoints_route(mesc_path_env):
    client = TestClient(app)
    data = client.get("/tools/endpoints", params={"chain_id": "1"}).json()
    assert data["count"] == 2
    assert {item["url"] for item in data["endpoints"]} == {"********"}
    revealed = client.get("/tools/endpoints", params={"name": "anvil", "reveal": "true"}).json()
    assert revealed["endpoints"][0]["url"] == "http://127.0.0.1:8546"
    assert default_metrics.snapshot()["tool_success"]["list_endpoints"] == 2


def test_endpoint_route(mesc_path_env):
    client = TestClient(app)
    assert client.get("/tools/endpoint").json()["name"] == "local_ethereum"
    data = client.get("/tools/endpoint", params={"query": "ethereum", "profile": "xyz_tool"}).json()
    assert data["name"] == "alchemy_ethereum"
    missing = client.get("/tools/endpoint", params={"query": "nowhere"}).json()
    assert missing == {"error": "Endpoint not found."}
    assert default_metrics.snapshot()["tool_error"]["get_endpoint"] == 1


def test_defaults_and_metadata_routes(mesc_path_env):
    client = TestClient(app)
    assert client.get("/tools/defaults").json()["defaultEndpoint"] == "local_ethereum"
    assert client.get("/tools/metadata", params={"profile": "xyz_tool"}).json() == {
        "metadata": {"creator": "tests", "api": "v2"}
    }


def test_validate_chain_id_route():
    client = TestClient(app)
    assert client.get("/tools/validate_chain_id/0x1").json()["chainId"] == "1"
    assert client.get("/tools/validate_chain_id/abc").json() == {"isValid": False}


def test_ping_route(mesc_path_env, monkeypatch):
    async def fake_ping(**kwargs):
        assert kwargs["chain_id"] == "10"
        assert kwargs["limit"] == 2
        return {"count": 0, "results": []}

    monkeypatch.setattr(server, "ping_endpoints", fake_ping)
    client = TestClient(app)
    resp = client.get("/tools/ping", params={"chain_id": "10", "limit": 2})
    assert resp.json() == {"count": 0, "results": []}


def test_rate_limit_returns_429(monkeypatch):
    monkeypatch.setattr(server, "rate_limiter", PerKeyRateLimiter(rate_per_sec=0.001, burst=1))
    client = TestClient(app)
    assert client.get("/tools/validate_chain_id/1").status_code == 200
    resp = client.get("/tools/validate_chain_id/1")
    assert resp.status_code == 429
    assert resp.json()["error"]["code"] == 429
    assert default_metrics.snapshot()["rate_limited"] == 1


def test_log_tool_result_handles_non_dict():
    _log_tool_result("dummy", {"ok": True})
    _log_tool_result("dummy", {"error": "fail"})
    _log_tool_result("dummy", None)  # type: ignore[arg-type]
    snapshot = default_metrics.snapshot()
    assert snapshot["tool_success"]["dummy"] == 2
    assert snapshot["tool_error"]["dummy"] == 1


def test_defaults_route_malformed_endpoint_override(mesc_path_env, monkeypatch):
    monkeypatch.setenv("MESC_ENDPOINTS", "localhost:abc")
    client = TestClient(app)
    resp = client.get("/tools/defaults")
    assert resp.status_code == 200
    assert resp.json() == {"error": "Invalid MESC override."}
    metadata = client.get("/tools/metadata")
    assert metadata.status_code == 200
    assert metadata.json() == {"error": "Invalid MESC override."}


def test_recent_durations_are_bounded():
    recorder = MetricsRecorder()
    for index in range(MAX_RECENT_DURATIONS + 25):
        recorder.record_duration(f"req-{index}", float(index))
    durations = recorder.snapshot()["recent_request_durations_ms"]
    assert len(durations) == MAX_RECENT_DURATIONS
    assert "req-0" not in durations
    assert durations[f"req-{MAX_RECENT_DURATIONS + 24}"] == float(MAX_RECENT_DURATIONS + 24)


def test_metrics_snapshot_stays_bounded_under_traffic():
    client = TestClient(app)
    for _ in range(MAX_RECENT_DURATIONS + 10):
        client.get("/health")
    data = client.get("/metrics").json()
    assert data["requests"] >= MAX_RECENT_DURATIONS + 10
    assert len(data["recent_request_durations_ms"]) <= MAX_RECENT_DURATIONS
