import pytest


@pytest.mark.asyncio
async def test_liveness(api_client):
	resp = await api_client.get("/health")
	assert resp.status_code == 200
	assert resp.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_readiness_degraded_without_postgres(api_client):
	resp = await api_client.get("/health/ready")
	assert resp.status_code == 503
	body = resp.json()
	assert body["status"] == "degraded"
	assert body["checks"]["postgres"]["ok"] is False


@pytest.mark.asyncio
async def test_metrics_exposed(api_client, wired):
	wired.add_user("seller")
	wired.add_report("r-1", target_id="seller", reason="spam")
	await api_client.post(
		"/api/mod/v1/actions",
		json={"reportId": "r-1", "reportType": "user", "action": "warn"},
		headers={"X-User-Id": "admin-1"},
	)

	resp = await api_client.get("/metrics")

	assert resp.status_code == 200
	assert "mod_strikes_appended_total" in resp.text
	assert "mod_enforcement_total" in resp.text


@pytest.mark.asyncio
async def test_request_id_echoed(api_client):
	resp = await api_client.get("/health", headers={"X-Request-Id": "req-123"})
	assert resp.headers.get("X-Request-Id") == "req-123"
