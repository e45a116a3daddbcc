import pytest

from strike_engine.infra import jwt as jwt_helper
from strike_engine.moderation.domain.models import ReportKind, ReportStatus

ADMIN_HEADERS = {"X-User-Id": "admin-1"}


def _action(report_id: str, action: str, **extra) -> dict:
	payload = {"reportId": report_id, "reportType": "user", "action": action}
	payload.update(extra)
	return payload


@pytest.mark.asyncio
async def test_take_action_success(api_client, wired):
	wired.add_user("seller")
	wired.add_report("r-1", target_id="seller", reason="scam")

	resp = await api_client.post(
		"/api/mod/v1/actions",
		json=_action("r-1", "temp_suspend", adminId="admin-1", suspensionDays=3),
		headers=ADMIN_HEADERS,
	)

	assert resp.status_code == 200
	body = resp.json()
	assert body["success"] is True
	assert body["action"] == "temp_suspend"
	assert body["severity"] == "high"
	assert body["newStrikeTotal"] == 3
	assert body["suspensionUntil"] is not None
	report = await wired.reports.get_report("r-1", ReportKind.USER)
	assert report.status is ReportStatus.RESOLVED


@pytest.mark.asyncio
async def test_take_action_requires_admin(api_client, wired):
	wired.add_user("member")
	wired.add_report("r-1", target_id="member", reason="spam")

	resp = await api_client.post("/api/mod/v1/actions", json=_action("r-1", "ban"), headers={"X-User-Id": "member"})

	assert resp.status_code == 403
	body = resp.json()
	assert body["success"] is False
	assert body["code"] == "unauthorized"
	assert wired.strikes.all() == []


@pytest.mark.asyncio
async def test_take_action_rejects_mismatched_admin_id(api_client, wired):
	wired.add_user("seller")
	wired.add_report("r-1", target_id="seller", reason="spam")

	resp = await api_client.post(
		"/api/mod/v1/actions",
		json=_action("r-1", "warn", adminId="someone-else"),
		headers=ADMIN_HEADERS,
	)

	assert resp.status_code == 403


@pytest.mark.asyncio
async def test_take_action_requires_authentication(api_client, wired):
	resp = await api_client.post("/api/mod/v1/actions", json=_action("r-1", "warn"))
	assert resp.status_code == 401
	assert resp.json()["code"] == "unauthenticated"


@pytest.mark.asyncio
async def test_take_action_accepts_bearer_token(api_client, wired):
	wired.add_user("seller")
	wired.add_report("r-1", target_id="seller", reason="spam")
	token = jwt_helper.encode_access({"sub": "admin-1"})

	resp = await api_client.post(
		"/api/mod/v1/actions",
		json=_action("r-1", "warn"),
		headers={"Authorization": f"Bearer {token}"},
	)

	assert resp.status_code == 200
	assert resp.json()["newStrikeTotal"] == 1


@pytest.mark.asyncio
async def test_take_action_unknown_report(api_client, wired):
	resp = await api_client.post("/api/mod/v1/actions", json=_action("missing", "warn"), headers=ADMIN_HEADERS)
	assert resp.status_code == 404
	assert resp.json()["code"] == "not_found"


@pytest.mark.asyncio
async def test_take_action_already_processed(api_client, wired):
	wired.add_user("seller")
	wired.add_report("r-1", target_id="seller", reason="spam")

	first = await api_client.post("/api/mod/v1/actions", json=_action("r-1", "dismiss"), headers=ADMIN_HEADERS)
	second = await api_client.post("/api/mod/v1/actions", json=_action("r-1", "warn"), headers=ADMIN_HEADERS)

	assert first.status_code == 200
	assert first.json()["newStrikeTotal"] is None
	assert second.status_code == 409
	assert second.json()["code"] == "already_processed"
	assert wired.strikes.all() == []


@pytest.mark.asyncio
async def test_take_action_invalid_suspension_days(api_client, wired):
	wired.add_user("seller")
	wired.add_report("r-1", target_id="seller", reason="spam")

	resp = await api_client.post(
		"/api/mod/v1/actions",
		json=_action("r-1", "temp_suspend", suspensionDays=0),
		headers=ADMIN_HEADERS,
	)

	assert resp.status_code == 400
	assert resp.json()["code"] == "invalid_input"


@pytest.mark.asyncio
async def test_take_action_invalid_payload(api_client, wired):
	resp = await api_client.post("/api/mod/v1/actions", json={"reportType": "user"}, headers=ADMIN_HEADERS)
	assert resp.status_code == 400
	assert resp.json()["code"] == "invalid_input"


@pytest.mark.asyncio
async def test_take_action_unknown_action(api_client, wired):
	wired.add_user("seller")
	wired.add_report("r-1", target_id="seller", reason="spam")

	resp = await api_client.post("/api/mod/v1/actions", json=_action("r-1", "shadowban"), headers=ADMIN_HEADERS)

	assert resp.status_code == 400
	assert resp.json()["error"] == "invalid_action"


@pytest.mark.asyncio
async def test_token_role_claims_do_not_grant_admin(api_client, wired):
	wired.add_user("member")
	wired.add_report("r-1", target_id="member", reason="spam")
	token = jwt_helper.encode_access({"sub": "member", "roles": ["admin"]})

	resp = await api_client.post(
		"/api/mod/v1/actions",
		json=_action("r-1", "ban"),
		headers={"Authorization": f"Bearer {token}", "X-User-Roles": "admin"},
	)

	assert resp.status_code == 403
	assert wired.strikes.all() == []
