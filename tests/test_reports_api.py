"""Tests for the report endpoints, end to end over the import endpoint."""

import pytest
from httpx import AsyncClient

from site_attendance.models.directory_user import DirectoryUser


def _record(record_id, start, end, user="12", site="recSite", status="close", **fields):
    data = {"start": start, "end": end, "user": user, "site": [site], "status": status}
    data.update(fields)
    return {"id": record_id, "fields": data}


async def _seed(async_client: AsyncClient):
    await async_client.post(
        "/api/v1/sites", json={"record_id": "recSite", "name": "Harbor Bridge", "client": "ACME"}
    )
    records = [
        # 2026-02-12 09:00-12:00 and 13:00-18:00 JST
        _record("s1", "2026-02-12T00:00:00Z", "2026-02-12T03:00:00Z", siteName="Harbor Bridge",
                **{"name (from user)": "Ito", "machineId": "MC-1", "workDescription": "Piling"}),
        _record("s2", "2026-02-12T04:00:00Z", "2026-02-12T09:00:00Z", siteName="Harbor Bridge",
                **{"name (from user)": "Ito", "machineId": "MC-1", "workDescription": "Piling"}),
        # 2026-02-13 09:00-18:00 JST single block
        _record("s3", "2026-02-13T00:00:00Z", "2026-02-13T09:00:00Z", siteName="Harbor Bridge",
                **{"name (from user)": "Ito", "machineId": "MC-1", "workDescription": "Piling"}),
        # other user, other site
        _record("s4", "2026-02-13T00:00:00Z", "2026-02-13T02:00:00Z", user="13", site="recElse",
                siteName="Elsewhere", **{"name (from user)": "Abe"}),
    ]
    resp = await async_client.post("/api/v1/sessions/import", json={"records": records})
    assert resp.status_code == 200
    return resp.json()


@pytest.mark.asyncio
async def test_import_reports_counts(async_client: AsyncClient):
    data = await _seed(async_client)
    assert data == {"success": True, "imported": 4, "skipped": []}


@pytest.mark.asyncio
async def test_import_skips_undatable_records(async_client: AsyncClient):
    resp = await async_client.post(
        "/api/v1/sessions/import",
        json={"records": [{"id": "nodate", "fields": {"status": "close"}}]},
    )
    assert resp.status_code == 200
    assert resp.json()["skipped"] == ["nodate"]


@pytest.mark.asyncio
async def test_monthly_attendance(async_client: AsyncClient):
    await _seed(async_client)
    resp = await async_client.get("/api/v1/reports/attendance", params={"month": "2026-02"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["month"] == "2026-02"
    assert len(data["days"]) == 28
    assert len(data["day_totals"]) == 28
    assert [row["name"] for row in data["rows"]] == ["Abe", "Ito"]

    ito = data["rows"][1]
    assert ito["daily"]["2026-02-12"]["minutes_rounded"] == 480
    assert ito["daily"]["2026-02-13"]["minutes_rounded"] == 480
    assert ito["totals"]["work_days"] == 2
    assert ito["totals"]["hours"] == 16.0


@pytest.mark.asyncio
async def test_monthly_attendance_site_filter(async_client: AsyncClient):
    await _seed(async_client)
    resp = await async_client.get(
        "/api/v1/reports/attendance", params={"month": "2026-02", "site_id": "recSite"}
    )
    assert resp.status_code == 200
    assert [row["name"] for row in resp.json()["rows"]] == ["Ito"]


@pytest.mark.asyncio
async def test_monthly_attendance_invalid_month(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/reports/attendance", params={"month": "2026-13"})
    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert body["code"] == "INVALID_MONTH"


@pytest.mark.asyncio
async def test_monthly_attendance_unknown_site(async_client: AsyncClient):
    resp = await async_client.get(
        "/api/v1/reports/attendance", params={"month": "2026-02", "site_id": "recMissing"}
    )
    assert resp.status_code == 404
    assert resp.json()["code"] == "SITE_NOT_FOUND"


@pytest.mark.asyncio
async def test_day_detail_with_exempt_user(async_client: AsyncClient, db_session):
    await _seed(async_client)
    db_session.add(DirectoryUser(record_id="recIto", user_id=12, name="Ito", exclude_break_deduction=True))
    await db_session.commit()

    resp = await async_client.get(
        "/api/v1/reports/attendance/day", params={"date": "2026-02-13", "user_id": 12}
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["user"] == {"user_id": 12, "name": "Ito"}
    assert [s["session_id"] for s in data["sessions"]] == ["s3"]
    calc = data["calculation"]
    assert calc["break_policy_applied"] is False
    assert calc["deduct_break_minutes"] == 0
    assert calc["rounded_minutes"] == 540


@pytest.mark.asyncio
async def test_day_detail_rejects_bad_date(async_client: AsyncClient):
    resp = await async_client.get(
        "/api/v1/reports/attendance/day", params={"date": "2026-02-30", "user_id": 12}
    )
    assert resp.status_code == 400
    assert resp.json()["code"] == "INVALID_DATE"


@pytest.mark.asyncio
async def test_day_detail_requires_user(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/reports/attendance/day", params={"date": "2026-02-13"})
    assert resp.status_code == 422
    assert resp.json()["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_site_report(async_client: AsyncClient):
    await _seed(async_client)
    resp = await async_client.get(
        "/api/v1/reports/sites", params={"year": 2026, "month": 2, "site_id": "recSite"}
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["site"] == {"id": "recSite", "name": "Harbor Bridge", "client": "ACME"}
    assert len(data["columns"]) == 1
    assert data["columns"][0]["machine_id"] == "MC-1"
    feb12 = next(d for d in data["days"] if d["date"] == "2026-02-12")
    assert feb12["values"] == [8.0]
    assert data["grand_total"] == 17.0


@pytest.mark.asyncio
async def test_site_report_machine_filter_excludes_everything(async_client: AsyncClient):
    await _seed(async_client)
    resp = await async_client.get(
        "/api/v1/reports/sites",
        params={"year": 2026, "month": 2, "site_id": "recSite", "machine_ids": "MC-9, MC-10"},
    )
    assert resp.status_code == 200
    assert resp.json()["columns"] == []


@pytest.mark.asyncio
async def test_user_days(async_client: AsyncClient):
    await _seed(async_client)
    resp = await async_client.get("/api/v1/reports/user-days", params={"user_id": 12, "month": "2026-02"})
    assert resp.status_code == 200
    data = resp.json()
    assert [g["date"] for g in data["groups"]] == ["2026-02-12", "2026-02-13"]
    feb13 = data["groups"][1]
    # 540 minus the 90 minute break on the only item
    assert feb13["total_working_minutes"] == 450
    assert feb13["total_overtime_minutes"] == 0
    assert feb13["items"][0]["client_name"] == "ACME"


@pytest.mark.asyncio
async def test_user_days_requires_identity(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/reports/user-days")
    assert resp.status_code == 400
    assert resp.json()["code"] == "INVALID_PARAMS"


@pytest.mark.asyncio
async def test_csv_exports(async_client: AsyncClient):
    await _seed(async_client)
    resp = await async_client.get("/api/v1/reports/attendance/csv", params={"month": "2026-02"})
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    lines = resp.text.strip().splitlines()
    assert lines[0].startswith("user_id,name,2026-02-01")
    assert lines[-1].startswith(",total")

    resp = await async_client.get(
        "/api/v1/reports/sites/csv", params={"year": 2026, "month": 2, "site_id": "recSite"}
    )
    assert resp.status_code == 200
    assert "attachment" in resp.headers["content-disposition"]
    assert resp.text.splitlines()[0] == "date,dow,Ito / Piling / MC-1,total"


@pytest.mark.asyncio
async def test_user_days_by_name(async_client: AsyncClient):
    await _seed(async_client)
    resp = await async_client.get("/api/v1/reports/user-days", params={"user_name": " ito", "month": "2026-02"})
    assert resp.status_code == 200
    groups = resp.json()["groups"]
    assert [g["date"] for g in groups] == ["2026-02-12", "2026-02-13"]
    assert {item["record_id"] for g in groups for item in g["items"]} == {"s1", "s2", "s3"}
