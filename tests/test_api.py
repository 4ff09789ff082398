from __future__ import annotations

import io

import pytest

from src.atm_maintenance.atm_maintenance.container import build_container
from src.atm_maintenance.atm_maintenance.core.constants import LS_REPORTS_KEY
from src.atm_maintenance.atm_maintenance.core.enums import ReportCategory
from src.atm_maintenance.atm_maintenance.main import create_app
from src.atm_maintenance.atm_maintenance.reports.importer import IMPORT_COLUMNS
from src.atm_maintenance.atm_maintenance.storage.key_value import LocalKeyValueStore
from src.atm_maintenance.atm_maintenance.storage.seed import DEMO_PASSWORD

REPORT_PAYLOAD = {
    "atm_name": "فرع مدينة نصر",
    "atm_number": "ATM-3300",
    "serial_number": "SN-3300",
    "governorate": "القاهرة",
    "address": "عباس العقاد",
    "maintenance_date": "2025-02-01",
    "technical_report": "Installed new panel",
    "category": ["MODERN"],
}


@pytest.fixture()
def seeded(tmp_path):
    c = build_container(data_dir=str(tmp_path / "api-data"), poll_interval=0, auto_seed=True)
    c.start()
    yield c
    c.close()


@pytest.fixture()
def client(monkeypatch, seeded):
    monkeypatch.setenv("APP_ENV", "testing")
    app = create_app(seeded)
    return app.test_client()


def _login(client, username="admin", password=DEMO_PASSWORD):
    return client.post("/api/login", json={"username": username, "password": password})


def test_login_and_me(client):
    assert _login(client, password="wrong").status_code == 401

    resp = _login(client)
    assert resp.status_code == 200
    assert resp.get_json()["role"] == "admin"
    assert client.get("/api/me").get_json()["username"] == "admin"

    client.post("/api/logout")
    assert client.get("/api/me").status_code == 401


def test_reports_require_login(client):
    assert client.get("/api/reports").status_code == 401


def test_bank_user_cannot_modify_reports(client):
    _login(client, "bank")

    assert client.get("/api/reports").status_code == 200
    assert client.post("/api/reports", json=REPORT_PAYLOAD).status_code == 403
    assert client.get("/api/users").status_code == 403


def test_admin_creates_and_fetches_report(client):
    _login(client)

    resp = client.post("/api/reports", json=REPORT_PAYLOAD)
    assert resp.status_code == 201
    report_id = resp.get_json()["id"]

    detail = client.get(f"/api/reports/{report_id}").get_json()
    assert detail["category"] == [ReportCategory.MODERN.value]
    assert detail["maintenance_date"].startswith("2025-02-01")

    bad = client.post("/api/reports", json={**REPORT_PAYLOAD, "category": []})
    assert bad.status_code == 400
    assert "error" in bad.get_json()


def test_report_list_reveals_pages_and_resets_on_new_criteria(client, seeded, report_factory):
    seeded.report_service.bulk_add([report_factory(atm_name=f"ATM {i}") for i in range(25)])
    _login(client)

    first = client.get("/api/reports").get_json()
    assert (first["total"], len(first["items"]), first["has_more"]) == (27, 20, True)

    more = client.get("/api/reports?more=1").get_json()
    assert (len(more["items"]), more["has_more"]) == (27, False)

    filtered = client.get("/api/reports?governorate=القاهرة&search=atm").get_json()
    assert filtered["active_filters"] == 1
    assert len(filtered["items"]) == 20
    assert sorted(filtered["governorates"]) == sorted(["القاهرة", "الإسكندرية"])


def test_bulk_delete(client, seeded):
    _login(client)

    resp = client.post("/api/reports/delete", json={"ids": ["report-demo-1", "report-demo-2"]})

    assert resp.get_json() == {"deleted": 2}
    assert client.get("/api/reports").get_json()["total"] == 0


def test_import_upload_reports_rows(client):
    _login(client)
    csv_text = ",".join(IMPORT_COLUMNS) + "\nA,1,S1,القاهرة,Addr,2025-03-01,corrective,Fixed,\nB,2,S2,القاهرة,Addr,bad,modern,Fixed,\n"

    resp = client.post(
        "/api/reports/import",
        data={"file": (io.BytesIO(csv_text.encode("utf-8")), "reports.csv")},
        content_type="multipart/form-data",
    )

    body = resp.get_json()
    assert body["success_count"] == 1
    assert body["errors"] == ["صف 3: صيغة التاريخ 'bad' غير صالحة. استخدم YYYY-MM-DD."]


def test_export_and_template_are_workbooks(client):
    _login(client)

    export = client.get("/api/reports/export")
    template = client.get("/api/reports/import-template")

    assert export.status_code == 200
    assert export.mimetype.endswith("spreadsheetml.sheet")
    assert template.data[:2] == b"PK"


def test_analytics_and_overview(client):
    _login(client, "bank")

    analytics = client.get("/api/analytics?period=all").get_json()
    assert analytics["total"] == 2
    assert analytics["category_instances"] == 3

    assert client.get("/api/analytics?period=7d").status_code == 400
    assert client.get("/api/overview").get_json()["total"] == 2


def test_database_admin_in_local_mode(client):
    _login(client)

    assert client.get("/api/database/status").get_json() == {"connected": False, "project_id": None}
    assert client.post("/api/database/sync").status_code == 503
    assert client.post("/api/database/config", data="{oops", content_type="text/plain").status_code == 400


def test_register_then_duplicate(client):
    payload = {"name": "Branch", "username": "branch1", "password": "1234"}

    assert client.post("/api/register", json=payload).status_code == 201
    assert client.post("/api/register", json=payload).status_code == 400
    assert _login(client, "branch1", "1234").get_json()["role"] == "bank"


def test_unknown_route_is_404(client):
    assert client.get("/api/nothing-here").status_code == 404


def test_failed_login_message_is_arabic(client):
    resp = _login(client, password="wrong")

    assert resp.get_json() == {"error": "اسم المستخدم أو كلمة المرور غير صحيحة."}
    assert client.get("/api/reports").get_json() == {"error": "يرجى تسجيل الدخول للمتابعة"}


def test_app_boots_with_a_malformed_stored_report(tmp_path, monkeypatch, report_factory):
    data_dir = tmp_path / "mixed-data"
    LocalKeyValueStore(data_dir).set_json(
        LS_REPORTS_KEY,
        [{"id": "report-x", "atm_name": "A", "category": []}, {**report_factory(atm_name="B").to_record(), "id": "report-1"}],
    )
    c = build_container(data_dir=str(data_dir), poll_interval=0, auto_seed=True)
    c.start()
    monkeypatch.setenv("APP_ENV", "testing")
    client = create_app(c).test_client()

    _login(client)
    listing = client.get("/api/reports").get_json()

    assert listing["total"] == 1
    assert [item["atm_name"] for item in listing["items"]] == ["B"]
    c.close()
