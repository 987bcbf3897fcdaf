from decimal import Decimal

from fastapi.testclient import TestClient

from societyhub.main import create_app
from societyhub.storage.memory_provider import MemoryStorage

from conftest import make_settings, make_sqlite_storage


# ----- Notices -----
def test_notice_crud(client):
    resp = client.post("/api/notices", json={
        "title": "Water supply interruption",
        "description": "Sunday 10 AM to 2 PM",
        "adminId": 1,
        "isImportant": True,
    })
    assert resp.status_code == 201
    notice = resp.json()
    assert notice["isImportant"] is True

    activity = client.get("/api/activities").json()[0]
    assert activity["type"] == "notice_published"
    assert activity["description"] == "Water supply interruption"

    updated = client.put(f"/api/notices/{notice['id']}", json={"isImportant": False}).json()
    assert updated["isImportant"] is False
    assert updated["title"] == notice["title"]

    assert client.get(f"/api/notices/{notice['id']}").status_code == 200
    assert client.delete(f"/api/notices/{notice['id']}").json() == {"success": True}
    assert client.get(f"/api/notices/{notice['id']}").json() == {"error": "Notice not found"}
    assert client.delete(f"/api/notices/{notice['id']}").status_code == 404


def test_notices_newest_first(client):
    ids = [client.post("/api/notices", json={"title": t, "description": "d", "adminId": 1}).json()["id"] for t in "abc"]
    assert [n["id"] for n in client.get("/api/notices").json()] == list(reversed(ids))


def test_notice_requires_title(client):
    assert client.post("/api/notices", json={"description": "d", "adminId": 1}).status_code == 400


# ----- Billing fields -----
def test_billing_field_crud(client):
    resp = client.post("/api/billing-fields", json={
        "name": "water",
        "label": "Water Charges",
        "type": "calculated",
        "category": "utilities",
        "rate": "0.05",
        "unit": "liters",
        "formula": "(current - previous) * rate",
        "sortOrder": 2,
    })
    assert resp.status_code == 200
    field = resp.json()
    assert Decimal(field["rate"]) == Decimal("0.05")
    assert field["isActive"] is True

    client.post("/api/billing-fields", json={
        "name": "maintenance", "label": "General Maintenance", "type": "fixed",
        "category": "maintenance", "defaultValue": "2500", "sortOrder": 1,
    })
    assert [f["name"] for f in client.get("/api/billing-fields").json()] == ["maintenance", "water"]

    updated = client.put(f"/api/billing-fields/{field['id']}", json={"isActive": False, "label": "Water"}).json()
    assert updated["isActive"] is False
    assert updated["label"] == "Water"
    assert updated["name"] == "water"

    assert client.delete(f"/api/billing-fields/{field['id']}").json() == {"success": True}
    assert client.put(f"/api/billing-fields/{field['id']}", json={"label": "x"}).json() == {"error": "Billing field not found"}
    assert client.delete(f"/api/billing-fields/{field['id']}").status_code == 404


def test_billing_field_type_validated(client):
    resp = client.post("/api/billing-fields", json={"name": "x", "label": "X", "type": "formula", "category": "misc"})
    assert resp.status_code == 400


# ----- Dashboard -----
def test_dashboard_stats(client):
    users = [
        {"phoneNumber": "+919800000001", "name": "Admin", "flatNumber": "A-101", "role": "admin"},
        {"phoneNumber": "+919800000002", "name": "Priya", "flatNumber": "B-205"},
        {"phoneNumber": "+919800000003", "name": "Co-owner", "flatNumber": "B-205"},
        {"phoneNumber": "+919800000004", "name": "Guard", "flatNumber": "GATE", "role": "watchman"},
    ]
    for u in users:
        client.post("/api/users", json=u)
    bills = [
        client.post("/api/bills", json={"flatNumber": f, "month": "2024-12", "maintenanceCharges": amount}).json()
        for f, amount in (("A-101", "1000"), ("B-205", "1500.50"), ("C-304", "2000"))
    ]
    client.put(f"/api/bills/{bills[0]['id']}/status", json={"status": "paid"})
    complaint = {"residentId": 2, "flatNumber": "B-205", "type": "x", "subject": "s", "description": "d"}
    c1 = client.post("/api/complaints", json=complaint).json()
    client.post("/api/complaints", json=complaint)
    client.post("/api/complaints", json=dict(complaint, status="in_progress"))
    client.put(f"/api/complaints/{c1['id']}/status", json={"status": "resolved"})

    stats = client.get("/api/dashboard/stats").json()
    assert stats["totalFlats"] == 2
    assert Decimal(stats["pendingDues"]) == Decimal("3500.50")
    assert stats["openComplaints"] == 1
    assert stats["totalComplaints"] == 3
    assert stats["resolvedComplaints"] == 1
    assert stats["paidBills"] == 1
    assert Decimal(stats["collectedAmount"]) == Decimal("1000.00")


# ----- Activities -----
def test_activities_limit(client):
    for t in "abcde":
        client.post("/api/notices", json={"title": t, "description": "d", "adminId": 1})
    assert [a["description"] for a in client.get("/api/activities", params={"limit": 3}).json()] == ["e", "d", "c"]
    assert len(client.get("/api/activities").json()) == 5
    assert client.get("/api/activities", params={"limit": 0}).status_code == 400


class BrokenActivityStorage(MemoryStorage):
    def create_activity(self, data):
        raise RuntimeError("activity table unavailable")


class BrokenReadStorage(MemoryStorage):
    def get_all_notices(self):
        raise RuntimeError("connection reset")


def test_activity_failure_does_not_fail_request():
    app = create_app(make_settings(), storage=BrokenActivityStorage())
    with TestClient(app) as client:
        resp = client.post("/api/notices", json={"title": "t", "description": "d", "adminId": 1})
        assert resp.status_code == 201
        assert len(client.get("/api/notices").json()) == 1


def test_unexpected_error_is_500():
    app = create_app(make_settings(), storage=BrokenReadStorage())
    with TestClient(app, raise_server_exceptions=False) as client:
        resp = client.get("/api/notices")
        assert resp.status_code == 500
        assert resp.json() == {"error": "Internal server error"}


# ----- App -----
def test_healthz_reports_backend(client):
    assert client.get("/healthz").json() == {"status": "ok", "storage": "memory"}


def test_request_id_echoed(client):
    resp = client.get("/healthz", headers={"X-Request-ID": "abc-123"})
    assert resp.headers["X-Request-ID"] == "abc-123"
    assert client.get("/healthz").headers["X-Request-ID"]


def test_unknown_route_uses_error_envelope(client):
    resp = client.get("/api/nowhere")
    assert resp.status_code == 404
    assert resp.json() == {"error": "Not Found"}


def test_rate_limit():
    app = create_app(make_settings(rate_limit="2/minute"), storage=MemoryStorage())
    with TestClient(app) as client:
        assert client.get("/api/notices").status_code == 200
        assert client.get("/api/notices").status_code == 200
        assert client.get("/api/notices").status_code == 429


def test_app_over_database_storage():
    app = create_app(make_settings(storage_backend="database"), storage=make_sqlite_storage())
    with TestClient(app) as client:
        assert client.get("/healthz").json()["storage"] == "database"
        user = client.post("/api/users", json={"phoneNumber": "+919800000001", "name": "P", "flatNumber": "B-205"}).json()
        bill = client.post("/api/bills", json={
            "flatNumber": "B-205", "residentId": user["id"], "month": "2024-12",
            "previousReading": 84356, "currentReading": 87320, "maintenanceCharges": "1000",
        }).json()
        assert Decimal(bill["totalAmount"]) == Decimal("1148.20")
        paid = client.put(f"/api/bills/{bill['id']}/status", json={"status": "paid"}).json()
        assert paid["paidAt"] is not None
        assert client.get(f"/api/bills/{bill['id']}").json()["status"] == "paid"
        assert client.post("/api/users", json={"phoneNumber": "+919800000001", "name": "Q", "flatNumber": "C-1"}).status_code == 409
