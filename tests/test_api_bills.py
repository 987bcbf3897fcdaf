from datetime import datetime, timezone
from decimal import Decimal

from fastapi.testclient import TestClient

from societyhub.main import create_app
from societyhub.schemas.bills import BillCreate
from societyhub.storage.memory_provider import MemoryStorage

from conftest import make_settings


def _bill(client, **overrides):
    body = {
        "flatNumber": "B-205",
        "residentId": 1,
        "month": "2024-12",
        "previousReading": 84356,
        "currentReading": 87320,
        "maintenanceCharges": "1000",
    }
    body.update(overrides)
    resp = client.post("/api/bills", json=body)
    assert resp.status_code == 200, resp.text
    return resp.json()


def test_create_bill_computes_totals(client):
    bill = _bill(client)
    assert bill["waterUsage"] == 2964
    assert Decimal(bill["waterCharges"]) == Decimal("148.20")
    assert Decimal(bill["totalAmount"]) == Decimal("1148.20")
    assert bill["status"] == "pending"
    assert bill["paidAt"] is None
    assert bill["dueDate"].startswith("2025-01-15")


def test_client_total_is_ignored(client):
    bill = _bill(client, totalAmount="1.00", previousDues="250")
    assert Decimal(bill["presentDues"]) == Decimal("250.00")
    assert Decimal(bill["totalAmount"]) == Decimal("1398.20")


def test_bill_with_items(client):
    bill = _bill(client, items=[{"label": "Parking", "amount": "200"}, {"label": "Club", "amount": "150.50"}])
    assert Decimal(bill["totalAmount"]) == Decimal("1498.70")
    items = client.get(f"/api/bills/{bill['id']}/items").json()
    assert [i["label"] for i in items] == ["Parking", "Club"]
    assert all(i["billId"] == bill["id"] for i in items)


def test_invalid_bill_is_400(client):
    resp = client.post("/api/bills", json={"flatNumber": "B-205", "month": "December"})
    assert resp.status_code == 400
    resp = client.post("/api/bills", json={"flatNumber": "B-205", "month": "2024-12", "maintenanceCharges": "-5"})
    assert resp.status_code == 400


def test_missing_bill_is_404(client):
    assert client.get("/api/bills/999").json() == {"error": "Bill not found"}
    assert client.get("/api/bills/999/items").status_code == 404
    assert client.put("/api/bills/999/status", json={"status": "paid"}).status_code == 404


def test_mark_paid_sets_paid_at_and_persists(client):
    bill = _bill(client, status="unpaid")
    resp = client.put(f"/api/bills/{bill['id']}/status", json={"status": "paid"})
    assert resp.status_code == 200
    assert resp.json()["status"] == "paid"
    assert resp.json()["paidAt"] is not None

    fetched = client.get(f"/api/bills/{bill['id']}").json()
    assert fetched["status"] == "paid"
    assert fetched["paidAt"] == resp.json()["paidAt"]

    again = client.put(f"/api/bills/{bill['id']}/status", json={"status": "paid"}).json()
    assert again["paidAt"] == fetched["paidAt"]

    reverted = client.put(f"/api/bills/{bill['id']}/status", json={"status": "unpaid"}).json()
    assert reverted["paidAt"] is None


def test_bill_created_as_paid_has_paid_at(storage):
    with TestClient(create_app(make_settings(), storage=storage)) as client:
        bill = _bill(client, status="paid")
        assert bill["status"] == "paid"
        assert bill["paidAt"] is not None
        assert client.get(f"/api/bills/{bill['id']}").json()["paidAt"] == bill["paidAt"]

        again = client.put(f"/api/bills/{bill['id']}/status", json={"status": "paid"}).json()
        assert again["paidAt"] == bill["paidAt"]

        unpaid = _bill(client, flatNumber="A-101", status="unpaid")
        assert unpaid["paidAt"] is None


def test_resending_paid_fills_missing_paid_at(storage):
    # rows written before paidAt was stamped on creation
    bill = storage.create_bill(BillCreate(flat_number="B-205", month="2024-12"))
    storage.update_bill_status(bill.id, "paid", None)
    with TestClient(create_app(make_settings(), storage=storage)) as client:
        resp = client.put(f"/api/bills/{bill.id}/status", json={"status": "paid"})
        assert resp.status_code == 200
        assert resp.json()["paidAt"] is not None
    assert storage.get_bill(bill.id).paid_at is not None


def test_payment_amount_decides_status(client):
    bill = _bill(client)
    partial = client.put(f"/api/bills/{bill['id']}/status", json={"amount": "500", "paymentMethod": "upi"})
    assert partial.status_code == 200
    assert partial.json()["status"] == "partially_cleared"
    assert partial.json()["paidAt"] is None

    full = client.put(f"/api/bills/{bill['id']}/status", json={"amount": "1148.20", "paymentMethod": "cash"})
    assert full.json()["status"] == "paid"
    assert full.json()["paidAt"] is not None

    payments = [a for a in client.get("/api/activities").json() if a["type"] == "payment_received"]
    assert len(payments) == 2
    assert '"paymentMethod": "cash"' in payments[0]["metadata"]


def test_status_update_requires_status_or_amount(client):
    bill = _bill(client)
    assert client.put(f"/api/bills/{bill['id']}/status", json={}).status_code == 400
    assert client.put(f"/api/bills/{bill['id']}/status", json={"status": "settled"}).status_code == 400


def test_strict_transitions_conflict():
    app = create_app(make_settings(strict_status_transitions=True), storage=MemoryStorage())
    with TestClient(app) as client:
        bill = _bill(client)
        assert client.put(f"/api/bills/{bill['id']}/status", json={"status": "paid"}).status_code == 200
        resp = client.put(f"/api/bills/{bill['id']}/status", json={"status": "overdue"})
        assert resp.status_code == 409
        assert resp.json() == {"error": "Cannot move from paid to overdue"}
        assert client.get(f"/api/bills/{bill['id']}").json()["status"] == "paid"


def test_list_filters(client):
    current = datetime.now(timezone.utc).strftime("%Y-%m")
    a = _bill(client, flatNumber="A-101", month="2024-11")
    b = _bill(client, flatNumber="A-101", month="2024-12")
    c = _bill(client, flatNumber="B-205", month="2024-12", status="overdue")
    d = _bill(client, flatNumber="C-304", month=current)
    client.put(f"/api/bills/{a['id']}/status", json={"status": "paid"})

    ids = lambda resp: [x["id"] for x in resp.json()]
    assert ids(client.get("/api/bills", params={"month": "2024-12"})) == [b["id"], c["id"]]
    assert ids(client.get("/api/bills", params={"flatNumber": "A-101"})) == [a["id"], b["id"]]
    assert ids(client.get("/api/bills", params={"status": "pending"})) == [b["id"], c["id"], d["id"]]
    assert ids(client.get("/api/bills", params={"status": "overdue"})) == [c["id"]]
    assert ids(client.get("/api/bills", params={"month": "2024-12", "status": "pending", "flatNumber": "B-205"})) == [c["id"]]
    assert ids(client.get("/api/bills")) == [d["id"]]
    assert client.get("/api/bills", params={"month": "12-2024"}).status_code == 400


def test_calculate_preview(client):
    resp = client.post("/api/bills/calculate", json={
        "previousReading": 84356,
        "currentReading": 87320,
        "fixedCharges": ["1000"],
    })
    assert resp.status_code == 200
    body = resp.json()
    assert body["usage"] == 2964
    assert Decimal(body["waterCharge"]) == Decimal("148.20")
    assert Decimal(body["total"]) == Decimal("1148.20")
    assert body["warnings"] == []
    assert client.get("/api/bills", params={"month": "2024-12"}).json() == []


def test_calculate_rollback_warning(client):
    body = client.post("/api/bills/calculate", json={"previousReading": 500, "currentReading": 100}).json()
    assert body["usage"] == 0
    assert body["warnings"] == ["meter_rollback"]


def test_generate_monthly_bills(client):
    client.post("/api/billing-fields", json={
        "name": "maintenance", "label": "General Maintenance", "type": "fixed",
        "category": "maintenance", "defaultValue": "2500",
    })
    client.post("/api/billing-fields", json={
        "name": "lift", "label": "Lift Maintenance", "type": "fixed",
        "category": "maintenance", "defaultValue": "300",
    })
    payload = {
        "month": "2024-12",
        "readings": [
            {"flatNumber": "A-101", "previousReading": 84356, "currentReading": 87320},
            {"flatNumber": "B-205", "previousReading": 1000, "currentReading": 900},
        ],
    }
    resp = client.post("/api/bills/generate", json=payload)
    assert resp.status_code == 200
    body = resp.json()
    assert [b["flatNumber"] for b in body["created"]] == ["A-101", "B-205"]
    assert Decimal(body["created"][0]["totalAmount"]) == Decimal("2948.20")
    assert body["warnings"] == ["B-205: meter_rollback"]
    assert len(client.get(f"/api/bills/{body['created'][0]['id']}/items").json()) == 2

    again = client.post("/api/bills/generate", json=payload).json()
    assert again["created"] == []
    assert again["skipped"] == ["A-101", "B-205"]

    assert client.post("/api/bills/generate", json={"month": "2024-12", "readings": []}).status_code == 400


def test_bill_creation_logs_activity(client):
    bill = _bill(client)
    activity = client.get("/api/activities", params={"limit": 1}).json()[0]
    assert activity["type"] == "bill_generated"
    assert activity["title"] == "Bill generated for B-205"
    assert activity["userId"] == 1
    assert f'"billId": {bill["id"]}' in activity["metadata"]
