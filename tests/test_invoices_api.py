from datetime import date, timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from backend.app.db.base import Base
from backend.app.db.session import SessionLocal, engine
from backend.app.main import app
from backend.app.models.invoice import Invoice


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


def register_and_login(client: TestClient, email: str, password: str) -> str:
    client.post("/auth/register", json={"email": email, "password": password})
    resp = client.post("/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200
    return resp.json()["access_token"]


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def create_client(client: TestClient, token: str, name: str = "Empresa ABC S.A.") -> int:
    resp = client.post("/clients/", json={"name": name, "email": "billing@example.com"}, headers=auth(token))
    assert resp.status_code == 201
    return resp.json()["id"]


def invoice_payload(client_id: int, **overrides) -> dict:
    payload = {
        "client_id": client_id,
        "items": [
            {"description": "Consulting", "quantity": 2, "unit_price": 100, "tax_rate": 21},
            {"description": "Support", "quantity": 1, "unit_price": 50, "tax_rate": 10},
        ],
    }
    payload.update(overrides)
    return payload


def test_create_invoice_returns_totals_and_items():
    client = TestClient(app)
    token = register_and_login(client, "inv1@example.com", "secret")
    client_id = create_client(client, token)

    resp = client.post("/invoices/", json=invoice_payload(client_id), headers=auth(token))
    assert resp.status_code == 201
    data = resp.json()
    assert Decimal(data["subtotal"]) == Decimal("250.00")
    assert Decimal(data["tax_amount"]) == Decimal("47.00")
    assert Decimal(data["total_amount"]) == Decimal("297.00")
    assert len(data["items"]) == 2
    assert data["status"] == "draft"
    assert data["display_status"] == "draft"
    assert data["invoice_number"].startswith("FAC-")


def test_create_invoice_without_items_returns_400_and_persists_nothing():
    client = TestClient(app)
    token = register_and_login(client, "inv2@example.com", "secret")
    client_id = create_client(client, token)

    resp = client.post("/invoices/", json=invoice_payload(client_id, items=[]), headers=auth(token))
    assert resp.status_code == 400
    db = SessionLocal()
    try:
        assert db.query(Invoice).count() == 0
    finally:
        db.close()


def test_create_invoice_with_invalid_line_returns_400():
    client = TestClient(app)
    token = register_and_login(client, "inv3@example.com", "secret")
    client_id = create_client(client, token)
    items = [{"description": "Consulting", "quantity": 0, "unit_price": 100, "tax_rate": 21}]

    resp = client.post("/invoices/", json=invoice_payload(client_id, items=items), headers=auth(token))
    assert resp.status_code == 400
    assert "quantity" in resp.json()["detail"]


def test_invoices_are_owner_scoped():
    client = TestClient(app)
    token_a = register_and_login(client, "inv4a@example.com", "secret")
    token_b = register_and_login(client, "inv4b@example.com", "secret")
    client_a = create_client(client, token_a)
    inv_a = client.post("/invoices/", json=invoice_payload(client_a), headers=auth(token_a)).json()

    resp_b = client.get("/invoices/", headers=auth(token_b))
    assert resp_b.status_code == 200
    assert resp_b.json() == []
    assert client.get(f"/invoices/{inv_a['id']}", headers=auth(token_b)).status_code == 404
    assert client.delete(f"/invoices/{inv_a['id']}", headers=auth(token_b)).status_code == 404

    # Another owner cannot bill a client they do not own
    resp = client.post("/invoices/", json=invoice_payload(client_a), headers=auth(token_b))
    assert resp.status_code == 400


def test_sent_invoice_past_due_is_listed_as_overdue_without_changing_status():
    client = TestClient(app)
    token = register_and_login(client, "inv5@example.com", "secret")
    client_id = create_client(client, token)
    past_issue = (date.today() - timedelta(days=60)).isoformat()
    past_due = (date.today() - timedelta(days=30)).isoformat()

    created = client.post(
        "/invoices/",
        json=invoice_payload(client_id, status="sent", issue_date=past_issue, due_date=past_due),
        headers=auth(token),
    ).json()

    listed = client.get("/invoices/", params={"status": "overdue"}, headers=auth(token)).json()
    assert [inv["id"] for inv in listed] == [created["id"]]
    assert listed[0]["display_status"] == "overdue"
    assert listed[0]["status"] == "sent"

    assert client.get("/invoices/", params={"status": "sent"}, headers=auth(token)).json() == []


def test_update_invoice_replaces_items():
    client = TestClient(app)
    token = register_and_login(client, "inv6@example.com", "secret")
    client_id = create_client(client, token)
    created = client.post("/invoices/", json=invoice_payload(client_id), headers=auth(token)).json()

    new_items = [{"description": "Audit", "quantity": 1, "unit_price": 1000, "tax_rate": 21}]
    resp = client.put(
        f"/invoices/{created['id']}",
        json=invoice_payload(client_id, items=new_items, status="sent"),
        headers=auth(token),
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "sent"
    assert data["invoice_number"] == created["invoice_number"]
    assert [item["description"] for item in data["items"]] == ["Audit"]
    assert Decimal(data["total_amount"]) == Decimal("1210.00")


def test_status_patch_follows_transitions():
    client = TestClient(app)
    token = register_and_login(client, "inv7@example.com", "secret")
    client_id = create_client(client, token)
    created = client.post("/invoices/", json=invoice_payload(client_id), headers=auth(token)).json()

    bad = client.patch(f"/invoices/{created['id']}/status", json={"status": "paid"}, headers=auth(token))
    assert bad.status_code == 400

    sent = client.patch(f"/invoices/{created['id']}/status", json={"status": "sent"}, headers=auth(token))
    assert sent.status_code == 200
    paid = client.patch(f"/invoices/{created['id']}/status", json={"status": "paid"}, headers=auth(token))
    assert paid.status_code == 200
    assert paid.json()["status"] == "paid"

    unknown = client.patch(f"/invoices/{created['id']}/status", json={"status": "archived"}, headers=auth(token))
    assert unknown.status_code == 422


def test_delete_invoice():
    client = TestClient(app)
    token = register_and_login(client, "inv8@example.com", "secret")
    client_id = create_client(client, token)
    created = client.post("/invoices/", json=invoice_payload(client_id), headers=auth(token)).json()

    resp = client.delete(f"/invoices/{created['id']}", headers=auth(token))
    assert resp.status_code == 200
    assert client.get(f"/invoices/{created['id']}", headers=auth(token)).status_code == 404


def test_next_number_preview_does_not_reserve():
    client = TestClient(app)
    token = register_and_login(client, "inv9@example.com", "secret")
    client_id = create_client(client, token)
    year = date.today().year

    first = client.get("/invoices/next-number", headers=auth(token)).json()["invoice_number"]
    again = client.get("/invoices/next-number", headers=auth(token)).json()["invoice_number"]
    assert first == again == f"FAC-{year}-001"

    created = client.post("/invoices/", json=invoice_payload(client_id), headers=auth(token)).json()
    assert created["invoice_number"] == f"FAC-{year}-001"
    following = client.get("/invoices/next-number", headers=auth(token)).json()["invoice_number"]
    assert following == f"FAC-{year}-002"


def test_list_search_and_sort():
    client = TestClient(app)
    token = register_and_login(client, "inv10@example.com", "secret")
    acme = create_client(client, token, name="Acme")
    globex = create_client(client, token, name="Globex")
    client.post("/invoices/", json=invoice_payload(acme, invoice_number="A-1"), headers=auth(token))
    client.post("/invoices/", json=invoice_payload(globex, invoice_number="G-1"), headers=auth(token))

    by_client_name = client.get("/invoices/", params={"search": "globex"}, headers=auth(token)).json()
    assert [inv["invoice_number"] for inv in by_client_name] == ["G-1"]

    ordered = client.get(
        "/invoices/", params={"sort_by": "invoice_number", "sort_order": "asc"}, headers=auth(token)
    ).json()
    assert [inv["invoice_number"] for inv in ordered] == ["A-1", "G-1"]

    assert client.get("/invoices/", params={"sort_by": "nope"}, headers=auth(token)).status_code == 400


def test_invoices_require_authentication():
    client = TestClient(app)
    assert client.get("/invoices/").status_code == 401


def test_put_keeps_status_and_rejects_leaving_overdue():
    client = TestClient(app)
    token = register_and_login(client, "inv10@example.com", "secret")
    client_id = create_client(client, token)
    created = client.post("/invoices/", json=invoice_payload(client_id, status="sent"), headers=auth(token)).json()

    kept = client.put(f"/invoices/{created['id']}", json=invoice_payload(client_id), headers=auth(token))
    assert kept.status_code == 200
    assert kept.json()["status"] == "sent"

    with SessionLocal() as db:
        db.query(Invoice).filter(Invoice.id == created["id"]).update({"status": "overdue"})
        db.commit()

    resp = client.put(f"/invoices/{created['id']}", json=invoice_payload(client_id, status="draft"), headers=auth(token))
    assert resp.status_code == 400
    assert client.get(f"/invoices/{created['id']}", headers=auth(token)).json()["status"] == "overdue"


def test_sub_cent_price_is_stored_rounded():
    client = TestClient(app)
    token = register_and_login(client, "inv11@example.com", "secret")
    client_id = create_client(client, token)
    items = [{"description": "Stickers", "quantity": 3, "unit_price": "0.125", "tax_rate": 0}]
    resp = client.post("/invoices/", json=invoice_payload(client_id, items=items), headers=auth(token))
    assert resp.status_code == 201
    line = resp.json()["items"][0]
    assert Decimal(line["unit_price"]) == Decimal("0.13")
    assert Decimal(line["line_total"]) == Decimal("0.39")
    assert Decimal(resp.json()["subtotal"]) == Decimal("0.39")
