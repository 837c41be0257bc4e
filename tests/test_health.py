"""Health endpoint and error envelope."""
from fastapi.testclient import TestClient
from sqlmodel import select

from app.main import app
from app.models import ErrorLog


def test_health_returns_ok(client: TestClient):
    r = client.get("/health")
    assert r.status_code == 200
    j = r.json()
    assert j.get("status") == "ok"
    assert j.get("database") in ("ok", "error")
    assert j.get("currency") == "BDT"


def test_request_id_header(client: TestClient):
    r = client.get("/health")
    assert r.headers.get("X-Request-ID")


def test_not_found_order_uses_error_envelope(client: TestClient):
    r = client.get("/orders/BZ-NOPE")
    assert r.status_code == 404
    j = r.json()
    assert j.get("error") == "Order not found."
    assert j.get("status_code") == 404
    assert "request_id" in j


def test_unhandled_error_is_logged_with_customer(db, make_product, monkeypatch):
    product, _ = make_product(100)

    def broken_quote(*args, **kwargs):
        raise RuntimeError("catalog unavailable")

    monkeypatch.setattr("app.api.cart.quote", broken_quote)
    with TestClient(app, raise_server_exceptions=False) as c:
        r = c.post("/cart/quote", json={"items": [{"product_id": product.id, "quantity": 1}], "customer_id": "cus_42"})
    assert r.status_code == 500
    assert r.json() == {"error": "Unexpected server error."}
    row = db.exec(select(ErrorLog)).one()
    assert row.customer_id == "cus_42"
    assert row.endpoint == "/cart/quote"
    assert row.method == "POST"
    assert "catalog unavailable" in row.error_message
