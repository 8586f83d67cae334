"""
HTTP surface: routing, auth headers and the mapping of error kinds to status codes.
"""
import pytest
from fastapi.testclient import TestClient

from storefront.api import create_app
from storefront.api.deps import (
    get_lock_service,
    get_notification_service,
    get_payment_verifier,
    get_product_client,
)
from storefront.data.database import get_db
from storefront.services.payment_verifier import PaymentVerifier
from storefront.services.product_client import to_amount

CUSTOMER = {"X-User-Id": "7"}
STRANGER = {"X-User-Id": "8"}
ADMIN = {"X-User-Id": "1", "X-User-Role": "admin"}

ADDRESS = {
    "recipient_name": "Kim Minji",
    "recipient_phone": "010-1234-5678",
    "address": "12 Teheran-ro, Gangnam-gu, Seoul",
}


@pytest.fixture
def client(db, catalog, gateway, lock_service, notifier):
    app = create_app()

    def override_db():
        yield db

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_product_client] = lambda: catalog
    app.dependency_overrides[get_payment_verifier] = lambda: PaymentVerifier(
        client=gateway, policy="strict"
    )
    app.dependency_overrides[get_lock_service] = lambda: lock_service
    app.dependency_overrides[get_notification_service] = lambda: notifier
    return TestClient(app)


def fill_cart(client, product_id=1, quantity=2, headers=CUSTOMER):
    resp = client.post("/carts/me/items", json={"product_id": product_id, "quantity": quantity}, headers=headers)
    assert resp.status_code == 200
    return resp.json()


def checkout(client, headers=CUSTOMER, **overrides):
    body = {"shipping_address": ADDRESS, "payment_method": "card"}
    body.update(overrides)
    return client.post("/orders", json=body, headers=headers)


def test_health(client):
    assert client.get("/health").json() == {"status": "ok", "database": "ok"}


def test_identity_is_required(client):
    assert client.get("/orders").status_code == 401
    assert client.get("/carts/me", headers={"X-User-Id": "abc"}).status_code == 401


class TestCarts:
    def test_cart_flow(self, client):
        cart = fill_cart(client)
        assert cart["total_amount"] == cart["subtotal"] == 20000
        assert cart["shipping_fee"] == 3000
        assert cart["grand_total"] == 23000

        resp = client.put("/carts/me/items/1", json={"quantity": 5}, headers=CUSTOMER)
        assert resp.json()["total_items"] == 5
        assert resp.json()["shipping_fee"] == 0
        assert resp.json()["grand_total"] == 50000

        resp = client.delete("/carts/me/items/1", headers=CUSTOMER)
        assert resp.json()["items"] == []

    def test_clear_cart(self, client):
        fill_cart(client)
        resp = client.delete("/carts/me", headers=CUSTOMER)
        assert resp.status_code == 200
        assert resp.json()["total_amount"] == 0

    def test_fractional_catalog_price_is_422(self, client, catalog, monkeypatch):
        fill_cart(client)
        monkeypatch.setattr(catalog, "get_price", lambda product_id: to_amount("199.99"))

        resp = client.get("/carts/me", headers=CUSTOMER)

        assert resp.status_code == 422
        assert resp.json()["detail"]["code"] == "invalid_input"

    def test_unknown_product(self, client):
        resp = client.post("/carts/me/items", json={"product_id": 404}, headers=CUSTOMER)
        assert resp.status_code == 422
        assert resp.json()["detail"]["code"] == "product_unavailable"


class TestCheckout:
    def test_summary(self, client):
        fill_cart(client)
        resp = client.get("/orders/checkout-summary", headers=CUSTOMER)
        assert resp.status_code == 200
        assert resp.json()["grand_total"] == 23000

    def test_happy_path(self, client, gateway):
        gateway.payments["imp_001"] = {"status": "paid", "amount": 23000}
        fill_cart(client)

        resp = checkout(
            client,
            payment_data={"imp_uid": "imp_001", "merchant_uid": "M1", "paid_amount": 23000, "pay_method": "card"},
        )

        assert resp.status_code == 201
        body = resp.json()
        assert body["status"] == "confirmed"
        assert body["total_amount"] == 23000
        assert body["shipping_fee"] == 3000
        assert body["payment_reference"]["gateway_transaction_id"] == "imp_001"
        assert body["shipping_address"] == ADDRESS
        assert client.get("/carts/me", headers=CUSTOMER).json()["items"] == []

    def test_duplicate_callback_is_409(self, client, gateway):
        gateway.payments["imp_001"] = {"status": "paid", "amount": 23000}
        payment = {"gateway_transaction_id": "imp_001", "merchant_order_id": "M1"}
        fill_cart(client)
        first = checkout(client, payment_data=payment).json()

        fill_cart(client)
        resp = checkout(client, payment_data=payment)

        assert resp.status_code == 409
        detail = resp.json()["detail"]
        assert detail["code"] == "duplicate_order"
        assert detail["existing_order"]["order_number"] == first["order_number"]
        assert len(client.get("/orders", headers=CUSTOMER).json()) == 1

    def test_amount_mismatch_is_402(self, client, gateway):
        gateway.payments["imp_001"] = {"status": "paid", "amount": 1000}
        fill_cart(client)

        resp = checkout(client, payment_data={"imp_uid": "imp_001", "merchant_uid": "M1"})

        assert resp.status_code == 402
        assert resp.json()["detail"]["code"] == "payment_verification_failed"
        assert client.get("/orders", headers=CUSTOMER).json() == []

    def test_unconfigured_gateway_is_rejected_under_strict_policy(self, client, gateway):
        gateway.configured = False
        fill_cart(client)

        resp = checkout(client, payment_data={"imp_uid": "imp_001"})

        assert resp.status_code == 402

    def test_empty_cart_is_400(self, client):
        resp = checkout(client)
        assert resp.status_code == 400
        assert resp.json()["detail"]["code"] == "empty_cart"

    def test_missing_fields_are_422(self, client):
        fill_cart(client)
        resp = client.post("/orders", json={"shipping_address": {"recipient_name": "Kim"}}, headers=CUSTOMER)

        assert resp.status_code == 422
        assert resp.json()["detail"]["fields"] == [
            "shipping_address.recipient_phone",
            "shipping_address.address",
            "payment_method",
        ]


class TestOrderLifecycle:
    @pytest.fixture
    def order(self, client):
        fill_cart(client)
        return checkout(client, payment_method="bank_transfer").json()

    def test_get_by_number_and_id(self, client, order):
        by_number = client.get(f"/orders/{order['order_number']}", headers=CUSTOMER)
        by_id = client.get(f"/orders/{order['id']}", headers=CUSTOMER)
        assert by_number.json()["id"] == by_id.json()["id"] == order["id"]

    def test_stranger_gets_403(self, client, order):
        assert client.get(f"/orders/{order['id']}", headers=STRANGER).status_code == 403

    def test_missing_order_404(self, client):
        assert client.get("/orders/ORD-20990101-000000-0000", headers=CUSTOMER).status_code == 404

    def test_admin_listing(self, client, order):
        assert client.get("/orders/all", headers=CUSTOMER).status_code == 403

        resp = client.get("/orders/all", params={"status": "pending", "user_id": 7}, headers=ADMIN)
        assert [o["id"] for o in resp.json()] == [order["id"]]

    def test_admin_sets_status(self, client, order):
        resp = client.put(f"/orders/{order['id']}/status", json={"status": "shipping"}, headers=ADMIN)
        assert resp.status_code == 200
        assert resp.json()["status"] == "shipping"

        resp = client.put(f"/orders/{order['id']}/status", json={"status": "shipping"}, headers=CUSTOMER)
        assert resp.status_code == 403

        resp = client.put(f"/orders/{order['id']}/status", json={"status": "lost"}, headers=ADMIN)
        assert resp.status_code == 422

    def test_cancel_pending(self, client, order):
        resp = client.delete(f"/orders/{order['order_number']}", headers=CUSTOMER)
        assert resp.status_code == 200
        assert resp.json()["status"] == "cancelled"

    def test_cancel_shipped_is_400(self, client, order):
        client.put(f"/orders/{order['id']}/status", json={"status": "shipping_start"}, headers=ADMIN)

        resp = client.delete(f"/orders/{order['id']}", headers=CUSTOMER)

        assert resp.status_code == 400
        assert resp.json()["detail"]["code"] == "illegal_state_transition"
        assert client.get(f"/orders/{order['id']}", headers=CUSTOMER).json()["status"] == "shipping_start"

    def test_list_filtered_by_status(self, client, order):
        assert len(client.get("/orders", params={"status": "pending"}, headers=CUSTOMER).json()) == 1
        assert client.get("/orders", params={"status": "delivered"}, headers=CUSTOMER).json() == []
