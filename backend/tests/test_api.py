# Overview: HTTP-level tests for request parsing and response bodies.

"""
API Tests

Exercises the blueprints through the Flask test client: status codes,
error bodies and the JSON shapes clients depend on.
"""

import pytest

from bstock.routes import subscriptions


PASSWORD = "secret-pass"


class TestAuthRoutes:

    def test_register_login_me_logout(self, client, db_session):
        resp = client.post("/api/v1/auth/register", json={
            "organization_name": "Fresh Shop",
            "phone_number": "+15557770000",
            "password": PASSWORD,
        })
        assert resp.status_code == 201
        body = resp.get_json()
        assert body["role"] == "owner"
        assert body["subscription"]["plan"]["name"] == "free"
        assert body["token"]

        resp = client.post("/api/v1/auth/login", json={
            "organization_name": "Fresh Shop",
            "phone_number": "+15557770000",
            "password": PASSWORD,
        })
        assert resp.status_code == 200
        login = resp.get_json()
        assert login["usage"] == {
            "products": {"current": 0, "limit": 15},
            "users": {"current": 1, "limit": 2},
        }

        headers = {"Authorization": f"Bearer {login['token']}"}
        me = client.get("/api/v1/auth/me", headers=headers).get_json()
        assert me["organization"]["name"] == "Fresh Shop"

        assert client.post("/api/v1/auth/logout", headers=headers).status_code == 200
        assert client.get("/api/v1/auth/me", headers=headers).status_code == 401

    def test_register_duplicate_name(self, client, org_a):
        resp = client.post("/api/v1/auth/register", json={
            "organization_name": org_a.name,
            "phone_number": "+15557770001",
            "password": PASSWORD,
        })
        assert resp.status_code == 409

    def test_login_wrong_password(self, client, org_a, owner_a):
        resp = client.post("/api/v1/auth/login", json={
            "organization_name": org_a.name,
            "phone_number": owner_a.phone_number,
            "password": "not-it",
        })
        assert resp.status_code == 401
        assert "token" not in resp.get_json()

    def test_register_requires_json_object(self, client, db_session):
        resp = client.post("/api/v1/auth/register", json=["not", "an", "object"])
        assert resp.status_code == 400


class TestSaleRoutes:

    def test_create_sale(self, client, variant_a, owner_headers):
        resp = client.post(
            "/api/v1/sales",
            json={"payment_method": "cash", "items": [{"variant_id": variant_a.id, "quantity": 5}]},
            headers=owner_headers,
        )

        assert resp.status_code == 201
        sale = resp.get_json()["sale"]
        assert sale["total_amount_cents"] == 50000
        assert sale["total_profit_cents"] == 20000
        assert sale["items"][0]["sku"] == "SHIRT-A"
        assert sale["items"][0]["line_total_cents"] == 50000

        variant = client.get(f"/api/v1/variants/{variant_a.id}", headers=owner_headers).get_json()["variant"]
        assert variant["quantity"] == 15

    def test_insufficient_stock_body(self, client, variant_a, owner_headers):
        resp = client.post(
            "/api/v1/sales",
            json={"payment_method": "cash", "items": [{"variant_id": variant_a.id, "quantity": 21}]},
            headers=owner_headers,
        )

        assert resp.status_code == 400
        assert resp.get_json() == {
            "error": "Insufficient stock",
            "variant_id": variant_a.id,
            "available": 20,
            "requested": 21,
        }

    def test_unknown_variant(self, client, db_session, owner_headers):
        resp = client.post(
            "/api/v1/sales",
            json={"payment_method": "cash",
                  "items": [{"variant_id": "6f1c2d4e-0000-4000-8000-000000000000", "quantity": 1}]},
            headers=owner_headers,
        )
        assert resp.status_code == 404

    @pytest.mark.parametrize("body", [
        None,
        {"payment_method": "cash"},
        {"payment_method": "cash", "items": []},
        {"items": [{"variant_id": "abc", "quantity": 1}], "payment_method": "cash"},
    ])
    def test_bad_request(self, client, db_session, owner_headers, body):
        resp = client.post("/api/v1/sales", json=body, headers=owner_headers)
        assert resp.status_code == 400
        assert "error" in resp.get_json()

    def test_malformed_sale_id(self, client, owner_headers):
        resp = client.get("/api/v1/sales/not-a-uuid", headers=owner_headers)
        assert resp.status_code == 400

    def test_payment_proof(self, client, variant_a, owner_headers):
        sale_id = client.post(
            "/api/v1/sales",
            json={"payment_method": "transfer", "items": [{"variant_id": variant_a.id, "quantity": 1}]},
            headers=owner_headers,
        ).get_json()["sale"]["id"]

        resp = client.post(
            f"/api/v1/sales/{sale_id}/payment-proof",
            json={"reference": "proofs/receipt-1.png"},
            headers=owner_headers,
        )
        assert resp.status_code == 200
        assert resp.get_json()["sale"]["payment_proof_url"] == "proofs/receipt-1.png"

        resp = client.post(
            f"/api/v1/sales/{sale_id}/payment-proof",
            json={"reference": "proofs/receipt-2.png"},
            headers=owner_headers,
        )
        assert resp.status_code == 409


class TestVariantRoutes:

    def test_adjust_stock(self, client, variant_a, owner_headers):
        resp = client.post(
            f"/api/v1/variants/{variant_a.id}/adjust-stock",
            json={"adjustment": -4, "reason": "damaged"},
            headers=owner_headers,
        )
        assert resp.status_code == 200
        assert resp.get_json()["variant"]["quantity"] == 16

    def test_adjust_below_zero(self, client, variant_a, owner_headers):
        resp = client.post(
            f"/api/v1/variants/{variant_a.id}/adjust-stock",
            json={"adjustment": -21},
            headers=owner_headers,
        )
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Stock cannot be negative"

    @pytest.mark.parametrize("adjustment", [0, 1.5, "3.5", "2e2", None, True])
    def test_adjust_bad_amount(self, client, variant_a, owner_headers, adjustment):
        resp = client.post(
            f"/api/v1/variants/{variant_a.id}/adjust-stock",
            json={"adjustment": adjustment},
            headers=owner_headers,
        )
        assert resp.status_code == 400

    def test_adjust_unknown_variant(self, client, db_session, owner_headers):
        resp = client.post(
            "/api/v1/variants/6f1c2d4e-0000-4000-8000-000000000000/adjust-stock",
            json={"adjustment": 1},
            headers=owner_headers,
        )
        assert resp.status_code == 404

    def test_low_stock(self, client, org_a, make_product, owner_headers):
        make_product(org_a, name="Plenty", quantity=50, min_stock_level=5)
        make_product(org_a, name="Scarce", quantity=5, min_stock_level=5)

        body = client.get("/api/v1/variants/low-stock", headers=owner_headers).get_json()
        assert body["count"] == 1
        assert body["variants"][0]["is_low_stock"] is True

    def test_quantity_not_editable(self, client, variant_a, owner_headers):
        resp = client.put(f"/api/v1/variants/{variant_a.id}", json={"quantity": 500}, headers=owner_headers)
        assert resp.status_code == 400


class TestProductRoutes:

    def test_create_and_fetch(self, client, db_session, owner_headers):
        resp = client.post("/api/v1/products", json={
            "name": "Candle",
            "category": "Home",
            "variants": [{"sku": "CANDLE-1", "sale_price_cents": 1500, "quantity": 3}],
        }, headers=owner_headers)

        assert resp.status_code == 201
        product = resp.get_json()["product"]
        assert product["variants"][0]["quantity"] == 3

        resp = client.get("/api/v1/products?search=cand", headers=owner_headers)
        assert [p["id"] for p in resp.get_json()["products"]] == [product["id"]]

    def test_delete_product(self, client, variant_a, owner_headers):
        resp = client.delete(f"/api/v1/products/{variant_a.product_id}", headers=owner_headers)
        assert resp.status_code == 200
        assert client.get(f"/api/v1/products/{variant_a.product_id}", headers=owner_headers).status_code == 404


class TestSubscriptionRoutes:

    def test_plans_are_public(self, client, db_session):
        plans = client.get("/api/v1/subscriptions/plans").get_json()["plans"]

        assert [p["name"] for p in plans] == ["free", "growth", "pro"]
        assert [p["price_monthly_cents"] for p in plans] == [0, 29999, 99999]
        assert plans[2]["product_limit"] is None

    def test_current(self, client, owner_headers):
        body = client.get("/api/v1/subscriptions/current", headers=owner_headers).get_json()
        assert body["subscription"]["status"] == "active"
        assert body["usage"]["users"]["current"] == 1

    def test_change_plan_and_downgrade_rejected(self, client, org_a, owner_headers, make_product):
        plans = {p["name"]: p["id"] for p in client.get("/api/v1/subscriptions/plans").get_json()["plans"]}

        resp = client.post(
            "/api/v1/subscriptions/change-plan", json={"plan_id": plans["growth"]}, headers=owner_headers
        )
        assert resp.status_code == 200
        assert resp.get_json()["subscription"]["plan"]["name"] == "growth"

        for _ in range(16):
            make_product(org_a)

        resp = client.post(
            "/api/v1/subscriptions/change-plan", json={"plan_id": plans["free"]}, headers=owner_headers
        )
        assert resp.status_code == 400
        assert "16 products" in resp.get_json()["error"]

    def test_webhook(self, client, db_session):
        resp = client.post("/api/v1/webhooks/payment", json={"event": "payment.succeeded"})
        assert resp.status_code == 200
        assert resp.get_json() == {"received": True}

        assert client.post("/api/v1/webhooks/payment", json={}).status_code == 400

    def test_webhook_unexpected_error_is_500(self, client, db_session, monkeypatch):
        def explode(*args, **kwargs):
            raise RuntimeError("provider payload handler crashed")

        monkeypatch.setattr(subscriptions, "require_str", explode)

        resp = client.post("/api/v1/webhooks/payment", json={"event": "payment.succeeded"})
        assert resp.status_code == 500
        assert resp.get_json() == {"error": "Internal server error"}


class TestSystemRoutes:

    def test_health(self, client, db_session):
        resp = client.get("/api/v1/health")

        assert resp.status_code == 200
        body = resp.get_json()
        assert body["status"] == "healthy"
        assert body["checks"]["database"]["details"]["plans"] == 3

    def test_unknown_route_is_json(self, client, db_session):
        resp = client.get("/api/v1/nope")
        assert resp.status_code == 404
        assert resp.get_json() == {"error": "Not found"}
