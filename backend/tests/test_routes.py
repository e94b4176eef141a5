# Overview: Pytest coverage for the HTTP API (auth, envelope, order/return endpoints, service key).

"""
Route tests.

Every response uses the envelope {"status", "message", "data"?, "error"?}.
"""

from stockroom.services.session_service import create_session, revoke_session

from conftest import auth_headers, ledger_rows, stock_of

SERVICE_HEADERS = {"X-Service-Key": "test-service-key"}


class TestAuth:
    def test_missing_token(self, client, db_session):
        response = client.get("/api/products")
        assert response.status_code == 401
        assert response.get_json()["status"] == "error"

    def test_invalid_token(self, client, db_session):
        response = client.get("/api/products", headers=auth_headers("not-a-token"))
        assert response.status_code == 401

    def test_revoked_token(self, client, db_session, tenant_a):
        _, token = create_session(tenant_a["user"].id)
        revoke_session(token)
        response = client.get("/api/products", headers=auth_headers(token))
        assert response.status_code == 401

    def test_health_is_public(self, client, db_session):
        response = client.get("/api/system/health")
        assert response.status_code == 200
        assert response.get_json()["status"] == "healthy"


class TestSalesOrderRoutes:
    def _payload(self, tenant, status, quantity=3):
        return {
            "customer_id": tenant["customer"].id,
            "status": status,
            "items": [{"product_id": tenant["product"].id, "quantity": quantity}],
        }

    def test_create_confirmed(self, client, db_session, tenant_a, auth_headers_a):
        response = client.post(
            "/api/sales-orders/", json=self._payload(tenant_a, "confirmed"), headers=auth_headers_a
        )
        assert response.status_code == 201
        body = response.get_json()
        assert body["status"] == "success"
        assert body["data"]["total_amount_cents"] == 1071
        assert len(body["data"]["lines"]) == 1
        assert stock_of(tenant_a["product"].id) == 7

    def test_insufficient_stock_is_409(self, client, db_session, tenant_a, auth_headers_a):
        response = client.post(
            "/api/sales-orders/", json=self._payload(tenant_a, "confirmed", 50), headers=auth_headers_a
        )
        assert response.status_code == 409
        body = response.get_json()
        assert body["status"] == "error"
        assert body["error"] == "InsufficientStockError"
        assert "data" not in body
        assert stock_of(tenant_a["product"].id) == 10

    def test_validation_errors_are_400(self, client, db_session, tenant_a, auth_headers_a):
        bad = self._payload(tenant_a, "pending")
        bad["items"][0]["quantity"] = 0
        response = client.post("/api/sales-orders/", json=bad, headers=auth_headers_a)
        assert response.status_code == 400
        assert response.get_json()["error"] == "ValidationError"

        response = client.post("/api/sales-orders/", json={"items": []}, headers=auth_headers_a)
        assert response.status_code == 400

    def test_update_confirmed_is_409(self, client, db_session, tenant_a, auth_headers_a):
        order_id = client.post(
            "/api/sales-orders/", json=self._payload(tenant_a, "confirmed"), headers=auth_headers_a
        ).get_json()["data"]["id"]

        response = client.put(
            f"/api/sales-orders/{order_id}", json={"notes": "late edit"}, headers=auth_headers_a
        )
        assert response.status_code == 409
        assert response.get_json()["error"] == "InvalidStateTransitionError"

    def test_read_and_delete(self, client, db_session, tenant_a, auth_headers_a):
        order_id = client.post(
            "/api/sales-orders/", json=self._payload(tenant_a, "confirmed", 2), headers=auth_headers_a
        ).get_json()["data"]["id"]

        assert client.get(f"/api/sales-orders/{order_id}", headers=auth_headers_a).status_code == 200
        lines = client.get(f"/api/sales-orders/{order_id}/lines", headers=auth_headers_a).get_json()["data"]
        assert [l["quantity"] for l in lines] == [2]
        listed = client.get("/api/sales-orders/", headers=auth_headers_a).get_json()["data"]
        assert [o["id"] for o in listed] == [order_id]

        response = client.delete(f"/api/sales-orders/{order_id}", headers=auth_headers_a)
        assert response.status_code == 200
        assert response.get_json()["data"]["id"] == order_id
        assert stock_of(tenant_a["product"].id) == 10
        assert client.get(f"/api/sales-orders/{order_id}", headers=auth_headers_a).status_code == 404


class TestPurchaseAndReturnRoutes:
    def test_purchase_order_then_return(self, client, db_session, tenant_a, auth_headers_a):
        product_id = tenant_a["product"].id
        response = client.post(
            "/api/purchase-orders/",
            json={
                "supplier_id": tenant_a["supplier"].id,
                "status": "confirmed",
                "items": [{"product_id": product_id, "quantity": 5, "unit_cost_cents": 200}],
            },
            headers=auth_headers_a,
        )
        assert response.status_code == 201
        order_id = response.get_json()["data"]["id"]
        assert stock_of(product_id) == 15

        response = client.post(
            "/api/purchase-returns/",
            json={
                "purchase_order_id": order_id,
                "status": "confirmed",
                "items": [{"product_id": product_id, "quantity": 2}],
            },
            headers=auth_headers_a,
        )
        assert response.status_code == 201
        assert stock_of(product_id) == 13

    def test_duplicate_return_line_is_409(self, client, db_session, tenant_a, auth_headers_a):
        product_id = tenant_a["product"].id
        order_id = client.post(
            "/api/sales-orders/",
            json={
                "customer_id": tenant_a["customer"].id,
                "status": "pending",
                "items": [{"product_id": product_id, "quantity": 2}],
            },
            headers=auth_headers_a,
        ).get_json()["data"]["id"]

        response = client.post(
            "/api/sales-returns/",
            json={
                "sales_order_id": order_id,
                "status": "confirmed",
                "items": [
                    {"product_id": product_id, "quantity": 1},
                    {"product_id": product_id, "quantity": 1},
                ],
            },
            headers=auth_headers_a,
        )
        assert response.status_code == 409
        assert response.get_json()["error"] == "DuplicateLineItemError"
        assert ledger_rows() == []


class TestProductAndLedgerRoutes:
    def test_adjust_and_history(self, client, db_session, tenant_a, auth_headers_a):
        product_id = tenant_a["product"].id
        response = client.post(
            f"/api/products/{product_id}/adjust",
            json={"quantity": -2, "transaction_type": "LOSS"},
            headers=auth_headers_a,
        )
        assert response.status_code == 201
        assert response.get_json()["data"]["new_stock"] == 8

        history = client.get(
            f"/api/inventory-transactions/product/{product_id}", headers=auth_headers_a
        ).get_json()["data"]
        assert [h["transaction_type_name"] for h in history] == ["LOSS"]

        page = client.get("/api/inventory-transactions/?limit=10", headers=auth_headers_a).get_json()["data"]
        assert page["limit"] == 10
        assert len(page["items"]) == 1

    def test_product_crud(self, client, db_session, tenant_a, auth_headers_a):
        response = client.post(
            "/api/products", json={"name": "Spring", "quantity": 3}, headers=auth_headers_a
        )
        assert response.status_code == 201
        product_id = response.get_json()["data"]["id"]

        response = client.put(
            f"/api/products/{product_id}", json={"quantity": 50}, headers=auth_headers_a
        )
        assert response.status_code == 400

        response = client.put(
            f"/api/products/{product_id}", json={"unit_price_cents": 75}, headers=auth_headers_a
        )
        assert response.get_json()["data"]["unit_price_cents"] == 75

        # Opening stock left a ledger row, so the product is kept
        response = client.delete(f"/api/products/{product_id}", headers=auth_headers_a)
        assert response.status_code == 409

    def test_statuses_and_types(self, client, db_session, auth_headers_a):
        statuses = client.get("/api/statuses/", headers=auth_headers_a).get_json()["data"]
        assert {c["name"] for c in statuses} >= {"sales_order", "purchase_return"}
        types = client.get("/api/inventory-transactions/types", headers=auth_headers_a).get_json()["data"]
        assert len(types) == 10


class TestPartyRoutes:
    def test_customer_crud(self, client, db_session, tenant_a, auth_headers_a):
        response = client.post(
            "/api/customers",
            json={"name": "Acme", "email": "buyer@acme.test", "phone": "555-0100"},
            headers=auth_headers_a,
        )
        assert response.status_code == 201
        customer = response.get_json()["data"]
        assert customer["user_id"] == tenant_a["user"].id

        names = [c["name"] for c in client.get("/api/customers", headers=auth_headers_a).get_json()["data"]]
        assert names == ["Acme", tenant_a["customer"].name]

        response = client.put(
            f"/api/customers/{customer['id']}", json={"phone": "555-0199"}, headers=auth_headers_a
        )
        assert response.status_code == 200
        assert response.get_json()["data"]["phone"] == "555-0199"
        assert response.get_json()["data"]["name"] == "Acme"

        response = client.get(f"/api/customers/{customer['id']}", headers=auth_headers_a)
        assert response.get_json()["data"]["email"] == "buyer@acme.test"

        response = client.delete(f"/api/customers/{customer['id']}", headers=auth_headers_a)
        assert response.status_code == 200
        assert client.get(f"/api/customers/{customer['id']}", headers=auth_headers_a).status_code == 404

    def test_party_validation_is_400(self, client, db_session, tenant_a, auth_headers_a):
        response = client.post(
            "/api/customers", json={"name": tenant_a["customer"].name}, headers=auth_headers_a
        )
        assert response.status_code == 400
        assert response.get_json()["error"] == "ValidationError"

        assert client.post("/api/customers", json={}, headers=auth_headers_a).status_code == 400
        response = client.post(
            "/api/suppliers", json={"name": "Parts Co", "contact_email": "nope"}, headers=auth_headers_a
        )
        assert response.status_code == 400
        response = client.put(
            f"/api/suppliers/{tenant_a['supplier'].id}", json={"email": "x@y.test"}, headers=auth_headers_a
        )
        assert response.status_code == 400

    def test_customer_in_use_cannot_be_deleted(self, client, db_session, tenant_a, auth_headers_a):
        customer_id = client.post(
            "/api/customers", json={"name": "Walk-in"}, headers=auth_headers_a
        ).get_json()["data"]["id"]
        order_id = client.post(
            "/api/sales-orders/",
            json={
                "customer_id": customer_id,
                "status": "pending",
                "items": [{"product_id": tenant_a["product"].id, "quantity": 1}],
            },
            headers=auth_headers_a,
        ).get_json()["data"]["id"]

        response = client.delete(f"/api/customers/{customer_id}", headers=auth_headers_a)
        assert response.status_code == 409
        assert response.get_json()["error"] == "InvalidStateTransitionError"

        client.delete(f"/api/sales-orders/{order_id}", headers=auth_headers_a)
        assert client.delete(f"/api/customers/{customer_id}", headers=auth_headers_a).status_code == 200

    def test_supplier_in_use_cannot_be_deleted(self, client, db_session, tenant_a, auth_headers_a):
        response = client.post(
            "/api/suppliers",
            json={"name": "Parts Co", "contact_email": "sales@parts.test"},
            headers=auth_headers_a,
        )
        assert response.status_code == 201
        supplier_id = response.get_json()["data"]["id"]

        response = client.post(
            "/api/purchase-orders/",
            json={
                "supplier_id": supplier_id,
                "status": "confirmed",
                "items": [{"product_id": tenant_a["product"].id, "quantity": 4}],
            },
            headers=auth_headers_a,
        )
        assert response.status_code == 201
        assert stock_of(tenant_a["product"].id) == 14

        response = client.delete(f"/api/suppliers/{supplier_id}", headers=auth_headers_a)
        assert response.status_code == 409
        assert client.get(f"/api/suppliers/{supplier_id}", headers=auth_headers_a).status_code == 200


class TestServiceKeyRoutes:
    def test_confirmed_sales_requires_key(self, client, db_session):
        assert client.get("/api/inventory-transactions/confirmed-sales").status_code == 401

    def test_confirmed_sales_feed(self, client, db_session, tenant_a, auth_headers_a):
        client.post(
            "/api/sales-orders/",
            json={
                "customer_id": tenant_a["customer"].id,
                "status": "confirmed",
                "items": [{"product_id": tenant_a["product"].id, "quantity": 3}],
            },
            headers=auth_headers_a,
        )
        response = client.get("/api/inventory-transactions/confirmed-sales?days=7", headers=SERVICE_HEADERS)
        assert response.status_code == 200
        [item] = response.get_json()["data"]
        assert item["product_id"] == tenant_a["product"].id
        assert item["current_stock"] == 7
        assert sum(s["quantity"] for s in item["sales"]) == 3

    def test_notification_create(self, client, db_session, tenant_a, auth_headers_a):
        payload = {"product_id": tenant_a["product"].id, "message": "Low soon", "forecast": []}
        assert client.post("/api/ai-notifications/", json=payload).status_code == 401

        response = client.post("/api/ai-notifications/", json={"message": "x"}, headers=SERVICE_HEADERS)
        assert response.status_code == 400

        response = client.post("/api/ai-notifications/", json=payload, headers=SERVICE_HEADERS)
        assert response.status_code == 201
        notification_id = response.get_json()["data"]["id"]

        listed = client.get("/api/ai-notifications/", headers=auth_headers_a).get_json()["data"]
        assert [n["id"] for n in listed] == [notification_id]

        response = client.put(f"/api/ai-notifications/{notification_id}/read", headers=auth_headers_a)
        assert response.get_json()["data"]["status"] == "read"
