"""Integration tests for the ordering API via TestClient."""

import asyncio
import inspect
import threading

import httpx
import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient
from ordering.api import customer_router, order_router, payment_router, register_error_handlers
from ordering.config import reset_settings
from ordering.domain import ordering
from ordering.gateway.fake_adapter import TEST_SIGNATURE

SIGNED = {"X-Gateway-Signature": TEST_SIGNATURE}


@pytest.fixture()
def app():
    app = FastAPI()

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        with ordering.domain_context():
            return await call_next(request)

    app.include_router(customer_router)
    app.include_router(order_router)
    app.include_router(payment_router)
    register_error_handlers(app)
    return app


@pytest.fixture()
def client(app):
    return TestClient(app, raise_server_exceptions=False)


def _register(client, customer_id="cust-api-001", address="10 Downing St"):
    response = client.post(
        "/customers",
        json={
            "customer_id": customer_id,
            "name": "API Customer",
            "email": f"{customer_id}@example.com",
            "delivery_address": address,
        },
    )
    assert response.status_code == 201
    return customer_id


def _add(client, customer_id, menu_item_id="burger", quantity=1):
    response = client.post(f"/customers/{customer_id}/cart/items", json={"menu_item_id": menu_item_id, "quantity": quantity})
    assert response.status_code == 200
    return response.json()["line_id"]


def _place(client, customer_id):
    response = client.post(f"/customers/{customer_id}/orders")
    assert response.status_code == 201
    return response.json()["order_id"]


def _callback(client, order_id, amount="8.50", succeeded=True, **extra):
    body = {"order_id": order_id, "transaction_id": "txn-api-001", "amount": amount, "succeeded": succeeded}
    body.update(extra)
    return client.post("/payments/webhook", json=body, headers=SIGNED)


class TestCustomerApi:
    def test_register_and_update_address(self, client):
        customer_id = _register(client)
        response = client.put(f"/customers/{customer_id}/address", json={"delivery_address": "1 New Rd"})
        assert response.status_code == 200

    def test_duplicate_registration(self, client):
        _register(client)
        response = client.post(
            "/customers",
            json={"customer_id": "cust-api-001", "name": "Again", "email": "again@example.com"},
        )
        assert response.status_code == 400

    def test_deactivate(self, client):
        customer_id = _register(client)
        response = client.post(f"/customers/{customer_id}/deactivate")
        assert response.status_code == 200
        assert response.json()["status"] == "deactivated"

    def test_unknown_customer(self, client):
        response = client.post("/customers/ghost/deactivate")
        assert response.status_code == 404


class TestCartApi:
    def test_add_and_view(self, client):
        customer_id = _register(client)
        _add(client, customer_id, "burger", 2)
        _add(client, customer_id, "cola", 1)

        response = client.get(f"/customers/{customer_id}/cart")
        assert response.status_code == 200
        body = response.json()
        assert body["total"] == "18.99"
        assert {line["menu_item_id"]: line["line_subtotal"] for line in body["lines"]} == {
            "burger": "17.00",
            "cola": "1.99",
        }

    def test_adjust_and_remove(self, client):
        customer_id = _register(client)
        line_id = _add(client, customer_id, "burger", 2)
        _add(client, customer_id, "fries", 1)

        assert client.patch(f"/customers/{customer_id}/cart/items/burger", json={"delta": -1}).status_code == 200
        assert client.delete(f"/customers/{customer_id}/cart/lines/{line_id}").status_code == 200

        lines = client.get(f"/customers/{customer_id}/cart").json()["lines"]
        assert [line["menu_item_id"] for line in lines] == ["fries"]

    def test_clear(self, client):
        customer_id = _register(client)
        _add(client, customer_id)
        assert client.delete(f"/customers/{customer_id}/cart").status_code == 200
        assert client.delete(f"/customers/{customer_id}/cart").status_code == 200
        assert client.get(f"/customers/{customer_id}/cart").json()["lines"] == []

    def test_unknown_menu_item(self, client):
        customer_id = _register(client)
        response = client.post(f"/customers/{customer_id}/cart/items", json={"menu_item_id": "pizza", "quantity": 1})
        assert response.status_code == 404

    def test_zero_quantity(self, client):
        customer_id = _register(client)
        response = client.post(f"/customers/{customer_id}/cart/items", json={"menu_item_id": "burger", "quantity": 0})
        assert response.status_code == 400

    def test_missing_cart(self, client):
        assert client.get("/customers/nobody/cart").status_code == 404

    def test_catalog_unavailable(self, client, catalog, monkeypatch):
        monkeypatch.setenv("CATALOG_TIMEOUT_SECONDS", "0.05")
        reset_settings()
        catalog.delay = 0.5
        customer_id = _register(client)
        response = client.post(f"/customers/{customer_id}/cart/items", json={"menu_item_id": "burger", "quantity": 1})
        assert response.status_code == 502


class TestOrderApi:
    def test_place_and_fetch(self, client):
        customer_id = _register(client)
        _add(client, customer_id, "burger", 2)
        order_id = _place(client, customer_id)

        response = client.get(f"/orders/{order_id}")
        assert response.status_code == 200
        body = response.json()
        assert body["total_amount"] == "17.00"
        assert body["order_status"] == "INITIALIZED"
        assert body["payment_status"] == "PENDING"
        assert body["delivery_address"] == "10 Downing St"
        assert body["items"][0]["unit_price"] == "8.50"

        item_id = body["items"][0]["item_id"]
        item = client.get(f"/orders/{order_id}/items/{item_id}")
        assert item.status_code == 200
        assert item.json()["subtotal"] == "17.00"

    def test_place_from_empty_cart(self, client):
        customer_id = _register(client)
        response = client.post(f"/customers/{customer_id}/orders")
        assert response.status_code == 409

    def test_missing_order(self, client):
        assert client.get("/orders/missing").status_code == 404

    def test_list_and_customer_history(self, client):
        first = _register(client, "cust-a")
        second = _register(client, "cust-b")
        _add(client, first)
        _place(client, first)
        _add(client, second)
        _place(client, second)

        everything = client.get("/orders").json()
        assert everything["total"] == 2

        mine = client.get(f"/customers/{first}/orders").json()
        assert [order["customer_id"] for order in mine["items"]] == [first]

        assert client.get("/orders/stats/unique-customers").json()["count"] == 2

    def test_invalid_paging(self, client):
        assert client.get("/orders", params={"size": 500}).status_code == 400

    def test_status_changes(self, client):
        customer_id = _register(client)
        _add(client, customer_id)
        order_id = _place(client, customer_id)

        early = client.put(f"/orders/{order_id}/status", json={"new_status": "PREPARING"})
        assert early.status_code == 409

        assert _callback(client, order_id).status_code == 200
        response = client.put(f"/orders/{order_id}/status", json={"new_status": "PREPARING"})
        assert response.status_code == 200
        assert response.json()["order_status"] == "PREPARING"

        listed = client.get("/orders", params={"status": "PREPARING"}).json()
        assert [order["order_id"] for order in listed["items"]] == [order_id]


class TestPaymentApi:
    def _order(self, client):
        customer_id = _register(client)
        _add(client, customer_id)
        return _place(client, customer_id)

    def test_initiate(self, client):
        order_id = self._order(client)
        response = client.post("/payments/initiate", json={"order_id": order_id, "amount": "8.50"})
        assert response.status_code == 200
        assert response.json()["client_secret"]

    def test_initiate_wrong_amount(self, client):
        order_id = self._order(client)
        response = client.post("/payments/initiate", json={"order_id": order_id, "amount": "1.00"})
        assert response.status_code == 400

    def test_initiate_gateway_down(self, client, gateway):
        order_id = self._order(client)
        gateway.configure(should_succeed=False)
        response = client.post("/payments/initiate", json={"order_id": order_id, "amount": "8.50"})
        assert response.status_code == 502

    def test_initiate_already_paid(self, client):
        order_id = self._order(client)
        _callback(client, order_id)
        response = client.post("/payments/initiate", json={"order_id": order_id, "amount": "8.50"})
        assert response.status_code == 409

    def test_webhook_success_then_duplicate(self, client):
        order_id = self._order(client)
        first = _callback(client, order_id)
        assert first.status_code == 200
        assert first.json()["outcome"] == "COMPLETED"

        second = _callback(client, order_id)
        assert second.json()["outcome"] == "DUPLICATE"

        payments = client.get("/payments").json()
        assert payments["total"] == 1
        payment_id = payments["items"][0]["payment_id"]
        assert client.get(f"/payments/{payment_id}").json()["amount"] == "8.50"

    def test_webhook_failure(self, client):
        order_id = self._order(client)
        response = _callback(client, order_id, succeeded=False, failure_reason="Card declined")
        assert response.json()["outcome"] == "FAILED"
        assert client.get(f"/orders/{order_id}").json()["order_status"] == "CANCELLED"

    def test_webhook_bad_signature(self, client):
        order_id = self._order(client)
        response = client.post(
            "/payments/webhook",
            json={"order_id": order_id, "transaction_id": "t", "amount": "8.50", "succeeded": True},
            headers={"X-Gateway-Signature": "forged"},
        )
        assert response.status_code == 401

    @pytest.mark.parametrize(
        "change",
        [{"amount": "8.505"}, {"amount": "-1"}, {"succeeded": "yes"}, {"unexpected": 1}],
    )
    def test_webhook_rejects_malformed_body(self, client, change):
        order_id = self._order(client)
        body = {"order_id": order_id, "transaction_id": "t", "amount": "8.50", "succeeded": True, **change}
        response = client.post("/payments/webhook", json=body, headers=SIGNED)
        assert response.status_code == 422

    @pytest.mark.parametrize("body", ["{not json", "{}", '{"order_id": "x", "amount": "abc"}'])
    def test_unsigned_malformed_webhook_is_unauthorized(self, client, body):
        response = client.post(
            "/payments/webhook",
            content=body,
            headers={"Content-Type": "application/json", "X-Gateway-Signature": "forged"},
        )
        assert response.status_code == 401
        assert "order_id" not in response.text

    def test_signed_invalid_json_is_unprocessable(self, client):
        response = client.post(
            "/payments/webhook",
            content="{not json",
            headers={"Content-Type": "application/json", **SIGNED},
        )
        assert response.status_code == 422

    def test_webhook_amount_mismatch(self, client):
        order_id = self._order(client)
        assert _callback(client, order_id, amount="9.99").status_code == 400

    def test_missing_payment(self, client):
        assert client.get("/payments/missing").status_code == 404


class TestUnexpectedErrors:
    def test_internal_error_is_generic(self, client, monkeypatch):
        from ordering.api import routes

        def boom(*args, **kwargs):
            raise RuntimeError("database exploded")

        monkeypatch.setattr(routes.coordinator, "count_unique_customers", boom)
        response = client.get("/orders/stats/unique-customers")
        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error"}


class TestBlockingWork:
    def test_endpoints_that_block_run_in_threadpool(self, app):
        blocking = {
            "add_cart_item",
            "adjust_cart_item",
            "remove_cart_line",
            "clear_cart",
            "place_order",
            "advance_order_status",
            "initiate_payment",
        }
        endpoints = {route.endpoint.__name__: route.endpoint for route in app.routes if hasattr(route, "endpoint")}
        assert blocking <= endpoints.keys()
        assert not any(inspect.iscoroutinefunction(endpoints[name]) for name in blocking)

    def test_slow_gateway_does_not_stall_other_requests(self, app, client, gateway, monkeypatch):
        customer_id = _register(client)
        _add(client, customer_id)
        order_id = _place(client, customer_id)

        release = threading.Event()
        create_intent = gateway.create_intent

        def slow_create_intent(*args, **kwargs):
            release.wait(5.0)
            return create_intent(*args, **kwargs)

        monkeypatch.setattr(gateway, "create_intent", slow_create_intent)

        async def scenario():
            transport = httpx.ASGITransport(app=app)
            async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http:
                slow = asyncio.create_task(
                    http.post("/payments/initiate", json={"order_id": order_id, "amount": "8.50"})
                )
                await asyncio.sleep(0.1)
                fast = await http.get(f"/orders/{order_id}")
                still_waiting = not slow.done()
                release.set()
                return fast, still_waiting, await slow

        fast, still_waiting, slow = asyncio.run(scenario())

        assert fast.status_code == 200
        assert still_waiting
        assert slow.status_code == 200
