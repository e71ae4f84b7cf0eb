from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import pytest
from fastapi.testclient import TestClient

from common.eventbus.core import Event
from common.events.lootbox import LootboxSpinCompletedEvent
from common.shopify.client import ShopifyRequestError
from lootbox_service.app.config import AppConfig, ServerConfig, SpinConfig
from lootbox_service.app.dependencies import (
    get_credit_service,
    get_event_bus,
    get_product_lookup,
    get_spin_service,
)
from lootbox_service.app.exceptions import FulfillmentFailed, StoreUnavailable
from lootbox_service.app.main import create_app
from lootbox_service.app.models.lootbox import LootBox, LootItem
from lootbox_service.app.services.credit_service import CreditService
from lootbox_service.app.services.customer_locks import CustomerLockRegistry
from lootbox_service.app.services.draw_engine import WeightedDrawEngine
from lootbox_service.app.services.spin_service import SpinService


PREFIX = "/apps/elyxyr"

BOX = LootBox(
    id="elyxyr_basic",
    display_name="Lootbox Elyxyr Basic",
    price_credits=10,
    items=(
        LootItem(prize_ref=111, display_name="Common", weight=60),
        LootItem(prize_ref=222, display_name="Rare", weight=30),
        LootItem(prize_ref=333, display_name="Legendary", weight=10),
    ),
)


class FakeBalanceStore:
    def __init__(self) -> None:
        self.balances: dict[str, int] = {}
        self.get_error: Exception | None = None
        self.set_calls: list[tuple[str, int]] = []

    def get_balance(self, customer_id: str) -> int:
        if self.get_error is not None:
            raise self.get_error
        return self.balances.get(customer_id, 0)

    def set_balance(self, customer_id: str, new_value: int) -> None:
        self.set_calls.append((customer_id, new_value))
        self.balances[customer_id] = new_value


class FakeFulfillmentGateway:
    def __init__(self) -> None:
        self.error: Exception | None = None
        self.calls: list[tuple[str, int, str]] = []

    def create_order(self, customer_id: str, prize_ref: int, note: str) -> int:
        self.calls.append((customer_id, prize_ref, note))
        if self.error is not None:
            raise self.error
        return 7788990011


class FakeProductLookup:
    def __init__(self) -> None:
        self.error: Exception | None = None

    def get_product(self, product_id: str) -> dict[str, Any]:
        if self.error is not None:
            raise self.error
        return {"product": {"id": int(product_id), "variants": [{"id": 111}]}}


class FakeEventBus:
    def __init__(self) -> None:
        self.published: list[tuple[str, Event]] = []
        self.error: Exception | None = None

    def publish(self, topic: str, event: Event) -> None:
        if self.error is not None:
            raise self.error
        self.published.append((topic, event))


@dataclass
class ApiFixture:
    client: TestClient
    balance_store: FakeBalanceStore
    gateway: FakeFulfillmentGateway
    product_lookup: FakeProductLookup
    event_bus: FakeEventBus


@pytest.fixture
def api() -> ApiFixture:
    balance_store = FakeBalanceStore()
    gateway = FakeFulfillmentGateway()
    product_lookup = FakeProductLookup()
    event_bus = FakeEventBus()
    locks = CustomerLockRegistry()

    spin_service = SpinService(
        balance_store,
        gateway,
        draw_engine=WeightedDrawEngine(rng=lambda: 0.55),
        locks=locks,
    )
    credit_service = CreditService(balance_store, locks)

    app = create_app(
        AppConfig(
            server=ServerConfig(debug_routes=True),
            spin=SpinConfig(),
            lootboxes=[BOX],
        )
    )
    app.dependency_overrides[get_spin_service] = lambda: spin_service
    app.dependency_overrides[get_credit_service] = lambda: credit_service
    app.dependency_overrides[get_product_lookup] = lambda: product_lookup
    app.dependency_overrides[get_event_bus] = lambda: event_bus

    return ApiFixture(
        client=TestClient(app, raise_server_exceptions=False),
        balance_store=balance_store,
        gateway=gateway,
        product_lookup=product_lookup,
        event_bus=event_bus,
    )


def test_health_and_ping(api: ApiFixture) -> None:
    assert api.client.get("/health").json() == {"status": "ok"}
    assert api.client.get(f"{PREFIX}/ping").json() == {"status": "ok"}


def test_list_lootboxes(api: ApiFixture) -> None:
    resp = api.client.get(f"{PREFIX}/lootboxes")

    assert resp.status_code == 200
    body = resp.json()
    assert body[0]["id"] == "elyxyr_basic"
    assert body[0]["name"] == "Lootbox Elyxyr Basic"
    assert body[0]["price_credits"] == 10
    assert body[0]["items"][0] == {"variantId": 111, "title": "Common", "weight": 60.0}


def test_spin_returns_outcome_json(api: ApiFixture) -> None:
    api.balance_store.balances["1001"] = 25

    resp = api.client.post(
        f"{PREFIX}/spin", json={"customerId": "1001", "boxId": "elyxyr_basic"}
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["customerId"] == "1001"
    assert body["boxId"] == "elyxyr_basic"
    assert body["boxName"] == "Lootbox Elyxyr Basic"
    assert body["credits_before"] == 25
    assert body["credits_after"] == 15
    assert body["price_credits"] == 10
    assert body["prize"] == {"variantId": 111, "title": "Common"}
    assert body["orderId"] == 7788990011
    assert body["orderError"] is None
    assert resp.headers.get("X-Request-Id")


def test_spin_accepts_numeric_customer_id(api: ApiFixture) -> None:
    api.balance_store.balances["8123456789"] = 10

    resp = api.client.post(
        f"{PREFIX}/spin", json={"customerId": 8123456789, "boxId": "elyxyr_basic"}
    )

    assert resp.status_code == 200
    assert resp.json()["customerId"] == "8123456789"
    assert api.balance_store.balances["8123456789"] == 0


def test_spin_reports_order_error_with_200(api: ApiFixture) -> None:
    api.balance_store.balances["1001"] = 25
    api.gateway.error = FulfillmentFailed("Shopify API error: 422 - invalid variant")

    resp = api.client.post(
        f"{PREFIX}/spin", json={"customerId": "1001", "boxId": "elyxyr_basic"}
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["orderId"] is None
    assert body["orderError"] == "Shopify API error: 422 - invalid variant"
    assert body["credits_after"] == 15


@pytest.mark.parametrize(
    "payload",
    [
        {"boxId": "elyxyr_basic"},
        {"customerId": "1001"},
        {"customerId": "", "boxId": "elyxyr_basic"},
        {},
    ],
)
def test_spin_rejects_missing_fields(api: ApiFixture, payload: dict) -> None:
    resp = api.client.post(f"{PREFIX}/spin", json=payload)

    assert resp.status_code == 400
    assert resp.json() == {"error": "Missing 'customerId' or 'boxId' in body."}


def test_spin_rejects_unknown_box(api: ApiFixture) -> None:
    api.balance_store.balances["1001"] = 25

    resp = api.client.post(
        f"{PREFIX}/spin", json={"customerId": "1001", "boxId": "mystery"}
    )

    assert resp.status_code == 400
    assert resp.json() == {"error": "Unknown lootbox 'mystery'"}
    assert api.balance_store.set_calls == []


def test_spin_with_insufficient_credits(api: ApiFixture) -> None:
    api.balance_store.balances["1001"] = 5

    resp = api.client.post(
        f"{PREFIX}/spin", json={"customerId": "1001", "boxId": "elyxyr_basic"}
    )

    assert resp.status_code == 400
    assert resp.json() == {"error": "Not enough credits", "required": 10, "current": 5}
    assert api.balance_store.balances["1001"] == 5
    assert api.event_bus.published == []


def test_spin_maps_store_failure_to_generic_500(api: ApiFixture) -> None:
    api.balance_store.get_error = StoreUnavailable("token rejected by Shopify")

    resp = api.client.post(
        f"{PREFIX}/spin", json={"customerId": "1001", "boxId": "elyxyr_basic"}
    )

    assert resp.status_code == 500
    assert resp.json() == {"error": "Credit store unavailable"}
    assert "token" not in resp.text


def test_spin_maps_unexpected_error_to_internal_error(api: ApiFixture) -> None:
    api.balance_store.get_error = RuntimeError("kaboom")

    resp = api.client.post(
        f"{PREFIX}/spin", json={"customerId": "1001", "boxId": "elyxyr_basic"}
    )

    assert resp.status_code == 500
    assert resp.json() == {"error": "Internal server error"}


def test_spin_rejects_malformed_json(api: ApiFixture) -> None:
    resp = api.client.post(
        f"{PREFIX}/spin",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )

    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid request body."}


def test_spin_publishes_completed_event(api: ApiFixture) -> None:
    api.balance_store.balances["1001"] = 25

    api.client.post(
        f"{PREFIX}/spin", json={"customerId": "1001", "boxId": "elyxyr_basic"}
    )

    assert len(api.event_bus.published) == 1
    topic, event = api.event_bus.published[0]
    assert topic == "elyxyr.lootbox"
    assert event.payload["type"] == "lootbox.spin_completed"
    assert event.payload["customer_id"] == "1001"
    assert event.payload["credits_before"] == 25
    assert event.payload["credits_after"] == 15
    assert event.payload["variant_id"] == 111
    assert event.payload["order_id"] == 7788990011
    assert event.id == event.payload["id"]

    parsed = LootboxSpinCompletedEvent.from_dict(event.payload)
    assert parsed.box_id == "elyxyr_basic"
    assert parsed.prize_title == "Common"
    assert parsed.order_error is None


def test_spin_succeeds_when_event_publish_fails(api: ApiFixture) -> None:
    api.balance_store.balances["1001"] = 25
    api.event_bus.error = RuntimeError("broker down")

    resp = api.client.post(
        f"{PREFIX}/spin", json={"customerId": "1001", "boxId": "elyxyr_basic"}
    )

    assert resp.status_code == 200
    assert resp.json()["credits_after"] == 15


def test_get_credits(api: ApiFixture) -> None:
    api.balance_store.balances["1001"] = 42

    resp = api.client.get(f"{PREFIX}/credits/1001")

    assert resp.status_code == 200
    assert resp.json() == {"customerId": "1001", "credits": 42}


def test_set_credits_floors_value(api: ApiFixture) -> None:
    resp = api.client.post(f"{PREFIX}/credits/1001", json={"credits": 12.7})

    assert resp.status_code == 200
    assert resp.json() == {"customerId": "1001", "credits": 12}
    assert api.balance_store.balances["1001"] == 12


@pytest.mark.parametrize("payload", [{"credits": "abc"}, {"credits": -3}, {}])
def test_set_credits_rejects_invalid_value(api: ApiFixture, payload: dict) -> None:
    resp = api.client.post(f"{PREFIX}/credits/1001", json=payload)

    assert resp.status_code == 400
    assert resp.json() == {
        "error": "Invalid 'credits' value. Must be a positive number."
    }
    assert api.balance_store.set_calls == []


def test_retry_fulfillments_without_ledger_returns_503(api: ApiFixture) -> None:
    resp = api.client.post(f"{PREFIX}/ledger/retry-fulfillments")

    assert resp.status_code == 503
    assert resp.json() == {"error": "Spin ledger unavailable"}


def test_debug_product_returns_raw_product(api: ApiFixture) -> None:
    resp = api.client.get(f"{PREFIX}/debug-product/42")

    assert resp.status_code == 200
    assert resp.json()["product"]["id"] == 42


def test_debug_product_maps_shopify_error(api: ApiFixture) -> None:
    api.product_lookup.error = ShopifyRequestError("Shopify API error: 404 - Not Found")

    resp = api.client.get(f"{PREFIX}/debug-product/42")

    assert resp.status_code == 500
    assert resp.json() == {"error": "Unable to fetch product"}


def test_debug_routes_are_hidden_by_default() -> None:
    app = create_app(AppConfig(server=ServerConfig(), spin=SpinConfig(), lootboxes=[BOX]))
    client = TestClient(app)

    assert client.get(f"{PREFIX}/debug-product/42").status_code == 404


def test_cors_echoes_storefront_origin(api: ApiFixture) -> None:
    resp = api.client.get(
        f"{PREFIX}/ping", headers={"Origin": "https://elyxyr.myshopify.com"}
    )

    assert resp.headers["access-control-allow-origin"] in {
        "*",
        "https://elyxyr.myshopify.com",
    }


def test_get_credits_maps_store_failure(api: ApiFixture) -> None:
    api.balance_store.get_error = StoreUnavailable("Shopify API error: 401 - denied")

    resp = api.client.get(f"{PREFIX}/credits/1001")

    assert resp.status_code == 500
    assert resp.json() == {"error": "Unable to fetch credits"}


@pytest.mark.parametrize("customer_id", ["abc", "1/../../products/42"])
def test_spin_rejects_non_numeric_customer_id(
    api: ApiFixture, customer_id: str
) -> None:
    resp = api.client.post(
        f"{PREFIX}/spin", json={"customerId": customer_id, "boxId": "elyxyr_basic"}
    )

    assert resp.status_code == 400
    assert resp.json() == {
        "error": "Invalid 'customerId'. Must be a Shopify customer id."
    }
    assert api.balance_store.set_calls == []
