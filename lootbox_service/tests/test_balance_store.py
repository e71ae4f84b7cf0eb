from __future__ import annotations

import json
from typing import Callable

import httpx
import pytest

from common.shopify.client import ShopifyAdminClient
from common.shopify.config import ShopifyConfig
from lootbox_service.app.exceptions import InvalidInput, StoreUnavailable
from lootbox_service.app.repositories.balance_store import (
    ShopifyBalanceStore,
    parse_balance,
)


API_PREFIX = "/admin/api/2024-10"

Handler = Callable[[httpx.Request], httpx.Response]


class RecordingShopify:
    """요청을 기록하고 핸들러 응답을 돌려주는 MockTransport 래퍼."""

    def __init__(self, handler: Handler) -> None:
        self.handler = handler
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)


def _build_store(handler: Handler) -> tuple[ShopifyBalanceStore, RecordingShopify]:
    recorder = RecordingShopify(handler)
    client = ShopifyAdminClient(
        ShopifyConfig(store_domain="test.myshopify.com", access_token="tok"),
        transport=httpx.MockTransport(recorder),
    )
    return ShopifyBalanceStore(client), recorder


def _metafields_response(*metafields: dict) -> httpx.Response:
    return httpx.Response(200, json={"metafields": list(metafields)})


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (None, 0),
        ("42", 42),
        (7, 7),
        (" 3 ", 3),
        ("abc", 0),
        ("", 0),
        ("-5", 0),
        ("4.5", 0),
        ("12abc", 0),
    ],
)
def test_parse_balance(raw: object, expected: int) -> None:
    assert parse_balance(raw) == expected


def test_get_balance_reads_credits_metafield() -> None:
    store, recorder = _build_store(
        lambda request: _metafields_response(
            {"id": 900, "namespace": "custom", "key": "credits_elyxyr", "value": "25"}
        )
    )

    assert store.get_balance("123") == 25

    request = recorder.requests[0]
    assert request.method == "GET"
    assert request.url.host == "test.myshopify.com"
    assert request.url.path == f"{API_PREFIX}/customers/123/metafields.json"
    assert request.url.params["namespace"] == "custom"
    assert request.url.params["key"] == "credits_elyxyr"
    assert request.headers["X-Shopify-Access-Token"] == "tok"


def test_get_balance_returns_zero_when_metafield_missing() -> None:
    store, _ = _build_store(lambda request: _metafields_response())

    assert store.get_balance("123") == 0


def test_get_balance_ignores_other_metafields() -> None:
    store, _ = _build_store(
        lambda request: _metafields_response(
            {"id": 1, "namespace": "custom", "key": "nickname", "value": "99"}
        )
    )

    assert store.get_balance("123") == 0


@pytest.mark.parametrize("raw", ["not-a-number", "-3"])
def test_get_balance_treats_unusable_values_as_zero(raw: str) -> None:
    store, _ = _build_store(
        lambda request: _metafields_response(
            {"id": 900, "namespace": "custom", "key": "credits_elyxyr", "value": raw}
        )
    )

    assert store.get_balance("123") == 0


def test_get_balance_raises_store_unavailable_on_http_error() -> None:
    store, _ = _build_store(lambda request: httpx.Response(500, text="boom"))

    with pytest.raises(StoreUnavailable):
        store.get_balance("123")


def test_get_balance_raises_store_unavailable_on_transport_error() -> None:
    def _handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    store, _ = _build_store(_handler)

    with pytest.raises(StoreUnavailable):
        store.get_balance("123")


def test_get_balance_fails_when_client_not_configured() -> None:
    client = ShopifyAdminClient(ShopifyConfig(store_domain=None, access_token=None))
    store = ShopifyBalanceStore(client)

    with pytest.raises(StoreUnavailable) as exc_info:
        store.get_balance("123")

    assert "Shopify env vars not configured" in str(exc_info.value)


def test_set_balance_updates_existing_metafield() -> None:
    def _handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return _metafields_response(
                {"id": 900, "namespace": "custom", "key": "credits_elyxyr", "value": "25"}
            )
        return httpx.Response(200, json={"metafield": {"id": 900, "value": "15"}})

    store, recorder = _build_store(_handler)

    store.set_balance("123", 15)

    write = recorder.requests[-1]
    assert write.method == "PUT"
    assert write.url.path == f"{API_PREFIX}/metafields/900.json"
    assert json.loads(write.content) == {
        "metafield": {"id": 900, "value": "15", "type": "number_integer"}
    }


def test_set_balance_creates_metafield_when_missing() -> None:
    def _handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return _metafields_response()
        return httpx.Response(201, json={"metafield": {"id": 901, "value": "40"}})

    store, recorder = _build_store(_handler)

    store.set_balance("123", 40)

    write = recorder.requests[-1]
    assert write.method == "POST"
    assert write.url.path == f"{API_PREFIX}/metafields.json"
    assert json.loads(write.content) == {
        "metafield": {
            "namespace": "custom",
            "key": "credits_elyxyr",
            "value": "40",
            "type": "number_integer",
            "owner_id": 123,
            "owner_resource": "customer",
        }
    }


def test_set_balance_rejects_negative_value_without_calling_shopify() -> None:
    store, recorder = _build_store(lambda request: _metafields_response())

    with pytest.raises(InvalidInput):
        store.set_balance("123", -1)

    assert recorder.requests == []


def test_set_balance_raises_store_unavailable_on_write_error() -> None:
    def _handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return _metafields_response()
        return httpx.Response(422, json={"errors": {"value": ["is invalid"]}})

    store, _ = _build_store(_handler)

    with pytest.raises(StoreUnavailable) as exc_info:
        store.set_balance("123", 10)

    assert "422" in str(exc_info.value)


@pytest.mark.parametrize(
    ("customer_id", "expected_path"),
    [
        (
            "1/../../products/42",
            f"{API_PREFIX}/customers/1%2F..%2F..%2Fproducts%2F42/metafields.json",
        ),
        ("a b", f"{API_PREFIX}/customers/a%20b/metafields.json"),
    ],
)
def test_get_balance_escapes_customer_id_in_path(
    customer_id: str, expected_path: str
) -> None:
    store, recorder = _build_store(lambda request: _metafields_response())

    store.get_balance(customer_id)

    # 다른 리소스 경로로 빠져나가지 않는다.
    assert recorder.requests[0].url.raw_path.decode().split("?")[0] == expected_path


@pytest.mark.parametrize("customer_id", ["..", "."])
def test_get_balance_rejects_dot_segments(customer_id: str) -> None:
    store, recorder = _build_store(lambda request: _metafields_response())

    with pytest.raises(StoreUnavailable):
        store.get_balance(customer_id)

    assert recorder.requests == []
