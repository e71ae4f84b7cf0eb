"""Shopify 주문 생성 게이트웨이."""

from __future__ import annotations

import logging
from typing import Any

from common.shopify.client import (
    ShopifyAdminClient,
    ShopifyRequestError,
    quote_path_segment,
)

from ..exceptions import FulfillmentFailed
from .interfaces import FulfillmentGatewayInterface, ProductLookupInterface


logger = logging.getLogger(__name__)


DEFAULT_ORDER_TAG = "Elyxyr Lootbox"


class ShopifyOrderGateway(FulfillmentGatewayInterface, ProductLookupInterface):
    """당첨 상품을 결제 완료(paid) 상태의 주문으로 만든다."""

    def __init__(
        self, client: ShopifyAdminClient, *, order_tag: str = DEFAULT_ORDER_TAG
    ) -> None:
        self._client = client
        self._order_tag = order_tag

    def create_order(self, customer_id: str, prize_ref: int, note: str) -> int:
        body = {
            "order": {
                "customer": {"id": int(customer_id) if customer_id.isdigit() else customer_id},
                "line_items": [
                    {
                        "variant_id": prize_ref,
                        "quantity": 1,
                    }
                ],
                "financial_status": "paid",
                "tags": self._order_tag,
                "note": note,
            }
        }

        try:
            data = self._client.post("/orders.json", body)
        except ShopifyRequestError as exc:
            raise FulfillmentFailed(str(exc)) from exc

        order = data.get("order")
        if not isinstance(order, dict) or order.get("id") is None:
            raise FulfillmentFailed("Shopify order response did not contain an order id")

        try:
            return int(order["id"])
        except (TypeError, ValueError) as exc:
            raise FulfillmentFailed(
                f"Shopify returned a non-numeric order id: {order['id']!r}"
            ) from exc

    def get_product(self, product_id: str) -> dict[str, Any]:
        """상품 원본 JSON 을 그대로 반환한다 (디버그 라우트 전용)."""

        return self._client.get(f"/products/{quote_path_segment(product_id)}.json")
