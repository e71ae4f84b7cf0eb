"""Shopify 고객 메타필드 기반 크레딧 잔액 저장소.

잔액은 고객별 메타필드 `custom.credits_elyxyr` (number_integer) 한 건으로 저장된다.
캐시는 두지 않으며 모든 읽기/쓰기가 Admin API 를 왕복한다.
"""

from __future__ import annotations

import logging
from typing import Any

from common.shopify.client import (
    ShopifyAdminClient,
    ShopifyRequestError,
    quote_path_segment,
)

from ..exceptions import InvalidInput, StoreUnavailable
from .interfaces import BalanceStoreInterface


logger = logging.getLogger(__name__)


CREDITS_NAMESPACE = "custom"
CREDITS_KEY = "credits_elyxyr"
CREDITS_METAFIELD_TYPE = "number_integer"


def parse_balance(raw: Any) -> int:
    """메타필드 값을 잔액으로 해석한다. 해석할 수 없거나 음수이면 0."""

    if raw is None:
        return 0
    try:
        value = int(str(raw).strip())
    except ValueError:
        return 0
    return value if value >= 0 else 0


def _owner_id(customer_id: str) -> int | str:
    return int(customer_id) if customer_id.isdigit() else customer_id


class ShopifyBalanceStore(BalanceStoreInterface):
    def __init__(
        self,
        client: ShopifyAdminClient,
        *,
        namespace: str = CREDITS_NAMESPACE,
        key: str = CREDITS_KEY,
    ) -> None:
        self._client = client
        self._namespace = namespace
        self._key = key

    def get_balance(self, customer_id: str) -> int:
        metafield = self._find_metafield(customer_id)
        if metafield is None:
            return 0

        balance = parse_balance(metafield.get("value"))
        if str(balance) != str(metafield.get("value", "")).strip():
            logger.warning(
                "credits metafield value %r is not a non-negative integer, using %d",
                metafield.get("value"),
                balance,
                extra={"customer_id": customer_id},
            )
        return balance

    def set_balance(self, customer_id: str, new_value: int) -> None:
        if new_value < 0:
            raise InvalidInput("Balance must be a non-negative integer.")

        metafield = self._find_metafield(customer_id)
        try:
            if metafield is not None:
                metafield_id = metafield["id"]
                self._client.put(
                    f"/metafields/{quote_path_segment(metafield_id)}.json",
                    {
                        "metafield": {
                            "id": metafield_id,
                            "value": str(new_value),
                            "type": CREDITS_METAFIELD_TYPE,
                        }
                    },
                )
            else:
                self._client.post(
                    "/metafields.json",
                    {
                        "metafield": {
                            "namespace": self._namespace,
                            "key": self._key,
                            "value": str(new_value),
                            "type": CREDITS_METAFIELD_TYPE,
                            "owner_id": _owner_id(customer_id),
                            "owner_resource": "customer",
                        }
                    },
                )
        except ShopifyRequestError as exc:
            raise StoreUnavailable(
                f"failed to write credits for customer {customer_id}: {exc}"
            ) from exc

    def _find_metafield(self, customer_id: str) -> dict[str, Any] | None:
        try:
            data = self._client.get(
                f"/customers/{quote_path_segment(customer_id)}/metafields.json",
                params={"namespace": self._namespace, "key": self._key},
            )
        except ShopifyRequestError as exc:
            raise StoreUnavailable(
                f"failed to read credits for customer {customer_id}: {exc}"
            ) from exc

        metafields = data.get("metafields") or []
        for metafield in metafields:
            if not isinstance(metafield, dict):
                continue
            # 쿼리 필터가 무시되는 경우를 대비해 namespace/key 를 다시 확인한다.
            if (
                metafield.get("namespace", self._namespace) == self._namespace
                and metafield.get("key", self._key) == self._key
            ):
                return metafield
        return None
