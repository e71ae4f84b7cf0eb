from __future__ import annotations

from ..exceptions import InvalidInput


def normalize_customer_id(customer_id: str | None) -> str:
    """Shopify 고객 id 를 정규화한다.

    Admin API 경로와 고객 락의 키로 그대로 쓰이므로 양의 정수만 받는다.
    "0123" 과 "123" 은 같은 고객이므로 앞자리 0 을 떼어 하나의 키로 맞춘다.
    """

    value = (customer_id or "").strip()
    if not value:
        raise InvalidInput("Missing 'customerId'.")
    if not (value.isascii() and value.isdigit()) or int(value) == 0:
        raise InvalidInput("Invalid 'customerId'. Must be a Shopify customer id.")
    return str(int(value))
