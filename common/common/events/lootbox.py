"""로트박스 관련 이벤트 정의."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Self


class LootboxEventType:
    """로트박스 이벤트 타입 상수."""

    SPIN_COMPLETED = "lootbox.spin_completed"


@dataclass(slots=True)
class LootboxSpinCompletedEvent:
    """스핀 완료 이벤트.

    크레딧이 차감된 모든 스핀에 대해 발행된다. 주문 생성이 실패한 경우에도 발행되며,
    order_error 로 정산(reconciliation) 대상을 식별할 수 있다.
    """

    id: str
    type: str
    timestamp: str
    source: str
    version: str
    customer_id: str
    box_id: str
    price_credits: int
    credits_before: int
    credits_after: int
    variant_id: int
    prize_title: str
    order_id: int | None
    order_error: str | None
    ledger_entry_id: str | None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        order_id = data.get("order_id")
        return cls(
            id=str(data["id"]),
            type=str(data["type"]),
            timestamp=str(data["timestamp"]),
            source=str(data["source"]),
            version=str(data.get("version", "1.0")),
            customer_id=str(data["customer_id"]),
            box_id=str(data["box_id"]),
            price_credits=int(data["price_credits"]),
            credits_before=int(data["credits_before"]),
            credits_after=int(data["credits_after"]),
            variant_id=int(data["variant_id"]),
            prize_title=str(data["prize_title"]),
            order_id=int(order_id) if order_id is not None else None,
            order_error=data.get("order_error"),
            ledger_entry_id=data.get("ledger_entry_id"),
        )
