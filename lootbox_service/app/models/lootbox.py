"""로트박스 도메인 모델.

LootBox/LootItem 은 설정(config.yaml)에서 한 번 만들어진 뒤 프로세스 수명 동안 바뀌지 않는다.
SpinOutcome 은 스핀 호출마다 새로 만들어지며, 이 모델 자체는 저장되지 않는다.
"""

from __future__ import annotations

import math

from pydantic import BaseModel, ConfigDict, field_validator


class LootItem(BaseModel):
    """박스 안의 당첨 후보 하나."""

    model_config = ConfigDict(frozen=True)

    prize_ref: int  # Shopify variant_id (product_id 아님)
    display_name: str
    weight: float

    @field_validator("weight")
    @classmethod
    def _weight_must_be_positive(cls, value: float) -> float:
        if not math.isfinite(value) or value <= 0:
            raise ValueError("weight must be a positive finite number")
        return value


class LootBox(BaseModel):
    """가격이 붙은 가중치 상품 묶음."""

    model_config = ConfigDict(frozen=True)

    id: str
    display_name: str
    price_credits: int
    items: tuple[LootItem, ...]

    @field_validator("id")
    @classmethod
    def _id_must_not_be_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("lootbox id must not be empty")
        return value

    @field_validator("price_credits")
    @classmethod
    def _price_must_not_be_negative(cls, value: int) -> int:
        if value < 0:
            raise ValueError("price_credits must be >= 0")
        return value

    @field_validator("items")
    @classmethod
    def _items_must_not_be_empty(
        cls, value: tuple[LootItem, ...]
    ) -> tuple[LootItem, ...]:
        if not value:
            raise ValueError("lootbox must contain at least one item")
        return value


class DrawResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    chosen_item: LootItem


class SpinOutcome(BaseModel):
    """스핀 한 번의 결과.

    fulfillment_order_id / fulfillment_error 중 최대 하나만 채워진다.
    주문 생성이 실패해도 차감은 이미 반영된 상태이며 롤백하지 않는다.
    """

    customer_id: str
    box_id: str
    credits_before: int
    credits_after: int
    chosen_item: LootItem
    fulfillment_order_id: int | None = None
    fulfillment_error: str | None = None
    ledger_entry_id: str | None = None
    replayed: bool = False
