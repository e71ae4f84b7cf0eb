from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from ...models.lootbox import LootBox, SpinOutcome


class SpinRequest(BaseModel):
    """스핀 요청. 누락 필드는 엔드포인트에서 400 으로 처리하므로 모두 optional 로 받는다."""

    customer_id: str | int | None = Field(default=None, alias="customerId")
    box_id: str | None = Field(default=None, alias="boxId")
    request_id: str | None = Field(default=None, alias="requestId")


class PrizeResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    variant_id: int = Field(alias="variantId")
    title: str


class SpinResponse(BaseModel):
    """스토어프론트가 그대로 소비하는 스핀 결과 JSON."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    customer_id: str = Field(alias="customerId")
    box_id: str = Field(alias="boxId")
    box_name: str = Field(alias="boxName")
    credits_before: int
    credits_after: int
    price_credits: int
    prize: PrizeResponse
    order_id: int | None = Field(default=None, alias="orderId")
    order_error: str | None = Field(default=None, alias="orderError")
    ledger_entry_id: str | None = Field(default=None, alias="ledgerEntryId")
    replayed: bool = False

    @classmethod
    def from_outcome(cls, outcome: SpinOutcome, box: LootBox) -> "SpinResponse":
        return cls(
            customer_id=outcome.customer_id,
            box_id=outcome.box_id,
            box_name=box.display_name,
            credits_before=outcome.credits_before,
            credits_after=outcome.credits_after,
            price_credits=box.price_credits,
            prize=PrizeResponse(
                variant_id=outcome.chosen_item.prize_ref,
                title=outcome.chosen_item.display_name,
            ),
            order_id=outcome.fulfillment_order_id,
            order_error=outcome.fulfillment_error,
            ledger_entry_id=outcome.ledger_entry_id,
            replayed=outcome.replayed,
        )


class LootItemResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    variant_id: int = Field(alias="variantId")
    title: str
    weight: float


class LootBoxResponse(BaseModel):
    id: str
    name: str
    price_credits: int
    items: list[LootItemResponse]

    @classmethod
    def from_domain(cls, box: LootBox) -> "LootBoxResponse":
        return cls(
            id=box.id,
            name=box.display_name,
            price_credits=box.price_credits,
            items=[
                LootItemResponse(
                    variant_id=item.prize_ref,
                    title=item.display_name,
                    weight=item.weight,
                )
                for item in box.items
            ],
        )
