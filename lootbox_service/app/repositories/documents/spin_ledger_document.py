"""스핀 원장 MongoDB 도큐먼트."""

from __future__ import annotations

from pydantic import BaseModel

from common.mongo.types import BaseDocument, from_object_id

from ...models.ledger import FulfillmentStatus, SpinLedgerEntry
from ...models.lootbox import LootItem


class PrizeSubDocument(BaseModel):
    """당첨 상품 스냅샷. 설정이 바뀌어도 원장 기록은 그대로 남는다."""

    variant_id: int
    title: str
    weight: float


class SpinLedgerDocument(BaseDocument):
    """MongoDB spin_ledger 컬렉션 도큐먼트 모델."""

    customer_id: str
    box_id: str
    box_name: str = ""
    request_id: str | None = None
    price_credits: int
    credits_before: int
    credits_after: int
    prize: PrizeSubDocument
    fulfillment_status: FulfillmentStatus = FulfillmentStatus.PENDING
    order_id: int | None = None
    fulfillment_error: str | None = None
    fulfillment_attempts: int = 0

    @classmethod
    def from_domain(cls, entry: SpinLedgerEntry) -> "SpinLedgerDocument":
        return cls(
            customer_id=entry.customer_id,
            box_id=entry.box_id,
            box_name=entry.box_name,
            request_id=entry.request_id,
            price_credits=entry.price_credits,
            credits_before=entry.credits_before,
            credits_after=entry.credits_after,
            prize=PrizeSubDocument(
                variant_id=entry.prize.prize_ref,
                title=entry.prize.display_name,
                weight=entry.prize.weight,
            ),
            fulfillment_status=entry.fulfillment_status,
            order_id=entry.order_id,
            fulfillment_error=entry.fulfillment_error,
            fulfillment_attempts=entry.fulfillment_attempts,
            created_at=entry.created_at,
            updated_at=entry.updated_at,
        )

    def to_mongo_record(self) -> dict:
        record = super().to_mongo_record()
        # Enum 은 문자열 값으로 저장한다.
        record["fulfillment_status"] = self.fulfillment_status.value
        return record

    def to_domain(self) -> SpinLedgerEntry:
        return SpinLedgerEntry(
            id=from_object_id(self.id),
            customer_id=self.customer_id,
            box_id=self.box_id,
            box_name=self.box_name,
            request_id=self.request_id,
            price_credits=self.price_credits,
            credits_before=self.credits_before,
            credits_after=self.credits_after,
            prize=LootItem(
                prize_ref=self.prize.variant_id,
                display_name=self.prize.title,
                weight=self.prize.weight,
            ),
            fulfillment_status=self.fulfillment_status,
            order_id=self.order_id,
            fulfillment_error=self.fulfillment_error,
            fulfillment_attempts=self.fulfillment_attempts,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
