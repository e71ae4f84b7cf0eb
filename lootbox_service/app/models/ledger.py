"""스핀 원장(ledger) 도메인 모델.

차감 1건과 그에 대한 주문 생성 상태를 기록한다. 주문이 실패한 항목은 재차감 없이
주문만 다시 시도할 수 있다.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel

from .lootbox import LootItem


class FulfillmentStatus(str, Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class SpinLedgerEntry(BaseModel):
    id: str | None = None
    customer_id: str
    box_id: str
    box_name: str = ""
    request_id: str | None = None
    price_credits: int
    credits_before: int
    credits_after: int
    prize: LootItem
    fulfillment_status: FulfillmentStatus = FulfillmentStatus.PENDING
    order_id: int | None = None
    fulfillment_error: str | None = None
    fulfillment_attempts: int = 0
    created_at: datetime
    updated_at: datetime
