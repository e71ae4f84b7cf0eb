from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from ...models.ledger import SpinLedgerEntry


class RetriedFulfillmentResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ledger_entry_id: str | None = Field(alias="ledgerEntryId")
    customer_id: str = Field(alias="customerId")
    box_id: str = Field(alias="boxId")
    status: str
    order_id: int | None = Field(default=None, alias="orderId")
    order_error: str | None = Field(default=None, alias="orderError")
    attempts: int

    @classmethod
    def from_domain(cls, entry: SpinLedgerEntry) -> "RetriedFulfillmentResponse":
        return cls(
            ledger_entry_id=entry.id,
            customer_id=entry.customer_id,
            box_id=entry.box_id,
            status=entry.fulfillment_status.value,
            order_id=entry.order_id,
            order_error=entry.fulfillment_error,
            attempts=entry.fulfillment_attempts,
        )


class RetryFulfillmentsResponse(BaseModel):
    retried: int
    items: list[RetriedFulfillmentResponse]
