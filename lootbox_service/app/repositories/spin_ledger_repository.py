"""스핀 원장 레포지토리 (MongoDB).

차감이 확정된 스핀마다 한 건을 남기고, 주문 생성 결과에 따라 상태를 갱신한다.
(customer_id, request_id) 유니크 인덱스로 같은 요청의 재처리를 막는다.
"""

from __future__ import annotations

from pymongo import ASCENDING, DESCENDING, IndexModel
from pymongo.database import Database
from pymongo.errors import PyMongoError

from common.mongo.types import to_object_id, utc_now

from ..exceptions import LedgerUnavailable
from ..models.ledger import FulfillmentStatus, SpinLedgerEntry
from .documents.spin_ledger_document import SpinLedgerDocument
from .interfaces import SpinLedgerRepositoryInterface


class SpinLedgerRepository(SpinLedgerRepositoryInterface):
    """spin_ledger 컬렉션에 대한 MongoDB 접근 레이어."""

    def __init__(self, database: Database) -> None:
        self._col = database["spin_ledger"]
        self._col.create_indexes(
            [
                IndexModel(
                    [("customer_id", ASCENDING), ("request_id", ASCENDING)],
                    name="uniq_customer_request_id",
                    unique=True,
                    partialFilterExpression={"request_id": {"$type": "string"}},
                ),
                IndexModel(
                    [("fulfillment_status", ASCENDING), ("created_at", ASCENDING)],
                    name="idx_status_created_at",
                ),
                IndexModel(
                    [("customer_id", ASCENDING), ("created_at", DESCENDING)],
                    name="idx_customer_created_at",
                ),
            ]
        )

    def create(self, entry: SpinLedgerEntry) -> SpinLedgerEntry:
        payload = SpinLedgerDocument.from_domain(entry).to_mongo_record()
        try:
            result = self._col.insert_one(payload)
        except PyMongoError as exc:
            raise LedgerUnavailable(f"failed to insert spin ledger entry: {exc}") from exc
        return entry.model_copy(update={"id": str(result.inserted_id)})

    def find_by_request_id(
        self, customer_id: str, request_id: str
    ) -> SpinLedgerEntry | None:
        try:
            doc = self._col.find_one(
                {"customer_id": customer_id, "request_id": request_id}
            )
        except PyMongoError as exc:
            raise LedgerUnavailable(f"failed to query spin ledger: {exc}") from exc
        if doc is None:
            return None
        return SpinLedgerDocument.model_validate(doc).to_domain()

    def mark_succeeded(self, entry_id: str, order_id: int) -> None:
        self._update_status(
            entry_id,
            {
                "fulfillment_status": FulfillmentStatus.SUCCEEDED.value,
                "order_id": order_id,
                "fulfillment_error": None,
            },
        )

    def mark_failed(self, entry_id: str, error: str) -> None:
        self._update_status(
            entry_id,
            {
                "fulfillment_status": FulfillmentStatus.FAILED.value,
                "fulfillment_error": error,
            },
        )

    def claim_for_retry(self, entry_id: str) -> bool:
        # 주문 재생성 전에 pending 으로 돌려 둔다. 결과를 기록하지 못하고 끝나면
        # pending 으로 남아 자동 재시도 대상에서 빠진다.
        try:
            result = self._col.update_one(
                {
                    "_id": to_object_id(entry_id),
                    "fulfillment_status": FulfillmentStatus.FAILED.value,
                },
                {
                    "$set": {
                        "fulfillment_status": FulfillmentStatus.PENDING.value,
                        "updated_at": utc_now(),
                    }
                },
            )
        except PyMongoError as exc:
            raise LedgerUnavailable(
                f"failed to claim spin ledger entry {entry_id}: {exc}"
            ) from exc
        return result.modified_count == 1

    def list_failed(self, limit: int) -> list[SpinLedgerEntry]:
        if limit <= 0 or limit > 100:
            limit = 20

        try:
            cursor = self._col.find(
                {"fulfillment_status": FulfillmentStatus.FAILED.value},
                sort=[("created_at", ASCENDING), ("_id", ASCENDING)],
                limit=limit,
            )
            return [SpinLedgerDocument.model_validate(doc).to_domain() for doc in cursor]
        except PyMongoError as exc:
            raise LedgerUnavailable(f"failed to list failed spins: {exc}") from exc

    def _update_status(self, entry_id: str, fields: dict) -> None:
        try:
            self._col.update_one(
                {"_id": to_object_id(entry_id)},
                {
                    "$set": {**fields, "updated_at": utc_now()},
                    "$inc": {"fulfillment_attempts": 1},
                },
            )
        except PyMongoError as exc:
            raise LedgerUnavailable(
                f"failed to update spin ledger entry {entry_id}: {exc}"
            ) from exc
