"""로트박스 스핀 트랜잭션.

잔액 조회 -> 잔액 확인 -> 추첨 -> 차감 -> 주문 생성 순서로 진행한다.
차감(set_balance)이 성공한 시점이 확정 시점이며, 이후의 주문 생성 실패는 롤백하지 않고
결과의 fulfillment_error 로 보고한다. 원장이 설정되어 있으면 차감/주문 상태를 기록해
주문만 나중에 다시 시도할 수 있게 한다.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Callable

from common.mongo.types import utc_now

from ..exceptions import (
    FulfillmentFailed,
    InsufficientCredits,
    LedgerUnavailable,
)
from ..models.ledger import FulfillmentStatus, SpinLedgerEntry
from ..models.lootbox import LootBox, LootItem, SpinOutcome
from ..repositories.interfaces import (
    BalanceStoreInterface,
    FulfillmentGatewayInterface,
    SpinLedgerRepositoryInterface,
)
from .customer_ids import normalize_customer_id
from .customer_locks import CustomerLockRegistry
from .draw_engine import WeightedDrawEngine


logger = logging.getLogger(__name__)


UNEXPECTED_ORDER_ERROR = "Unexpected error while creating order"


def build_order_note(box_name: str) -> str:
    return f"Gain lootbox {box_name}"


class SpinService:
    """크레딧을 소모해 상품을 뽑는 트랜잭션 오케스트레이터."""

    def __init__(
        self,
        balance_store: BalanceStoreInterface,
        fulfillment: FulfillmentGatewayInterface,
        *,
        draw_engine: WeightedDrawEngine | None = None,
        locks: CustomerLockRegistry | None = None,
        ledger: SpinLedgerRepositoryInterface | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._balance_store = balance_store
        self._fulfillment = fulfillment
        self._draw_engine = draw_engine or WeightedDrawEngine()
        self._locks = locks or CustomerLockRegistry()
        self._ledger = ledger
        self._clock = clock
        self._reconcile_lock = threading.Lock()

    def spin(
        self, customer_id: str, box: LootBox, *, request_id: str | None = None
    ) -> SpinOutcome:
        """스핀 1회를 수행한다.

        Raises:
            InvalidInput: customer_id 가 비어 있거나 양의 정수가 아닐 때
            InsufficientCredits: 잔액이 박스 가격보다 작을 때 (잔액 변경 없음)
            StoreUnavailable: 잔액 조회/차감 실패 (차감 실패 시 이후 단계는 수행하지 않음)
        """

        customer_id = normalize_customer_id(customer_id)
        request_id = (request_id or "").strip() or None

        log_extra = {"customer_id": customer_id, "box_id": box.id}

        with self._locks.hold(customer_id):
            if request_id is not None and self._ledger is not None:
                existing = self._ledger.find_by_request_id(customer_id, request_id)
                if existing is not None:
                    logger.info(
                        "replaying spin for request_id=%s", request_id, extra=log_extra
                    )
                    return self._outcome_from_entry(existing)

            before = self._balance_store.get_balance(customer_id)
            if before < box.price_credits:
                logger.info(
                    "not enough credits: required=%d current=%d",
                    box.price_credits,
                    before,
                    extra=log_extra,
                )
                raise InsufficientCredits(required=box.price_credits, current=before)

            chosen = self._draw_engine.draw(box.items).chosen_item

            after = before - box.price_credits
            self._balance_store.set_balance(customer_id, after)

            # 여기부터는 차감이 확정된 상태다. 결과를 반환하기 전까지 중단하지 않는다.
            logger.info(
                "credits debited: %d -> %d, prize variant_id=%d",
                before,
                after,
                chosen.prize_ref,
                extra=log_extra,
            )

            entry_id = self._record_debit(
                customer_id, box, chosen, before, after, request_id
            )
            order_id, order_error = self._fulfill(customer_id, box.display_name, chosen)
            self._record_fulfillment(entry_id, order_id, order_error, log_extra)

        return SpinOutcome(
            customer_id=customer_id,
            box_id=box.id,
            credits_before=before,
            credits_after=after,
            chosen_item=chosen,
            fulfillment_order_id=order_id,
            fulfillment_error=order_error,
            ledger_entry_id=entry_id,
        )

    def retry_failed_fulfillments(self, limit: int = 20) -> list[SpinLedgerEntry]:
        """원장에서 주문 생성이 실패한 스핀의 주문만 다시 시도한다. 잔액은 건드리지 않는다.

        항목은 주문 생성 전에 pending 으로 바뀐다. 주문 결과를 원장에 기록하지 못한 항목은
        pending 으로 남으며 다시 자동으로 주문되지 않는다. 한 항목의 원장 오류는 로그만 남기고
        나머지 항목을 계속 처리한다.
        """

        if self._ledger is None:
            raise LedgerUnavailable("spin ledger is not enabled")

        results: list[SpinLedgerEntry] = []
        with self._reconcile_lock:
            for entry in self._ledger.list_failed(limit):
                if entry.id is None:
                    continue
                log_extra = {
                    "customer_id": entry.customer_id,
                    "box_id": entry.box_id,
                    "ledger_entry_id": entry.id,
                }

                try:
                    claimed = self._ledger.claim_for_retry(entry.id)
                except LedgerUnavailable:
                    logger.exception("failed to claim ledger entry for retry", extra=log_extra)
                    continue
                if not claimed:
                    continue

                order_id, order_error = self._fulfill(
                    entry.customer_id, entry.box_name or entry.box_id, entry.prize
                )
                status = (
                    FulfillmentStatus.SUCCEEDED
                    if order_id is not None
                    else FulfillmentStatus.FAILED
                )
                self._record_fulfillment(
                    entry.id, order_id, order_error, {**log_extra, "order_id": order_id}
                )

                logger.info(
                    "fulfillment retry finished with status=%s",
                    status.value,
                    extra={**log_extra, "order_id": order_id},
                )
                results.append(
                    entry.model_copy(
                        update={
                            "fulfillment_status": status,
                            "order_id": order_id if order_id is not None else entry.order_id,
                            "fulfillment_error": order_error,
                            "fulfillment_attempts": entry.fulfillment_attempts + 1,
                        }
                    )
                )
        return results

    # 내부 util -------------------------------------------------------------
    def _fulfill(
        self, customer_id: str, box_name: str, chosen: LootItem
    ) -> tuple[int | None, str | None]:
        """주문 생성을 시도하고 (order_id, error) 중 하나를 채워 반환한다. 예외를 올리지 않는다."""

        try:
            order_id = self._fulfillment.create_order(
                customer_id, chosen.prize_ref, build_order_note(box_name)
            )
        except FulfillmentFailed as exc:
            logger.error(
                "failed to create lootbox order: %s",
                exc,
                extra={"customer_id": customer_id},
            )
            return None, str(exc)
        except Exception:  # noqa: BLE001
            logger.exception(
                "unexpected error while creating lootbox order",
                extra={"customer_id": customer_id},
            )
            return None, UNEXPECTED_ORDER_ERROR
        return order_id, None

    def _record_debit(
        self,
        customer_id: str,
        box: LootBox,
        chosen: LootItem,
        before: int,
        after: int,
        request_id: str | None,
    ) -> str | None:
        if self._ledger is None:
            return None

        now = self._clock()
        try:
            entry = self._ledger.create(
                SpinLedgerEntry(
                    customer_id=customer_id,
                    box_id=box.id,
                    box_name=box.display_name,
                    request_id=request_id,
                    price_credits=box.price_credits,
                    credits_before=before,
                    credits_after=after,
                    prize=chosen,
                    created_at=now,
                    updated_at=now,
                )
            )
        except LedgerUnavailable:
            logger.exception(
                "failed to record spin in ledger",
                extra={"customer_id": customer_id, "box_id": box.id},
            )
            return None
        return entry.id

    def _record_fulfillment(
        self,
        entry_id: str | None,
        order_id: int | None,
        order_error: str | None,
        log_extra: dict[str, object],
    ) -> None:
        if self._ledger is None or entry_id is None:
            return

        try:
            if order_id is not None:
                self._ledger.mark_succeeded(entry_id, order_id)
            else:
                self._ledger.mark_failed(entry_id, order_error or UNEXPECTED_ORDER_ERROR)
        except LedgerUnavailable:
            logger.exception(
                "failed to update spin ledger entry",
                extra={**log_extra, "ledger_entry_id": entry_id},
            )

    @staticmethod
    def _outcome_from_entry(entry: SpinLedgerEntry) -> SpinOutcome:
        return SpinOutcome(
            customer_id=entry.customer_id,
            box_id=entry.box_id,
            credits_before=entry.credits_before,
            credits_after=entry.credits_after,
            chosen_item=entry.prize,
            fulfillment_order_id=entry.order_id,
            fulfillment_error=entry.fulfillment_error,
            ledger_entry_id=entry.id,
            replayed=True,
        )
