from __future__ import annotations

from typing import Any, Protocol

from ..models.ledger import SpinLedgerEntry


class BalanceStoreInterface(Protocol):
    """고객 크레딧 잔액 저장소가 따라야 할 최소한의 계약.

    - 레코드가 없거나 정수로 읽히지 않는 값은 0 으로 취급한다.
    - 전송/인증 실패는 StoreUnavailable 로 올린다. 재시도는 하지 않는다.
    - set_balance 는 다른 set_balance 와 원자적이지 않다. 직렬화는 호출 측 책임이다.
    """

    def get_balance(self, customer_id: str) -> int:  # pragma: no cover - Protocol
        ...

    def set_balance(
        self, customer_id: str, new_value: int
    ) -> None:  # pragma: no cover - Protocol
        ...


class FulfillmentGatewayInterface(Protocol):
    """당첨 상품 주문 생성. 실패는 FulfillmentFailed 로 올린다."""

    def create_order(
        self, customer_id: str, prize_ref: int, note: str
    ) -> int:  # pragma: no cover - Protocol
        ...


class ProductLookupInterface(Protocol):
    def get_product(
        self, product_id: str
    ) -> dict[str, Any]:  # pragma: no cover - Protocol
        ...


class SpinLedgerRepositoryInterface(Protocol):
    """스핀 원장 저장소 계약. 저장소 오류는 LedgerUnavailable 로 올린다."""

    def create(
        self, entry: SpinLedgerEntry
    ) -> SpinLedgerEntry:  # pragma: no cover - Protocol
        ...

    def find_by_request_id(
        self, customer_id: str, request_id: str
    ) -> SpinLedgerEntry | None:  # pragma: no cover - Protocol
        ...

    def mark_succeeded(
        self, entry_id: str, order_id: int
    ) -> None:  # pragma: no cover - Protocol
        ...

    def claim_for_retry(
        self, entry_id: str
    ) -> bool:  # pragma: no cover - Protocol
        """failed 항목을 pending 으로 되돌린다. 다른 쪽이 먼저 가져갔으면 False."""
        ...

    def mark_failed(
        self, entry_id: str, error: str
    ) -> None:  # pragma: no cover - Protocol
        ...

    def list_failed(
        self, limit: int
    ) -> list[SpinLedgerEntry]:  # pragma: no cover - Protocol
        ...
