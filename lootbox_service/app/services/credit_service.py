"""고객 크레딧 조회/설정 (관리자, 테스트용)."""

from __future__ import annotations

import logging
import math

from ..exceptions import InvalidInput
from ..repositories.interfaces import BalanceStoreInterface
from .customer_ids import normalize_customer_id
from .customer_locks import CustomerLockRegistry


logger = logging.getLogger(__name__)


class CreditService:
    def __init__(
        self,
        balance_store: BalanceStoreInterface,
        locks: CustomerLockRegistry,
    ) -> None:
        self._balance_store = balance_store
        self._locks = locks

    def get_credits(self, customer_id: str) -> int:
        return self._balance_store.get_balance(normalize_customer_id(customer_id))

    def set_credits(self, customer_id: str, credits: float) -> int:
        """잔액을 덮어쓴다. 소수는 내림하고, 저장된 정수 값을 반환한다."""

        customer_id = normalize_customer_id(customer_id)
        if (
            isinstance(credits, bool)
            or not isinstance(credits, (int, float))
            or not math.isfinite(credits)
            or credits < 0
        ):
            raise InvalidInput("Invalid 'credits' value. Must be a positive number.")

        normalized = math.floor(credits)
        # 진행 중인 스핀과 같은 락을 잡아 스핀의 차감을 덮어쓰지 않게 한다.
        with self._locks.hold(customer_id):
            self._balance_store.set_balance(customer_id, normalized)

        logger.info("credits set to %d", normalized, extra={"customer_id": customer_id})
        return normalized

