from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager


class CustomerLockRegistry:
    """고객 id 별 프로세스 내 상호배제.

    같은 고객에 대한 잔액 read-modify-write(스핀, 관리자 잔액 설정)를 직렬화해
    lost update 를 막는다. 락은 참조 카운트로 관리하고 마지막 사용자가 놓으면 제거한다.

    프로세스 간에는 보호되지 않으므로 워커는 1개로 띄워야 한다.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}
        self._holders: dict[str, int] = {}

    @contextmanager
    def hold(self, customer_id: str) -> Iterator[None]:
        with self._guard:
            lock = self._locks.get(customer_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[customer_id] = lock
            self._holders[customer_id] = self._holders.get(customer_id, 0) + 1

        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                remaining = self._holders[customer_id] - 1
                if remaining == 0:
                    del self._holders[customer_id]
                    del self._locks[customer_id]
                else:
                    self._holders[customer_id] = remaining

    def active_count(self) -> int:
        with self._guard:
            return len(self._locks)
