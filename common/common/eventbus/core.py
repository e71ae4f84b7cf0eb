from __future__ import annotations

from dataclasses import dataclass
from typing import Any


DEFAULT_MAX_RETRY = 5


@dataclass(slots=True)
class Event:
    """Kafka 메시지 봉투(envelope).

    컨슈머 쪽 재시도 정책과 호환되도록 retry/max_retry/last_error 필드를 그대로 싣는다.
    payload 는 JSON 직렬화 가능한 dict 여야 한다.
    """

    id: str
    payload: Any
    retry: int = 0
    max_retry: int = DEFAULT_MAX_RETRY
    last_error: str | None = None

    def __post_init__(self) -> None:
        if self.max_retry <= 0:
            self.max_retry = DEFAULT_MAX_RETRY


@dataclass(frozen=True, slots=True)
class Topic:
    base: str
