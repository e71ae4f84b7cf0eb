from __future__ import annotations

import json
import logging
import threading
from typing import Optional

from confluent_kafka import Producer

from .config import get_brokers
from .core import Event
from .helpers import event_to_dict

logger = logging.getLogger(__name__)


class KafkaEventBus:
    """Kafka 발행 전용 EventBus.

    produce 는 비동기이며, 전달 실패는 delivery callback 에서 로그로만 남는다.
    """

    def __init__(self, brokers: str) -> None:
        self._producer = Producer({"bootstrap.servers": brokers})
        self._brokers = brokers

    def close(self) -> None:
        self._producer.flush()

    def publish(self, topic: str, event: Event) -> None:
        payload = json.dumps(event_to_dict(event), ensure_ascii=False).encode("utf-8")

        def _delivery_callback(err, msg) -> None:  # type: ignore[no-untyped-def]
            if err is not None:
                logger.error("failed to deliver message to %s: %s", msg.topic(), err)

        self._producer.produce(
            topic=topic,
            value=payload,
            key=event.id.encode("utf-8"),
            callback=_delivery_callback,
        )
        self._producer.poll(0)


_bus: Optional[KafkaEventBus] = None
_lock = threading.Lock()


def get_kafka_event_bus() -> KafkaEventBus | None:
    """전역 KafkaEventBus 를 반환한다. KAFKA_BOOTSTRAP_SERVERS 가 없으면 None."""

    global _bus

    if _bus is not None:
        return _bus

    brokers = get_brokers()
    if brokers is None:
        return None

    with _lock:
        if _bus is None:
            _bus = KafkaEventBus(brokers)
            logger.info("Kafka producer initialized (brokers=%s)", brokers)
        return _bus


def close_kafka_event_bus() -> None:
    global _bus

    with _lock:
        if _bus is not None:
            _bus.close()
            _bus = None
