from __future__ import annotations

import os


KAFKA_BOOTSTRAP_SERVERS_ENV = "KAFKA_BOOTSTRAP_SERVERS"


def get_brokers() -> str | None:
    """Kafka 브로커 주소를 반환한다.

    lootbox-service 에서 이벤트 발행은 선택 기능이므로, 설정되지 않으면 None 을 반환하고
    호출 측에서 발행을 건너뛴다.
    """

    value = os.getenv(KAFKA_BOOTSTRAP_SERVERS_ENV, "").strip()
    return value or None
