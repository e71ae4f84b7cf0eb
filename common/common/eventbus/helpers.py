from __future__ import annotations

import time
from dataclasses import asdict
from typing import Any, Mapping

from .core import Event


def new_json_event(
    payload: Mapping[str, Any],
    *,
    event_id: str | None = None,
) -> Event:
    """dict 페이로드를 Event 로 감싼다. id 가 없으면 나노초 타임스탬프를 사용한다."""

    if not event_id:
        event_id = str(time.time_ns())
    return Event(id=event_id, payload=dict(payload))


def event_to_dict(event: Event) -> dict[str, Any]:
    return asdict(event)
