"""로트박스 스핀 라우터.

스토어프론트(앱 프록시)에서 호출한다. 박스 조회 -> SpinService.spin -> JSON 렌더링.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends

from common.eventbus.helpers import new_json_event
from common.eventbus.kafka import KafkaEventBus
from common.eventbus.topics import TOPIC_LOOTBOX
from common.events.lootbox import LootboxEventType, LootboxSpinCompletedEvent

from ...dependencies import get_event_bus, get_lootbox_catalog, get_spin_service
from ...exceptions import InvalidInput
from ...models.lootbox import LootBox, SpinOutcome
from ...repositories.lootbox_catalog import LootboxCatalog
from ...services.spin_service import SpinService
from ..schemas.spin import LootBoxResponse, SpinRequest, SpinResponse


logger = logging.getLogger(__name__)

router = APIRouter(tags=["spin"])


@router.get("/lootboxes")
def list_lootboxes(
    catalog: Annotated[LootboxCatalog, Depends(get_lootbox_catalog)],
) -> list[LootBoxResponse]:
    """설정된 로트박스 목록과 상품별 가중치."""
    return [LootBoxResponse.from_domain(box) for box in catalog.list()]


@router.post("/spin")
def spin(
    req: SpinRequest,
    catalog: Annotated[LootboxCatalog, Depends(get_lootbox_catalog)],
    spin_service: Annotated[SpinService, Depends(get_spin_service)],
    event_bus: Annotated[KafkaEventBus | None, Depends(get_event_bus)],
) -> SpinResponse:
    """크레딧을 차감하고 상품을 추첨한다.

    주문 생성이 실패해도 200 으로 응답하며 orderError 에 사유를 담는다.
    """
    customer_id = str(req.customer_id).strip() if req.customer_id is not None else ""
    box_id = (req.box_id or "").strip()
    if not customer_id or not box_id:
        raise InvalidInput("Missing 'customerId' or 'boxId' in body.")

    box = catalog.require(box_id)
    outcome = spin_service.spin(customer_id, box, request_id=req.request_id)

    if event_bus is not None and not outcome.replayed:
        _publish_spin_completed_event(event_bus, outcome, box)

    return SpinResponse.from_outcome(outcome, box)


# -------- Event Publishing Helpers --------


def _publish_spin_completed_event(
    event_bus: KafkaEventBus, outcome: SpinOutcome, box: LootBox
) -> None:
    """lootbox.spin_completed 이벤트 발행. 실패해도 스핀 응답에는 영향을 주지 않는다."""
    event_id = str(uuid.uuid4())
    event = LootboxSpinCompletedEvent(
        id=event_id,
        type=LootboxEventType.SPIN_COMPLETED,
        timestamp=datetime.now(timezone.utc).isoformat(),
        source="lootbox-service",
        version="1.0",
        customer_id=outcome.customer_id,
        box_id=box.id,
        price_credits=box.price_credits,
        credits_before=outcome.credits_before,
        credits_after=outcome.credits_after,
        variant_id=outcome.chosen_item.prize_ref,
        prize_title=outcome.chosen_item.display_name,
        order_id=outcome.fulfillment_order_id,
        order_error=outcome.fulfillment_error,
        ledger_entry_id=outcome.ledger_entry_id,
    )
    try:
        event_bus.publish(
            TOPIC_LOOTBOX.base, new_json_event(payload=asdict(event), event_id=event_id)
        )
    except Exception:  # noqa: BLE001
        logger.exception(
            "failed to publish spin completed event",
            extra={"customer_id": outcome.customer_id, "box_id": box.id},
        )
