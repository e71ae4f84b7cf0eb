"""스핀 원장 정산 라우터."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from ...dependencies import get_spin_service
from ...services.spin_service import SpinService
from ..schemas.ledger import RetriedFulfillmentResponse, RetryFulfillmentsResponse


router = APIRouter(prefix="/ledger", tags=["ledger"])


@router.post("/retry-fulfillments")
def retry_fulfillments(
    spin_service: Annotated[SpinService, Depends(get_spin_service)],
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
) -> RetryFulfillmentsResponse:
    """주문 생성이 실패한 스핀의 주문을 다시 만든다 (재차감 없음)."""
    entries = spin_service.retry_failed_fulfillments(limit)
    return RetryFulfillmentsResponse(
        retried=len(entries),
        items=[RetriedFulfillmentResponse.from_domain(entry) for entry in entries],
    )
