"""크레딧 조회/설정 라우터 (관리자, 테스트용)."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ...dependencies import get_credit_service
from ...exceptions import StoreUnavailable
from ...services.credit_service import CreditService
from ..schemas.credits import CreditsResponse, SetCreditsRequest


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/credits", tags=["credits"])


@router.get("/{customer_id}", response_model=CreditsResponse)
def get_credits(
    customer_id: str,
    credit_service: Annotated[CreditService, Depends(get_credit_service)],
):
    try:
        credits = credit_service.get_credits(customer_id)
    except StoreUnavailable as exc:
        logger.error("failed to fetch credits: %s", exc, extra={"customer_id": customer_id})
        return JSONResponse(status_code=500, content={"error": "Unable to fetch credits"})
    return CreditsResponse(customer_id=customer_id, credits=credits)


@router.post("/{customer_id}", response_model=CreditsResponse)
def set_credits(
    customer_id: str,
    req: SetCreditsRequest,
    credit_service: Annotated[CreditService, Depends(get_credit_service)],
):
    """잔액을 덮어쓴다. 소수는 내림한다."""
    try:
        credits = credit_service.set_credits(customer_id, req.credits)
    except StoreUnavailable as exc:
        logger.error("failed to set credits: %s", exc, extra={"customer_id": customer_id})
        return JSONResponse(status_code=500, content={"error": "Unable to set credits"})
    return CreditsResponse(customer_id=customer_id, credits=credits)
