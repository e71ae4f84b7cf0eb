from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SetCreditsRequest(BaseModel):
    """잔액 설정 요청. 값 검증(숫자, 0 이상)은 CreditService 가 담당한다."""

    credits: Any = None


class CreditsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    customer_id: str = Field(alias="customerId")
    credits: int
