"""디버그 라우터. LOOTBOX_DEBUG_ROUTES 가 켜져 있을 때만 등록된다."""

from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from common.shopify.client import ShopifyRequestError

from ...dependencies import get_product_lookup
from ...repositories.interfaces import ProductLookupInterface


logger = logging.getLogger(__name__)

router = APIRouter(tags=["debug"])


@router.get("/debug-product/{product_id}")
def debug_product(
    product_id: str,
    lookup: Annotated[ProductLookupInterface, Depends(get_product_lookup)],
) -> Any:
    """Shopify 상품 JSON 을 그대로 돌려준다. variant_id 확인용."""
    try:
        return lookup.get_product(product_id)
    except ShopifyRequestError as exc:
        logger.error("failed to fetch product %s: %s", product_id, exc)
        return JSONResponse(status_code=500, content={"error": "Unable to fetch product"})
