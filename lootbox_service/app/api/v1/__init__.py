from fastapi import APIRouter

from ..health import proxy_router
from .credits import router as credits_router
from .debug import router as debug_router
from .ledger import router as ledger_router
from .spin import router as spin_router


def build_api_router(*, debug_routes: bool = False) -> APIRouter:
    """앱 프록시 prefix 아래에 걸릴 라우터를 만든다."""

    api_router = APIRouter()
    api_router.include_router(proxy_router, tags=["health"])
    api_router.include_router(spin_router)
    api_router.include_router(credits_router)  # prefix는 router 파일 내부에서 정의 (/credits)
    api_router.include_router(ledger_router)
    if debug_routes:
        api_router.include_router(debug_router)
    return api_router
