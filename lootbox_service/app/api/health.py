from __future__ import annotations

from fastapi import APIRouter


router = APIRouter()


@router.get("/health", summary="헬스 체크")
async def health() -> dict[str, str]:
    return {"status": "ok"}


# 스토어 앱 프록시 경로 아래의 ping. api_router 에 prefix 와 함께 포함된다.
proxy_router = APIRouter()


@proxy_router.get("/ping", summary="앱 프록시 연결 확인")
async def ping() -> dict[str, str]:
    return {"status": "ok"}
