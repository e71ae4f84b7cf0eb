from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from common.eventbus.kafka import close_kafka_event_bus
from common.logger import setup_logger
from common.middleware.request_trace import RequestTraceMiddleware
from common.mongo.client import close_client
from common.shopify.client import close_shopify_client, get_shopify_client

from .api.health import router as health_router
from .api.v1 import build_api_router
from .config import AppConfig
from .dependencies import get_app_config
from .exceptions import LootboxServiceError
from .repositories.lootbox_catalog import LootboxCatalog


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):  # pragma: no cover - framework hook
    """기동 시 Shopify 설정을 확인(누락 시 경고)하고, 종료 시 외부 클라이언트를 정리한다."""

    get_shopify_client()
    try:
        yield
    finally:
        close_kafka_event_bus()
        close_shopify_client()
        close_client()


def create_app(config: AppConfig | None = None) -> FastAPI:
    if config is None:
        # 로컬 실행 시 .env 를 읽는다. 이미 설정된 환경 변수는 덮어쓰지 않는다.
        load_dotenv()
        config = get_app_config()
    setup_logger(name="lootbox-service")

    app = FastAPI(
        title="Elyxyr Lootbox Service",
        version="0.1.0",
        lifespan=lifespan,
    )

    # 박스 설정 오류는 요청 시점이 아니라 기동 시점에 드러나야 한다.
    app.state.config = config
    app.state.catalog = LootboxCatalog(config.lootboxes)

    prefix = config.server.proxy_prefix
    app.add_middleware(
        RequestTraceMiddleware,
        ignored_paths={"/health", f"{prefix}/ping"},
    )
    # 스토어 도메인에서 직접 호출하는 경우를 위해 Origin 을 되돌려준다.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.server.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    app.include_router(health_router, tags=["health"])
    app.include_router(
        build_api_router(debug_routes=config.server.debug_routes), prefix=prefix
    )

    _register_exception_handlers(app)

    logger.info(
        "lootbox-service configured (prefix=%s, lootboxes=%d, ledger=%s)",
        prefix,
        len(app.state.catalog),
        config.spin.ledger_enabled,
    )
    return app


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(LootboxServiceError)
    async def _service_error_handler(
        request: Request, exc: LootboxServiceError
    ) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(
                "%s on %s %s: %s",
                type(exc).__name__,
                request.method,
                request.url.path,
                exc,
            )
        return JSONResponse(status_code=exc.status_code, content=exc.to_payload())

    @app.exception_handler(RequestValidationError)
    async def _validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": "Invalid request body."})

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        # 내부 오류 상세는 로그에만 남기고 클라이언트에는 일반 메시지만 준다.
        logger.exception("unhandled error: %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})


app = create_app()


def main() -> None:
    import uvicorn

    config = get_app_config()
    # 고객별 락이 프로세스 내부에서만 유효하므로 워커는 1개로 고정한다.
    uvicorn.run(
        "lootbox_service.app.main:app",
        host="0.0.0.0",
        port=config.server.port,
        workers=1,
        reload=False,
        access_log=False,
    )


if __name__ == "__main__":  # pragma: no cover - CLI entrypoint
    main()
