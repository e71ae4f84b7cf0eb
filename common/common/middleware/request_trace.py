import logging
import time
import uuid
from typing import Iterable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response


REQUEST_ID_HEADER = "X-Request-Id"

# 헬스체크/핑은 스토어 프록시가 자주 호출하므로 기본적으로 로그에서 제외한다.
DEFAULT_IGNORED_PATHS: frozenset[str] = frozenset({"/health"})


class RequestTraceMiddleware(BaseHTTPMiddleware):
    """요청 단위 Request ID 부여 및 완료 로그 미들웨어.

    - X-Request-Id 헤더를 읽고, 없으면 새로 생성해 request.state.request_id 에 저장한다.
    - 응답 헤더에 동일한 값을 돌려준다.
    - 요청마다 "completed request" 한 줄(또는 "request failed")을 남긴다.
    """

    def __init__(
        self,
        app,
        logger: logging.Logger | None = None,
        ignored_paths: Iterable[str] | None = None,
    ) -> None:  # type: ignore[override]
        super().__init__(app)
        self._logger = logger or logging.getLogger("request_trace")
        self._ignored_paths = (
            frozenset(ignored_paths)
            if ignored_paths is not None
            else DEFAULT_IGNORED_PATHS
        )

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id

        should_log = request.url.path not in self._ignored_paths
        start = time.monotonic()

        try:
            response = await call_next(request)
        except Exception:
            if should_log:
                self._logger.exception(
                    "request failed",
                    extra=self._build_log_extra(
                        request, request_id, duration=time.monotonic() - start
                    ),
                )
            raise

        response.headers.setdefault(REQUEST_ID_HEADER, request_id)

        if should_log:
            self._logger.info(
                "completed request",
                extra=self._build_log_extra(
                    request,
                    request_id,
                    status=response.status_code,
                    duration=time.monotonic() - start,
                ),
            )

        return response

    def _build_log_extra(
        self,
        request: Request,
        request_id: str,
        status: int | None = None,
        duration: float | None = None,
    ) -> dict[str, object]:
        extra: dict[str, object] = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
        }
        if status is not None:
            extra["status"] = status
        if duration is not None:
            extra["duration"] = f"{duration * 1000:.3f}ms"
        return extra
