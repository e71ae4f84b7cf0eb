from __future__ import annotations

import logging
import threading
from typing import Any, Optional
from urllib.parse import quote

import httpx

from .config import ShopifyConfig, load_shopify_config


logger = logging.getLogger(__name__)


ACCESS_TOKEN_HEADER = "X-Shopify-Access-Token"

# 에러 메시지/로그에 포함할 응답 본문 최대 길이
ERROR_BODY_SAMPLE_LENGTH = 500


class ShopifyRequestError(Exception):
    """Shopify Admin API 호출 실패.

    - 설정 누락, 네트워크 오류: status_code 는 None
    - 2xx 가 아닌 응답: status_code 와 본문 일부(body)를 담는다.
    """

    def __init__(
        self, message: str, *, status_code: int | None = None, body: str = ""
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


def quote_path_segment(value: object) -> str:
    """URL 경로 한 칸에 들어갈 값을 인코딩한다.

    "/" 는 %2F 로 바뀌고, 상위 경로로 해석될 수 있는 "." / ".." 는 거부한다.
    """

    segment = quote(str(value), safe="")
    if segment in {"", ".", ".."}:
        raise ShopifyRequestError(f"invalid path segment: {value!r}")
    return segment


class ShopifyAdminClient:
    """Shopify Admin REST API 용 얇은 동기 클라이언트.

    재시도는 하지 않는다. 타임아웃은 ShopifyConfig.timeout_seconds 를 따른다.
    transport 는 테스트에서 httpx.MockTransport 를 주입하기 위한 용도다.
    """

    def __init__(
        self,
        config: ShopifyConfig,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._config = config
        self._client: httpx.Client | None = None
        if config.is_configured:
            self._client = httpx.Client(
                base_url=config.base_url,
                timeout=config.timeout_seconds,
                transport=transport,
                headers={
                    "Content-Type": "application/json",
                    "Accept": "application/json",
                    ACCESS_TOKEN_HEADER: config.access_token or "",
                },
            )

    def close(self) -> None:
        if self._client is not None:
            self._client.close()

    def get(self, path: str, *, params: dict[str, Any] | None = None) -> dict[str, Any]:
        return self.request("GET", path, params=params)

    def post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        return self.request("POST", path, json=payload)

    def put(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        return self.request("PUT", path, json=payload)

    def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Admin API 를 호출하고 JSON 본문을 dict 로 반환한다.

        본문이 비어 있거나 JSON 이 아니면 빈 dict 를 반환한다.
        """

        if self._client is None:
            raise ShopifyRequestError("Shopify env vars not configured")

        try:
            resp = self._client.request(method, path, params=params, json=json)
        except httpx.HTTPError as exc:
            raise ShopifyRequestError(
                f"Shopify request failed: {method} {path}: {exc}"
            ) from exc

        if not resp.is_success:
            body_sample = resp.text[:ERROR_BODY_SAMPLE_LENGTH]
            logger.error(
                "Shopify API error: %s %s -> %d %s",
                method,
                path,
                resp.status_code,
                body_sample,
            )
            raise ShopifyRequestError(
                f"Shopify API error: {resp.status_code} - {body_sample}",
                status_code=resp.status_code,
                body=body_sample,
            )

        try:
            data = resp.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}


_client: Optional[ShopifyAdminClient] = None
_lock = threading.Lock()


def get_shopify_client() -> ShopifyAdminClient:
    """프로세스 전역 ShopifyAdminClient 싱글톤을 반환한다."""

    global _client

    if _client is not None:
        return _client

    with _lock:
        if _client is not None:
            return _client

        config = load_shopify_config()
        if not config.is_configured:
            logger.warning(
                "SHOPIFY_STORE_DOMAIN or SHOPIFY_ADMIN_API_ACCESS_TOKEN is missing; "
                "Shopify calls will fail until both are set",
            )
        _client = ShopifyAdminClient(config)
        logger.info(
            "Shopify client initialized (domain=%s, api_version=%s)",
            config.store_domain,
            config.api_version,
        )
        return _client


def close_shopify_client() -> None:
    global _client

    with _lock:
        if _client is not None:
            _client.close()
            _client = None
