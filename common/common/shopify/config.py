from __future__ import annotations

import os
from dataclasses import dataclass


SHOPIFY_STORE_DOMAIN_ENV = "SHOPIFY_STORE_DOMAIN"
SHOPIFY_ADMIN_API_ACCESS_TOKEN_ENV = "SHOPIFY_ADMIN_API_ACCESS_TOKEN"
SHOPIFY_API_VERSION_ENV = "SHOPIFY_API_VERSION"
SHOPIFY_TIMEOUT_SECONDS_ENV = "SHOPIFY_TIMEOUT_SECONDS"

DEFAULT_API_VERSION = "2024-10"
DEFAULT_TIMEOUT_SECONDS = 10.0


@dataclass(frozen=True, slots=True)
class ShopifyConfig:
    """Shopify Admin API 접속 설정.

    store_domain 은 반드시 `*.myshopify.com` 도메인이어야 한다 (커스텀 도메인 X).
    """

    store_domain: str | None
    access_token: str | None
    api_version: str = DEFAULT_API_VERSION
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    @property
    def is_configured(self) -> bool:
        return bool(self.store_domain and self.access_token)

    @property
    def base_url(self) -> str:
        return f"https://{self.store_domain}/admin/api/{self.api_version}"


def load_shopify_config() -> ShopifyConfig:
    """환경 변수에서 Shopify 설정을 읽는다.

    도메인/토큰이 비어 있어도 여기서는 실패하지 않는다. 앱 기동 시 경고만 남기고,
    실제 API 호출 시점에 ShopifyRequestError 로 실패시킨다.
    """

    store_domain = os.getenv(SHOPIFY_STORE_DOMAIN_ENV, "").strip() or None
    access_token = os.getenv(SHOPIFY_ADMIN_API_ACCESS_TOKEN_ENV, "").strip() or None
    api_version = (
        os.getenv(SHOPIFY_API_VERSION_ENV, "").strip() or DEFAULT_API_VERSION
    )

    timeout_raw = os.getenv(SHOPIFY_TIMEOUT_SECONDS_ENV, "").strip()
    if not timeout_raw:
        timeout_seconds = DEFAULT_TIMEOUT_SECONDS
    else:
        try:
            timeout_seconds = float(timeout_raw)
        except ValueError as exc:
            raise RuntimeError(
                f"{SHOPIFY_TIMEOUT_SECONDS_ENV} must be a number if set, got: {timeout_raw!r}"
            ) from exc
        if timeout_seconds <= 0:
            raise RuntimeError(
                f"{SHOPIFY_TIMEOUT_SECONDS_ENV} must be positive, got: {timeout_raw!r}"
            )

    return ShopifyConfig(
        store_domain=store_domain,
        access_token=access_token,
        api_version=api_version,
        timeout_seconds=timeout_seconds,
    )
