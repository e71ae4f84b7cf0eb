"""FastAPI DI 용 팩토리.

프로세스 수명 동안 하나만 있어야 하는 객체(카탈로그, 락 레지스트리, 서비스)는 lru_cache 로
싱글톤으로 만든다. 테스트는 app.dependency_overrides 로 교체한다.
"""

from __future__ import annotations

from functools import lru_cache

from fastapi import Request

from common.eventbus.kafka import KafkaEventBus, get_kafka_event_bus
from common.mongo.client import get_database
from common.shopify.client import get_shopify_client

from .config import AppConfig, load_config
from .repositories.balance_store import ShopifyBalanceStore
from .repositories.fulfillment_gateway import ShopifyOrderGateway
from .repositories.interfaces import ProductLookupInterface
from .repositories.lootbox_catalog import LootboxCatalog
from .repositories.spin_ledger_repository import SpinLedgerRepository
from .services.credit_service import CreditService
from .services.customer_locks import CustomerLockRegistry
from .services.spin_service import SpinService


@lru_cache(maxsize=1)
def get_app_config() -> AppConfig:
    return load_config()


def get_lootbox_catalog(request: Request) -> LootboxCatalog:
    """create_app 에서 만들어 둔 카탈로그를 돌려준다."""
    return request.app.state.catalog


@lru_cache(maxsize=1)
def get_lock_registry() -> CustomerLockRegistry:
    return CustomerLockRegistry()


@lru_cache(maxsize=1)
def get_balance_store() -> ShopifyBalanceStore:
    return ShopifyBalanceStore(get_shopify_client())


@lru_cache(maxsize=1)
def get_order_gateway() -> ShopifyOrderGateway:
    return ShopifyOrderGateway(
        get_shopify_client(), order_tag=get_app_config().spin.order_tag
    )


def get_product_lookup() -> ProductLookupInterface:
    return get_order_gateway()


@lru_cache(maxsize=1)
def get_spin_service() -> SpinService:
    ledger = None
    if get_app_config().spin.ledger_enabled:
        ledger = SpinLedgerRepository(get_database())
    return SpinService(
        get_balance_store(),
        get_order_gateway(),
        locks=get_lock_registry(),
        ledger=ledger,
    )


@lru_cache(maxsize=1)
def get_credit_service() -> CreditService:
    return CreditService(get_balance_store(), get_lock_registry())


def get_event_bus() -> KafkaEventBus | None:
    return get_kafka_event_bus()
