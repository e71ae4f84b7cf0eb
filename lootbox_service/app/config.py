from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .exceptions import InvalidConfiguration
from .models.lootbox import LootBox, LootItem


DEFAULT_CONFIG_FILE_NAME = "config.yaml"

LOOTBOX_SERVICE_PORT = "LOOTBOX_SERVICE_PORT"
LOOTBOX_PROXY_PREFIX = "LOOTBOX_PROXY_PREFIX"
LOOTBOX_CORS_ORIGINS = "LOOTBOX_CORS_ORIGINS"
LOOTBOX_DEBUG_ROUTES = "LOOTBOX_DEBUG_ROUTES"
LOOTBOX_ORDER_TAG = "LOOTBOX_ORDER_TAG"
LOOTBOX_LEDGER_ENABLED = "LOOTBOX_LEDGER_ENABLED"
LOOTBOX_CONFIG_PATH = "LOOTBOX_CONFIG_PATH"

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(slots=True)
class ServerConfig:
    """HTTP 레이어 설정. Shopify 앱 프록시 경로(/apps/elyxyr) 아래에 라우트를 건다."""

    port: int = 3000
    proxy_prefix: str = "/apps/elyxyr"
    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    debug_routes: bool = False


@dataclass(slots=True)
class SpinConfig:
    order_tag: str = "Elyxyr Lootbox"
    ledger_enabled: bool = False


@dataclass(slots=True)
class AppConfig:
    """lootbox-service 전체 설정 루트."""

    server: ServerConfig
    spin: SpinConfig
    lootboxes: list[LootBox]


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in _TRUE_VALUES


def load_server_config() -> ServerConfig:
    port_raw = os.getenv(LOOTBOX_SERVICE_PORT, "").strip()
    try:
        port = int(port_raw) if port_raw else 3000
    except ValueError as exc:
        raise RuntimeError(
            f"{LOOTBOX_SERVICE_PORT} must be an integer if set, got: {port_raw!r}"
        ) from exc

    prefix = os.getenv(LOOTBOX_PROXY_PREFIX, "").strip() or "/apps/elyxyr"
    prefix = "/" + prefix.strip("/")

    origins_raw = os.getenv(LOOTBOX_CORS_ORIGINS, "").strip()
    cors_origins = (
        [origin.strip() for origin in origins_raw.split(",") if origin.strip()]
        if origins_raw
        else ["*"]
    )

    return ServerConfig(
        port=port,
        proxy_prefix=prefix,
        cors_origins=cors_origins,
        debug_routes=_env_bool(LOOTBOX_DEBUG_ROUTES),
    )


def load_spin_config() -> SpinConfig:
    return SpinConfig(
        order_tag=os.getenv(LOOTBOX_ORDER_TAG, "").strip() or "Elyxyr Lootbox",
        ledger_enabled=_env_bool(LOOTBOX_LEDGER_ENABLED),
    )


def _find_config_path() -> Path:
    """LOOTBOX_CONFIG_PATH 가 있으면 그 경로를 쓴다.

    없으면 작업 디렉토리부터 상위로, 그 다음 패키지 위치부터 상위로 config.yaml 을 찾는다.
    """

    explicit = os.getenv(LOOTBOX_CONFIG_PATH, "").strip()
    if explicit:
        path = Path(explicit)
        if not path.is_file():
            raise RuntimeError(f"{LOOTBOX_CONFIG_PATH} points to a missing file: {explicit}")
        return path

    current = Path.cwd()
    module_dir = Path(__file__).resolve().parent
    for directory in (current, *current.parents, *module_dir.parents):
        candidate = directory / DEFAULT_CONFIG_FILE_NAME
        if candidate.is_file():
            return candidate

    raise RuntimeError(
        f"{DEFAULT_CONFIG_FILE_NAME} not found. Place config.yaml in project root "
        f"or set {LOOTBOX_CONFIG_PATH}.",
    )


def parse_lootboxes(raw_boxes: Any, *, source: str = "config") -> list[LootBox]:
    """`lootboxes:` 섹션을 LootBox 목록으로 변환한다.

    YAML 키는 운영자가 Shopify 화면에서 보는 이름(variant_id, title, name)을 그대로 쓴다.
    잘못된 항목은 건너뛰지 않고 InvalidConfiguration 으로 기동을 막는다.
    """

    if not isinstance(raw_boxes, list) or not raw_boxes:
        raise InvalidConfiguration(f"{source}: 'lootboxes' must be a non-empty list")

    boxes: list[LootBox] = []
    for index, raw in enumerate(raw_boxes):
        if not isinstance(raw, dict):
            raise InvalidConfiguration(f"{source}: lootboxes[{index}] must be a mapping")

        raw_items = raw.get("items") or []
        if not isinstance(raw_items, list):
            raise InvalidConfiguration(f"{source}: lootboxes[{index}].items must be a list")

        try:
            items = tuple(
                LootItem(
                    prize_ref=item.get("variant_id"),
                    display_name=str(item.get("title", "")).strip(),
                    weight=item.get("weight"),
                )
                for item in raw_items
                if isinstance(item, dict)
            )
            box = LootBox(
                id=str(raw.get("id", "")),
                display_name=str(raw.get("name", "")).strip(),
                price_credits=raw.get("price_credits"),
                items=items,
            )
        except ValidationError as exc:
            raise InvalidConfiguration(
                f"{source}: invalid lootboxes[{index}]: {exc}"
            ) from exc

        if len(items) != len(raw_items):
            raise InvalidConfiguration(
                f"{source}: lootboxes[{index}].items entries must be mappings"
            )
        boxes.append(box)

    return boxes


def load_lootboxes(path: Path | None = None) -> list[LootBox]:
    path = path or _find_config_path()
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    return parse_lootboxes(data.get("lootboxes"), source=str(path))


def load_config() -> AppConfig:
    """lootbox-service 설정을 로드하여 AppConfig 로 반환한다."""

    return AppConfig(
        server=load_server_config(),
        spin=load_spin_config(),
        lootboxes=load_lootboxes(),
    )
