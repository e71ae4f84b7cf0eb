from __future__ import annotations

from collections.abc import Iterable
from types import MappingProxyType

from ..exceptions import InvalidConfiguration, UnknownBox
from ..models.lootbox import LootBox


class LootboxCatalog:
    """box id -> LootBox 불변 조회 테이블. 기동 시 한 번 만들고 요청 중에는 읽기만 한다."""

    def __init__(self, boxes: Iterable[LootBox]) -> None:
        table: dict[str, LootBox] = {}
        for box in boxes:
            if box.id in table:
                raise InvalidConfiguration(f"duplicate lootbox id '{box.id}'")
            table[box.id] = box
        if not table:
            raise InvalidConfiguration("at least one lootbox must be configured")
        self._boxes = MappingProxyType(table)

    def get(self, box_id: str) -> LootBox | None:
        return self._boxes.get(box_id)

    def require(self, box_id: str) -> LootBox:
        box = self._boxes.get(box_id)
        if box is None:
            raise UnknownBox(box_id)
        return box

    def list(self) -> list[LootBox]:
        return list(self._boxes.values())

    def __len__(self) -> int:
        return len(self._boxes)
