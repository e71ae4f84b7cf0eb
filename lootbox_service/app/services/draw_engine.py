"""가중치 기반 상품 추첨.

total = sum(weight), r = rng() * total 을 뽑고 주어진 순서대로 누적합을 더해가며
r <= 누적합 을 처음 만족하는 항목을 고른다. 경계값(r == 누적합)은 그 경계에서 끝나는
항목에 귀속된다.
"""

from __future__ import annotations

import math
import random
from collections.abc import Sequence
from typing import Callable

from ..exceptions import InvalidConfiguration
from ..models.lootbox import DrawResult, LootItem


RandomSource = Callable[[], float]


def sample(items: Sequence[LootItem], rng: RandomSource = random.random) -> LootItem:
    """items 중 하나를 weight 에 비례하는 확률로 고른다.

    rng 는 [0, 1) 균등분포 값을 돌려주는 함수다. 테스트에서는 고정값을 돌려주는 함수를 넣는다.
    """

    if not items:
        raise InvalidConfiguration("cannot draw from an empty item list")

    total_weight = 0.0
    for item in items:
        if not math.isfinite(item.weight) or item.weight <= 0:
            raise InvalidConfiguration(
                f"item '{item.display_name}' has a non-positive weight: {item.weight}"
            )
        total_weight += item.weight

    if total_weight <= 0:
        raise InvalidConfiguration("total weight must be positive")

    r = rng() * total_weight
    cumulative = 0.0
    for item in items:
        cumulative += item.weight
        if r <= cumulative:
            return item

    # 부동소수점 누적 오차로 r 이 마지막 누적합을 넘는 경우
    return items[-1]


class WeightedDrawEngine:
    """rng 를 고정해 둔 sample() 래퍼. SpinService 에 주입된다."""

    def __init__(self, rng: RandomSource | None = None) -> None:
        self._rng: RandomSource = rng or random.SystemRandom().random

    def draw(self, items: Sequence[LootItem]) -> DrawResult:
        return DrawResult(chosen_item=sample(items, self._rng))
