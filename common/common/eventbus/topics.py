from __future__ import annotations

from .core import Topic


TOPIC_LOOTBOX = Topic("elyxyr.lootbox")
