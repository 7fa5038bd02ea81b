from __future__ import annotations

import logging
import random
import time
from typing import Callable, List, Optional, Sequence, Set

from ..config import GameConfig
from ..world.floor import Floor
from ..world.geometry import Point
from ..world.tiles import Cell
from .entities import Item, ItemKind

logger = logging.getLogger(__name__)


class ItemSpawner:
    """Places level-scaled collectibles on a generated floor.

    Vault (LIT_FLOOR) cells are filled first, rarest kinds first; the
    remaining per-kind counts go on ordinary FLOOR cells. No two items
    share a cell.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.config = config or GameConfig()
        self.rng = rng or random.Random()
        self.clock = clock

    def spawn(self, floor: Floor, level: int) -> List[Item]:
        now_ms = int(self.clock() * 1000)
        items = self._fill_vault(floor, level, now_ms)

        spawn_cfg = self.config.spawn
        quotas = (
            (ItemKind.CURRENCY, spawn_cfg.currency.count_for(level)),
            (ItemKind.HEALTH_POTION, spawn_cfg.health_potion.count_for(level)),
            (ItemKind.STAMINA_POTION, spawn_cfg.stamina_potion.count_for(level)),
            (ItemKind.RARE_ARTIFACT, spawn_cfg.rare_artifact.count_for(level)),
        )
        candidates = floor.find(Cell.FLOOR)
        if floor.spawn is not None:
            candidates = [p for p in candidates if p != floor.spawn]
        self.rng.shuffle(candidates)
        used: Set[Point] = set()
        cursor = 0
        for kind, quota in quotas:
            placed = 0
            while placed < quota and cursor < len(candidates):
                p = candidates[cursor]
                cursor += 1
                if p in used:
                    continue
                used.add(p)
                items.append(self._make(floor, kind, p, f"{kind.value}-{level}-{placed}", now_ms))
                placed += 1
            if placed < quota:
                logger.debug("Floor %d ran out of cells for %s (%d/%d)", level, kind.value, placed, quota)
        logger.info("Spawned %d items on floor %d", len(items), level)
        return items

    def _fill_vault(self, floor: Floor, level: int, now_ms: int) -> List[Item]:
        cells = floor.find(Cell.LIT_FLOOR)
        if not cells:
            return []
        cfg = self.config.spawn
        self.rng.shuffle(cells)
        count = min(len(cells), max(cfg.vault_min_items, len(cells) - cfg.vault_free_cells))
        # Never fill every lit cell; the player needs room to step in.
        count = min(count, max(0, len(cells) - cfg.vault_free_cells))
        items: List[Item] = []
        for i, p in enumerate(cells[:count]):
            kind = self._vault_kind(i)
            items.append(self._make(floor, kind, p, f"vault-{kind.value}-{level}-{i}", now_ms))
        logger.debug("Filled vault on floor %d with %d items", level, len(items))
        return items

    def _vault_kind(self, index: int) -> ItemKind:
        cfg = self.config.spawn
        if index < cfg.vault_rare:
            return ItemKind.RARE_ARTIFACT
        if index < cfg.vault_rare + cfg.vault_health:
            return ItemKind.HEALTH_POTION
        if index < cfg.vault_rare + cfg.vault_health + cfg.vault_stamina:
            return ItemKind.STAMINA_POTION
        return ItemKind.CURRENCY

    def _make(self, floor: Floor, kind: ItemKind, p: Point, item_id: str, now_ms: int) -> Item:
        return Item(id=item_id, kind=kind, position=floor.cell_center(p, self.config.cell_size), spawned_at=now_ms)


def count_by_kind(items: Sequence[Item]) -> dict:
    counts = {kind: 0 for kind in ItemKind}
    for item in items:
        counts[item.kind] += 1
    return counts
