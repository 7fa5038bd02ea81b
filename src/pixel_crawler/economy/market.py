from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Optional, Tuple

from ..config import EconomyConfig
from ..progression.levels import LevelTable, apply_experience
from ..state import GameState
from .collector import RejectionReason

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SaleResult:
    experience_gained: int = 0
    items_sold: int = 0
    rejection_reason: Optional[RejectionReason] = None

    @property
    def accepted(self) -> bool:
        return self.rejection_reason is None


def sell_slot(state: GameState, index: int, economy: EconomyConfig, table: LevelTable) -> Tuple[GameState, SaleResult]:
    """Convert one inventory slot into experience and clear it."""
    if not 0 <= index < len(state.inventory):
        return state, SaleResult(rejection_reason=RejectionReason.INVALID_SLOT)
    item = state.inventory[index].item
    if item is None:
        return state, SaleResult(rejection_reason=RejectionReason.EMPTY_SLOT)
    experience = int(economy.item_prices.get(item.kind.value, 0))
    stats = apply_experience(state.player.stats, experience, table)
    new_state = replace(
        state,
        player=replace(state.player, stats=stats),
        inventory=state.inventory.remove(index),
    )
    logger.info("Sold %s from slot %d for %d xp", item.kind.value, index, experience)
    return new_state, SaleResult(experience_gained=experience, items_sold=1)


def sell_resources(state: GameState, economy: EconomyConfig, table: LevelTable) -> Tuple[GameState, SaleResult]:
    """Convert the whole collected-resources tally into experience and zero it."""
    bundle = state.collected
    if bundle.is_empty:
        return state, SaleResult(rejection_reason=RejectionReason.NOTHING_TO_SELL)
    experience = bundle.value(economy.resource_prices)
    stats = apply_experience(state.player.stats, experience, table)
    new_state = replace(state, player=replace(state.player, stats=stats), collected=bundle.cleared())
    logger.info("Sold %d collected resources for %d xp", bundle.total, experience)
    return new_state, SaleResult(experience_gained=experience, items_sold=bundle.total)
