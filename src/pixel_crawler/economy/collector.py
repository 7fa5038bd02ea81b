from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional, Tuple

from ..config import EconomyConfig
from ..items.entities import Item, ItemKind
from ..progression.levels import LevelTable, apply_experience
from ..state import GameState

logger = logging.getLogger(__name__)


class RejectionReason(Enum):
    ALREADY_COLLECTED = "already_collected"
    UNKNOWN_ITEM = "unknown_item"
    INVENTORY_FULL = "inventory_full"
    INVALID_SLOT = "invalid_slot"
    EMPTY_SLOT = "empty_slot"
    NOTHING_TO_SELL = "nothing_to_sell"
    VAULT_ALREADY_UNLOCKED = "vault_already_unlocked"
    NO_VAULT = "no_vault"
    NOT_ON_EXIT = "not_on_exit"
    NOT_STARTED = "not_started"


@dataclass(frozen=True)
class CollectionResult:
    item_id: str
    kind: ItemKind
    experience_gained: int = 0
    health_restored: Optional[float] = None
    stamina_restored: Optional[float] = None
    added_to_inventory: bool = False
    rejection_reason: Optional[RejectionReason] = None

    @property
    def accepted(self) -> bool:
        return self.rejection_reason is None


def collect(state: GameState, item: Item, economy: EconomyConfig, table: LevelTable) -> Tuple[GameState, CollectionResult]:
    """Apply one pickup to ``state``.

    Currency grants experience and bumps both the currency total and the
    collected tally. Potions restore their resource immediately (clamped)
    and are tallied for bulk sale. Rare artifacts grant experience and need a
    free inventory slot; with a full inventory nothing changes and the item
    stays on the floor.
    """
    index = next((i for i, it in enumerate(state.items) if it.id == item.id), None)
    if index is None:
        return state, CollectionResult(item.id, item.kind, rejection_reason=RejectionReason.UNKNOWN_ITEM)
    if state.items[index].collected:
        return state, CollectionResult(item.id, item.kind, rejection_reason=RejectionReason.ALREADY_COLLECTED)

    stats = state.player.stats
    inventory = state.inventory
    currency = state.currency
    collected = state.collected
    experience = 0
    health_restored = stamina_restored = None
    added = False

    if item.kind is ItemKind.CURRENCY:
        experience = economy.currency_xp
        currency += economy.currency_value
        collected = collected.add(item.kind)
    elif item.kind is ItemKind.HEALTH_POTION:
        stats, health_restored = stats.restore_health(economy.health_potion_restore)
        collected = collected.add(item.kind)
    elif item.kind is ItemKind.STAMINA_POTION:
        stats, stamina_restored = stats.restore_stamina(economy.stamina_potion_restore)
        collected = collected.add(item.kind)
    elif item.kind is ItemKind.RARE_ARTIFACT:
        updated = inventory.try_add(item.mark_collected())
        if updated is None:
            return state, CollectionResult(item.id, item.kind, rejection_reason=RejectionReason.INVENTORY_FULL)
        inventory = updated
        added = True
        experience = economy.rare_xp

    if experience:
        stats = apply_experience(stats, experience, table)

    items = list(state.items)
    items[index] = items[index].mark_collected()
    new_state = replace(
        state,
        player=replace(state.player, stats=stats),
        items=tuple(items),
        inventory=inventory,
        currency=currency,
        collected=collected,
    )
    logger.debug("Collected %s (%s): +%d xp", item.id, item.kind.value, experience)
    return new_state, CollectionResult(
        item.id,
        item.kind,
        experience_gained=experience,
        health_restored=health_restored,
        stamina_restored=stamina_restored,
        added_to_inventory=added,
    )
