from __future__ import annotations

import logging
import time
from typing import Any, Callable, Mapping, Optional

from pydantic import ValidationError

from ..engine.events import GameEvent
from ..errors import PersistenceError
from ..items.entities import ItemKind
from ..state import GameState
from .models import StatisticsRecord
from .storage import PersistencePort

logger = logging.getLogger(__name__)

_COLLECTION_FIELDS = {
    ItemKind.CURRENCY: "total_coins_collected",
    ItemKind.HEALTH_POTION: "total_potions_collected",
    ItemKind.STAMINA_POTION: "total_stamina_potions_collected",
    ItemKind.RARE_ARTIFACT: "total_rare_items_collected",
}


class StatisticsTracker:
    """Lifetime statistics stored independently of the game save.

    Resetting or selling never touches these counters. The record is
    written on a cadence while a session runs and once more at close.
    """

    def __init__(
        self,
        port: PersistencePort,
        *,
        key: str = "statistics",
        interval: float = 5.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.port = port
        self.key = key
        self.interval = interval
        self._clock = clock
        self.record = self._load()
        self._since_flush = 0.0
        self._carry_ms = 0.0
        self._dirty = False

    def _load(self) -> StatisticsRecord:
        try:
            raw = self.port.read(self.key)
        except PersistenceError:
            logger.exception("Failed to read statistics %r", self.key)
            return StatisticsRecord()
        if raw is None:
            return StatisticsRecord()
        try:
            return StatisticsRecord.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning("Statistics record unreadable, starting fresh: %s", exc)
            return StatisticsRecord()

    def _bump(self, **changes: int) -> None:
        self.record = self.record.model_copy(update=changes)
        self._dirty = True

    # ---- Recording -------------------------------------------------------
    def start_session(self) -> None:
        self._bump(sessions_count=self.record.sessions_count + 1, last_played=int(self._clock() * 1000))
        self.flush()

    def record_collection(self, kind: ItemKind) -> None:
        name = _COLLECTION_FIELDS[kind]
        self._bump(**{name: getattr(self.record, name) + 1})

    def record_progress(self, state: GameState) -> None:
        stats = state.stats
        self._bump(
            current_level=stats.level,
            max_level=max(self.record.max_level, stats.level),
            max_floor=max(self.record.max_floor, state.floor_level),
            total_experience=max(self.record.total_experience, stats.experience),
        )

    def record_sale(self, count: int) -> None:
        self._bump(items_sold=self.record.items_sold + count)

    def record_treasure(self) -> None:
        self._bump(treasures_opened=self.record.treasures_opened + 1)

    def on_event(self, event: GameEvent, state: GameState, payload: Mapping[str, Any]) -> None:
        """Engine listener translating game events into counters."""
        if event is GameEvent.ITEM_COLLECTED:
            self.record_collection(payload["result"].kind)
            self.record_progress(state)
        elif event is GameEvent.ITEMS_SOLD:
            self.record_sale(int(payload.get("count", 0)))
            self.record_progress(state)
        elif event is GameEvent.VAULT_UNLOCKED:
            self.record_treasure()
        elif event in (GameEvent.LEVEL_UP, GameEvent.FLOOR_CHANGED, GameEvent.RESET, GameEvent.STATE_REPLACED):
            self.record_progress(state)

    # ---- Time and flushing -----------------------------------------------
    def advance(self, dt: float) -> None:
        """Accumulate active play time; flush when the cadence elapses."""
        if dt <= 0:
            return
        self._carry_ms += dt * 1000
        whole = int(self._carry_ms)
        self._carry_ms -= whole
        if whole:
            self._bump(total_play_time=self.record.total_play_time + whole)
        self._since_flush += dt
        if self._since_flush >= self.interval:
            self.flush()

    def flush(self) -> bool:
        self._since_flush = 0.0
        if not self._dirty:
            return False
        self.record = self.record.model_copy(update={"last_played": int(self._clock() * 1000)})
        try:
            self.port.write(self.key, self.record.to_json())
        except (PersistenceError, OSError):
            logger.exception("Failed to save statistics %r", self.key)
            return False
        self._dirty = False
        return True

    def reset(self) -> Optional[StatisticsRecord]:
        """Wipe lifetime statistics (explicit user request only)."""
        previous = self.record
        self.record = StatisticsRecord()
        self._dirty = True
        self.flush()
        return previous
