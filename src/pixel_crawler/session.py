from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable, Optional

from .config import GameConfig
from .engine.engine import GameEngine
from .persistence.autosave import AutoSaver
from .persistence.statistics import StatisticsTracker
from .persistence.storage import FileStorage, PersistencePort
from .persistence.store import GameStore
from .rng import RNGManager, Seed
from .state import Phase

logger = logging.getLogger(__name__)


class GameSession:
    """Wires storage, the save state machine, statistics and the engine.

    Several sessions sharing one storage backend behave like several
    windows on the same save: whichever wrote last wins, and the others
    adopt that snapshot on their next external-change check.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        *,
        port: Optional[PersistencePort] = None,
        base_dir: Optional[Path] = None,
        seed: Seed = None,
        clock: Callable[[], float] = time.time,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config or GameConfig()
        pc = self.config.persistence
        self.port: PersistencePort = port if port is not None else FileStorage(base_dir, app_name=pc.app_name)
        self.store = GameStore(
            self.port,
            key=pc.save_key,
            format_version=pc.format_version,
            cell_size=self.config.cell_size,
            capacity=self.config.economy.inventory_capacity,
            clock=clock,
        )
        self.saver = AutoSaver(
            self.store, debounce=pc.debounce_seconds, cooldown=pc.forced_cooldown_seconds, clock=monotonic
        )
        self.statistics = StatisticsTracker(
            self.port, key=pc.statistics_key, interval=pc.autosave_interval_seconds, clock=clock
        )
        self.rng = RNGManager(seed)
        self._clock = clock
        self._engine: Optional[GameEngine] = None
        self._since_autosave = 0.0
        self._since_external_check = 0.0

    @property
    def engine(self) -> GameEngine:
        if self._engine is None:
            raise RuntimeError("Session is not open")
        return self._engine

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    def open(self, *, new_game: bool = False) -> GameEngine:
        """Resume the stored game (or start fresh) and count a new session."""
        if self._engine is not None:
            return self._engine
        loaded = None
        if new_game:
            self.store.delete()
        else:
            loaded = self.store.load()
        if loaded is None:
            logger.info("No usable save; generating a fresh floor 1")
        self._engine = GameEngine(
            self.config, saver=self.saver, rng=self.rng, clock=self._clock, initial_state=loaded
        )
        if loaded is not None:
            self.saver.last_timestamp = self.store.peek_timestamp()
        self._engine.add_listener(self.statistics.on_event)
        self.statistics.record_progress(self._engine.state)
        self.statistics.start_session()
        return self._engine

    def tick(self, dt: float) -> None:
        """One frame: simulate, then service saves, statistics and cross-process sync."""
        engine = self.engine
        was_running = engine.phase is Phase.STARTED
        engine.tick(dt)
        if was_running:
            self.statistics.advance(dt)

        self._since_autosave += dt
        if self._since_autosave >= self.config.persistence.autosave_interval_seconds:
            self._since_autosave = 0.0
            self.saver.request(engine.state)
        self.saver.poll()

        self._since_external_check += dt
        if self._since_external_check >= self.config.persistence.external_poll_seconds:
            self._since_external_check = 0.0
            self.check_external_change()

    def check_external_change(self) -> bool:
        """Adopt a save written by someone else after our last write (last-write-wins)."""
        engine = self.engine
        stored_at = self.store.peek_timestamp()
        ours = self.saver.last_timestamp
        if stored_at is None or (ours is not None and stored_at <= ours):
            return False
        state = self.store.load()
        if state is None:
            return False
        engine.replace_state(state)
        self.saver.adopt(stored_at)
        logger.info("Adopted newer external save (ts=%d)", stored_at)
        return True

    def on_hidden(self) -> None:
        """The host is going to the background: persist now."""
        self.saver.request(self.engine.state)
        self.saver.flush()
        self.statistics.flush()

    def close(self) -> None:
        """Final synchronous save of game state and statistics."""
        if self._engine is None:
            return
        self.saver.request(self._engine.state)
        self.saver.flush()
        self.statistics.record_progress(self._engine.state)
        self.statistics.flush()
        logger.info("Session closed on floor %d", self._engine.state.floor_level)
        self._engine = None

    def __enter__(self) -> "GameSession":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
