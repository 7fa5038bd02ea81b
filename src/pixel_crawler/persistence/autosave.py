from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Callable, Optional

from ..state import GameState
from .store import GameStore

logger = logging.getLogger(__name__)


class SaverPhase(Enum):
    IDLE = "idle"
    PENDING = "pending"
    SAVED = "saved"


class AutoSaver:
    """Debounced/forced save state machine.

    IDLE --request--> PENDING --poll (windows elapsed)--> SAVED --request--> PENDING

    ``force`` writes immediately from any phase, drops the pending snapshot
    (it is older than the forced one) and, once written, opens a cooldown during
    which no debounced write may land. A failed write keeps the snapshot pending so
    the next poll or force retries it.
    """

    def __init__(
        self,
        store: GameStore,
        *,
        debounce: float = 1.0,
        cooldown: float = 2.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.store = store
        self.debounce = debounce
        self.cooldown = cooldown
        self._clock = clock
        self.phase = SaverPhase.IDLE
        self._pending: Optional[GameState] = None
        self._last_save_at: Optional[float] = None
        self._last_forced_at: Optional[float] = None
        self.last_timestamp: Optional[int] = None

    @property
    def pending(self) -> Optional[GameState]:
        return self._pending

    def request(self, state: GameState) -> None:
        self._pending = state
        self.phase = SaverPhase.PENDING

    def _window_open(self, now: float) -> bool:
        if self._last_save_at is not None and now - self._last_save_at < self.debounce:
            return False
        if self._last_forced_at is not None and now - self._last_forced_at < self.cooldown:
            return False
        return True

    def poll(self) -> bool:
        """Write the pending snapshot if the debounce and cooldown windows allow it."""
        if self.phase is not SaverPhase.PENDING or self._pending is None:
            return False
        now = self._clock()
        if not self._window_open(now):
            return False
        return self._write(self._pending, now, forced=False)

    def force(self, state: GameState) -> bool:
        now = self._clock()
        written = self._write(state, now, forced=True)
        if written:
            self._last_forced_at = now
        return written

    def flush(self) -> bool:
        """Synchronously write whatever is pending, ignoring the windows."""
        if self._pending is None:
            return False
        return self._write(self._pending, self._clock(), forced=False)

    def _write(self, state: GameState, now: float, *, forced: bool) -> bool:
        timestamp = self.store.save(state)
        self._last_save_at = now
        if timestamp is None:
            self._pending = state
            self.phase = SaverPhase.PENDING
            logger.warning("%s save failed; will retry", "Forced" if forced else "Debounced")
            return False
        self._pending = None
        self.phase = SaverPhase.SAVED
        self.last_timestamp = timestamp
        logger.debug("%s save written (ts=%d)", "Forced" if forced else "Debounced", timestamp)
        return True

    def adopt(self, timestamp: int) -> None:
        """Treat an externally written record as our latest save and drop the pending snapshot."""
        self.last_timestamp = timestamp
        self._pending = None
        if self.phase is SaverPhase.PENDING:
            self.phase = SaverPhase.IDLE
