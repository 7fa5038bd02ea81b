from __future__ import annotations

import json
import logging
import time
from typing import Callable, Optional

from pydantic import ValidationError

from ..errors import PersistenceError, SaveFormatError, StateValidationError
from ..player.inventory import DEFAULT_CAPACITY
from ..state import GameState
from .codec import CURRENT_FORMAT_VERSION, LEGACY_CELL_FORMAT_VERSION, decode_state, encode_state, rescale_legacy
from .models import SaveHeader, SaveRecord
from .storage import PersistencePort

logger = logging.getLogger(__name__)


class GameStore:
    """Reads and writes the single versioned save record.

    Compatibility is all-or-nothing: a record whose ``formatVersion`` differs
    from ours is deleted and treated as absent. The one exception is a
    legacy cell-index record, which is rescaled to pixels when this store
    runs the current format. Records that fail validation are deleted too.
    I/O failures on save are logged and swallowed; the caller retries later.
    """

    def __init__(
        self,
        port: PersistencePort,
        *,
        key: str = "game-state",
        format_version: int = CURRENT_FORMAT_VERSION,
        cell_size: int = 32,
        capacity: int = DEFAULT_CAPACITY,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.port = port
        self.key = key
        self.format_version = format_version
        self.cell_size = cell_size
        self.capacity = capacity
        self._clock = clock

    def save(self, state: GameState) -> Optional[int]:
        """Write ``state``; returns the record timestamp, or None if the write failed."""
        timestamp = int(self._clock() * 1000)
        try:
            record = SaveRecord(format_version=self.format_version, timestamp=timestamp, game_state=encode_state(state))
            self.port.write(self.key, record.to_json())
        except (PersistenceError, OSError, TypeError, ValueError):
            logger.exception("Failed to save game state under %r", self.key)
            return None
        logger.debug("Saved game state (floor %d) at %d", state.floor_level, timestamp)
        return timestamp

    def load(self) -> Optional[GameState]:
        """Return the stored state, or None when absent, incompatible or invalid."""
        try:
            raw = self.port.read(self.key)
        except PersistenceError:
            logger.exception("Failed to read save %r", self.key)
            return None
        if raw is None:
            return None

        try:
            record = SaveRecord.model_validate_json(raw)
            data = record.game_state
            if record.format_version != self.format_version:
                if (
                    record.format_version == LEGACY_CELL_FORMAT_VERSION
                    and self.format_version == CURRENT_FORMAT_VERSION
                ):
                    data = rescale_legacy(data, self.cell_size)
                else:
                    raise SaveFormatError(
                        f"Save format {record.format_version} does not match expected {self.format_version}"
                    )
            state = decode_state(data)
            state.validate(self.cell_size, self.capacity)
        except (ValidationError, SaveFormatError, StateValidationError) as exc:
            logger.warning("Discarding saved game %r: %s", self.key, exc)
            self.delete()
            return None

        logger.info("Loaded saved game (floor %d, format %d)", state.floor_level, record.format_version)
        return state

    def peek_timestamp(self) -> Optional[int]:
        """Timestamp of the stored record without decoding the game state."""
        try:
            raw = self.port.read(self.key)
        except PersistenceError:
            logger.debug("Could not peek at save %r", self.key, exc_info=True)
            return None
        if raw is None:
            return None
        try:
            return SaveHeader.model_validate(json.loads(raw)).timestamp
        except (ValueError, ValidationError):
            return None

    def delete(self) -> None:
        try:
            self.port.delete(self.key)
        except PersistenceError:
            logger.exception("Failed to delete save %r", self.key)
        else:
            logger.info("Deleted save record %r", self.key)
