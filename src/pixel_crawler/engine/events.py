from enum import Enum, auto


class GameEvent(Enum):
    """Events emitted by GameEngine to notify UI, statistics or persistence."""

    STARTED = auto()
    PAUSED = auto()
    RESUMED = auto()
    RESET = auto()
    FLOOR_CHANGED = auto()
    PLAYER_MOVED = auto()
    ITEM_COLLECTED = auto()
    COLLECTION_REJECTED = auto()
    LEVEL_UP = auto()
    VAULT_UNLOCKED = auto()
    ITEMS_SOLD = auto()
    STATE_REPLACED = auto()
