import sys
from pathlib import Path

import pytest

# Ensure 'src' is on sys.path for test imports without installing the package
ROOT = Path(__file__).resolve().parents[1]
src = ROOT / "src"
if str(src) not in sys.path:
    sys.path.insert(0, str(src))


class ManualClock:
    """Deterministic clock; call it for the current time in seconds."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def room_lines():
    """A 7x7 walled room: 5x5 open floor, cells (1..5, 1..5)."""
    return [
        "#######",
        "#.....#",
        "#.....#",
        "#.....#",
        "#.....#",
        "#.....#",
        "#######",
    ]


@pytest.fixture
def game_state(room_lines):
    """A started, valid snapshot on the 7x7 room with one coin on the floor."""
    from pixel_crawler.items.entities import Item, ItemKind
    from pixel_crawler.state import GameState, PlayerState
    from pixel_crawler.world.floor import Floor
    from pixel_crawler.world.geometry import Vec2

    return GameState(
        player=PlayerState(position=Vec2(80.0, 80.0)),
        floor=Floor.from_lines(room_lines),
        items=(Item(id="currency-1-0", kind=ItemKind.CURRENCY, position=Vec2(144.0, 112.0)),),
        is_started=True,
        started_at=1_000_000,
        updated_at=1_000_000,
    )
