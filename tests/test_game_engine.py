from dataclasses import replace

import pytest

from pixel_crawler.config import GameConfig, PlayerConfig, SpawnConfig, SpawnRule
from pixel_crawler.economy.collector import RejectionReason
from pixel_crawler.engine.engine import GameEngine
from pixel_crawler.engine.events import GameEvent
from pixel_crawler.errors import StateValidationError
from pixel_crawler.items.entities import Item, ItemKind
from pixel_crawler.player.stats import MovementMode
from pixel_crawler.rng import RNGManager
from pixel_crawler.state import Phase
from pixel_crawler.world.floor import Floor
from pixel_crawler.world.geometry import Vec2
from pixel_crawler.world.tiles import Cell

NO_SPAWNS = SpawnConfig(
    currency=SpawnRule(0, 0),
    health_potion=SpawnRule(0, 0),
    stamina_potion=SpawnRule(0, 0),
    rare_artifact=SpawnRule(0, 0),
    vault_min_items=0,
    vault_free_cells=25,
)


class RecordingSaver:
    def __init__(self):
        self.requested = []
        self.forced = []

    def request(self, state):
        self.requested.append(state)

    def force(self, state):
        self.forced.append(state)
        return True


@pytest.fixture
def saver():
    return RecordingSaver()


@pytest.fixture
def events():
    return []


@pytest.fixture
def make_engine(saver, events, clock):
    def _make(config=None, seed=42):
        engine = GameEngine(config or GameConfig(), saver=saver, rng=RNGManager(seed), clock=clock)
        engine.add_listener(lambda event, state, payload: events.append((event, payload)))
        return engine

    return _make


def kinds(events):
    return [e for e, _ in events]


def move_onto(engine, point):
    pos = engine.state.floor.cell_center(point, engine.config.cell_size)
    engine.merge(player=replace(engine.state.player, position=pos))


def test_lifecycle_transitions(make_engine, saver, events):
    engine = make_engine()
    assert engine.phase is Phase.NOT_STARTED
    before = engine.state
    assert engine.tick(0.1) is before

    assert engine.start()
    assert not engine.start()
    assert engine.phase is Phase.STARTED
    assert saver.forced[-1] is engine.state

    assert engine.pause()
    assert engine.phase is Phase.PAUSED
    engine.set_intent(Vec2(1, 0))
    paused = engine.state
    assert engine.tick(0.1) is paused
    assert not engine.pause()

    assert engine.resume()
    assert engine.phase is Phase.STARTED
    assert kinds(events)[:3] == [GameEvent.STARTED, GameEvent.PAUSED, GameEvent.RESUMED]


def test_walking_moves_player_and_emits(make_engine, events):
    engine = make_engine()
    engine.start()
    start = engine.state.player.position
    assert engine.set_intent(Vec2(1, 0)) is MovementMode.WALKING
    state = engine.tick(0.05)
    assert state.player.position.x > start.x
    assert state.player.position.y == start.y
    assert state.player.mode is MovementMode.WALKING
    assert state.player.velocity.x > 0
    assert GameEvent.PLAYER_MOVED in kinds(events)


def test_next_floor_requires_standing_on_exit(make_engine):
    engine = make_engine()
    engine.start()
    result = engine.next_floor()
    assert not result.accepted
    assert result.rejection_reason is RejectionReason.NOT_ON_EXIT


def test_next_floor_keeps_progress_and_refreshes_vitals(make_engine, saver, events):
    engine = make_engine()
    engine.start()
    stats = replace(engine.state.stats, health=50, stamina=10)
    engine.merge(currency=12, player=replace(engine.state.player, stats=stats))
    move_onto(engine, engine.state.floor.exit)
    assert engine.proximity().on_exit

    result = engine.next_floor()

    assert result.accepted
    state = engine.state
    assert state.floor_level == 2
    assert state.floor.width == 28
    assert state.currency == 12
    assert state.stats.health == 75
    assert state.stats.stamina == state.stats.max_stamina
    assert not state.vault_unlocked
    assert state.phase is Phase.STARTED
    assert saver.forced[-1] is state
    assert GameEvent.FLOOR_CHANGED in kinds(events)


def test_reset_discards_progress(make_engine, events):
    engine = make_engine()
    engine.start()
    engine.merge(currency=99)
    engine.reset()
    assert engine.state.currency == 0
    assert engine.state.floor_level == 1
    assert engine.phase is Phase.STARTED
    assert GameEvent.RESET in kinds(events)


def test_unlock_vault(make_engine, events):
    engine = make_engine()
    engine.start()
    assert engine.unlock_vault().rejection_reason is RejectionReason.NO_VAULT

    floor = Floor.from_lines(["#######", "#..V,,#", "#..#,,#", "#######"])
    engine.merge(floor=floor, items=(), player=replace(engine.state.player, position=Vec2(48, 48)))
    assert engine.proximity().near_vault_door

    result = engine.unlock_vault()
    assert result.accepted
    assert engine.state.vault_unlocked
    assert engine.state.floor.get(3, 1) is Cell.VAULT_DOOR_OPEN
    assert not engine.proximity().near_vault_door
    assert engine.unlock_vault().rejection_reason is RejectionReason.VAULT_ALREADY_UNLOCKED
    assert GameEvent.VAULT_UNLOCKED in kinds(events)


def test_pickup_and_level_up_in_same_frame(make_engine, saver, events):
    engine = make_engine()
    engine.start()
    pos = engine.state.player.position
    engine.merge(items=(Item(id="coin", kind=ItemKind.CURRENCY, position=pos),))
    engine.merge(player=replace(engine.state.player, stats=replace(engine.state.stats, experience=9)))
    forced_before = len(saver.forced)

    state = engine.tick(1 / 60)

    assert state.items[0].collected
    assert state.stats.level == 2
    assert state.currency == 1
    assert len(saver.forced) == forced_before + 1
    assert GameEvent.ITEM_COLLECTED in kinds(events)
    assert GameEvent.LEVEL_UP in kinds(events)


def test_rejected_pickup_reported_once_while_standing_on_it(make_engine, events):
    engine = make_engine()
    engine.start()
    pos = engine.state.player.position
    inv = engine.state.inventory
    for n in range(10):
        inv = inv.try_add(Item(id=f"held-{n}", kind=ItemKind.RARE_ARTIFACT, position=pos))
    rare = Item(id="rare", kind=ItemKind.RARE_ARTIFACT, position=pos)
    engine.merge(items=(rare,), inventory=inv)

    engine.tick(1 / 60)
    engine.tick(1 / 60)

    assert kinds(events).count(GameEvent.COLLECTION_REJECTED) == 1
    assert not engine.state.items[0].collected
    assert engine.state.stats.experience == 0


def test_doors_open_when_player_approaches(make_engine):
    engine = make_engine()
    engine.start()
    floor = Floor.from_lines(["#######", "#..+..#", "#######"])
    engine.merge(floor=floor, items=(), player=replace(engine.state.player, position=Vec2(48, 48)))
    engine.set_intent(Vec2(1, 0))
    engine.tick(0.1)
    assert engine.state.floor.get(3, 1) is Cell.DOOR_OPEN


def test_running_drains_stamina_until_forced_walk():
    config = GameConfig(spawn=NO_SPAWNS, player=PlayerConfig(stamina_drain_per_second=15.0))
    engine = GameEngine(config, rng=RNGManager(5), clock=lambda: 0.0)
    engine.start()
    engine.set_intent(Vec2(1, 0), MovementMode.RUNNING)
    forced = None
    for step in range(100):
        state = engine.tick(0.1)
        assert 0 <= state.stats.stamina <= state.stats.max_stamina
        if state.player.mode is MovementMode.WALKING:
            forced = step
            assert state.stats.stamina == 0
            break
    assert forced is not None


def test_merge_rejects_invalid_snapshot(make_engine):
    engine = make_engine()
    before = engine.state
    with pytest.raises(StateValidationError):
        engine.merge(player=replace(before.player, position=Vec2(-100, 5)))
    assert engine.state is before


def test_failing_listener_does_not_break_engine(make_engine):
    engine = make_engine()

    def boom(event, state, payload):
        raise RuntimeError("listener failure")

    engine.add_listener(boom)
    assert engine.start()
    assert engine.phase is Phase.STARTED


def test_sales_through_engine(make_engine, saver, events):
    engine = make_engine()
    engine.start()
    assert engine.sell_resources().rejection_reason is RejectionReason.NOTHING_TO_SELL
    rare = Item(id="r", kind=ItemKind.RARE_ARTIFACT, position=Vec2(0, 0))
    engine.merge(inventory=engine.state.inventory.try_add(rare))
    result = engine.sell_slot(0)
    assert result.accepted
    assert engine.state.stats.level == 3
    assert GameEvent.ITEMS_SOLD in kinds(events)
    assert GameEvent.LEVEL_UP in kinds(events)
    assert saver.forced[-1] is engine.state


def test_stalled_frame_cannot_carry_player_past_vault_door(make_engine):
    engine = make_engine()
    engine.start()
    floor = Floor.from_lines(["#########", "#...V,,,#", "#########"])
    engine.merge(floor=floor, items=(), player=replace(engine.state.player, position=Vec2(80, 48)))
    engine.set_intent(Vec2(1, 0), MovementMode.RUNNING)

    state = engine.tick(0.5)
    assert state.player.position.x == pytest.approx(80 + engine.config.run_speed * 0.016)

    for _ in range(20):
        state = engine.tick(0.5)
    assert state.floor.cell_of(state.player.position, engine.config.cell_size).x == 3
    assert state.floor.get(4, 1) is Cell.VAULT_DOOR
