from __future__ import annotations

import logging
import time
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Set

from ..config import GameConfig
from ..economy.collector import CollectionResult, RejectionReason, collect
from ..economy.market import SaleResult, sell_resources, sell_slot
from ..items.spawner import ItemSpawner
from ..movement.collision import CollisionResolver
from ..movement.doors import is_near, open_nearby_doors, unlock_vault_doors
from ..player.inventory import Inventory
from ..player.stats import MovementMode, PlayerStats, resolve_mode, update_stamina
from ..progression.levels import LevelTable
from ..rng import RNGManager
from ..state import GameState, Phase, PlayerState
from ..world.generator import FloorGenerator
from ..world.geometry import ZERO, Vec2
from ..world.tiles import Cell
from .events import GameEvent

logger = logging.getLogger(__name__)

Listener = Callable[[GameEvent, GameState, Mapping[str, Any]], None]


class SaveSink(Protocol):
    """Where the engine hands snapshots for persistence."""

    def request(self, state: GameState) -> None: ...
    def force(self, state: GameState) -> bool: ...


@dataclass(frozen=True)
class ActionResult:
    accepted: bool
    rejection_reason: Optional[RejectionReason] = None


@dataclass(frozen=True)
class Proximity:
    """Flags a UI layer reads to offer contextual actions."""

    near_terminal: bool = False
    near_vault_door: bool = False
    on_exit: bool = False


class GameEngine:
    """Sole owner of the mutable game state.

    Every transition builds a new immutable ``GameState`` snapshot and swaps
    it in. Per frame the order is fixed: movement intent, movement and
    collision, door auto-open, item pickup, level-up check. Critical
    transitions are force-saved; everything else requests a debounced save.
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        *,
        saver: Optional[SaveSink] = None,
        rng: Optional[RNGManager] = None,
        clock: Callable[[], float] = time.time,
        initial_state: Optional[GameState] = None,
    ) -> None:
        self.config = config or GameConfig()
        self.table = LevelTable.from_sequence(self.config.progression.xp_per_level)
        self.rng = rng or RNGManager()
        self._saver = saver
        self._clock = clock
        self._listeners: List[Listener] = []
        self._generation = 0
        self._intent: Vec2 = ZERO
        self._requested_mode = MovementMode.IDLE
        self._rejected_in_range: Set[str] = set()
        self._collider = CollisionResolver(self.config.movement.player_radius, self.config.cell_size)

        if initial_state is not None:
            self._check(initial_state)
            self._state = initial_state
            logger.info("Engine resumed floor %d from saved state", initial_state.floor_level)
        else:
            self._state = self.new_state(1)

    # ---- Access ----------------------------------------------------------
    @property
    def state(self) -> GameState:
        return self._state

    @property
    def phase(self) -> Phase:
        return self._state.phase

    def add_listener(self, listener: Listener) -> None:
        """Subscribe to engine events."""
        self._listeners.append(listener)

    def _emit(self, event: GameEvent, **payload: Any) -> None:
        for listener in list(self._listeners):
            try:
                listener(event, self._state, payload)
            except Exception as ex:  # listeners must not break the simulation
                logger.exception("Listener errored on %s: %s", event, ex)

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def _check(self, state: GameState) -> None:
        state.validate(self.config.cell_size, self.config.economy.inventory_capacity)

    # ---- Construction ----------------------------------------------------
    def new_state(self, level: int, carry: Optional[GameState] = None) -> GameState:
        """Generate floor ``level`` and place a player on its spawn cell.

        With ``carry`` the inventory, currency, collected tally and stats are
        kept; otherwise a fresh level-1 player is created.
        """
        self._generation += 1
        floor = FloorGenerator(self.config, self.rng.context_rng("floor_layout", level, self._generation)).generate(level)
        spawner = ItemSpawner(self.config, self.rng.context_rng("items", level, self._generation), clock=self._clock)
        items = tuple(spawner.spawn(floor, level))
        assert floor.spawn is not None
        position = floor.cell_center(floor.spawn, self.config.cell_size)
        now = self._now_ms()

        if carry is None:
            pc = self.config.player
            stats = PlayerStats(
                health=pc.max_health,
                max_health=pc.max_health,
                stamina=pc.max_stamina,
                max_stamina=pc.max_stamina,
                experience_to_next_level=self.table.to_next(1),
            )
            return GameState(
                player=PlayerState(position=position, stats=stats),
                floor=floor,
                items=items,
                inventory=Inventory.empty(self.config.economy.inventory_capacity),
                floor_level=level,
                started_at=now,
                updated_at=now,
            )

        stats = carry.player.stats
        stats, _ = stats.restore_health(self.config.player.next_floor_health_bonus)
        stats = stats.with_stamina(stats.max_stamina)
        return replace(
            carry,
            player=PlayerState(position=position, stats=stats, direction=carry.player.direction),
            floor=floor,
            items=items,
            floor_level=level,
            vault_unlocked=False,
            updated_at=now,
        )

    # ---- Lifecycle -------------------------------------------------------
    def start(self) -> bool:
        if self._state.is_started:
            logger.debug("start() called while already started")
            return False
        now = self._now_ms()
        self._state = replace(self._state, is_started=True, is_paused=False, started_at=now, updated_at=now)
        logger.info("Game started on floor %d", self._state.floor_level)
        self._emit(GameEvent.STARTED)
        self._force_save()
        return True

    def pause(self) -> bool:
        if self.phase is not Phase.STARTED:
            logger.debug("pause() ignored in phase %s", self.phase.value)
            return False
        self._state = replace(self._state, is_paused=True, updated_at=self._now_ms())
        logger.info("Game paused")
        self._emit(GameEvent.PAUSED)
        self._request_save()
        return True

    def resume(self) -> bool:
        if self.phase is not Phase.PAUSED:
            logger.debug("resume() ignored in phase %s", self.phase.value)
            return False
        self._state = replace(self._state, is_paused=False, updated_at=self._now_ms())
        logger.info("Game resumed")
        self._emit(GameEvent.RESUMED)
        self._request_save()
        return True

    def next_floor(self) -> ActionResult:
        """Descend when the player stands on the exit cell."""
        if not self._state.is_started:
            return ActionResult(False, RejectionReason.NOT_STARTED)
        if not self.proximity().on_exit:
            logger.info("next_floor() rejected: player is not on the exit")
            return ActionResult(False, RejectionReason.NOT_ON_EXIT)
        level = self._state.floor_level + 1
        self._state = replace(self.new_state(level, carry=self._state), is_started=True, is_paused=False)
        self._stop_intent()
        logger.info("Descended to floor %d", level)
        self._emit(GameEvent.FLOOR_CHANGED, floor_level=level)
        self._force_save()
        return ActionResult(True)

    def reset(self, start: bool = True) -> None:
        """Discard all progress and begin again on a fresh floor 1."""
        fresh = self.new_state(1)
        self._state = replace(fresh, is_started=start)
        self._stop_intent()
        logger.info("Game reset (started=%s)", start)
        self._emit(GameEvent.RESET)
        self._force_save()

    # ---- Actions ---------------------------------------------------------
    def unlock_vault(self) -> ActionResult:
        """Open every vault door; the puzzle gating it is solved elsewhere."""
        if self._state.vault_unlocked:
            return ActionResult(False, RejectionReason.VAULT_ALREADY_UNLOCKED)
        if self._state.floor.count(Cell.VAULT_DOOR) == 0:
            return ActionResult(False, RejectionReason.NO_VAULT)
        self._state = replace(
            self._state,
            floor=unlock_vault_doors(self._state.floor),
            vault_unlocked=True,
            updated_at=self._now_ms(),
        )
        logger.info("Vault unlocked on floor %d", self._state.floor_level)
        self._emit(GameEvent.VAULT_UNLOCKED)
        self._force_save()
        return ActionResult(True)

    def sell_slot(self, index: int) -> SaleResult:
        new_state, result = sell_slot(self._state, index, self.config.economy, self.table)
        return self._apply_sale(new_state, result)

    def sell_resources(self) -> SaleResult:
        new_state, result = sell_resources(self._state, self.config.economy, self.table)
        return self._apply_sale(new_state, result)

    def _apply_sale(self, new_state: GameState, result: SaleResult) -> SaleResult:
        if not result.accepted:
            logger.info("Sale rejected: %s", result.rejection_reason.value)
            return result
        before = self._state.stats.level
        self._state = replace(new_state, updated_at=self._now_ms())
        self._emit(GameEvent.ITEMS_SOLD, count=result.items_sold, experience=result.experience_gained)
        if self._state.stats.level > before:
            self._emit(GameEvent.LEVEL_UP, from_level=before, to_level=self._state.stats.level)
        self._force_save()
        return result

    def merge(self, **changes: Any) -> GameState:
        """Replace fields of the current snapshot; the result must still validate."""
        candidate = replace(self._state, **changes)
        self._check(candidate)
        self._state = candidate
        self._emit(GameEvent.STATE_REPLACED)
        self._request_save()
        return candidate

    def replace_state(self, state: GameState) -> None:
        """Adopt a snapshot produced elsewhere, e.g. another process's save."""
        self._check(state)
        self._state = state
        self._stop_intent()
        logger.info("Engine state replaced (floor %d)", state.floor_level)
        self._emit(GameEvent.STATE_REPLACED)

    # ---- Input -----------------------------------------------------------
    def set_intent(self, direction: Vec2, mode: MovementMode = MovementMode.WALKING) -> MovementMode:
        """Record the movement intent and return the effective movement mode."""
        self._intent = direction
        self._requested_mode = mode if not direction.is_zero() else MovementMode.IDLE
        effective = resolve_mode(self._requested_mode, self._state.stats)
        if effective is not self._state.player.mode:
            self._state = replace(self._state, player=replace(self._state.player, mode=effective))
        return effective

    def stop_moving(self) -> None:
        self.set_intent(ZERO, MovementMode.IDLE)

    def _stop_intent(self) -> None:
        self._intent = ZERO
        self._requested_mode = MovementMode.IDLE
        self._rejected_in_range.clear()

    # ---- Simulation ------------------------------------------------------
    def tick(self, dt: float) -> GameState:
        """Advance one frame of ``dt`` seconds. Nothing moves unless started and unpaused."""
        if self.phase is not Phase.STARTED or dt <= 0:
            return self._state
        if dt > self.config.movement.max_frame_seconds:
            # a stalled frame (tab switch, debugger) advances one nominal frame
            logger.debug("Clamping frame of %.3fs to %.3fs", dt, self.config.movement.long_frame_seconds)
            dt = self.config.movement.long_frame_seconds

        state = self._state
        player = state.player
        before_level = player.stats.level

        # 1. intent
        mode = resolve_mode(self._requested_mode, player.stats)
        if self._intent.is_zero():
            mode = MovementMode.IDLE

        # 2. movement and collision
        speed = self._speed_for(mode)
        moved = self._collider.attempt_move(state.floor, player.position, self._intent, speed, dt)
        velocity = ZERO
        if moved.accepted:
            velocity = Vec2((moved.position.x - player.position.x) / dt, (moved.position.y - player.position.y) / dt)
        stats, mode = update_stamina(
            player.stats,
            mode,
            dt,
            self.config.player.stamina_drain_per_second,
            self.config.player.stamina_regen_per_second,
        )
        player = replace(
            player,
            position=moved.position,
            direction=moved.angle if moved.angle is not None else player.direction,
            mode=mode,
            velocity=velocity,
            stats=stats,
        )

        # 3. doors
        floor = open_nearby_doors(
            state.floor, player.position, self.config.movement.door_open_radius, self.config.cell_size
        )
        state = replace(state, player=player, floor=floor)

        # 4. pickups
        state, results = self._pickups(state)

        if state == self._state and not results:
            return self._state

        # 5. level-up
        state = replace(state, updated_at=self._now_ms())
        self._state = state
        if moved.accepted:
            self._emit(GameEvent.PLAYER_MOVED)
        for result in results:
            self._emit(
                GameEvent.ITEM_COLLECTED if result.accepted else GameEvent.COLLECTION_REJECTED,
                result=result,
            )
        if state.stats.level > before_level:
            self._emit(GameEvent.LEVEL_UP, from_level=before_level, to_level=state.stats.level)
            self._force_save()
        else:
            self._request_save()
        return state

    def _speed_for(self, mode: MovementMode) -> float:
        if mode is MovementMode.RUNNING:
            return self.config.run_speed
        if mode is MovementMode.WALKING:
            return self.config.walk_speed
        return 0.0

    def _pickups(self, state: GameState):
        results: List[CollectionResult] = []
        pos = state.player.position
        radius = self.config.movement.pickup_radius
        in_range: Set[str] = set()
        for item in state.remaining_items():
            if pos.distance_to(item.position) > radius:
                continue
            in_range.add(item.id)
            if item.id in self._rejected_in_range:
                continue
            state, result = collect(state, item, self.config.economy, self.table)
            if not result.accepted:
                logger.warning("Pickup of %s rejected: %s", item.id, result.rejection_reason.value)
                self._rejected_in_range.add(item.id)
            results.append(result)
        # forget rejections once the player walks away so a retry can happen later
        self._rejected_in_range &= in_range
        return state, results

    def proximity(self) -> Proximity:
        state = self._state
        pos = state.player.position
        cs = self.config.cell_size
        radius = self.config.movement.interaction_radius
        p = state.floor.cell_of(pos, cs)
        on_exit = state.floor.in_bounds(p.x, p.y) and state.floor.get(p.x, p.y) is Cell.EXIT
        return Proximity(
            near_terminal=is_near(state.floor, pos, radius, cs, Cell.TERMINAL),
            near_vault_door=not state.vault_unlocked and is_near(state.floor, pos, radius, cs, Cell.VAULT_DOOR),
            on_exit=on_exit,
        )

    # ---- Persistence hooks -----------------------------------------------
    def _request_save(self) -> None:
        if self._saver is not None:
            self._saver.request(self._state)

    def _force_save(self) -> None:
        if self._saver is not None:
            self._saver.force(self._state)

    def snapshot(self) -> Dict[str, Any]:
        """JSON-ready view of the current state for external consumers."""
        return self._state.to_dict()
