from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

import yaml

from .errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULTS_PACKAGE = "pixel_crawler.data"
DEFAULTS_FILE = "defaults.yaml"


@dataclass(frozen=True)
class MapConfig:
    base_size: int = 24
    growth_per_level: int = 4
    max_size: int = 48
    min_room_size: int = 5
    max_room_size: int = 9
    cells_per_room: int = 80
    min_room_count: int = 4
    attempts_per_room: int = 10
    room_margin: int = 3
    vault_size: int = 5
    vault_margin: int = 2
    vault_attempts: int = 200
    vault_min_level: int = 2
    cells_per_obstacle: int = 25
    layout_attempts: int = 20

    def size_for(self, level: int) -> int:
        """Square grid edge length for a floor level, clamped to ``max_size``."""
        return min(self.max_size, self.base_size + self.growth_per_level * max(0, level - 1))


@dataclass(frozen=True)
class SpawnRule:
    base: int
    per_level: int

    def count_for(self, level: int) -> int:
        return max(0, self.base + self.per_level * level)


@dataclass(frozen=True)
class SpawnConfig:
    currency: SpawnRule = SpawnRule(20, 5)
    health_potion: SpawnRule = SpawnRule(3, 1)
    stamina_potion: SpawnRule = SpawnRule(2, 1)
    rare_artifact: SpawnRule = SpawnRule(2, 1)
    vault_min_items: int = 10
    vault_free_cells: int = 3
    vault_rare: int = 5
    vault_health: int = 3
    vault_stamina: int = 2


@dataclass(frozen=True)
class MovementConfig:
    walk_seconds_per_tile: float = 0.3
    run_seconds_per_tile: float = 0.15
    player_radius: float = 10.0
    door_open_radius: float = 48.0
    pickup_radius: float = 16.0
    interaction_radius: float = 48.0
    max_frame_seconds: float = 0.1
    long_frame_seconds: float = 0.016


@dataclass(frozen=True)
class PlayerConfig:
    max_health: int = 100
    max_stamina: int = 100
    stamina_drain_per_second: float = 2.0
    stamina_regen_per_second: float = 1.0
    next_floor_health_bonus: int = 25


@dataclass(frozen=True)
class EconomyConfig:
    currency_xp: int = 1
    rare_xp: int = 10
    currency_value: int = 1
    health_potion_restore: int = 25
    stamina_potion_restore: int = 50
    inventory_capacity: int = 10
    item_prices: Mapping[str, int] = field(
        default_factory=lambda: {
            "currency": 5,
            "health_potion": 15,
            "stamina_potion": 12,
            "rare_artifact": 50,
        }
    )
    resource_prices: Mapping[str, int] = field(
        default_factory=lambda: {"currency": 2, "health_potions": 8, "stamina_potions": 6}
    )


@dataclass(frozen=True)
class ProgressionConfig:
    xp_per_level: Tuple[int, ...] = (
        0, 10, 25, 50, 100, 200, 350, 550, 800, 1200, 1700, 2300, 3000, 3800, 4700,
    )


@dataclass(frozen=True)
class PersistenceConfig:
    app_name: str = "PixelCrawler"
    save_key: str = "game-state"
    statistics_key: str = "statistics"
    format_version: int = 2
    debounce_seconds: float = 1.0
    forced_cooldown_seconds: float = 2.0
    autosave_interval_seconds: float = 5.0
    external_poll_seconds: float = 1.0


@dataclass(frozen=True)
class LoopConfig:
    """Headless loop settings.

    Attributes:
        tick_rate: Target updates per second. 0 runs as fast as possible.
        max_steps: Stop automatically after this many updates when set.
    """

    tick_rate: float = 60.0
    max_steps: Optional[int] = None


@dataclass(frozen=True)
class GameConfig:
    cell_size: int = 32
    map: MapConfig = field(default_factory=MapConfig)
    spawn: SpawnConfig = field(default_factory=SpawnConfig)
    movement: MovementConfig = field(default_factory=MovementConfig)
    player: PlayerConfig = field(default_factory=PlayerConfig)
    economy: EconomyConfig = field(default_factory=EconomyConfig)
    progression: ProgressionConfig = field(default_factory=ProgressionConfig)
    persistence: PersistenceConfig = field(default_factory=PersistenceConfig)
    loop: LoopConfig = field(default_factory=LoopConfig)

    @property
    def walk_speed(self) -> float:
        """Walking speed in pixels per second."""
        return self.cell_size / self.movement.walk_seconds_per_tile

    @property
    def run_speed(self) -> float:
        return self.cell_size / self.movement.run_seconds_per_tile

    def to_dict(self) -> Dict[str, Any]:
        data = dataclasses.asdict(self)
        data["economy"]["item_prices"] = dict(self.economy.item_prices)
        data["economy"]["resource_prices"] = dict(self.economy.resource_prices)
        data["progression"]["xp_per_level"] = list(self.progression.xp_per_level)
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "GameConfig":
        data = dict(data or {})
        try:
            spawn_data = dict(data.pop("spawn", {}) or {})
            for name in ("currency", "health_potion", "stamina_potion", "rare_artifact"):
                if name in spawn_data:
                    spawn_data[name] = SpawnRule(**spawn_data[name])
            progression_data = dict(data.pop("progression", {}) or {})
            if "xp_per_level" in progression_data:
                progression_data["xp_per_level"] = tuple(int(v) for v in progression_data["xp_per_level"])
            config = cls(
                map=MapConfig(**(data.pop("map", {}) or {})),
                spawn=SpawnConfig(**spawn_data),
                movement=MovementConfig(**(data.pop("movement", {}) or {})),
                player=PlayerConfig(**(data.pop("player", {}) or {})),
                economy=EconomyConfig(**(data.pop("economy", {}) or {})),
                progression=ProgressionConfig(**progression_data),
                persistence=PersistenceConfig(**(data.pop("persistence", {}) or {})),
                loop=LoopConfig(**(data.pop("loop", {}) or {})),
                **data,
            )
        except TypeError as exc:
            raise ConfigError(f"Invalid configuration: {exc}") from exc
        config.check()
        return config

    def check(self) -> None:
        if self.cell_size <= 0:
            raise ConfigError("cell_size must be positive")
        if self.map.min_room_size < 3 or self.map.max_room_size < self.map.min_room_size:
            raise ConfigError("room size bounds are inconsistent")
        if self.map.base_size < 16 or self.map.max_size < self.map.base_size:
            raise ConfigError("map size bounds are inconsistent")
        if self.economy.inventory_capacity <= 0:
            raise ConfigError("inventory_capacity must be positive")
        if not self.progression.xp_per_level:
            raise ConfigError("xp_per_level must not be empty")
        if self.movement.walk_seconds_per_tile <= 0 or self.movement.run_seconds_per_tile <= 0:
            raise ConfigError("movement timings must be positive")
        if not 0 < self.movement.long_frame_seconds <= self.movement.max_frame_seconds:
            raise ConfigError("long_frame_seconds must be in (0, max_frame_seconds]")


def _deep_merge(base: Mapping[str, Any], overlay: Mapping[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for k, v in (overlay or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            merged[k] = _deep_merge(base[k], v)
        else:
            merged[k] = v
    return merged


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"Malformed YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Top-level YAML in {path} must be a mapping")
    return data


def load_config(user_path: Optional[Path] = None) -> GameConfig:
    """Load the packaged defaults and overlay an optional user YAML file."""
    with resources.files(DEFAULTS_PACKAGE).joinpath(DEFAULTS_FILE).open("r", encoding="utf-8") as f:
        default_data = yaml.safe_load(f) or {}

    user_data: Dict[str, Any] = {}
    if user_path is not None:
        if user_path.exists():
            user_data = _read_yaml(user_path)
            logger.info("Loaded user config from %s", user_path)
        else:
            logger.warning("User config file not found: %s", user_path)

    config = GameConfig.from_dict(_deep_merge(default_data, user_data))
    logger.debug("Config merged: %s", config)
    return config


def save_config(config: GameConfig, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        yaml.safe_dump(config.to_dict(), f, sort_keys=False)
    logger.info("Saved config to %s", path)
