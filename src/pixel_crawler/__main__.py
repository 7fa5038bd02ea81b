from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from . import __version__
from .config import GameConfig, LoopConfig, load_config
from .engine.loop import FrameLoop
from .logging_config import configure_logging
from .player.stats import MovementMode
from .rng import coerce_seed
from .session import GameSession
from .world.geometry import Vec2

logger = logging.getLogger(__name__)

DIRECTIONS = {
    "none": Vec2(0.0, 0.0),
    "north": Vec2(0.0, -1.0),
    "south": Vec2(0.0, 1.0),
    "east": Vec2(1.0, 0.0),
    "west": Vec2(-1.0, 0.0),
    "northeast": Vec2(1.0, -1.0),
    "northwest": Vec2(-1.0, -1.0),
    "southeast": Vec2(1.0, 1.0),
    "southwest": Vec2(-1.0, 1.0),
}


def _level_for(verbosity: int) -> int:
    if verbosity == 1:
        return logging.INFO
    if verbosity >= 2:
        return logging.DEBUG
    return logging.WARNING


def run_headless(config: GameConfig, args: argparse.Namespace) -> int:
    session = GameSession(config, base_dir=args.save_dir, seed=coerce_seed(args.seed))
    engine = session.open(new_game=args.new_game)
    engine.start()
    mode = MovementMode.RUNNING if args.run else MovementMode.WALKING
    engine.set_intent(DIRECTIONS[args.direction], mode)

    loop = FrameLoop(session.tick, LoopConfig(tick_rate=args.tick_rate, max_steps=args.steps))
    try:
        loop.run()
    except KeyboardInterrupt:
        loop.stop()
    finally:
        state = engine.state
        session.close()

    stats = state.stats
    print(
        f"floor={state.floor_level} pos=({state.player.position.x:.1f},{state.player.position.y:.1f}) "
        f"level={stats.level} xp={stats.experience} hp={stats.health:.0f}/{stats.max_health:.0f} "
        f"stamina={stats.stamina:.1f}/{stats.max_stamina:.0f} currency={state.currency} steps={loop.step}"
    )
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="pixel-crawler",
        description="Pixel Crawler - headless simulation runner",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--seed", default=None, help="Master seed (integer or string)")
    parser.add_argument("--steps", type=int, default=600, help="Stop after N ticks")
    parser.add_argument("--tick-rate", type=float, default=0.0, help="Target tick rate in Hz (0 = unthrottled)")
    parser.add_argument("--save-dir", type=Path, default=None, help="Directory for save and statistics files")
    parser.add_argument("--config", type=Path, default=None, help="YAML file overriding the default tuning")
    parser.add_argument("--direction", choices=sorted(DIRECTIONS), default="none", help="Held movement direction")
    parser.add_argument("--run", action="store_true", help="Hold the run modifier")
    parser.add_argument("--new-game", action="store_true", help="Discard any existing save")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="Increase log verbosity (-v, -vv)")

    args = parser.parse_args(argv)
    configure_logging(_level_for(args.verbose))

    config = load_config(args.config)
    return run_headless(config, args)


if __name__ == "__main__":
    sys.exit(main())
