from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from ..config import LoopConfig

logger = logging.getLogger(__name__)


class FrameLoop:
    """Fixed-rate, headless driver for a per-frame update callback.

    Keeps the timing logic apart from any rendering backend so the
    simulation can be stepped from tests, the CLI or a GUI frame callback.
    """

    def __init__(self, update: Callable[[float], None], config: Optional[LoopConfig] = None) -> None:
        self.config = config or LoopConfig()
        self._update = update
        self._running: bool = False
        self._step: int = 0
        self._last_time: Optional[float] = None

    @property
    def running(self) -> bool:
        return self._running

    @property
    def step(self) -> int:
        return self._step

    def start(self) -> None:
        """Start the loop state. Subsequent calls are no-ops."""
        if self._running:
            logger.debug("FrameLoop.start() called while already running")
            return
        self._running = True
        self._step = 0
        self._last_time = time.perf_counter()
        logger.info("FrameLoop started (tick_rate=%s, max_steps=%s)", self.config.tick_rate, self.config.max_steps)

    def stop(self) -> None:
        if not self._running:
            return
        self._running = False
        logger.info("FrameLoop stopped at step=%s", self._step)

    def update(self, dt: float) -> None:
        """Run one frame with ``dt`` seconds of simulated time."""
        if not self._running:
            logger.debug("update() called while not running; ignored")
            return
        self._update(dt)
        self._step += 1
        if self.config.max_steps is not None and self._step >= self.config.max_steps:
            self.stop()

    def run(self) -> None:
        """Block until stopped or ``max_steps`` is reached, throttled to ``tick_rate``.

        With ``tick_rate`` 0 the loop runs unthrottled and feeds a fixed
        1/60 s step so headless runs stay deterministic.
        """
        self.start()
        target_dt = 0.0
        if self.config.tick_rate and self.config.tick_rate > 0:
            target_dt = 1.0 / float(self.config.tick_rate)

        while self._running:
            now = time.perf_counter()
            if target_dt > 0:
                dt = now - self._last_time if self._last_time is not None else target_dt
            else:
                dt = 1.0 / 60.0
            self._last_time = now

            self.update(dt)

            if target_dt > 0:
                remaining = target_dt - (time.perf_counter() - now)
                if remaining > 0:
                    time.sleep(remaining)

        logger.info("Loop complete (steps=%d)", self._step)
