"""Frame runner driving an engine at a fixed cadence.

The engine only reacts to tick(now); this module supplies the clock and the
loop. The same runner works with the real monotonic clock (asyncio service)
and with a manual clock for headless simulation and tests.
"""

import asyncio
import logging
import math
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from blockfall_core.engine import Engine, GameState

logger = logging.getLogger(__name__)

Clock = Callable[[], float]
FrameCallback = Callable[[Engine], Awaitable[None]]

FRAME_MS = 1000 / 60


def monotonic_ms() -> float:
    """Monotonic wall clock in milliseconds."""
    return time.monotonic() * 1000.0


class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self, start_ms: float = 0.0):
        self.now_ms = start_ms

    def __call__(self) -> float:
        return self.now_ms

    def advance(self, ms: float) -> float:
        """Move the clock forward and return the new time."""
        self.now_ms += ms
        return self.now_ms


@dataclass
class RunStats:
    """Statistics for a stretch of frames."""

    frames: int
    duration_seconds: float
    final_state: GameState
    pieces_locked: int
    lines_cleared: int

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "frames": self.frames,
            "duration_seconds": self.duration_seconds,
            "final_state": self.final_state.value,
            "pieces_locked": self.pieces_locked,
            "lines_cleared": self.lines_cleared,
        }


class FrameRunner:
    """Calls engine.tick() once per frame."""

    def __init__(
        self,
        engine: Engine,
        clock: Optional[Clock] = None,
        frame_ms: float = FRAME_MS,
    ):
        """Initialize runner.

        Args:
            engine: Engine to drive
            clock: Callable returning the current time in ms (default monotonic)
            frame_ms: Frame length in ms
        """
        if frame_ms <= 0:
            raise ValueError(f"Frame length must be positive, got {frame_ms}")
        self.engine = engine
        self.clock = clock or monotonic_ms
        self.frame_ms = frame_ms
        self.frames = 0

    def now(self) -> float:
        return self.clock()

    def start(self) -> None:
        """Start a new engine session anchored at the current clock time."""
        self.frames = 0
        self.engine.start(self.now())

    def step(self) -> None:
        """Tick the engine once at the current clock time."""
        self.engine.tick(self.now())
        self.frames += 1

    def simulate(self, duration_ms: float) -> RunStats:
        """Run frames on a manual clock for a stretch of virtual time.

        Stops early if the game ends.

        Args:
            duration_ms: Virtual time to simulate

        Returns:
            Statistics for the simulated frames
        """
        if not isinstance(self.clock, ManualClock):
            raise ValueError("simulate() requires a ManualClock")

        frames = 0
        start_time = time.time()
        for _ in range(math.ceil(duration_ms / self.frame_ms)):
            if self.engine.state == GameState.GAME_OVER:
                break
            self.clock.advance(self.frame_ms)
            self.step()
            frames += 1

        return self._stats(frames, time.time() - start_time)

    async def run(
        self,
        stop_event: Optional[asyncio.Event] = None,
        on_frame: Optional[FrameCallback] = None,
    ) -> RunStats:
        """Tick the engine every frame until the game ends or stop is set.

        Args:
            stop_event: Event that ends the loop when set
            on_frame: Coroutine called after every tick (e.g. to stream state)

        Returns:
            Statistics for the frames run
        """
        frames = 0
        start_time = time.time()
        logger.info(f"[Runner] Starting: frame_ms={self.frame_ms:.2f}")

        try:
            while not (stop_event and stop_event.is_set()):
                self.step()
                frames += 1
                if on_frame is not None:
                    await on_frame(self.engine)
                if self.engine.state == GameState.GAME_OVER:
                    break
                await asyncio.sleep(self.frame_ms / 1000)
        except asyncio.CancelledError:
            logger.info(f"[Runner] Cancelled after {frames} frames")
            raise

        stats = self._stats(frames, time.time() - start_time)
        logger.info(
            f"[Runner] Ended: state={stats.final_state.value}, frames={frames}, "
            f"pieces={stats.pieces_locked}, lines={stats.lines_cleared}"
        )
        return stats

    def _stats(self, frames: int, duration: float) -> RunStats:
        return RunStats(
            frames=frames,
            duration_seconds=duration,
            final_state=self.engine.state,
            pieces_locked=self.engine.stats.pieces_locked,
            lines_cleared=self.engine.stats.lines_cleared,
        )
