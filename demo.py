#!/usr/bin/env python3
"""Headless demo: play random commands on a virtual clock and report stats."""

import random
import sys

from blockfall_core.engine import Command, Engine
from blockfall_core.rng import RandomPieceFactory
from blockfall_core.runner import FrameRunner, ManualClock

COMMANDS = list(Command)


def play(seed: int, minutes: float = 5.0) -> None:
    """Play one game with random inputs every few frames."""
    rng = random.Random(seed)
    engine = Engine(factory=RandomPieceFactory(seed, tags=["pink", "violet"]))
    clears = []
    engine.add_lines_cleared_listener(clears.append)

    runner = FrameRunner(engine, clock=ManualClock())
    runner.start()

    frames = 0
    for _ in range(int(minutes * 60 * 60)):
        if rng.random() < 0.2:
            engine.apply(rng.choice(COMMANDS), runner.now())
        stats = runner.simulate(runner.frame_ms)
        frames += stats.frames
        if stats.frames == 0:
            break

    print(
        f"Seed {seed}: {engine.state.value} after {frames} frames, "
        f"{engine.stats.pieces_locked} pieces, {engine.stats.lines_cleared} lines "
        f"in {len(clears)} clears"
    )


def main():
    """Run demo games."""
    print("Blockfall Demo")
    print("=" * 60)

    seeds = [int(arg) for arg in sys.argv[1:]] or [1, 2, 3]
    for seed in seeds:
        play(seed)


if __name__ == "__main__":
    main()
