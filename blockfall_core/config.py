"""Engine configuration."""

from dataclasses import dataclass
from typing import Tuple

from blockfall_core.rules import DEFAULT_KICKS


@dataclass(frozen=True)
class EngineConfig:
    """Fixed parameters of a game session.

    Attributes:
        cols: Board width in cells
        rows: Board height in cells
        gravity_ms: Interval between automatic drops
        soft_drop_ms: Interval between automatic drops while soft drop is held
        clear_ms: Length of the line-clear pause
        kicks: Horizontal wall kick offsets, tried in order
    """

    cols: int = 10
    rows: int = 20
    gravity_ms: float = 800
    soft_drop_ms: float = 50
    clear_ms: float = 500
    kicks: Tuple[int, ...] = DEFAULT_KICKS

    def __post_init__(self):
        if self.cols <= 0 or self.rows <= 0:
            raise ValueError(f"Board dimensions must be positive, got {self.cols}x{self.rows}")
        if self.gravity_ms <= 0 or self.soft_drop_ms <= 0:
            raise ValueError("Drop intervals must be positive")
        if self.clear_ms < 0:
            raise ValueError("Line clear duration cannot be negative")
        if not self.kicks:
            raise ValueError("At least one kick offset is required")
        object.__setattr__(self, "kicks", tuple(self.kicks))
