"""Game-state engine.

The engine owns the board and the current/next pieces and advances purely as
a function of the commands it receives and the timestamps passed to tick().
It never sleeps, schedules callbacks or performs I/O; a driving loop (see
blockfall_core.runner) calls tick() once per frame with a monotonic time in
milliseconds.
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from blockfall_core.board import Board, BoardSnapshot
from blockfall_core.config import EngineConfig
from blockfall_core.piece import Piece, PieceView, spawn_piece
from blockfall_core.rng import PieceFactory, RandomPieceFactory
from blockfall_core.rules import KickRules

logger = logging.getLogger(__name__)

LinesClearedListener = Callable[[int], None]


class GameState(str, Enum):
    """Top-level engine state. Exactly one holds at a time."""
    NOT_STARTED = "not_started"
    RUNNING = "running"
    CLEARING = "clearing"      # Rows locked full, waiting for the clear deadline
    GAME_OVER = "game_over"


class Command(Enum):
    """Player commands forwarded by an input collaborator."""
    LEFT = "LEFT"
    RIGHT = "RIGHT"
    ROTATE = "ROTATE"        # Clockwise rotation with wall kicks
    DOWN = "DOWN"            # One soft-drop step
    HARD = "HARD"            # Hard drop (instant lock)
    SOFT_ON = "SOFT_ON"      # Soft drop held
    SOFT_OFF = "SOFT_OFF"    # Soft drop released


@dataclass(frozen=True)
class LineClearPhase:
    """Rows waiting to be removed and when the pause ends."""
    rows: Tuple[int, ...]
    deadline: Optional[float]  # None until the first timestamp is seen


@dataclass
class EngineStats:
    """Session counters."""
    pieces_locked: int = 0
    lines_cleared: int = 0
    clears: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "pieces_locked": self.pieces_locked,
            "lines_cleared": self.lines_cleared,
            "clears": self.clears,
        }


@dataclass
class Observation:
    """Complete read-only engine state."""
    state: GameState
    board: BoardSnapshot
    cols: int
    rows: int
    current: Optional[PieceView]
    next: Optional[PieceView]
    clear_phase: Optional[LineClearPhase]
    soft_drop: bool
    stats: EngineStats = field(default_factory=EngineStats)

    def to_dict(self) -> Dict[str, Any]:
        """Convert observation to dictionary for serialization."""
        return {
            "state": self.state.value,
            "board": {
                "w": self.cols,
                "h": self.rows,
                "cells": [[0 if cell is None else 1 for cell in row] for row in self.board],
                "tags": [[None if cell is None else cell.tag for cell in row] for row in self.board],
            },
            "current": self.current.to_dict() if self.current else None,
            "next": self.next.to_dict() if self.next else None,
            "clear_phase": (
                {"rows": list(self.clear_phase.rows), "deadline": self.clear_phase.deadline}
                if self.clear_phase
                else None
            ),
            "soft_drop": self.soft_drop,
            "stats": self.stats.to_dict(),
        }


class Engine:
    """Falling-block game state machine."""

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        factory: Optional[PieceFactory] = None,
    ):
        """Initialize the engine in the NOT_STARTED state.

        Args:
            config: Board size and timing (defaults to EngineConfig())
            factory: Source of piece kinds and tags (defaults to uniform random)
        """
        self.config = config or EngineConfig()
        self.factory = factory or RandomPieceFactory()
        self.rules = KickRules(self.config.kicks)

        self.board = Board(self.config.cols, self.config.rows)
        self.state = GameState.NOT_STARTED
        self.current: Optional[Piece] = None
        self.next: Optional[Piece] = None
        self.clear_phase: Optional[LineClearPhase] = None
        self.soft_drop = False
        self.stats = EngineStats()

        # Latest timestamp seen and the anchor of the drop timer
        self.last_now: Optional[float] = None
        self.last_drop_at: Optional[float] = None

        self._listeners: List[LinesClearedListener] = []

    # -- session -----------------------------------------------------------

    def start(self, now: Optional[float] = None) -> None:
        """Start a new session from any state.

        Args:
            now: Current time in ms. When omitted the drop timer is anchored
                by the first tick().
        """
        self.board = Board(self.config.cols, self.config.rows)
        self.clear_phase = None
        self.soft_drop = False
        self.stats = EngineStats()
        self.last_now = now
        self.last_drop_at = now

        self.current = self._new_piece()
        self.next = self._new_piece()
        self.state = GameState.RUNNING
        logger.debug(f"Session started: current={self.current}, next={self.next}")

    def restart(self, now: Optional[float] = None) -> None:
        """Alias of start()."""
        self.start(now)

    # -- commands ----------------------------------------------------------

    def move_horizontal(self, dx: int) -> bool:
        """Shift the current piece one column.

        Args:
            dx: -1 for left, +1 for right

        Returns:
            True if the piece moved
        """
        if dx not in (-1, 1):
            raise ValueError(f"Horizontal move must be -1 or 1, got {dx}")
        if not self._accepting_commands():
            return False
        return self._try_move(dx, 0)

    def move_down(self, now: Optional[float] = None) -> bool:
        """Move the current piece down one row, locking it if blocked.

        This is the step used by both soft drop and gravity.

        Args:
            now: Current time in ms, used to time a line clear if one starts

        Returns:
            True if the piece descended, False if it locked or nothing happened
        """
        if not self._accepting_commands():
            return False
        self._observe_time(now)
        if self._try_move(0, 1):
            return True
        self._lock_current()
        return False

    def hard_drop(self, now: Optional[float] = None) -> int:
        """Drop the current piece to the floor and lock it immediately.

        Args:
            now: Current time in ms, used to time a line clear if one starts

        Returns:
            Number of rows the piece fell
        """
        if not self._accepting_commands():
            return 0
        self._observe_time(now)
        distance = 0
        while self._try_move(0, 1):
            distance += 1
        self._lock_current()
        return distance

    def rotate(self) -> bool:
        """Rotate the current piece clockwise, trying wall kicks.

        Returns:
            True if the rotation was applied
        """
        if not self._accepting_commands():
            return False
        rotated = self.rules.try_rotate(self.board, self.current)
        if rotated is None:
            return False
        self.current = rotated
        return True

    def set_soft_drop(self, active: bool) -> None:
        """Hold or release soft drop. Sampled on every tick."""
        self.soft_drop = bool(active)

    def apply(self, command: Command, now: Optional[float] = None) -> bool:
        """Dispatch a player command.

        Returns:
            True if the command changed the current piece or mode
        """
        if command == Command.LEFT:
            return self.move_horizontal(-1)
        elif command == Command.RIGHT:
            return self.move_horizontal(1)
        elif command == Command.ROTATE:
            return self.rotate()
        elif command == Command.DOWN:
            return self.move_down(now)
        elif command == Command.HARD:
            if not self._accepting_commands():
                return False
            self.hard_drop(now)
            return True
        elif command == Command.SOFT_ON:
            self.set_soft_drop(True)
            return True
        elif command == Command.SOFT_OFF:
            self.set_soft_drop(False)
            return True
        raise ValueError(f"Invalid command: {command}")

    # -- timing ------------------------------------------------------------

    @property
    def drop_interval(self) -> float:
        """Interval between automatic drops for the current soft-drop mode."""
        return self.config.soft_drop_ms if self.soft_drop else self.config.gravity_ms

    def tick(self, now: float) -> None:
        """Advance the game to the given time.

        Timestamps earlier than one already seen count as no elapsed time.

        Args:
            now: Monotonic time in ms
        """
        now = self._observe_time(now)

        if self.state == GameState.CLEARING:
            if self.clear_phase.deadline is None:
                self.clear_phase = replace(self.clear_phase, deadline=now + self.config.clear_ms)
            if now >= self.clear_phase.deadline:
                self._finish_clear()
            return

        if self.state != GameState.RUNNING:
            return

        if self.last_drop_at is None:
            self.last_drop_at = now
            return

        if now - self.last_drop_at >= self.drop_interval:
            self.move_down(now)
            self.last_drop_at = now

    # -- queries -----------------------------------------------------------

    @property
    def current_piece(self) -> Optional[PieceView]:
        return self.current.view() if self.current else None

    @property
    def next_piece(self) -> Optional[PieceView]:
        return self.next.view() if self.next else None

    def board_snapshot(self) -> BoardSnapshot:
        return self.board.snapshot()

    def observe(self) -> Observation:
        """Build the current observation.

        Returns:
            Complete observation
        """
        return Observation(
            state=self.state,
            board=self.board.snapshot(),
            cols=self.board.cols,
            rows=self.board.rows,
            current=self.current_piece,
            next=self.next_piece,
            clear_phase=self.clear_phase,
            soft_drop=self.soft_drop,
            stats=EngineStats(**self.stats.to_dict()),
        )

    # -- events ------------------------------------------------------------

    def add_lines_cleared_listener(self, listener: LinesClearedListener) -> None:
        """Register a callback receiving the row count of every completed clear."""
        self._listeners.append(listener)

    def remove_lines_cleared_listener(self, listener: LinesClearedListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # -- internals ---------------------------------------------------------

    def _accepting_commands(self) -> bool:
        return self.state == GameState.RUNNING and self.current is not None

    def _observe_time(self, now: Optional[float]) -> float:
        """Record a timestamp, clamping it so time never runs backwards."""
        if now is None:
            return self.last_now if self.last_now is not None else 0.0
        if self.last_now is not None and now < self.last_now:
            return self.last_now
        self.last_now = now
        return now

    def _new_piece(self) -> Piece:
        kind = self.factory.next_kind()
        tag = self.factory.next_tag()
        return spawn_piece(kind, self.board.cols, tag)

    def _try_move(self, dx: int, dy: int) -> bool:
        """Try to move the current piece.

        Returns:
            True if move succeeded
        """
        piece = self.current
        if self.board.collides(piece.shape, piece.x + dx, piece.y + dy):
            return False
        self.current = piece.move(dx, dy)
        return True

    def _lock_current(self) -> None:
        """Write the current piece into the board and sequence what follows."""
        piece = self.current
        self.board.lock(piece.shape, piece.x, piece.y, piece.tag)
        self.current = None
        self.stats.pieces_locked += 1
        logger.debug(f"Locked {piece}")

        rows = self.board.full_rows()
        if rows:
            deadline = None if self.last_now is None else self.last_now + self.config.clear_ms
            self.clear_phase = LineClearPhase(tuple(rows), deadline)
            self.state = GameState.CLEARING
            logger.debug(f"Clearing rows {rows} until {self.clear_phase.deadline}")
        else:
            self._spawn_next()

    def _finish_clear(self) -> None:
        """Remove the rows captured at lock time and bring in the next piece."""
        phase = self.clear_phase
        count = self.board.clear_rows(phase.rows)
        self.clear_phase = None
        self.stats.lines_cleared += count
        self.stats.clears += 1
        self.state = GameState.RUNNING
        self._spawn_next()

        for listener in list(self._listeners):
            listener(count)

    def _spawn_next(self) -> None:
        """Promote next to current; a spawn collision ends the game."""
        self.current = self.next
        self.next = self._new_piece()
        self.last_drop_at = self.last_now

        piece = self.current
        if self.board.collides(piece.shape, piece.x, piece.y):
            self.current = None
            self.state = GameState.GAME_OVER
            logger.debug(f"Game over: {piece} does not fit at spawn")
