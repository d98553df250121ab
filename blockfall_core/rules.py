"""Rotation wall kicks.

Rotation turns the piece's matrix clockwise about its bounding box and then
tries a short list of horizontal offsets at the same row. The first offset
that does not collide wins; if none fits the rotation is rejected.
"""

from typing import Optional, Sequence, Tuple

from blockfall_core.board import Board
from blockfall_core.piece import Piece

# Horizontal offsets tried in order, same y for every test
DEFAULT_KICKS: Tuple[int, ...] = (0, -1, 1, -2, 2)


class KickRules:
    """Horizontal-only wall kick rules."""

    def __init__(self, kicks: Sequence[int] = DEFAULT_KICKS):
        """Initialize kick rules.

        Args:
            kicks: Ordered horizontal offsets to try after rotating
        """
        if not kicks:
            raise ValueError("At least one kick offset is required")
        self.kicks = tuple(kicks)

    def try_rotate(self, board: Board, piece: Piece) -> Optional[Piece]:
        """Attempt to rotate a piece clockwise with wall kicks.

        Args:
            board: Current board state
            piece: Piece to rotate

        Returns:
            Rotated piece if successful, None if rotation impossible
        """
        rotated = piece.rotate()
        for dx in self.kicks:
            if not board.collides(rotated.shape, rotated.x + dx, rotated.y):
                return rotated.move(dx, 0)
        return None
