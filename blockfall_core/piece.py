"""Falling piece model.

A piece is a kind, its current rotation matrix, the board position of the
matrix's top-left corner, and an opaque visual tag. Pieces are treated as
values: move() and rotate() return new pieces.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from blockfall_core.shapes import (
    BASE_SHAPES,
    Shape,
    base_shape,
    leading_empty_rows,
    rotate_clockwise,
    shape_cells,
)


class Piece:
    """Represents a piece at a specific position and rotation."""

    def __init__(
        self,
        kind: str,
        x: int = 0,
        y: int = 0,
        shape: Optional[Shape] = None,
        tag: Any = None,
    ):
        """Initialize a piece.

        Args:
            kind: One of "I", "O", "T", "L", "J", "S", "Z"
            x: Board column of the shape's left edge
            y: Board row of the shape's top edge (negative while spawning)
            shape: Rotation matrix (defaults to the kind's base matrix)
            tag: Opaque visual tag carried into locked cells
        """
        if kind not in BASE_SHAPES:
            raise ValueError(f"Invalid piece kind: {kind}")
        self.kind = kind
        self.x = x
        self.y = y
        self.shape = shape if shape is not None else base_shape(kind)
        self.tag = tag

    @property
    def width(self) -> int:
        return len(self.shape[0])

    @property
    def height(self) -> int:
        return len(self.shape)

    def get_cells(self) -> List[Tuple[int, int]]:
        """Get absolute board coordinates of all filled cells.

        Returns:
            List of (x, y) tuples in board coordinates
        """
        return [(self.x + dx, self.y + dy) for dx, dy in shape_cells(self.shape)]

    def move(self, dx: int, dy: int) -> "Piece":
        """Return a new piece moved by the given delta."""
        return Piece(self.kind, self.x + dx, self.y + dy, self.shape, self.tag)

    def rotate(self) -> "Piece":
        """Return a new piece rotated clockwise in place (same x, y)."""
        return Piece(self.kind, self.x, self.y, rotate_clockwise(self.shape), self.tag)

    def view(self) -> "PieceView":
        """Freeze this piece into a read-only view."""
        return PieceView(self.kind, self.shape, self.x, self.y, self.tag)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Piece):
            return NotImplemented
        return (self.kind, self.x, self.y, self.shape, self.tag) == (
            other.kind,
            other.x,
            other.y,
            other.shape,
            other.tag,
        )

    def __repr__(self) -> str:
        return f"Piece({self.kind}, x={self.x}, y={self.y}, tag={self.tag!r})"


@dataclass(frozen=True)
class PieceView:
    """Read-only view of a piece handed out to renderers."""

    kind: str
    shape: Shape
    x: int
    y: int
    tag: Any = None

    def get_cells(self) -> List[Tuple[int, int]]:
        return [(self.x + dx, self.y + dy) for dx, dy in shape_cells(self.shape)]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-friendly dictionary."""
        return {
            "kind": self.kind,
            "x": self.x,
            "y": self.y,
            "shape": [list(row) for row in self.shape],
            "tag": self.tag,
        }


def get_spawn_position(kind: str, cols: int) -> Tuple[int, int]:
    """Get the spawn position for a piece kind.

    The shape is centered horizontally and raised by its leading empty rows,
    so the first filled row starts on board row 0 and the piece scrolls in
    from the top edge.

    Args:
        kind: One of "I", "O", "T", "L", "J", "S", "Z"
        cols: Board width

    Returns:
        (x, y) spawn coordinates
    """
    shape = base_shape(kind)
    x = (cols - len(shape[0])) // 2
    y = -leading_empty_rows(shape)
    return (x, y)


def spawn_piece(kind: str, cols: int, tag: Any = None) -> Piece:
    """Create a piece of the given kind at its spawn position."""
    x, y = get_spawn_position(kind, cols)
    return Piece(kind, x, y, tag=tag)
