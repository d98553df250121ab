"""Tetromino shape library.

Each piece kind is defined by a single base matrix of 0/1 values. Other
rotation states are derived on demand with rotate_clockwise(), which turns
the matrix about its own bounding box.
"""

from typing import Dict, List, Tuple

# Type alias for a rotation state: rows of 0/1 values, top row first
Shape = Tuple[Tuple[int, ...], ...]

PIECE_KINDS: Tuple[str, ...] = ("I", "O", "T", "L", "J", "S", "Z")

# I uses a 4x4 frame, O a 2x2 frame, all others 3x3
BASE_SHAPES: Dict[str, Shape] = {
    "I": (
        (0, 0, 0, 0),
        (1, 1, 1, 1),
        (0, 0, 0, 0),
        (0, 0, 0, 0),
    ),
    "O": (
        (1, 1),
        (1, 1),
    ),
    "T": (
        (0, 1, 0),
        (1, 1, 1),
        (0, 0, 0),
    ),
    "L": (
        (0, 0, 1),
        (1, 1, 1),
        (0, 0, 0),
    ),
    "J": (
        (1, 0, 0),
        (1, 1, 1),
        (0, 0, 0),
    ),
    "S": (
        (0, 1, 1),
        (1, 1, 0),
        (0, 0, 0),
    ),
    "Z": (
        (1, 1, 0),
        (0, 1, 1),
        (0, 0, 0),
    ),
}


def base_shape(kind: str) -> Shape:
    """Get the spawn matrix for a piece kind.

    Args:
        kind: One of "I", "O", "T", "L", "J", "S", "Z"

    Returns:
        The kind's base matrix

    Raises:
        ValueError: If the kind is unknown
    """
    if kind not in BASE_SHAPES:
        raise ValueError(f"Invalid piece kind: {kind}")
    return BASE_SHAPES[kind]


def rotate_clockwise(shape: Shape) -> Shape:
    """Rotate a matrix 90 degrees clockwise about its bounding box.

    An H x W matrix becomes W x H with result[x][H-1-y] = shape[y][x].

    Args:
        shape: Matrix to rotate (left untouched)

    Returns:
        New rotated matrix
    """
    height = len(shape)
    width = len(shape[0])
    result = [[0] * height for _ in range(width)]
    for y in range(height):
        for x in range(width):
            result[x][height - 1 - y] = shape[y][x]
    return tuple(tuple(row) for row in result)


def leading_empty_rows(shape: Shape) -> int:
    """Count the all-empty rows above the first filled row."""
    count = 0
    for row in shape:
        if any(row):
            break
        count += 1
    return count


def shape_cells(shape: Shape) -> List[Tuple[int, int]]:
    """Get the (x, y) offsets of every filled cell of a matrix."""
    return [
        (x, y)
        for y, row in enumerate(shape)
        for x, value in enumerate(row)
        if value
    ]


def shape_from_rows(rows: List[List[int]]) -> Shape:
    """Freeze a nested list into a Shape.

    Raises:
        ValueError: If the rows are empty or ragged
    """
    if not rows or not rows[0]:
        raise ValueError("Shape must have at least one row and one column")
    width = len(rows[0])
    if any(len(row) != width for row in rows):
        raise ValueError("Shape rows must all have the same width")
    return tuple(tuple(1 if value else 0 for value in row) for row in rows)
