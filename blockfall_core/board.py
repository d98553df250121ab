"""Playfield grid with collision detection and line clearing."""

from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Tuple

from blockfall_core.shapes import Shape, shape_cells


@dataclass(frozen=True)
class Cell:
    """An occupied board cell.

    The tag is opaque to the engine; a cell with tag None is still occupied.
    """

    tag: Any = None


Row = List[Optional[Cell]]
BoardSnapshot = Tuple[Tuple[Optional[Cell], ...], ...]


class Board:
    """Fixed-size grid of locked cells, rows[y][x] with y=0 at the top."""

    WIDTH = 10
    HEIGHT = 20

    def __init__(self, cols: int = WIDTH, rows: int = HEIGHT):
        """Initialize an empty board.

        Args:
            cols: Number of columns
            rows: Number of rows
        """
        if cols <= 0 or rows <= 0:
            raise ValueError(f"Board dimensions must be positive, got {cols}x{rows}")
        self.cols = cols
        self.rows = rows
        self.cells: List[Row] = [self._empty_row() for _ in range(rows)]

    def _empty_row(self) -> Row:
        return [None] * self.cols

    def get(self, x: int, y: int) -> Optional[Cell]:
        """Get the cell at (x, y), or None if empty or off the grid."""
        if 0 <= x < self.cols and 0 <= y < self.rows:
            return self.cells[y][x]
        return None

    def set(self, x: int, y: int, value: Optional[Cell]) -> None:
        """Set the cell at (x, y); coordinates off the grid are ignored."""
        if 0 <= x < self.cols and 0 <= y < self.rows:
            self.cells[y][x] = value

    def in_bounds(self, x: int, y: int) -> bool:
        """Check if coordinates are legal for a piece cell.

        There is no lower bound on y: rows above the board are valid while a
        piece scrolls in.
        """
        return 0 <= x < self.cols and y < self.rows

    def is_occupied(self, x: int, y: int) -> bool:
        """Check if a cell holds a locked block. Rows above the board never do."""
        if y < 0:
            return False
        return self.get(x, y) is not None

    def collides(self, shape: Shape, off_x: int, off_y: int) -> bool:
        """Check if a shape placed at (off_x, off_y) collides.

        A filled cell collides when it is outside the side walls, at or past
        the floor, or on an occupied cell.

        Args:
            shape: Rotation matrix
            off_x: Board column of the matrix's left edge
            off_y: Board row of the matrix's top edge

        Returns:
            True if collision detected
        """
        for dx, dy in shape_cells(shape):
            x, y = off_x + dx, off_y + dy
            if not self.in_bounds(x, y) or self.is_occupied(x, y):
                return True
        return False

    def lock(self, shape: Shape, off_x: int, off_y: int, tag: Any = None) -> int:
        """Write a shape's filled cells into the grid.

        Cells above the top edge are dropped.

        Returns:
            Number of cells written
        """
        written = 0
        for dx, dy in shape_cells(shape):
            x, y = off_x + dx, off_y + dy
            if 0 <= y < self.rows and 0 <= x < self.cols:
                self.cells[y][x] = Cell(tag)
                written += 1
        return written

    def is_row_full(self, y: int) -> bool:
        return all(cell is not None for cell in self.cells[y])

    def full_rows(self) -> List[int]:
        """Get indices of completely filled rows, top to bottom."""
        return [y for y in range(self.rows) if self.is_row_full(y)]

    def clear_rows(self, rows: Iterable[int]) -> int:
        """Remove rows and drop everything above them.

        The grid is rebuilt without the removed rows and padded with empty
        rows at the top, so the order of the given indices does not matter.

        Args:
            rows: Row indices to remove; duplicates and out-of-range values
                are ignored

        Returns:
            Number of rows removed
        """
        doomed = {y for y in rows if 0 <= y < self.rows}
        if not doomed:
            return 0
        kept = [row for y, row in enumerate(self.cells) if y not in doomed]
        self.cells = [self._empty_row() for _ in doomed] + kept
        return len(doomed)

    def is_empty(self) -> bool:
        return all(cell is None for row in self.cells for cell in row)

    def snapshot(self) -> BoardSnapshot:
        """Export the grid as an immutable tuple of rows."""
        return tuple(tuple(row) for row in self.cells)

    def copy(self) -> "Board":
        """Create a copy of the board. Cells are immutable, rows are not shared."""
        new_board = Board(self.cols, self.rows)
        new_board.cells = [list(row) for row in self.cells]
        return new_board

    def to_list(self) -> List[List[int]]:
        """Export occupancy as nested lists of 0/1 (for serialization)."""
        return [[0 if cell is None else 1 for cell in row] for row in self.cells]

    def tags(self) -> List[List[Any]]:
        """Export the tag of every cell (None where empty or untagged)."""
        return [[None if cell is None else cell.tag for cell in row] for row in self.cells]

    @classmethod
    def from_rows(cls, rows: List[List[Any]]) -> "Board":
        """Create a board from nested rows.

        Falsy entries are empty. Cell entries are kept; any other truthy
        value becomes an untagged Cell.

        Raises:
            ValueError: If the rows are empty or ragged
        """
        if not rows or not rows[0]:
            raise ValueError("Expected at least one row and one column")
        width = len(rows[0])
        for y, row in enumerate(rows):
            if len(row) != width:
                raise ValueError(f"Expected {width} cells in row {y}, got {len(row)}")
        board = cls(width, len(rows))
        board.cells = [
            [value if isinstance(value, Cell) else (Cell() if value else None) for value in row]
            for row in rows
        ]
        return board

    def __repr__(self) -> str:
        lines = ["".join("#" if cell is not None else "." for cell in row) for row in self.cells]
        return "Board(\n" + "\n".join(lines) + "\n)"
