"""Tests for board functionality."""

import pytest

from blockfall_core.board import Board, Cell
from blockfall_core.piece import Piece
from blockfall_core.shapes import base_shape


def test_board_initialization():
    """Test board starts empty."""
    board = Board()
    assert board.is_empty(), "Board should start empty"
    assert len(board.cells) == 20
    assert all(len(row) == 10 for row in board.cells)


def test_board_invalid_dimensions():
    """Test non-positive dimensions are rejected."""
    with pytest.raises(ValueError):
        Board(0, 20)


def test_bounds_and_occupancy():
    """Test bounds have no lower limit on y and rows above are never occupied."""
    board = Board()
    assert board.in_bounds(0, -3)
    assert board.in_bounds(9, 19)
    assert not board.in_bounds(-1, 5)
    assert not board.in_bounds(10, 5)
    assert not board.in_bounds(4, 20)

    board.set(4, 0, Cell())
    assert board.is_occupied(4, 0)
    assert not board.is_occupied(4, -1)


def test_collision_detection():
    """Test collision with walls, floor and blocks."""
    board = Board()
    t = base_shape("T")

    # Valid position
    assert not board.collides(t, 4, 18), "Valid position should not collide"

    # Out of bounds (left / right)
    assert board.collides(t, -1, 10), "Left wall should collide"
    assert board.collides(t, 8, 10), "Right wall should collide"

    # Past the floor
    assert board.collides(t, 4, 19), "Floor should collide"

    # Above the board is free
    assert not board.collides(t, 4, -1), "Rows above the board should not collide"

    # Occupied cell
    board.set(5, 11, Cell())
    assert board.collides(t, 4, 10), "Occupied cell should collide"


def test_collision_ignores_empty_matrix_cells():
    """Test empty cells of the matrix may hang over walls."""
    board = Board()
    i_vertical = Piece("I").rotate()  # filled column 2 only
    assert not board.collides(i_vertical.shape, -2, 10)
    assert board.collides(i_vertical.shape, -3, 10)


def test_lock_piece():
    """Test locking a piece onto the board."""
    board = Board()
    piece = Piece("I", x=3, y=18, tag="cyan")

    written = board.lock(piece.shape, piece.x, piece.y, piece.tag)

    assert written == 4
    for x, y in piece.get_cells():
        assert board.get(x, y) == Cell("cyan"), f"Cell ({x}, {y}) should be filled"


def test_lock_untagged_cells_are_occupied():
    """Test a None tag still occupies the cell."""
    board = Board()
    board.lock(base_shape("O"), 0, 18, None)
    assert board.is_occupied(0, 19)
    assert board.collides(base_shape("O"), 0, 17)


def test_lock_drops_cells_above_board():
    """Test cells above the top edge are silently dropped."""
    board = Board()
    written = board.lock(base_shape("O"), 4, -1, "x")

    assert written == 2
    assert board.is_occupied(4, 0) and board.is_occupied(5, 0)
    assert sum(sum(row) for row in board.to_list()) == 2


def test_full_rows():
    """Test detecting completely filled rows in ascending order."""
    board = Board()
    for y in (19, 5):
        for x in range(board.cols):
            board.set(x, y, Cell())
    board.set(0, 10, Cell())

    assert board.full_rows() == [5, 19]


def test_line_clearing():
    """Test clearing a complete line drops the rows above."""
    board = Board()

    for x in range(board.cols):
        board.set(x, 19, Cell())
    board.set(3, 18, Cell("above"))

    cleared = board.clear_rows(board.full_rows())

    assert cleared == 1, "Should clear one line"
    assert board.get(3, 19) == Cell("above"), "Row above should fall"
    assert all(cell is None for cell in board.cells[0])


def test_clear_rows_keeps_relative_order():
    """Test removing rows 3 and 7 collapses the others in order."""
    board = Board()
    for y in range(board.rows):
        board.set(0, y, Cell(y))  # partial row tagged with its index
    for y in (3, 7):
        for x in range(board.cols):
            board.set(x, y, Cell(y))

    for order in ([3, 7], [7, 3]):
        work = board.copy()
        assert work.clear_rows(order) == 2

        assert work.cells[0] == [None] * 10
        assert work.cells[1] == [None] * 10
        expected = [0, 1, 2, 4, 5, 6] + list(range(8, 20))
        assert [work.get(0, y).tag for y in range(2, 20)] == expected
        assert all(len(row) == 10 for row in work.cells)
        assert len(work.cells) == 20


def test_clear_rows_ignores_duplicates_and_out_of_range():
    """Test bad indices do not delete extra rows."""
    board = Board()
    for x in range(board.cols):
        board.set(x, 19, Cell())

    assert board.clear_rows([19, 19, 42, -1]) == 1
    assert board.is_empty()
    assert len(board.cells) == 20


def test_multiple_line_clearing():
    """Test clearing multiple lines."""
    board = Board()

    # Fill bottom 3 rows
    for y in range(17, 20):
        for x in range(board.cols):
            board.set(x, y, Cell())

    assert board.clear_rows(board.full_rows()) == 3, "Should clear three lines"
    assert board.is_empty()


def test_snapshot_is_immutable_copy():
    """Test snapshots do not change when the board does."""
    board = Board()
    snapshot = board.snapshot()
    board.set(0, 0, Cell())

    assert snapshot[0][0] is None
    assert isinstance(snapshot, tuple) and isinstance(snapshot[0], tuple)


def test_from_rows_round_trip():
    """Test building a board from nested rows."""
    board = Board.from_rows([
        [0, 1, 0],
        [1, 1, Cell("t")],
    ])

    assert (board.cols, board.rows) == (3, 2)
    assert board.to_list() == [[0, 1, 0], [1, 1, 1]]
    assert board.tags() == [[None, None, None], [None, None, "t"]]

    with pytest.raises(ValueError):
        Board.from_rows([[0, 0], [0]])
