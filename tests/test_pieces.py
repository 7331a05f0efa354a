import pytest

from falling_blocks_rl.game import GameGrid, Piece, Shape, base_offsets, rotate_left, rotate_right
from falling_blocks_rl.game.pieces import PLAYABLE_SHAPES, shape_from_index


def test_every_playable_shape_has_four_cells():
    assert len(PLAYABLE_SHAPES) == 7
    for shape in PLAYABLE_SHAPES:
        offsets = base_offsets(shape)
        assert len(offsets) == 4
        assert len(set(offsets)) == 4


def test_rotation_transforms():
    offsets = ((0, -1), (0, 0), (0, 1), (1, 1))
    assert rotate_right(offsets) == ((1, 0), (0, 0), (-1, 0), (-1, 1))
    assert rotate_left(offsets) == ((-1, 0), (0, 0), (1, 0), (1, -1))
    assert rotate_left(rotate_right(offsets)) == offsets


def test_four_right_turns_restore_offsets():
    for shape in PLAYABLE_SHAPES:
        offsets = base_offsets(shape)
        turned = offsets
        for _ in range(4):
            turned = rotate_right(turned)
        assert turned == offsets


def test_shape_from_index_rejects_out_of_range():
    assert shape_from_index(0) is Shape.O
    assert shape_from_index(6) is Shape.T
    with pytest.raises(ValueError):
        shape_from_index(7)
    with pytest.raises(ValueError):
        shape_from_index(-1)


def test_try_move_commits_only_legal_moves():
    grid = GameGrid(10, 20)
    piece = Piece(Shape.I, x=0, y=1)
    assert not piece.try_move(grid, -1, 0)
    assert (piece.x, piece.y) == (0, 1)
    assert piece.try_move(grid, 1, 0)
    assert (piece.x, piece.y) == (1, 1)


def test_rotation_is_applied_about_the_anchor():
    grid = GameGrid(10, 20)
    piece = Piece(Shape.I, x=4, y=5)
    assert piece.rotate_right(grid)
    assert piece.offsets == ((1, 0), (0, 0), (-1, 0), (-2, 0))
    assert (piece.x, piece.y) == (4, 5)
    assert piece.rotation == 1
    assert piece.rotate_left(grid)
    assert piece.offsets == base_offsets(Shape.I)
    assert piece.rotation == 0


def test_blocked_rotation_leaves_piece_untouched():
    grid = GameGrid(10, 20)
    piece = Piece(Shape.I, x=0, y=5)
    before = piece.copy()
    # Rotating right would put cells at x=-1 and x=-2
    assert not piece.rotate_right(grid)
    assert piece == before


def test_rotation_blocked_by_stack():
    grid = GameGrid(10, 20)
    piece = Piece(Shape.L, x=4, y=5)
    grid.grid[5, 5] = Shape.O
    before = piece.copy()
    assert not piece.try_rotate(grid, 1)
    assert piece == before


def test_copy_is_independent():
    piece = Piece(Shape.T, x=3, y=4)
    clone = piece.copy()
    clone.x += 1
    assert piece.x == 3
    assert clone.offsets == piece.offsets


def test_extents():
    piece = Piece(Shape.J)
    assert (piece.min_x(), piece.max_x()) == (0, 1)
    assert (piece.min_y(), piece.max_y()) == (-1, 1)
