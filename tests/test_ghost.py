from falling_blocks_rl.game import GameGrid, Piece, Shape, ghost_of, project


def test_projection_lands_on_floor():
    grid = GameGrid(10, 20)
    piece = Piece(Shape.O, x=4, y=1)
    assert project(grid, piece) == (4, 19)
    assert (piece.x, piece.y) == (4, 1)


def test_projection_lands_on_stack():
    grid = GameGrid(10, 20)
    grid.grid[15, 4] = Shape.T
    piece = Piece(Shape.I, x=4, y=1)
    ghost = ghost_of(grid, piece)
    assert (ghost.x, ghost.y) == (4, 12)
    assert max(y for _, y in ghost.cells()) == 14
    assert ghost.offsets == piece.offsets
    assert not grid.grid[:15].any()


def test_blocked_piece_projects_to_itself():
    grid = GameGrid(10, 20)
    piece = Piece(Shape.T, x=4, y=18)
    assert project(grid, piece) == (4, 18)
