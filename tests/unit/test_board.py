"""棋盘几何测试"""
import pytest

from core.board import (
    BoardGeometry,
    CellKind,
    DEFAULT_GEOMETRY,
    DIAGONALS,
    Diagonal,
    PAIRINGS,
    ROW_LAYOUTS,
    render_board,
)
from core.dice import Die
from core.errors import ConfigError


class TestGeometry:
    """默认几何测试"""

    def test_sizes(self):
        g = DEFAULT_GEOMETRY
        assert g.num_rows == 3
        assert g.num_fields == 9
        assert g.num_cells == 27
        assert g.board_size == 28
        assert g.miss_index == 27
        assert g.num_columns == 12

    def test_row_colours(self):
        g = DEFAULT_GEOMETRY
        assert [g.cells[i].die for i in (0, 9, 18)] == [Die.ORANGE, Die.YELLOW, Die.PURPLE]
        assert g.row_of_die(Die.PURPLE) == 2
        assert g.row_of_die(Die.NONE) is None

    def test_row_range(self):
        assert list(DEFAULT_GEOMETRY.row_range(1)) == list(range(9, 18))

    def test_empty_board(self):
        assert DEFAULT_GEOMETRY.empty_board() == [0] * 28

    def test_max_bonus(self):
        assert DEFAULT_GEOMETRY.max_bonus() == 12 + 11 + 14 + 16 + 18


class TestPairings:
    """关联格测试"""

    def test_corners(self):
        assert DEFAULT_GEOMETRY.cells[8].kind == CellKind.CORNER
        assert DEFAULT_GEOMETRY.cells[18].kind == CellKind.CORNER

    @pytest.mark.parametrize("a,b", [(13, 22), (9, 19), (2, 12), (7, 17), (3, 23)])
    def test_edges(self, a, b):
        assert PAIRINGS[a] == (b,)
        assert PAIRINGS[b] == (a,)
        assert DEFAULT_GEOMETRY.cells[a].kind == CellKind.EDGE

    def test_interior(self):
        assert set(PAIRINGS[0]) == {10, 20}
        assert set(PAIRINGS[15]) == {5, 25}
        assert DEFAULT_GEOMETRY.cells[16].kind == CellKind.INTERIOR

    def test_symmetric(self):
        for cell, paired in PAIRINGS.items():
            for other in paired:
                assert cell in PAIRINGS[other]

    def test_pairs_share_display_column(self):
        g = DEFAULT_GEOMETRY
        for cell in range(g.num_cells):
            same_column = {
                other for other in range(g.num_cells)
                if other != cell and g.display_column(other) == g.display_column(cell)
            }
            assert same_column == set(PAIRINGS[cell])

    def test_diagonals_are_full_columns(self):
        for diagonal in DIAGONALS:
            assert set(PAIRINGS[diagonal.rewarded]) | {diagonal.rewarded} == set(diagonal.cells)


class TestCreate:
    """几何校验测试"""

    def test_missing_cell(self):
        pairings = dict(PAIRINGS)
        del pairings[8]
        with pytest.raises(ConfigError):
            BoardGeometry.create(ROW_LAYOUTS, 9, pairings, DIAGONALS)

    def test_asymmetric(self):
        pairings = dict(PAIRINGS)
        pairings[8] = (17,)
        with pytest.raises(ConfigError):
            BoardGeometry.create(ROW_LAYOUTS, 9, pairings, DIAGONALS)

    def test_same_row(self):
        pairings = dict(PAIRINGS)
        pairings[7] = (17, 8)
        pairings[8] = (7,)
        with pytest.raises(ConfigError):
            BoardGeometry.create(ROW_LAYOUTS, 9, pairings, DIAGONALS)

    def test_rewarded_outside_diagonal(self):
        bad = DIAGONALS + (Diagonal(cells=(2, 12, 22), rewarded=3, best_value=1),)
        with pytest.raises(ConfigError):
            BoardGeometry.create(ROW_LAYOUTS, 9, PAIRINGS, bad)


class TestRenderBoard:
    """棋盘渲染测试"""

    def test_layout(self):
        board = DEFAULT_GEOMETRY.empty_board()
        board[0] = 3
        board[18] = 12
        board[27] = -5
        lines = render_board(board).split("\n")

        assert len(lines) == 4
        assert lines[0].startswith("|  |  | 3|")
        assert lines[2].startswith("|12|")
        assert lines[3] == "Miss: -5"
