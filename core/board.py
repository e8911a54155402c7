"""
棋盘几何定义

Qwinto 记分板由三行彩色格子组成，每行 9 格，行与行之间错位排列:

          |  |  |O0|O1|O2|  |O3|O4|O5|O6|O7|O8|
          |  |Y0|Y1|Y2|Y3|Y4|  |Y5|Y6|Y7|Y8|  |
          |P0|P1|P2|P3|  |P4|P5|P6|P7|P8|  |  |

处于同一显示列的格子互相"关联": 关联格子不能填相同的数字。
其中五列 (五边形格) 三格齐全时给予额外奖励。

所有几何关系在这里以数据表的形式给出，规则引擎只按索引查表。
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from .dice import Die, MAX_OUTCOME
from .errors import ConfigError


class CellKind(Enum):
    """格子按关联格数量分类"""
    CORNER = "corner"        # 无关联格
    EDGE = "edge"            # 1 个关联格
    INTERIOR = "interior"    # 2 个关联格


@dataclass(frozen=True)
class RowLayout:
    """
    单行布局

    Attributes:
        die: 该行颜色 (对应骰子)
        offset: 行首所在显示列
        gap_after: 该字段之后有一个空列
    """
    die: Die
    offset: int
    gap_after: int


@dataclass(frozen=True)
class CellRule:
    """单个格子的静态规则记录"""
    index: int
    row: int
    field: int
    die: Die
    paired: Tuple[int, ...]

    @property
    def kind(self) -> CellKind:
        if not self.paired:
            return CellKind.CORNER
        if len(self.paired) == 1:
            return CellKind.EDGE
        return CellKind.INTERIOR


@dataclass(frozen=True)
class Diagonal:
    """
    奖励列: 三格都填满时，奖励 rewarded 格中的数值

    Attributes:
        cells: 三个格子 (每行一个)
        rewarded: 计分的格子 (不一定是最后一个)
        best_value: 该格在合法填法下可达到的最大值
    """
    cells: Tuple[int, int, int]
    rewarded: int
    best_value: int


# 行布局: 橙 / 黄 / 紫
ROW_LAYOUTS: Tuple[RowLayout, ...] = (
    RowLayout(die=Die.ORANGE, offset=2, gap_after=2),
    RowLayout(die=Die.YELLOW, offset=1, gap_after=4),
    RowLayout(die=Die.PURPLE, offset=0, gap_after=3),
)

NUM_FIELDS = 9

# 关联格表 (与实体棋盘的列一一对应，不在运行时推导)
# 8, 18 为角格; 13/22, 9/19, 2/12, 7/17, 3/23 为边格; 其余为内部格
PAIRINGS: Dict[int, Tuple[int, ...]] = {
    0: (10, 20), 1: (11, 21), 2: (12,), 3: (23,), 4: (14, 24),
    5: (15, 25), 6: (16, 26), 7: (17,), 8: (),
    9: (19,), 10: (20, 0), 11: (21, 1), 12: (2,), 13: (22,),
    14: (24, 4), 15: (25, 5), 16: (26, 6), 17: (7,),
    18: (), 19: (9,), 20: (0, 10), 21: (1, 11), 22: (13,),
    23: (3,), 24: (4, 14), 25: (5, 15), 26: (6, 16),
}

# 五个奖励列
DIAGONALS: Tuple[Diagonal, ...] = (
    Diagonal(cells=(0, 10, 20), rewarded=20, best_value=12),
    Diagonal(cells=(1, 11, 21), rewarded=1, best_value=11),
    Diagonal(cells=(4, 14, 24), rewarded=4, best_value=14),
    Diagonal(cells=(5, 15, 25), rewarded=15, best_value=16),
    Diagonal(cells=(6, 16, 26), rewarded=26, best_value=18),
)


@dataclass(frozen=True)
class BoardGeometry:
    """
    不可变棋盘几何

    单个玩家的棋盘是长度为 num_rows * num_fields + 1 的整数序列，
    最后一格为失误 (Miss) 扣分累计。
    """
    rows: Tuple[RowLayout, ...]
    num_fields: int
    cells: Tuple[CellRule, ...]
    diagonals: Tuple[Diagonal, ...]
    max_outcome: int = MAX_OUTCOME

    @classmethod
    def create(
        cls,
        rows: Sequence[RowLayout],
        num_fields: int,
        pairings: Dict[int, Tuple[int, ...]],
        diagonals: Sequence[Diagonal],
        max_outcome: int = MAX_OUTCOME,
    ) -> 'BoardGeometry':
        """
        从布局与关联表构建几何，并校验表的一致性

        Raises:
            ConfigError: 关联表缺格、不对称或奖励列非法
        """
        num_cells = len(rows) * num_fields
        if sorted(pairings) != list(range(num_cells)):
            raise ConfigError("Pairing table must list every board cell exactly once")

        for cell, paired in pairings.items():
            for other in paired:
                if cell not in pairings[other]:
                    raise ConfigError(f"Pairing {cell} -> {other} is not symmetric")
                if other // num_fields == cell // num_fields:
                    raise ConfigError(f"Cells {cell} and {other} share a row")

        for diagonal in diagonals:
            if diagonal.rewarded not in diagonal.cells:
                raise ConfigError(f"Rewarded cell {diagonal.rewarded} not in {diagonal.cells}")

        cells = tuple(
            CellRule(
                index=i,
                row=i // num_fields,
                field=i % num_fields,
                die=rows[i // num_fields].die,
                paired=tuple(pairings[i]),
            )
            for i in range(num_cells)
        )

        return cls(
            rows=tuple(rows),
            num_fields=num_fields,
            cells=cells,
            diagonals=tuple(diagonals),
            max_outcome=max_outcome,
        )

    @property
    def num_rows(self) -> int:
        return len(self.rows)

    @property
    def num_cells(self) -> int:
        """可计分格子数 (不含 Miss)"""
        return self.num_rows * self.num_fields

    @property
    def board_size(self) -> int:
        """单个玩家棋盘长度 (含 Miss)"""
        return self.num_cells + 1

    @property
    def miss_index(self) -> int:
        return self.num_cells

    @property
    def num_columns(self) -> int:
        """显示列数"""
        return max(self.display_column(cell.index) for cell in self.cells) + 1

    def row_range(self, row: int) -> range:
        """某行的格子索引范围"""
        start = row * self.num_fields
        return range(start, start + self.num_fields)

    def row_of_die(self, die: Die) -> Optional[int]:
        for row, layout in enumerate(self.rows):
            if layout.die == die:
                return row
        return None

    def display_column(self, cell: int) -> int:
        """格子在实体棋盘上的列号"""
        rule = self.cells[cell]
        layout = self.rows[rule.row]
        return layout.offset + rule.field + (1 if rule.field > layout.gap_after else 0)

    def max_bonus(self) -> int:
        """所有奖励列可得的最大奖励之和"""
        return sum(d.best_value for d in self.diagonals)

    def empty_board(self) -> List[int]:
        return [0] * self.board_size


DEFAULT_GEOMETRY = BoardGeometry.create(
    rows=ROW_LAYOUTS,
    num_fields=NUM_FIELDS,
    pairings=PAIRINGS,
    diagonals=DIAGONALS,
)


def render_board(board: Sequence[int], geometry: BoardGeometry = DEFAULT_GEOMETRY) -> str:
    """
    按实体棋盘的错位布局渲染一个玩家的棋盘

    Returns:
        多行字符串，空列显示为空白，最后一行为 Miss 累计
    """
    lines = []
    for row in range(geometry.num_rows):
        columns = ["  "] * geometry.num_columns
        for cell in geometry.row_range(row):
            columns[geometry.display_column(cell)] = f"{board[cell]:2d}"
        lines.append("|" + "|".join(columns) + "|")
    lines.append(f"Miss: {board[geometry.miss_index]}")
    return "\n".join(lines)
