"""
规则引擎

负责:
- 落子合法性 (颜色、行内递增、关联格不重复)
- 单个棋盘的计分
"""
from typing import List, Sequence

from .board import BoardGeometry, DEFAULT_GEOMETRY


class RuleEngine:
    """
    Qwinto 规则引擎

    所有方法均为静态方法，只读取棋盘，不修改状态
    """

    @staticmethod
    def is_valid_placement(
        board: Sequence[int],
        cell: int,
        outcome: int,
        dice: int,
        geometry: BoardGeometry = DEFAULT_GEOMETRY,
        allow_row_gaps: bool = False,
    ) -> bool:
        """
        检查点数 outcome 能否写入 cell

        条件:
        1. 格子属于本回合所选骰子的颜色行，且尚未填写
        2. 左侧格子均非空且小于 outcome (allow_row_gaps 时允许左侧空格)
        3. 右侧格子为空或大于 outcome
        4. 关联格中没有相同的数字

        Args:
            board: 单个玩家棋盘
            cell: 格子索引
            outcome: 当前点数和
            dice: 本回合骰子位掩码
            geometry: 棋盘几何
            allow_row_gaps: 是否允许跳格填写

        Returns:
            是否合法
        """
        if outcome <= 0 or not 0 <= cell < geometry.num_cells:
            return False

        rule = geometry.cells[cell]

        # 颜色不符
        if not int(dice) & int(rule.die):
            return False

        # 已填写
        if board[cell] != 0:
            return False

        row = geometry.row_range(rule.row)
        left = [board[i] for i in range(row.start, cell)]
        right = [board[i] for i in range(cell + 1, row.stop)]

        # 行内必须从左到右严格递增
        if allow_row_gaps:
            if not all(v < outcome for v in left):
                return False
        elif not all(0 < v < outcome for v in left):
            return False

        if not all(v == 0 or v > outcome for v in right):
            return False

        # 同列不能出现相同数字
        return all(board[other] != outcome for other in rule.paired)

    @staticmethod
    def legal_cells(
        board: Sequence[int],
        outcome: int,
        dice: int,
        geometry: BoardGeometry = DEFAULT_GEOMETRY,
        allow_row_gaps: bool = False,
    ) -> List[int]:
        """所有可以写入 outcome 的格子 (升序)"""
        return [
            cell for cell in range(geometry.num_cells)
            if RuleEngine.is_valid_placement(
                board, cell, outcome, dice, geometry, allow_row_gaps
            )
        ]

    @staticmethod
    def row_score(board: Sequence[int], row: int, geometry: BoardGeometry = DEFAULT_GEOMETRY) -> int:
        """
        单行得分

        填满时得分为最右格的数值，否则为已填格数
        """
        cells = geometry.row_range(row)
        filled = sum(1 for i in cells if board[i] > 0)
        if filled == geometry.num_fields:
            return board[cells.stop - 1]
        return filled

    @staticmethod
    def diagonal_bonus(board: Sequence[int], geometry: BoardGeometry = DEFAULT_GEOMETRY) -> int:
        """五个奖励列: 三格齐全则加上指定格的数值"""
        bonus = 0
        for diagonal in geometry.diagonals:
            if all(board[i] > 0 for i in diagonal.cells):
                bonus += board[diagonal.rewarded]
        return bonus

    @staticmethod
    def calculate_score(board: Sequence[int], geometry: BoardGeometry = DEFAULT_GEOMETRY) -> int:
        """
        计算单个棋盘的总分

        总分 = 三行得分 + 奖励列 + Miss 累计 (非正数)
        """
        score = sum(RuleEngine.row_score(board, row, geometry) for row in range(geometry.num_rows))
        score += RuleEngine.diagonal_bonus(board, geometry)
        score += board[geometry.miss_index]
        return score

    @staticmethod
    def is_row_monotonic(board: Sequence[int], row: int, geometry: BoardGeometry = DEFAULT_GEOMETRY) -> bool:
        """行内非零数值是否从左到右严格递增"""
        values = [board[i] for i in geometry.row_range(row) if board[i] != 0]
        return all(a < b for a, b in zip(values, values[1:]))

    @staticmethod
    def has_linked_duplicates(board: Sequence[int], geometry: BoardGeometry = DEFAULT_GEOMETRY) -> bool:
        """是否存在两个关联格填了相同的非零数值"""
        for rule in geometry.cells:
            value = board[rule.index]
            if value == 0:
                continue
            if any(board[other] == value for other in rule.paired):
                return True
        return False
