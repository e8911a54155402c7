"""
骰子定义与点数分布

Qwinto 使用三颗不同颜色的六面骰:
- 橙色 (Orange) / 紫色 (Purple) / 黄色 (Yellow)
- 每回合选择任意非空子集投掷，只关心点数之和
"""
from enum import IntFlag
from typing import Dict, List, Tuple
from collections import Counter
import itertools

from .errors import ChanceError


class Die(IntFlag):
    """骰子颜色位掩码 (选骰动作即为位掩码之和)"""
    NONE = 0
    ORANGE = 1
    PURPLE = 2
    YELLOW = 4


# 骰子数量与面数
NUM_DICE = 3
NUM_FACES = 6

# 三颗骰子的全集
ALL_DICE = Die.ORANGE | Die.PURPLE | Die.YELLOW

# 所有非空骰子组合 (升序)
DICE_SELECTIONS: Tuple[int, ...] = tuple(range(1, int(ALL_DICE) + 1))

# 可能出现的最大点数和
MAX_OUTCOME = NUM_DICE * NUM_FACES

# 显示顺序: 橙、黄、紫 (与棋盘行顺序一致)
DIE_DISPLAY_ORDER: Tuple[Die, ...] = (Die.ORANGE, Die.YELLOW, Die.PURPLE)

DIE_TO_STR: Dict[Die, str] = {
    Die.ORANGE: "Orange",
    Die.YELLOW: "Yellow",
    Die.PURPLE: "Purple",
}


def num_selected_dice(dice: int) -> int:
    """选中骰子的数量 (位掩码中 1 的个数)"""
    return bin(int(dice) & int(ALL_DICE)).count("1")


def _convolve(num_dice: int) -> Dict[int, int]:
    """枚举 num_dice 颗骰子的所有结果，统计每个点数和出现的次数"""
    counts = Counter(
        sum(faces)
        for faces in itertools.product(range(1, NUM_FACES + 1), repeat=num_dice)
    )
    return dict(sorted(counts.items()))


# 预计算 1-3 颗骰子的点数和分布
# 1 颗: 1-6 各 1 次
# 2 颗: 2-12, 1,2,3,4,5,6,5,4,3,2,1 (共 36)
# 3 颗: 3-18, 1,3,6,10,15,21,25,27,27,25,21,15,10,6,3,1 (共 216)
DICE_SUM_COUNTS: Dict[int, Dict[int, int]] = {
    n: _convolve(n) for n in range(1, NUM_DICE + 1)
}


def dice_sum_counts(num_dice: int) -> Dict[int, int]:
    """
    点数和 -> 出现次数

    Args:
        num_dice: 骰子数量 (1-3)

    Raises:
        ChanceError: 骰子数量越界
    """
    if num_dice not in DICE_SUM_COUNTS:
        raise ChanceError(
            f"Number of dice must be in [1, {NUM_DICE}], got {num_dice}"
        )
    return dict(DICE_SUM_COUNTS[num_dice])


def chance_outcomes(num_dice: int) -> List[Tuple[int, float]]:
    """
    精确的点数和概率分布

    Args:
        num_dice: 骰子数量 (1-3)

    Returns:
        [(点数和, 概率), ...]，按点数升序
    """
    counts = dice_sum_counts(num_dice)
    total = NUM_FACES ** num_dice
    return [(outcome, count / total) for outcome, count in counts.items()]


def dice_to_str(dice: int) -> str:
    """骰子组合转字符串，如 'Orange, Purple'"""
    names = [DIE_TO_STR[die] for die in DIE_DISPLAY_ORDER if int(dice) & die]
    return ", ".join(names)
