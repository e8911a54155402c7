"""
动作定义与联合动作编码

动作均为整数:
- 选骰阶段: 骰子位掩码 1-7
- 投掷阶段: 0 = 重投, 1 = 接受
- 记分阶段: 格子索引 0-26, 27 = Miss (当前玩家), 28 = Skip (其他玩家)
- 机会节点: 点数和 1-18
"""
from enum import Enum
from math import prod
from typing import Callable, List, Optional, Sequence

from .board import DEFAULT_GEOMETRY
from .errors import JointActionError


ACTION_REROLL = 0
ACTION_ACCEPT = 1

# Miss 写入棋盘最后一格，因此与 Miss 格索引相同
ACTION_MISS = DEFAULT_GEOMETRY.miss_index
ACTION_SKIP = ACTION_MISS + 1


class ActionClass(Enum):
    """动作类别 (用于阶段转移表)"""
    SELECT = "select"      # 选择骰子
    CHANCE = "chance"      # 投掷结果
    REROLL = "reroll"      # 重投
    ACCEPT = "accept"      # 接受点数
    SUBMIT = "submit"      # 所有玩家同时记分


class JointActionEncoder:
    """
    联合动作编码器

    将每个玩家的动作展平为单个整数 (玩家 0 为最低位):
        flat = i_0 + n_0 * (i_1 + n_1 * (i_2 + ...))
    其中 i_p 为玩家 p 的动作在其合法列表中的下标，n_p 为列表长度
    """

    def __init__(self, legal_actions: Sequence[Sequence[int]]):
        """
        Args:
            legal_actions: 每个玩家的合法动作列表 (按玩家顺序)
        """
        self._legal: List[List[int]] = [list(actions) for actions in legal_actions]
        if not self._legal or any(not actions for actions in self._legal):
            raise JointActionError("Every player needs at least one legal action")
        self._num_joint_actions = prod(len(actions) for actions in self._legal)

    @property
    def num_players(self) -> int:
        return len(self._legal)

    @property
    def num_joint_actions(self) -> int:
        """联合动作空间大小"""
        return self._num_joint_actions

    def legal_flat_actions(self) -> List[int]:
        return list(range(self._num_joint_actions))

    def encode(self, actions: Sequence[int]) -> int:
        """
        将每个玩家的动作编码为联合动作索引

        Raises:
            JointActionError: 长度不符或某个动作不在合法列表中
        """
        if len(actions) != self.num_players:
            raise JointActionError(
                f"Expected {self.num_players} actions, got {len(actions)}"
            )

        flat = 0
        for player in reversed(range(self.num_players)):
            legal = self._legal[player]
            if actions[player] not in legal:
                raise JointActionError(
                    f"Action {actions[player]} is not legal for player {player}"
                )
            flat = flat * len(legal) + legal.index(actions[player])
        return flat

    def decode(self, flat_action: int) -> List[int]:
        """
        将联合动作索引解码为每个玩家的动作

        Raises:
            JointActionError: 索引越界
        """
        if not 0 <= flat_action < self._num_joint_actions:
            raise JointActionError(
                f"Joint action {flat_action} out of range [0, {self._num_joint_actions})"
            )

        actions = []
        for legal in self._legal:
            actions.append(legal[flat_action % len(legal)])
            flat_action //= len(legal)
        return actions

    def to_string(
        self,
        flat_action: int,
        action_to_string: Optional[Callable[[int, int], str]] = None,
    ) -> str:
        """联合动作的可读描述，如 '[P0] Skip, [P1] Miss'"""
        if action_to_string is None:
            action_to_string = lambda player, action: f"[P{player}] {action}"
        actions = self.decode(flat_action)
        return ", ".join(
            action_to_string(player, action) for player, action in enumerate(actions)
        )
