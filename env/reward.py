"""
奖励函数

支持两种奖励设计:
- 终局奖励 (sparse): 游戏结束时给出最终得分
- 过程奖励 (shaped): 每步给出得分变化量，累计之和等于最终得分
"""
from dataclasses import dataclass
from typing import Dict, Optional
from enum import Enum

from core.state import GameState


class RewardType(Enum):
    """奖励类型"""
    SPARSE = "sparse"      # 仅终局奖励
    SHAPED = "shaped"      # 得分增量


@dataclass
class RewardConfig:
    """奖励配置"""
    reward_type: RewardType = RewardType.SPARSE
    invalid_action_penalty: float = -1.0   # 非法动作惩罚
    scale: float = 1.0                      # 奖励缩放


def player_key(player: int) -> str:
    """多智能体字典使用的玩家键"""
    return f"player_{player}"


class RewardCalculator:
    """
    奖励计算器

    根据配置计算不同类型的奖励
    """

    def __init__(self, config: Optional[RewardConfig] = None):
        self.config = config or RewardConfig()

    def compute(
        self,
        state: GameState,
        prev_state: Optional[GameState] = None,
        player: Optional[int] = None,
    ) -> float:
        """
        计算奖励

        Args:
            state: 当前状态
            prev_state: 前一状态 (用于 shaped 奖励)
            player: 计算奖励的玩家视角 (默认为主动玩家)

        Returns:
            奖励值
        """
        if player is None:
            player = state.active_player

        if self.config.reward_type == RewardType.SPARSE:
            reward = self._sparse_reward(state, player)
        elif self.config.reward_type == RewardType.SHAPED:
            reward = self._shaped_reward(state, prev_state, player)
        else:
            reward = 0.0
        return reward * self.config.scale

    def _sparse_reward(self, state: GameState, player: int) -> float:
        """
        稀疏奖励：仅在游戏结束时给予

        Returns:
            终局得分，未结束时为 0
        """
        return state.returns()[player]

    def _shaped_reward(
        self,
        state: GameState,
        prev_state: Optional[GameState],
        player: int,
    ) -> float:
        """
        过程奖励：相邻两个状态的得分之差

        初始棋盘得分为 0，因此一局的奖励之和等于终局得分
        """
        if prev_state is None:
            return 0.0
        current = state.player_scores()[player]
        previous = prev_state.player_scores()[player]
        return float(current - previous)


class MultiAgentReward:
    """
    多智能体奖励计算

    为所有玩家同时计算奖励
    """

    def __init__(self, config: Optional[RewardConfig] = None):
        self.calculator = RewardCalculator(config)

    def compute_all(
        self,
        state: GameState,
        prev_state: Optional[GameState] = None,
    ) -> Dict[str, float]:
        """
        计算所有玩家的奖励

        Returns:
            {"player_0": reward, ...} 字典
        """
        return {
            player_key(player): self.calculator.compute(state, prev_state, player)
            for player in range(state.num_players)
        }


def create_reward_calculator(
    reward_type: str = "sparse",
    **kwargs
) -> RewardCalculator:
    """
    工厂函数：创建奖励计算器

    Args:
        reward_type: 奖励类型 ("sparse", "shaped")
        **kwargs: 其他配置参数

    Returns:
        RewardCalculator 实例
    """
    config = RewardConfig(
        reward_type=RewardType(reward_type),
        **kwargs
    )
    return RewardCalculator(config)
