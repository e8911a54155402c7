"""
观察空间编码

将游戏状态转换为神经网络可用的特征表示
"""
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence
import numpy as np

from core.game import NUM_PHASES, QwintoGame
from core.dice import DIE_DISPLAY_ORDER
from core.state import GameState


@dataclass
class Observation:
    """
    结构化观测

    Attributes:
        phase: 阶段 one-hot (3,)
        dice_rolls: 已投掷次数 one-hot (max_dice_rolls + 1,)
        dice: 所选骰子 (3,) 顺序为 橙/黄/紫
        dice_outcome: 点数和 one-hot (18,)
        current_player: 主动玩家 one-hot (N,)
        boards: 所有玩家棋盘 (N, 28)
        legal_actions: 观测玩家的合法动作
        player: 观测玩家
    """
    phase: np.ndarray
    dice_rolls: np.ndarray
    dice: np.ndarray
    dice_outcome: np.ndarray
    current_player: np.ndarray
    boards: np.ndarray
    legal_actions: List[int]
    player: int

    def to_dict(self) -> Dict[str, np.ndarray]:
        """转换为字典格式"""
        return {
            "phase": self.phase,
            "dice_rolls": self.dice_rolls,
            "dice": self.dice,
            "dice_outcome": self.dice_outcome,
            "current_player": self.current_player,
            "boards": self.boards,
        }

    def to_flat_array(self) -> np.ndarray:
        """展平为单一向量 (与 GameState.observation_tensor 完全一致)"""
        return np.concatenate([
            self.phase,
            self.dice_rolls,
            self.dice,
            self.dice_outcome,
            self.current_player,
            self.boards.flatten(),
        ]).astype(np.float32)


def observation_sections(game: QwintoGame) -> List[int]:
    """观测向量各段长度"""
    n = game.num_players
    return [
        NUM_PHASES,
        game.config.max_dice_rolls + 1,
        len(DIE_DISPLAY_ORDER),
        game.geometry.max_outcome,
        n,
        n * game.geometry.board_size,
    ]


class ObservationBuilder:
    """
    观测构建器

    负责将 GameState 转换为 Observation
    """

    def build(self, state: GameState, player: Optional[int] = None) -> Observation:
        """
        从游戏状态构建观测

        Args:
            state: 游戏状态
            player: 视角玩家 (默认为当前决策者; 机会/同时决策节点时为主动玩家)

        Returns:
            Observation 对象
        """
        if player is None:
            player = self.default_perspective(state)

        game = state.game
        tensor = state.observation_tensor(player)
        offsets = np.cumsum(observation_sections(game))[:-1]
        phase, dice_rolls, dice, dice_outcome, current_player, boards = np.split(tensor, offsets)

        return Observation(
            phase=phase,
            dice_rolls=dice_rolls,
            dice=dice,
            dice_outcome=dice_outcome,
            current_player=current_player,
            boards=boards.reshape(game.num_players, game.geometry.board_size),
            legal_actions=state.legal_actions(player),
            player=player,
        )

    @staticmethod
    def default_perspective(state: GameState) -> int:
        current = state.current_player()
        if 0 <= current < state.num_players:
            return current
        return state.active_player


def action_space_size(game: QwintoGame) -> int:
    """单个玩家的动作编号范围 (覆盖选骰、投掷、格子、Miss、Skip)"""
    return game.skip_action + 1


def build_action_mask(legal_actions: Sequence[int], size: int) -> np.ndarray:
    """
    构建合法动作掩码

    Args:
        legal_actions: 合法动作列表
        size: 动作空间大小

    Returns:
        (size,) 数组
    """
    mask = np.zeros(size, dtype=np.float32)
    for action in legal_actions:
        if 0 <= action < size:
            mask[action] = 1
    return mask
