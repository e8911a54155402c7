"""
游戏定义

QwintoGame 保存不可变的游戏参数 (玩家数、棋盘几何、效用上下界等)，
并负责创建初始状态。所有由它派生的 GameState 共享同一个实例。
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import math

from .board import BoardGeometry, DEFAULT_GEOMETRY
from .config import GameConfig, MIN_PLAYERS, MAX_PLAYERS
from .dice import DIE_DISPLAY_ORDER, NUM_DICE, chance_outcomes
from .errors import ConfigError


# 每个阶段的 one-hot 宽度
NUM_PHASES = 3


@dataclass(frozen=True)
class GameType:
    """游戏元信息 (供宿主框架注册使用)"""
    short_name: str
    long_name: str
    dynamics: str
    chance_mode: str
    information: str
    utility: str
    reward_model: str
    min_num_players: int
    max_num_players: int
    provides_observation_tensor: bool
    parameter_specification: Dict[str, Any] = field(default_factory=dict)


GAME_TYPE = GameType(
    short_name="qwinto",
    long_name="Qwinto",
    dynamics="simultaneous",
    chance_mode="explicit_stochastic",
    information="perfect_information",
    utility="general_sum",
    reward_model="terminal",
    min_num_players=MIN_PLAYERS,
    max_num_players=MAX_PLAYERS,
    provides_observation_tensor=True,
    parameter_specification={"players": 1},
)


class QwintoGame:
    """
    Qwinto 游戏定义

    Usage:
        game = QwintoGame(players=3)
        state = game.new_initial_state()
    """

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        geometry: BoardGeometry = DEFAULT_GEOMETRY,
        **params,
    ):
        """
        Args:
            config: 游戏配置
            geometry: 棋盘几何
            **params: 未提供 config 时，用于构建配置的参数 (如 players=3)
        """
        if config is None:
            config = GameConfig.from_dict(params)
        elif params:
            raise ConfigError("Pass either a GameConfig or keyword parameters, not both")

        self._config = config
        self._geometry = geometry

    @property
    def config(self) -> GameConfig:
        return self._config

    @property
    def geometry(self) -> BoardGeometry:
        return self._geometry

    @property
    def game_type(self) -> GameType:
        return GAME_TYPE

    @property
    def num_players(self) -> int:
        return self._config.num_players

    @property
    def miss_action(self) -> int:
        """Miss 动作 (等于 Miss 格索引)"""
        return self._geometry.miss_index

    @property
    def skip_action(self) -> int:
        """Skip 动作 (不在 num_distinct_actions 之内)"""
        return self._geometry.miss_index + 1

    @property
    def num_distinct_actions(self) -> int:
        """格子数 + Miss"""
        return self._geometry.num_cells + 1

    @property
    def max_chance_outcomes(self) -> int:
        return len(chance_outcomes(NUM_DICE))

    @property
    def min_utility(self) -> float:
        """终局时 Miss 累计的最低值 (默认配置下等于终止阈值)"""
        return float(self._config.miss_points * self.misses_to_terminate)

    @property
    def max_utility(self) -> float:
        """三行均以最大点数结尾，且所有奖励列取最大值"""
        geometry = self._geometry
        return float(geometry.num_rows * geometry.max_outcome + geometry.max_bonus())

    @property
    def observation_tensor_shape(self) -> List[int]:
        """
        观测张量形状

        - 阶段 one-hot: 3
        - 投掷次数 one-hot: max_dice_rolls + 1
        - 所选骰子: 3
        - 点数和 one-hot: 18
        - 当前玩家 one-hot: N
        - 所有玩家棋盘: N * 28
        """
        n = self.num_players
        return [
            NUM_PHASES
            + (self._config.max_dice_rolls + 1)
            + len(DIE_DISPLAY_ORDER)
            + self._geometry.max_outcome
            + n
            + n * self._geometry.board_size
        ]

    @property
    def observation_tensor_size(self) -> int:
        return math.prod(self.observation_tensor_shape)

    @property
    def misses_to_terminate(self) -> int:
        """单个玩家结束游戏所需的 Miss 次数"""
        return math.ceil(self._config.termination_points / self._config.miss_points)

    @property
    def max_game_length(self) -> int:
        """
        最大步数上界

        每个玩家最多 (格子数 + 结束所需 Miss 次数) 个主动回合，
        每回合: 选骰 1 步 + 每次投掷 (机会 + 决策) 2 步 + 记分 1 步
        """
        steps_per_turn = 2 + 2 * self._config.max_dice_rolls
        turns_per_player = self._geometry.num_cells + self.misses_to_terminate
        return steps_per_turn * turns_per_player * self.num_players

    def new_initial_state(self):
        """创建初始状态"""
        from .state import GameState
        return GameState(self)

    def __repr__(self) -> str:
        return f"QwintoGame(players={self.num_players})"


def load_game(name: str = "qwinto", **params) -> QwintoGame:
    """
    工厂函数: 按名称创建游戏

    Args:
        name: 游戏名称
        **params: 游戏参数 (如 players=2)

    Raises:
        ValueError: 未知游戏名
    """
    if name != GAME_TYPE.short_name:
        raise ValueError(f"Unknown game: {name}")
    return QwintoGame(**params)
