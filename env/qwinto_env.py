"""
Qwinto Gymnasium 环境

遵循标准 Gymnasium API，机会节点 (掷骰) 由环境内部按概率采样
"""
from typing import Dict, Any, Tuple, Optional, List, Sequence, Union
import logging
import numpy as np

try:
    import gymnasium as gym
    from gymnasium import spaces
except ImportError:
    import gym
    from gym import spaces

from core.config import GameConfig
from core.game import QwintoGame
from core.state import GameState

from .observation import ObservationBuilder, action_space_size, build_action_mask
from .reward import MultiAgentReward, RewardCalculator, RewardConfig, RewardType, player_key

logger = logging.getLogger(__name__)


Action = Union[int, Sequence[int]]


class QwintoEnv(gym.Env):
    """
    Qwinto Gymnasium 环境

    支持:
    - 顺序决策: 主动玩家选骰、重投/接受，action 为整数
    - 同时决策: 记分阶段所有玩家同时行动，action 为每个玩家一个动作的序列

    API:
    - reset() -> observation, info
    - step(action) -> observation, reward, terminated, truncated, info
    """

    metadata = {
        "render_modes": ["human", "ansi"],
        "name": "Qwinto-v0",
    }

    def __init__(
        self,
        num_players: int = 1,
        render_mode: Optional[str] = None,
        reward_type: str = "sparse",
        agent_player: Optional[int] = None,
        seed: Optional[int] = None,
        config: Optional[GameConfig] = None,
    ):
        """
        Args:
            num_players: 玩家数 (提供 config 时忽略)
            render_mode: 渲染模式 ("human", "ansi", None)
            reward_type: 奖励类型 ("sparse", "shaped")
            agent_player: 奖励与观测的视角玩家 (None=当前决策者)
            seed: 随机种子 (仅用于第一次 reset)
            config: 完整游戏配置
        """
        super().__init__()

        self.render_mode = render_mode
        self._seed = seed

        if config is None:
            config = GameConfig(num_players=num_players)
        self._game = QwintoGame(config)

        self._agent_player: Optional[int] = None
        self.set_agent_player(agent_player)

        # 观测构建器
        self._obs_builder = ObservationBuilder()

        # 奖励计算器
        self._reward_config = RewardConfig(reward_type=RewardType(reward_type))
        self._reward_calculator = RewardCalculator(self._reward_config)

        # 状态
        self._state: Optional[GameState] = None
        self._prev_state: Optional[GameState] = None

        # 定义空间
        self._define_spaces()

    def _define_spaces(self):
        """定义观测和动作空间"""
        game = self._game

        # 动作空间: 单个玩家的动作编号
        self.action_space = spaces.Discrete(action_space_size(game))

        # 观测空间: Miss 格可低于终止阈值一次扣分
        low = float(game.config.termination_points + game.config.miss_points)
        high = float(game.geometry.max_outcome)
        self.observation_space = spaces.Box(
            low=low,
            high=high,
            shape=tuple(game.observation_tensor_shape),
            dtype=np.float32,
        )

    @property
    def game(self) -> QwintoGame:
        return self._game

    @property
    def num_players(self) -> int:
        return self._game.num_players

    @property
    def agent_player(self) -> Optional[int]:
        return self._agent_player

    def set_agent_player(self, player: Optional[int]):
        """固定奖励与观测的视角玩家 (None=当前决策者)"""
        if player is not None and not 0 <= player < self._game.num_players:
            raise ValueError(f"agent_player {player} out of range")
        self._agent_player = player

    def reset(
        self,
        *,
        seed: Optional[int] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> Tuple[np.ndarray, Dict[str, Any]]:
        """
        重置环境

        Args:
            seed: 随机种子
            options: 额外选项

        Returns:
            (observation, info) 元组
        """
        # 初始种子只使用一次，之后的局面继续沿用同一个随机数流
        if seed is None and self._seed is not None:
            seed, self._seed = self._seed, None
        super().reset(seed=seed)

        self._state = self._game.new_initial_state()
        self._prev_state = None
        self._advance_chance()

        obs = self._build_observation()
        info = self._build_info()

        if self.render_mode == "human":
            self.render()

        return obs, info

    def step(
        self,
        action: Action,
    ) -> Tuple[np.ndarray, float, bool, bool, Dict[str, Any]]:
        """
        执行动作

        Args:
            action: 顺序节点为整数; 记分阶段为每个玩家一个动作

        Returns:
            (observation, reward, terminated, truncated, info) 元组
        """
        if self._state is None:
            raise RuntimeError("Environment not reset. Call reset() first.")
        if self._state.is_terminal():
            raise RuntimeError("Episode is over. Call reset() first.")

        # 验证动作合法性
        if not self._is_valid_action(action):
            # 非法动作：给予惩罚并保持状态
            logger.warning(
                "Invalid action %s in phase %s", action, self._state.phase.value
            )
            obs = self._build_observation()
            info = self._build_info()
            info["error"] = "Invalid action"
            return obs, self._reward_config.invalid_action_penalty, False, False, info

        # 保存前一状态
        self._prev_state = self._state.clone()

        # 执行动作
        if self._state.is_simultaneous_node():
            self._state.apply_actions([int(a) for a in action])
        else:
            self._state.apply_action(int(action))
        self._advance_chance()

        obs = self._build_observation()
        reward = self._compute_reward()

        terminated = self._state.is_terminal()
        truncated = False

        info = self._build_info()

        if terminated:
            logger.debug(
                "Episode finished after %d moves, returns=%s",
                self._state.move_number, info["returns"],
            )

        if self.render_mode == "human":
            self.render()

        return obs, reward, terminated, truncated, info

    def _advance_chance(self):
        """按点数和分布采样，直到离开机会节点"""
        while self._state.is_chance_node():
            outcomes = self._state.chance_outcomes()
            values = [outcome for outcome, _ in outcomes]
            probs = [prob for _, prob in outcomes]
            idx = self.np_random.choice(len(values), p=probs)
            self._state.apply_action(values[idx])

    def _is_valid_action(self, action: Action) -> bool:
        """验证动作合法性"""
        state = self._state

        if state.is_simultaneous_node():
            if isinstance(action, (int, np.integer)):
                return False
            actions = [int(a) for a in action]
            if len(actions) != state.num_players:
                return False
            return all(
                a in state.legal_actions(player) for player, a in enumerate(actions)
            )

        if not isinstance(action, (int, np.integer)):
            return False
        return int(action) in state.legal_actions()

    def _perspective(self) -> int:
        if self._agent_player is not None:
            return self._agent_player
        return ObservationBuilder.default_perspective(self._state)

    def _build_observation(self) -> np.ndarray:
        """构建观测"""
        obs = self._obs_builder.build(self._state, self._perspective())
        return obs.to_flat_array()

    def _build_info(self) -> Dict[str, Any]:
        """构建 info 字典"""
        state = self._state

        info = {
            "current_player": state.current_player(),
            "active_player": state.active_player,
            "phase": state.phase.value,
            "legal_actions": self.get_legal_actions(),
            "move_number": state.move_number,
            "dice": state.dice,
            "dice_outcome": state.dice_outcome,
        }

        if state.is_terminal():
            info["returns"] = state.returns()

        return info

    def _compute_reward(self) -> float:
        """计算奖励"""
        return self._reward_calculator.compute(
            self._state, self._prev_state, self._perspective()
        )

    def render(self) -> Optional[str]:
        """渲染环境"""
        if self.render_mode == "ansi" or self.render_mode == "human":
            return self._render_text()
        return None

    def _render_text(self) -> str:
        """文本渲染"""
        lines = []
        lines.append("=" * 50)
        lines.append(self._state.to_string())
        if self._state.is_terminal():
            lines.append(f"Returns: {self._state.returns()}")
        lines.append("=" * 50)

        output = "\n".join(lines)
        if self.render_mode == "human":
            print(output)
        return output

    def close(self):
        """关闭环境"""
        pass

    @property
    def state(self) -> Optional[GameState]:
        """获取当前状态 (用于调试)"""
        return self._state

    def get_legal_actions(self) -> Union[List[int], List[List[int]]]:
        """
        获取当前合法动作

        Returns:
            顺序节点: 当前决策者的动作列表
            记分阶段: 每个玩家一个动作列表
        """
        if self._state is None or self._state.is_terminal():
            return []
        if self._state.is_simultaneous_node():
            return [self._state.legal_actions(p) for p in range(self.num_players)]
        return self._state.legal_actions()

    def action_mask(self) -> np.ndarray:
        """
        合法动作掩码

        Returns:
            顺序节点: (A,) 数组; 记分阶段: (N, A) 数组
        """
        size = action_space_size(self._game)
        legal = self.get_legal_actions()
        if self._state is not None and self._state.is_simultaneous_node():
            return np.stack([build_action_mask(actions, size) for actions in legal])
        return build_action_mask(legal, size)

    def sample_action(self) -> Action:
        """随机采样一个合法动作"""
        legal_actions = self.get_legal_actions()
        if not legal_actions:
            return 0
        if self._state.is_simultaneous_node():
            return [
                actions[int(self.np_random.integers(len(actions)))]
                for actions in legal_actions
            ]
        idx = int(self.np_random.integers(len(legal_actions)))
        return legal_actions[idx]


class MultiAgentQwintoEnv(QwintoEnv):
    """
    多智能体 Qwinto 环境

    返回所有玩家的观测和奖励
    """

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._multi_reward = MultiAgentReward(self._reward_config)

    def _all_observations(self) -> Dict[str, np.ndarray]:
        return {
            player_key(player): self._obs_builder.build(self._state, player).to_flat_array()
            for player in range(self.num_players)
        }

    def reset(
        self,
        *,
        seed: Optional[int] = None,
        options: Optional[Dict[str, Any]] = None,
    ) -> Tuple[Dict[str, np.ndarray], Dict[str, Any]]:
        """重置并返回所有玩家观测"""
        _, info = super().reset(seed=seed, options=options)
        return self._all_observations(), info

    def step(
        self,
        action: Action,
    ) -> Tuple[Dict[str, np.ndarray], Dict[str, float], bool, bool, Dict[str, Any]]:
        """执行动作并返回所有玩家的结果"""
        _, reward, terminated, truncated, info = super().step(action)

        if "error" in info:
            rewards = {player_key(p): reward for p in range(self.num_players)}
        else:
            rewards = self._multi_reward.compute_all(self._state, self._prev_state)

        return self._all_observations(), rewards, terminated, truncated, info


def make_env(
    env_id: str = "Qwinto-v0",
    **kwargs
) -> QwintoEnv:
    """
    工厂函数：创建环境

    Args:
        env_id: 环境 ID
        **kwargs: 环境参数

    Returns:
        QwintoEnv 实例

    Raises:
        ValueError: 未知环境 ID
    """
    if env_id != QwintoEnv.metadata["name"]:
        raise ValueError(f"Unknown environment: {env_id}")
    if "multi_agent" in kwargs and kwargs.pop("multi_agent"):
        return MultiAgentQwintoEnv(**kwargs)
    return QwintoEnv(**kwargs)
