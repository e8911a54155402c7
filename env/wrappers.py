"""
环境包装器

提供常用的环境增强功能
"""
from typing import Dict, Any, Tuple, Optional, List, Callable
import numpy as np

try:
    import gymnasium as gym
    from gymnasium import Wrapper
except ImportError:
    import gym
    from gym import Wrapper


# 对手策略: (玩家, 合法动作) -> 动作
OpponentPolicy = Callable[[int, List[int]], int]


class LegalActionMaskWrapper(Wrapper):
    """
    在 info 中添加合法动作掩码

    用于支持 action masking 的算法; 记分阶段掩码形状为 (N, A)
    """

    def __init__(self, env: gym.Env):
        super().__init__(env)

    def reset(self, **kwargs) -> Tuple[Any, Dict]:
        obs, info = self.env.reset(**kwargs)
        info["action_mask"] = self._get_action_mask()
        return obs, info

    def step(self, action) -> Tuple[Any, float, bool, bool, Dict]:
        obs, reward, terminated, truncated, info = self.env.step(action)
        if not terminated:
            info["action_mask"] = self._get_action_mask()
        return obs, reward, terminated, truncated, info

    def _get_action_mask(self) -> np.ndarray:
        """获取动作掩码"""
        base = self.env.unwrapped
        if hasattr(base, "action_mask"):
            return base.action_mask()
        return np.ones(self.action_space.n, dtype=np.float32)


class SelfPlayWrapper(Wrapper):
    """
    自博弈包装器

    智能体只控制一个玩家:
    - 其他玩家的顺序决策由对手策略完成
    - 记分阶段智能体只提交自己的动作，其他玩家的动作由对手策略补齐
    - 奖励与观测固定为受控玩家视角，对手步的奖励累加到我方
    """

    def __init__(
        self,
        env: gym.Env,
        opponent_policy: Optional[OpponentPolicy] = None,
        controlled_player: int = 0,
    ):
        """
        Args:
            env: 基础环境
            opponent_policy: 对手策略函数 (player, legal_actions -> action)
            controlled_player: 控制的玩家
        """
        super().__init__(env)
        self.opponent_policy = opponent_policy or self._random_policy
        self.controlled_player = controlled_player

        # 奖励与观测始终以我方为视角
        env.unwrapped.set_agent_player(controlled_player)

    def _random_policy(self, player: int, legal_actions: List[int]) -> int:
        """随机策略"""
        if not legal_actions:
            return 0
        idx = int(self.env.unwrapped.np_random.integers(len(legal_actions)))
        return legal_actions[idx]

    def _our_turn(self) -> bool:
        state = self.env.unwrapped.state
        return (
            state.is_terminal()
            or state.is_simultaneous_node()
            or state.current_player() == self.controlled_player
        )

    def _play_opponents(self, obs, info) -> Tuple[Any, float, bool, bool, Dict]:
        """对手连续行动，直到轮到我方 (返回期间累计的奖励)"""
        total, terminated, truncated = 0.0, False, False
        while not self._our_turn():
            state = self.env.unwrapped.state
            player = state.current_player()
            action = self.opponent_policy(player, state.legal_actions(player))
            obs, reward, terminated, truncated, info = self.env.step(action)
            total += reward
            if terminated or truncated:
                break
        return obs, total, terminated, truncated, info

    def _joint_action(self, action: int) -> List[int]:
        state = self.env.unwrapped.state
        actions = []
        for player in range(state.num_players):
            if player == self.controlled_player:
                actions.append(int(action))
            else:
                actions.append(self.opponent_policy(player, state.legal_actions(player)))
        return actions

    def reset(self, **kwargs) -> Tuple[Any, Dict]:
        obs, info = self.env.reset(**kwargs)
        obs, _, _, _, info = self._play_opponents(obs, info)
        return obs, info

    def step(self, action) -> Tuple[Any, float, bool, bool, Dict]:
        if self.env.unwrapped.state.is_simultaneous_node():
            action = self._joint_action(action)

        # 执行我方动作
        obs, reward, terminated, truncated, info = self.env.step(action)

        if terminated or truncated or "error" in info:
            return obs, reward, terminated, truncated, info

        # 对手回合
        obs, opp_reward, terminated, truncated, info = self._play_opponents(obs, info)

        return obs, reward + opp_reward, terminated, truncated, info


class RewardScaleWrapper(Wrapper):
    """
    奖励缩放包装器
    """

    def __init__(self, env: gym.Env, scale: float = 1.0):
        super().__init__(env)
        self.scale = scale

    def step(self, action) -> Tuple[Any, float, bool, bool, Dict]:
        obs, reward, terminated, truncated, info = self.env.step(action)
        return obs, reward * self.scale, terminated, truncated, info


class TimeLimit(Wrapper):
    """
    时间限制包装器

    限制每局游戏的最大步数 (默认使用游戏的最大步数上界)
    """

    def __init__(self, env: gym.Env, max_steps: Optional[int] = None):
        super().__init__(env)
        if max_steps is None:
            max_steps = env.unwrapped.game.max_game_length
        self.max_steps = max_steps
        self._step_count = 0

    def reset(self, **kwargs) -> Tuple[Any, Dict]:
        self._step_count = 0
        return self.env.reset(**kwargs)

    def step(self, action) -> Tuple[Any, float, bool, bool, Dict]:
        obs, reward, terminated, truncated, info = self.env.step(action)
        self._step_count += 1

        if self._step_count >= self.max_steps:
            truncated = True

        return obs, reward, terminated, truncated, info


class RecordEpisodeStatistics(Wrapper):
    """
    记录回合统计信息
    """

    def __init__(self, env: gym.Env):
        super().__init__(env)
        self._episode_reward = 0.0
        self._episode_length = 0
        self._invalid_actions = 0

    def reset(self, **kwargs) -> Tuple[Any, Dict]:
        obs, info = self.env.reset(**kwargs)
        self._episode_reward = 0.0
        self._episode_length = 0
        self._invalid_actions = 0
        return obs, info

    def step(self, action) -> Tuple[Any, float, bool, bool, Dict]:
        obs, reward, terminated, truncated, info = self.env.step(action)

        self._episode_reward += reward
        self._episode_length += 1
        if "error" in info:
            self._invalid_actions += 1

        if terminated or truncated:
            info["episode"] = {
                "r": self._episode_reward,
                "l": self._episode_length,
                "invalid": self._invalid_actions,
                "returns": info.get("returns"),
            }

        return obs, reward, terminated, truncated, info


def wrap_env(
    env: gym.Env,
    action_mask: bool = True,
    record_stats: bool = True,
    time_limit: Optional[int] = None,
    reward_scale: float = 1.0,
) -> gym.Env:
    """
    应用常用包装器组合

    Args:
        env: 基础环境
        action_mask: 是否添加动作掩码
        record_stats: 是否记录统计
        time_limit: 时间限制
        reward_scale: 奖励缩放

    Returns:
        包装后的环境
    """
    if record_stats:
        env = RecordEpisodeStatistics(env)

    if time_limit is not None:
        env = TimeLimit(env, max_steps=time_limit)

    if reward_scale != 1.0:
        env = RewardScaleWrapper(env, scale=reward_scale)

    if action_mask:
        env = LegalActionMaskWrapper(env)

    return env
