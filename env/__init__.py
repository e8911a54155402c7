"""
Environment Layer - Gymnasium 兼容环境

Modules:
    qwinto_env: 主环境类
    observation: 观测空间构建
    reward: 奖励函数
    wrappers: 环境包装器
"""
from .qwinto_env import (
    QwintoEnv,
    MultiAgentQwintoEnv,
    make_env,
)

from .observation import (
    Observation,
    ObservationBuilder,
    action_space_size,
    build_action_mask,
)

from .reward import (
    RewardType,
    RewardConfig,
    RewardCalculator,
    MultiAgentReward,
    create_reward_calculator,
)

from .wrappers import (
    LegalActionMaskWrapper,
    SelfPlayWrapper,
    RewardScaleWrapper,
    TimeLimit,
    RecordEpisodeStatistics,
    wrap_env,
)

__all__ = [
    # env
    "QwintoEnv",
    "MultiAgentQwintoEnv",
    "make_env",
    # observation
    "Observation",
    "ObservationBuilder",
    "action_space_size",
    "build_action_mask",
    # reward
    "RewardType",
    "RewardConfig",
    "RewardCalculator",
    "MultiAgentReward",
    "create_reward_calculator",
    # wrappers
    "LegalActionMaskWrapper",
    "SelfPlayWrapper",
    "RewardScaleWrapper",
    "TimeLimit",
    "RecordEpisodeStatistics",
    "wrap_env",
]
