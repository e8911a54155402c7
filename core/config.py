"""
游戏配置

定义规则相关的可调参数
"""
from dataclasses import dataclass, asdict
from typing import Any, Dict

from .errors import ConfigError


MIN_PLAYERS = 1
MAX_PLAYERS = 10

DEFAULT_NUM_PLAYERS = 1
DEFAULT_MAX_DICE_ROLLS = 2
DEFAULT_MISS_POINTS = -5
DEFAULT_TERMINATION_POINTS = -20


@dataclass(frozen=True)
class GameConfig:
    """
    游戏配置

    Attributes:
        num_players: 玩家数 (1-10)
        max_dice_rolls: 每回合最多投掷次数 (含首次投掷)
        miss_points: 每次 Miss 的扣分
        termination_points: 任一玩家 Miss 累计不高于该值时游戏结束
        allow_row_gaps: 是否允许跳格填写 (左侧允许留空)
    """
    num_players: int = DEFAULT_NUM_PLAYERS
    max_dice_rolls: int = DEFAULT_MAX_DICE_ROLLS
    miss_points: int = DEFAULT_MISS_POINTS
    termination_points: int = DEFAULT_TERMINATION_POINTS
    allow_row_gaps: bool = False

    def __post_init__(self):
        self.validate()

    def validate(self):
        """
        Raises:
            ConfigError: 参数越界
        """
        if not MIN_PLAYERS <= self.num_players <= MAX_PLAYERS:
            raise ConfigError(
                f"num_players must be in [{MIN_PLAYERS}, {MAX_PLAYERS}], got {self.num_players}"
            )
        if self.max_dice_rolls < 1:
            raise ConfigError(f"max_dice_rolls must be >= 1, got {self.max_dice_rolls}")
        if self.miss_points >= 0:
            raise ConfigError(f"miss_points must be negative, got {self.miss_points}")
        if self.termination_points >= 0:
            raise ConfigError(
                f"termination_points must be negative, got {self.termination_points}"
            )

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> 'GameConfig':
        """从字典创建配置 (忽略未知键，"players" 视为 num_players)"""
        d = dict(d)
        if "players" in d:
            d["num_players"] = d.pop("players")
        valid_keys = cls.__dataclass_fields__.keys()
        filtered = {k: v for k, v in d.items() if k in valid_keys}
        return cls(**filtered)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
