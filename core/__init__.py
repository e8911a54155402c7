"""
Core Layer - 纯游戏逻辑 (无 ML 依赖)

Modules:
    dice: 骰子与点数分布
    board: 棋盘几何
    rules: 规则引擎
    actions: 动作定义与联合动作编码
    config: 游戏配置
    game: 游戏定义
    state: 游戏状态
    errors: 异常定义
"""
from .errors import (
    QwintoError,
    ConfigError,
    PhaseError,
    IllegalActionError,
    JointActionError,
    ChanceError,
    ObservationShapeError,
)

from .dice import (
    Die,
    DICE_SELECTIONS,
    MAX_OUTCOME,
    num_selected_dice,
    dice_sum_counts,
    chance_outcomes,
    dice_to_str,
)

from .board import (
    CellKind,
    CellRule,
    Diagonal,
    RowLayout,
    BoardGeometry,
    DEFAULT_GEOMETRY,
    PAIRINGS,
    DIAGONALS,
    render_board,
)

from .rules import RuleEngine

from .actions import (
    ACTION_REROLL,
    ACTION_ACCEPT,
    ACTION_MISS,
    ACTION_SKIP,
    ActionClass,
    JointActionEncoder,
)

from .config import GameConfig

from .game import (
    GameType,
    GAME_TYPE,
    QwintoGame,
    load_game,
)

from .state import (
    Phase,
    TurnState,
    GameState,
    TRANSITIONS,
    next_phase,
    CHANCE_PLAYER_ID,
    SIMULTANEOUS_PLAYER_ID,
    TERMINAL_PLAYER_ID,
)

__all__ = [
    # errors
    "QwintoError",
    "ConfigError",
    "PhaseError",
    "IllegalActionError",
    "JointActionError",
    "ChanceError",
    "ObservationShapeError",
    # dice
    "Die",
    "DICE_SELECTIONS",
    "MAX_OUTCOME",
    "num_selected_dice",
    "dice_sum_counts",
    "chance_outcomes",
    "dice_to_str",
    # board
    "CellKind",
    "CellRule",
    "Diagonal",
    "RowLayout",
    "BoardGeometry",
    "DEFAULT_GEOMETRY",
    "PAIRINGS",
    "DIAGONALS",
    "render_board",
    # rules
    "RuleEngine",
    # actions
    "ACTION_REROLL",
    "ACTION_ACCEPT",
    "ACTION_MISS",
    "ACTION_SKIP",
    "ActionClass",
    "JointActionEncoder",
    # config
    "GameConfig",
    # game
    "GameType",
    "GAME_TYPE",
    "QwintoGame",
    "load_game",
    # state
    "Phase",
    "TurnState",
    "GameState",
    "TRANSITIONS",
    "next_phase",
    "CHANCE_PLAYER_ID",
    "SIMULTANEOUS_PLAYER_ID",
    "TERMINAL_PLAYER_ID",
]
