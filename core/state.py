"""
游戏状态定义

一个 GameState 表示一局游戏中的某个局面:
- 回合状态 (阶段、当前玩家、投掷次数、所选骰子、点数和)
- 所有玩家的棋盘

状态在原地修改，需要探索其他分支时使用 clone() 得到独立副本。

每个主动玩家的回合: 选骰 -> (机会节点) 投掷 -> [重投] -> 所有玩家同时记分
"""
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional, Sequence, Tuple
from enum import Enum
import copy

import numpy as np

from .actions import ACTION_ACCEPT, ACTION_REROLL, ActionClass, JointActionEncoder
from .board import render_board
from .dice import (
    DICE_SELECTIONS,
    DICE_SUM_COUNTS,
    DIE_DISPLAY_ORDER,
    chance_outcomes,
    dice_to_str,
    num_selected_dice,
)
from .errors import (
    ChanceError,
    IllegalActionError,
    JointActionError,
    ObservationShapeError,
    PhaseError,
    QwintoError,
)
from .game import QwintoGame
from .rules import RuleEngine


# 特殊玩家标识 (真实玩家为 0..N-1)
CHANCE_PLAYER_ID = -1
SIMULTANEOUS_PLAYER_ID = -2
TERMINAL_PLAYER_ID = -4


class Phase(Enum):
    """回合阶段"""
    SELECT_DICE = "select"     # 选骰
    ROLL_DICE = "roll"         # 投掷 / 重投
    SUBMIT_POINTS = "submit"   # 所有玩家同时记分


# 观测中阶段 one-hot 的顺序
PHASE_ORDER: Tuple[Phase, ...] = (Phase.SELECT_DICE, Phase.ROLL_DICE, Phase.SUBMIT_POINTS)

# 阶段转移表: (阶段, 动作类别) -> 下一阶段
TRANSITIONS: Dict[Tuple[Phase, ActionClass], Phase] = {
    (Phase.SELECT_DICE, ActionClass.SELECT): Phase.ROLL_DICE,
    (Phase.ROLL_DICE, ActionClass.CHANCE): Phase.ROLL_DICE,
    (Phase.ROLL_DICE, ActionClass.REROLL): Phase.ROLL_DICE,
    (Phase.ROLL_DICE, ActionClass.ACCEPT): Phase.SUBMIT_POINTS,
    (Phase.SUBMIT_POINTS, ActionClass.SUBMIT): Phase.SELECT_DICE,
}


def next_phase(phase: Phase, action_class: ActionClass) -> Phase:
    """
    查表得到下一阶段

    Raises:
        PhaseError: 该阶段不接受此类动作
    """
    try:
        return TRANSITIONS[(phase, action_class)]
    except KeyError:
        raise PhaseError(
            f"Action class {action_class.value} is invalid in phase {phase.value}"
        ) from None


@dataclass
class TurnState:
    """
    回合状态

    Attributes:
        current_player: 本回合选骰、投骰的主动玩家
        player: 等待决策的玩家 (机会节点/同时决策时为特殊标识)
        phase: 当前阶段
        num_dice_rolls: 本回合已投掷次数
        dice: 所选骰子位掩码
        dice_outcome: 当前点数和 (未投掷时为 0)
    """
    current_player: int = 0
    player: int = 0
    phase: Phase = Phase.SELECT_DICE
    num_dice_rolls: int = 0
    dice: int = 0
    dice_outcome: int = 0


class GameState:
    """
    可变游戏状态

    由 QwintoGame.new_initial_state() 创建，独占全部棋盘与回合计数
    """

    def __init__(self, game: QwintoGame):
        self._game = game
        self._turn = TurnState()
        self._boards: List[List[int]] = [
            game.geometry.empty_board() for _ in range(game.num_players)
        ]
        self._move_number = 0

    # ------------------------------------------------------------------
    # 只读属性
    # ------------------------------------------------------------------

    @property
    def game(self) -> QwintoGame:
        return self._game

    @property
    def num_players(self) -> int:
        return self._game.num_players

    @property
    def phase(self) -> Phase:
        return self._turn.phase

    @property
    def active_player(self) -> int:
        """本回合的主动玩家"""
        return self._turn.current_player

    @property
    def num_dice_rolls(self) -> int:
        return self._turn.num_dice_rolls

    @property
    def dice(self) -> int:
        return self._turn.dice

    @property
    def dice_outcome(self) -> int:
        return self._turn.dice_outcome

    @property
    def move_number(self) -> int:
        """已执行的动作数 (联合动作计为一步)"""
        return self._move_number

    @property
    def turn(self) -> TurnState:
        """回合状态副本"""
        return replace(self._turn)

    def board(self, player: int) -> Tuple[int, ...]:
        """指定玩家的棋盘 (只读副本)"""
        self._check_player(player)
        return tuple(self._boards[player])

    def boards(self) -> List[Tuple[int, ...]]:
        return [tuple(board) for board in self._boards]

    # ------------------------------------------------------------------
    # 节点类型
    # ------------------------------------------------------------------

    def current_player(self) -> int:
        """当前决策者; 终局返回 TERMINAL_PLAYER_ID"""
        if self.is_terminal():
            return TERMINAL_PLAYER_ID
        return self._turn.player

    def is_chance_node(self) -> bool:
        return self.current_player() == CHANCE_PLAYER_ID

    def is_simultaneous_node(self) -> bool:
        return self.current_player() == SIMULTANEOUS_PLAYER_ID

    def is_terminal(self) -> bool:
        """任一玩家的 Miss 累计不高于终止阈值"""
        miss = self._game.geometry.miss_index
        limit = self._game.config.termination_points
        return any(board[miss] <= limit for board in self._boards)

    # ------------------------------------------------------------------
    # 合法动作
    # ------------------------------------------------------------------

    def legal_actions(self, player: Optional[int] = None) -> List[int]:
        """
        获取指定玩家的合法动作 (升序)

        Args:
            player: 玩家索引或特殊标识，默认为当前决策者

        Returns:
            选骰: 1-7
            投掷: [0, 1] 或 [1]
            记分: 可写格子 + Miss (主动玩家) / Skip (其他玩家)
            同时决策标识: 展平后的联合动作
            机会标识: 可能的点数和
        """
        if player is None:
            player = self.current_player()

        if player == SIMULTANEOUS_PLAYER_ID:
            if not self.is_simultaneous_node():
                return []
            return self.joint_action_encoder().legal_flat_actions()

        if player == CHANCE_PLAYER_ID:
            if not self.is_chance_node():
                return []
            return [outcome for outcome, _ in self.chance_outcomes()]

        if player == TERMINAL_PLAYER_ID:
            return []

        self._check_player(player)

        if self.is_terminal():
            return []

        turn = self._turn

        if turn.phase == Phase.SELECT_DICE:
            moves = list(DICE_SELECTIONS)
        elif turn.phase == Phase.ROLL_DICE:
            moves = []
            if turn.num_dice_rolls < self._game.config.max_dice_rolls:
                moves.append(ACTION_REROLL)
            moves.append(ACTION_ACCEPT)
        elif turn.phase == Phase.SUBMIT_POINTS:
            moves = RuleEngine.legal_cells(
                self._boards[player],
                turn.dice_outcome,
                turn.dice,
                self._game.geometry,
                self._game.config.allow_row_gaps,
            )
            if player == turn.current_player:
                moves.append(self._game.miss_action)
            else:
                moves.append(self._game.skip_action)
        else:
            raise PhaseError(f"Phase {turn.phase} is invalid")

        return sorted(moves)

    def joint_action_encoder(self) -> JointActionEncoder:
        """由各玩家当前的合法动作构建联合动作编码器"""
        return JointActionEncoder(
            [self.legal_actions(p) for p in range(self.num_players)]
        )

    def chance_outcomes(self) -> List[Tuple[int, float]]:
        """
        机会节点的点数和分布

        Raises:
            ChanceError: 不在机会节点，或骰子数量不在 [1, 3]
        """
        if not self.is_chance_node():
            raise ChanceError("Chance outcomes requested outside a chance node")
        return chance_outcomes(num_selected_dice(self._turn.dice))

    # ------------------------------------------------------------------
    # 执行动作
    # ------------------------------------------------------------------

    def apply_action(self, action: int):
        """
        执行当前决策者的动作 (先校验合法性)

        同时决策节点上，action 为展平后的联合动作

        Raises:
            IllegalActionError: 动作不在合法集合中
            PhaseError: 游戏已结束
        """
        if self.is_terminal():
            raise PhaseError("Game is finished")

        current = self.current_player()
        if current == SIMULTANEOUS_PLAYER_ID:
            # 展平的联合动作只检查范围
            legal = 0 <= action < self.joint_action_encoder().num_joint_actions
        else:
            legal = action in self.legal_actions(current)
        if not legal:
            raise IllegalActionError(
                f"Action {action} is not legal for player {current} "
                f"in phase {self._turn.phase.value}"
            )
        self.do_apply_action(action)

    def apply_actions(self, actions: Sequence[int]):
        """执行所有玩家的联合动作 (同时记分阶段)"""
        if self.is_terminal():
            raise PhaseError("Game is finished")
        self.do_apply_actions(actions)

    def do_apply_action(self, action: int):
        """
        顺序决策 (机会节点 / 主动玩家) 的状态转移

        Raises:
            PhaseError: 阶段不接受顺序动作
            IllegalActionError: 动作值非法
        """
        turn = self._turn

        if turn.player == SIMULTANEOUS_PLAYER_ID:
            self.do_apply_actions(self.joint_action_encoder().decode(action))
            return

        if self.is_terminal():
            raise PhaseError("Game is finished")

        if turn.player == CHANCE_PLAYER_ID:
            phase = next_phase(turn.phase, ActionClass.CHANCE)
            num_dice = num_selected_dice(turn.dice)
            if action not in DICE_SUM_COUNTS.get(num_dice, {}):
                raise IllegalActionError(
                    f"Dice outcome {action} is impossible with {num_dice} dice"
                )
            turn.phase = phase
            turn.dice_outcome = action
            turn.player = turn.current_player
            self._move_number += 1
            return

        if turn.phase == Phase.SELECT_DICE:
            if action not in DICE_SELECTIONS:
                raise IllegalActionError(f"Invalid dice selection: {action}")
            turn.phase = next_phase(turn.phase, ActionClass.SELECT)
            turn.dice = action
            turn.num_dice_rolls = 1
            turn.player = CHANCE_PLAYER_ID
        elif turn.phase == Phase.ROLL_DICE:
            if action == ACTION_REROLL:
                if turn.num_dice_rolls >= self._game.config.max_dice_rolls:
                    raise IllegalActionError(
                        f"No re-rolls left ({turn.num_dice_rolls} rolls used)"
                    )
                turn.phase = next_phase(turn.phase, ActionClass.REROLL)
                turn.num_dice_rolls += 1
                turn.player = CHANCE_PLAYER_ID
            else:
                turn.phase = next_phase(turn.phase, ActionClass.ACCEPT)
                turn.player = SIMULTANEOUS_PLAYER_ID
        elif turn.phase == Phase.SUBMIT_POINTS:
            raise PhaseError(
                f"Player {turn.player} is invalid for phase {turn.phase.value}"
            )
        else:
            raise PhaseError(f"Phase {turn.phase} is invalid")

        self._move_number += 1

    def do_apply_actions(self, actions: Sequence[int]):
        """
        同时记分: 每个玩家一个动作，全部校验通过后一次性写入

        Raises:
            JointActionError: 长度错误、Skip/Miss 误用、格子不可写
            PhaseError: 不在记分阶段
        """
        actions = list(actions)
        turn = self._turn
        game = self._game

        if len(actions) != self.num_players:
            raise JointActionError(
                f"Expected {self.num_players} actions, got {len(actions)}"
            )
        if turn.phase != Phase.SUBMIT_POINTS:
            raise PhaseError(f"Joint actions are invalid in phase {turn.phase.value}")
        if self.is_terminal():
            raise PhaseError("Game is finished")

        # 先全部校验，避免写入一半
        for player, action in enumerate(actions):
            if action == game.skip_action:
                if player == turn.current_player:
                    raise JointActionError(f"Active player {player} may not skip")
            elif action == game.miss_action:
                if player != turn.current_player:
                    raise JointActionError(f"Only the active player may miss, not player {player}")
            elif not RuleEngine.is_valid_placement(
                self._boards[player],
                action,
                turn.dice_outcome,
                turn.dice,
                game.geometry,
                game.config.allow_row_gaps,
            ):
                raise JointActionError(
                    f"Player {player} cannot write {turn.dice_outcome} into field {action}"
                )

        for player, action in enumerate(actions):
            if action == game.skip_action:
                continue
            if action == game.miss_action:
                self._boards[player][game.geometry.miss_index] += game.config.miss_points
            else:
                self._boards[player][action] = turn.dice_outcome

        turn.phase = next_phase(turn.phase, ActionClass.SUBMIT)
        turn.current_player = (turn.current_player + 1) % self.num_players
        turn.player = turn.current_player
        turn.num_dice_rolls = 0
        turn.dice = 0
        turn.dice_outcome = 0
        self._move_number += 1

    # ------------------------------------------------------------------
    # 计分
    # ------------------------------------------------------------------

    def player_scores(self) -> List[int]:
        """按当前棋盘计算的得分 (不要求终局)"""
        geometry = self._game.geometry
        return [RuleEngine.calculate_score(board, geometry) for board in self._boards]

    def returns(self) -> List[float]:
        """终局效用; 未结束时全为 0"""
        if not self.is_terminal():
            return [0.0] * self.num_players
        return [float(score) for score in self.player_scores()]

    # ------------------------------------------------------------------
    # 观测
    # ------------------------------------------------------------------

    def observation_tensor(self, player: int, out: Optional[np.ndarray] = None) -> np.ndarray:
        """
        编码观测 (完全信息，各玩家看到的内容相同)

        Args:
            player: 观测玩家
            out: 可选的输出数组，原地写入

        Raises:
            ObservationShapeError: 编码长度或 out 形状与声明不符
        """
        self._check_player(player)

        game = self._game
        turn = self._turn
        values: List[float] = []

        # 阶段
        values.extend(float(turn.phase == phase) for phase in PHASE_ORDER)

        # 投掷次数
        values.extend(
            float(i == turn.num_dice_rolls)
            for i in range(game.config.max_dice_rolls + 1)
        )

        # 所选骰子
        values.extend(float(bool(turn.dice & die)) for die in DIE_DISPLAY_ORDER)

        # 点数和
        values.extend(
            float(i == turn.dice_outcome)
            for i in range(1, game.geometry.max_outcome + 1)
        )

        # 主动玩家
        values.extend(float(p == turn.current_player) for p in range(self.num_players))

        # 棋盘
        for board in self._boards:
            values.extend(float(v) for v in board)

        tensor = np.asarray(values, dtype=np.float32)

        if tensor.size != game.observation_tensor_size:
            raise ObservationShapeError(
                f"Observation has {tensor.size} values, expected {game.observation_tensor_size}"
            )

        if out is not None:
            if out.shape != tensor.shape:
                raise ObservationShapeError(
                    f"Output buffer shape {out.shape} != {tensor.shape}"
                )
            out[:] = tensor
            return out

        return tensor

    # ------------------------------------------------------------------
    # 字符串表示
    # ------------------------------------------------------------------

    def action_to_string(self, player: int, action: int) -> str:
        """动作的可读描述"""
        if player == SIMULTANEOUS_PLAYER_ID:
            return self.joint_action_encoder().to_string(action, self.action_to_string)

        if player == CHANCE_PLAYER_ID:
            if not 1 <= action <= self._game.geometry.max_outcome:
                raise ChanceError(f"Dice outcome {action} out of range")
            return f"Dice outcome {action}"

        phase = self._turn.phase
        if phase == Phase.SELECT_DICE:
            return f"[P{player}] Dice: {dice_to_str(action)}"
        if phase == Phase.ROLL_DICE:
            if action == ACTION_REROLL:
                return f"[P{player}] Re-roll"
            return f"[P{player}] Accept"
        if phase == Phase.SUBMIT_POINTS:
            if action == self._game.miss_action:
                return f"[P{player}] Miss"
            if action == self._game.skip_action:
                return f"[P{player}] Skip"
            return f"[P{player}] Field: {action}"
        raise PhaseError(f"Phase {phase} is invalid")

    def to_string(self) -> str:
        turn = self._turn
        lines = [
            f"Current player: {turn.current_player}",
            f"Phase: {turn.phase.value}",
            f"Dice: {dice_to_str(turn.dice)}",
            f"Roll: {turn.dice_outcome}",
        ]
        for player, board in enumerate(self._boards):
            lines.append(f"Player {player}:")
            lines.append(render_board(board, self._game.geometry))
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.to_string()

    # ------------------------------------------------------------------
    # 复制与序列化
    # ------------------------------------------------------------------

    def clone(self) -> 'GameState':
        """深拷贝 (共享同一个不可变的 QwintoGame)"""
        state = copy.copy(self)
        state._turn = replace(self._turn)
        state._boards = [list(board) for board in self._boards]
        return state

    def to_dict(self) -> Dict[str, Any]:
        """导出为字典 (仅内存中使用)"""
        turn = self._turn
        return {
            "current_player": turn.current_player,
            "player": turn.player,
            "phase": turn.phase.value,
            "num_dice_rolls": turn.num_dice_rolls,
            "dice": turn.dice,
            "dice_outcome": turn.dice_outcome,
            "boards": [list(board) for board in self._boards],
            "move_number": self._move_number,
        }

    @classmethod
    def from_dict(cls, game: QwintoGame, d: Dict[str, Any]) -> 'GameState':
        """
        从字典恢复状态

        Raises:
            QwintoError: 棋盘数量或长度不符
        """
        boards = [list(board) for board in d["boards"]]
        if len(boards) != game.num_players:
            raise QwintoError(f"Expected {game.num_players} boards, got {len(boards)}")
        for board in boards:
            if len(board) != game.geometry.board_size:
                raise QwintoError(
                    f"Board must have {game.geometry.board_size} cells, got {len(board)}"
                )

        state = cls(game)
        state._turn = TurnState(
            current_player=d.get("current_player", 0),
            player=d.get("player", d.get("current_player", 0)),
            phase=Phase(d.get("phase", Phase.SELECT_DICE.value)),
            num_dice_rolls=d.get("num_dice_rolls", 0),
            dice=d.get("dice", 0),
            dice_outcome=d.get("dice_outcome", 0),
        )
        state._boards = boards
        state._move_number = d.get("move_number", 0)
        return state

    def _check_player(self, player: int):
        if not 0 <= player < self.num_players:
            raise QwintoError(f"Invalid player {player}")
