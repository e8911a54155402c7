"""
评估器

在 GameState 上直接对局，统计各智能体的得分表现
"""
from typing import Dict, List, Optional, Callable, Sequence, Any
from dataclasses import dataclass, field
import numpy as np
import logging

from core.actions import ACTION_ACCEPT
from core.game import QwintoGame
from core.state import GameState, PHASE_ORDER, Phase

logger = logging.getLogger(__name__)


@dataclass
class EvalResult:
    """评估结果"""
    games_played: int
    avg_returns: List[float]
    win_rates: List[float]
    avg_length: float
    max_return: float = 0.0
    min_return: float = 0.0
    truncated_games: int = 0
    extra_stats: Dict[str, float] = field(default_factory=dict)

    def __repr__(self) -> str:
        returns = ", ".join(f"{r:.2f}" for r in self.avg_returns)
        return (
            f"EvalResult(avg_returns=[{returns}], "
            f"avg_length={self.avg_length:.1f}, "
            f"games={self.games_played})"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "games_played": self.games_played,
            "avg_returns": self.avg_returns,
            "win_rates": self.win_rates,
            "avg_length": self.avg_length,
            "max_return": self.max_return,
            "min_return": self.min_return,
            "truncated_games": self.truncated_games,
            **self.extra_stats,
        }


class Agent:
    """智能体基类"""

    def __init__(self, name: str = "agent"):
        self.name = name

    def act(self, obs: np.ndarray, legal_actions: List[int]) -> int:
        """选择动作"""
        raise NotImplementedError

    def reset(self):
        """重置状态"""
        pass


class RandomAgent(Agent):
    """随机智能体"""

    def __init__(self, name: str = "random", seed: Optional[int] = None):
        super().__init__(name)
        self._rng = np.random.default_rng(seed)

    def act(self, obs: np.ndarray, legal_actions: List[int]) -> int:
        if not legal_actions:
            return 0
        idx = int(self._rng.integers(len(legal_actions)))
        return legal_actions[idx]


class RuleBasedAgent(Agent):
    """
    规则智能体

    - 选骰: 三颗骰子全选
    - 投掷: 直接接受
    - 记分: 写入索引最小的可写格子，否则 Miss / Skip
    """

    def __init__(self, name: str = "rule"):
        super().__init__(name)

    def act(self, obs: np.ndarray, legal_actions: List[int]) -> int:
        if not legal_actions:
            return 0

        phase = PHASE_ORDER[int(np.argmax(obs[:len(PHASE_ORDER)]))]

        if phase == Phase.SELECT_DICE:
            return max(legal_actions)
        if phase == Phase.ROLL_DICE:
            return ACTION_ACCEPT if ACTION_ACCEPT in legal_actions else legal_actions[0]
        # Miss / Skip 总是排在最后
        return legal_actions[0]


class Evaluator:
    """
    评估器

    让一组智能体 (每个玩家一个) 完整对局，机会节点按概率采样
    """

    def __init__(
        self,
        game_fn: Callable[[], QwintoGame],
        seed: Optional[int] = None,
    ):
        self.game_fn = game_fn
        self._rng = np.random.default_rng(seed)

    def _sample_chance(self, state: GameState) -> int:
        outcomes = state.chance_outcomes()
        values = [outcome for outcome, _ in outcomes]
        probs = [prob for _, prob in outcomes]
        return values[int(self._rng.choice(len(values), p=probs))]

    def play_game(
        self,
        game: QwintoGame,
        agents: Sequence[Agent],
        max_steps: Optional[int] = None,
    ) -> GameState:
        """
        完整进行一局

        Args:
            game: 游戏定义
            agents: 每个玩家一个智能体
            max_steps: 最大步数 (默认为游戏的步数上界)

        Returns:
            结束 (或截断) 时的状态
        """
        if len(agents) != game.num_players:
            raise ValueError(
                f"Need {game.num_players} agents, got {len(agents)}"
            )
        if max_steps is None:
            max_steps = game.max_game_length

        for agent in agents:
            agent.reset()

        state = game.new_initial_state()
        steps = 0

        while not state.is_terminal() and steps < max_steps:
            if state.is_chance_node():
                state.apply_action(self._sample_chance(state))
            elif state.is_simultaneous_node():
                actions = [
                    agent.act(state.observation_tensor(player), state.legal_actions(player))
                    for player, agent in enumerate(agents)
                ]
                state.apply_actions(actions)
            else:
                player = state.current_player()
                action = agents[player].act(
                    state.observation_tensor(player), state.legal_actions(player)
                )
                state.apply_action(action)
            steps += 1

        return state

    def evaluate(
        self,
        agents: Sequence[Agent],
        n_games: int = 100,
        max_steps: Optional[int] = None,
        verbose: bool = False,
    ) -> EvalResult:
        """
        评估智能体

        Args:
            agents: 每个玩家一个智能体; 只给一个时所有玩家共用
            n_games: 游戏数量
            max_steps: 单局最大步数
            verbose: 是否输出进度

        Returns:
            评估结果
        """
        game = self.game_fn()
        if len(agents) == 1:
            agents = list(agents) * game.num_players

        n = game.num_players
        total_returns = np.zeros(n, dtype=np.float64)
        wins = np.zeros(n, dtype=np.float64)
        total_length = 0
        truncated = 0
        best = -np.inf
        worst = np.inf
        total_misses = 0.0

        for game_idx in range(n_games):
            state = self.play_game(game, agents, max_steps)

            if not state.is_terminal():
                truncated += 1

            scores = np.asarray(state.player_scores(), dtype=np.float64)
            total_returns += scores
            best = max(best, float(scores.max()))
            worst = min(worst, float(scores.min()))

            # 并列第一平分胜场
            leaders = scores == scores.max()
            wins += leaders / leaders.sum()

            miss = game.geometry.miss_index
            total_misses += sum(
                board[miss] / game.config.miss_points for board in state.boards()
            )
            total_length += state.move_number

            if verbose and (game_idx + 1) % 10 == 0:
                logger.info(
                    f"Game {game_idx + 1}/{n_games}, "
                    f"avg returns: {np.round(total_returns / (game_idx + 1), 2).tolist()}"
                )

        if n_games == 0:
            return EvalResult(
                games_played=0,
                avg_returns=[0.0] * n,
                win_rates=[0.0] * n,
                avg_length=0.0,
            )

        return EvalResult(
            games_played=n_games,
            avg_returns=(total_returns / n_games).tolist(),
            win_rates=(wins / n_games).tolist(),
            avg_length=total_length / n_games,
            max_return=best,
            min_return=worst,
            truncated_games=truncated,
            extra_stats={"avg_misses": total_misses / (n_games * n)},
        )
