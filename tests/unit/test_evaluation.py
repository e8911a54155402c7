"""评估模块测试"""
import pytest
import numpy as np

from core.game import QwintoGame
from core.state import GameState


class TestAgents:
    """智能体测试"""

    def test_random_agent(self):
        from evaluation import RandomAgent

        agent = RandomAgent(seed=0)
        obs = np.zeros(10, dtype=np.float32)
        for _ in range(20):
            assert agent.act(obs, [3, 9, 27]) in [3, 9, 27]
        assert agent.act(obs, []) == 0

    def test_random_agent_seeded(self):
        from evaluation import RandomAgent

        obs = np.zeros(10, dtype=np.float32)
        first, second = RandomAgent(seed=5), RandomAgent(seed=5)
        for _ in range(10):
            assert first.act(obs, list(range(28))) == second.act(obs, list(range(28)))

    def test_rule_agent(self):
        from evaluation import RuleBasedAgent

        state = QwintoGame().new_initial_state()
        agent = RuleBasedAgent()
        assert agent.act(state.observation_tensor(0), state.legal_actions(0)) == 7

        state.apply_action(7)
        state.apply_action(10)
        assert agent.act(state.observation_tensor(0), state.legal_actions(0)) == 1

        state.apply_action(1)
        assert agent.act(state.observation_tensor(0), state.legal_actions(0)) == 0


class TestEvaluator:
    """评估器测试"""

    def test_play_game(self):
        from evaluation import Evaluator, RandomAgent

        game = QwintoGame(players=2)
        evaluator = Evaluator(game_fn=lambda: game, seed=0)
        state = evaluator.play_game(game, [RandomAgent(seed=1), RandomAgent(seed=2)])

        assert isinstance(state, GameState)
        assert state.is_terminal()

    def test_agent_count(self):
        from evaluation import Evaluator, RandomAgent

        game = QwintoGame(players=3)
        evaluator = Evaluator(game_fn=lambda: game)
        with pytest.raises(ValueError):
            evaluator.play_game(game, [RandomAgent()])

    def test_evaluate(self):
        from evaluation import Evaluator, RuleBasedAgent

        evaluator = Evaluator(game_fn=lambda: QwintoGame(players=2), seed=0)
        result = evaluator.evaluate([RuleBasedAgent()], n_games=5)

        assert result.games_played == 5
        assert len(result.avg_returns) == 2
        assert sum(result.win_rates) == pytest.approx(1.0)
        assert result.truncated_games == 0
        assert result.min_return <= result.max_return
        assert result.avg_length > 0
        assert "avg_misses" in result.to_dict()

    def test_evaluate_no_games(self):
        from evaluation import Evaluator, RandomAgent

        evaluator = Evaluator(game_fn=lambda: QwintoGame())
        result = evaluator.evaluate([RandomAgent()], n_games=0)
        assert result.games_played == 0
        assert result.avg_returns == [0.0]

    def test_truncation(self):
        from evaluation import Evaluator, RandomAgent

        evaluator = Evaluator(game_fn=lambda: QwintoGame(), seed=0)
        result = evaluator.evaluate([RandomAgent(seed=0)], n_games=2, max_steps=3)
        assert result.truncated_games == 2
        assert result.avg_length == 3
