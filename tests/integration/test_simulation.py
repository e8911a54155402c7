"""随机对局属性测试"""
import pytest
import numpy as np

from core.board import DEFAULT_GEOMETRY
from core.game import QwintoGame
from core.config import GameConfig
from core.rules import RuleEngine
from core.state import GameState, Phase


def play_random(game: QwintoGame, seed: int, check=None) -> GameState:
    """随机完成一局，每一步之后调用 check(state)"""
    rng = np.random.default_rng(seed)
    state = game.new_initial_state()
    steps = 0

    while not state.is_terminal():
        if state.is_chance_node():
            outcomes = state.chance_outcomes()
            idx = rng.choice(len(outcomes), p=[p for _, p in outcomes])
            state.apply_action(outcomes[idx][0])
        elif state.is_simultaneous_node():
            actions = []
            for player in range(state.num_players):
                legal = state.legal_actions(player)
                actions.append(legal[int(rng.integers(len(legal)))])
            state.apply_actions(actions)
        else:
            legal = state.legal_actions()
            state.apply_action(legal[int(rng.integers(len(legal)))])

        steps += 1
        assert steps <= game.max_game_length
        if check is not None:
            check(state)

    return state


def check_invariants(state: GameState):
    game = state.game
    geometry = game.geometry

    if not state.is_terminal():
        current = state.current_player()
        legal = state.legal_actions(current)
        assert legal == sorted(legal)
        assert len(set(legal)) == len(legal)
        assert legal

    for board in state.boards():
        for row in range(geometry.num_rows):
            assert RuleEngine.is_row_monotonic(board, row, geometry)
        assert not RuleEngine.has_linked_duplicates(board, geometry)
        assert all(0 <= v <= geometry.max_outcome for v in board[:geometry.num_cells])
        assert board[geometry.miss_index] <= 0
        assert board[geometry.miss_index] % game.config.miss_points == 0

    assert state.observation_tensor(0).size == game.observation_tensor_size


class TestRandomGames:
    """随机对局测试"""

    @pytest.mark.parametrize("players", [1, 2, 3, 4])
    def test_invariants_hold(self, players):
        game = QwintoGame(players=players)
        for seed in range(3):
            play_random(game, seed, check_invariants)

    @pytest.mark.parametrize("players", [1, 3])
    def test_terminal_state(self, players):
        game = QwintoGame(players=players)
        state = play_random(game, seed=players)

        assert state.is_terminal()
        assert state.legal_actions() == []
        assert any(
            board[DEFAULT_GEOMETRY.miss_index] <= game.config.termination_points
            for board in state.boards()
        )

        returns = state.returns()
        assert returns == [float(s) for s in state.player_scores()]
        assert all(game.min_utility <= r <= game.max_utility for r in returns)

        # 终局状态保持不变
        snapshot = state.to_dict()
        assert state.returns() == returns
        assert state.to_dict() == snapshot

    def test_row_gaps_variant(self):
        game = QwintoGame(GameConfig(num_players=2, allow_row_gaps=True))
        play_random(game, 9, check_invariants)

    def test_phase_after_submit(self):
        game = QwintoGame(players=2)
        seen = []

        def record(state):
            seen.append(state.phase)

        play_random(game, seed=4, check=record)
        assert Phase.SUBMIT_POINTS in seen
        assert Phase.SELECT_DICE in seen
