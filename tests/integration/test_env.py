"""环境层测试"""
import pytest
import numpy as np

from core.config import GameConfig
from core.dice import Die
from core.game import QwintoGame
from core.state import Phase, SIMULTANEOUS_PLAYER_ID

MISS = 27
SKIP = 28


class TestObservationBuilder:
    """ObservationBuilder 测试"""

    def test_build_initial(self):
        from env.observation import ObservationBuilder

        state = QwintoGame(players=2).new_initial_state()
        obs = ObservationBuilder().build(state)

        assert obs.player == 0
        assert obs.phase.tolist() == [1, 0, 0]
        assert obs.boards.shape == (2, 28)
        assert obs.current_player.sum() == 1  # one-hot
        assert obs.legal_actions == [1, 2, 3, 4, 5, 6, 7]

    def test_flat_matches_state_tensor(self):
        from env.observation import ObservationBuilder

        state = QwintoGame(players=3).new_initial_state()
        state.apply_action(Die.ORANGE | Die.YELLOW)
        state.apply_action(8)
        obs = ObservationBuilder().build(state, player=2)

        np.testing.assert_array_equal(obs.to_flat_array(), state.observation_tensor(2))

    def test_default_perspective_at_chance(self):
        from env.observation import ObservationBuilder

        state = QwintoGame(players=2).new_initial_state()
        state.apply_action(Die.ORANGE)
        assert ObservationBuilder.default_perspective(state) == 0

    def test_to_dict(self):
        from env.observation import ObservationBuilder

        state = QwintoGame().new_initial_state()
        obs_dict = ObservationBuilder().build(state).to_dict()

        assert "phase" in obs_dict
        assert "boards" in obs_dict
        assert obs_dict["dice_rolls"].shape == (3,)

    def test_action_mask(self):
        from env.observation import build_action_mask

        mask = build_action_mask([0, 27], 29)
        assert mask.shape == (29,)
        assert mask.sum() == 2
        assert mask[27] == 1


class TestRewardCalculator:
    """奖励计算测试"""

    def _finished_state(self):
        state = QwintoGame().new_initial_state()
        for _ in range(4):
            state.apply_action(Die.PURPLE)
            state.apply_action(2)
            state.apply_action(1)
            state.apply_actions([MISS])
        return state

    def test_sparse(self):
        from env.reward import create_reward_calculator

        calc = create_reward_calculator("sparse")
        assert calc.compute(QwintoGame().new_initial_state(), player=0) == 0.0
        assert calc.compute(self._finished_state(), player=0) == -20.0

    def test_shaped_is_score_delta(self):
        from env.reward import create_reward_calculator

        calc = create_reward_calculator("shaped")
        prev = QwintoGame().new_initial_state()
        prev.apply_action(Die.ORANGE)
        prev.apply_action(3)
        prev.apply_action(1)
        state = prev.clone()
        state.apply_actions([0])

        assert calc.compute(state, prev, player=0) == 1.0
        assert calc.compute(state, None, player=0) == 0.0

    def test_multi_agent(self):
        from env.reward import MultiAgentReward, RewardConfig, RewardType

        state = QwintoGame(players=2).new_initial_state()
        rewards = MultiAgentReward(RewardConfig(reward_type=RewardType.SPARSE)).compute_all(state)
        assert rewards == {"player_0": 0.0, "player_1": 0.0}


class TestQwintoEnv:
    """QwintoEnv 测试"""

    def test_reset(self):
        from env import QwintoEnv

        env = QwintoEnv(num_players=2, seed=42)
        obs, info = env.reset()

        assert obs.shape == env.observation_space.shape
        assert env.observation_space.contains(obs)
        assert info["phase"] == "select"
        assert info["current_player"] == 0
        assert info["legal_actions"] == [1, 2, 3, 4, 5, 6, 7]

    def test_chance_is_sampled(self):
        from env import QwintoEnv

        env = QwintoEnv(seed=0)
        env.reset()
        obs, reward, terminated, truncated, info = env.step(int(Die.ORANGE))

        assert not env.state.is_chance_node()
        assert 1 <= info["dice_outcome"] <= 6
        assert info["phase"] == "roll"
        assert reward == 0.0
        assert not terminated

    def test_invalid_action(self):
        from env import QwintoEnv

        env = QwintoEnv(seed=0)
        env.reset()
        obs, reward, terminated, truncated, info = env.step(0)

        assert reward == -1.0
        assert not terminated
        assert "error" in info
        assert env.state.phase == Phase.SELECT_DICE

    def test_submit_takes_sequence(self):
        from env import QwintoEnv

        env = QwintoEnv(num_players=2, seed=1)
        env.reset()
        env.step(int(Die.ORANGE))
        _, _, _, _, info = env.step(1)

        assert env.state.current_player() == SIMULTANEOUS_PLAYER_ID
        legal = info["legal_actions"]
        assert len(legal) == 2
        assert legal[0][-1] == MISS
        assert legal[1][-1] == SKIP

        # 单个整数在记分阶段非法
        _, reward, _, _, info = env.step(MISS)
        assert "error" in info

        _, _, _, _, info = env.step([MISS, SKIP])
        assert "error" not in info
        assert info["phase"] == "select"
        assert info["current_player"] == 1
        assert env.state.board(0)[MISS] == -5

    def test_step_before_reset(self):
        from env import QwintoEnv

        env = QwintoEnv()
        with pytest.raises(RuntimeError):
            env.step(1)

    def test_full_episode(self):
        from env import QwintoEnv

        env = QwintoEnv(num_players=2, seed=123, reward_type="shaped", agent_player=0)
        env.reset()

        total = 0.0
        terminated = False
        steps = 0
        while not terminated:
            _, reward, terminated, truncated, info = env.step(env.sample_action())
            assert "error" not in info
            total += reward
            steps += 1
            assert steps <= env.game.max_game_length

        assert info["returns"][0] == pytest.approx(total)
        with pytest.raises(RuntimeError):
            env.step(1)

    def test_seed_reproducible(self):
        from env import QwintoEnv

        def play(seed):
            env = QwintoEnv(num_players=2)
            env.reset(seed=seed)
            outcomes = []
            for _ in range(20):
                _, _, terminated, _, info = env.step(env.sample_action())
                outcomes.append(info["dice_outcome"])
                if terminated:
                    break
            return outcomes

        assert play(7) == play(7)

    def test_action_mask(self):
        from env import QwintoEnv

        env = QwintoEnv(num_players=3, seed=0)
        env.reset()
        assert env.action_mask().shape == (29,)

        env.step(int(Die.ORANGE))
        env.step(1)
        assert env.action_mask().shape == (3, 29)

    def test_render(self):
        from env import QwintoEnv

        env = QwintoEnv(render_mode="ansi", seed=0)
        env.reset()
        text = env.render()
        assert "Current player: 0" in text

    def test_config(self):
        from env import QwintoEnv

        env = QwintoEnv(config=GameConfig(num_players=4, max_dice_rolls=3))
        assert env.num_players == 4
        assert env.observation_space.shape == (3 + 4 + 3 + 18 + 4 + 4 * 28,)


class TestMultiAgentEnv:
    """多智能体环境测试"""

    def test_reset_and_step(self):
        from env import make_env

        env = make_env(num_players=2, multi_agent=True, seed=3)
        observations, info = env.reset()
        assert set(observations) == {"player_0", "player_1"}

        _, rewards, _, _, _ = env.step(int(Die.YELLOW))
        assert set(rewards) == {"player_0", "player_1"}

    def test_unknown_env(self):
        from env import make_env

        with pytest.raises(ValueError):
            make_env("Yahtzee-v0")


class TestWrappers:
    """包装器测试"""

    def test_action_mask_wrapper(self):
        from env import QwintoEnv, LegalActionMaskWrapper

        env = LegalActionMaskWrapper(QwintoEnv(seed=0))
        _, info = env.reset()
        assert info["action_mask"].shape == (29,)
        assert info["action_mask"][0] == 0
        assert info["action_mask"][7] == 1

    def test_record_statistics(self):
        from env import QwintoEnv, wrap_env

        env = wrap_env(QwintoEnv(seed=5))
        env.reset()
        terminated = truncated = False
        while not (terminated or truncated):
            _, _, terminated, truncated, info = env.step(env.unwrapped.sample_action())

        assert "episode" in info
        assert info["episode"]["l"] > 0
        assert info["episode"]["returns"] is not None

    def test_time_limit(self):
        from env import QwintoEnv, TimeLimit

        env = TimeLimit(QwintoEnv(seed=0), max_steps=2)
        env.reset()
        _, _, _, truncated, _ = env.step(1)
        assert not truncated
        _, _, _, truncated, _ = env.step(1)
        assert truncated

    def test_reward_scale(self):
        from env import QwintoEnv, RewardScaleWrapper

        env = RewardScaleWrapper(QwintoEnv(seed=0), scale=0.5)
        env.reset()
        _, reward, _, _, _ = env.step(0)
        assert reward == -0.5

    def test_self_play(self):
        from env import QwintoEnv, SelfPlayWrapper

        env = SelfPlayWrapper(QwintoEnv(num_players=3, seed=11), controlled_player=1)
        env.reset()

        terminated = False
        steps = 0
        while not terminated:
            state = env.unwrapped.state
            assert state.is_simultaneous_node() or state.current_player() == 1
            if state.is_simultaneous_node():
                action = state.legal_actions(1)[0]
            else:
                action = state.legal_actions()[-1]
            _, _, terminated, truncated, info = env.step(action)
            assert "error" not in info
            steps += 1
            assert steps < 2000

    @pytest.mark.parametrize("reward_type", ["sparse", "shaped"])
    def test_self_play_reward_is_controlled_player(self, reward_type):
        from env import QwintoEnv, SelfPlayWrapper

        env = SelfPlayWrapper(
            QwintoEnv(num_players=2, reward_type=reward_type, seed=21),
            controlled_player=0,
        )
        env.reset()
        assert env.unwrapped.agent_player == 0

        total = 0.0
        terminated = False
        steps = 0
        while not terminated:
            state = env.unwrapped.state
            if state.is_simultaneous_node():
                action = state.legal_actions(0)[0]
            else:
                action = state.legal_actions()[-1]
            _, reward, terminated, truncated, info = env.step(action)
            assert "error" not in info
            total += reward
            steps += 1
            assert steps < 2000

        if reward_type == "sparse":
            assert reward == info["returns"][0]
        assert total == pytest.approx(info["returns"][0])
