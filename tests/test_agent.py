"""
Unit tests for the DQN agent.
"""

import random

import numpy as np
import pytest
import torch

from conftest import FakeValueFunction, make_agent, make_transition
from drl_scheduler.config import DQNConfig
from drl_scheduler.data.memory import Transition
from drl_scheduler.models.agent import DQNAgent, Hyperparameters, TargetStrategy
from drl_scheduler.utils.exceptions import CheckpointError, FitError


def ranked_transition(reward: float = 2.0, action: int = 1) -> Transition:
    """Transition whose cpu headroom column differs per node."""
    state = np.zeros((3, 8), dtype=np.float32)
    state[:, 4] = [1.0, 5.0, 3.0]
    next_state = np.zeros((3, 8), dtype=np.float32)
    next_state[:, 4] = [4.0, 6.0, 2.0]
    return Transition(state=state, action=action, reward=reward, next_state=next_state)


class TestHyperparameters:
    """Test cases for Hyperparameters."""

    def test_rejects_invalid_gamma(self):
        with pytest.raises(ValueError):
            Hyperparameters(gamma=1.5)

    def test_rejects_non_positive_interval(self):
        with pytest.raises(ValueError):
            Hyperparameters(target_update_interval=0)

    def test_strategy_from_string(self):
        assert Hyperparameters(target_strategy="bootstrapped").target_strategy is TargetStrategy.BOOTSTRAPPED

    def test_immutable(self):
        hyperparameters = Hyperparameters()
        with pytest.raises(AttributeError):
            hyperparameters.gamma = 0.5

    def test_from_config(self):
        config = DQNConfig(gamma=0.9, batch_size=8, target_strategy="bootstrapped", seed=3)
        hyperparameters = Hyperparameters.from_config(config)
        assert hyperparameters.gamma == 0.9
        assert hyperparameters.batch_size == 8
        assert hyperparameters.target_strategy is TargetStrategy.BOOTSTRAPPED
        assert hyperparameters.seed == 3


class TestActionSelection:
    """Test cases for epsilon-greedy action selection."""

    def test_target_cloned_at_construction(self):
        online, target = FakeValueFunction("online"), FakeValueFunction("target")
        online.version = 3
        DQNAgent(Hyperparameters(), online, target)
        assert target.version == 3

    def test_explores_with_seeded_random_source(self):
        """With epsilon 1 the index comes from the agent's own seeded draw."""
        agent = make_agent(epsilon=1.0, seed=7)
        replica = random.Random(7)
        replica.random()
        expected = replica.randrange(5)

        assert agent.choose_action(5) == expected

    def test_explore_stays_in_range(self):
        agent = make_agent(epsilon=1.0)
        for _ in range(50):
            assert 0 <= agent.choose_action(3) < 3

    def test_exploit_defers_to_values(self):
        agent = make_agent(epsilon=0.0)
        assert agent.choose_action(4) is None

    def test_rejects_empty_candidate_set(self):
        agent = make_agent()
        with pytest.raises(ValueError):
            agent.choose_action(0)


class TestLearning:
    """Test cases for learn() and observe()."""

    def test_learn_is_noop_below_batch_size(self):
        agent = make_agent(batch_size=4)
        for _ in range(3):
            agent.remember(make_transition())

        assert agent.learn() is None
        assert agent.steps == 0
        assert agent.online.version == 0

    def test_learn_updates_online_only(self):
        """After one learning step the online version moves and the target's does not."""
        agent = make_agent(batch_size=4, target_update_interval=10)
        for _ in range(4):
            agent.remember(make_transition())

        loss = agent.learn()

        assert loss == 0.5
        assert agent.steps == 1
        assert agent.online.version == 1
        assert agent.target.version == 0
        assert len(agent.online.fit_calls) == 1

    def test_single_fit_over_concatenated_batch(self):
        agent = make_agent(batch_size=3)
        for _ in range(3):
            agent.remember(make_transition(nodes=2))

        agent.learn()

        states, targets = agent.online.fit_calls[0]
        assert states.shape == (6, 8)
        assert targets.shape == (6,)

    def test_target_synced_on_interval(self):
        agent = make_agent(batch_size=1, target_update_interval=2)
        agent.remember(make_transition())

        agent.learn()
        assert agent.target.version == 0

        agent.learn()
        assert agent.target.version == agent.online.version == 2

    def test_epsilon_refreshed_after_learning(self):
        hyperparameters = Hyperparameters(epsilon_start=1.0, epsilon_end=0.1, epsilon_decay=0.5, batch_size=1)
        agent = DQNAgent(hyperparameters, FakeValueFunction("online"), FakeValueFunction("target"))
        agent.remember(make_transition())

        agent.learn()

        assert agent.epsilon == pytest.approx(0.5)

    def test_immediate_target(self):
        """Only the chosen node's value is replaced, by the reward itself."""
        agent = make_agent(batch_size=1)
        agent.remember(ranked_transition(reward=2.0, action=1))

        agent.learn()

        _, targets = agent.online.fit_calls[0]
        np.testing.assert_allclose(targets, [1.0, 2.0, 3.0])

    def test_bootstrapped_target_uses_target_network(self):
        agent = make_agent(batch_size=1, target_strategy="bootstrapped", gamma=0.5)
        agent.remember(ranked_transition(reward=2.0, action=1))
        calls_before = agent.target.predict_calls

        agent.learn()

        _, targets = agent.online.fit_calls[0]
        # 2.0 + 0.5 * max(4, 6, 2)
        assert targets[1] == pytest.approx(5.0)
        assert agent.target.predict_calls == calls_before + 1

    def test_skips_action_outside_state(self):
        agent = make_agent(batch_size=1)
        agent.remember(make_transition(action=5, nodes=3))

        assert agent.learn() is None
        assert agent.steps == 0

    def test_observe_remembers_and_learns(self):
        agent = make_agent(batch_size=1)

        loss = agent.observe(make_transition())

        assert loss == 0.5
        assert len(agent.memory) == 1
        assert agent.steps == 1

    def test_observe_rolls_back_on_fit_failure(self):
        agent = make_agent(batch_size=1, memory_capacity=2)
        agent.remember(make_transition(1.0))
        agent.remember(make_transition(2.0))
        before = list(agent.memory)
        agent.online.fail_fit = True

        with pytest.raises(FitError):
            agent.observe(make_transition(3.0))

        assert list(agent.memory) == before
        assert agent.steps == 0


class TestCheckpoint:
    """Test cases for checkpoint persistence with torch value functions."""

    @pytest.fixture
    def config(self):
        return DQNConfig(hidden_dims_str="16", batch_size=2, seed=1, epsilon_decay=0.9, learning_rate=0.01)

    def test_round_trip(self, config, tmp_path):
        agent = DQNAgent.from_config(config)
        for i in range(2):
            agent.remember(ranked_transition(reward=float(i)))
        agent.learn()
        path = str(tmp_path / "agent.pt")

        agent.save_checkpoint(path)
        restored = DQNAgent.from_config(config)
        restored.load_checkpoint(path)

        assert restored.steps == agent.steps == 1
        assert restored.epsilon == pytest.approx(agent.epsilon)
        state = ranked_transition().state
        np.testing.assert_allclose(restored.predict(state), agent.predict(state))

    def test_load_missing_file(self, config, tmp_path):
        agent = DQNAgent.from_config(config)
        with pytest.raises(CheckpointError):
            agent.load_checkpoint(str(tmp_path / "missing.pt"))

    def test_stats(self, config):
        stats = DQNAgent.from_config(config).get_stats()
        assert stats["steps"] == 0
        assert stats["epsilon"] == 1.0
        assert stats["online_version"] == stats["target_version"] == 0
        assert stats["memory"]["size"] == 0


class TestTargetSync:
    """Target weights with torch value functions."""

    @staticmethod
    def same_weights(agent):
        online, target = agent.online.weights(), agent.target.weights()
        return all(torch.equal(online[k], target[k]) for k in online)

    def test_target_matches_online_only_on_sync_steps(self):
        config = DQNConfig(hidden_dims_str="16", batch_size=1, target_update_interval=2,
                           seed=1, learning_rate=0.01)
        agent = DQNAgent.from_config(config)
        agent.remember(ranked_transition())
        assert self.same_weights(agent)

        agent.learn()
        assert not self.same_weights(agent)

        agent.learn()
        assert self.same_weights(agent)

        agent.learn()
        assert not self.same_weights(agent)

    def test_unseeded_config_leaves_torch_alone(self, mocker):
        manual_seed = mocker.patch("drl_scheduler.models.agent.torch.manual_seed")
        DQNAgent.from_config(DQNConfig(hidden_dims_str="16"))
        manual_seed.assert_not_called()
