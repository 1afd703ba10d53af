"""
Unit tests for configuration loading.
"""

import pytest

from drl_scheduler.config import (
    DQNConfig, DRLSchedulerConfig, LogLevel, PrometheusConfig, RewardConfig,
    SchedulerConfig, ServerConfig, load_config,
)
from drl_scheduler.utils.exceptions import ConfigurationError


class TestDQNConfig:
    """Test cases for DQNConfig."""

    def test_defaults(self):
        config = DQNConfig()
        assert config.hidden_dims == [64, 32]
        assert config.target_strategy == "immediate"
        assert config.epsilon_schedule == "exponential"

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("BATCH_SIZE", "16")
        monkeypatch.setenv("TARGET_STRATEGY", "bootstrapped")
        monkeypatch.setenv("DQN_HIDDEN_DIMS", "128, 64, 32")

        config = DQNConfig()

        assert config.batch_size == 16
        assert config.target_strategy == "bootstrapped"
        assert config.hidden_dims == [128, 64, 32]

    def test_rejects_probability_out_of_range(self):
        with pytest.raises(ValueError):
            DQNConfig(epsilon_start=1.5)

    def test_rejects_unknown_strategy(self):
        with pytest.raises(ValueError):
            DQNConfig(target_strategy="double")

    def test_unseeded_by_default(self):
        assert DQNConfig().seed is None

    def test_seed_from_environment(self, monkeypatch):
        monkeypatch.setenv("DQN_SEED", "42")
        assert DQNConfig().seed == 42

    def test_invalid_hidden_dims(self):
        with pytest.raises(ValueError):
            DQNConfig(hidden_dims_str="64,wide").hidden_dims


class TestComponentConfigs:
    """Test cases for the remaining component configs."""

    def test_reward_weights_must_sum_to_one(self):
        with pytest.raises(ValueError):
            RewardConfig(cluster_balance_weight=0.9)

    def test_prometheus_url_scheme(self):
        with pytest.raises(ValueError):
            PrometheusConfig(url="prometheus:9090")

    def test_server_port_range(self):
        with pytest.raises(ValueError):
            ServerConfig(port=80)

    def test_scheduler_boolean_strings(self, monkeypatch):
        monkeypatch.setenv("DEGRADE_ON_PREDICTION_ERROR", "off")
        assert SchedulerConfig().degrade_on_prediction_error is False

    def test_scheduler_labels(self):
        config = SchedulerConfig()
        assert (config.service_label, config.role_label) == ("servicename", "rolename")
        assert config.exploration_bonus == 5.0
        assert config.max_node_score == 100


class TestMainConfig:
    """Test cases for the combined configuration."""

    def test_components_built(self):
        config = DRLSchedulerConfig()
        assert config.log_level is LogLevel.INFO
        assert isinstance(config.dqn, DQNConfig)
        assert isinstance(config.scheduler, SchedulerConfig)

    def test_load_config(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        assert load_config().log_level is LogLevel.DEBUG

    def test_batch_larger_than_memory(self, monkeypatch):
        monkeypatch.setenv("BATCH_SIZE", "64")
        monkeypatch.setenv("MEMORY_CAPACITY", "32")
        with pytest.raises(ConfigurationError):
            load_config()
