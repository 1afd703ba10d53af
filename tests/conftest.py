"""
Pytest configuration and shared fixtures for DRL scheduler tests.
"""

from typing import Dict, List, Optional, Sequence

import numpy as np
import pytest

from drl_scheduler.config import RewardConfig, SchedulerConfig
from drl_scheduler.core.framework import Pod
from drl_scheduler.core.plugin import DRLSchedulerPlugin
from drl_scheduler.core.rewards import RewardAggregator, RewardCalculator
from drl_scheduler.data.memory import Transition
from drl_scheduler.models.agent import DQNAgent, Hyperparameters
from drl_scheduler.utils.exceptions import FitError, MetricsQueryError, PredictionError


class FakeValueFunction:
    """Value function that ranks nodes by CPU headroom and records fits."""

    def __init__(self, name: str):
        self.name = name
        self.version = 0
        self.fail_predict = False
        self.fail_fit = False
        self.fit_calls: List[tuple] = []
        self.predict_calls = 0

    def predict(self, state: np.ndarray) -> np.ndarray:
        self.predict_calls += 1
        if self.fail_predict:
            raise PredictionError(f"{self.name} unavailable")
        state = np.asarray(state, dtype=np.float64)
        return state[:, 4].copy()

    def fit_batch(self, states: np.ndarray, targets: np.ndarray) -> float:
        if self.fail_fit:
            raise FitError(f"{self.name} fit failed")
        self.fit_calls.append((np.array(states), np.array(targets)))
        self.version += 1
        return 0.5

    def clone_to(self, other: "FakeValueFunction") -> None:
        other.version = self.version


class FakeMetricsClient:
    """Serves fixed feature rows per node, or fails on demand."""

    def __init__(self, rows: Dict[str, List[float]]):
        self.rows = dict(rows)
        self.fail = False
        self.calls: List[List[str]] = []

    async def query_cluster_features(self, node_names: Sequence[str]) -> np.ndarray:
        self.calls.append(list(node_names))
        if self.fail:
            raise MetricsQueryError("prometheus unavailable", context={"failed_nodes": {n: "down" for n in node_names}})
        return np.array([self.rows[name] for name in node_names], dtype=np.float32)

    async def close(self) -> None:
        pass


def make_transition(reward: float = 1.0, action: int = 0, nodes: int = 3) -> Transition:
    state = np.full((nodes, 8), reward, dtype=np.float32)
    return Transition(state=state, action=action, reward=reward, next_state=state.copy())


@pytest.fixture
def node_rows():
    """Three nodes: busy, idle and half loaded (cpu cores, memory/fs bytes)."""
    return {
        "node-a": [3.5, 7.0e9, 40.0e9, 1.0e5, 0.5, 1.0e9, 10.0e9, 2.0e5],
        "node-b": [0.5, 1.0e9, 10.0e9, 2.0e4, 3.5, 7.0e9, 40.0e9, 1.0e4],
        "node-c": [2.0, 4.0e9, 25.0e9, 5.0e4, 2.0, 4.0e9, 25.0e9, 5.0e4],
    }


@pytest.fixture
def node_names(node_rows):
    return list(node_rows)


@pytest.fixture
def metrics_client(node_rows):
    return FakeMetricsClient(node_rows)


@pytest.fixture
def checkout_pod():
    return Pod(name="checkout-api-0", namespace="shop", labels={"servicename": "checkout", "rolename": "api"})


@pytest.fixture
def unlabelled_pod():
    return Pod(name="orphan-0", namespace="shop", labels={"rolename": "api"})


def make_agent(epsilon: float = 0.0,
               batch_size: int = 1,
               target_update_interval: int = 10,
               seed: Optional[int] = 7,
               **overrides) -> DQNAgent:
    hyperparameters = Hyperparameters(
        epsilon_start=epsilon,
        epsilon_end=epsilon,
        epsilon_decay=0.99,
        batch_size=batch_size,
        memory_capacity=overrides.pop("memory_capacity", 100),
        target_update_interval=target_update_interval,
        seed=seed,
        **overrides
    )
    return DQNAgent(hyperparameters, FakeValueFunction("online"), FakeValueFunction("target"))


@pytest.fixture
def greedy_agent():
    """Agent that never explores."""
    return make_agent(epsilon=0.0)


@pytest.fixture
def exploring_agent():
    """Agent that always explores."""
    return make_agent(epsilon=1.0)


@pytest.fixture
def scheduler_config():
    return SchedulerConfig()


def make_plugin(agent: DQNAgent, metrics_client, config: Optional[SchedulerConfig] = None) -> DRLSchedulerPlugin:
    return DRLSchedulerPlugin(
        agent=agent,
        metrics_client=metrics_client,
        config=config or SchedulerConfig(),
        reward_calculator=RewardCalculator(RewardConfig()),
        aggregator=RewardAggregator(),
    )
