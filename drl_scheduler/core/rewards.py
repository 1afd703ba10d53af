"""
Reward system for placement decisions.

Rewards favour placements that relieve resource imbalance: choosing a node
that is less utilised than the cluster average, and whose CPU, memory and
filesystem usage are even with each other. Each (service, role) pair keeps
its own reward history, used as a baseline for later placements.
"""

import threading
from collections import deque
from typing import Dict, List, Optional, Tuple

import numpy as np

from drl_scheduler.config import RewardConfig
from drl_scheduler.utils.logging_config import get_logger

logger = get_logger("Rewards")

# (used, headroom) column pairs in a node's feature row
_CAPACITY_COLUMNS = ((0, 4), (1, 5), (2, 6))


class RewardAggregator:
    """Append-only reward history per (service, role)."""

    def __init__(self, max_history: Optional[int] = None):
        # None or 0 keeps every reward
        self.max_history = max_history or None
        self._entries: Dict[Tuple[str, str], deque] = {}
        # Running sum per key, kept in step with the retained history
        self._sums: Dict[Tuple[str, str], float] = {}
        self._lock = threading.Lock()

    def record_reward(self, service_name: str, role_name: str, reward: float) -> None:
        key = (service_name, role_name)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                entry = deque(maxlen=self.max_history)
                self._entries[key] = entry
                self._sums[key] = 0.0
                logger.debug("New reward entry", service=service_name, role=role_name)
            if entry.maxlen is not None and len(entry) == entry.maxlen:
                self._sums[key] -= entry[0]
            entry.append(float(reward))
            self._sums[key] += float(reward)

    def history(self, service_name: str, role_name: str) -> List[float]:
        with self._lock:
            return list(self._entries.get((service_name, role_name), ()))

    def baseline(self, service_name: str, role_name: str) -> Optional[float]:
        """Mean recorded reward, or None for a never-seen key."""
        with self._lock:
            entry = self._entries.get((service_name, role_name))
            if not entry:
                return None
            return self._sums[(service_name, role_name)] / len(entry)

    def keys(self) -> List[Tuple[str, str]]:
        with self._lock:
            return list(self._entries.keys())

    def __contains__(self, key) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


def utilisation_ratios(state: np.ndarray) -> np.ndarray:
    """
    CPU, memory and filesystem utilisation per node, each clipped to [0, 1].

    Returns:
        Array shaped (nodes, 3)
    """
    state = np.asarray(state, dtype=np.float64)
    ratios = np.zeros((state.shape[0], len(_CAPACITY_COLUMNS)))
    for i, (used_col, free_col) in enumerate(_CAPACITY_COLUMNS):
        used = state[:, used_col]
        capacity = used + state[:, free_col]
        with np.errstate(divide="ignore", invalid="ignore"):
            ratio = np.where(capacity > 0, used / capacity, 0.0)
        ratios[:, i] = np.clip(ratio, 0.0, 1.0)
    return ratios


class RewardCalculator:
    """Calculates the reward for choosing one node of a cluster state."""

    def __init__(self, config: Optional[RewardConfig] = None):
        self.config = config or RewardConfig()

    def calculate(self,
                  state: np.ndarray,
                  action: int,
                  aggregator: RewardAggregator,
                  service_name: str,
                  role_name: str) -> Tuple[float, Dict[str, float]]:
        """
        Calculate the reward for placing on row ``action`` of ``state``.

        Returns:
            Tuple of (reward, reward_components)
        """
        ratios = utilisation_ratios(state)
        node_util = ratios.mean(axis=1)

        # Positive when the chosen node is less loaded than the cluster mean
        placement_balance = float(node_util.mean() - node_util[action])
        # 1.0 when cpu/memory/fs usage on the node are even, 0.0 at worst
        node_balance = float(1.0 - 2.0 * ratios[action].std())

        balance_reward = (self.config.cluster_balance_weight * placement_balance
                          + self.config.node_balance_weight * node_balance)
        baseline = aggregator.baseline(service_name, role_name)
        improvement = balance_reward - baseline if baseline is not None else 0.0

        reward = balance_reward + self.config.history_weight * improvement

        components = {
            'placement_balance': placement_balance,
            'node_balance': node_balance,
            'improvement': improvement,
            'cluster_imbalance': float(node_util.std()),
        }
        logger.debug(f"Reward {reward:.4f}", service=service_name, role=role_name, **components)
        return float(reward), components
