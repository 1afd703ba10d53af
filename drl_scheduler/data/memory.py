"""
Experience replay memory for the scheduling agent.
"""

import random
from collections import deque
from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from drl_scheduler.utils.exceptions import InsufficientDataError
from drl_scheduler.utils.logging_config import get_logger

logger = get_logger("ReplayMemory")


@dataclass(frozen=True, eq=False)
class Transition:
    """One completed placement decision."""
    state: np.ndarray       # Cluster features when the decision was made (nodes x features)
    action: int             # Row of the chosen node in ``state``
    reward: float           # Reward observed for the decision
    next_state: np.ndarray  # Cluster features when the next cycle began


class ReplayMemory:
    """
    Bounded FIFO of transitions.

    New transitions go in at the head; once ``capacity`` is exceeded the
    oldest transition is evicted from the tail.
    """

    def __init__(self, capacity: int = 10000, rng: Optional[random.Random] = None):
        if capacity < 1:
            raise ValueError("capacity must be a positive integer")
        self.capacity = capacity
        self._rng = rng or random.Random()
        self._buffer: deque = deque()

        logger.info(f"Initialized replay memory with capacity={capacity}")

    def insert(self, transition: Transition) -> Optional[Transition]:
        """
        Add a transition at the head.

        Returns:
            The transition evicted from the tail, or None if nothing was evicted
        """
        self._buffer.appendleft(transition)
        evicted = None
        if len(self._buffer) > self.capacity:
            evicted = self._buffer.pop()

        if len(self._buffer) % 100 == 0:
            logger.debug(f"Replay memory size: {len(self._buffer)}/{self.capacity}")
        return evicted

    def rollback(self, evicted: Optional[Transition] = None) -> None:
        """Undo the most recent insert, restoring the transition it evicted."""
        if self._buffer:
            self._buffer.popleft()
        if evicted is not None:
            self._buffer.append(evicted)

    def sample(self, batch_size: int) -> List[Transition]:
        """
        Sample distinct transitions uniformly at random.

        Raises:
            InsufficientDataError: If fewer than ``batch_size`` transitions are held
        """
        if len(self._buffer) < batch_size:
            raise InsufficientDataError(
                f"memory size {len(self._buffer)} is less than batch size {batch_size}",
                context={"size": len(self._buffer), "batch_size": batch_size}
            )
        return self._rng.sample(list(self._buffer), batch_size)

    def newest(self) -> Optional[Transition]:
        return self._buffer[0] if self._buffer else None

    def oldest(self) -> Optional[Transition]:
        return self._buffer[-1] if self._buffer else None

    def __len__(self) -> int:
        return len(self._buffer)

    def __iter__(self):
        return iter(self._buffer)

    def get_stats(self) -> dict:
        """Get memory statistics."""
        recent_rewards = [t.reward for t in list(self._buffer)[:100]]
        return {
            'size': len(self._buffer),
            'capacity': self.capacity,
            'fill_percentage': (len(self._buffer) / self.capacity) * 100,
            'avg_recent_reward': float(np.mean(recent_rewards)) if recent_rewards else 0.0,
        }
