"""
DQN agent that scores candidate nodes and learns from past placements.
"""

import random
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

import numpy as np
import torch

from drl_scheduler.config import DQNConfig
from drl_scheduler.data.memory import ReplayMemory, Transition
from drl_scheduler.models.schedule import Schedule, build_schedule
from drl_scheduler.models.value_function import TorchValueFunction, ValueFunction
from drl_scheduler.monitoring.metrics import (
    DQN_BUFFER_SIZE_GAUGE, DQN_EPSILON_GAUGE, DQN_EXPERIENCES_COUNTER,
    DQN_EXPLOITATION_COUNTER, DQN_EXPLORATION_COUNTER, DQN_TARGET_SYNC_COUNTER,
    DQN_TRAINING_LOSS_GAUGE, DQN_TRAINING_STEPS_COUNTER,
)
from drl_scheduler.utils.exceptions import (
    CheckpointError, FitError, InsufficientDataError, PredictionError,
)
from drl_scheduler.utils.logging_config import get_logger

logger = get_logger("Agent")


class TargetStrategy(str, Enum):
    """How the learning target of a sampled transition is computed."""
    IMMEDIATE = "immediate"        # target = reward
    BOOTSTRAPPED = "bootstrapped"  # target = reward + gamma * max target(next_state)


@dataclass(frozen=True)
class Hyperparameters:
    """Agent hyperparameters, fixed for the agent's lifetime."""
    gamma: float = 0.95
    epsilon_schedule: str = "exponential"
    epsilon_start: float = 1.0
    epsilon_end: float = 0.1
    epsilon_decay: float = 0.995
    target_update_interval: int = 100
    memory_capacity: int = 10000
    batch_size: int = 32
    target_strategy: TargetStrategy = TargetStrategy.IMMEDIATE
    seed: Optional[int] = None

    def __post_init__(self):
        if not 0.0 <= self.gamma <= 1.0:
            raise ValueError("gamma must be between 0.0 and 1.0")
        if self.target_update_interval < 1:
            raise ValueError("target_update_interval must be positive")
        if self.batch_size < 1 or self.memory_capacity < 1:
            raise ValueError("batch_size and memory_capacity must be positive")
        # Accept plain strings from configuration
        object.__setattr__(self, "target_strategy", TargetStrategy(self.target_strategy))

    @classmethod
    def from_config(cls, config: DQNConfig) -> "Hyperparameters":
        return cls(
            gamma=config.gamma,
            epsilon_schedule=config.epsilon_schedule,
            epsilon_start=config.epsilon_start,
            epsilon_end=config.epsilon_end,
            epsilon_decay=config.epsilon_decay,
            target_update_interval=config.target_update_interval,
            memory_capacity=config.memory_capacity,
            batch_size=config.batch_size,
            target_strategy=TargetStrategy(config.target_strategy),
            seed=config.seed,
        )


def immediate_target(agent: "DQNAgent", transition: Transition) -> float:
    return float(transition.reward)


def bootstrapped_target(agent: "DQNAgent", transition: Transition) -> float:
    next_state = transition.next_state
    if next_state is None or len(next_state) == 0:
        return float(transition.reward)
    next_values = agent.target.predict(next_state)
    return float(transition.reward + agent.hyperparameters.gamma * np.max(next_values))


TARGET_STRATEGIES: Dict[TargetStrategy, Callable[["DQNAgent", Transition], float]] = {
    TargetStrategy.IMMEDIATE: immediate_target,
    TargetStrategy.BOOTSTRAPPED: bootstrapped_target,
}


class DQNAgent:
    """
    Deep Q-learning agent for node scoring with epsilon-greedy exploration
    and experience replay.

    The agent is shared by every scheduling cycle, so all access to the
    memory, the value functions and the exploration state goes through a
    single lock. ``learn()`` and ``predict()`` block on model computation.
    """

    def __init__(self,
                 hyperparameters: Hyperparameters,
                 online: ValueFunction,
                 target: ValueFunction,
                 schedule: Optional[Schedule] = None):
        self.hyperparameters = hyperparameters
        self.batch_size = hyperparameters.batch_size

        # One random source for the process lifetime, seeded once
        self._rng = random.Random(hyperparameters.seed)
        self.memory = ReplayMemory(hyperparameters.memory_capacity, rng=self._rng)

        self.online = online
        self.target = target
        self.online.clone_to(self.target)

        self.schedule = schedule or build_schedule(
            hyperparameters.epsilon_schedule,
            hyperparameters.epsilon_start,
            hyperparameters.epsilon_end,
            hyperparameters.epsilon_decay,
        )
        self.epsilon = self.schedule.initial()
        self.steps = 0

        self._target_fn = TARGET_STRATEGIES[hyperparameters.target_strategy]
        self._lock = threading.Lock()

        DQN_EPSILON_GAUGE.set(self.epsilon)
        logger.info(f"Initialized DQN agent: epsilon={self.epsilon}, batch_size={self.batch_size}, "
                    f"capacity={hyperparameters.memory_capacity}, "
                    f"target_strategy={hyperparameters.target_strategy.value}")

    @classmethod
    def from_config(cls, config: DQNConfig, device: str = "cpu") -> "DQNAgent":
        """Build an agent with torch online/target value functions."""
        if config.seed is not None:
            torch.manual_seed(config.seed)

        def make(name: str) -> TorchValueFunction:
            return TorchValueFunction(
                name,
                feature_dim=config.feature_dim,
                hidden_dims=config.hidden_dims,
                learning_rate=config.learning_rate,
                device=device,
            )

        return cls(Hyperparameters.from_config(config), make("online"), make("target"))

    def predict(self, state: np.ndarray) -> np.ndarray:
        """
        Per-node values for ``state`` from the online value function.

        Raises:
            PredictionError: If the model cannot score the state
        """
        with self._lock:
            return self.online.predict(state)

    def choose_action(self, candidate_count: int) -> Optional[int]:
        """
        Decide between exploring and exploiting.

        Returns:
            A uniformly random index in [0, candidate_count) when exploring,
            or None when the caller should follow the predicted ranking
        """
        if candidate_count < 1:
            raise ValueError("candidate_count must be positive")

        with self._lock:
            if self._rng.random() < self.epsilon:
                action = self._rng.randrange(candidate_count)
                DQN_EXPLORATION_COUNTER.inc()
                logger.debug(f"Exploration: action={action} (epsilon={self.epsilon:.3f})")
                return action

        DQN_EXPLOITATION_COUNTER.inc()
        return None

    def remember(self, transition: Transition) -> None:
        """Store a transition, evicting the oldest one when memory is full."""
        with self._lock:
            self.memory.insert(transition)
            self._record_insert()

    def learn(self) -> Optional[float]:
        """
        Run one learning step.

        Returns:
            Training loss, or None when memory holds fewer than batch_size transitions

        Raises:
            FitError: If the online value function cannot be fitted
        """
        with self._lock:
            return self._learn()

    def observe(self, transition: Transition) -> Optional[float]:
        """
        Remember a transition and learn, as one step.

        If the learning step fails the transition is taken back out of memory
        so the caller can retry it later.
        """
        with self._lock:
            evicted = self.memory.insert(transition)
            try:
                loss = self._learn()
            except FitError:
                self.memory.rollback(evicted)
                raise
            self._record_insert()
            return loss

    def _record_insert(self) -> None:
        DQN_EXPERIENCES_COUNTER.inc()
        DQN_BUFFER_SIZE_GAUGE.set(len(self.memory))

    def _learn(self) -> Optional[float]:
        if len(self.memory) < self.batch_size:
            logger.debug("Not enough transitions for learning", size=len(self.memory), batch_size=self.batch_size)
            return None

        try:
            batch = self.memory.sample(self.batch_size)
        except InsufficientDataError:
            return None

        batch_states = []
        batch_values = []
        for transition in batch:
            rows = len(transition.state)
            if not 0 <= transition.action < rows:
                logger.warning("Skipping transition with action outside its state",
                               action=transition.action, rows=rows)
                continue
            try:
                values = self.online.predict(transition.state)
                values[transition.action] = self._target_fn(self, transition)
            except PredictionError as e:
                raise FitError(f"Failed to compute learning targets: {e}") from e
            batch_states.append(np.asarray(transition.state, dtype=np.float32))
            batch_values.append(values)

        if not batch_states:
            return None

        loss = self.online.fit_batch(np.concatenate(batch_states), np.concatenate(batch_values))

        self.steps += 1
        self.epsilon = self.schedule.value()
        self._update_target()

        DQN_TRAINING_LOSS_GAUGE.set(loss)
        DQN_TRAINING_STEPS_COUNTER.inc()
        DQN_EPSILON_GAUGE.set(self.epsilon)
        logger.debug(f"Training step {self.steps}: loss={loss:.4f}, epsilon={self.epsilon:.3f}")
        return loss

    def _update_target(self) -> None:
        """Copy online weights into the target network on the configured interval."""
        if self.steps % self.hyperparameters.target_update_interval == 0:
            self.online.clone_to(self.target)
            DQN_TARGET_SYNC_COUNTER.inc()
            logger.info(f"Target network updated (step {self.steps})")

    def save_checkpoint(self, path: str) -> None:
        """Persist both value functions and the learning progress."""
        with self._lock:
            try:
                checkpoint = {
                    'online': self.online.state_dict(),
                    'target': self.target.state_dict(),
                    'steps': self.steps,
                    'epsilon': self.epsilon,
                    'hyperparameters': {
                        'gamma': self.hyperparameters.gamma,
                        'batch_size': self.batch_size,
                        'target_update_interval': self.hyperparameters.target_update_interval,
                        'target_strategy': self.hyperparameters.target_strategy.value,
                    },
                }
                torch.save(checkpoint, path)
            except (AttributeError, OSError, RuntimeError) as e:
                raise CheckpointError(f"Failed to save checkpoint: {e}", context={"path": path}) from e
        logger.info(f"Checkpoint saved to {path}", steps=self.steps)

    def load_checkpoint(self, path: str) -> None:
        """Restore value functions, step count and epsilon from ``path``."""
        with self._lock:
            try:
                checkpoint = torch.load(path, map_location="cpu", weights_only=False)
                self.online.load_state_dict(checkpoint['online'])
                self.target.load_state_dict(checkpoint['target'])
            except (AttributeError, KeyError, OSError, RuntimeError) as e:
                raise CheckpointError(f"Failed to load checkpoint: {e}", context={"path": path}) from e
            self.steps = int(checkpoint.get('steps', 0))
            # Fast-forward the schedule so the next step keeps decaying from here
            for _ in range(self.steps):
                self.schedule.value()
            self.epsilon = float(checkpoint.get('epsilon', self.epsilon))
        DQN_EPSILON_GAUGE.set(self.epsilon)
        logger.info(f"Checkpoint loaded from {path}", steps=self.steps, epsilon=self.epsilon)

    def get_stats(self) -> Dict[str, Any]:
        """Get agent statistics."""
        with self._lock:
            return {
                'steps': self.steps,
                'epsilon': self.epsilon,
                'online_version': self.online.version,
                'target_version': self.target.version,
                'memory': self.memory.get_stats(),
            }
