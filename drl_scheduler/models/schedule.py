"""
Exploration schedules for epsilon-greedy action selection.
"""

import math
from typing import Protocol


class Schedule(Protocol):
    """A decaying probability read by the agent."""

    def initial(self) -> float:
        ...

    def value(self) -> float:
        ...


class DecaySchedule:
    """
    Exponential decay toward a floor.

    Each call to ``value()`` advances the schedule by one step and returns
    ``max(floor, initial * rate ** steps)``.
    """

    def __init__(self, initial: float = 1.0, floor: float = 0.1, decay_rate: float = 0.995):
        if not 0.0 <= floor <= initial <= 1.0:
            raise ValueError("schedule requires 0 <= floor <= initial <= 1")
        if not 0.0 < decay_rate <= 1.0:
            raise ValueError("decay_rate must be in (0, 1]")
        self._initial = initial
        self.floor = floor
        self.decay_rate = decay_rate
        self._current = initial
        self.steps = 0

    def initial(self) -> float:
        return self._initial

    def value(self) -> float:
        self.steps += 1
        self._current = max(self.floor, self._current * self.decay_rate)
        return self._current


class LinearSchedule:
    """Linear decay from ``initial`` to ``floor`` over ``decay_steps`` calls."""

    def __init__(self, initial: float = 1.0, floor: float = 0.1, decay_steps: int = 1000):
        if not 0.0 <= floor <= initial <= 1.0:
            raise ValueError("schedule requires 0 <= floor <= initial <= 1")
        if decay_steps < 1:
            raise ValueError("decay_steps must be positive")
        self._initial = initial
        self.floor = floor
        self.decay_steps = decay_steps
        self.steps = 0

    def initial(self) -> float:
        return self._initial

    def value(self) -> float:
        self.steps = min(self.steps + 1, self.decay_steps)
        fraction = self.steps / self.decay_steps
        return max(self.floor, self._initial - fraction * (self._initial - self.floor))


def build_schedule(kind: str, start: float, end: float, decay: float) -> Schedule:
    """
    Build the configured schedule.

    For ``linear`` the number of decay steps is derived from ``decay`` so both
    kinds reach the floor after a comparable number of learning steps.
    """
    if kind == "exponential":
        return DecaySchedule(initial=start, floor=end, decay_rate=decay)
    if kind == "linear":
        if decay >= 1.0:
            steps = 1_000_000
        elif decay <= 0.0:
            steps = 1
        else:
            # steps for the exponential schedule to fall from start to end
            ratio = end / start if start > 0 and end > 0 else 1e-3
            steps = max(1, int(math.ceil(math.log(ratio) / math.log(decay))))
        return LinearSchedule(initial=start, floor=end, decay_steps=steps)
    raise ValueError(f"Unknown epsilon schedule: {kind}")
