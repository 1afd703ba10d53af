"""
Machine learning models and learning logic.

Contains the Q-network, value functions, exploration schedules
and the scheduling agent.
"""

from .agent import DQNAgent, Hyperparameters, TargetStrategy
from .network import NodeQNetwork
from .schedule import DecaySchedule, LinearSchedule, build_schedule
from .value_function import TorchValueFunction, ValueFunction

__all__ = [
    'DQNAgent', 'Hyperparameters', 'TargetStrategy', 'NodeQNetwork',
    'DecaySchedule', 'LinearSchedule', 'build_schedule',
    'TorchValueFunction', 'ValueFunction',
]
