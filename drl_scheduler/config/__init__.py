"""
Configuration package for the DRL scheduler.

This package contains all configuration modules organized by component.
"""

from .dqn_config import DQNConfig
from .reward_config import RewardConfig
from .infrastructure_config import PrometheusConfig, ServerConfig
from .scheduler_config import SchedulerConfig, LogLevel

from .main import DRLSchedulerConfig, load_config, get_config

__all__ = [
    # Component configs
    'DQNConfig',
    'RewardConfig',
    'PrometheusConfig',
    'ServerConfig',
    'SchedulerConfig',
    'LogLevel',
    # Main config
    'DRLSchedulerConfig',
    'load_config',
    'get_config'
]
