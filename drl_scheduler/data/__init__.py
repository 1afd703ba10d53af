"""
Data handling.

Contains replay memory and Prometheus feature fetching.
"""

from .memory import ReplayMemory, Transition
from .prometheus import PrometheusClient
from .queries import FEATURE_ORDER, NodeQueries

__all__ = ['ReplayMemory', 'Transition', 'PrometheusClient', 'FEATURE_ORDER', 'NodeQueries']
