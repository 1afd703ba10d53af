"""
Core scheduling modules.

Contains the scoring plugin, its reward system and the scheduler-extender
HTTP service.
"""

from .framework import MAX_NODE_SCORE, CycleContext, Decision, NodeScore, Pod, PreScoreResult
from .rewards import RewardAggregator, RewardCalculator
from .plugin import DRLSchedulerPlugin, PendingDecision
from .extender import setup_http_server

__all__ = [
    'MAX_NODE_SCORE', 'CycleContext', 'Decision', 'NodeScore', 'Pod', 'PreScoreResult',
    'RewardAggregator', 'RewardCalculator',
    'DRLSchedulerPlugin', 'PendingDecision',
    'setup_http_server',
]
