"""
DRL Scheduler: deep Q-learning node scoring for Kubernetes.
"""

__version__ = "1.0.0"
