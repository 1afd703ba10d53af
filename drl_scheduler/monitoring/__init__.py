"""
Monitoring.

Contains the Prometheus metrics exposed by the scheduler.
"""

from .metrics import *
