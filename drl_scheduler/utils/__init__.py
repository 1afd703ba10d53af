"""
Utility modules.

Contains exceptions and logging configuration.
"""

from .exceptions import *
from .logging_config import *

__all__ = []
