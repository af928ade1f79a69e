"""
Slightly core layer.

Errors, configuration and logging shared by the engine and the app layer.
"""

from . import config
from . import error
from . import log

__all__ = [
    "config",
    "error",
    "log",
]
