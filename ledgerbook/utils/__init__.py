# Utils Package
# Utility Functions and Helpers

from .logger import logger, setup_logger
from .decorators import retry, timed
from .locks import KeyedLock

__all__ = [
    "logger",
    "setup_logger",
    "retry",
    "timed",
    "KeyedLock"
]
