"""Utility modules."""

from .lock import RWLock
from .logging import setup_logging

__all__ = [
    "RWLock",
    "setup_logging",
]
