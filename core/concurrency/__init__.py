"""
Stockline Core Concurrency — Public API
=========================================
Keyed mutual exclusion with bounded waiting.
"""

from core.concurrency.keyed_lock import (
    KeyedLock,
    KeyedLockError,
    KeyLockTimeoutError,
    KeyQueueFullError,
)

__all__ = [
    "KeyedLock",
    "KeyedLockError",
    "KeyLockTimeoutError",
    "KeyQueueFullError",
]
