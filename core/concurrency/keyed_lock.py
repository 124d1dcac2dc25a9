"""
Stockline Core Concurrency — Keyed Mutual Exclusion
=====================================================
At most one holder per key; different keys never block each other.

RULES:
- One threading.Lock per active key, created on first use and
  discarded when the last user of the key leaves.
- Waiting is bounded: a key accepts one holder plus max_pending
  waiters. Further callers are rejected immediately with
  KeyQueueFullError instead of piling up.
- The registry guard is held only while bookkeeping, never while
  a caller runs its critical section.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Dict, Hashable, Iterator, Optional

logger = logging.getLogger("stockline.concurrency")


# ══════════════════════════════════════════════════════════════
# ERRORS
# ══════════════════════════════════════════════════════════════

class KeyedLockError(Exception):
    """Base error for keyed lock operations."""
    pass


class KeyQueueFullError(KeyedLockError):
    """Too many callers already waiting on this key."""

    def __init__(self, key: Hashable, max_pending: int):
        self.key = key
        self.max_pending = max_pending
        super().__init__(
            f"Key {key!r} already has {max_pending} pending waiters. "
            f"Trigger rejected."
        )


class KeyLockTimeoutError(KeyedLockError):
    """Lock for this key was not acquired within the timeout."""

    def __init__(self, key: Hashable, timeout: float):
        self.key = key
        self.timeout = timeout
        super().__init__(
            f"Timed out after {timeout}s waiting for key {key!r}."
        )


# ══════════════════════════════════════════════════════════════
# KEYED LOCK
# ══════════════════════════════════════════════════════════════

class _KeySlot:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.users = 0  # holder + waiters


class KeyedLock:
    """
    Per-key serialization primitive.

    Usage:
        locks = KeyedLock(max_pending=8)
        with locks.hold(("ITEM-1", "TKY", "A-01")):
            ...  # exclusive for this key only
    """

    def __init__(self, max_pending: int = 8):
        if max_pending < 0:
            raise ValueError(f"max_pending cannot be negative, got {max_pending}.")
        self._max_pending = max_pending
        self._guard = threading.Lock()
        self._slots: Dict[Hashable, _KeySlot] = {}

    @property
    def max_pending(self) -> int:
        return self._max_pending

    @contextmanager
    def hold(self, key: Hashable, timeout: Optional[float] = None) -> Iterator[None]:
        """
        Hold the lock for `key` for the duration of the block.

        Raises:
            KeyQueueFullError:   key already has max_pending waiters.
            KeyLockTimeoutError: timeout elapsed before acquiring.
        """
        slot = self._enter(key)
        acquired = False
        try:
            if timeout is None:
                acquired = slot.lock.acquire()
            else:
                acquired = slot.lock.acquire(timeout=timeout)
            if not acquired:
                raise KeyLockTimeoutError(key, timeout)
            yield
        finally:
            if acquired:
                slot.lock.release()
            self._leave(key, slot)

    def _enter(self, key: Hashable) -> _KeySlot:
        with self._guard:
            slot = self._slots.get(key)
            if slot is None:
                slot = _KeySlot()
                self._slots[key] = slot
            if slot.users > self._max_pending:
                logger.warning(
                    f"Keyed lock queue full for {key!r} "
                    f"({slot.users} users, max_pending={self._max_pending})"
                )
                raise KeyQueueFullError(key, self._max_pending)
            slot.users += 1
            return slot

    def _leave(self, key: Hashable, slot: _KeySlot) -> None:
        with self._guard:
            slot.users -= 1
            if slot.users == 0 and self._slots.get(key) is slot:
                del self._slots[key]

    # ── Introspection ─────────────────────────────────────────

    def users(self, key: Hashable) -> int:
        """Holder + waiters currently registered for `key`."""
        with self._guard:
            slot = self._slots.get(key)
            return slot.users if slot is not None else 0

    def active_keys(self) -> int:
        with self._guard:
            return len(self._slots)
