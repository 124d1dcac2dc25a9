"""
Stockline Inventory Engine — Store Contracts
==============================================
What the reconciliation service needs from persistence.

Consumed:
    fetch_transactions(key, start, end)
    fetch_balance(key)
    applied_transaction_ids(transaction_ids)
Produced:
    upsert_balance(key, balance, applied_ids)
    upsert_projection_entries(key, entries)   keyed by (key, date)

InMemoryInventoryStore implements all three protocols and is used by
tests and bootstrap. The Django ORM implementation lives in
adapters/django_store.
"""

from __future__ import annotations

import threading
from datetime import date
from typing import Dict, Iterable, List, Optional, Protocol, Sequence, Set, Tuple

from engines.inventory.models import Balance, LocationKey, ProjectionEntry, Transaction


# ══════════════════════════════════════════════════════════════
# PROTOCOLS
# ══════════════════════════════════════════════════════════════

class TransactionSource(Protocol):
    def fetch_transactions(
        self, key: LocationKey, start: date, end: date
    ) -> List[Transaction]:
        """Transactions of `key` dated within [start, end], any status."""
        ...


class BalanceStore(Protocol):
    def fetch_balance(self, key: LocationKey) -> Optional[Balance]:
        ...

    def applied_transaction_ids(self, transaction_ids: Iterable[str]) -> Set[str]:
        """Those of `transaction_ids` already applied to a balance."""
        ...

    def upsert_balance(
        self, key: LocationKey, balance: Balance, applied_ids: Sequence[str] = ()
    ) -> bool:
        """
        Write the balance and record `applied_ids` as applied, together.
        Returns True if the balance was created.
        """
        ...


class ProjectionStore(Protocol):
    def upsert_projection_entries(
        self, key: LocationKey, entries: Sequence[ProjectionEntry]
    ) -> int:
        """Write one batch atomically. Returns how many were created."""
        ...

    def fetch_projection(
        self, key: LocationKey, start: date, end: date
    ) -> List[ProjectionEntry]:
        ...


class InventoryStore(TransactionSource, BalanceStore, ProjectionStore, Protocol):
    """Everything the reconciliation service reads and writes."""


# ══════════════════════════════════════════════════════════════
# IN-MEMORY IMPLEMENTATION
# ══════════════════════════════════════════════════════════════

class InMemoryInventoryStore:
    """
    Thread-safe in-memory store.

    Transactions are kept by id; re-adding an id replaces the earlier
    version (a planned transaction later confirmed, for instance).
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._transactions: Dict[str, Transaction] = {}
        self._balances: Dict[LocationKey, Balance] = {}
        self._applied: Dict[str, LocationKey] = {}
        self._projections: Dict[Tuple[LocationKey, date], ProjectionEntry] = {}
        self._projection_writes = 0
        self._batch_sizes: List[int] = []

    # ── Transactions ──────────────────────────────────────────

    def add_transaction(self, tx: Transaction) -> None:
        if not tx.transaction_id:
            raise ValueError("Stored transactions need a transaction_id.")
        with self._lock:
            self._transactions[tx.transaction_id] = tx

    def add_transactions(self, transactions: Iterable[Transaction]) -> None:
        for tx in transactions:
            self.add_transaction(tx)

    def fetch_transactions(
        self, key: LocationKey, start: date, end: date
    ) -> List[Transaction]:
        with self._lock:
            matches = [
                tx for tx in self._transactions.values()
                if tx.key == key
                and tx.transaction_date is not None
                and start <= tx.transaction_date <= end
            ]
        return sorted(matches, key=lambda tx: (tx.transaction_date, tx.transaction_id))

    # ── Balances ──────────────────────────────────────────────

    def fetch_balance(self, key: LocationKey) -> Optional[Balance]:
        with self._lock:
            return self._balances.get(key)

    def applied_transaction_ids(self, transaction_ids: Iterable[str]) -> Set[str]:
        with self._lock:
            return {tx_id for tx_id in transaction_ids if tx_id in self._applied}

    def upsert_balance(
        self, key: LocationKey, balance: Balance, applied_ids: Sequence[str] = ()
    ) -> bool:
        if balance.key != key:
            raise ValueError(f"Balance for {balance.key} written under {key}.")
        with self._lock:
            created = key not in self._balances
            self._balances[key] = balance
            for tx_id in applied_ids:
                self._applied.setdefault(tx_id, key)
            return created

    # ── Projection ────────────────────────────────────────────

    def upsert_projection_entries(
        self, key: LocationKey, entries: Sequence[ProjectionEntry]
    ) -> int:
        with self._lock:
            created = 0
            for entry in entries:
                slot = (key, entry.day)
                if slot not in self._projections:
                    created += 1
                self._projections[slot] = entry
            self._projection_writes += len(entries)
            self._batch_sizes.append(len(entries))
            return created

    def fetch_projection(
        self, key: LocationKey, start: date, end: date
    ) -> List[ProjectionEntry]:
        with self._lock:
            entries = [
                entry for (k, day), entry in self._projections.items()
                if k == key and start <= day <= end
            ]
        return sorted(entries, key=lambda e: e.day)

    # ── Introspection (tests) ─────────────────────────────────

    def projection_count(self, key: Optional[LocationKey] = None) -> int:
        with self._lock:
            if key is None:
                return len(self._projections)
            return sum(1 for k, _ in self._projections if k == key)

    @property
    def batch_sizes(self) -> List[int]:
        with self._lock:
            return list(self._batch_sizes)
