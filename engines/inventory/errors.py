"""
Stockline Inventory Engine — Errors
=====================================
Error types raised inside the engine.

The reconciliation service catches these per location key and turns
them into FAILURE outcomes; nothing here is meant to reach the host
process unhandled.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional


class InventoryEngineError(Exception):
    """Base error for inventory engine operations."""
    pass


class InvalidRecordError(InventoryEngineError):
    """A raw external record could not be parsed into a typed value."""

    def __init__(self, field_code: str, value, reason: str, record_id: Optional[str] = None):
        self.field_code = field_code
        self.value = value
        self.reason = reason
        self.record_id = record_id
        where = f" (record {record_id})" if record_id else ""
        super().__init__(
            f"Invalid value for field '{field_code}'{where}: {value!r} ({reason})"
        )


class UnsupportedTransactionError(InventoryEngineError, ValueError):
    """The Balance Updater was handed a transaction it must not apply."""

    def __init__(self, transaction_id: str, reason: str):
        self.transaction_id = transaction_id
        self.reason = reason
        super().__init__(f"Transaction '{transaction_id}' not applicable: {reason}")


class AnchorInconsistencyError(InventoryEngineError):
    """
    Reconstructed ending quantity for today differs from the balance.

    True by construction unless the inputs changed underneath the run
    (a concurrent write or clock skew). The run must be retried after
    re-fetching the balance.
    """

    def __init__(self, day: date, expected: Decimal, actual: Decimal):
        self.day = day
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Anchor mismatch on {day.isoformat()}: reconstructed ending "
            f"{actual} != authoritative current_qty {expected}."
        )


class StoreError(InventoryEngineError):
    """A persistence collaborator failed to read or write."""

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"Store operation '{operation}' failed: {reason}")
