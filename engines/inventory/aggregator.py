"""
Stockline Inventory Engine — Transaction Aggregator
=====================================================
Reduces the transactions of one location key into one net-flow
tuple per calendar day of the projection window.

Bucketing rules:
- confirmed received / initial  → received
- confirmed issued              → issued
- confirmed adjustment          → physical_count - before_qty,
                                  positive into received, negative into issued
- planned received / initial    → planned_received
- planned issued                → planned_issued
- cancelled                     → ignored
- planned adjustment            → no effect (a count is only real once done)

Records that cannot be bucketed (blank key fields, foreign key,
unrecognized type or status, no date) are excluded and reported as
warnings. Records dated outside the window are ignored silently.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from core.time import DateWindow
from engines.inventory.models import (
    EMPTY_FLOW,
    ZERO,
    DailyFlow,
    LocationKey,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from engines.inventory.results import IssueCode, ReconciliationIssue

logger = logging.getLogger("stockline.inventory")

_INBOUND_TYPES = (TransactionType.RECEIVED, TransactionType.INITIAL)


@dataclass
class _FlowBucket:
    """Internal mutable accumulator (not exposed externally)."""
    received: Decimal = ZERO
    issued: Decimal = ZERO
    planned_received: Decimal = ZERO
    planned_issued: Decimal = ZERO

    def freeze(self) -> DailyFlow:
        return DailyFlow(
            received=self.received,
            issued=self.issued,
            planned_received=self.planned_received,
            planned_issued=self.planned_issued,
        )


@dataclass(frozen=True)
class AggregationResult:
    """Per-day flows for every day of the window, plus exclusion warnings."""
    window: DateWindow
    flows: Dict[date, DailyFlow]
    issues: Tuple[ReconciliationIssue, ...] = ()
    counted: int = 0

    def flow(self, day: date) -> DailyFlow:
        return self.flows.get(day, EMPTY_FLOW)


def missing_key_fields(tx: Transaction) -> Tuple[str, ...]:
    return tuple(
        name for name in ("item_code", "warehouse", "location")
        if not getattr(tx, name)
    )


def screen_transaction(
    tx: Transaction, key: Optional[LocationKey] = None
) -> Optional[ReconciliationIssue]:
    """
    Return a warning if the transaction can never be bucketed.

    Cancelled transactions are not an issue; they are simply skipped.
    """
    missing = missing_key_fields(tx)
    if missing:
        return ReconciliationIssue(
            code=IssueCode.MISSING_KEY_FIELDS,
            message=f"Missing key fields: {', '.join(missing)}.",
            transaction_id=tx.transaction_id,
        )
    if key is not None and tx.key != key:
        return ReconciliationIssue(
            code=IssueCode.FOREIGN_LOCATION_KEY,
            message=f"Transaction belongs to {tx.key}, not {key}.",
            transaction_id=tx.transaction_id,
        )
    if tx.status is None:
        return ReconciliationIssue(
            code=IssueCode.UNKNOWN_STATUS,
            message=f"Unrecognized status '{tx.raw_status}'.",
            transaction_id=tx.transaction_id,
        )
    if tx.status == TransactionStatus.CANCELLED:
        return None
    if tx.transaction_type is None:
        return ReconciliationIssue(
            code=IssueCode.UNKNOWN_TRANSACTION_TYPE,
            message=f"Unrecognized transaction type '{tx.raw_type}'.",
            transaction_id=tx.transaction_id,
        )
    if tx.transaction_date is None:
        return ReconciliationIssue(
            code=IssueCode.MISSING_DATE,
            message="Transaction has no date.",
            transaction_id=tx.transaction_id,
        )
    return None


def _apply(bucket: _FlowBucket, tx: Transaction) -> bool:
    """Add one screened transaction to its bucket. Returns True if counted."""
    tx_type = tx.transaction_type

    if tx.status == TransactionStatus.CONFIRMED:
        if tx_type in _INBOUND_TYPES:
            bucket.received += tx.quantity
        elif tx_type == TransactionType.ISSUED:
            bucket.issued += tx.quantity
        elif tx_type == TransactionType.ADJUSTMENT:
            diff = tx.adjustment_delta
            if diff > 0:
                bucket.received += diff
            elif diff < 0:
                bucket.issued += abs(diff)
        return True

    if tx.status == TransactionStatus.PLANNED:
        if tx_type in _INBOUND_TYPES:
            bucket.planned_received += tx.quantity
            return True
        if tx_type == TransactionType.ISSUED:
            bucket.planned_issued += tx.quantity
            return True

    return False


def aggregate_by_date(
    transactions: Iterable[Transaction],
    window: DateWindow,
    key: Optional[LocationKey] = None,
) -> AggregationResult:
    """
    Bucket transactions into per-day flows over `window`.

    Args:
        transactions: Transactions for one location key (any order).
        window:       Days to produce; every day gets an entry (zero-filled).
        key:          When given, transactions of any other key are
                      excluded with a FOREIGN_LOCATION_KEY warning.

    Returns:
        AggregationResult — flows for every day of the window.
    """
    buckets: Dict[date, _FlowBucket] = {day: _FlowBucket() for day in window.days()}
    issues: List[ReconciliationIssue] = []
    counted = 0

    for tx in transactions:
        issue = screen_transaction(tx, key)
        if issue is not None:
            logger.warning(
                f"Transaction excluded from aggregation: "
                f"{tx.transaction_id or '<no id>'} ({issue.code}) {issue.message}"
            )
            issues.append(issue)
            continue
        if tx.status == TransactionStatus.CANCELLED:
            continue
        bucket = buckets.get(tx.transaction_date)
        if bucket is None:
            continue  # outside the window
        if _apply(bucket, tx):
            counted += 1

    logger.debug(
        f"Aggregated {counted} transactions over "
        f"{window.start.isoformat()}..{window.end.isoformat()}"
        f"{f' for {key}' if key else ''}"
    )

    return AggregationResult(
        window=window,
        flows={day: bucket.freeze() for day, bucket in buckets.items()},
        issues=tuple(issues),
        counted=counted,
    )
