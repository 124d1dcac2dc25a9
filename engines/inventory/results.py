"""
Stockline Inventory Engine — Reconciliation Outcome Contract
==============================================================
Every reconciliation run produces exactly one outcome. No exceptions.

SUCCESS → balance and series written, nothing to report.
WARNING → written, but data-quality issues were observed.
FAILURE → not (fully) written; at least one failure issue explains why.

Rules:
- Outcome is immutable (frozen dataclass)
- FAILURE must carry at least one issue with a failure code
- SUCCESS must carry no issues
- Issues are machine-readable (code) and human-readable (message)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple

from engines.inventory.models import Balance, LocationKey, ProjectionEntry


# ══════════════════════════════════════════════════════════════
# ISSUE CODES
# ══════════════════════════════════════════════════════════════

class IssueCode:
    """
    Known issue codes.

    Convention: SCREAMING_SNAKE_CASE.
    """

    # ── Warnings (run continues) ──────────────────────────────
    MISSING_KEY_FIELDS = "MISSING_KEY_FIELDS"
    UNKNOWN_TRANSACTION_TYPE = "UNKNOWN_TRANSACTION_TYPE"
    UNKNOWN_STATUS = "UNKNOWN_STATUS"
    MISSING_DATE = "MISSING_DATE"
    FOREIGN_LOCATION_KEY = "FOREIGN_LOCATION_KEY"
    NEGATIVE_BALANCE = "NEGATIVE_BALANCE"
    PREDICTED_STOCKOUT = "PREDICTED_STOCKOUT"

    # ── Failures (run aborted for this key) ───────────────────
    ANCHOR_INCONSISTENCY = "ANCHOR_INCONSISTENCY"
    QUEUE_FULL = "QUEUE_FULL"
    LOCK_TIMEOUT = "LOCK_TIMEOUT"
    STORE_ERROR = "STORE_ERROR"
    INVALID_RECORD = "INVALID_RECORD"
    UNEXPECTED_ERROR = "UNEXPECTED_ERROR"


FAILURE_CODES = frozenset({
    IssueCode.ANCHOR_INCONSISTENCY,
    IssueCode.QUEUE_FULL,
    IssueCode.LOCK_TIMEOUT,
    IssueCode.STORE_ERROR,
    IssueCode.INVALID_RECORD,
    IssueCode.UNEXPECTED_ERROR,
})


@dataclass(frozen=True)
class ReconciliationIssue:
    """
    Structured warning or failure explanation.

    transaction_id is set when the issue concerns one transaction.
    """
    code: str
    message: str
    transaction_id: Optional[str] = None

    def __post_init__(self):
        if not self.code or not isinstance(self.code, str):
            raise ValueError("code must be a non-empty string.")
        if not self.message or not isinstance(self.message, str):
            raise ValueError("message must be a non-empty string.")

    @property
    def is_failure(self) -> bool:
        return self.code in FAILURE_CODES

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "transaction_id": self.transaction_id,
        }


# ══════════════════════════════════════════════════════════════
# OUTCOME
# ══════════════════════════════════════════════════════════════

class ReconciliationStatus(Enum):
    SUCCESS = "SUCCESS"
    WARNING = "WARNING"
    FAILURE = "FAILURE"


@dataclass(frozen=True)
class StockoutPrediction:
    """First future day whose projected ending quantity is <= 0."""
    day: date
    days_until: int
    projected_qty: Decimal


@dataclass(frozen=True)
class ReconciliationOutcome:
    """
    Result of reconciling one location key.

    Invariants:
        - FAILURE without a failure issue → ValueError
        - SUCCESS with issues → ValueError
    """
    key: LocationKey
    status: ReconciliationStatus
    issues: Tuple[ReconciliationIssue, ...] = ()
    balance: Optional[Balance] = None
    entries: Tuple[ProjectionEntry, ...] = ()
    stockout: Optional[StockoutPrediction] = None
    created: int = 0
    updated: int = 0
    attempts: int = 1

    def __post_init__(self):
        if not isinstance(self.status, ReconciliationStatus):
            raise ValueError(
                f"status must be ReconciliationStatus, got {type(self.status).__name__}."
            )
        if self.status == ReconciliationStatus.FAILURE and not any(
            i.is_failure for i in self.issues
        ):
            raise ValueError("FAILURE outcome must include a failure issue.")
        if self.status == ReconciliationStatus.SUCCESS and self.issues:
            raise ValueError("SUCCESS outcome must NOT include issues.")

    @classmethod
    def from_issues(cls, key: LocationKey, issues, **kwargs) -> ReconciliationOutcome:
        """Pick SUCCESS / WARNING / FAILURE from the collected issues."""
        issues = tuple(issues)
        if any(i.is_failure for i in issues):
            status = ReconciliationStatus.FAILURE
        elif issues:
            status = ReconciliationStatus.WARNING
        else:
            status = ReconciliationStatus.SUCCESS
        return cls(key=key, status=status, issues=issues, **kwargs)

    @property
    def succeeded(self) -> bool:
        return self.status != ReconciliationStatus.FAILURE

    @property
    def warnings(self) -> Tuple[ReconciliationIssue, ...]:
        return tuple(i for i in self.issues if not i.is_failure)

    @property
    def failures(self) -> Tuple[ReconciliationIssue, ...]:
        return tuple(i for i in self.issues if i.is_failure)


@dataclass
class BatchReconciliationResult:
    """Outcomes of a multi-key run. One failed key never stops the others."""

    outcomes: list = field(default_factory=list)
    skipped: list = field(default_factory=list)  # issues for unkeyed records

    @property
    def processed(self) -> int:
        return sum(1 for o in self.outcomes if o.succeeded)

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if not o.succeeded)

    @property
    def success(self) -> bool:
        return self.failed == 0

    def failures(self) -> list:
        return [o for o in self.outcomes if not o.succeeded]

    def summary(self) -> dict:
        return {
            "keys": len(self.outcomes),
            "processed": self.processed,
            "failed": self.failed,
            "skipped_records": len(self.skipped),
            "failures": [
                {"key": str(o.key), "issues": [i.to_dict() for i in o.failures]}
                for o in self.failures()
            ],
        }
