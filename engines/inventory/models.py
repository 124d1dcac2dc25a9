"""
Stockline Inventory Engine — Domain Types
===========================================
Engine: Inventory
Authority: Stockline Doctrine — Typed at the boundary, pure inside

RULES (NON-NEGOTIABLE):
- Quantities and costs are Decimal (never float); quantities are held
  at their stored precision of 4 places
- A location key is the (item_code, warehouse, location) triple
- Transactions are immutable values; an unrecognized type or status
  is represented as None and excluded downstream with a warning
- Balance and ProjectionEntry are immutable snapshots; updates
  produce new values (dataclasses.replace)

This file contains NO persistence logic.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Optional

from core.time import compact_date
from engines.inventory.costing import round_cost, round_qty

ZERO = Decimal(0)


def to_decimal(value: Any, default: Decimal = ZERO) -> Decimal:
    """
    Coerce a numeric-ish value to Decimal.

    None and "" map to `default`. Floats go through str() so 0.1
    stays 0.1. Anything unparseable raises ValueError.
    """
    if value is None or value == "":
        return default
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Boolean is not a quantity: {value!r}.")
    try:
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"Not a number: {value!r}.") from exc


# ══════════════════════════════════════════════════════════════
# ENUMS
# ══════════════════════════════════════════════════════════════

class TransactionType(Enum):
    RECEIVED = "received"       # Goods in (purchase receipt, return in)
    ISSUED = "issued"           # Goods out (project issue, defect out)
    ADJUSTMENT = "adjustment"   # Physical count overwrites quantity
    INITIAL = "initial"         # Opening stock, overwrites qty and cost


class TransactionStatus(Enum):
    PLANNED = "planned"         # Feeds projected series only
    CONFIRMED = "confirmed"     # Feeds balance and actual series
    CANCELLED = "cancelled"     # Excluded entirely


class AlertFlag(Enum):
    NORMAL = "normal"
    LOW_STOCK = "low_stock"
    OUT_OF_STOCK = "out_of_stock"


# ══════════════════════════════════════════════════════════════
# LOCATION KEY
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class LocationKey:
    """
    Identity of one balance line: (item_code, warehouse, location).

    Composite identifiers derived from the key are deterministic so
    that repeated reconciliation addresses the same stored records.
    """
    item_code: str
    warehouse: str
    location: str

    def __post_init__(self):
        for name in ("item_code", "warehouse", "location"):
            value = getattr(self, name)
            if not value or not isinstance(value, str):
                raise ValueError(f"{name} must be non-empty string.")

    @property
    def balance_id(self) -> str:
        return f"BAL-{self.item_code}-{self.warehouse}-{self.location}"

    def summary_id(self, day: date) -> str:
        return (
            f"SUM-{self.item_code}-{self.warehouse}-{self.location}-"
            f"{compact_date(day)}"
        )

    def __str__(self) -> str:
        return f"{self.item_code}/{self.warehouse}/{self.location}"


# ══════════════════════════════════════════════════════════════
# TRANSACTION
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Transaction:
    """
    One dated inventory transaction.

    Fields:
        transaction_id:   Stable identifier (assigned once, externally)
        item_code / warehouse / location:
                          Location key parts (may be blank on bad records)
        transaction_type: None when the raw type was not recognized
        status:           None when the raw status was not recognized
        transaction_date: Calendar day; None when absent on the record
        quantity:         Amount moved (meaning depends on type)
        unit_cost:        Used only for received / initial
        physical_count:   Adjustment only — new absolute quantity
        before_qty:       Adjustment only — quantity before the count
        raw_type / raw_status:
                          Original labels, kept for warnings
    """
    transaction_id: str
    item_code: str
    warehouse: str
    location: str
    transaction_type: Optional[TransactionType]
    status: Optional[TransactionStatus]
    transaction_date: Optional[date]
    quantity: Decimal = ZERO
    unit_cost: Decimal = ZERO
    physical_count: Optional[Decimal] = None
    before_qty: Optional[Decimal] = None
    po_number: Optional[str] = None
    reference_type: Optional[str] = None
    adjustment_reason: Optional[str] = None
    remarks: Optional[str] = None
    raw_type: str = ""
    raw_status: str = ""

    def __post_init__(self):
        if not isinstance(self.transaction_id, str):
            raise ValueError("transaction_id must be a string.")
        if self.transaction_type is not None and not isinstance(
            self.transaction_type, TransactionType
        ):
            raise ValueError("transaction_type must be TransactionType or None.")
        if self.status is not None and not isinstance(self.status, TransactionStatus):
            raise ValueError("status must be TransactionStatus or None.")
        object.__setattr__(self, "quantity", round_qty(to_decimal(self.quantity)))
        object.__setattr__(self, "unit_cost", to_decimal(self.unit_cost))
        for name in ("physical_count", "before_qty"):
            value = getattr(self, name)
            if value is not None:
                object.__setattr__(self, name, round_qty(to_decimal(value)))

    @property
    def key(self) -> Optional[LocationKey]:
        """Location key, or None when any key field is blank."""
        if not (self.item_code and self.warehouse and self.location):
            return None
        return LocationKey(self.item_code, self.warehouse, self.location)

    @property
    def is_confirmed(self) -> bool:
        return self.status == TransactionStatus.CONFIRMED

    @property
    def is_planned(self) -> bool:
        return self.status == TransactionStatus.PLANNED

    @property
    def adjustment_delta(self) -> Decimal:
        """physical_count - before_qty (missing values count as zero)."""
        return (self.physical_count or ZERO) - (self.before_qty or ZERO)


# ══════════════════════════════════════════════════════════════
# BALANCE
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Balance:
    """
    Authoritative current state of one location key.

    Owned exclusively by the Balance Updater. A key never seen before
    is represented by Balance.empty(): zero quantity, zero cost.
    """
    key: LocationKey
    current_qty: Decimal = ZERO
    average_cost: Decimal = ZERO
    safety_stock: Decimal = ZERO
    reorder_point: Decimal = ZERO
    alert_flag: AlertFlag = AlertFlag.OUT_OF_STOCK
    last_transaction_date: Optional[date] = None

    def __post_init__(self):
        if not isinstance(self.key, LocationKey):
            raise ValueError("key must be LocationKey.")
        if not isinstance(self.alert_flag, AlertFlag):
            raise ValueError("alert_flag must be AlertFlag enum.")
        for name in ("current_qty", "safety_stock", "reorder_point"):
            object.__setattr__(self, name, round_qty(to_decimal(getattr(self, name))))
        object.__setattr__(self, "average_cost", to_decimal(self.average_cost))
        if self.average_cost < 0:
            raise ValueError(
                f"average_cost cannot be negative, got {self.average_cost}."
            )

    @classmethod
    def empty(
        cls,
        key: LocationKey,
        safety_stock: Decimal = ZERO,
        reorder_point: Decimal = ZERO,
    ) -> Balance:
        return cls(key=key, safety_stock=safety_stock, reorder_point=reorder_point)

    @property
    def balance_id(self) -> str:
        return self.key.balance_id

    @property
    def inventory_value(self) -> Decimal:
        """current_qty × average_cost, rounded like costs."""
        return round_cost(self.current_qty * self.average_cost)


# ══════════════════════════════════════════════════════════════
# DAILY FLOW (Aggregator output)
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class DailyFlow:
    """Net flows of one calendar day, split actual vs planned."""
    received: Decimal = ZERO
    issued: Decimal = ZERO
    planned_received: Decimal = ZERO
    planned_issued: Decimal = ZERO

    @property
    def confirmed_net(self) -> Decimal:
        return self.received - self.issued

    @property
    def planned_net(self) -> Decimal:
        return self.planned_received - self.planned_issued


EMPTY_FLOW = DailyFlow()


# ══════════════════════════════════════════════════════════════
# PROJECTION ENTRY
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ProjectionEntry:
    """
    One day of the reconstructed series for one location key.

    Invariant: ending_qty == opening_qty + received_qty - issued_qty.
    """
    day: date
    opening_qty: Decimal
    received_qty: Decimal
    issued_qty: Decimal
    ending_qty: Decimal
    planned_received_qty: Decimal
    planned_issued_qty: Decimal
    projected_ending_qty: Decimal
    alert_flag: AlertFlag = AlertFlag.NORMAL

    @property
    def is_ledger_consistent(self) -> bool:
        return self.ending_qty == self.opening_qty + self.received_qty - self.issued_qty
