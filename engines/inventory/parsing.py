"""
Stockline Inventory Engine — Record Parsing Boundary
======================================================
Turns raw external transaction records into typed Transaction values.

Raw records are mappings keyed by field code. A field may hold its
value directly, or wrapped as {"value": ...} the way the record API
returns it. Field codes and type/status labels come from
RecordFieldMap, so nothing past this module knows them.

RULES:
- Unrecognized type / status labels are NOT errors here: they parse to
  None and are reported downstream as warnings
- Malformed numbers and dates raise InvalidRecordError
- Blank numeric fields read as zero
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Mapping, Optional

from core.config import RecordFieldMap
from engines.inventory.errors import InvalidRecordError
from engines.inventory.models import (
    ZERO,
    Transaction,
    TransactionStatus,
    TransactionType,
    to_decimal,
)

_DEFAULT_FIELD_MAP = RecordFieldMap()


# ══════════════════════════════════════════════════════════════
# FIELD ACCESS
# ══════════════════════════════════════════════════════════════

def field_value(raw: Mapping[str, Any], code: str) -> Any:
    """Value of field `code`, unwrapping {"value": ...}. Missing → None."""
    value = raw.get(code)
    if isinstance(value, Mapping):
        value = value.get("value")
    return value


def _text(raw: Mapping[str, Any], code: str) -> str:
    value = field_value(raw, code)
    if value is None:
        return ""
    return str(value).strip()


def _optional_text(raw: Mapping[str, Any], code: str) -> Optional[str]:
    return _text(raw, code) or None


def _number(
    raw: Mapping[str, Any], code: str, record_id: Optional[str] = None
) -> Decimal:
    value = field_value(raw, code)
    try:
        return to_decimal(value)
    except ValueError as exc:
        raise InvalidRecordError(code, value, str(exc), record_id) from exc


def _optional_number(
    raw: Mapping[str, Any], code: str, record_id: Optional[str] = None
) -> Optional[Decimal]:
    value = field_value(raw, code)
    if value is None or value == "":
        return None
    return _number(raw, code, record_id)


def parse_day(value: Any, code: str = "date", record_id: Optional[str] = None) -> Optional[date]:
    """
    Calendar day from a date, datetime or ISO string.

    Datetime strings ("2026-03-01T09:00:00Z") keep only their date part.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        return date.fromisoformat(text[:10])
    except ValueError as exc:
        raise InvalidRecordError(code, value, "not an ISO date", record_id) from exc


# ══════════════════════════════════════════════════════════════
# LABELS
# ══════════════════════════════════════════════════════════════

def parse_transaction_type(
    label: str, field_map: RecordFieldMap = _DEFAULT_FIELD_MAP
) -> Optional[TransactionType]:
    canonical = field_map.type_labels.get(label.strip()) if label else None
    if canonical is None:
        return None
    return TransactionType(canonical)


def parse_status(
    label: str, field_map: RecordFieldMap = _DEFAULT_FIELD_MAP
) -> Optional[TransactionStatus]:
    canonical = field_map.status_labels.get(label.strip()) if label else None
    if canonical is None:
        return None
    return TransactionStatus(canonical)


# ══════════════════════════════════════════════════════════════
# RECORDS
# ══════════════════════════════════════════════════════════════

def parse_transaction(
    raw: Mapping[str, Any], field_map: RecordFieldMap = _DEFAULT_FIELD_MAP
) -> Transaction:
    """
    Parse one raw transaction record.

    Raises:
        InvalidRecordError: malformed number or date, or a negative unit cost.
    """
    fm = field_map
    transaction_id = _text(raw, fm.transaction_id)
    record_id = transaction_id or None
    raw_type = _text(raw, fm.transaction_type)
    raw_status = _text(raw, fm.status)
    unit_cost = _number(raw, fm.unit_cost, record_id)
    if unit_cost < ZERO:
        raise InvalidRecordError(
            fm.unit_cost, unit_cost, "cost cannot be negative", record_id
        )

    return Transaction(
        transaction_id=transaction_id,
        item_code=_text(raw, fm.item_code),
        warehouse=_text(raw, fm.warehouse),
        location=_text(raw, fm.location),
        transaction_type=parse_transaction_type(raw_type, fm),
        status=parse_status(raw_status, fm),
        transaction_date=parse_day(
            field_value(raw, fm.transaction_date), fm.transaction_date, record_id
        ),
        quantity=_number(raw, fm.quantity, record_id),
        unit_cost=unit_cost,
        physical_count=_optional_number(raw, fm.physical_count, record_id),
        before_qty=_optional_number(raw, fm.before_qty, record_id),
        po_number=_optional_text(raw, fm.po_number),
        reference_type=_optional_text(raw, fm.reference_type),
        adjustment_reason=_optional_text(raw, fm.adjustment_reason),
        remarks=_optional_text(raw, fm.remarks),
        raw_type=raw_type,
        raw_status=raw_status,
    )
