"""
Stockline Core Config — Engine Configuration
==============================================
Doctrine: No window sizes or field codes hardcoded in engine logic.

Window sizes, merge batching, queue bounds and the field-code mapping
used to parse raw external records are carried by one explicit
EngineConfig object handed to the service at construction time.
Deployments configure it through the STOCKLINE dictionary in Django
settings (see load_engine_config()).
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, Mapping, Optional


# ══════════════════════════════════════════════════════════════
# VALUE LABELS
# ══════════════════════════════════════════════════════════════

# Raw label → canonical value. The record API stores Japanese labels;
# canonical English values are accepted as-is.
DEFAULT_TYPE_LABELS: Dict[str, str] = {
    "received": "received",
    "issued": "issued",
    "adjustment": "adjustment",
    "initial": "initial",
    "入庫": "received",
    "出庫": "issued",
    "棚卸調整": "adjustment",
    "棚卸": "adjustment",
    "初期在庫": "initial",
}

DEFAULT_STATUS_LABELS: Dict[str, str] = {
    "planned": "planned",
    "confirmed": "confirmed",
    "cancelled": "cancelled",
    "予定": "planned",
    "確定": "confirmed",
    "取消": "cancelled",
}


# ══════════════════════════════════════════════════════════════
# RECORD FIELD MAP
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class RecordFieldMap:
    """
    Field codes of raw transaction records.

    Only the parsing boundary reads this. Everything past the
    boundary works with typed Transaction values.
    """

    # ── Transaction records ───────────────────────────────────
    transaction_id: str = "transaction_id"
    transaction_date: str = "transaction_date"
    transaction_type: str = "transaction_type"
    status: str = "status"
    item_code: str = "item_code"
    warehouse: str = "warehouse"
    location: str = "location"
    quantity: str = "quantity"
    unit_cost: str = "unit_cost"
    physical_count: str = "physical_count"
    before_qty: str = "before_qty"
    po_number: str = "po_number"
    reference_type: str = "reference_type"
    adjustment_reason: str = "adjustment_reason"
    remarks: str = "remarks"

    # ── Value labels ──────────────────────────────────────────
    type_labels: Mapping[str, str] = field(
        default_factory=lambda: dict(DEFAULT_TYPE_LABELS)
    )
    status_labels: Mapping[str, str] = field(
        default_factory=lambda: dict(DEFAULT_STATUS_LABELS)
    )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> RecordFieldMap:
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown field map keys: {', '.join(unknown)}.")
        values = dict(data)
        # Label overrides extend the defaults rather than replace them.
        if "type_labels" in values:
            values["type_labels"] = {**DEFAULT_TYPE_LABELS, **values["type_labels"]}
        if "status_labels" in values:
            values["status_labels"] = {**DEFAULT_STATUS_LABELS, **values["status_labels"]}
        return cls(**values)


# ══════════════════════════════════════════════════════════════
# ENGINE CONFIG
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class EngineConfig:
    """
    Reconciliation engine configuration.

    past_days / future_days:  projection window around "today".
    merge_batch_size:         projection entries written per store batch.
    max_pending_per_key:      triggers allowed to wait on one location key.
    max_anchor_retries:       re-fetch + rebuild attempts after an anchor mismatch.
    max_workers:              parallel location keys in batch reconciliation.
    """

    past_days: int = 30
    future_days: int = 90
    merge_batch_size: int = 100
    max_pending_per_key: int = 8
    max_anchor_retries: int = 1
    max_workers: int = 1
    field_map: RecordFieldMap = field(default_factory=RecordFieldMap)

    def __post_init__(self) -> None:
        if self.past_days < 0:
            raise ValueError(f"past_days cannot be negative, got {self.past_days}.")
        if self.future_days < 0:
            raise ValueError(f"future_days cannot be negative, got {self.future_days}.")
        if self.merge_batch_size < 1:
            raise ValueError(
                f"merge_batch_size must be positive, got {self.merge_batch_size}."
            )
        if self.max_pending_per_key < 1:
            raise ValueError(
                f"max_pending_per_key must be positive, got {self.max_pending_per_key}."
            )
        if self.max_anchor_retries < 0:
            raise ValueError(
                f"max_anchor_retries cannot be negative, got {self.max_anchor_retries}."
            )
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be positive, got {self.max_workers}.")

    @property
    def window_length(self) -> int:
        return self.past_days + 1 + self.future_days

    def with_overrides(self, **changes: Any) -> EngineConfig:
        return replace(self, **changes)

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> EngineConfig:
        """
        Build from a plain mapping (e.g. settings.STOCKLINE).

        Keys are case-insensitive; "field_map" may be a nested mapping.
        """
        if not data:
            return cls()
        values = {str(k).lower(): v for k, v in data.items()}
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ValueError(f"Unknown engine config keys: {', '.join(unknown)}.")
        field_map = values.pop("field_map", None)
        if isinstance(field_map, Mapping):
            values["field_map"] = RecordFieldMap.from_mapping(field_map)
        elif field_map is not None:
            values["field_map"] = field_map
        return cls(**values)


def load_engine_config() -> EngineConfig:
    """Read EngineConfig from Django settings.STOCKLINE (defaults if absent)."""
    from django.conf import settings

    return EngineConfig.from_mapping(getattr(settings, "STOCKLINE", None))
