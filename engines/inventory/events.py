"""
Stockline Inventory Engine — Trigger Event Types and Payload Builders
=======================================================================
Engine: Inventory

The engine does not decide when to run. External triggers arrive as
plain event dicts {"event_type": ..., "payload": {...}} and are routed
by engines/inventory/subscriptions.py.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping

from engines.inventory.models import LocationKey


# ══════════════════════════════════════════════════════════════
# EVENT TYPE CONSTANTS
# ══════════════════════════════════════════════════════════════

INVENTORY_TRANSACTION_SAVED_V1 = "inventory.transaction.saved.v1"
INVENTORY_TRANSACTIONS_IMPORTED_V1 = "inventory.transactions.imported.v1"
INVENTORY_PROJECTION_REBUILD_REQUESTED_V1 = "inventory.projection.rebuild_requested.v1"

INVENTORY_EVENT_TYPES = (
    INVENTORY_TRANSACTION_SAVED_V1,
    INVENTORY_TRANSACTIONS_IMPORTED_V1,
    INVENTORY_PROJECTION_REBUILD_REQUESTED_V1,
)


def is_inventory_event(event_type: str) -> bool:
    return event_type in INVENTORY_EVENT_TYPES


# ══════════════════════════════════════════════════════════════
# PAYLOAD BUILDERS
# ══════════════════════════════════════════════════════════════

def _event(event_type: str, payload: dict) -> Dict[str, Any]:
    return {"event_type": event_type, "payload": payload}


def build_transaction_saved_event(record: Mapping[str, Any]) -> Dict[str, Any]:
    """A transaction record was created or edited (single-record trigger)."""
    return _event(INVENTORY_TRANSACTION_SAVED_V1, {"record": dict(record)})


def build_transactions_imported_event(
    records: Iterable[Mapping[str, Any]], source: str = ""
) -> Dict[str, Any]:
    """Several transaction records arrived together (CSV / bulk import)."""
    return _event(
        INVENTORY_TRANSACTIONS_IMPORTED_V1,
        {"records": [dict(r) for r in records], "source": source},
    )


def build_rebuild_requested_event(key: LocationKey) -> Dict[str, Any]:
    """Rebuild the series of one key without applying any transaction."""
    return _event(
        INVENTORY_PROJECTION_REBUILD_REQUESTED_V1,
        {
            "item_code": key.item_code,
            "warehouse": key.warehouse,
            "location": key.location,
        },
    )
