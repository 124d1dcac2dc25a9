"""
Stockline Inventory Engine — Event Subscriptions
==================================================
Entry points for external triggers.

Subscriptions:
- inventory.transaction.saved          → reconcile the record's key
- inventory.transactions.imported      → group records by key, reconcile each
- inventory.projection.rebuild_requested → rebuild one key's series

Raw records are parsed here, at the boundary. A record that cannot be
parsed or has no complete location key is skipped with a warning;
it never stops the rest of an import.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Union

from core.config import RecordFieldMap
from engines.inventory.aggregator import screen_transaction
from engines.inventory.errors import InvalidRecordError
from engines.inventory.events import (
    INVENTORY_PROJECTION_REBUILD_REQUESTED_V1,
    INVENTORY_TRANSACTION_SAVED_V1,
    INVENTORY_TRANSACTIONS_IMPORTED_V1,
)
from engines.inventory.models import LocationKey, Transaction
from engines.inventory.parsing import parse_transaction
from engines.inventory.results import (
    BatchReconciliationResult,
    IssueCode,
    ReconciliationIssue,
    ReconciliationOutcome,
)

logger = logging.getLogger("stockline.subscriptions")


INVENTORY_SUBSCRIPTIONS: Dict[str, str] = {
    INVENTORY_TRANSACTION_SAVED_V1: "handle_transaction_saved",
    INVENTORY_TRANSACTIONS_IMPORTED_V1: "handle_transactions_imported",
    INVENTORY_PROJECTION_REBUILD_REQUESTED_V1: "handle_rebuild_requested",
}

HandlerResult = Union[ReconciliationOutcome, BatchReconciliationResult, None]


class InventorySubscriptionHandler:
    """
    Routes trigger events to the reconciliation service.

    Field codes come from the service's EngineConfig unless a
    RecordFieldMap is given explicitly.
    """

    def __init__(self, reconciliation_service, field_map: Optional[RecordFieldMap] = None):
        self._service = reconciliation_service
        self._field_map = field_map or reconciliation_service.config.field_map

    def dispatch(self, event_data: dict) -> HandlerResult:
        event_type = event_data.get("event_type", "")
        handler_name = INVENTORY_SUBSCRIPTIONS.get(event_type)
        if handler_name is None:
            logger.debug(f"No inventory subscription for event type '{event_type}'")
            return None
        return getattr(self, handler_name)(event_data)

    def handle_transaction_saved(self, event_data: dict) -> Optional[ReconciliationOutcome]:
        """
        One transaction record was saved.

        Payload fields used: record
        Returns None when the record was skipped.
        """
        record = event_data.get("payload", {}).get("record")
        if not record:
            logger.warning("transaction.saved event without a record; ignored")
            return None

        try:
            tx = parse_transaction(record, self._field_map)
        except InvalidRecordError as exc:
            logger.warning(f"Unparseable transaction record skipped: {exc}")
            return None

        key = tx.key
        if key is None:
            issue = screen_transaction(tx)
            logger.warning(
                f"Transaction {tx.transaction_id or '<no id>'} skipped: "
                f"{issue.message if issue else 'no location key'}"
            )
            return None

        return self._service.reconcile(key, [tx])

    def handle_transactions_imported(self, event_data: dict) -> BatchReconciliationResult:
        """
        A batch of records arrived.

        Payload fields used: records, source
        """
        payload = event_data.get("payload", {})
        records = payload.get("records") or []
        source = payload.get("source", "")

        parsed: List[Transaction] = []
        skipped: List[ReconciliationIssue] = []
        for index, record in enumerate(records):
            try:
                parsed.append(parse_transaction(record, self._field_map))
            except InvalidRecordError as exc:
                logger.warning(f"Import record #{index} skipped: {exc}")
                skipped.append(ReconciliationIssue(
                    code=IssueCode.INVALID_RECORD,
                    message=str(exc),
                    transaction_id=exc.record_id,
                ))

        logger.info(
            f"Import{f' from {source}' if source else ''}: "
            f"{len(records)} records, {len(parsed)} parsed"
        )

        result = self._service.reconcile_batch(parsed)
        result.skipped[:0] = skipped
        return result

    def handle_rebuild_requested(self, event_data: dict) -> Optional[ReconciliationOutcome]:
        """
        Rebuild one key's series from its stored balance.

        Payload fields used: item_code, warehouse, location
        """
        payload: Dict[str, Any] = event_data.get("payload", {})
        try:
            key = LocationKey(
                item_code=str(payload.get("item_code") or ""),
                warehouse=str(payload.get("warehouse") or ""),
                location=str(payload.get("location") or ""),
            )
        except ValueError as exc:
            logger.warning(f"Rebuild request ignored: {exc}")
            return None
        return self._service.reconcile(key)
