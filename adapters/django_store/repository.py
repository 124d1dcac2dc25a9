"""
Stockline Django Store — Repository
=====================================
Django ORM implementation of TransactionSource, BalanceStore and
ProjectionStore.

Rules:
- Every write goes through update_or_create keyed by the deterministic
  identifier, so repeating a write is harmless
- Each projection batch is written inside one transaction.atomic block
- A balance row and the ids of the transactions it absorbed are
  written inside one transaction.atomic block
- Database errors surface as StoreError; the service turns them into
  STORE_ERROR outcomes
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, List, Optional, Sequence, Set

from django.db import DatabaseError, transaction

from adapters.django_store.models import (
    AppliedTransactionRecord,
    BalanceRecord,
    ProjectionRecord,
    TransactionRecord,
)
from engines.inventory.errors import StoreError
from engines.inventory.models import (
    AlertFlag,
    Balance,
    LocationKey,
    ProjectionEntry,
    Transaction,
)
from engines.inventory.parsing import parse_status, parse_transaction_type

logger = logging.getLogger("stockline.django_store")


# ══════════════════════════════════════════════════════════════
# ROW ↔ DOMAIN
# ══════════════════════════════════════════════════════════════

def _key_filter(key: LocationKey) -> dict:
    return {
        "item_code": key.item_code,
        "warehouse": key.warehouse,
        "location": key.location,
    }


def transaction_from_row(row: TransactionRecord) -> Transaction:
    return Transaction(
        transaction_id=row.transaction_id,
        item_code=row.item_code,
        warehouse=row.warehouse,
        location=row.location,
        transaction_type=parse_transaction_type(row.transaction_type),
        status=parse_status(row.status),
        transaction_date=row.transaction_date,
        quantity=row.quantity,
        unit_cost=row.unit_cost,
        physical_count=row.physical_count,
        before_qty=row.before_qty,
        po_number=row.po_number or None,
        reference_type=row.reference_type or None,
        adjustment_reason=row.adjustment_reason or None,
        remarks=row.remarks or None,
        raw_type=row.transaction_type,
        raw_status=row.status,
    )


def _transaction_defaults(tx: Transaction) -> dict:
    return {
        "item_code": tx.item_code,
        "warehouse": tx.warehouse,
        "location": tx.location,
        "transaction_type": (
            tx.transaction_type.value if tx.transaction_type else tx.raw_type
        ),
        "status": tx.status.value if tx.status else tx.raw_status,
        "transaction_date": tx.transaction_date,
        "quantity": tx.quantity,
        "unit_cost": tx.unit_cost,
        "physical_count": tx.physical_count,
        "before_qty": tx.before_qty,
        "po_number": tx.po_number or "",
        "reference_type": tx.reference_type or "",
        "adjustment_reason": tx.adjustment_reason or "",
        "remarks": tx.remarks or "",
    }


def balance_from_row(row: BalanceRecord) -> Balance:
    return Balance(
        key=LocationKey(row.item_code, row.warehouse, row.location),
        current_qty=row.current_qty,
        average_cost=row.average_cost,
        safety_stock=row.safety_stock,
        reorder_point=row.reorder_point,
        alert_flag=AlertFlag(row.alert_flag),
        last_transaction_date=row.last_transaction_date,
    )


def entry_from_row(row: ProjectionRecord) -> ProjectionEntry:
    return ProjectionEntry(
        day=row.date,
        opening_qty=row.opening_qty,
        received_qty=row.received_qty,
        issued_qty=row.issued_qty,
        ending_qty=row.ending_qty,
        planned_received_qty=row.planned_received_qty,
        planned_issued_qty=row.planned_issued_qty,
        projected_ending_qty=row.projected_ending_qty,
        alert_flag=AlertFlag(row.alert_flag),
    )


# ══════════════════════════════════════════════════════════════
# STORE
# ══════════════════════════════════════════════════════════════

class DjangoInventoryStore:
    """InventoryStore backed by the stockline_store Django app."""

    # ── Transactions ──────────────────────────────────────────

    def save_transaction(self, tx: Transaction) -> bool:
        """Insert or replace a transaction by id. Returns True if created."""
        if not tx.transaction_id:
            raise ValueError("Stored transactions need a transaction_id.")
        try:
            _, created = TransactionRecord.objects.update_or_create(
                transaction_id=tx.transaction_id,
                defaults=_transaction_defaults(tx),
            )
        except DatabaseError as exc:
            raise StoreError("save_transaction", str(exc)) from exc
        return created

    def save_transactions(self, transactions: Iterable[Transaction]) -> int:
        created = 0
        with transaction.atomic():
            for tx in transactions:
                created += int(self.save_transaction(tx))
        return created

    def fetch_transactions(
        self, key: LocationKey, start: date, end: date
    ) -> List[Transaction]:
        try:
            rows = TransactionRecord.objects.filter(
                transaction_date__range=(start, end), **_key_filter(key)
            ).order_by("transaction_date", "transaction_id")
            return [transaction_from_row(row) for row in rows]
        except DatabaseError as exc:
            raise StoreError("fetch_transactions", str(exc)) from exc

    # ── Balances ──────────────────────────────────────────────

    def fetch_balance(self, key: LocationKey) -> Optional[Balance]:
        try:
            row = BalanceRecord.objects.filter(balance_id=key.balance_id).first()
        except DatabaseError as exc:
            raise StoreError("fetch_balance", str(exc)) from exc
        return balance_from_row(row) if row is not None else None

    def applied_transaction_ids(self, transaction_ids: Iterable[str]) -> Set[str]:
        ids = list(transaction_ids)
        if not ids:
            return set()
        try:
            return set(
                AppliedTransactionRecord.objects.filter(
                    transaction_id__in=ids
                ).values_list("transaction_id", flat=True)
            )
        except DatabaseError as exc:
            raise StoreError("applied_transaction_ids", str(exc)) from exc

    def upsert_balance(
        self, key: LocationKey, balance: Balance, applied_ids: Sequence[str] = ()
    ) -> bool:
        if balance.key != key:
            raise ValueError(f"Balance for {balance.key} written under {key}.")
        try:
            with transaction.atomic():
                _, created = BalanceRecord.objects.update_or_create(
                    balance_id=key.balance_id,
                    defaults={
                        **_key_filter(key),
                        "current_qty": balance.current_qty,
                        "average_cost": balance.average_cost,
                        "inventory_value": balance.inventory_value,
                        "safety_stock": balance.safety_stock,
                        "reorder_point": balance.reorder_point,
                        "alert_flag": balance.alert_flag.value,
                        "last_transaction_date": balance.last_transaction_date,
                    },
                )
                AppliedTransactionRecord.objects.bulk_create(
                    [
                        AppliedTransactionRecord(
                            transaction_id=tx_id, balance_id=key.balance_id
                        )
                        for tx_id in applied_ids
                    ],
                    ignore_conflicts=True,
                )
        except DatabaseError as exc:
            raise StoreError("upsert_balance", str(exc)) from exc
        logger.debug(f"Balance {key.balance_id} {'created' if created else 'updated'}")
        return created

    # ── Projection ────────────────────────────────────────────

    def upsert_projection_entries(
        self, key: LocationKey, entries: Sequence[ProjectionEntry]
    ) -> int:
        created = 0
        try:
            with transaction.atomic():
                for entry in entries:
                    _, was_created = ProjectionRecord.objects.update_or_create(
                        date=entry.day,
                        **_key_filter(key),
                        defaults={
                            "summary_id": key.summary_id(entry.day),
                            "opening_qty": entry.opening_qty,
                            "received_qty": entry.received_qty,
                            "issued_qty": entry.issued_qty,
                            "ending_qty": entry.ending_qty,
                            "planned_received_qty": entry.planned_received_qty,
                            "planned_issued_qty": entry.planned_issued_qty,
                            "projected_ending_qty": entry.projected_ending_qty,
                            "alert_flag": entry.alert_flag.value,
                        },
                    )
                    created += int(was_created)
        except DatabaseError as exc:
            raise StoreError("upsert_projection_entries", str(exc)) from exc
        return created

    def fetch_projection(
        self, key: LocationKey, start: date, end: date
    ) -> List[ProjectionEntry]:
        try:
            rows = ProjectionRecord.objects.filter(
                date__range=(start, end), **_key_filter(key)
            ).order_by("date")
            return [entry_from_row(row) for row in rows]
        except DatabaseError as exc:
            raise StoreError("fetch_projection", str(exc)) from exc
