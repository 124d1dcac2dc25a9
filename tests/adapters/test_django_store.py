from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal

import pytest

from adapters.django_store.models import (
    AppliedTransactionRecord,
    BalanceRecord,
    ProjectionRecord,
    TransactionRecord,
)
from adapters.django_store.repository import DjangoInventoryStore
from core.config import EngineConfig
from core.time import FixedClock
from engines.inventory.merger import SummaryMerger
from engines.inventory.models import (
    AlertFlag,
    Balance,
    LocationKey,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from engines.inventory.projection import reconstruct
from engines.inventory.results import ReconciliationStatus
from engines.inventory.services import ReconciliationService

pytestmark = pytest.mark.django_db(transaction=True)


TODAY = date(2026, 3, 31)
KEY = LocationKey("ITEM-1", "TKY", "A-01")


def _tx(tx_id: str, tx_type, quantity, unit_cost="0", offset: int = 0, **kwargs) -> Transaction:
    return Transaction(
        transaction_id=tx_id,
        item_code=KEY.item_code,
        warehouse=KEY.warehouse,
        location=KEY.location,
        transaction_type=tx_type,
        status=kwargs.pop("status", TransactionStatus.CONFIRMED),
        transaction_date=TODAY + timedelta(days=offset),
        quantity=Decimal(str(quantity)),
        unit_cost=Decimal(unit_cost),
        **kwargs,
    )


def test_transaction_round_trip_keeps_labels_and_references() -> None:
    store = DjangoInventoryStore()
    tx = _tx(
        "TX-1", TransactionType.ADJUSTMENT, 0,
        physical_count=Decimal(65), before_qty=Decimal(70),
        adjustment_reason="破損", po_number="PO-1",
    )
    assert store.save_transaction(tx) is True
    assert store.save_transaction(tx) is False

    [loaded] = store.fetch_transactions(KEY, TODAY, TODAY)
    assert loaded.transaction_type == TransactionType.ADJUSTMENT
    assert loaded.status == TransactionStatus.CONFIRMED
    assert loaded.adjustment_delta == Decimal(-5)
    assert loaded.adjustment_reason == "破損"
    assert loaded.po_number == "PO-1"
    assert loaded.remarks is None


def test_unknown_type_is_stored_raw_and_read_back_as_none() -> None:
    store = DjangoInventoryStore()
    store.save_transaction(_tx("TX-1", None, 3, raw_type="移動"))
    [loaded] = store.fetch_transactions(KEY, TODAY, TODAY)
    assert loaded.transaction_type is None
    assert loaded.raw_type == "移動"


def test_fetch_transactions_filters_by_key_and_window() -> None:
    store = DjangoInventoryStore()
    store.save_transactions([
        _tx("TX-1", TransactionType.RECEIVED, 1, offset=-40),
        _tx("TX-2", TransactionType.RECEIVED, 1, offset=-1),
        _tx("TX-3", TransactionType.RECEIVED, 1, offset=0),
    ])
    TransactionRecord.objects.create(
        transaction_id="TX-OTHER", item_code="ITEM-2", warehouse="TKY", location="A-01",
        transaction_type="received", status="confirmed", transaction_date=TODAY, quantity=1,
    )
    loaded = store.fetch_transactions(KEY, TODAY - timedelta(days=30), TODAY)
    assert [tx.transaction_id for tx in loaded] == ["TX-2", "TX-3"]


def test_balance_upsert_creates_then_updates() -> None:
    store = DjangoInventoryStore()
    balance = Balance(KEY, current_qty=Decimal(70), average_cost=Decimal("10.00"),
                      safety_stock=Decimal(20), alert_flag=AlertFlag.NORMAL,
                      last_transaction_date=TODAY)
    assert store.fetch_balance(KEY) is None
    assert store.upsert_balance(KEY, balance) is True
    assert store.upsert_balance(KEY, balance) is False

    row = BalanceRecord.objects.get(balance_id="BAL-ITEM-1-TKY-A-01")
    assert row.inventory_value == Decimal("700.00")

    loaded = store.fetch_balance(KEY)
    assert loaded.current_qty == Decimal(70)
    assert loaded.average_cost == Decimal("10.00")
    assert loaded.alert_flag == AlertFlag.NORMAL
    assert loaded.last_transaction_date == TODAY
    assert BalanceRecord.objects.count() == 1


def test_projection_merge_is_idempotent_and_keyed_by_date() -> None:
    store = DjangoInventoryStore()
    merger = SummaryMerger(store, batch_size=100)
    entries = reconstruct(Decimal(70), {}, TODAY)

    first = merger.merge(KEY, entries)
    second = merger.merge(KEY, entries)

    assert (first.created, first.updated, first.batches) == (121, 0, 2)
    assert (second.created, second.updated) == (0, 121)
    assert ProjectionRecord.objects.count() == 121
    row = ProjectionRecord.objects.get(item_code="ITEM-1", date=TODAY)
    assert row.summary_id == "SUM-ITEM-1-TKY-A-01-20260331"


def test_projection_outside_window_is_preserved() -> None:
    store = DjangoInventoryStore()
    merger = SummaryMerger(store)
    merger.merge(KEY, reconstruct(Decimal(70), {}, TODAY - timedelta(days=10)))
    merger.merge(KEY, reconstruct(Decimal(70), {}, TODAY))
    assert ProjectionRecord.objects.count() == 131


def test_service_end_to_end_on_orm() -> None:
    store = DjangoInventoryStore()
    service = ReconciliationService(store, EngineConfig(), clock=FixedClock(TODAY))

    receive = _tx("TX-1", TransactionType.RECEIVED, 100, "10.00", offset=-2)
    issue = _tx("TX-2", TransactionType.ISSUED, 30)
    planned = _tx("TX-3", TransactionType.ISSUED, 80, offset=5, status=TransactionStatus.PLANNED)
    store.save_transactions([receive, issue, planned])

    service.reconcile(KEY, [receive])
    outcome = service.reconcile(KEY, [issue, planned])

    assert outcome.status == ReconciliationStatus.WARNING
    assert outcome.stockout.day == TODAY + timedelta(days=5)
    assert store.fetch_balance(KEY).current_qty == Decimal(70)

    series = {e.day: e for e in store.fetch_projection(
        KEY, TODAY - timedelta(days=30), TODAY + timedelta(days=90)
    )}
    assert len(series) == 121
    assert series[TODAY].ending_qty == Decimal(70)
    assert series[TODAY - timedelta(days=2)].opening_qty == Decimal(0)
    assert series[TODAY + timedelta(days=5)].projected_ending_qty == Decimal(-10)
    assert series[TODAY + timedelta(days=5)].alert_flag == AlertFlag.OUT_OF_STOCK


def test_applied_ids_are_recorded_with_the_balance() -> None:
    store = DjangoInventoryStore()
    balance = Balance(KEY, current_qty=Decimal(10))
    store.upsert_balance(KEY, balance, applied_ids=["TX-1", "TX-2"])
    store.upsert_balance(KEY, balance, applied_ids=["TX-2"])

    assert DjangoInventoryStore().applied_transaction_ids(["TX-1", "TX-2", "TX-3"]) == {
        "TX-1", "TX-2",
    }
    assert AppliedTransactionRecord.objects.count() == 2
    assert AppliedTransactionRecord.objects.get(transaction_id="TX-1").balance_id == KEY.balance_id
    assert store.applied_transaction_ids([]) == set()


def test_redelivered_trigger_is_not_applied_twice_on_orm() -> None:
    store = DjangoInventoryStore()
    service = ReconciliationService(store, EngineConfig(), clock=FixedClock(TODAY))
    receive = _tx("TX-1", TransactionType.RECEIVED, 100, "10.00")
    store.save_transaction(receive)

    service.reconcile(KEY, [receive])
    outcome = service.reconcile(KEY, [receive])

    assert outcome.status == ReconciliationStatus.SUCCESS
    assert store.fetch_balance(KEY).current_qty == Decimal(100)


def test_fine_grained_quantity_survives_the_anchor_check() -> None:
    store = DjangoInventoryStore()
    service = ReconciliationService(
        store, EngineConfig(max_anchor_retries=0), clock=FixedClock(TODAY)
    )
    receive = _tx("TX-1", TransactionType.RECEIVED, "1.23456", "10.00")
    store.save_transaction(receive)

    outcome = service.reconcile(KEY, [receive])

    assert outcome.status == ReconciliationStatus.SUCCESS
    assert outcome.attempts == 1
    assert store.fetch_balance(KEY).current_qty == Decimal("1.2346")
