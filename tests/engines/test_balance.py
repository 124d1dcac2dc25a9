"""
Tests for engines.inventory.balance — Balance Updater and alert flags.
"""

import logging
from datetime import date
from decimal import Decimal

import pytest

from engines.inventory.balance import alert_flag, apply_transaction, apply_transactions
from engines.inventory.errors import UnsupportedTransactionError
from engines.inventory.models import (
    AlertFlag,
    Balance,
    LocationKey,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from engines.inventory.results import IssueCode

KEY = LocationKey("ITEM-1", "TKY", "A-01")
TODAY = date(2026, 3, 31)


def _tx(
    tx_id: str,
    tx_type,
    quantity=0,
    unit_cost=0,
    status=TransactionStatus.CONFIRMED,
    day=TODAY,
    **kwargs,
) -> Transaction:
    return Transaction(
        transaction_id=tx_id,
        item_code=KEY.item_code,
        warehouse=KEY.warehouse,
        location=KEY.location,
        transaction_type=tx_type,
        status=status,
        transaction_date=day,
        quantity=Decimal(str(quantity)),
        unit_cost=Decimal(str(unit_cost)),
        **kwargs,
    )


# ── Alert Flag ───────────────────────────────────────────────

class TestAlertFlag:
    @pytest.mark.parametrize("qty, safety, expected", [
        (0, 10, AlertFlag.OUT_OF_STOCK),
        (5, 10, AlertFlag.LOW_STOCK),
        (10, 10, AlertFlag.NORMAL),
        (-3, 10, AlertFlag.OUT_OF_STOCK),
        (1, 0, AlertFlag.NORMAL),
        (0, 0, AlertFlag.OUT_OF_STOCK),
    ])
    def test_classification(self, qty, safety, expected):
        assert alert_flag(Decimal(qty), Decimal(safety)) == expected


# ── Single transactions ──────────────────────────────────────

class TestApplyTransaction:
    def test_receive_into_empty(self):
        balance = Balance.empty(KEY, safety_stock=Decimal(20))
        update = apply_transaction(balance, _tx("T1", TransactionType.RECEIVED, 100, "10.00"), TODAY)
        assert update.balance.current_qty == Decimal(100)
        assert update.balance.average_cost == Decimal("10.00")
        assert update.balance.alert_flag == AlertFlag.NORMAL
        assert update.balance.last_transaction_date == TODAY
        assert update.issues == ()
        assert update.applied == 1

    def test_receive_updates_moving_average(self):
        balance = Balance(KEY, current_qty=Decimal(100), average_cost=Decimal("10.00"))
        update = apply_transaction(balance, _tx("T1", TransactionType.RECEIVED, 50, "13.00"), TODAY)
        assert update.balance.current_qty == Decimal(150)
        assert update.balance.average_cost == Decimal("11.00")

    def test_issue_keeps_cost(self):
        balance = Balance(KEY, current_qty=Decimal(100), average_cost=Decimal("10.00"))
        update = apply_transaction(balance, _tx("T1", TransactionType.ISSUED, 30), TODAY)
        assert update.balance.current_qty == Decimal(70)
        assert update.balance.average_cost == Decimal("10.00")

    def test_issue_below_zero_warns(self):
        balance = Balance(KEY, current_qty=Decimal(10), average_cost=Decimal("5.00"))
        update = apply_transaction(balance, _tx("T9", TransactionType.ISSUED, 25), TODAY)
        assert update.balance.current_qty == Decimal(-15)
        assert update.balance.alert_flag == AlertFlag.OUT_OF_STOCK
        assert [i.code for i in update.issues] == [IssueCode.NEGATIVE_BALANCE]
        assert update.issues[0].transaction_id == "T9"

    def test_adjustment_overwrites_quantity(self):
        balance = Balance(KEY, current_qty=Decimal(70), average_cost=Decimal("10.00"))
        tx = _tx(
            "T1", TransactionType.ADJUSTMENT,
            physical_count=Decimal(65), before_qty=Decimal(70),
        )
        update = apply_transaction(balance, tx, TODAY)
        assert update.balance.current_qty == Decimal(65)
        assert update.balance.average_cost == Decimal("10.00")

    def test_initial_overwrites_quantity_and_cost(self):
        balance = Balance(KEY, current_qty=Decimal(70), average_cost=Decimal("10.00"))
        update = apply_transaction(balance, _tx("T1", TransactionType.INITIAL, 40, "8.50"), TODAY)
        assert update.balance.current_qty == Decimal(40)
        assert update.balance.average_cost == Decimal("8.50")

    def test_missing_date_uses_today(self):
        balance = Balance.empty(KEY)
        tx = _tx("T1", TransactionType.RECEIVED, 5, "1.00", day=None)
        update = apply_transaction(balance, tx, TODAY)
        assert update.balance.last_transaction_date == TODAY

    def test_unknown_type_leaves_balance_unchanged(self):
        balance = Balance(KEY, current_qty=Decimal(70), average_cost=Decimal("10.00"))
        tx = _tx("T1", None, 10, raw_type="移動")
        update = apply_transaction(balance, tx, TODAY)
        assert update.balance is balance
        assert update.applied == 0
        assert [i.code for i in update.issues] == [IssueCode.UNKNOWN_TRANSACTION_TYPE]

    def test_unknown_type_is_logged_as_warning(self, caplog):
        tx = _tx("T1", None, 10, raw_type="移動")
        with caplog.at_level(logging.WARNING, logger="stockline.inventory"):
            apply_transaction(Balance.empty(KEY), tx, TODAY)
        [record] = [r for r in caplog.records if "移動" in r.getMessage()]
        assert record.levelno == logging.WARNING

    @pytest.mark.parametrize("status", [TransactionStatus.PLANNED, TransactionStatus.CANCELLED])
    def test_rejects_non_confirmed(self, status):
        with pytest.raises(UnsupportedTransactionError):
            apply_transaction(
                Balance.empty(KEY),
                _tx("T1", TransactionType.RECEIVED, 5, status=status),
                TODAY,
            )

    def test_non_confirmed_is_a_value_error(self):
        with pytest.raises(ValueError):
            apply_transaction(
                Balance.empty(KEY),
                _tx("T1", TransactionType.RECEIVED, 5, status=TransactionStatus.PLANNED),
                TODAY,
            )

    def test_rejects_foreign_key(self):
        tx = Transaction(
            transaction_id="T1", item_code="OTHER", warehouse="TKY", location="A-01",
            transaction_type=TransactionType.RECEIVED,
            status=TransactionStatus.CONFIRMED,
            transaction_date=TODAY, quantity=1,
        )
        with pytest.raises(UnsupportedTransactionError, match="belongs to"):
            apply_transaction(Balance.empty(KEY), tx, TODAY)

    def test_input_balance_is_not_mutated(self):
        balance = Balance.empty(KEY)
        apply_transaction(balance, _tx("T1", TransactionType.RECEIVED, 5, "1.00"), TODAY)
        assert balance.current_qty == Decimal(0)

    def test_receipt_after_stock_went_negative(self):
        balance = Balance.empty(KEY)
        for tx in (
            _tx("T1", TransactionType.RECEIVED, 10, "10.00"),
            _tx("T2", TransactionType.ISSUED, 110),
            _tx("T3", TransactionType.RECEIVED, 150, "1.00"),
        ):
            balance = apply_transaction(balance, tx, TODAY).balance
        assert balance.current_qty == Decimal(50)
        assert balance.average_cost == Decimal(0)
        assert balance.alert_flag == AlertFlag.NORMAL

    @pytest.mark.parametrize("tx_type", [TransactionType.RECEIVED, TransactionType.INITIAL])
    def test_rejects_negative_unit_cost(self, tx_type):
        with pytest.raises(UnsupportedTransactionError, match="unit_cost"):
            apply_transaction(Balance.empty(KEY), _tx("T1", tx_type, 5, "-2.00"), TODAY)

    def test_quantities_held_at_four_places(self):
        tx = _tx("T1", TransactionType.RECEIVED, "1.23456", "1.00")
        update = apply_transaction(Balance.empty(KEY), tx, TODAY)
        assert tx.quantity == Decimal("1.2346")
        assert update.balance.current_qty == Decimal("1.2346")
        assert Balance(KEY, current_qty=Decimal("0.00004")).current_qty == Decimal(0)


# ── Replay ───────────────────────────────────────────────────

class TestApplyTransactions:
    def test_receive_then_issue(self):
        update = apply_transactions(
            Balance.empty(KEY, safety_stock=Decimal(20)),
            [
                _tx("T1", TransactionType.RECEIVED, 100, "10.00", day=date(2026, 3, 1)),
                _tx("T2", TransactionType.ISSUED, 30, day=date(2026, 3, 2)),
            ],
            TODAY,
        )
        assert update.balance.current_qty == Decimal(70)
        assert update.balance.average_cost == Decimal("10.00")
        assert update.balance.alert_flag == AlertFlag.NORMAL
        assert update.applied == 2

    def test_replays_in_date_then_id_order(self):
        # Given out of order; the issue on day 2 must not go negative first.
        update = apply_transactions(
            Balance.empty(KEY),
            [
                _tx("T3", TransactionType.ISSUED, 30, day=date(2026, 3, 2)),
                _tx("T2", TransactionType.RECEIVED, 50, "12.00", day=date(2026, 3, 1)),
                _tx("T1", TransactionType.RECEIVED, 50, "10.00", day=date(2026, 3, 1)),
            ],
            TODAY,
        )
        assert update.issues == ()
        assert update.balance.current_qty == Decimal(70)
        assert update.balance.average_cost == Decimal("11.00")
        assert update.balance.last_transaction_date == date(2026, 3, 2)

    def test_collects_warnings(self):
        update = apply_transactions(
            Balance.empty(KEY),
            [
                _tx("T1", TransactionType.ISSUED, 5, day=date(2026, 3, 1)),
                _tx("T2", TransactionType.ISSUED, 5, day=date(2026, 3, 2)),
            ],
            TODAY,
        )
        assert [i.transaction_id for i in update.issues] == ["T1", "T2"]
        assert update.balance.current_qty == Decimal(-10)

    def test_empty_replay(self):
        balance = Balance.empty(KEY)
        update = apply_transactions(balance, [], TODAY)
        assert update.balance is balance
        assert update.applied == 0
