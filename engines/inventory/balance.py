"""
Stockline Inventory Engine — Balance Updater
==============================================
Engine: Inventory
Authority: Stockline Doctrine — the balance is the anchor

Applies confirmed transactions to the authoritative per-key balance.

RULES (NON-NEGOTIABLE):
- Only CONFIRMED transactions are applied (anything else is a caller bug)
- received:   qty += quantity, cost = moving average
- issued:     qty -= quantity, cost unchanged (negative allowed, warned)
- adjustment: qty = physical_count, cost unchanged
- initial:    qty = quantity, cost = unit_cost
- Every update recomputes the alert flag with alert_flag()
- Pure functions: a new Balance is returned, the input is untouched
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Tuple

from engines.inventory.costing import moving_average_cost, round_cost
from engines.inventory.errors import UnsupportedTransactionError
from engines.inventory.models import (
    ZERO,
    AlertFlag,
    Balance,
    Transaction,
    TransactionType,
)
from engines.inventory.results import IssueCode, ReconciliationIssue

logger = logging.getLogger("stockline.inventory")


def alert_flag(qty: Decimal, safety_stock: Decimal) -> AlertFlag:
    """
    Classify a stock level.

    qty <= 0               → OUT_OF_STOCK
    0 < qty < safety_stock → LOW_STOCK
    otherwise              → NORMAL
    """
    if qty <= 0:
        return AlertFlag.OUT_OF_STOCK
    if qty < safety_stock:
        return AlertFlag.LOW_STOCK
    return AlertFlag.NORMAL


@dataclass(frozen=True)
class BalanceUpdate:
    """New balance plus the warnings raised while producing it."""
    balance: Balance
    issues: Tuple[ReconciliationIssue, ...] = ()
    applied: int = 0


def apply_transaction(balance: Balance, tx: Transaction, today: date) -> BalanceUpdate:
    """
    Apply one confirmed transaction to `balance`.

    Args:
        balance: Current balance of the transaction's key.
        tx:      Confirmed transaction of the same key.
        today:   Fallback for last_transaction_date when tx has no date.

    Raises:
        UnsupportedTransactionError: tx is not confirmed, belongs to
                                     another location key, or carries a
                                     negative unit cost into the average.
    """
    if not tx.is_confirmed:
        raise UnsupportedTransactionError(
            tx.transaction_id,
            f"only confirmed transactions update the balance "
            f"(status={tx.status.value if tx.status else tx.raw_status!r})",
        )
    if tx.key != balance.key:
        raise UnsupportedTransactionError(
            tx.transaction_id,
            f"belongs to {tx.key}, balance is {balance.key}",
        )
    if tx.unit_cost < 0 and tx.transaction_type in (
        TransactionType.RECEIVED, TransactionType.INITIAL
    ):
        raise UnsupportedTransactionError(
            tx.transaction_id, f"unit_cost cannot be negative ({tx.unit_cost})"
        )

    tx_type = tx.transaction_type
    qty = balance.current_qty
    cost = balance.average_cost

    if tx_type == TransactionType.RECEIVED:
        cost = moving_average_cost(qty, cost, tx.quantity, tx.unit_cost)
        qty = qty + tx.quantity
    elif tx_type == TransactionType.ISSUED:
        qty = qty - tx.quantity
    elif tx_type == TransactionType.ADJUSTMENT:
        qty = tx.physical_count if tx.physical_count is not None else ZERO
    elif tx_type == TransactionType.INITIAL:
        qty = tx.quantity
        cost = round_cost(tx.unit_cost)
    else:
        logger.warning(
            f"Unknown transaction type '{tx.raw_type}' on {tx.transaction_id}; "
            f"balance {balance.balance_id} left unchanged"
        )
        return BalanceUpdate(
            balance=balance,
            issues=(ReconciliationIssue(
                code=IssueCode.UNKNOWN_TRANSACTION_TYPE,
                message=f"Unrecognized transaction type '{tx.raw_type}'; not applied.",
                transaction_id=tx.transaction_id,
            ),),
        )

    issues: List[ReconciliationIssue] = []
    if qty < 0:
        logger.warning(
            f"Negative balance for {balance.key}: {qty} "
            f"after {tx.transaction_id}"
        )
        issues.append(ReconciliationIssue(
            code=IssueCode.NEGATIVE_BALANCE,
            message=f"Balance went negative ({qty}).",
            transaction_id=tx.transaction_id,
        ))

    updated = replace(
        balance,
        current_qty=qty,
        average_cost=cost,
        alert_flag=alert_flag(qty, balance.safety_stock),
        last_transaction_date=tx.transaction_date or today,
    )

    logger.debug(
        f"Applied {tx_type.value} {tx.transaction_id} to {balance.key}: "
        f"qty {balance.current_qty} → {qty}, cost {balance.average_cost} → {cost}"
    )

    return BalanceUpdate(balance=updated, issues=tuple(issues), applied=1)


def _replay_order(tx: Transaction) -> tuple:
    return (tx.transaction_date or date.max, tx.transaction_id)


def apply_transactions(
    balance: Balance, transactions: Iterable[Transaction], today: date
) -> BalanceUpdate:
    """
    Replay several confirmed transactions in (date, transaction id) order.

    Warnings from each step are collected; the first non-applicable
    transaction raises and nothing is returned.
    """
    issues: List[ReconciliationIssue] = []
    applied = 0
    for tx in sorted(transactions, key=_replay_order):
        step = apply_transaction(balance, tx, today)
        balance = step.balance
        issues.extend(step.issues)
        applied += step.applied
    return BalanceUpdate(balance=balance, issues=tuple(issues), applied=applied)
