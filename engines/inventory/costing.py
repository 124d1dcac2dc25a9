"""
Stockline Inventory Engine — Moving-Average Costing
=====================================================
Authority: Stockline Doctrine — one rounding rule everywhere

RULES (NON-NEGOTIABLE):
- All arithmetic is Decimal (no floats)
- Costs are rounded to 2 places, ROUND_HALF_UP, by round_cost() only
- Quantities carry 4 places, ROUND_HALF_UP, by round_qty() only
- Issuance never changes unit cost
- Only confirmed received / initial events define the average
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

Number = Union[Decimal, int, str]

COST_PLACES = Decimal("0.01")
QTY_PLACES = Decimal("0.0001")


def round_qty(value: Number) -> Decimal:
    """Round a quantity to its stored precision of 4 places, half-up."""
    return Decimal(value).quantize(QTY_PLACES, rounding=ROUND_HALF_UP)


def round_cost(value: Number) -> Decimal:
    """Round a money amount to 2 decimal places, half-up."""
    return Decimal(value).quantize(COST_PLACES, rounding=ROUND_HALF_UP)


def moving_average_cost(
    current_qty: Number,
    current_cost: Number,
    add_qty: Number,
    add_cost: Number,
) -> Decimal:
    """
    Quantity-weighted average unit cost after a receipt.

    - add_qty <= 0: returns current_cost unchanged (issuance path).
    - Resulting quantity <= 0: returns 0. This happens when stock was
      already negative enough that the receipt does not bring it back
      above zero; there is no meaningful average in that case.
    - Weighted value <= 0: returns 0. A receipt onto negative stock can
      lift the quantity above zero while the carried negative value
      still outweighs it; average_cost never goes below zero.
    """
    current_qty = Decimal(current_qty)
    current_cost = Decimal(current_cost)
    add_qty = Decimal(add_qty)
    add_cost = Decimal(add_cost)

    if add_qty <= 0:
        return current_cost

    new_qty = current_qty + add_qty
    if new_qty <= 0:
        return Decimal(0)

    total_value = current_qty * current_cost + add_qty * add_cost
    if total_value <= 0:
        return Decimal(0)
    return round_cost(total_value / new_qty)
