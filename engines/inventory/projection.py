"""
Stockline Inventory Engine — Projection Reconstructor
=======================================================
Engine: Inventory
Authority: Stockline Doctrine — the balance is the anchor

Rebuilds the daily stock series of one location key from the
authoritative current quantity and the per-day flows.

    today_opening = current_qty - received(today) + issued(today)

Forward pass (today → today + future_days):
    ending    = opening + received - issued
    projected = projected_prev + received - issued
                + planned_received - planned_issued

Backward pass (today - 1 → today - past_days, nearest first):
    ending    = opening of the following day
    opening   = ending - received + issued
    planned buckets are reported as 0, projected = ending

RULES (NON-NEGOTIABLE):
- Output is ascending by date and contiguous
- ending(today) must equal current_qty, otherwise AnchorInconsistencyError
- Pure: no clock, no store, no mutation of the inputs
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import List, Mapping, Optional, Sequence, Tuple

from core.time import days_between
from engines.inventory.balance import alert_flag
from engines.inventory.errors import AnchorInconsistencyError
from engines.inventory.models import (
    EMPTY_FLOW,
    ZERO,
    DailyFlow,
    ProjectionEntry,
    to_decimal,
)
from engines.inventory.results import StockoutPrediction

logger = logging.getLogger("stockline.projection")


def _entry(
    day: date,
    opening: Decimal,
    flow: DailyFlow,
    ending: Decimal,
    projected: Decimal,
    safety_stock: Decimal,
    planned: bool,
) -> ProjectionEntry:
    return ProjectionEntry(
        day=day,
        opening_qty=opening,
        received_qty=flow.received,
        issued_qty=flow.issued,
        ending_qty=ending,
        planned_received_qty=flow.planned_received if planned else ZERO,
        planned_issued_qty=flow.planned_issued if planned else ZERO,
        projected_ending_qty=projected,
        alert_flag=alert_flag(projected, safety_stock),
    )


def reconstruct(
    current_qty: Decimal,
    flows: Mapping[date, DailyFlow],
    today: date,
    past_days: int = 30,
    future_days: int = 90,
    safety_stock: Decimal = ZERO,
) -> Tuple[ProjectionEntry, ...]:
    """
    Build past_days + 1 + future_days entries around `today`.

    Args:
        current_qty:  Authoritative balance quantity (the anchor).
        flows:        date → DailyFlow; missing days count as no movement.
        today:        Anchor day.
        past_days:    Days reconstructed backward.
        future_days:  Days projected forward.
        safety_stock: Threshold for each entry's alert flag.

    Returns:
        Entries in ascending date order.

    Raises:
        AnchorInconsistencyError: ending(today) != current_qty.
        ValueError:               negative window size.
    """
    if past_days < 0 or future_days < 0:
        raise ValueError("Window sizes cannot be negative.")

    current_qty = to_decimal(current_qty)
    safety_stock = to_decimal(safety_stock)
    today_flow = flows.get(today, EMPTY_FLOW)
    today_opening = current_qty - today_flow.received + today_flow.issued

    # ── Forward pass: today and the future ────────────────────
    forward: List[ProjectionEntry] = []
    opening = today_opening
    projected = today_opening
    for offset in range(future_days + 1):
        day = today + timedelta(days=offset)
        flow = flows.get(day, EMPTY_FLOW)
        ending = opening + flow.confirmed_net
        projected = projected + flow.confirmed_net + flow.planned_net
        forward.append(_entry(day, opening, flow, ending, projected, safety_stock, True))
        opening = ending

    anchor = forward[0]
    if anchor.ending_qty != current_qty:
        raise AnchorInconsistencyError(today, current_qty, anchor.ending_qty)

    # ── Backward pass: nearest past day first ─────────────────
    backward: List[ProjectionEntry] = []
    next_opening = today_opening
    for offset in range(1, past_days + 1):
        day = today - timedelta(days=offset)
        flow = flows.get(day, EMPTY_FLOW)
        ending = next_opening
        opening = ending - flow.confirmed_net
        backward.append(_entry(day, opening, flow, ending, ending, safety_stock, False))
        next_opening = opening

    backward.reverse()
    entries = tuple(backward + forward)

    logger.debug(
        f"Reconstructed {len(entries)} entries "
        f"{entries[0].day.isoformat()}..{entries[-1].day.isoformat()} "
        f"anchored on {current_qty}"
    )
    return entries


def verify_anchor(entries: Sequence[ProjectionEntry], today: date, current_qty: Decimal) -> None:
    """Raise AnchorInconsistencyError unless ending(today) == current_qty."""
    current_qty = to_decimal(current_qty)
    for entry in entries:
        if entry.day == today:
            if entry.ending_qty != current_qty:
                raise AnchorInconsistencyError(today, current_qty, entry.ending_qty)
            return
    raise AnchorInconsistencyError(today, current_qty, ZERO)


def find_stockout(
    entries: Sequence[ProjectionEntry], today: date
) -> Optional[StockoutPrediction]:
    """
    First day strictly after `today` whose projected ending is <= 0.

    Entries are scanned in date order regardless of input order.
    """
    for entry in sorted(entries, key=lambda e: e.day):
        if entry.day > today and entry.projected_ending_qty <= 0:
            return StockoutPrediction(
                day=entry.day,
                days_until=days_between(today, entry.day),
                projected_qty=entry.projected_ending_qty,
            )
    return None
