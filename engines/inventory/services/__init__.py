"""
Stockline Inventory Engine — Reconciliation Service
=====================================================
Orchestrates one reconciliation run per location key:

    Balance Updater → Aggregator → Projection Reconstructor
    → anchor check → Summary Merger → stockout check

Run behavior:
1. Hold the keyed lock for the location key (bounded queue)
2. Apply the triggering confirmed transactions not applied before to
   the balance, recording their ids with the balance write
3. Aggregate the window's transactions into daily flows
4. Reconstruct the series anchored on current_qty
5. Re-read the balance; if it moved underneath the run, rebuild
   (up to max_anchor_retries times) or fail
6. Merge the series, then look for a predicted stockout

This service NEVER raises from reconcile() / reconcile_batch().
Every failure is caught per key, logged, and reported as a FAILURE
outcome. One failed key never stops the others.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from core.concurrency import KeyedLock, KeyedLockError, KeyQueueFullError
from core.config import EngineConfig
from core.time import Clock, DateWindow, get_default_clock
from engines.inventory.aggregator import aggregate_by_date, screen_transaction
from engines.inventory.balance import apply_transactions
from engines.inventory.errors import (
    AnchorInconsistencyError,
    InvalidRecordError,
    StoreError,
    UnsupportedTransactionError,
)
from engines.inventory.merger import MergeResult, SummaryMerger
from engines.inventory.models import Balance, LocationKey, ProjectionEntry, Transaction
from engines.inventory.projection import find_stockout, reconstruct, verify_anchor
from engines.inventory.results import (
    BatchReconciliationResult,
    IssueCode,
    ReconciliationIssue,
    ReconciliationOutcome,
)
from engines.inventory.store import InventoryStore

logger = logging.getLogger("stockline.service")

BatchItem = Union[LocationKey, Transaction]


def _failure(key: LocationKey, code: str, message: str, **kwargs) -> ReconciliationOutcome:
    return ReconciliationOutcome.from_issues(
        key, [ReconciliationIssue(code=code, message=message)], **kwargs
    )


class ReconciliationService:
    """
    Reconciles balances and projection series through an InventoryStore.

    Usage:
        service = ReconciliationService(store, EngineConfig(), clock=FixedClock(day))
        outcome = service.reconcile(LocationKey("ITEM-1", "TKY", "A-01"))
    """

    def __init__(
        self,
        store: InventoryStore,
        config: Optional[EngineConfig] = None,
        clock: Optional[Clock] = None,
        locks: Optional[KeyedLock] = None,
    ):
        self._store = store
        self._config = config or EngineConfig()
        self._clock = clock or get_default_clock()
        self._locks = locks or KeyedLock(max_pending=self._config.max_pending_per_key)
        self._merger = SummaryMerger(store, batch_size=self._config.merge_batch_size)

    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def locks(self) -> KeyedLock:
        return self._locks

    # ══════════════════════════════════════════════════════════
    # SINGLE KEY
    # ══════════════════════════════════════════════════════════

    def reconcile(
        self,
        key: LocationKey,
        triggering: Sequence[Transaction] = (),
        lock_timeout: Optional[float] = None,
    ) -> ReconciliationOutcome:
        """
        Reconcile one location key.

        Args:
            key:          Location key to reconcile.
            triggering:   Confirmed transactions to apply to the balance
                          first; ids already applied are skipped.
                          Non-confirmed ones only re-trigger the
                          projection.
            lock_timeout: Seconds to wait for the key (None = forever).

        Returns:
            ReconciliationOutcome — never raises.
        """
        today = self._clock.today()
        logger.info(f"Reconciliation started for {key} (today={today.isoformat()})")

        try:
            with self._locks.hold(key, timeout=lock_timeout):
                outcome = self._run(key, triggering, today)
        except KeyQueueFullError as exc:
            logger.warning(f"Reconciliation rejected for {key}: {exc}")
            outcome = _failure(key, IssueCode.QUEUE_FULL, str(exc), attempts=0)
        except KeyedLockError as exc:
            logger.warning(f"Reconciliation not started for {key}: {exc}")
            outcome = _failure(key, IssueCode.LOCK_TIMEOUT, str(exc), attempts=0)
        except (InvalidRecordError, UnsupportedTransactionError) as exc:
            logger.error(f"Reconciliation failed for {key}: {exc}", exc_info=True)
            outcome = _failure(key, IssueCode.INVALID_RECORD, str(exc))
        except StoreError as exc:
            logger.error(f"Reconciliation failed for {key}: {exc}", exc_info=True)
            outcome = _failure(key, IssueCode.STORE_ERROR, str(exc))
        except Exception as exc:
            logger.error(
                f"Reconciliation failed for {key}: "
                f"{type(exc).__name__}: {exc}",
                exc_info=True,
            )
            outcome = _failure(
                key, IssueCode.UNEXPECTED_ERROR, f"{type(exc).__name__}: {exc}"
            )

        logger.info(
            f"Reconciliation finished for {key}: {outcome.status.value} "
            f"({len(outcome.issues)} issues, {outcome.created} created, "
            f"{outcome.updated} updated)"
        )
        return outcome

    def _run(
        self, key: LocationKey, triggering: Sequence[Transaction], today: date
    ) -> ReconciliationOutcome:
        cfg = self._config
        issues: List[ReconciliationIssue] = []

        # ── Balance update ────────────────────────────────────
        stored = self._store.fetch_balance(key)
        balance = stored or Balance.empty(key)
        confirmed: List[Transaction] = []
        for tx in triggering:
            issue = screen_transaction(tx, key)
            if issue is not None:
                issues.append(issue)
                # An undated confirmed transaction still moves the balance.
                if issue.code != IssueCode.MISSING_DATE:
                    continue
            if tx.is_confirmed:
                confirmed.append(tx)

        confirmed, applied_ids = self._unapplied(key, confirmed)
        update = apply_transactions(balance, confirmed, today)
        issues.extend(update.issues)
        balance = update.balance
        if stored is None or update.applied:
            self._store.upsert_balance(key, balance, applied_ids=applied_ids)

        # ── Reconstruct, anchored on the balance ──────────────
        window = DateWindow.around(today, cfg.past_days, cfg.future_days)
        max_attempts = 1 + cfg.max_anchor_retries
        attempt = 0
        while True:
            attempt += 1
            transactions = self._store.fetch_transactions(key, window.start, window.end)
            aggregated = aggregate_by_date(transactions, window, key)
            try:
                entries = reconstruct(
                    balance.current_qty,
                    aggregated.flows,
                    today,
                    past_days=cfg.past_days,
                    future_days=cfg.future_days,
                    safety_stock=balance.safety_stock,
                )
                balance = self._check_anchor(key, balance, entries, today)
                break
            except AnchorInconsistencyError as exc:
                logger.warning(
                    f"Anchor check failed for {key} "
                    f"(attempt {attempt}/{max_attempts}): {exc}"
                )
                if attempt >= max_attempts:
                    return ReconciliationOutcome.from_issues(
                        key,
                        issues + [ReconciliationIssue(
                            code=IssueCode.ANCHOR_INCONSISTENCY, message=str(exc),
                        )],
                        balance=balance,
                        attempts=attempt,
                    )
                balance = self._store.fetch_balance(key) or balance

        issues.extend(aggregated.issues)

        # ── Merge + stockout ──────────────────────────────────
        merged: MergeResult = self._merger.merge(key, entries)

        stockout = find_stockout(entries, today)
        if stockout is not None:
            logger.warning(
                f"Predicted stockout for {key} on {stockout.day.isoformat()} "
                f"({stockout.days_until} days from now)"
            )
            issues.append(ReconciliationIssue(
                code=IssueCode.PREDICTED_STOCKOUT,
                message=(
                    f"Stock projected to run out on {stockout.day.isoformat()} "
                    f"in {stockout.days_until} days."
                ),
            ))

        return ReconciliationOutcome.from_issues(
            key,
            issues,
            balance=balance,
            entries=entries,
            stockout=stockout,
            created=merged.created,
            updated=merged.updated,
            attempts=attempt,
        )

    def _unapplied(
        self, key: LocationKey, confirmed: List[Transaction]
    ) -> Tuple[List[Transaction], List[str]]:
        """
        Drop confirmed transactions whose id already moved a balance.

        A redelivered trigger must not be applied twice. Transactions
        without an id cannot be tracked and are always applied.
        """
        already = self._store.applied_transaction_ids(
            [tx.transaction_id for tx in confirmed if tx.transaction_id]
        )
        pending: List[Transaction] = []
        ids: List[str] = []
        for tx in confirmed:
            if tx.transaction_id:
                if tx.transaction_id in already or tx.transaction_id in ids:
                    logger.info(
                        f"Transaction {tx.transaction_id} already applied to "
                        f"{key}; not applied again"
                    )
                    continue
                ids.append(tx.transaction_id)
            pending.append(tx)
        return pending, ids

    def _check_anchor(
        self,
        key: LocationKey,
        balance: Balance,
        entries: Tuple[ProjectionEntry, ...],
        today: date,
    ) -> Balance:
        """
        The series must end today at the stored quantity.

        The stored balance is read again so that a write made by another
        process during the run is detected instead of merged over.
        """
        verify_anchor(entries, today, balance.current_qty)
        fresh = self._store.fetch_balance(key)
        if fresh is not None and fresh.current_qty != balance.current_qty:
            raise AnchorInconsistencyError(today, fresh.current_qty, balance.current_qty)
        return fresh or balance

    # ══════════════════════════════════════════════════════════
    # BATCH
    # ══════════════════════════════════════════════════════════

    def reconcile_batch(
        self,
        items: Iterable[BatchItem],
        max_workers: Optional[int] = None,
    ) -> BatchReconciliationResult:
        """
        Reconcile many location keys.

        `items` may mix LocationKeys and Transactions. Transactions are
        grouped by key and become the triggering set of their key.
        Transactions without a complete key are skipped with a warning.
        Keys run in parallel when max_workers > 1, each still
        serialized by the keyed lock.
        """
        groups: Dict[LocationKey, List[Transaction]] = {}
        result = BatchReconciliationResult()

        for item in items:
            if isinstance(item, LocationKey):
                groups.setdefault(item, [])
                continue
            key = item.key
            if key is None:
                issue = screen_transaction(item)
                logger.warning(
                    f"Skipping transaction {item.transaction_id or '<no id>'}: "
                    f"{issue.message if issue else 'no location key'}"
                )
                if issue is not None:
                    result.skipped.append(issue)
                continue
            groups.setdefault(key, []).append(item)

        workers = max_workers or self._config.max_workers
        logger.info(
            f"Batch reconciliation: {len(groups)} keys, "
            f"{len(result.skipped)} skipped records, {workers} workers"
        )

        if workers > 1 and len(groups) > 1:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                futures = [
                    pool.submit(self.reconcile, key, txs) for key, txs in groups.items()
                ]
                result.outcomes.extend(f.result() for f in futures)
        else:
            for key, txs in groups.items():
                result.outcomes.append(self.reconcile(key, txs))

        logger.info(
            f"Batch reconciliation finished: {result.processed} processed, "
            f"{result.failed} failed"
        )
        return result
