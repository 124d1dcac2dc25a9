"""
Stockline Inventory Engine — Summary Merger
=============================================
Writes a reconstructed series into the projection store.

RULES (NON-NEGOTIABLE):
- Identity is (item, warehouse, location, date), i.e. the summary id
- Existing entries are overwritten in full, missing ones created
- Entries outside the series are never touched or deleted
- Writes go out in batches of at most batch_size entries
- Re-merging the same series is a no-op on stored state
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from engines.inventory.models import LocationKey, ProjectionEntry

logger = logging.getLogger("stockline.merger")


@dataclass(frozen=True)
class MergeResult:
    created: int = 0
    updated: int = 0
    batches: int = 0

    @property
    def written(self) -> int:
        return self.created + self.updated


class SummaryMerger:
    """
    Upserts ProjectionEntry series through a ProjectionStore.

    The store reports, per batch, how many entries were newly created;
    the rest of the batch counts as updated.
    """

    def __init__(self, store, batch_size: int = 100):
        if batch_size < 1:
            raise ValueError(f"batch_size must be positive, got {batch_size}.")
        self._store = store
        self._batch_size = batch_size

    @property
    def batch_size(self) -> int:
        return self._batch_size

    def merge(self, key: LocationKey, entries: Sequence[ProjectionEntry]) -> MergeResult:
        entries = list(entries)
        days = [e.day for e in entries]
        if len(set(days)) != len(days):
            raise ValueError(f"Duplicate dates in series for {key}.")

        created = 0
        batches = 0
        for start in range(0, len(entries), self._batch_size):
            chunk = entries[start:start + self._batch_size]
            created += self._store.upsert_projection_entries(key, chunk)
            batches += 1

        result = MergeResult(
            created=created,
            updated=len(entries) - created,
            batches=batches,
        )
        logger.info(
            f"Merged {len(entries)} entries for {key}: "
            f"{result.created} created, {result.updated} updated "
            f"in {result.batches} batches"
        )
        return result
