# catalog_engine/domain/repositories/snapshot_repo.py

from __future__ import annotations
import logging
import threading
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Mapping, Optional, Union

from catalog_engine.domain.models.item import Item
from catalog_engine.domain.models.snapshot import CatalogSnapshot
from catalog_engine.domain.services.prefix_index import PrefixIndex

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CatalogState:
    """A snapshot and the prefix index built from it (None until first needed)."""
    snapshot: CatalogSnapshot
    index: Optional[PrefixIndex] = None


class SnapshotHandle:
    """
    Versioned pointer to the current catalog snapshot, passed explicitly to
    whoever runs queries.

    refresh() builds the new snapshot (and optionally its index) aside, then
    swaps a single CatalogState reference. Readers grab that reference once
    per query and so see either the old pair or the new one, never a mix.
    The index is built lazily for a snapshot that was swapped in without one.
    """

    def __init__(self, snapshot: Optional[CatalogSnapshot] = None):
        self._lock = threading.Lock()
        self._state = CatalogState(snapshot=snapshot or CatalogSnapshot(version=0))

    @property
    def version(self) -> int:
        return self._state.snapshot.version

    @property
    def snapshot(self) -> CatalogSnapshot:
        return self._state.snapshot

    def current(self) -> CatalogState:
        return self._state

    def refresh(
        self,
        records: Iterable[Union[Item, Mapping[str, Any]]],
        *,
        build_index: bool = True,
        captured_at: Optional[datetime] = None,
    ) -> CatalogSnapshot:
        """Atomically replace the catalog. Raises InvalidInputError and keeps the old one on bad records."""
        t0 = time.perf_counter()
        with self._lock:
            version = self._state.snapshot.version + 1
            snapshot = CatalogSnapshot.from_records(records, version=version, captured_at=captured_at)
            index = PrefixIndex.build(snapshot.items) if build_index else None
            self._state = CatalogState(snapshot=snapshot, index=index)
        logger.info(
            "snapshot swapped version=%s items=%s indexed=%s time=%.4fs",
            version, len(snapshot.items), build_index, time.perf_counter() - t0,
        )
        return snapshot

    def index_for(self, state: CatalogState) -> PrefixIndex:
        """
        Prefix index of `state`'s snapshot, building it on first use.
        The built index is published only if `state` is still current.
        """
        if state.index is not None:
            return state.index
        logger.info("prefix index missing for snapshot version=%s, rebuilding", state.snapshot.version)
        index = PrefixIndex.build(state.snapshot.items)
        with self._lock:
            if self._state.snapshot is state.snapshot and self._state.index is None:
                self._state = CatalogState(snapshot=state.snapshot, index=index)
        return index
