"""In-process stores, for tests and single-process runs."""

import bisect
import threading
from typing import Dict, Iterator, List, Optional, Set, Tuple

from .base import GeoIndexStore, IndexEntry, ItemMetadata, MetadataStore


class MemoryGeoIndexStore(GeoIndexStore):
    """Sorted (geohash, item_id) lists per partition behind a lock."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._partitions: Dict[int, List[Tuple[int, str]]] = {}
        self._item_ids: Set[str] = set()

    def put(self, entry: IndexEntry) -> None:
        with self._lock:
            if entry.item_id in self._item_ids:
                return
            rows = self._partitions.setdefault(entry.partition_key, [])
            bisect.insort(rows, (entry.geohash, entry.item_id))
            self._item_ids.add(entry.item_id)

    def scan_range(self, partition_key: int, start: int, end: int) -> Iterator[IndexEntry]:
        with self._lock:
            rows = self._partitions.get(partition_key, [])
            lo = bisect.bisect_left(rows, (start, ""))
            hi = bisect.bisect_left(rows, (end + 1, ""))
            matched = rows[lo:hi]
        for geohash, item_id in matched:
            yield IndexEntry(partition_key, geohash, item_id)

    def __len__(self) -> int:
        return len(self._item_ids)


class MemoryMetadataStore(MetadataStore):

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: Dict[str, ItemMetadata] = {}

    def put(self, metadata: ItemMetadata) -> None:
        with self._lock:
            self._records[metadata.item_id] = metadata

    def get(self, item_id: str) -> Optional[ItemMetadata]:
        with self._lock:
            return self._records.get(item_id)

    def __len__(self) -> int:
        return len(self._records)
