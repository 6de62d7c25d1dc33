"""
Store interfaces for the geo index and the item metadata.

The geo index holds one (partition_key, geohash, item_id) entry per item and is
only ever range scanned. Metadata is kept apart, keyed by item id, because the
index cannot be updated in place. The two records of an item are written
independently; an index entry without metadata is an orphan and is tolerated.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, Optional

from ..spatial.geohash import Point


@dataclass(frozen=True, order=True)
class IndexEntry:
    partition_key: int
    geohash: int
    item_id: str


@dataclass(frozen=True)
class ItemMetadata:
    item_id: str
    name: str
    address: str
    point: Point


class GeoIndexStore(ABC):

    @abstractmethod
    def put(self, entry: IndexEntry) -> None:
        """Store an entry. Writing the same item id again is a no-op.

        Raises:
            StoreFailure: if the backend rejects the write.
        """

    @abstractmethod
    def scan_range(self, partition_key: int, start: int, end: int) -> Iterator[IndexEntry]:
        """Lazily yield entries of one partition with start <= geohash <= end,
        ordered by (geohash, item_id).

        Raises:
            StoreFailure: if the backend rejects the read.
        """


class MetadataStore(ABC):

    @abstractmethod
    def put(self, metadata: ItemMetadata) -> None:
        """Store the metadata record of an item, replacing any previous one."""

    @abstractmethod
    def get(self, item_id: str) -> Optional[ItemMetadata]:
        """Return the metadata of an item, or None if there is none."""

    def get_many(self, item_ids: Iterable[str]) -> Dict[str, ItemMetadata]:
        """Metadata for every id that has some; missing ids are left out."""
        found = {}
        for item_id in item_ids:
            metadata = self.get(item_id)
            if metadata is not None:
                found[item_id] = metadata
        return found
