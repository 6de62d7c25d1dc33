"""
Redis-backed stores
--------------------------------

The geo index keeps one sorted set per partition, `{index_prefix}:{partition_key}`,
with the item id as member and the geohash as score. Geohashes are at most 52
bits, so scores are exact, and ZRANGEBYSCORE gives ordered range scans inside a
partition. Members with equal scores come back in lexical order.

Item metadata lives in one hash per item, `{metadata_prefix}:{item_id}`, with
the fields name, address, lat and lng.

Clients are created by the caller (see `connect`) and passed in; a single
client is safe to share between threads.
"""

from typing import Dict, Iterable, Iterator, Optional

import redis

from ..exceptions import StoreFailure
from ..spatial.geohash import Point
from ..utils.logger import logger
from .base import GeoIndexStore, IndexEntry, ItemMetadata, MetadataStore


def connect(url: str, socket_timeout: float) -> redis.Redis:
    """Open a Redis client with string responses and bounded socket waits."""
    return redis.Redis.from_url(
        url,
        decode_responses=True,
        socket_timeout=socket_timeout,
        socket_connect_timeout=socket_timeout,
    )


class RedisGeoIndexStore(GeoIndexStore):

    def __init__(self, client: redis.Redis, key_prefix: str = "geoindex", page_size: int = 500) -> None:
        self.client = client
        self.key_prefix = key_prefix
        self.page_size = page_size

    def _key(self, partition_key: int) -> str:
        return f"{self.key_prefix}:{partition_key}"

    def put(self, entry: IndexEntry) -> None:
        try:
            # nx: a retried write for the same item id leaves the first one untouched
            self.client.zadd(self._key(entry.partition_key), {entry.item_id: entry.geohash}, nx=True)
        except redis.RedisError as e:
            logger.error(f"Index write failed: {str(e)}", extra={
                "operation": "index_put",
                "item_id": entry.item_id,
                "partition_key": entry.partition_key,
                "error": str(e),
                "status": "error"
            })
            raise StoreFailure(f"Unable to write index entry for {entry.item_id}") from e

    def scan_range(self, partition_key: int, start: int, end: int) -> Iterator[IndexEntry]:
        key = self._key(partition_key)
        offset = 0
        while True:
            try:
                page = self.client.zrangebyscore(
                    key, start, end, start=offset, num=self.page_size, withscores=True
                )
            except redis.RedisError as e:
                raise StoreFailure(f"Unable to scan {key} [{start}, {end}]") from e

            for item_id, score in page:
                yield IndexEntry(partition_key, int(score), item_id)

            if len(page) < self.page_size:
                return
            offset += len(page)


class RedisMetadataStore(MetadataStore):

    def __init__(self, client: redis.Redis, key_prefix: str = "metadata") -> None:
        self.client = client
        self.key_prefix = key_prefix

    def _key(self, item_id: str) -> str:
        return f"{self.key_prefix}:{item_id}"

    def put(self, metadata: ItemMetadata) -> None:
        try:
            self.client.hset(self._key(metadata.item_id), mapping={
                "name": metadata.name,
                "address": metadata.address,
                "lat": repr(metadata.point.lat),
                "lng": repr(metadata.point.lng),
            })
        except redis.RedisError as e:
            raise StoreFailure(f"Unable to write metadata for {metadata.item_id}") from e

    def get(self, item_id: str) -> Optional[ItemMetadata]:
        try:
            record = self.client.hgetall(self._key(item_id))
        except redis.RedisError as e:
            raise StoreFailure(f"Unable to read metadata for {item_id}") from e
        return self._from_record(item_id, record)

    def get_many(self, item_ids: Iterable[str]) -> Dict[str, ItemMetadata]:
        item_ids = list(item_ids)
        if not item_ids:
            return {}
        try:
            pipe = self.client.pipeline(transaction=False)
            for item_id in item_ids:
                pipe.hgetall(self._key(item_id))
            records = pipe.execute()
        except redis.RedisError as e:
            raise StoreFailure(f"Unable to read metadata for {len(item_ids)} items") from e

        found = {}
        for item_id, record in zip(item_ids, records):
            metadata = self._from_record(item_id, record)
            if metadata is not None:
                found[item_id] = metadata
        return found

    @staticmethod
    def _from_record(item_id: str, record: Dict[str, str]) -> Optional[ItemMetadata]:
        if not record:
            return None
        return ItemMetadata(
            item_id=item_id,
            name=record["name"],
            address=record["address"],
            point=Point(float(record["lat"]), float(record["lng"])),
        )
