import math
import random
from collections import defaultdict
from typing import Dict, Optional

import pytest
import redis

from geo_items.core.query import RadiusQueryEngine
from geo_items.core.writer import IndexWriter
from geo_items.spatial.covering import RangeCoverer
from geo_items.spatial.geohash import EARTH_RADIUS_M, Point
from geo_items.store.memory import MemoryGeoIndexStore, MemoryMetadataStore

PRECISION = 26
PARTITION_BITS = 10

NEW_YORK = Point(40.7128, -74.0060)
LOS_ANGELES = Point(34.0522, -118.2437)


class FakeGeocoder:
    """Address book geocoder; unknown addresses have no match."""

    def __init__(self, addresses: Optional[Dict[str, Point]] = None):
        self.addresses = dict(addresses or {})
        self.calls = []

    def geocode(self, address: str) -> Optional[Point]:
        self.calls.append(address)
        return self.addresses.get(address)


class FakePipeline:
    def __init__(self, client):
        self.client = client
        self.commands = []

    def hgetall(self, name):
        self.commands.append(name)
        return self

    def execute(self):
        return [self.client.hgetall(name) for name in self.commands]


class FakeRedis:
    """The handful of sorted-set and hash commands the Redis stores use."""

    def __init__(self):
        self.zsets = defaultdict(dict)
        self.hashes = {}
        self.fail = False

    def _check(self):
        if self.fail:
            raise redis.ConnectionError("connection refused")

    def zadd(self, name, mapping, nx=False):
        self._check()
        added = 0
        for member, score in mapping.items():
            if nx and member in self.zsets[name]:
                continue
            self.zsets[name][member] = float(score)
            added += 1
        return added

    def zrangebyscore(self, name, min, max, start=None, num=None, withscores=False):
        self._check()
        rows = sorted(
            ((score, member) for member, score in self.zsets.get(name, {}).items()
             if min <= score <= max)
        )
        if start is not None:
            rows = rows[start:start + num]
        if withscores:
            return [(member, score) for score, member in rows]
        return [member for _, member in rows]

    def hset(self, name, mapping):
        self._check()
        self.hashes.setdefault(name, {}).update({k: str(v) for k, v in mapping.items()})
        return len(mapping)

    def hgetall(self, name):
        self._check()
        return dict(self.hashes.get(name, {}))

    def pipeline(self, transaction=True):
        self._check()
        return FakePipeline(self)


def random_point_in_circle(rng: random.Random, center: Point, radius_m: float) -> Point:
    """Destination point at a random bearing and distance from the center."""
    delta = rng.uniform(0, radius_m) / EARTH_RADIUS_M
    theta = rng.uniform(0, 2 * math.pi)
    lat1, lng1 = math.radians(center.lat), math.radians(center.lng)
    lat2 = math.asin(
        math.sin(lat1) * math.cos(delta) + math.cos(lat1) * math.sin(delta) * math.cos(theta)
    )
    lng2 = lng1 + math.atan2(
        math.sin(theta) * math.sin(delta) * math.cos(lat1),
        math.cos(delta) - math.sin(lat1) * math.sin(lat2),
    )
    lng = (math.degrees(lng2) + 540.0) % 360.0 - 180.0
    lat = max(-90.0, min(90.0, math.degrees(lat2)))
    return Point(lat, lng)


@pytest.fixture
def geocoder():
    return FakeGeocoder({
        "New York": NEW_YORK,
        "Los Angeles": LOS_ANGELES,
        "1 Main St": Point(40.7, -74.0),
    })


@pytest.fixture
def index_store():
    return MemoryGeoIndexStore()


@pytest.fixture
def metadata_store():
    return MemoryMetadataStore()


@pytest.fixture
def coverer():
    return RangeCoverer(PRECISION, PARTITION_BITS, max_cells=64)


@pytest.fixture
def writer(geocoder, index_store, metadata_store):
    return IndexWriter(geocoder, index_store, metadata_store, PRECISION, PARTITION_BITS)


@pytest.fixture
def engine(geocoder, index_store, metadata_store, coverer):
    return RadiusQueryEngine(
        geocoder, index_store, metadata_store, coverer,
        default_radius_m=5000, max_workers=4, scan_timeout=5.0,
    )


@pytest.fixture
def fake_redis():
    return FakeRedis()
