"""
Radius Query Module
--------------------------------

RadiusQueryEngine answers "which items lie within R meters of this place?".

A query runs in phases:
  1. Resolve the center, from an address through the geocoder or from raw
     coordinates, and the radius (default DEFAULT_RADIUS_M when none is given).
  2. Ask the RangeCoverer for the geohash intervals covering the circle.
  3. Scan every interval concurrently on a thread pool. All scans must finish
     within `scan_timeout`; otherwise the pending ones are cancelled and the
     whole query fails. Partial results are never returned.
  4. Drop duplicate item ids, join with the metadata store, skip orphan entries
     that have no metadata, and keep only items whose great-circle distance to
     the center is within the radius.

Results come back in index order (partition, geohash, item id), which is stable
for a given store state.
"""

import math
import uuid
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from ..exceptions import InvalidInput, InvalidQuery, StoreFailure
from ..spatial.covering import CoveringRange, RangeCoverer
from ..spatial.geohash import Point, haversine_distance
from ..store.base import GeoIndexStore, IndexEntry, MetadataStore
from ..utils.logger import logger
from ..utils.metrics import SearchMetrics
from .geocode import Geocoder

DISTANCE_TOLERANCE_M = 1e-6

CenterLike = Union[Point, Tuple[float, float], Sequence[float]]


@dataclass(frozen=True)
class Item:
    id: str
    name: str
    address: str
    point: Point
    distance_m: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "address": self.address,
            "coords": {"lat": self.point.lat, "lng": self.point.lng},
        }


class RadiusQueryEngine:
    """
    Finds stored items within a radius of an address or a coordinate.

    Attributes:
        geocoder:          Resolves addresses to points.
        index_store:       Range-scannable geo index.
        metadata_store:    Item metadata by id.
        coverer:           Turns circles into geohash intervals.
        default_radius_m:  Radius used when the caller gives none.
        max_workers:       Upper bound on concurrent scans per query.
        scan_timeout:      Seconds allowed for all scans of one query.

    Usage:
        engine = RadiusQueryEngine(geocoder, index_store, metadata_store, coverer)
        items = engine.query(address="1600 Amphitheatre Pkwy", radius=2000)
        items = engine.query(center=Point(40.7, -74.0))
    """

    def __init__(
            self,
            geocoder: Geocoder,
            index_store: GeoIndexStore,
            metadata_store: MetadataStore,
            coverer: RangeCoverer,
            default_radius_m: float = 5000,
            max_workers: int = 10,
            scan_timeout: float = 10.0,
            ) -> None:
        self.geocoder = geocoder
        self.index_store = index_store
        self.metadata_store = metadata_store
        self.coverer = coverer
        self.default_radius_m = default_radius_m
        self.max_workers = max_workers
        self.scan_timeout = scan_timeout

# -------------------------------------------------- Input resolution ---------------------------------------------------------

    def resolve_center(self, center: Optional[CenterLike] = None, address: Optional[str] = None) -> Point:
        """Point to search around. An address, when given, takes precedence."""
        if address is not None and str(address).strip():
            point = self.geocoder.geocode(str(address))
            if point is None:
                raise InvalidQuery(f"No location found for address {address!r}")
            return point

        if center is None:
            raise InvalidQuery("Unable to parse the input coordinates and radius")
        if isinstance(center, Point):
            return center
        try:
            lat, lng = center
            return Point(lat, lng)
        except (TypeError, ValueError, InvalidInput) as e:
            raise InvalidQuery(f"Invalid center {center!r}") from e

    def resolve_radius(self, radius: Optional[Any] = None) -> float:
        """Radius in meters; only a missing radius falls back to the default."""
        if radius is None:
            return float(self.default_radius_m)
        if isinstance(radius, bool):
            raise InvalidQuery(f"Invalid radius {radius!r}")
        try:
            value = float(radius)
        except (TypeError, ValueError) as e:
            raise InvalidQuery(f"Invalid radius {radius!r}") from e
        if not math.isfinite(value) or value < 0:
            raise InvalidQuery(f"Radius must be a finite, non-negative number of meters, got {radius!r}")
        return value

# -------------------------------------------------- Scanning ---------------------------------------------------------

    def _scan(self, rng: CoveringRange) -> List[IndexEntry]:
        return list(self.index_store.scan_range(rng.partition_key, rng.start, rng.end))

    def _scan_all(self, ranges: List[CoveringRange], search_id: str) -> List[List[IndexEntry]]:
        if not ranges:
            return []

        executor = ThreadPoolExecutor(
            max_workers=max(1, min(self.max_workers, len(ranges))),
            thread_name_prefix=f"scan-{search_id}",
        )
        futures = [executor.submit(self._scan, rng) for rng in ranges]
        try:
            done, not_done = wait(futures, timeout=self.scan_timeout, return_when=FIRST_EXCEPTION)
            for future in done:
                future.result()  # re-raises the first scan failure
            if not_done:
                raise StoreFailure(
                    f"{len(not_done)} of {len(ranges)} range scans did not finish "
                    f"within {self.scan_timeout}s"
                )
            return [future.result() for future in futures]
        except Exception as e:
            logger.error(f"Range scan failed: {str(e)}", extra={
                "operation": "scan_ranges",
                "search_id": search_id,
                "range_count": len(ranges),
                "error": str(e),
                "status": "error"
            })
            if isinstance(e, StoreFailure):
                raise
            raise StoreFailure(f"Range scan failed: {e}") from e
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

    def candidates(
            self,
            center: Point,
            radius_m: float,
            metrics: Optional[SearchMetrics] = None,
            ) -> List[IndexEntry]:
        """Deduplicated index entries in the covering of the circle, before any
        distance filtering. Always a superset of the true answer."""
        metrics = metrics or SearchMetrics(str(uuid.uuid4())[:8])
        ranges = self.coverer.cover(center, radius_m)
        metrics.ranges_scanned = len(ranges)

        seen = set()
        unique = []
        for entries in self._scan_all(ranges, metrics.search_id):
            metrics.candidates += len(entries)
            for entry in entries:
                if entry.item_id in seen:
                    metrics.duplicates += 1
                    continue
                seen.add(entry.item_id)
                unique.append(entry)
        return sorted(unique)

# -------------------------------------------------- Query ---------------------------------------------------------

    def query(
            self,
            center: Optional[CenterLike] = None,
            address: Optional[str] = None,
            radius: Optional[Any] = None,
            ) -> List[Item]:
        """
        Items within `radius` meters of an address or a center point.

        Args:
            center:  (lat, lng) or Point. Ignored when an address is given.
            address: Address to geocode for the center.
            radius:  Meters. None means `default_radius_m`; any other value,
                     including 0, is used as given.

        Returns:
            list[Item]: Matching items, ordered by (partition, geohash, id).

        Raises:
            InvalidQuery:   no usable center, or an invalid radius.
            GeocodeFailure: the geocoder itself failed.
            StoreFailure:   a scan or metadata read failed or timed out.
        """
        search_id = str(uuid.uuid4())[:8]
        radius_m = self.resolve_radius(radius)
        point = self.resolve_center(center, address)
        metrics = SearchMetrics(search_id)

        logger.debug("Starting radius query", extra={
            "operation": "radius_query",
            "search_id": search_id,
            "lat": point.lat,
            "lng": point.lng,
            "radius_m": radius_m
        })

        entries = self.candidates(point, radius_m, metrics)
        metadata = self.metadata_store.get_many(entry.item_id for entry in entries)

        items = []
        for entry in entries:
            record = metadata.get(entry.item_id)
            if record is None:
                metrics.orphans += 1
                logger.debug("Skipping orphan index entry", extra={
                    "operation": "radius_query",
                    "search_id": search_id,
                    "item_id": entry.item_id,
                    "status": "orphan"
                })
                continue

            distance = haversine_distance(point, record.point)
            if distance > radius_m + DISTANCE_TOLERANCE_M:
                metrics.filtered_out += 1
                continue
            items.append(Item(record.item_id, record.name, record.address, record.point, distance))

        metrics.returned = len(items)
        metrics.log_metrics()
        return items
