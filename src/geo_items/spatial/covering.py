"""
Covering Module for Radius Queries
--------------------------------

This module turns a query circle into the set of geohash intervals that must be
scanned to find every indexed point inside it. Geohash cells are subdivided
breadth first, in quadrants, and compared against the circle's bounding box:
cells outside every box are dropped, cells inside a box are kept whole, cells
straddling an edge are subdivided again until the depth or cell budget runs
out. The kept cells are then split along partition boundaries and merged into
as few contiguous intervals as possible.

The covering is allowed to include points outside the circle; the query engine
removes them with an exact distance check. It must never miss a point inside.

Functions:
  circle_bounding_boxes(center, radius_m) -> list:
    Latitude/longitude boxes enclosing a spherical circle. Two boxes are
    returned when the circle crosses the antimeridian.

Classes:
  CoveringRange: (partition_key, start, end) interval to scan.
  RangeCoverer:  Produces merged CoveringRanges for a circle.
"""

import math
from dataclasses import dataclass
from typing import List, Tuple

from ..utils.logger import logger
from .geohash import (
    EARTH_RADIUS_M,
    BoundingBox,
    Point,
    cell_range,
    prefix_bounding_box,
)

# Keeps boxes a hair larger than the exact circle so float rounding cannot cut off an edge point.
BOX_PADDING_DEG = 1e-9

OUTSIDE, PARTIAL, INSIDE = 0, 1, 2

Cell = Tuple[int, int]  # (prefix, depth in bits)


@dataclass(frozen=True, order=True)
class CoveringRange:
    partition_key: int
    start: int
    end: int


def circle_bounding_boxes(center: Point, radius_m: float) -> List[BoundingBox]:
    """Bounding boxes (lat_min, lat_max, lng_min, lng_max) of a circle on the sphere.

    A circle reaching a pole spans every longitude. A circle crossing the
    antimeridian is returned as two boxes, one on each side of it.
    """
    delta = radius_m / EARTH_RADIUS_M
    if delta >= math.pi:
        return [(-90.0, 90.0, -180.0, 180.0)]

    lat = math.radians(center.lat)
    lat_min = max(-90.0, math.degrees(lat - delta) - BOX_PADDING_DEG)
    lat_max = min(90.0, math.degrees(lat + delta) + BOX_PADDING_DEG)

    if lat + delta >= math.pi / 2 or lat - delta <= -math.pi / 2:
        return [(lat_min, lat_max, -180.0, 180.0)]

    dlng = math.degrees(math.asin(math.sin(delta) / math.cos(lat))) + BOX_PADDING_DEG
    lng_min = center.lng - dlng
    lng_max = center.lng + dlng

    if lng_max - lng_min >= 360.0:
        return [(lat_min, lat_max, -180.0, 180.0)]
    if lng_min < -180.0:
        return [
            (lat_min, lat_max, lng_min + 360.0, 180.0),
            (lat_min, lat_max, -180.0, lng_max),
        ]
    if lng_max > 180.0:
        return [
            (lat_min, lat_max, lng_min, 180.0),
            (lat_min, lat_max, -180.0, lng_max - 360.0),
        ]
    return [(lat_min, lat_max, lng_min, lng_max)]


def _classify(cell: BoundingBox, boxes: List[BoundingBox]) -> int:
    c_lat_lo, c_lat_hi, c_lng_lo, c_lng_hi = cell
    state = OUTSIDE
    for lat_lo, lat_hi, lng_lo, lng_hi in boxes:
        if c_lat_hi < lat_lo or c_lat_lo > lat_hi or c_lng_hi < lng_lo or c_lng_lo > lng_hi:
            continue
        if lat_lo <= c_lat_lo and c_lat_hi <= lat_hi and lng_lo <= c_lng_lo and c_lng_hi <= lng_hi:
            return INSIDE
        state = PARTIAL
    return state


class RangeCoverer:
    """
    Computes the geohash intervals covering a query circle.

    Attributes:
        precision (int):      Bits per axis of the indexed geohashes.
        partition_bits (int): Leading hash bits that form the partition key.
        max_cells (int):      Largest frontier of straddling cells worth refining.
                              Past it, cells are emitted as they are.

    Usage:
        coverer = RangeCoverer(precision=26, partition_bits=10)
        for rng in coverer.cover(Point(40.7, -74.0), 5000):
            store.scan_range(rng.partition_key, rng.start, rng.end)
    """

    def __init__(self, precision: int, partition_bits: int, max_cells: int = 64) -> None:
        if not 0 <= partition_bits <= 2 * precision:
            raise ValueError(
                f"partition_bits {partition_bits} must be between 0 and {2 * precision}"
            )
        if max_cells < 1:
            raise ValueError("max_cells must be positive")
        self.precision = precision
        self.partition_bits = partition_bits
        self.max_cells = max_cells

    def max_depth(self, radius_m: float) -> int:
        """Depth, in bits, at which cells are about half the radius tall."""
        full = 2 * self.precision
        if radius_m <= 0:
            return full
        half_radius_deg = math.degrees(radius_m / EARTH_RADIUS_M) / 2
        steps = max(0, math.ceil(math.log2(180.0 / half_radius_deg)))
        return min(full, max(2 * steps, self.partition_bits + self.partition_bits % 2))

    def cover(self, center: Point, radius_m: float) -> List[CoveringRange]:
        if not math.isfinite(radius_m) or radius_m < 0:
            raise ValueError(f"radius {radius_m} must be a finite, non-negative number of meters")

        boxes = circle_bounding_boxes(center, radius_m)
        max_depth = self.max_depth(radius_m)

        cells: List[Cell] = []
        frontier: List[Cell] = [(0, 0)]
        depth = 0
        while frontier:
            partial = []
            for prefix, d in frontier:
                state = _classify(prefix_bounding_box(prefix, d), boxes)
                if state == INSIDE:
                    cells.append((prefix, d))
                elif state == PARTIAL:
                    partial.append((prefix, d))

            over_budget = depth >= self.partition_bits and len(partial) * 4 > self.max_cells
            if depth >= max_depth or over_budget:
                cells.extend(partial)
                break

            depth += 2
            frontier = [
                ((prefix << 2) | child, depth)
                for prefix, _ in partial
                for child in range(4)
            ]

        ranges = self._merge(self._split_by_partition(cells))

        logger.debug("Computed covering ranges", extra={
            "operation": "cover",
            "center": {"lat": center.lat, "lng": center.lng},
            "radius_m": radius_m,
            "bounding_boxes": len(boxes),
            "depth": depth,
            "cell_count": len(cells),
            "range_count": len(ranges)
        })
        return ranges

    def _split_by_partition(self, cells: List[Cell]) -> List[CoveringRange]:
        ranges = []
        for prefix, depth in cells:
            if depth >= self.partition_bits:
                start, end = cell_range(prefix, depth, self.precision)
                ranges.append(CoveringRange(prefix >> (depth - self.partition_bits), start, end))
                continue
            # coarser than a partition: one full-partition range per partition inside it
            extra = self.partition_bits - depth
            for sub in range(prefix << extra, (prefix + 1) << extra):
                start, end = cell_range(sub, self.partition_bits, self.precision)
                ranges.append(CoveringRange(sub, start, end))
        return ranges

    @staticmethod
    def _merge(ranges: List[CoveringRange]) -> List[CoveringRange]:
        merged: List[CoveringRange] = []
        for rng in sorted(ranges):
            last = merged[-1] if merged else None
            if last and last.partition_key == rng.partition_key and rng.start <= last.end + 1:
                if rng.end > last.end:
                    merged[-1] = CoveringRange(last.partition_key, last.start, rng.end)
                continue
            merged.append(rng)
        return merged
