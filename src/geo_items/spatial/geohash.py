"""
Geohash Module
--------------------------------

Integer geohashing of geographic points. A point is encoded by repeatedly
halving the longitude and latitude ranges and recording which half the value
falls in, longitude first, interleaving one bit of each axis per step. The
resulting integer orders cells along a Z-order curve: nearby points usually,
not always, get nearby hashes.

Functions:
  encode(point, precision) -> int:
    Encode a point into a geohash of `2 * precision` bits.

  decode_bounding_box(geohash, precision) -> tuple:
    Return the (lat_min, lat_max, lng_min, lng_max) cell a geohash represents.

  haversine_distance(a, b) -> float:
    Great-circle distance in meters between two points.

  partition_key(geohash, precision, partition_bits) -> int:
    Leading `partition_bits` bits of a geohash.

  cell_range(prefix, depth, precision) -> tuple:
    Inclusive geohash interval of every hash starting with a `depth`-bit prefix.
"""

import math
from dataclasses import dataclass
from typing import Tuple

from ..exceptions import InvalidInput

MAX_PRECISION = 26                      # 52-bit hashes are exact in a float64 / Redis score
EARTH_RADIUS_M = 6_371_008.8            # mean Earth radius

BoundingBox = Tuple[float, float, float, float]


@dataclass(frozen=True)
class Point:
    lat: float
    lng: float

    def __post_init__(self):
        for name, value, bound in (("lat", self.lat, 90.0), ("lng", self.lng, 180.0)):
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise InvalidInput(f"{name} must be a number, got {value!r}")
            if not math.isfinite(value) or not -bound <= value <= bound:
                raise InvalidInput(f"{name} {value} must be between {-bound} and {bound}")
        object.__setattr__(self, "lat", float(self.lat))
        object.__setattr__(self, "lng", float(self.lng))

    def __str__(self) -> str:
        return f"{self.lat},{self.lng}"

    @classmethod
    def from_strings(cls, lat: str, lng: str) -> "Point":
        """Parse a point from two numeric strings, e.g. request parameters."""
        try:
            return cls(float(lat), float(lng))
        except (TypeError, ValueError) as e:
            raise InvalidInput(f"Unable to parse coordinates {lat!r}, {lng!r}") from e


def _check_precision(precision: int) -> None:
    if not 1 <= precision <= MAX_PRECISION:
        raise ValueError(f"Precision must be between 1 and {MAX_PRECISION}")


def encode(point: Point, precision: int) -> int:
    """Encode a point into an integer geohash of `2 * precision` bits."""
    _check_precision(precision)
    lat_lo, lat_hi = -90.0, 90.0
    lng_lo, lng_hi = -180.0, 180.0
    geohash = 0
    for _ in range(precision):
        mid = (lng_lo + lng_hi) / 2
        if point.lng >= mid:
            geohash = (geohash << 1) | 1
            lng_lo = mid
        else:
            geohash <<= 1
            lng_hi = mid

        mid = (lat_lo + lat_hi) / 2
        if point.lat >= mid:
            geohash = (geohash << 1) | 1
            lat_lo = mid
        else:
            geohash <<= 1
            lat_hi = mid
    return geohash


def decode_bounding_box(geohash: int, precision: int) -> BoundingBox:
    """Return the (lat_min, lat_max, lng_min, lng_max) cell of a geohash.

    The subdivision is replayed with the same midpoints `encode` used, so the
    box always contains the point that produced the hash.
    """
    _check_precision(precision)
    bit_length = 2 * precision
    if not 0 <= geohash < (1 << bit_length):
        raise ValueError(f"Geohash {geohash} does not fit in {bit_length} bits")
    return prefix_bounding_box(geohash, bit_length)


def prefix_bounding_box(prefix: int, depth: int) -> BoundingBox:
    """Bounding box of the cell named by the first `depth` bits of a geohash.

    `depth` may be odd, in which case the cell is twice as wide as it is tall.
    """
    lat_lo, lat_hi = -90.0, 90.0
    lng_lo, lng_hi = -180.0, 180.0
    for i in range(depth):
        bit = (prefix >> (depth - 1 - i)) & 1
        if i % 2 == 0:
            mid = (lng_lo + lng_hi) / 2
            if bit:
                lng_lo = mid
            else:
                lng_hi = mid
        else:
            mid = (lat_lo + lat_hi) / 2
            if bit:
                lat_lo = mid
            else:
                lat_hi = mid
    return lat_lo, lat_hi, lng_lo, lng_hi


def cell_range(prefix: int, depth: int, precision: int) -> Tuple[int, int]:
    """Inclusive (start, end) geohash interval sharing a `depth`-bit prefix."""
    shift = 2 * precision - depth
    return prefix << shift, ((prefix + 1) << shift) - 1


def partition_key(geohash: int, precision: int, partition_bits: int) -> int:
    """Leading `partition_bits` bits of a geohash."""
    if not 0 <= partition_bits <= 2 * precision:
        raise ValueError(
            f"partition_bits {partition_bits} must be between 0 and {2 * precision}"
        )
    return geohash >> (2 * precision - partition_bits)


def haversine_distance(a: Point, b: Point) -> float:
    """Great-circle distance between two points, in meters."""
    lat1, lat2 = math.radians(a.lat), math.radians(b.lat)
    dlat = lat2 - lat1
    dlng = math.radians(b.lng - a.lng)
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(h)))
