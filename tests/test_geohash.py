import math
import random

import pytest

from geo_items.exceptions import InvalidInput
from geo_items.spatial.geohash import (
    MAX_PRECISION,
    Point,
    cell_range,
    decode_bounding_box,
    encode,
    haversine_distance,
    partition_key,
    prefix_bounding_box,
)

from .conftest import LOS_ANGELES, NEW_YORK


def test_bounding_box_contains_encoded_point():
    rng = random.Random(7)
    points = [Point(rng.uniform(-90, 90), rng.uniform(-180, 180)) for _ in range(200)]
    points += [Point(90, 180), Point(-90, -180), Point(0, 0), Point(0, 180), Point(-90, 180)]
    for precision in range(1, MAX_PRECISION + 1):
        for point in points:
            lat_min, lat_max, lng_min, lng_max = decode_bounding_box(encode(point, precision), precision)
            assert lat_min <= point.lat <= lat_max
            assert lng_min <= point.lng <= lng_max


def test_encode_extremes():
    assert encode(Point(-90, -180), 26) == 0
    assert encode(Point(90, 180), 26) == (1 << 52) - 1
    # first bit is the longitude half, second the latitude half
    assert encode(Point(0, 0), 1) == 0b11
    assert encode(Point(-1, 1), 1) == 0b10
    assert encode(Point(1, -1), 1) == 0b01


def test_encode_is_deterministic_and_prefix_consistent():
    fine = encode(NEW_YORK, 26)
    coarse = encode(NEW_YORK, 5)
    assert encode(NEW_YORK, 26) == fine
    assert fine >> (52 - 10) == coarse


def test_cell_size_halves_per_precision_step():
    lat_min, lat_max, lng_min, lng_max = decode_bounding_box(encode(NEW_YORK, 3), 3)
    assert lat_max - lat_min == pytest.approx(180 / 8)
    assert lng_max - lng_min == pytest.approx(360 / 8)


def test_precision_out_of_range():
    with pytest.raises(ValueError):
        encode(NEW_YORK, 0)
    with pytest.raises(ValueError):
        encode(NEW_YORK, MAX_PRECISION + 1)
    with pytest.raises(ValueError):
        decode_bounding_box(1 << 10, 5)


def test_partition_key_and_cell_range():
    geohash = encode(NEW_YORK, 26)
    pk = partition_key(geohash, 26, 10)
    start, end = cell_range(pk, 10, 26)
    assert start <= geohash <= end
    assert end - start + 1 == 1 << 42
    assert partition_key(geohash, 26, 0) == 0
    with pytest.raises(ValueError):
        partition_key(geohash, 26, 53)


def test_prefix_bounding_box_odd_depth():
    lat_min, lat_max, lng_min, lng_max = prefix_bounding_box(0b101, 3)
    assert (lng_min, lng_max) == (90.0, 180.0)
    assert (lat_min, lat_max) == (-90.0, 0.0)


def test_haversine_known_distances():
    assert haversine_distance(NEW_YORK, NEW_YORK) == 0.0
    assert haversine_distance(NEW_YORK, LOS_ANGELES) == pytest.approx(3_936_000, rel=0.01)
    # a degree of latitude is about 111.2 km
    assert haversine_distance(Point(0, 0), Point(1, 0)) == pytest.approx(111_195, rel=1e-3)
    # across the antimeridian is short, not the long way round
    assert haversine_distance(Point(0, 179.9), Point(0, -179.9)) == pytest.approx(22_239, rel=1e-3)
    assert haversine_distance(Point(0, 0), Point(0, 180)) == pytest.approx(math.pi * 6_371_008.8)


@pytest.mark.parametrize("lat,lng", [
    (90.0001, 0), (-91, 0), (0, 180.5), (0, -181), (float("nan"), 0), (0, float("inf")),
    (True, 0), ("40.7", -74.0), (None, 0),
])
def test_point_rejects_invalid_coordinates(lat, lng):
    with pytest.raises(InvalidInput):
        Point(lat, lng)


def test_point_from_strings():
    assert Point.from_strings("40.7", "-74.0") == Point(40.7, -74.0)
    with pytest.raises(InvalidInput):
        Point.from_strings("forty", "-74.0")
    with pytest.raises(InvalidInput):
        Point.from_strings("95", "0")
