import random

import pytest

from geo_items.spatial.covering import RangeCoverer, circle_bounding_boxes
from geo_items.spatial.geohash import Point, encode, haversine_distance, partition_key

from .conftest import PARTITION_BITS, PRECISION, random_point_in_circle


def covered(ranges, point):
    geohash = encode(point, PRECISION)
    pk = partition_key(geohash, PRECISION, PARTITION_BITS)
    return any(r.partition_key == pk and r.start <= geohash <= r.end for r in ranges)


@pytest.mark.parametrize("lat,lng,radius", [
    (40.7, -74.0, 5000),
    (0.0, 179.9, 50000),
    (0.0, -179.99, 2000),
    (89.9, 10.0, 30000),
    (-89.95, -120.0, 10000),
    (51.5, -0.1, 250),
    (35.0, 139.0, 1_000_000),
    (40.7, -74.0, 5_000_000),
    (0.0, 0.0, 0.5),
    (-33.9, 151.2, 12_345),
])
def test_covering_contains_every_sampled_point(coverer, lat, lng, radius):
    center = Point(lat, lng)
    ranges = coverer.cover(center, radius)
    rng = random.Random(f"{lat},{lng},{radius}")
    checked = 0
    for _ in range(400):
        point = random_point_in_circle(rng, center, radius)
        if haversine_distance(center, point) > radius:
            continue
        checked += 1
        assert covered(ranges, point), f"{point} inside the circle but not covered"
    assert checked > 300


def test_zero_radius_covers_center_cell(coverer):
    center = Point(48.8566, 2.3522)
    ranges = coverer.cover(center, 0)
    assert ranges
    assert covered(ranges, center)


def test_ranges_are_sorted_and_disjoint(coverer):
    ranges = coverer.cover(Point(40.7, -74.0), 20000)
    for previous, current in zip(ranges, ranges[1:]):
        assert (previous.partition_key, previous.start) < (current.partition_key, current.start)
        if previous.partition_key == current.partition_key:
            # adjacent intervals would have been merged
            assert current.start > previous.end + 1
    for r in ranges:
        assert r.start <= r.end
        assert partition_key(r.start, PRECISION, PARTITION_BITS) == r.partition_key
        assert partition_key(r.end, PRECISION, PARTITION_BITS) == r.partition_key


def test_small_radius_stays_small(coverer):
    ranges = coverer.cover(Point(40.7, -74.0), 5000)
    assert 1 <= len(ranges) <= 256
    span = sum(r.end - r.start + 1 for r in ranges)
    # far less than a single partition
    assert span < (1 << (2 * PRECISION - PARTITION_BITS))


def test_large_radius_spans_several_partitions(coverer):
    ranges = coverer.cover(Point(40.7, -74.0), 5_000_000)
    assert len({r.partition_key for r in ranges}) > 1
    assert covered(ranges, Point(34.0522, -118.2437))


def test_whole_earth_radius_covers_every_partition(coverer):
    ranges = coverer.cover(Point(0, 0), 2.1e7)
    assert len({r.partition_key for r in ranges}) == 1 << PARTITION_BITS
    assert sum(r.end - r.start + 1 for r in ranges) == 1 << (2 * PRECISION)


def test_antimeridian_box_is_split():
    boxes = circle_bounding_boxes(Point(0, 179.9), 50000)
    assert len(boxes) == 2
    east, west = boxes
    assert east[3] == 180.0 and east[2] < 179.9
    assert west[2] == -180.0 and west[3] > -180.0


def test_antimeridian_query_covers_far_side(coverer):
    ranges = coverer.cover(Point(0, 179.9), 50000)
    assert covered(ranges, Point(0, -179.9))
    assert covered(ranges, Point(0.1, 179.95))


def test_polar_box_spans_all_longitudes():
    (box,) = circle_bounding_boxes(Point(89.99, 45), 5000)
    assert box[1] == 90.0
    assert (box[2], box[3]) == (-180.0, 180.0)


def test_bounding_box_encloses_circle():
    center = Point(60.0, 25.0)
    (lat_min, lat_max, lng_min, lng_max) = circle_bounding_boxes(center, 100_000)[0]
    rng = random.Random(3)
    for _ in range(500):
        p = random_point_in_circle(rng, center, 100_000)
        assert lat_min <= p.lat <= lat_max
        assert lng_min <= p.lng <= lng_max


def test_max_depth_follows_radius(coverer):
    assert coverer.max_depth(0) == 2 * PRECISION
    assert coverer.max_depth(5000) == 26
    # never stops above the partition level
    assert coverer.max_depth(5_000_000) == PARTITION_BITS


@pytest.mark.parametrize("radius", [-1, float("nan"), float("inf")])
def test_invalid_radius(coverer, radius):
    with pytest.raises(ValueError):
        coverer.cover(Point(0, 0), radius)


def test_invalid_configuration():
    with pytest.raises(ValueError):
        RangeCoverer(precision=5, partition_bits=11)
    with pytest.raises(ValueError):
        RangeCoverer(precision=5, partition_bits=4, max_cells=0)


def test_odd_partition_bits_still_complete():
    coverer = RangeCoverer(precision=20, partition_bits=7, max_cells=16)
    center = Point(-12.0, 77.0)
    ranges = coverer.cover(center, 80_000)
    rng = random.Random(11)
    for _ in range(300):
        point = random_point_in_circle(rng, center, 80_000)
        geohash = encode(point, 20)
        pk = partition_key(geohash, 20, 7)
        assert any(r.partition_key == pk and r.start <= geohash <= r.end for r in ranges)
