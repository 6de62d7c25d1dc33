#!/usr/bin/env python3
from pathlib import Path
from typing import Any, Dict, Optional, Union

import redis

from ..config import (
    DEFAULT_RADIUS_M,
    GEOCODE_API_KEY,
    GEOCODE_TIMEOUT,
    GEOCODE_URL,
    GEOHASH_PRECISION,
    INDEX_KEY_PREFIX,
    MAX_COVER_CELLS,
    MAX_WORKERS,
    METADATA_KEY_PREFIX,
    PARTITION_BITS,
    REDIS_SOCKET_TIMEOUT,
    REDIS_URL,
    SCAN_PAGE_SIZE,
    SCAN_TIMEOUT,
    get_config,
)
from ..spatial.covering import RangeCoverer
from ..store.redis_store import RedisGeoIndexStore, RedisMetadataStore, connect
from ..utils.logger import logger
from .api import ItemsApi
from .bulk import load_items
from .geocode import GoogleGeocoder
from .query import RadiusQueryEngine
from .writer import IndexWriter


def build_api(client: Optional[redis.Redis] = None, geocoder=None) -> ItemsApi:
    """
    Wire the service from configuration.

    Args:
        client: Redis client to use (default: one opened from REDIS_URL)
        geocoder: Geocoder to use (default: GoogleGeocoder with GEOCODE_API_KEY)

    Returns:
        ItemsApi ready to serve get_items / create_item
    """
    client = client or connect(REDIS_URL, REDIS_SOCKET_TIMEOUT)
    geocoder = geocoder or GoogleGeocoder(GEOCODE_API_KEY, url=GEOCODE_URL, timeout=GEOCODE_TIMEOUT)

    index_store = RedisGeoIndexStore(client, key_prefix=INDEX_KEY_PREFIX, page_size=SCAN_PAGE_SIZE)
    metadata_store = RedisMetadataStore(client, key_prefix=METADATA_KEY_PREFIX)
    coverer = RangeCoverer(GEOHASH_PRECISION, PARTITION_BITS, max_cells=MAX_COVER_CELLS)

    writer = IndexWriter(geocoder, index_store, metadata_store, GEOHASH_PRECISION, PARTITION_BITS)
    engine = RadiusQueryEngine(
        geocoder,
        index_store,
        metadata_store,
        coverer,
        default_radius_m=DEFAULT_RADIUS_M,
        max_workers=MAX_WORKERS,
        scan_timeout=SCAN_TIMEOUT,
    )
    return ItemsApi(writer, engine)


def main(
    input_csv: Union[str, Path],
    report_csv: Optional[Union[str, Path]] = None,
    api: Optional[ItemsApi] = None
) -> Dict[str, Any]:
    """
    Bulk-load items from a CSV of `name,address` rows.

    Args:
        input_csv: CSV file to load
        report_csv: Where to write the per-row report (default: alongside the input)
        api: Service to load into (default: build_api())

    Returns:
        Dict containing the load status and counts
    """
    try:
        api = api or build_api()
        input_csv = Path(input_csv)
        if report_csv is None:
            report_csv = input_csv.with_name(f"{input_csv.stem}_report.csv")

        logger.info(f"Starting bulk load of {input_csv}", extra={
            "operation": "bulk_load",
            "input_csv": str(input_csv),
            "report_csv": str(report_csv),
            "config": get_config()
        })

        report = load_items(input_csv, api.writer)
        report.to_csv(report_csv, index=False)
        created = int((report["status"] == 201).sum())

        logger.info(f"Bulk load of {input_csv} completed", extra={
            "operation": "bulk_load",
            "created": created,
            "failed": len(report) - created,
            "status": "success"
        })

        return {
            'status': 'success',
            'input_csv': str(input_csv),
            'report_csv': str(report_csv),
            'created': created,
            'failed': len(report) - created
        }

    except Exception as e:
        logger.error(f"Error in bulk load: {str(e)}", exc_info=True)
        return {
            'status': 'error',
            'input_csv': str(input_csv),
            'error': str(e)
        }


if __name__ == "__main__":
    import sys

    print(main(sys.argv[1]))
