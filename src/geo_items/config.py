"""
Configuration module for the geo_items radius search service.
-------------------------------------------

This module defines all of the tunable parameters and environment-driven settings
used by the geohash index, the range coverer, the stores and the geocoder.
Values are read once at import time; a local `.env` file is honoured.
"""

import os
from typing import Dict, Any

from dotenv import load_dotenv

load_dotenv()

# Geohash index parameters
GEOHASH_PRECISION = int(os.getenv('GEOHASH_PRECISION', 26))        # bits per axis, 52-bit hashes
PARTITION_BITS = int(os.getenv('PARTITION_BITS', 10))              # leading hash bits used as partition key
MAX_COVER_CELLS = int(os.getenv('MAX_COVER_CELLS', 64))            # frontier cap while refining a covering

# Query parameters
DEFAULT_RADIUS_M = float(os.getenv('DEFAULT_RADIUS_M', 5000))      # in meters
MAX_WORKERS = int(os.getenv('MAX_WORKERS', 10))
SCAN_TIMEOUT = float(os.getenv('SCAN_TIMEOUT', 10))                # seconds for all scans of one query
SCAN_PAGE_SIZE = int(os.getenv('SCAN_PAGE_SIZE', 500))

# Geocoding API configuration
GEOCODE_API_KEY = os.getenv('GEOCODE_API_KEY')
GEOCODE_URL = os.getenv('GEOCODE_URL', 'https://maps.googleapis.com/maps/api/geocode/json')
GEOCODE_TIMEOUT = float(os.getenv('GEOCODE_TIMEOUT', 5))

# Key-value store configuration
REDIS_URL = os.getenv('REDIS_URL', 'redis://localhost:6379/0')
REDIS_SOCKET_TIMEOUT = float(os.getenv('REDIS_SOCKET_TIMEOUT', 5))
INDEX_KEY_PREFIX = os.getenv('INDEX_KEY_PREFIX', 'geoindex')
METADATA_KEY_PREFIX = os.getenv('METADATA_KEY_PREFIX', 'metadata')

# Logging
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()
LOG_FILE = os.getenv('LOG_FILE')


def get_config() -> Dict[str, Any]:
    """
    Get the current configuration as a dictionary.
    Useful for logging and debugging. The API key is never included.
    """
    return {
        'index': {
            'geohash_precision': GEOHASH_PRECISION,
            'partition_bits': PARTITION_BITS,
            'max_cover_cells': MAX_COVER_CELLS
        },
        'query': {
            'default_radius_m': DEFAULT_RADIUS_M,
            'max_workers': MAX_WORKERS,
            'scan_timeout': SCAN_TIMEOUT,
            'scan_page_size': SCAN_PAGE_SIZE
        },
        'geocode': {
            'url': GEOCODE_URL,
            'timeout': GEOCODE_TIMEOUT,
            'api_key_set': bool(GEOCODE_API_KEY)
        },
        'store': {
            'redis_url': REDIS_URL,
            'socket_timeout': REDIS_SOCKET_TIMEOUT,
            'index_key_prefix': INDEX_KEY_PREFIX,
            'metadata_key_prefix': METADATA_KEY_PREFIX
        },
        'logging': {
            'level': LOG_LEVEL,
            'file': LOG_FILE
        }
    }
