"""
geo_items
~~~~~~~~~

Geohash-indexed point-of-interest storage with radius queries.

Items are geocoded from an address, indexed by an integer geohash in a
partitioned, range-scannable store, and found again by scanning the geohash
intervals that cover a query circle and filtering by great-circle distance.
"""

__version__ = "0.1.0"

# -------------------------------------------------------------------
# Package-level logger (this lives in utils/logger.py, not to be
# confused with the stdlib `logging` package)
# -------------------------------------------------------------------
from .utils.logger      import logger

# -------------------------------------------------------------------
# Errors
# -------------------------------------------------------------------
from .exceptions        import (
    GeocodeFailure,
    GeoItemsError,
    InvalidInput,
    InvalidQuery,
    StoreFailure,
)

# -------------------------------------------------------------------
# Spatial indexing
# -------------------------------------------------------------------
from .spatial.geohash   import Point, encode, decode_bounding_box, haversine_distance
from .spatial.covering  import CoveringRange, RangeCoverer

# -------------------------------------------------------------------
# Stores
# -------------------------------------------------------------------
from .store.base        import GeoIndexStore, IndexEntry, ItemMetadata, MetadataStore
from .store.memory      import MemoryGeoIndexStore, MemoryMetadataStore
from .store.redis_store import RedisGeoIndexStore, RedisMetadataStore

# -------------------------------------------------------------------
# Core operations
# -------------------------------------------------------------------
from .core.geocode      import GoogleGeocoder
from .core.writer       import IndexWriter
from .core.query        import Item, RadiusQueryEngine
from .core.api          import ItemsApi

# -------------------------------------------------------------------
# Public API
# -------------------------------------------------------------------
__all__ = [
    # logging
    "logger",
    # errors
    "GeoItemsError",
    "InvalidInput",
    "InvalidQuery",
    "GeocodeFailure",
    "StoreFailure",
    # spatial
    "Point",
    "encode",
    "decode_bounding_box",
    "haversine_distance",
    "CoveringRange",
    "RangeCoverer",
    # stores
    "GeoIndexStore",
    "MetadataStore",
    "IndexEntry",
    "ItemMetadata",
    "MemoryGeoIndexStore",
    "MemoryMetadataStore",
    "RedisGeoIndexStore",
    "RedisMetadataStore",
    # core
    "GoogleGeocoder",
    "IndexWriter",
    "Item",
    "RadiusQueryEngine",
    "ItemsApi",
]
