"""
Error taxonomy for geo_items.

Every error carries the HTTP-style status code the request layer should answer
with. Orphan index entries are not errors and have no class here.
"""


class GeoItemsError(Exception):
    """Base class for all geo_items errors."""

    status_code: int = 500


class InvalidInput(GeoItemsError):
    """Missing or malformed request fields (400)."""

    status_code = 400


class InvalidQuery(InvalidInput):
    """A radius query whose center or radius cannot be resolved (400)."""


class GeocodeFailure(GeoItemsError):
    """The geocoder found no match for an address, or failed (500)."""


class StoreFailure(GeoItemsError):
    """The key-value store rejected or timed out a read or write (500)."""
