"""
Request-facing operations.

`ItemsApi` is what a request handler calls. It accepts loosely typed payloads
(strings from query strings, dicts from JSON bodies), maps them onto the
writer and the query engine, and shapes the results.

    api.get_items({"lat": "40.7", "lng": "-74.0", "radius": 50000})
    -> [{"id": ..., "name": ..., "address": ..., "coords": {"lat": ..., "lng": ...}}]

    api.create_item({"name": "Deli", "address": "1 Main St"})
    -> "Zt9...", or {"statusCode": 400, "body": {"message": ...}} on failure
"""

from http import HTTPStatus
from typing import Any, Dict, List, Mapping, Union

from ..exceptions import GeoItemsError, InvalidQuery
from ..spatial.geohash import Point
from ..utils.logger import logger
from .query import RadiusQueryEngine
from .writer import IndexWriter


def parse_location(location: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Split a location payload into query arguments.

    Returns a dict with `address` or `center`, and `radius` (None when absent).
    Coordinates that do not parse as numbers raise InvalidQuery instead of
    falling back to some default point.
    """
    if not isinstance(location, Mapping):
        raise InvalidQuery("A location is required")

    radius = location.get("radius")
    if radius == "":
        radius = None

    address = location.get("address")
    if isinstance(address, str) and address.strip():
        return {"address": address, "center": None, "radius": radius}

    lat, lng = location.get("lat"), location.get("lng")
    if lat in (None, "") or lng in (None, ""):
        raise InvalidQuery("Unable to parse the input coordinates and radius")
    try:
        center = Point.from_strings(lat, lng)
    except GeoItemsError as e:
        raise InvalidQuery(str(e)) from e
    return {"address": None, "center": center, "radius": radius}


class ItemsApi:

    def __init__(self, writer: IndexWriter, engine: RadiusQueryEngine) -> None:
        self.writer = writer
        self.engine = engine

    def get_items(self, location: Mapping[str, Any]) -> List[Dict[str, Any]]:
        """Items around `location`. Errors propagate as GeoItemsError subclasses."""
        args = parse_location(location)
        items = self.engine.query(center=args["center"], address=args["address"], radius=args["radius"])
        return [item.to_dict() for item in items]

    def create_item(self, item: Mapping[str, Any]) -> Union[str, Dict[str, Any]]:
        """Id of the new item, or a failure payload with an HTTP status code."""
        item = item or {}
        try:
            return self.writer.create_item(item.get("name"), item.get("address"))
        except GeoItemsError as e:
            status = HTTPStatus(e.status_code)
            if status == HTTPStatus.BAD_REQUEST:
                message = "A name and address are required."
            else:
                message = "An error occurred trying to save the item"
            logger.warning("Item not created", extra={
                "operation": "create_item",
                "status_code": int(status),
                "error": str(e),
                "status": "failed"
            })
            return {"statusCode": int(status), "body": {"message": message}}
