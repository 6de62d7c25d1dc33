"""
Item indexing.

`IndexWriter.create_item` geocodes an address, then writes the geo index entry
followed by the metadata record. The two writes are independent: when the
metadata write fails the item is still indexed, shows up as an orphan on reads,
and its id is returned.
"""

import base64
import uuid

from ..exceptions import GeocodeFailure, InvalidInput, StoreFailure
from ..spatial.geohash import encode, partition_key
from ..store.base import GeoIndexStore, IndexEntry, ItemMetadata, MetadataStore
from ..utils.logger import logger
from .geocode import Geocoder


def new_item_id() -> str:
    """22-character URL-safe id from a random UUID; needs no coordination."""
    return base64.urlsafe_b64encode(uuid.uuid4().bytes).rstrip(b"=").decode("ascii")


class IndexWriter:

    def __init__(
            self,
            geocoder: Geocoder,
            index_store: GeoIndexStore,
            metadata_store: MetadataStore,
            precision: int,
            partition_bits: int,
            ) -> None:
        self.geocoder = geocoder
        self.index_store = index_store
        self.metadata_store = metadata_store
        self.precision = precision
        self.partition_bits = partition_bits

    def create_item(self, name: str, address: str) -> str:
        """
        Geocode and index a new item.

        Args:
            name (str):    Display name of the item.
            address (str): Street address to resolve.

        Returns:
            str: The generated item id.

        Raises:
            InvalidInput:   name or address is missing or blank. Nothing is written.
            GeocodeFailure: the address could not be resolved. Nothing is written.
            StoreFailure:   the index write failed.
        """
        if not isinstance(name, str) or not name.strip():
            raise InvalidInput("A name and address are required.")
        if not isinstance(address, str) or not address.strip():
            raise InvalidInput("A name and address are required.")

        point = self.geocoder.geocode(address)
        if point is None:
            raise GeocodeFailure(f"No location found for address {address!r}")

        item_id = new_item_id()
        geohash = encode(point, self.precision)
        entry = IndexEntry(
            partition_key=partition_key(geohash, self.precision, self.partition_bits),
            geohash=geohash,
            item_id=item_id,
        )

        self.index_store.put(entry)

        try:
            self.metadata_store.put(ItemMetadata(item_id, name, address, point))
        except StoreFailure as e:
            logger.warning("Metadata write failed, index entry left orphaned", extra={
                "operation": "create_item",
                "item_id": item_id,
                "partition_key": entry.partition_key,
                "error": str(e),
                "status": "orphaned"
            })
            return item_id

        logger.info("Indexed item", extra={
            "operation": "create_item",
            "item_id": item_id,
            "partition_key": entry.partition_key,
            "geohash": geohash,
            "lat": point.lat,
            "lng": point.lng,
            "status": "success"
        })
        return item_id
