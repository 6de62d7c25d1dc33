"""
Module for resolving street addresses to coordinates via the Google Maps Geocoding API.
---------------------------------
Logs each lookup with a unique search ID and reports errors in a structured,
JSON-formatted log.

Classes:
    GoogleGeocoder: `geocode(address) -> Point | None`. The first, most likely,
                    result wins. No match gives None; transport errors, non-OK
                    statuses and out-of-range coordinates raise GeocodeFailure.
"""

import uuid
from typing import Optional, Protocol

import requests

from ..exceptions import GeocodeFailure, InvalidInput
from ..spatial.geohash import Point
from ..utils.logger import logger


class Geocoder(Protocol):
    def geocode(self, address: str) -> Optional[Point]:
        ...


class GoogleGeocoder:

    def __init__(
            self,
            api_key: Optional[str],
            url: str = "https://maps.googleapis.com/maps/api/geocode/json",
            timeout: float = 5.0,
            session: Optional[requests.Session] = None,
            ) -> None:
        if not api_key:
            raise ValueError("GEOCODE_API_KEY environment variable is required")
        self.api_key = api_key
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()

    def geocode(self, address: str) -> Optional[Point]:
        """
        Query the Geocoding API for the coordinates of an address.

        This function:
          1. Generates a short, unique `search_id` for tracing.
          2. Logs the start of the geocode operation at INFO level.
          3. Makes an HTTP GET to the Geocoding endpoint, bounded by `timeout`.
          4. Parses the first result's `location` (lat/lng).
          5. Logs success or failure, including coordinates or error details.

        Args:
            address (str): The human-readable address to geocode.

        Returns:
            Point | None: The coordinates, or None when the API has no match.

        Raises:
            GeocodeFailure: On HTTP errors, timeouts, unexpected API statuses or
                            malformed coordinates in the response.
        """
        # Generate a unique ID for this search operation
        search_id: str = str(uuid.uuid4())[:8]

        logger.info("Geocoding address", extra={
            "operation": "geocode",
            "search_id": search_id,
            "address": address
        })

        try:
            response = self.session.get(
                self.url,
                params={"address": address, "key": self.api_key},
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Error geocoding address: {str(e)}", extra={
                "operation": "geocode",
                "search_id": search_id,
                "address": address,
                "error": str(e),
                "status": "error"
            })
            raise GeocodeFailure(f"Geocoding request failed for {address!r}") from e

        status = data.get("status")
        results = data.get("results") or []

        if status == "ZERO_RESULTS" or (status == "OK" and not results):
            logger.warning("Address not found", extra={
                "operation": "geocode",
                "search_id": search_id,
                "address": address,
                "status": "not_found"
            })
            return None

        if status != "OK":
            logger.error("Geocoding API returned non-OK status", extra={
                "operation": "geocode",
                "search_id": search_id,
                "address": address,
                "api_status": status,
                "error_message": data.get("error_message", "No error message"),
                "status": "error"
            })
            raise GeocodeFailure(f"Geocoding API returned {status} for {address!r}")

        # Results are returned with highest likelihood first, so grab the first one
        try:
            location = results[0]["geometry"]["location"]
            point = Point(location["lat"], location["lng"])
        except (KeyError, TypeError, InvalidInput) as e:
            raise GeocodeFailure(f"Malformed geocoding result for {address!r}") from e

        logger.info("Successfully geocoded address", extra={
            "operation": "geocode",
            "search_id": search_id,
            "address": address,
            "lat": point.lat,
            "lng": point.lng,
            "status": "success"
        })
        return point
