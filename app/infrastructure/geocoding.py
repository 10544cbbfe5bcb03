"""Google Maps Geocoding API HTTP client.

Resolves a free-text address to a latitude/longitude pair.
"""

from typing import Optional

import httpx
import structlog

from app.config import Settings
from app.core.exceptions import GeocodingException
from app.domain.schemas.place import Coordinates

logger = structlog.get_logger(__name__)


class GoogleGeocoder:
    """Client for the Google Maps Geocoding API."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://maps.googleapis.com/maps/api/geocode/json",
        timeout: float = 5.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self.transport = transport

    @classmethod
    def from_settings(cls, settings: Settings) -> "GoogleGeocoder":
        return cls(
            api_key=settings.GOOGLE_API_KEY,
            base_url=settings.GEOCODING_URL,
            timeout=settings.GEOCODING_TIMEOUT_SECONDS,
        )

    def resolve(self, address: str) -> Coordinates:
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.get(
                    self.base_url,
                    params={"address": address, "key": self.api_key},
                )
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Geocoding request failed", error=str(e))
            raise GeocodingException("Geocoding service unavailable, please try again later.", 502) from e

        if not isinstance(data, dict):
            logger.error("Geocoding returned an unexpected body", body_type=type(data).__name__)
            raise GeocodingException("Geocoding service unavailable, please try again later.", 502)

        status = data.get("status")
        if status == "ZERO_RESULTS" or (status == "OK" and not data.get("results")):
            raise GeocodingException(details={"address": address})
        if status != "OK":
            logger.error("Geocoding rejected request", status=status, message=data.get("error_message"))
            raise GeocodingException("Geocoding service unavailable, please try again later.", 502)

        try:
            location = data["results"][0]["geometry"]["location"]
            return Coordinates(lat=location["lat"], lng=location["lng"])
        except (KeyError, IndexError, TypeError, ValueError) as e:
            logger.error("Geocoding result is missing a location", error=repr(e))
            raise GeocodingException("Geocoding service unavailable, please try again later.", 502) from e
