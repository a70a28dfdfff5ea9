from typing import Any, Dict
from urllib.parse import urlencode

from src.city_explorer.services.http_client_async import (
    DEFAULT_TIMEOUT_SECONDS,
    fetch_json,
)

DEFAULT_GEOCODE_API_URL = "https://maps.googleapis.com/maps/api/geocode"


class GeocodingService:
    """Async client for the Google Geocoding API.

    Attributes:
        api_url (str): Base URL of the geocoding endpoint.
        api_key (str): API key used for authenticating requests.
        timeout_seconds (float): Total timeout per request.
    """

    def __init__(
        self,
        api_url: str,
        api_key: str,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self.api_url = api_url.rstrip("/")
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds

    def build_geocode_url(self, query: str) -> str:
        """Build the geocoding request URL for a free-text address.

        Args:
            query (str): Address or place name to geocode.

        Returns:
            str: Fully formed URL ready to be fetched.
        """
        params = {"address": query, "key": self.api_key}
        return f"{self.api_url}/json?{urlencode(params)}"

    async def geocode(self, query: str) -> Dict[str, Any]:
        """Geocode a free-text query.

        Args:
            query (str): Address or place name to geocode.

        Returns:
            Dict[str, Any]: Provider payload; matches are under `results`,
            each with `formatted_address` and `geometry.location`.
        """
        return await fetch_json(
            self.build_geocode_url(query), self.timeout_seconds
        )
