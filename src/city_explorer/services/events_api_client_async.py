from typing import Any, Dict
from urllib.parse import urlencode

from src.city_explorer.services.http_client_async import (
    DEFAULT_TIMEOUT_SECONDS,
    fetch_json,
)

DEFAULT_EVENTS_API_URL = "https://www.eventbriteapi.com/v3"


class EventsService:
    """Async client for the Eventbrite events search endpoint.

    Attributes:
        api_url (str): Base URL of the Eventbrite API.
        token (str): Personal OAuth token.
        timeout_seconds (float): Total timeout per request.
    """

    def __init__(
        self,
        api_url: str,
        token: str,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self.api_url = api_url.rstrip("/")
        self.token = token
        self.timeout_seconds = timeout_seconds

    def build_events_url(self, lat: float, lon: float) -> str:
        """Build the search URL for events near a point, venues expanded."""
        params = {
            "token": self.token,
            "location.latitude": lat,
            "location.longitude": lon,
            "expand": "venue",
        }
        return f"{self.api_url}/events/search/?{urlencode(params)}"

    async def search_events(self, lat: float, lon: float) -> Dict[str, Any]:
        """Search for events around the given coordinates.

        Returns:
            Dict[str, Any]: Provider payload with matches under `events`.
        """
        return await fetch_json(
            self.build_events_url(lat, lon), self.timeout_seconds
        )
