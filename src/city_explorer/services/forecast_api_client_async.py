from typing import Any, Dict

from src.city_explorer.services.http_client_async import (
    DEFAULT_TIMEOUT_SECONDS,
    fetch_json,
)

DEFAULT_WEATHER_API_URL = "https://api.darksky.net"


class ForecastService:
    """Async client for a Dark Sky compatible forecast API.

    The key is part of the request path, not a query parameter.

    Attributes:
        api_url (str): Base URL of the forecast API.
        api_key (str): Secret key embedded in the request path.
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

    def build_forecast_url(self, lat: float, lon: float) -> str:
        return f"{self.api_url}/forecast/{self.api_key}/{lat},{lon}"

    async def get_forecast(self, lat: float, lon: float) -> Dict[str, Any]:
        """Retrieve the forecast for the specified coordinates.

        Args:
            lat (float): Latitude of the target location.
            lon (float): Longitude of the target location.

        Returns:
            Dict[str, Any]: Provider payload. Daily entries are under
            `daily.data`, each with a `summary` and an epoch-seconds `time`;
            `timezone` names the IANA zone of the location.
        """
        return await fetch_json(
            self.build_forecast_url(lat, lon), self.timeout_seconds
        )
