import logging
import ssl
from typing import Any, Dict

import aiohttp
import certifi

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0


async def fetch_json(
    url: str, timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
) -> Dict[str, Any]:
    """Perform an HTTPS GET request and return the decoded JSON object.

    A new session is opened per call with a certifi-backed SSL context.
    Requests are not retried.

    Args:
        url (str): Fully formed URL to fetch.
        timeout_seconds (float): Total timeout for the request.

    Returns:
        Dict[str, Any]: Parsed JSON response body.

    Raises:
        aiohttp.ClientError: For network-related failures.
        aiohttp.ClientResponseError: For non-2xx HTTP responses.
        ValueError: If the server returns a non-dictionary JSON payload.
    """
    ssl_context = ssl.create_default_context(cafile=certifi.where())
    timeout = aiohttp.ClientTimeout(total=timeout_seconds)

    async with aiohttp.ClientSession(
        connector=aiohttp.TCPConnector(ssl=ssl_context),
        timeout=timeout,
    ) as session:
        async with session.get(url) as response:
            response.raise_for_status()
            data = await response.json()

            if not isinstance(data, dict):
                raise ValueError(f"Expected dict from API, got {type(data)}")

            return data
