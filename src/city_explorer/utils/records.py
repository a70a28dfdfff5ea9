import logging
from datetime import datetime, timezone, tzinfo
from typing import Any, Dict, Optional, TypedDict
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from src.city_explorer.models import Event, Location, Weather

logger = logging.getLogger(__name__)

# Same shape as the first 15 characters of a JavaScript Date.toString(),
# e.g. "Mon Jan 01 2024". Clients already rely on this rendering.
DAY_FORMAT = "%a %b %d %Y"


class LocationRecord(TypedDict):
    """Normalized geocoding result returned to clients.

    Keys:
        search_query (str): Text the client searched for.
        formatted_query (str): Provider's formatted address.
        latitude (float)
        longitude (float)
        id (Optional[int]): Store id, None until persisted.
    """

    search_query: str
    formatted_query: str
    latitude: float
    longitude: float
    id: Optional[int]


class WeatherRecord(TypedDict):
    """One forecast day as sent to clients.

    Keys:
        forecast (str)
        time (str)
        id (int): Id of the location the forecast belongs to.
    """

    forecast: str
    time: str
    id: int


class EventRecord(TypedDict):
    """One nearby event as sent to clients; `id` is the location id."""

    eventData: Optional[Any]
    link: str
    name: str
    event_date: str
    summary: Optional[str]
    id: int


def parse_location(
    search_query: str, result: Dict[str, Any]
) -> LocationRecord:
    """Build a LocationRecord from one geocoding `results` entry.

    Args:
        search_query (str): Original free-text query.
        result (Dict[str, Any]): A single element of the provider's
            `results` list.

    Returns:
        LocationRecord: Record with `id` set to None.

    Raises:
        KeyError: If the result has no geometry coordinates.
    """
    coordinates = result["geometry"]["location"]
    return LocationRecord(
        search_query=search_query,
        formatted_query=result.get("formatted_address", ""),
        latitude=float(coordinates["lat"]),
        longitude=float(coordinates["lng"]),
        id=None,
    )


def resolve_timezone(name: Optional[str]) -> tzinfo:
    """Return the zone the forecast is expressed in, or UTC if unknown."""
    if not name:
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown forecast timezone {name!r}, using UTC")
        return timezone.utc


def format_epoch_day(epoch_seconds: float, tz: tzinfo = timezone.utc) -> str:
    """Render an epoch timestamp as a short day string in `tz`."""
    return datetime.fromtimestamp(epoch_seconds, tz=tz).strftime(DAY_FORMAT)


def parse_weather_day(
    day: Dict[str, Any], location_id: int, tz: tzinfo = timezone.utc
) -> WeatherRecord:
    """Build a WeatherRecord from one `daily.data` entry of a forecast."""
    return WeatherRecord(
        forecast=day.get("summary") or "",
        time=format_epoch_day(day["time"], tz),
        id=location_id,
    )


def parse_event(event: Dict[str, Any], location_id: int) -> EventRecord:
    """Build an EventRecord from one events-search result.

    The start date is taken from `start.local`, an ISO 8601 local
    timestamp, and rendered without a time part. The expanded `venue`
    object, when present, is kept verbatim as opaque `eventData`.

    Args:
        event (Dict[str, Any]): Raw event object from the provider.
        location_id (int): Id of the location the search was made for.

    Returns:
        EventRecord: Normalized event.
    """
    name = event.get("name")
    if isinstance(name, dict):
        name = name.get("text")
    start = datetime.fromisoformat(event["start"]["local"])
    return EventRecord(
        eventData=event.get("venue"),
        link=event.get("url", ""),
        name=name or "",
        event_date=start.strftime(DAY_FORMAT),
        summary=event.get("summary"),
        id=location_id,
    )


def location_to_record(row: Location) -> LocationRecord:
    return LocationRecord(
        search_query=row.search_query,
        formatted_query=row.formatted_query,
        latitude=row.latitude,
        longitude=row.longitude,
        id=row.id,
    )


def weather_to_record(row: Weather) -> WeatherRecord:
    return WeatherRecord(
        forecast=row.forecast, time=row.time, id=row.location_id
    )


def event_to_record(row: Event) -> EventRecord:
    return EventRecord(
        eventData=row.event_data,
        link=row.link,
        name=row.name,
        event_date=row.event_date,
        summary=row.summary,
        id=row.location_id,
    )
