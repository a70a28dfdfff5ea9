import logging
from typing import List

from src.city_explorer.services.db_service_async import AsyncDBService
from src.city_explorer.services.events_api_client_async import EventsService
from src.city_explorer.services.exceptions import (
    NoEventData,
    NoLocationData,
    NoWeatherData,
)
from src.city_explorer.services.forecast_api_client_async import (
    ForecastService,
)
from src.city_explorer.services.geocoding_api_client_async import (
    GeocodingService,
)
from src.city_explorer.utils.records import (
    EventRecord,
    LocationRecord,
    WeatherRecord,
    event_to_record,
    location_to_record,
    parse_event,
    parse_location,
    parse_weather_day,
    resolve_timezone,
    weather_to_record,
)

logger = logging.getLogger(__name__)


async def resolve_location(
    db_service: AsyncDBService,
    geocoding_service: GeocodingService,
    query: str,
) -> LocationRecord:
    """Return the cached location for `query`, geocoding it on a miss.

    On a miss the first geocoding result is stored and returned with the
    id assigned by the database.

    Args:
        db_service (AsyncDBService): Cache store.
        geocoding_service (GeocodingService): Geocoding provider client.
        query (str): Free-text location query.

    Returns:
        LocationRecord: Cached or freshly geocoded location.

    Raises:
        NoLocationData: If the provider returns no results.
        Exception: Propagates provider and database errors after logging.
    """
    try:
        cached = await db_service.get_location_by_query(query)
        if cached is not None:
            logger.info(f"Location {query!r} served from cache")
            return location_to_record(cached)

        payload = await geocoding_service.geocode(query)
        results = payload.get("results") or []
        if not results:
            raise NoLocationData(f"No location data for {query!r}")

        location = parse_location(query, results[0])
        row = await db_service.add_location(location)
        location["id"] = row.id
        logger.info(f"Location {query!r} geocoded and stored as id={row.id}")
        return location

    except Exception as e:
        logger.exception(f"Error resolving location {query!r}: {e}")
        raise


async def resolve_weather(
    db_service: AsyncDBService,
    forecast_service: ForecastService,
    location_id: int,
    lat: float,
    lon: float,
) -> List[WeatherRecord]:
    """Return the cached daily forecast for a location, fetching on a miss.

    Cached rows are returned as stored; they are never refreshed. On a miss
    every daily entry of the forecast is stored before returning.

    Args:
        db_service (AsyncDBService): Cache store.
        forecast_service (ForecastService): Forecast provider client.
        location_id (int): Id of a stored location.
        lat (float): Latitude of the location.
        lon (float): Longitude of the location.

    Returns:
        List[WeatherRecord]: One record per forecast day, in order.

    Raises:
        NoWeatherData: If the forecast has no daily entries.
        Exception: Propagates provider and database errors after logging.
    """
    try:
        cached = await db_service.get_weathers(location_id)
        if cached:
            logger.info(f"Weather for location_id={location_id} from cache")
            return [weather_to_record(row) for row in cached]

        payload = await forecast_service.get_forecast(lat, lon)
        days = (payload.get("daily") or {}).get("data") or []
        if not days:
            raise NoWeatherData(
                f"No weather data for location_id={location_id}"
            )

        tz = resolve_timezone(payload.get("timezone"))
        summaries = [parse_weather_day(day, location_id, tz) for day in days]
        await db_service.add_weathers(summaries)
        logger.info(
            f"Weather for location_id={location_id} fetched, "
            f"stored {len(summaries)} days"
        )
        return summaries

    except Exception as e:
        logger.exception(
            f"Error resolving weather for location_id={location_id}: {e}"
        )
        raise


async def resolve_events(
    db_service: AsyncDBService,
    events_service: EventsService,
    location_id: int,
    lat: float,
    lon: float,
) -> List[EventRecord]:
    """Return cached events near a location, searching the provider on a miss.

    A cache hit returns every stored event and makes no provider call.

    Args:
        db_service (AsyncDBService): Cache store.
        events_service (EventsService): Events search provider client.
        location_id (int): Id of a stored location.
        lat (float): Latitude of the location.
        lon (float): Longitude of the location.

    Returns:
        List[EventRecord]: Events in provider order.

    Raises:
        NoEventData: If the search returns no events.
        Exception: Propagates provider and database errors after logging.
    """
    try:
        cached = await db_service.get_events(location_id)
        if cached:
            logger.info(f"Events for location_id={location_id} from cache")
            return [event_to_record(row) for row in cached]

        payload = await events_service.search_events(lat, lon)
        events = payload.get("events") or []
        if not events:
            raise NoEventData(f"No event data for location_id={location_id}")

        summaries = [parse_event(event, location_id) for event in events]
        await db_service.add_events(summaries)
        logger.info(
            f"Events for location_id={location_id} fetched, "
            f"stored {len(summaries)} events"
        )
        return summaries

    except Exception as e:
        logger.exception(
            f"Error resolving events for location_id={location_id}: {e}"
        )
        raise
