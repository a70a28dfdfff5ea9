from typing import Any, Dict, List
from unittest.mock import Mock

import pytest

from src.city_explorer.models import Event, Location, Weather
from src.city_explorer.services.db_service_async import AsyncDBService
from src.city_explorer.services.exceptions import (
    NoDataError,
    NoEventData,
    NoLocationData,
    NoWeatherData,
)
from src.city_explorer.services.resolver_service_async import (
    resolve_events,
    resolve_location,
    resolve_weather,
)

SEATTLE_GEOCODE: Dict[str, Any] = {
    "results": [
        {
            "formatted_address": "Seattle, WA, USA",
            "geometry": {"location": {"lat": 47.6, "lng": -122.3}},
        }
    ]
}


def _forecast(days: int) -> Dict[str, Any]:
    return {
        "timezone": None,
        "daily": {
            "data": [
                {"summary": f"day {i}", "time": 1704067200 + i * 86400}
                for i in range(days)
            ]
        },
    }


def _events(count: int) -> Dict[str, Any]:
    return {
        "events": [
            {
                "url": f"https://example.com/e/{i}",
                "name": {"text": f"Event {i}"},
                "start": {"local": "2024-03-02T19:00:00"},
                "summary": "s",
            }
            for i in range(count)
        ]
    }


@pytest.mark.asyncio  # type: ignore[misc]
async def test_resolve_location_miss_geocodes_once_and_persists_once(
    mock_db: Mock, mock_geocoding_service: Mock
) -> None:
    # Arrange
    mock_geocoding_service.geocode.return_value = SEATTLE_GEOCODE
    mock_db.add_location.return_value = Location(id=1)

    # Act
    record = await resolve_location(mock_db, mock_geocoding_service, "Seattle")

    # Assert
    assert record == {
        "search_query": "Seattle",
        "formatted_query": "Seattle, WA, USA",
        "latitude": 47.6,
        "longitude": -122.3,
        "id": 1,
    }
    mock_geocoding_service.geocode.assert_awaited_once_with("Seattle")
    mock_db.add_location.assert_awaited_once()


@pytest.mark.asyncio  # type: ignore[misc]
async def test_resolve_location_hit_never_calls_geocoder(
    mock_db: Mock, mock_geocoding_service: Mock
) -> None:
    # Arrange
    mock_db.get_location_by_query.return_value = Location(
        id=4,
        search_query="Seattle",
        formatted_query="Seattle, WA, USA",
        latitude=47.6,
        longitude=-122.3,
    )

    # Act
    record = await resolve_location(mock_db, mock_geocoding_service, "Seattle")

    # Assert
    assert record["id"] == 4
    mock_geocoding_service.geocode.assert_not_awaited()
    mock_db.add_location.assert_not_awaited()


@pytest.mark.asyncio  # type: ignore[misc]
async def test_resolve_location_without_results_raises(
    mock_db: Mock, mock_geocoding_service: Mock
) -> None:
    with pytest.raises(NoLocationData):
        await resolve_location(mock_db, mock_geocoding_service, "Atlantis")

    mock_db.add_location.assert_not_awaited()


@pytest.mark.asyncio  # type: ignore[misc]
async def test_resolve_weather_hit_returns_stored_rows_without_provider(
    mock_db: Mock, mock_forecast_service: Mock
) -> None:
    # Arrange
    mock_db.get_weathers.return_value = [
        Weather(id=i, forecast=f"f{i}", time="Mon Jan 01 2024", location_id=2)
        for i in range(4)
    ]

    # Act
    result = await resolve_weather(mock_db, mock_forecast_service, 2, 1, 2)

    # Assert
    assert [r["forecast"] for r in result] == ["f0", "f1", "f2", "f3"]
    mock_forecast_service.get_forecast.assert_not_awaited()


@pytest.mark.asyncio  # type: ignore[misc]
async def test_resolve_weather_cold_cache_stores_every_day(
    mock_db: Mock, mock_forecast_service: Mock
) -> None:
    # Arrange
    mock_forecast_service.get_forecast.return_value = _forecast(3)

    # Act
    result = await resolve_weather(
        mock_db, mock_forecast_service, 5, 47.6, -122.3
    )

    # Assert
    assert len(result) == 3
    assert all(r["id"] == 5 for r in result)
    assert [r["time"] for r in result] == [
        "Mon Jan 01 2024",
        "Tue Jan 02 2024",
        "Wed Jan 03 2024",
    ]
    mock_forecast_service.get_forecast.assert_awaited_once_with(47.6, -122.3)
    mock_db.add_weathers.assert_awaited_once_with(result)


@pytest.mark.asyncio  # type: ignore[misc]
async def test_resolve_weather_empty_forecast_raises_without_insert(
    mock_db: Mock, mock_forecast_service: Mock
) -> None:
    with pytest.raises(NoWeatherData):
        await resolve_weather(mock_db, mock_forecast_service, 5, 1, 2)

    mock_db.add_weathers.assert_not_awaited()


@pytest.mark.asyncio  # type: ignore[misc]
async def test_resolve_events_hit_returns_all_rows_and_skips_provider(
    mock_db: Mock, mock_events_service: Mock
) -> None:
    # Arrange
    mock_db.get_events.return_value = [
        Event(
            id=i,
            event_data=None,
            link="l",
            name=f"n{i}",
            event_date="Sat Mar 02 2024",
            summary=None,
            location_id=9,
        )
        for i in range(2)
    ]

    # Act
    result = await resolve_events(mock_db, mock_events_service, 9, 1, 2)

    # Assert
    assert [r["name"] for r in result] == ["n0", "n1"]
    assert all(r["id"] == 9 for r in result)
    assert all("eventData" in r for r in result)
    mock_events_service.search_events.assert_not_awaited()


@pytest.mark.asyncio  # type: ignore[misc]
async def test_resolve_events_cold_cache_persists_parsed_events(
    mock_db: Mock, mock_events_service: Mock
) -> None:
    # Arrange
    mock_events_service.search_events.return_value = _events(2)

    # Act
    result = await resolve_events(mock_db, mock_events_service, 9, 1, 2)

    # Assert
    assert [r["name"] for r in result] == ["Event 0", "Event 1"]
    assert all(r["event_date"] == "Sat Mar 02 2024" for r in result)
    assert all(r["id"] == 9 and r["eventData"] is None for r in result)
    mock_db.add_events.assert_awaited_once_with(result)


@pytest.mark.asyncio  # type: ignore[misc]
async def test_resolve_events_no_events_raises_without_insert(
    mock_db: Mock, mock_events_service: Mock
) -> None:
    with pytest.raises(NoEventData) as exc_info:
        await resolve_events(mock_db, mock_events_service, 9, 1, 2)

    assert isinstance(exc_info.value, NoDataError)
    mock_db.add_events.assert_not_awaited()


@pytest.mark.asyncio  # type: ignore[misc]
async def test_resolve_location_round_trip_through_store(
    sqlite_db: AsyncDBService, mock_geocoding_service: Mock
) -> None:
    # Arrange
    mock_geocoding_service.geocode.return_value = SEATTLE_GEOCODE

    # Act
    first = await resolve_location(
        sqlite_db, mock_geocoding_service, "Seattle"
    )
    second = await resolve_location(
        sqlite_db, mock_geocoding_service, "Seattle"
    )

    # Assert
    assert first == second
    assert isinstance(first["id"], int)
    mock_geocoding_service.geocode.assert_awaited_once()


@pytest.mark.asyncio  # type: ignore[misc]
async def test_resolve_weather_then_cache_hit_through_store(
    sqlite_db: AsyncDBService,
    mock_geocoding_service: Mock,
    mock_forecast_service: Mock,
) -> None:
    # Arrange
    mock_geocoding_service.geocode.return_value = SEATTLE_GEOCODE
    mock_forecast_service.get_forecast.return_value = _forecast(3)
    location = await resolve_location(
        sqlite_db, mock_geocoding_service, "Seattle"
    )
    location_id = location["id"]
    assert location_id is not None

    # Act
    fetched: List[Any] = await resolve_weather(
        sqlite_db, mock_forecast_service, location_id, 47.6, -122.3
    )
    cached = await resolve_weather(
        sqlite_db, mock_forecast_service, location_id, 47.6, -122.3
    )

    # Assert
    assert cached == fetched
    assert len(await sqlite_db.get_weathers(location_id)) == 3
    mock_forecast_service.get_forecast.assert_awaited_once()
