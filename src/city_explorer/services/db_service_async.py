import asyncio
import logging
from typing import Any, List, Optional, Sequence

from sqlalchemy import create_engine, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from src.city_explorer.models import Base, Event, Location, Weather
from src.city_explorer.utils.records import (
    EventRecord,
    LocationRecord,
    WeatherRecord,
)

logger = logging.getLogger(__name__)


class AsyncDBService:
    """Async cache store for geocoded locations, forecasts and events.

    This service provides asynchronous-friendly lookup and insert methods
    for the cached provider results using SQLAlchemy's synchronous engine,
    delegating blocking calls to a threadpool via `asyncio.to_thread`.

    Attributes:
        db_url (str): Database connection URL.
        _engine: SQLAlchemy Engine instance.
        _SessionLocal: Session factory.
    """

    def __init__(self, db_url: str, **engine_options: Any) -> None:
        self.db_url: str = db_url
        self._engine = create_engine(
            db_url, echo=False, future=True, **engine_options
        )
        self._SessionLocal = sessionmaker(
            bind=self._engine, expire_on_commit=False
        )

    async def create_schema(self) -> None:
        """Create any of the cache tables that do not exist yet."""
        await asyncio.to_thread(Base.metadata.create_all, self._engine)

    async def get_location_by_query(
        self, search_query: str
    ) -> Optional[Location]:
        """Lookup a cached Location by the text it was searched with.

        Args:
            search_query (str): Free-text query as received from the client.

        Returns:
            Optional[Location]: Oldest matching row, or None on a miss.
        """

        def _query() -> Optional[Location]:
            with self._SessionLocal() as session:
                return _select_location(session, search_query)

        return await asyncio.to_thread(_query)

    async def add_location(self, record: LocationRecord) -> Location:
        """Insert a geocoded location and return the persisted row.

        If another request stored the same `search_query` first, the unique
        constraint rejects this insert and the already stored row is
        returned instead.

        Args:
            record (LocationRecord): Normalized geocoding result.

        Returns:
            Location: Row carrying the database-assigned `id`.

        Raises:
            sqlalchemy.exc.IntegrityError: If the insert fails and no row
                with the same `search_query` exists.
        """

        def _query() -> Location:
            with self._SessionLocal() as session:
                row = Location(
                    search_query=record["search_query"],
                    formatted_query=record["formatted_query"],
                    latitude=record["latitude"],
                    longitude=record["longitude"],
                )
                session.add(row)
                try:
                    session.commit()
                except IntegrityError:
                    session.rollback()
                    existing = _select_location(
                        session, record["search_query"]
                    )
                    if existing is None:
                        raise
                    logger.info(
                        f"Location {record['search_query']!r} was stored "
                        f"concurrently, reusing id={existing.id}"
                    )
                    return existing
                session.refresh(row)
                return row

        return await asyncio.to_thread(_query)

    async def get_weathers(self, location_id: int) -> List[Weather]:
        """Return cached forecast days for a location in insertion order."""

        def _query() -> List[Weather]:
            with self._SessionLocal() as session:
                result = session.execute(
                    select(Weather)
                    .filter_by(location_id=location_id)
                    .order_by(Weather.id)
                )
                return list(result.scalars().all())

        return await asyncio.to_thread(_query)

    async def add_weathers(self, records: Sequence[WeatherRecord]) -> int:
        """Insert forecast days in a single transaction.

        Args:
            records (Sequence[WeatherRecord]): Days to store, in order.

        Returns:
            int: Number of rows inserted.
        """

        def _query() -> int:
            with self._SessionLocal() as session:
                session.add_all([_weather_row(record) for record in records])
                session.commit()
                return len(records)

        return await asyncio.to_thread(_query)

    async def get_events(self, location_id: int) -> List[Event]:
        """Return cached events for a location in insertion order."""

        def _query() -> List[Event]:
            with self._SessionLocal() as session:
                result = session.execute(
                    select(Event)
                    .filter_by(location_id=location_id)
                    .order_by(Event.id)
                )
                return list(result.scalars().all())

        return await asyncio.to_thread(_query)

    async def add_events(self, records: Sequence[EventRecord]) -> int:
        """Insert events in a single transaction and return the row count."""

        def _query() -> int:
            with self._SessionLocal() as session:
                session.add_all([_event_row(record) for record in records])
                session.commit()
                return len(records)

        return await asyncio.to_thread(_query)


def _select_location(
    session: Session, search_query: str
) -> Optional[Location]:
    result = session.execute(
        select(Location)
        .filter(Location.search_query == search_query)
        .order_by(Location.id)
    )
    return result.scalars().first()


def _weather_row(record: WeatherRecord) -> Weather:
    return Weather(
        forecast=record["forecast"],
        time=record["time"],
        location_id=record["id"],
    )


def _event_row(record: EventRecord) -> Event:
    return Event(
        event_data=record["eventData"],
        link=record["link"],
        name=record["name"],
        event_date=record["event_date"],
        summary=record["summary"],
        location_id=record["id"],
    )
