from datetime import datetime, timezone
from typing import TYPE_CHECKING, List

from sqlalchemy import DateTime, Float, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.city_explorer.models.base import Base

if TYPE_CHECKING:
    from .event import Event
    from .weather import Weather


class Location(Base):
    """A geocoded search query cached from the geocoding provider.

    Rows are keyed by the raw text the client searched for. The unique
    constraint on `search_query` lets concurrent first lookups of the same
    text collapse onto a single row. The model is mapped to the
    `locations` table.

    Attributes:
        id (int): Primary key, returned to clients as the location id.
        search_query (str): Free-text query exactly as received.
        formatted_query (str): Formatted address from the provider.
        latitude (float): Latitude in decimal degrees.
        longitude (float): Longitude in decimal degrees.
        created_at (datetime): Record creation timestamp (UTC).
        weathers (List[Weather]): Cached daily forecasts.
        events (List[Event]): Cached nearby events.
    """

    __tablename__ = "locations"
    __table_args__ = (
        UniqueConstraint("search_query", name="uq_locations_search_query"),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    search_query: Mapped[str] = mapped_column(Text, nullable=False)
    formatted_query: Mapped[str] = mapped_column(Text, nullable=False)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    weathers: Mapped[List["Weather"]] = relationship(
        "Weather",
        back_populates="location",
        cascade="all, delete-orphan",
    )
    events: Mapped[List["Event"]] = relationship(
        "Event",
        back_populates="location",
        cascade="all, delete-orphan",
    )
