from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.city_explorer.models.base import Base

if TYPE_CHECKING:
    from .location import Location


class Weather(Base):
    """One cached forecast day for a location.

    Attributes:
        id (int): Primary key.
        forecast (str): Provider summary of the day.
        time (str): Day rendered as e.g. ``Mon Jan 01 2024``.
        location_id (int): Foreign key to `locations.id`.
        created_at (datetime): Record creation timestamp (UTC).
    """

    __tablename__ = "weathers"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    forecast: Mapped[str] = mapped_column(Text, nullable=False)
    time: Mapped[str] = mapped_column(String(15), nullable=False)
    location_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("locations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    location: Mapped["Location"] = relationship(
        "Location", back_populates="weathers"
    )
