from .base import Base
from .event import Event
from .location import Location
from .weather import Weather

__all__ = [
    "Base",
    "Event",
    "Location",
    "Weather",
]
