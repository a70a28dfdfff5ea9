from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Declarative base shared by the cache tables.

    All ORM models derive from this class so that `Base.metadata` holds the
    full schema (`locations`, `weathers`, `events`) and can be created in
    one call.
    """

    pass
