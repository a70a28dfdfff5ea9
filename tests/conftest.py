import logging
import os
import sys
from typing import Any, AsyncGenerator, Callable, Dict, Tuple
from unittest.mock import AsyncMock, Mock

import pytest
import pytest_asyncio
from _pytest.monkeypatch import MonkeyPatch
from pytest_mock import MockerFixture
from sqlalchemy.pool import StaticPool

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from src.city_explorer.services.db_service_async import (  # noqa: E402
    AsyncDBService,
)


@pytest.fixture(scope="session", autouse=True)  # type: ignore[misc]
def configure_logging() -> None:
    """Configure root logging for tests if not already set up.

    Side effects:
        Ensures DEBUG level logging is configured once for the session.
    """
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=logging.DEBUG)


@pytest.fixture  # type: ignore[misc]
def mock_db() -> Mock:
    """Provide a cache store mock with every lookup missing.

    Returns:
        Mock: Object with the async lookup/insert methods of AsyncDBService.
    """
    m = Mock()
    m.create_schema = AsyncMock(return_value=None)
    m.get_location_by_query = AsyncMock(return_value=None)
    m.add_location = AsyncMock(return_value=None)
    m.get_weathers = AsyncMock(return_value=[])
    m.add_weathers = AsyncMock(return_value=0)
    m.get_events = AsyncMock(return_value=[])
    m.add_events = AsyncMock(return_value=0)
    return m


@pytest_asyncio.fixture
async def sqlite_db() -> AsyncGenerator[AsyncDBService, None]:
    """Provide a real AsyncDBService over a fresh in-memory SQLite database.

    A StaticPool keeps the single in-memory connection alive across the
    worker threads used by `asyncio.to_thread`.
    """
    service = AsyncDBService(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await service.create_schema()
    yield service
    service._engine.dispose()


@pytest.fixture  # type: ignore[misc]
def mock_geocoding_service() -> Mock:
    """Provide a geocoding client mock returning no results."""
    gs = Mock()
    gs.geocode = AsyncMock(return_value={"results": []})
    return gs


@pytest.fixture  # type: ignore[misc]
def mock_forecast_service() -> Mock:
    """Provide a forecast client mock returning an empty forecast."""
    fs = Mock()
    fs.get_forecast = AsyncMock(return_value={"daily": {"data": []}})
    return fs


@pytest.fixture  # type: ignore[misc]
def mock_events_service() -> Mock:
    """Provide an events client mock returning no events."""
    es = Mock()
    es.search_events = AsyncMock(return_value={"events": []})
    return es


@pytest.fixture  # type: ignore[misc]
def env_vars(monkeypatch: MonkeyPatch) -> Callable[[Dict[str, Any]], None]:
    """Fixture to set environment variables for the duration of a test.

    Args:
        monkeypatch (MonkeyPatch): Pytest monkeypatch fixture used internally.

    Returns:
        Callable[[Dict[str, Any]], None]: Function that accepts a mapping of
        names to values and sets them in os.environ for the test.
    """

    def _setter(mapping: Dict[str, Any]) -> None:
        for k, v in mapping.items():
            monkeypatch.setenv(k, str(v))

    return _setter


@pytest.fixture  # type: ignore[misc]
def aioboto3_session_mock(mocker: MockerFixture) -> Tuple[Mock, AsyncMock]:
    """Patch aioboto3.Session to return an async-capable mocked client.

    Returns:
        Tuple[Mock, AsyncMock]: (mock_session, mock_client) pair. The client
        supports async context management like a secretsmanager client.
    """
    mock_client = AsyncMock()

    client_ctx = Mock()
    client_ctx.__aenter__ = AsyncMock(return_value=mock_client)
    client_ctx.__aexit__ = AsyncMock(return_value=None)

    mock_session = Mock()
    mock_session.client.return_value = client_ctx

    mocker.patch(
        "src.city_explorer.services.secrets_manager_service_async"
        ".aioboto3.Session",
        return_value=mock_session,
    )
    return mock_session, mock_client


@pytest.fixture  # type: ignore[misc]
def aiohttp_client_session_mock(mocker: MockerFixture) -> Tuple[Mock, Mock]:
    """Patch aiohttp.ClientSession to return a session with a mocked GET.

    Returns:
        Tuple[Mock, Mock]: (session_obj, response) where response.json is an
        AsyncMock and raise_for_status is a no-op.
    """
    session_obj = Mock()

    get_ctx = Mock()
    response = Mock()
    response.raise_for_status = Mock(return_value=None)
    response.json = AsyncMock()
    get_ctx.__aenter__ = AsyncMock(return_value=response)
    get_ctx.__aexit__ = AsyncMock(return_value=None)

    session_obj.get.return_value = get_ctx

    client_session_ctx = Mock()
    client_session_ctx.__aenter__ = AsyncMock(return_value=session_obj)
    client_session_ctx.__aexit__ = AsyncMock(return_value=None)

    mocker.patch(
        "src.city_explorer.services.http_client_async.aiohttp.ClientSession",
        return_value=client_session_ctx,
    )
    mocker.patch(
        "src.city_explorer.services.http_client_async.aiohttp.TCPConnector",
    )

    return session_obj, response
