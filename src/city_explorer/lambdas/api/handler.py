import asyncio
import json
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    List,
    NamedTuple,
    Optional,
    Set,
    Tuple,
)

from src.city_explorer.services.db_service_async import AsyncDBService
from src.city_explorer.services.events_api_client_async import (
    DEFAULT_EVENTS_API_URL,
    EventsService,
)
from src.city_explorer.services.forecast_api_client_async import (
    DEFAULT_WEATHER_API_URL,
    ForecastService,
)
from src.city_explorer.services.geocoding_api_client_async import (
    DEFAULT_GEOCODE_API_URL,
    GeocodingService,
)
from src.city_explorer.services.http_client_async import (
    DEFAULT_TIMEOUT_SECONDS,
)
from src.city_explorer.services.logger_service import get_logger
from src.city_explorer.services.resolver_service_async import (
    resolve_events,
    resolve_location,
    resolve_weather,
)
from src.city_explorer.services.secrets_manager_service_async import (
    AsyncSecretsManagerService,
)
from src.city_explorer.utils.common import get_env_var
from src.city_explorer.utils.records import (
    EventRecord,
    LocationRecord,
    WeatherRecord,
)

logger = get_logger(__name__)

ERROR_MESSAGE = "Sorry, something went wrong"

# Database URLs whose tables were already checked in this execution
# environment. Warm invocations skip the schema check.
_schema_ready: Set[str] = set()


class Services(NamedTuple):
    db: AsyncDBService
    geocoding: GeocodingService
    forecast: ForecastService
    events: EventsService


async def load_credentials() -> Tuple[str, str, str, str]:
    """Resolve the database URL and the three provider credentials.

    When `SECRET_NAME_API` / `SECRET_NAME_DB` are set the values are read
    from AWS Secrets Manager, otherwise straight from the environment.

    Returns:
        Tuple[str, str, str, str]: (db_url, geocode_key, weather_key,
        events_token).

    Raises:
        EnvironmentError: If a required environment variable is missing.
        ValueError: If a secret lacks one of the expected keys.
    """
    secret_name_api = get_env_var("SECRET_NAME_API", "")
    secret_name_db = get_env_var("SECRET_NAME_DB", "")
    secret_manager = (
        AsyncSecretsManagerService()
        if secret_name_api or secret_name_db
        else None
    )

    if secret_manager and secret_name_api:
        secrets_api = await secret_manager.get_secret(secret_name_api)
        keys = [
            secrets_api.get(k) for k in ("geocode", "weather", "eventbrite")
        ]
        if not all(isinstance(k, str) and k for k in keys):
            raise ValueError("Provider credentials missing in secrets")
        geocode_key, weather_key, events_token = keys
    else:
        geocode_key = get_env_var("GEOCODE_API_KEY")
        weather_key = get_env_var("WEATHER_API_KEY")
        events_token = get_env_var("PERSONAL_OAUTH_TOKEN")

    if secret_manager and secret_name_db:
        secrets_db = await secret_manager.get_secret(secret_name_db)
        db_url = secrets_db.get("db_url")
        if not isinstance(db_url, str):
            raise ValueError(
                "Database URL (db_url) missing or invalid in secrets"
            )
    else:
        db_url = get_env_var("DATABASE_URL")

    return db_url, geocode_key, weather_key, events_token


async def init_services() -> Services:
    """Initialize the store and provider clients used by the routes.

    Returns:
        Services: Database service and the three provider clients.

    Raises:
        EnvironmentError: If required configuration is missing.
        ValueError: If configuration values are invalid.
    """
    db_url, geocode_key, weather_key, events_token = await load_credentials()
    timeout = float(
        get_env_var("HTTP_TIMEOUT_SECONDS", str(DEFAULT_TIMEOUT_SECONDS))
    )

    db_service = AsyncDBService(db_url)
    if db_url not in _schema_ready:
        await db_service.create_schema()
        _schema_ready.add(db_url)

    services = Services(
        db=db_service,
        geocoding=GeocodingService(
            get_env_var("GEOCODE_API_URL", DEFAULT_GEOCODE_API_URL),
            geocode_key,
            timeout,
        ),
        forecast=ForecastService(
            get_env_var("WEATHER_API_URL", DEFAULT_WEATHER_API_URL),
            weather_key,
            timeout,
        ),
        events=EventsService(
            get_env_var("EVENTS_API_URL", DEFAULT_EVENTS_API_URL),
            events_token,
            timeout,
        ),
    )
    logger.info("✅ All async services initialized successfully")
    return services


def get_search_query(params: Dict[str, str]) -> str:
    """Return the `data` query parameter of a location request.

    Raises:
        ValueError: If the parameter is missing or blank.
    """
    query = params.get("data", "")
    if not query.strip():
        raise ValueError("Missing 'data' query parameter")
    return query


def get_location_params(params: Dict[str, str]) -> Tuple[int, float, float]:
    """Parse `data[id]`, `data[latitude]` and `data[longitude]`.

    Args:
        params (Dict[str, str]): Query string parameters of the request.

    Returns:
        Tuple[int, float, float]: (location_id, latitude, longitude).

    Raises:
        ValueError: If a parameter is missing or not numeric.
    """
    try:
        return (
            int(params["data[id]"]),
            float(params["data[latitude]"]),
            float(params["data[longitude]"]),
        )
    except KeyError as e:
        raise ValueError(f"Missing query parameter {e}") from e


async def get_location(
    params: Dict[str, str], services: Services
) -> LocationRecord:
    return await resolve_location(
        services.db, services.geocoding, get_search_query(params)
    )


async def get_weather(
    params: Dict[str, str], services: Services
) -> List[WeatherRecord]:
    location_id, lat, lon = get_location_params(params)
    return await resolve_weather(
        services.db, services.forecast, location_id, lat, lon
    )


async def get_events(
    params: Dict[str, str], services: Services
) -> List[EventRecord]:
    location_id, lat, lon = get_location_params(params)
    return await resolve_events(
        services.db, services.events, location_id, lat, lon
    )


Route = Callable[[Dict[str, str], Services], Awaitable[Any]]

ROUTES: Dict[str, Route] = {
    "/location": get_location,
    "/weather": get_weather,
    "/events": get_events,
}


def get_route_path(event: Dict[str, Any]) -> str:
    """Return the request path of a REST (v1) or HTTP (v2) proxy event."""
    path = event.get("path") or event.get("rawPath") or "/"
    return "/" + str(path).strip("/")


def build_response(status_code: int, body: Any) -> Dict[str, Any]:
    return {
        "statusCode": status_code,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(body, ensure_ascii=False),
    }


def handle_error(
    e: BaseException, route: Optional[str] = None
) -> Dict[str, Any]:
    """Log an exception and return the generic 500 response.

    The caller never learns what went wrong; details only go to the logs.

    Args:
        e (BaseException): The error raised while serving the request.
        route (Optional[str]): Request path, for log context.

    Returns:
        Dict[str, Any]: Lambda proxy response with status 500.
    """
    logger.error(
        f"🔥 Request failed: {e}",
        exc_info=e,
        extra={"route": route, "status_code": 500},
    )
    return {
        "statusCode": 500,
        "headers": {"Content-Type": "text/plain; charset=utf-8"},
        "body": ERROR_MESSAGE,
    }


async def async_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """Asynchronous API Gateway proxy handler.

    Dispatches `/location`, `/weather` and `/events` to their resolver and
    returns the result as JSON. Any failure becomes a generic 500.

    Args:
        event (Dict[str, Any]): API Gateway proxy event.
        context (Any): Lambda context object (unused here).

    Returns:
        Dict[str, Any]: Lambda proxy response with `statusCode` and `body`.
    """
    path = get_route_path(event)
    route = ROUTES.get(path)
    if route is None:
        logger.warning(
            f"No route for {path}", extra={"route": path, "status_code": 404}
        )
        return build_response(404, {"error": "Not Found"})

    try:
        params = event.get("queryStringParameters") or {}
        services = await init_services()
        result = await route(params, services)
        logger.info(
            f"✅ Served {path}", extra={"route": path, "status_code": 200}
        )
        return build_response(200, result)
    except Exception as e:
        return handle_error(e, path)


def handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """Synchronous Lambda entrypoint that bridges to the async handler.

    Args:
        event (Dict[str, Any]): API Gateway proxy event.
        context (Any): Lambda context object.

    Returns:
        Dict[str, Any]: Lambda proxy response as produced by `async_handler`.
    """
    return asyncio.run(async_handler(event, context))
