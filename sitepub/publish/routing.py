# SITEPUB Error Routing
# Maps 4xx status codes to a fallback document

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Any, Optional

from sitepub.errors import ConfigError


@dataclass(frozen=True)
class ErrorRoute:
    """Route a matched status code to a fallback document."""

    status_code: int
    document_key: str
    response_code: int = 404
    cache_ttl: int = 10

    @property
    def response_page_path(self) -> str:
        """Document path as the CDN expects it."""
        return "/" + self.document_key.lstrip("/")


DEFAULT_ERROR_ROUTES: tuple[ErrorRoute, ...] = (
    ErrorRoute(status_code=404, document_key="error.html"),
    ErrorRoute(status_code=403, document_key="error.html"),
)


def custom_error_responses(routes: Iterable[ErrorRoute]) -> dict[str, Any]:
    """Render routes as a CloudFront ``CustomErrorResponses`` block."""
    items = [
        {
            "ErrorCode": route.status_code,
            "ResponsePagePath": route.response_page_path,
            "ResponseCode": str(route.response_code),
            "ErrorCachingMinTTL": route.cache_ttl,
        }
        for route in routes
    ]
    return {"Quantity": len(items), "Items": items}


def routes_from_config(entries: Iterable[Any]) -> list[ErrorRoute]:
    """Convert ``error_routes`` configuration entries into ErrorRoutes."""
    return [
        ErrorRoute(
            status_code=entry.status_code,
            document_key=entry.document,
            response_code=entry.response_code,
            cache_ttl=entry.cache_ttl,
        )
        for entry in entries
    ]


class ErrorRoutingTable:
    """
    Validated, immutable set of error routes.

    Every route must match a 4xx status, respond with a valid HTTP status,
    and point at a document present in the scanned asset set.
    """

    def __init__(self, routes: Iterable[ErrorRoute], available_keys: Iterable[str]):
        """
        Validate and build the table.

        Args:
            routes: Routes to install.
            available_keys: Relative paths of the scanned assets.

        Raises:
            ConfigError: On any invalid route.
        """
        keys = set(available_keys)
        table: dict[int, ErrorRoute] = {}

        for route in routes:
            if not 400 <= route.status_code <= 499:
                raise ConfigError(f"Error route status {route.status_code} is not a 4xx status code")
            if not 200 <= route.response_code <= 599:
                raise ConfigError(f"Error route response code {route.response_code} is not a valid HTTP status")
            if route.cache_ttl < 0:
                raise ConfigError(f"Error route for {route.status_code} has a negative cache duration")
            if route.status_code in table:
                raise ConfigError(f"Duplicate error route for status {route.status_code}")

            document = route.document_key.lstrip("/")
            if document not in keys:
                raise ConfigError(
                    f"Error route for {route.status_code} points at '{document}', which is not a published asset"
                )
            if document != route.document_key:
                route = ErrorRoute(route.status_code, document, route.response_code, route.cache_ttl)

            table[route.status_code] = route

        self._routes = dict(sorted(table.items()))

    def __iter__(self) -> Iterator[ErrorRoute]:
        return iter(self._routes.values())

    def __len__(self) -> int:
        return len(self._routes)

    @property
    def routes(self) -> list[ErrorRoute]:
        return list(self._routes.values())

    def lookup(self, status_code: int) -> Optional[ErrorRoute]:
        """Return the route for *status_code*, if any."""
        return self._routes.get(status_code)

    def to_custom_error_responses(self) -> dict[str, Any]:
        """Render as a CloudFront ``CustomErrorResponses`` block."""
        return custom_error_responses(self)
