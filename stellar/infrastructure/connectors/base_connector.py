"""Base connector module providing shared functionality for provider connectors.

Key Components:
- ProviderConnector: Runs every outbound call through the provider's
  RequestQueue and maps responses onto the tagged ProviderError taxonomy
- fallback_on_error: Decorator that contains provider failures at the
  connector boundary, logging a warning and returning an empty result
- parse_retry_after: Retry-After header parsing

Both providers can answer HTTP 200 with an error object in the body. Those
are raised exactly like transport failures so the queue treats them the same
way for backoff purposes.
"""

from collections.abc import Awaitable, Callable, Mapping
from functools import wraps
from typing import Any, ClassVar, ParamSpec, TypeVar

from attrs import define, field
import httpx

from stellar.config import get_logger
from stellar.domain.errors import (
    ErrorKind,
    ProviderError,
    RequestCancelledError,
)
from stellar.infrastructure.connectors.request_queue import RequestQueue
from stellar.infrastructure.http import HttpTransport

logger = get_logger(__name__).bind(service="connectors")

P = ParamSpec("P")
R = TypeVar("R")


def parse_retry_after(value: str | None) -> float | None:
    """Parse a Retry-After header given in seconds; dates are ignored."""
    if not value:
        return None
    try:
        seconds = float(value.strip())
    except ValueError:
        return None
    return max(seconds, 0.0)


def fallback_on_error(
    default: Callable[[], R],
    operation_name: str | None = None,
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Decorator for connector operations that must never raise on provider failure.

    Args:
        default: Factory for the value returned on failure (``list``, ``lambda: None``)
        operation_name: Name used in the warning (defaults to function name)

    Example:
        >>> @fallback_on_error(list, "deezer_related")
        >>> async def get_related_artists(self, artist_id): ...
    """

    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        op_name = operation_name or func.__name__

        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            try:
                return await func(*args, **kwargs)
            except ProviderError as e:
                logger.warning(
                    "{} failed: {}",
                    op_name,
                    e.message,
                    provider=e.provider,
                    error_kind=e.kind.value,
                    status=e.status,
                    code=e.code,
                    call_args=args[1:],
                )
            except RequestCancelledError:
                logger.debug("{} cancelled before dispatch", op_name)
            except (KeyError, TypeError, AttributeError, ValueError) as e:
                # Payload shape the mappers did not expect
                logger.warning(
                    "{} returned a malformed payload: {}",
                    op_name,
                    e,
                    error_type=type(e).__name__,
                    call_args=args[1:],
                )
            return default()

        return wrapper

    return decorator


@define(slots=True)
class ProviderConnector:
    """Shared request pipeline for provider connectors.

    Subclasses set ``PROVIDER`` and implement ``_extract_error`` to detect
    application errors embedded in successful responses.

    Attributes:
        transport: HTTP primitive bound to the provider base URL
        queue: The provider's own RequestQueue; never shared across providers
    """

    PROVIDER: ClassVar[str] = ""

    transport: HttpTransport
    queue: RequestQueue
    default_params: dict[str, str] = field(factory=dict)

    async def _get_json(
        self, path: str, params: Mapping[str, Any] | None = None
    ) -> dict[str, Any]:
        """Issue one queue-mediated GET and return the decoded JSON body."""
        merged = {**self.default_params, **(params or {})}
        return await self.queue.enqueue(lambda: self._fetch_json(path, merged))

    async def _fetch_json(self, path: str, params: Mapping[str, Any]) -> dict[str, Any]:
        try:
            response = await self.transport.get(path, params=params)
        except httpx.TransportError as e:
            raise ProviderError(
                ErrorKind.TRANSPORT,
                f"{self.PROVIDER} request failed: {e!s}",
                provider=self.PROVIDER,
            ) from e

        if response.status_code == 429:
            raise ProviderError(
                ErrorKind.RATE_LIMITED,
                f"{self.PROVIDER} rate limited the request",
                provider=self.PROVIDER,
                status=429,
                retry_after=parse_retry_after(response.headers.get("Retry-After")),
            )

        if response.status_code == 401:
            raise ProviderError(
                ErrorKind.UNAUTHORIZED,
                f"{self.PROVIDER} rejected credentials",
                provider=self.PROVIDER,
                status=401,
            )

        if not response.is_success:
            raise ProviderError(
                ErrorKind.TRANSPORT,
                f"{self.PROVIDER} API error: {response.status_code}",
                provider=self.PROVIDER,
                status=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderError(
                ErrorKind.TRANSPORT,
                f"{self.PROVIDER} returned a malformed body",
                provider=self.PROVIDER,
                status=response.status_code,
            ) from e

        if not isinstance(data, dict):
            raise ProviderError(
                ErrorKind.TRANSPORT,
                f"{self.PROVIDER} returned unexpected payload type {type(data).__name__}",
                provider=self.PROVIDER,
                status=response.status_code,
            )

        if (error := self._extract_error(data)) is not None:
            raise error

        return data

    def _extract_error(self, data: dict[str, Any]) -> ProviderError | None:
        """Return the application error embedded in a 2xx body, if any."""
        raise NotImplementedError

    def flush(self) -> int:
        """Drop every queued, not yet dispatched request for this provider."""
        return self.queue.flush()

    async def aclose(self) -> None:
        await self.transport.aclose()


def as_records(value: Any) -> list[dict[str, Any]]:
    """Normalize a JSON value that may be a single object instead of a list.

    Entries that are not JSON objects (null, bare strings) are dropped.
    """
    if value is None:
        return []
    if not isinstance(value, list):
        value = [value]
    return [entry for entry in value if isinstance(entry, dict)]


def to_int(value: Any, default: int = 0) -> int:
    """Convert a provider count (often a string) to int."""
    try:
        return int(value)
    except (TypeError, ValueError):
        return default
