"""HTTP transport primitive shared by provider connectors and the app client.

A thin wrapper over ``httpx.AsyncClient`` that adds the user agent, timeouts
and network-level retries. It never interprets status codes: callers decide
what a 401, 429 or 5xx means.
"""

from collections.abc import Mapping
from typing import Any

from attrs import define, field
import backoff
import httpx

from stellar.config import get_logger, settings

logger = get_logger(__name__).bind(service="http")


def _on_backoff(details):
    """Log backoff event."""
    logger.warning(
        f"Network error, retrying {details['target'].__name__} (attempt {details['tries']})",
        retry_delay=f"{details['wait']:.2f}s",
        error=str(details.get("exception")),
    )


@define(slots=True)
class HttpTransport:
    """Async request/response primitive with retry on network failures.

    Attributes:
        base_url: Prefix for relative request paths (may be empty)
        timeout: Per-request timeout in seconds
        retry_count: Extra attempts after a network-level failure
        transport: Optional httpx transport, e.g. ``httpx.MockTransport`` in tests
    """

    base_url: str = ""
    timeout: float = field(factory=lambda: settings.http.timeout)
    retry_count: int = field(factory=lambda: settings.http.retry_count)
    retry_base_delay: float = field(factory=lambda: settings.http.retry_base_delay)
    retry_max_delay: float = field(factory=lambda: settings.http.retry_max_delay)
    user_agent: str = field(factory=lambda: settings.http.user_agent)
    transport: httpx.AsyncBaseTransport | None = field(default=None, repr=False)
    _client: httpx.AsyncClient | None = field(default=None, init=False, repr=False)

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazily created client; keeps cookies for same-origin credentials."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={"User-Agent": self.user_agent},
                transport=self.transport,
            )
        return self._client

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
        headers: Mapping[str, str] | None = None,
    ) -> httpx.Response:
        """Send one request, retrying only on ``httpx.TransportError``.

        Raises:
            httpx.TransportError: When every attempt failed at the network level
        """

        @backoff.on_exception(
            backoff.expo,
            httpx.TransportError,
            max_tries=self.retry_count + 1,  # +1 because first attempt counts
            factor=self.retry_base_delay,
            max_value=self.retry_max_delay,
            jitter=backoff.full_jitter,
            on_backoff=_on_backoff,
        )
        async def send() -> httpx.Response:
            return await self.client.request(
                method, url, params=params, json=json, headers=headers
            )

        return await send()

    async def get(
        self,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> httpx.Response:
        return await self.request("GET", url, params=params, headers=headers)

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "HttpTransport":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
