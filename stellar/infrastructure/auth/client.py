"""Authenticated client for the app's own JSON API.

Every call goes through ``request``: a 401 on a non-auth endpoint joins the
shared ``RefreshGate``; when the refresh succeeds the original request is
retried exactly once with the new credentials and that response is returned
as-is, even if it is another 401. When the refresh fails the call raises
``SessionExpiredError``.

Credentials travel as cookies (kept by the httpx cookie jar) or, in token
mode, as a bearer access token read from a ``TokenStore``.
"""

from collections.abc import Mapping
import contextlib
from typing import Any, Self

from attrs import define, field
import httpx

from stellar.config import Settings, get_logger, settings as default_settings
from stellar.domain.errors import SessionExpiredError
from stellar.infrastructure.auth.refresh_gate import RefreshGate
from stellar.infrastructure.auth.token_store import (
    FileTokenStore,
    MemoryTokenStore,
    TokenStore,
)
from stellar.infrastructure.http import HttpTransport

logger = get_logger(__name__).bind(service="auth")

REFRESH_PATH = "/api/auth/refresh"
AUTH_ENDPOINTS = (
    REFRESH_PATH,
    "/api/auth/login",
    "/api/auth/register",
    "/api/auth/logout",
)


def is_auth_endpoint(path: str) -> bool:
    return any(endpoint in path for endpoint in AUTH_ENDPOINTS)


@define(slots=True)
class AuthenticatedClient:
    """App API client with single-flight credential refresh.

    Attributes:
        transport: HTTP primitive bound to the app API base URL
        token_mode: Send a bearer token from ``token_store`` instead of relying
            on cookies only
        token_store: Access/refresh token storage
        refresh_gate: Shared gate; built automatically around ``refresh_session``
    """

    transport: HttpTransport
    token_mode: bool = False
    token_store: TokenStore = field(factory=MemoryTokenStore)
    refresh_gate: RefreshGate = field(init=False)

    def __attrs_post_init__(self) -> None:
        self.refresh_gate = RefreshGate(refresh=self.refresh_session)

    @classmethod
    def from_settings(cls, config: Settings | None = None) -> Self:
        config = config or default_settings
        store: TokenStore = (
            FileTokenStore(config.auth.token_store_path)
            if config.auth.token_mode
            else MemoryTokenStore()
        )
        return cls(
            transport=HttpTransport(base_url=config.auth.api_base_url),
            token_mode=config.auth.token_mode,
            token_store=store,
        )

    def _headers(self, extra: Mapping[str, str] | None = None) -> dict[str, str]:
        headers = {"Content-Type": "application/json", **(extra or {})}
        if self.token_mode:
            access_token = self.token_store.load().access_token
            if access_token:
                headers["Authorization"] = f"Bearer {access_token}"
        return headers

    async def _send(
        self,
        method: str,
        path: str,
        json: Any = None,
        headers: Mapping[str, str] | None = None,
    ) -> httpx.Response:
        # Headers are rebuilt per attempt so a retry picks up refreshed tokens
        return await self.transport.request(
            method, path, json=json, headers=self._headers(headers)
        )

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        headers: Mapping[str, str] | None = None,
    ) -> httpx.Response:
        """Send an authenticated request, refreshing credentials once on 401.

        Raises:
            SessionExpiredError: If the 401 could not be recovered by a refresh
        """
        response = await self._send(method, path, json, headers)
        if response.status_code != 401 or is_auth_endpoint(path):
            return response

        logger.debug(f"{method} {path} unauthorized, joining credential refresh")
        if not await self.refresh_gate.wait_for_refresh():
            raise SessionExpiredError("Session expired")

        return await self._send(method, path, json, headers)

    async def refresh_session(self) -> bool:
        """Perform one refresh call; stores new tokens or clears stale ones."""
        body = None
        if self.token_mode:
            body = {"refreshToken": self.token_store.load().refresh_token}

        try:
            response = await self.transport.request(
                "POST",
                REFRESH_PATH,
                json=body,
                headers={"Content-Type": "application/json"},
            )
        except httpx.HTTPError as e:
            logger.warning(f"Refresh request failed: {e!s}")
            self.token_store.clear()
            return False

        if not response.is_success:
            logger.warning(f"Refresh rejected with status {response.status_code}")
            self.token_store.clear()
            return False

        # Cookie-based refreshes may legitimately return no JSON body
        with contextlib.suppress(ValueError):
            self._store_tokens(response.json())
        return True

    def _store_tokens(self, data: Any) -> None:
        if not self.token_mode or not isinstance(data, dict):
            return
        if data.get("accessToken") and data.get("refreshToken"):
            self.token_store.save(data["accessToken"], data["refreshToken"])

    # --- Auth API ---

    async def login(self, email: str, password: str) -> httpx.Response:
        response = await self.request(
            "POST", "/api/auth/login", json={"email": email, "password": password}
        )
        self._store_response_tokens(response)
        return response

    async def register(
        self,
        email: str,
        password: str,
        display_name: str,
        username: str,
    ) -> httpx.Response:
        response = await self.request(
            "POST",
            "/api/auth/register",
            json={
                "email": email,
                "password": password,
                "displayName": display_name,
                "username": username,
            },
        )
        self._store_response_tokens(response)
        return response

    async def logout(self) -> httpx.Response:
        body = None
        if self.token_mode:
            # Sent so the server can revoke it
            body = {"refreshToken": self.token_store.load().refresh_token}
        self.token_store.clear()
        return await self.request("POST", "/api/auth/logout", json=body)

    async def get_me(self) -> httpx.Response:
        return await self.request("GET", "/api/auth/me")

    def _store_response_tokens(self, response: httpx.Response) -> None:
        if not response.is_success:
            return
        try:
            self._store_tokens(response.json())
        except ValueError:
            logger.debug("Auth response carried no JSON body")

    async def aclose(self) -> None:
        await self.transport.aclose()
