"""Credential storage for the bearer-token variant of the app API.

Browser-style deployments keep credentials in cookies and never touch a token
store. The embedded-app variant keeps an access token and a refresh token in
local persistent storage; ``FileTokenStore`` is that storage.
"""

import json
import os
from pathlib import Path
import tempfile
from typing import Protocol, runtime_checkable

from attrs import define, field

from stellar.config import get_logger

logger = get_logger(__name__).bind(service="auth")


@define(frozen=True, slots=True)
class TokenPair:
    access_token: str | None = None
    refresh_token: str | None = None


@runtime_checkable
class TokenStore(Protocol):
    """Storage for the current access/refresh token pair."""

    def load(self) -> TokenPair: ...

    def save(self, access_token: str | None, refresh_token: str | None) -> None: ...

    def clear(self) -> None: ...


@define(slots=True)
class MemoryTokenStore:
    """Process-local token store."""

    _tokens: TokenPair = field(factory=TokenPair)

    def load(self) -> TokenPair:
        return self._tokens

    def save(self, access_token: str | None, refresh_token: str | None) -> None:
        # Only overwrite what was provided, like the storage it replaces
        self._tokens = TokenPair(
            access_token=access_token or self._tokens.access_token,
            refresh_token=refresh_token or self._tokens.refresh_token,
        )

    def clear(self) -> None:
        self._tokens = TokenPair()


@define(slots=True)
class FileTokenStore:
    """JSON file token store with atomic replace on write."""

    path: Path = field(converter=Path)

    def load(self) -> TokenPair:
        try:
            data = json.loads(self.path.read_text("utf-8"))
        except FileNotFoundError:
            return TokenPair()
        except json.JSONDecodeError:
            logger.warning(f"Ignoring unreadable token file {self.path}")
            return TokenPair()

        if not isinstance(data, dict):
            return TokenPair()
        return TokenPair(
            access_token=data.get("accessToken"),
            refresh_token=data.get("refreshToken"),
        )

    def save(self, access_token: str | None, refresh_token: str | None) -> None:
        current = self.load()
        payload = {
            "accessToken": access_token or current.access_token,
            "refreshToken": refresh_token or current.refresh_token,
        }
        self._write(payload)

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)

    def _write(self, payload: dict[str, str | None]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.stem}.", suffix=".tmp"
        )
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(payload, handle, separators=(",", ":"), sort_keys=True)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_path, self.path)
        except Exception:
            tmp_path.unlink(missing_ok=True)
            raise
