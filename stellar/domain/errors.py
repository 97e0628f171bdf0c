"""Tagged error taxonomy for provider and authentication failures.

Pure domain types with zero external dependencies. Provider failures carry an
``ErrorKind`` so policy layers (the request queue, connector fallbacks) can
branch on the kind instead of inspecting status codes.
"""

from enum import StrEnum, auto


class ErrorKind(StrEnum):
    """Classification of an outbound call failure."""

    TRANSPORT = auto()
    RATE_LIMITED = auto()
    APPLICATION = auto()
    UNAUTHORIZED = auto()


class StellarError(Exception):
    """Base class for all errors raised by Stellar."""


class ProviderError(StellarError):
    """Failure of a single provider call.

    Attributes:
        kind: Failure classification
        provider: Provider name ("lastfm", "deezer", "app")
        status: HTTP status code, when the failure came from a response
        code: Provider-specific error code embedded in a 2xx body
        retry_after: Seconds the provider asked us to wait (rate limits only)
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        provider: str = "",
        status: int | None = None,
        code: int | None = None,
        retry_after: float | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.provider = provider
        self.status = status
        self.code = code
        self.retry_after = retry_after

    @property
    def is_rate_limited(self) -> bool:
        return self.kind is ErrorKind.RATE_LIMITED

    def __repr__(self) -> str:
        return (
            f"ProviderError(kind={self.kind.value!r}, provider={self.provider!r}, "
            f"status={self.status!r}, code={self.code!r}, message={self.message!r})"
        )


class RequestCancelledError(StellarError):
    """Raised into queued requests that were dropped before dispatch."""


class SessionExpiredError(StellarError):
    """Raised when credentials could not be refreshed after a 401."""
