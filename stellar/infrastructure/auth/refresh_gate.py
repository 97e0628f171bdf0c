"""Single-flight credential refresh.

``RefreshGate`` is either ``IDLE`` or ``AUTHENTICATING``. The first caller
that needs fresh credentials moves it to ``AUTHENTICATING`` and starts exactly
one refresh task; every caller arriving before that task settles awaits the
same task and observes the same outcome. The gate returns to ``IDLE`` as soon
as the refresh settles, whatever the outcome, so a later 401 starts a new
refresh.

A failed refresh notifies every registered session-expired observer once,
no matter how many callers were waiting on it.
"""

import asyncio
from collections.abc import Awaitable, Callable
from enum import StrEnum, auto

from attrs import define, field

from stellar.config import get_logger

logger = get_logger(__name__).bind(service="auth")

SessionExpiredCallback = Callable[[], None]


class RefreshState(StrEnum):
    IDLE = auto()
    AUTHENTICATING = auto()


@define(slots=True)
class RefreshGate:
    """Deduplicates concurrent credential refreshes.

    Attributes:
        refresh: Coroutine function performing one refresh call; returns True
            when new credentials were obtained
    """

    refresh: Callable[[], Awaitable[bool]]
    _in_flight: asyncio.Task[bool] | None = field(default=None, init=False)
    _observers: list[SessionExpiredCallback] = field(factory=list, init=False)
    refresh_count: int = field(default=0, init=False)

    @property
    def state(self) -> RefreshState:
        return RefreshState.IDLE if self._in_flight is None else RefreshState.AUTHENTICATING

    def on_session_expired(self, callback: SessionExpiredCallback) -> Callable[[], None]:
        """Register an observer for failed refreshes. Returns an unsubscribe function."""
        self._observers.append(callback)

        def unsubscribe() -> None:
            if callback in self._observers:
                self._observers.remove(callback)

        return unsubscribe

    async def wait_for_refresh(self) -> bool:
        """Join the in-flight refresh, starting one if the gate is idle.

        Returns:
            True if credentials were refreshed, False otherwise
        """
        if self._in_flight is None:
            self.refresh_count += 1
            self._in_flight = asyncio.get_running_loop().create_task(self._perform())

        # Shield so a cancelled waiter cannot cancel the refresh for everyone
        return await asyncio.shield(self._in_flight)

    async def _perform(self) -> bool:
        try:
            succeeded = bool(await self.refresh())
        except Exception as e:
            logger.warning(f"Credential refresh raised {type(e).__name__}", error=str(e))
            succeeded = False
        finally:
            self._in_flight = None

        if succeeded:
            logger.info("Credentials refreshed")
        else:
            logger.error("Credential refresh failed, session expired")
            self._notify_expired()
        return succeeded

    def _notify_expired(self) -> None:
        for callback in list(self._observers):
            try:
                callback()
            except Exception as e:
                logger.exception(f"Session-expired observer failed: {e!s}")
