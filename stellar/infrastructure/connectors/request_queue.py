"""Per-provider request queue with bounded concurrency and adaptive backoff.

Each provider owns one ``RequestQueue``. Work is dispatched FIFO while the
queue is not paused and fewer than ``max_concurrent`` calls are in flight. A
rate-limited failure (``ErrorKind.RATE_LIMITED``) never reaches the caller:
the task goes back into the queue ahead of every later arrival and the whole
queue pauses for the provider's Retry-After (or the default). Every other
settlement frees the slot and schedules the next dispatch after a fixed
courtesy delay.

All state changes happen synchronously between suspension points on the
event loop, so no lock is needed.
"""

import asyncio
from collections import deque
from collections.abc import Awaitable, Callable
import itertools
from typing import Any, TypeVar

from attrs import define, field

from stellar.config import get_logger
from stellar.domain.errors import ProviderError, RequestCancelledError

logger = get_logger(__name__).bind(service="queue")

T = TypeVar("T")


@define(slots=True)
class _QueuedTask:
    seq: int
    work: Callable[[], Awaitable[Any]]
    future: asyncio.Future


@define(slots=True)
class RequestQueue:
    """FIFO request scheduler for a single provider.

    Attributes:
        name: Provider name used in log context
        max_concurrent: Maximum number of dispatched, unsettled tasks
        request_delay: Courtesy delay (seconds) before the next dispatch attempt
            after any settlement
        default_retry_after: Pause (seconds) on a rate limit without Retry-After
    """

    name: str
    max_concurrent: int = 5
    request_delay: float = 0.05
    default_retry_after: float = 2.0
    _queue: deque[_QueuedTask] = field(factory=deque, init=False)
    _active: int = field(default=0, init=False)
    _paused: bool = field(default=False, init=False)
    _resume_handle: asyncio.TimerHandle | None = field(default=None, init=False)
    _counter: itertools.count = field(factory=itertools.count, init=False)
    _running: set[asyncio.Task] = field(factory=set, init=False, repr=False)

    def __attrs_post_init__(self) -> None:
        if self.max_concurrent < 1:
            raise ValueError(f"max_concurrent must be >= 1, got {self.max_concurrent}")

    @property
    def active_count(self) -> int:
        return self._active

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def queued(self) -> int:
        return len(self._queue)

    @property
    def pending(self) -> int:
        """Queued plus in-flight tasks."""
        return len(self._queue) + self._active

    async def enqueue(self, work: Callable[[], Awaitable[T]]) -> T:
        """Schedule ``work`` and wait for its outcome.

        Raises:
            RequestCancelledError: If the task was flushed before dispatch
            Exception: Whatever ``work`` raised, except rate-limit errors,
                which are retried until they stop occurring
        """
        future = asyncio.get_running_loop().create_future()
        self._queue.append(_QueuedTask(next(self._counter), work, future))
        self._process_next()
        return await future

    def flush(self) -> int:
        """Drop every queued task that has not been dispatched yet.

        Dispatched calls run to completion. Returns the number of dropped tasks.
        """
        dropped = 0
        while self._queue:
            task = self._queue.popleft()
            if not task.future.done():
                task.future.set_exception(
                    RequestCancelledError(f"{self.name} request flushed before dispatch")
                )
                dropped += 1

        if dropped:
            logger.debug(f"Flushed {dropped} queued {self.name} requests")
        return dropped

    def _process_next(self) -> None:
        loop = asyncio.get_running_loop()
        while not self._paused and self._active < self.max_concurrent and self._queue:
            task = self._queue.popleft()
            if task.future.done():
                # Caller went away while the task was queued
                continue

            self._active += 1
            runner = loop.create_task(self._run(task))
            self._running.add(runner)
            runner.add_done_callback(self._running.discard)

    async def _run(self, task: _QueuedTask) -> None:
        try:
            result = await task.work()
        except ProviderError as e:
            if e.is_rate_limited:
                self._requeue(task)
                self._active -= 1
                self._pause(e.retry_after)
                return
            self._settle(task, exception=e)
        except asyncio.CancelledError:
            task.future.cancel()
            self._active -= 1
            asyncio.get_running_loop().call_soon(self._process_next)
            raise
        except Exception as e:
            self._settle(task, exception=e)
        else:
            self._settle(task, result=result)

        self._active -= 1
        asyncio.get_running_loop().call_later(self.request_delay, self._process_next)

    def _settle(
        self,
        task: _QueuedTask,
        result: Any = None,
        exception: BaseException | None = None,
    ) -> None:
        if task.future.done():
            return
        if exception is not None:
            task.future.set_exception(exception)
        else:
            task.future.set_result(result)

    def _requeue(self, task: _QueuedTask) -> None:
        """Put a task back ahead of every task that arrived after it."""
        for index, queued in enumerate(self._queue):
            if queued.seq > task.seq:
                self._queue.insert(index, task)
                return
        self._queue.append(task)

    def _pause(self, retry_after: float | None) -> None:
        delay = retry_after if retry_after is not None else self.default_retry_after
        loop = asyncio.get_running_loop()
        resume_at = loop.time() + delay

        self._paused = True
        if self._resume_handle is not None:
            if self._resume_handle.when() >= resume_at:
                return
            self._resume_handle.cancel()

        logger.warning(
            f"{self.name} rate limited, pausing queue",
            retry_after=f"{delay:.2f}s",
            queued=len(self._queue),
            active=self._active,
        )
        self._resume_handle = loop.call_at(resume_at, self._resume)

    def _resume(self) -> None:
        self._paused = False
        self._resume_handle = None
        logger.debug(f"{self.name} queue resumed", queued=len(self._queue))
        self._process_next()
