"""
Sequential request queue in front of the registrar API.

All upstream calls made by one client go through a single worker task, so at
most one HTTP request is in flight at a time. Before each call the worker
consults the rate-limit tracker; after each call it records the reported
window. Rate-limited responses are retried with exponential backoff.

Ordering is FIFO within four bands, front to back:

    held      a request waiting out a rate-limit window or a backoff
    head      health checks and other calls that must not wait behind work
    priority  latency-sensitive calls such as single availability checks
    normal    everything else

A new request goes behind every request already queued in its own band or a
higher one. Only one request can be held at a time, and it holds up
everything queued behind it until it succeeds or exhausts its retries. That
includes requests for unrelated endpoints.
"""

import asyncio
import itertools
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

from .clock import Clock, SystemClock
from .config import QueueConfig
from .enums import LogLevel
from .event_logger import EventLogger
from .exceptions import QueueClearedError, RateLimitError
from .http_client import UpstreamResponse
from .rate_limiter import RateLimitTracker
from .retry_policy import RetryPolicy

_request_ids = itertools.count(1)

# Queue bands; higher runs first
NORMAL = 0
PRIORITY = 1
HEAD = 2
HELD = 3


class Transport(Protocol):
    """Anything that can execute one upstream call."""

    async def post(self, endpoint: str, payload: dict[str, Any]) -> UpstreamResponse:
        ...


@dataclass
class QueuedRequest:
    """A pending upstream call and the future its caller is awaiting."""

    id: str
    endpoint: str
    payload: dict[str, Any]
    priority: bool
    enqueued_at: float
    future: asyncio.Future
    band: int = NORMAL
    retries: int = 0

    def resolve(self, value: Any) -> bool:
        """Deliver a value. Returns False if the request was already settled."""
        if self.future.done():
            return False
        self.future.set_result(value)
        return True

    def reject(self, error: BaseException) -> bool:
        """Deliver an error. Returns False if the request was already settled."""
        if self.future.done():
            return False
        self.future.set_exception(error)
        return True


@dataclass
class QueueStatus:
    """Diagnostic view of the queue."""

    queue_length: int
    processing: bool
    rate_limits: dict[str, dict] = field(default_factory=dict)


class RequestQueue:
    """
    Single-worker queue serializing calls to the upstream API.

    Usage:
        future = queue.enqueue("/domain/checkDomain/x.com", payload, priority=True)
        data = await future
    """

    def __init__(
        self,
        transport: Transport,
        tracker: Optional[RateLimitTracker] = None,
        retry_policy: Optional[RetryPolicy] = None,
        config: Optional[QueueConfig] = None,
        clock: Optional[Clock] = None,
        logger: Optional[EventLogger] = None,
    ) -> None:
        self._transport = transport
        self._clock = clock or SystemClock()
        self._tracker = tracker or RateLimitTracker(self._clock)
        self._retry_policy = retry_policy or RetryPolicy()
        self._config = config or QueueConfig()
        self._logger = logger
        self._queue: deque[QueuedRequest] = deque()
        self._backing_off: Optional[QueuedRequest] = None
        self._processing = False
        self._worker: Optional[asyncio.Task] = None

    @property
    def tracker(self) -> RateLimitTracker:
        return self._tracker

    @property
    def processing(self) -> bool:
        return self._processing

    def __len__(self) -> int:
        return len(self._queue)

    def enqueue(
        self,
        endpoint: str,
        payload: dict[str, Any],
        priority: bool = False,
        head: bool = False,
    ) -> asyncio.Future:
        """
        Add a call to the queue and make sure the worker is running.

        Must be called from within a running event loop.

        Args:
            endpoint: Upstream endpoint path
            payload: Request body
            priority: Place ahead of all non-priority requests
            head: Place ahead of everything except a held request

        Returns:
            Future resolved with the response body or rejected with the error
        """
        loop = asyncio.get_running_loop()
        request = QueuedRequest(
            id=f"req-{next(_request_ids)}",
            endpoint=endpoint,
            payload=payload,
            priority=priority or head,
            enqueued_at=self._clock.now(),
            future=loop.create_future(),
            band=HEAD if head else PRIORITY if priority else NORMAL,
        )

        # Bands are kept in descending order, so this keeps FIFO within one
        position = 0
        while position < len(self._queue) and self._queue[position].band >= request.band:
            position += 1
        self._queue.insert(position, request)

        self._ensure_processing()
        return request.future

    def _ensure_processing(self) -> None:
        if self._processing:
            return
        self._processing = True
        self._worker = asyncio.get_running_loop().create_task(self._process_queue())

    async def _process_queue(self) -> None:
        try:
            while self._queue:
                request = self._queue.popleft()

                # Cleared or cancelled by the caller while waiting
                if request.future.done():
                    continue

                if self._tracker.is_limited(request.endpoint):
                    wait = self._tracker.wait_time(request.endpoint)
                    if wait > 0:
                        request.band = HELD
                        self._queue.appendleft(request)
                        wait = min(wait, self._config.max_rate_limit_wait_seconds)
                        self._log(LogLevel.INFO, "Endpoint rate limited, waiting", {
                            "endpoint": request.endpoint,
                            "request_id": request.id,
                            "wait_seconds": wait,
                        })
                        await self._clock.sleep(wait)
                        continue

                await self._execute(request)
        finally:
            self._processing = False
            self._worker = None

    async def _execute(self, request: QueuedRequest) -> None:
        try:
            response = await self._transport.post(request.endpoint, request.payload)
        except asyncio.CancelledError:
            # Worker stopped by close() mid-call
            request.reject(QueueClearedError())
            raise
        except RateLimitError as e:
            self._record_rate_limit_error(request.endpoint, e)
            decision = self._retry_policy.evaluate(e, request.retries + 1)
            if not decision.should_retry:
                self._log(LogLevel.WARN, "Retries exhausted for rate-limited request", {
                    "endpoint": request.endpoint,
                    "request_id": request.id,
                    "retries": request.retries,
                })
                request.reject(e)
                return

            request.retries += 1
            self._log(LogLevel.INFO, "Rate limited, backing off", {
                "endpoint": request.endpoint,
                "request_id": request.id,
                "retry": request.retries,
                "delay_seconds": decision.delay_seconds,
            })
            self._backing_off = request
            try:
                await self._clock.sleep(decision.delay_seconds)
            finally:
                self._backing_off = None

            # Cleared while backing off
            if request.future.done():
                return
            request.band = HELD
            self._queue.appendleft(request)
            return
        except Exception as e:
            self._log(LogLevel.DEBUG, "Request failed", {
                "endpoint": request.endpoint,
                "request_id": request.id,
                "error": str(e),
            })
            request.reject(e)
            return

        self._record_rate_limit(request.endpoint, response)
        request.resolve(response.data)

    def _record_rate_limit(self, endpoint: str, response: UpstreamResponse) -> None:
        headers = response.rate_limit
        now = self._clock.now()
        self._tracker.observe(
            endpoint,
            remaining=headers.remaining if headers.remaining is not None else self._config.default_limit,
            limit=headers.limit if headers.limit else self._config.default_limit,
            reset_time=headers.reset_time if headers.reset_time else now + self._config.window_seconds,
        )

    def _record_rate_limit_error(self, endpoint: str, error: RateLimitError) -> None:
        # A 429 without a reset header leaves pacing to the backoff alone
        if not error.reset_time:
            return
        self._tracker.observe(
            endpoint,
            remaining=0,
            limit=error.limit or self._config.default_limit,
            reset_time=error.reset_time,
        )

    def clear_queue(self) -> int:
        """
        Reject every pending request with QueueClearedError and empty the queue.

        Requests waiting in the queue and a request sleeping out its backoff
        are rejected. A request whose HTTP call is already in flight is not
        affected.

        Returns:
            Number of requests rejected
        """
        pending = list(self._queue)
        if self._backing_off is not None:
            pending.append(self._backing_off)
        self._queue.clear()
        rejected = 0
        for request in pending:
            if request.reject(QueueClearedError()):
                rejected += 1
        if rejected:
            self._log(LogLevel.INFO, "Queue cleared", {"rejected": rejected})
        return rejected

    def status(self) -> QueueStatus:
        return QueueStatus(
            queue_length=len(self._queue),
            processing=self._processing,
            rate_limits=self._tracker.snapshot(),
        )

    async def join(self) -> None:
        """Wait until the worker has drained the queue."""
        worker = self._worker
        if worker is not None:
            await worker

    async def close(self) -> None:
        """
        Reject everything pending and stop the worker.

        Unlike clear_queue(), an in-flight call is cancelled and its caller
        receives QueueClearedError. Nothing reaches the transport afterwards
        unless new requests are enqueued.
        """
        self.clear_queue()
        worker = self._worker
        if worker is not None and not worker.done():
            worker.cancel()
            await asyncio.wait({worker})

    def _log(self, level: LogLevel, message: str, data: dict) -> None:
        if self._logger:
            self._logger.log(level, "RequestQueue", message, data)
