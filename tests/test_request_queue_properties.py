"""
Property-based tests for the request queue.

Time is driven by ManualClock, so backoff and rate-limit waits are observed
as recorded sleeps rather than real delays.
"""

import asyncio

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from domain_market.clock import ManualClock
from domain_market.config import QueueConfig, RetryConfig
from domain_market.exceptions import QueueClearedError, RateLimitError, UpstreamAPIError
from domain_market.rate_limiter import RateLimitTracker
from domain_market.request_queue import RequestQueue
from domain_market.retry_policy import RetryPolicy

from fakes import GatedClock, ScriptedTransport, ok_response


def make_queue(transport: ScriptedTransport, clock: ManualClock, **kwargs) -> RequestQueue:
    return RequestQueue(
        transport=transport,
        tracker=RateLimitTracker(clock),
        retry_policy=RetryPolicy(kwargs.pop("retry", None)),
        config=kwargs.pop("config", None),
        clock=clock,
    )


def rate_limited(reset_time: float = 0.0) -> RateLimitError:
    return RateLimitError("Rate limit exceeded", reset_time=reset_time, limit=10)


class TestSerialExecutionProperty:
    """At most one upstream call is in flight at any time."""

    @given(num_requests=st.integers(min_value=1, max_value=12))
    @settings(max_examples=50)
    def test_never_more_than_one_request_in_flight(self, num_requests: int) -> None:
        """
        *For any* number of concurrently enqueued requests, the queue SHALL
        execute them one at a time and resolve every one of them.
        """
        transport = ScriptedTransport()
        clock = ManualClock()

        async def run() -> list:
            queue = make_queue(transport, clock)
            futures = [queue.enqueue(f"/endpoint/{i}", {}) for i in range(num_requests)]
            return await asyncio.gather(*futures)

        results = asyncio.run(run())

        assert transport.max_in_flight == 1
        assert len(results) == num_requests
        assert [r["endpoint"] for r in results] == [f"/endpoint/{i}" for i in range(num_requests)]


class TestOrderingProperty:
    """FIFO order with priority requests placed ahead of normal ones."""

    def test_priority_requests_run_first_in_fifo_order(self) -> None:
        transport = ScriptedTransport()
        clock = ManualClock()

        async def run() -> None:
            queue = make_queue(transport, clock)
            futures = [queue.enqueue(f"/{name}", {}) for name in "ABCDE"]
            futures.append(queue.enqueue("/P1", {}, priority=True))
            futures.append(queue.enqueue("/P2", {}, priority=True))
            await asyncio.gather(*futures)

        asyncio.run(run())

        assert transport.calls == ["/P1", "/P2", "/A", "/B", "/C", "/D", "/E"]

    @given(
        flags=st.lists(st.booleans(), min_size=1, max_size=15),
    )
    @settings(max_examples=100)
    def test_execution_order_is_stable_partition(self, flags: list[bool]) -> None:
        """
        *For any* mix of priority and normal requests enqueued together, the
        execution order SHALL be all priority requests in enqueue order
        followed by all normal requests in enqueue order.
        """
        transport = ScriptedTransport()
        clock = ManualClock()

        async def run() -> None:
            queue = make_queue(transport, clock)
            futures = [
                queue.enqueue(f"/{i}", {}, priority=flag)
                for i, flag in enumerate(flags)
            ]
            await asyncio.gather(*futures)

        asyncio.run(run())

        expected = [f"/{i}" for i, flag in enumerate(flags) if flag]
        expected += [f"/{i}" for i, flag in enumerate(flags) if not flag]
        assert transport.calls == expected

    def test_head_request_runs_before_waiting_priority_requests(self) -> None:
        transport = ScriptedTransport()
        clock = ManualClock()

        async def run() -> None:
            queue = make_queue(transport, clock)
            futures = [queue.enqueue("/A", {})]
            futures += [queue.enqueue(f"/P{i}", {}, priority=True) for i in range(3)]
            futures.append(queue.enqueue("/H1", {}, head=True))
            futures.append(queue.enqueue("/H2", {}, head=True))
            await asyncio.gather(*futures)

        asyncio.run(run())

        assert transport.calls == ["/H1", "/H2", "/P0", "/P1", "/P2", "/A"]

    def test_new_requests_queue_behind_rate_limited_head(self) -> None:
        transport = ScriptedTransport()
        clock = ManualClock()

        async def run() -> None:
            queue = make_queue(transport, clock)
            queue.tracker.observe("/A", remaining=0, limit=10, reset_time=clock.now() + 3)
            futures = [queue.enqueue("/A", {}), queue.enqueue("/B", {})]

            # Let the worker find /A exhausted and start waiting
            while not clock.sleeps:
                await asyncio.sleep(0)

            futures.append(queue.enqueue("/P", {}, priority=True))
            futures.append(queue.enqueue("/H", {}, head=True))
            await asyncio.gather(*futures)

        asyncio.run(run())

        assert clock.sleeps == [3.0]
        assert transport.calls == ["/A", "/H", "/P", "/B"]

    def test_priority_request_queues_behind_backing_off_head(self) -> None:
        transport = ScriptedTransport({"/A": [rate_limited(), ok_response()]})
        clock = ManualClock()

        async def run() -> None:
            queue = make_queue(transport, clock)
            futures = [queue.enqueue("/A", {}), queue.enqueue("/B", {})]

            while not clock.sleeps:
                await asyncio.sleep(0)

            futures.append(queue.enqueue("/P", {}, priority=True))
            await asyncio.gather(*futures)

        asyncio.run(run())

        assert clock.sleeps == [2.0]
        assert transport.calls == ["/A", "/A", "/P", "/B"]


class TestRetryProperty:
    """Rate-limited requests are retried with exponential backoff."""

    def test_retry_exhaustion_waits_2_4_8_then_fails(self) -> None:
        transport = ScriptedTransport({"/pricing/get": [rate_limited()]})
        clock = ManualClock()

        async def run() -> None:
            queue = make_queue(transport, clock)
            with pytest.raises(RateLimitError):
                await queue.enqueue("/pricing/get", {})

        asyncio.run(run())

        assert clock.sleeps == [2.0, 4.0, 8.0]
        assert transport.calls == ["/pricing/get"] * 4

    def test_success_after_one_rate_limit(self) -> None:
        transport = ScriptedTransport({
            "/ping": [rate_limited(), ok_response({"status": "SUCCESS", "yourIp": "1.2.3.4"})],
        })
        clock = ManualClock()

        async def run() -> dict:
            queue = make_queue(transport, clock)
            return await queue.enqueue("/ping", {})

        result = asyncio.run(run())

        assert result["yourIp"] == "1.2.3.4"
        assert clock.sleeps == [2.0]
        assert len(transport.calls) == 2

    @given(max_retries=st.integers(min_value=0, max_value=5))
    @settings(max_examples=20)
    def test_number_of_attempts_follows_max_retries(self, max_retries: int) -> None:
        """
        *For any* retry budget n, a request that is always rate limited SHALL
        be attempted n + 1 times before its caller sees the RateLimitError.
        """
        transport = ScriptedTransport({"/x": [rate_limited()]})
        clock = ManualClock()

        async def run() -> None:
            queue = make_queue(
                transport, clock, retry=RetryConfig(max_retries=max_retries, base_delay_seconds=1.0)
            )
            with pytest.raises(RateLimitError):
                await queue.enqueue("/x", {})

        asyncio.run(run())

        assert len(transport.calls) == max_retries + 1
        assert clock.sleeps == [float(2 ** i) for i in range(max_retries)]

    def test_other_errors_are_not_retried(self) -> None:
        transport = ScriptedTransport({"/x": [UpstreamAPIError("HTTP 500: Internal Server Error", 500)]})
        clock = ManualClock()

        async def run() -> None:
            queue = make_queue(transport, clock)
            with pytest.raises(UpstreamAPIError) as exc_info:
                await queue.enqueue("/x", {})
            assert exc_info.value.status_code == 500

        asyncio.run(run())

        assert transport.calls == ["/x"]
        assert clock.sleeps == []

    def test_backoff_holds_up_requests_behind_it(self) -> None:
        transport = ScriptedTransport({"/slow": [rate_limited(), ok_response()]})
        clock = ManualClock()

        async def run() -> None:
            queue = make_queue(transport, clock)
            first = queue.enqueue("/slow", {})
            second = queue.enqueue("/other", {})
            await asyncio.gather(first, second)

        asyncio.run(run())

        assert transport.calls == ["/slow", "/slow", "/other"]


class TestRateLimitWaitProperty:
    """A request to an exhausted endpoint waits for the window to reset."""

    def test_waits_until_reset_before_executing(self) -> None:
        transport = ScriptedTransport()
        clock = ManualClock()

        async def run() -> None:
            queue = make_queue(transport, clock)
            queue.tracker.observe("/pricing/get", remaining=0, limit=10, reset_time=clock.now() + 3)
            await queue.enqueue("/pricing/get", {})

        asyncio.run(run())

        assert clock.sleeps == [3.0]
        assert transport.calls == ["/pricing/get"]

    def test_long_waits_are_capped(self) -> None:
        transport = ScriptedTransport()
        clock = ManualClock()

        async def run() -> None:
            queue = make_queue(transport, clock)
            queue.tracker.observe("/pricing/get", remaining=0, limit=10, reset_time=clock.now() + 30)
            await queue.enqueue("/pricing/get", {})

        asyncio.run(run())

        assert clock.sleeps == [5.0] * 6
        assert transport.calls == ["/pricing/get"]

    def test_custom_wait_cap(self) -> None:
        transport = ScriptedTransport()
        clock = ManualClock()

        async def run() -> None:
            queue = make_queue(transport, clock, config=QueueConfig(max_rate_limit_wait_seconds=10.0))
            queue.tracker.observe("/ping", remaining=0, limit=10, reset_time=clock.now() + 15)
            await queue.enqueue("/ping", {})

        asyncio.run(run())

        assert clock.sleeps == [10.0, 5.0]

    def test_unrelated_endpoint_is_not_delayed(self) -> None:
        transport = ScriptedTransport()
        clock = ManualClock()

        async def run() -> None:
            queue = make_queue(transport, clock)
            queue.tracker.observe("/pricing/get", remaining=0, limit=10, reset_time=clock.now() + 3)
            await queue.enqueue("/ping", {})

        asyncio.run(run())

        assert clock.sleeps == []

    def test_success_records_rate_limit_window(self) -> None:
        transport = ScriptedTransport({"/ping": [ok_response(remaining=7)]})
        clock = ManualClock()

        async def run() -> RequestQueue:
            queue = make_queue(transport, clock)
            await queue.enqueue("/ping", {})
            return queue

        queue = asyncio.run(run())
        state = queue.tracker.get("/ping")

        assert state is not None
        assert state.remaining == 7
        assert state.limit == 10
        assert state.reset_time == clock.now() + 60

    def test_reset_reported_by_429_is_waited_out(self) -> None:
        clock = ManualClock()
        transport = ScriptedTransport({
            "/x": [rate_limited(reset_time=clock.now() + 10), ok_response()],
        })

        async def run() -> None:
            queue = make_queue(transport, clock)
            await queue.enqueue("/x", {})

        asyncio.run(run())

        # Backoff first, then the rest of the reported window
        assert clock.sleeps == [2.0, 5.0, 3.0]
        assert transport.calls == ["/x", "/x"]

    def test_429_without_reset_records_no_window(self) -> None:
        transport = ScriptedTransport({"/x": [rate_limited()]})
        clock = ManualClock()

        async def run() -> RequestQueue:
            queue = make_queue(transport, clock, retry=RetryConfig(max_retries=0))
            with pytest.raises(RateLimitError):
                await queue.enqueue("/x", {})
            return queue

        queue = asyncio.run(run())

        assert queue.tracker.get("/x") is None

    def test_429_window_is_recorded(self) -> None:
        clock = ManualClock()
        transport = ScriptedTransport({"/x": [rate_limited(reset_time=clock.now() + 30)]})

        async def run() -> RequestQueue:
            queue = make_queue(transport, clock, retry=RetryConfig(max_retries=0))
            with pytest.raises(RateLimitError):
                await queue.enqueue("/x", {})
            return queue

        queue = asyncio.run(run())
        state = queue.tracker.get("/x")

        assert state is not None
        assert state.remaining == 0
        assert state.limit == 10
        assert queue.tracker.is_limited("/x")


class TestClearQueueProperty:
    """Clearing rejects pending callers but not the in-flight request."""

    def test_clear_rejects_pending_requests(self) -> None:
        transport = ScriptedTransport()
        clock = ManualClock()

        async def run() -> tuple:
            transport.gate = asyncio.Event()
            queue = make_queue(transport, clock)
            in_flight = queue.enqueue("/first", {})
            pending = [queue.enqueue(f"/pending/{i}", {}) for i in range(3)]

            # Let the worker pick up the first request
            while not transport.calls:
                await asyncio.sleep(0)

            rejected = queue.clear_queue()
            transport.gate.set()
            first_result = await in_flight
            outcomes = await asyncio.gather(*pending, return_exceptions=True)
            return rejected, first_result, outcomes, len(queue)

        rejected, first_result, outcomes, remaining = asyncio.run(run())

        assert rejected == 3
        assert first_result["endpoint"] == "/first"
        assert all(isinstance(outcome, QueueClearedError) for outcome in outcomes)
        assert remaining == 0
        assert transport.calls == ["/first"]

    def test_clear_rejects_request_in_backoff(self) -> None:
        transport = ScriptedTransport({"/A": [rate_limited(), ok_response()]})
        clock = GatedClock()

        async def run() -> tuple:
            clock.gate = asyncio.Event()
            queue = make_queue(transport, clock)
            future = queue.enqueue("/A", {})

            while not clock.waiting:
                await asyncio.sleep(0)

            rejected = queue.clear_queue()
            clock.gate.set()
            with pytest.raises(QueueClearedError):
                await future
            await queue.join()
            return rejected, queue.status()

        rejected, status = asyncio.run(run())

        assert rejected == 1
        assert transport.calls == ["/A"]
        assert status.processing is False

    def test_close_cancels_in_flight_request(self) -> None:
        transport = ScriptedTransport()
        clock = ManualClock()

        async def run() -> tuple:
            transport.gate = asyncio.Event()
            queue = make_queue(transport, clock)
            in_flight = queue.enqueue("/first", {})
            pending = queue.enqueue("/second", {})

            while not transport.calls:
                await asyncio.sleep(0)

            await queue.close()
            outcomes = await asyncio.gather(in_flight, pending, return_exceptions=True)
            return outcomes, queue.status()

        outcomes, status = asyncio.run(run())

        assert all(isinstance(outcome, QueueClearedError) for outcome in outcomes)
        assert transport.calls == ["/first"]
        assert transport.in_flight == 0
        assert status.processing is False

    def test_clear_on_idle_queue_rejects_nothing(self) -> None:
        transport = ScriptedTransport()
        queue = make_queue(transport, ManualClock())

        assert queue.clear_queue() == 0

    def test_queue_accepts_work_after_clear(self) -> None:
        transport = ScriptedTransport()
        clock = ManualClock()

        async def run() -> dict:
            queue = make_queue(transport, clock)
            doomed = queue.enqueue("/doomed", {})
            queue.clear_queue()
            with pytest.raises(QueueClearedError):
                await doomed
            return await queue.enqueue("/after", {})

        result = asyncio.run(run())

        assert result["endpoint"] == "/after"
        assert transport.calls == ["/after"]

    def test_status_reports_queue_length(self) -> None:
        transport = ScriptedTransport()
        clock = ManualClock()

        async def run() -> tuple:
            queue = make_queue(transport, clock)
            futures = [queue.enqueue(f"/{i}", {}) for i in range(4)]
            before = queue.status()
            await asyncio.gather(*futures)
            await queue.join()
            return before, queue.status()

        before, after = asyncio.run(run())

        assert before.queue_length == 4
        assert before.processing is True
        assert after.queue_length == 0
        assert after.processing is False
