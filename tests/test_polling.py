"""
Tests for bounded polling with plateau detection.
"""

import asyncio

from conftest import make_items

from ordersync.errors import RemoteUnavailable
from ordersync.services.polling import PollingReconciler


def reader(*responses):
    """Coroutine function returning ``responses`` in order, repeating the last."""
    queue = list(responses)
    calls = []

    async def read():
        calls.append(1)
        value = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(value, Exception):
            raise value
        return value

    read.calls = calls
    return read


class TestPollingReconciler:
    """Plateau, timeout and read failures."""

    def poller(self, read, timer, **kwargs):
        return PollingReconciler(read, sleep=timer.sleep, clock=timer.clock, **kwargs)

    def test_accepts_plateau_after_job_completes(self, timer):
        read = reader([], [], [], make_items(12))
        result = asyncio.run(self.poller(read, timer).poll())

        assert len(result.items) == 12
        assert result.timed_out is False
        assert result.polls == 5
        assert result.elapsed < 45
        assert timer.sleeps == [1.2] * 5

    def test_keeps_polling_while_count_grows(self, timer):
        read = reader(make_items(3), make_items(8), make_items(8))
        result = asyncio.run(self.poller(read, timer).poll())

        assert len(result.items) == 8
        assert result.polls == 3

    def test_zero_is_never_accepted(self, timer):
        read = reader([])
        result = asyncio.run(self.poller(read, timer).poll())

        assert result.timed_out is True
        assert result.items == []
        assert result.polls == 37
        assert 44 < result.elapsed <= 45

    def test_no_read_past_ceiling(self, timer):
        read = reader([])
        result = asyncio.run(self.poller(read, timer, interval_seconds=4, timeout_seconds=10).poll())

        assert result.timed_out is True
        assert result.polls == 2
        assert timer.now <= 10
        assert timer.sleeps == [4, 4]

    def test_budget_shorter_than_interval(self, timer):
        read = reader(make_items(3))
        result = asyncio.run(self.poller(read, timer, interval_seconds=5, timeout_seconds=2).poll())

        assert result.timed_out is True
        assert result.polls == 0
        assert read.calls == []

    def test_small_drop_counts_as_plateau(self, timer):
        read = reader([], make_items(12), make_items(11), make_items(30))
        result = asyncio.run(self.poller(read, timer).poll())

        assert len(result.items) == 11
        assert result.polls == 3
        assert result.timed_out is False

    def test_custom_budget(self, timer):
        read = reader([])
        result = asyncio.run(self.poller(read, timer, interval_seconds=2, timeout_seconds=10).poll())

        assert result.timed_out is True
        assert result.polls == 5

    def test_read_failures_do_not_stop_polling(self, timer):
        read = reader(RemoteUnavailable("blip"), make_items(4), make_items(4))
        result = asyncio.run(self.poller(read, timer).poll())

        assert len(result.items) == 4
        assert len(read.calls) == 3

    def test_sleeps_before_first_read(self, timer):
        read = reader(make_items(1))
        asyncio.run(self.poller(read, timer).poll())
        assert timer.sleeps[0] == 1.2
