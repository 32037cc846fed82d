"""Tests for the background poll loop."""

from __future__ import annotations

import asyncio

import pytest

from fakes import make_config
from traefik_aggregator.aggregator.scheduler import run_poll_loop, start_poll_task


class FakeAggregator:
    """Counts cycles and tracks how many run at the same time."""

    def __init__(self, duration: float = 0.0, fail: bool = False) -> None:
        self.config = make_config()
        self.duration = duration
        self.fail = fail
        self.cycles = 0
        self.running = 0
        self.max_running = 0

    async def aggregate_configs(self):
        self.running += 1
        self.max_running = max(self.max_running, self.running)
        try:
            if self.duration:
                await asyncio.sleep(self.duration)
            self.cycles += 1
            if self.fail:
                raise RuntimeError("cycle exploded")
        finally:
            self.running -= 1


class TestRunPollLoop:
    """Tests for run_poll_loop."""

    @pytest.mark.asyncio
    async def test_max_cycles(self):
        aggregator = FakeAggregator()
        await asyncio.wait_for(run_poll_loop(aggregator, 0.01, max_cycles=3), timeout=5)
        assert aggregator.cycles == 3

    @pytest.mark.asyncio
    async def test_first_cycle_runs_immediately(self):
        aggregator = FakeAggregator()
        await asyncio.wait_for(run_poll_loop(aggregator, 3600, max_cycles=1), timeout=1)
        assert aggregator.cycles == 1

    @pytest.mark.asyncio
    async def test_cycles_never_overlap(self):
        aggregator = FakeAggregator(duration=0.03)
        await asyncio.wait_for(run_poll_loop(aggregator, 0.01, max_cycles=4), timeout=5)
        assert aggregator.cycles == 4
        assert aggregator.max_running == 1

    @pytest.mark.asyncio
    async def test_overrun_does_not_build_backlog(self):
        """After a slow cycle the next one starts right away, then the interval resumes."""
        aggregator = FakeAggregator(duration=0.05)
        loop = asyncio.get_running_loop()

        started = loop.time()
        await asyncio.wait_for(run_poll_loop(aggregator, 0.01, max_cycles=3), timeout=5)
        elapsed = loop.time() - started

        assert aggregator.cycles == 3
        assert elapsed < 0.5

    @pytest.mark.asyncio
    async def test_failed_cycle_does_not_stop_loop(self):
        aggregator = FakeAggregator(fail=True)
        await asyncio.wait_for(run_poll_loop(aggregator, 0.01, max_cycles=3), timeout=5)
        assert aggregator.cycles == 3


class TestStartPollTask:
    """Tests for start_poll_task."""

    @pytest.mark.asyncio
    async def test_task_runs_until_cancelled(self):
        aggregator = FakeAggregator()
        task = start_poll_task(aggregator, 0.01)

        await asyncio.sleep(0.05)
        assert aggregator.cycles >= 1
        assert task.get_name() == "traefik-aggregator-poll"

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert task.cancelled()
