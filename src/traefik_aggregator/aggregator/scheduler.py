"""Background polling loop driving aggregation cycles."""

from __future__ import annotations

import asyncio

import structlog

from traefik_aggregator.aggregator.engine import Aggregator
from traefik_aggregator.core.exceptions import format_error_for_user

logger = structlog.get_logger()


async def run_poll_loop(
    aggregator: Aggregator,
    interval: float,
    max_cycles: int | None = None,
) -> None:
    """Run aggregation cycles every ``interval`` seconds.

    The first cycle runs immediately. Cycles never overlap: a cycle that
    takes longer than the interval is allowed to finish and the next one
    starts right after it, without catching up on missed ticks.

    Args:
        aggregator: The engine to drive.
        interval: Seconds between cycle starts.
        max_cycles: Stop after this many cycles. None runs until cancelled.
    """
    loop = asyncio.get_running_loop()
    logger.info("Starting poll loop", interval=interval, sources=len(aggregator.config.downstream))

    cycles = 0
    next_run = loop.time()
    while max_cycles is None or cycles < max_cycles:
        try:
            await aggregator.aggregate_configs()
        except Exception as e:
            logger.error("Aggregation cycle failed", error=format_error_for_user(e))
        cycles += 1

        if max_cycles is not None and cycles >= max_cycles:
            break

        next_run += interval
        now = loop.time()
        if next_run < now:
            logger.warning("Aggregation cycle overran poll interval", interval=interval)
            next_run = now
        await asyncio.sleep(next_run - now)


def start_poll_task(aggregator: Aggregator, interval: float) -> asyncio.Task[None]:
    """Start the poll loop in the background.

    Returns:
        asyncio Task that can be cancelled.
    """
    return asyncio.create_task(run_poll_loop(aggregator, interval), name="traefik-aggregator-poll")
