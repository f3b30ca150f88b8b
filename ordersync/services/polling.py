"""
Bounded polling of the authoritative local read.

Used after the reconciliation procedure reports a started background job:
the job's completion is not pushed, so the read is repeated at a fixed
interval until the row count plateaus or the time budget runs out.
"""

import asyncio
import time
from typing import Awaitable, Callable, List, Optional

from ..errors import BackendError
from ..models import OrderLineItem, PollResult
from ..utils import get_logger

ReadItems = Callable[[], Awaitable[List[OrderLineItem]]]
Sleep = Callable[[float], Awaitable[None]]
Clock = Callable[[], float]


class PollingReconciler:
    """Polls until a non-zero count stops growing, or until the timeout."""

    def __init__(
        self,
        read_items: ReadItems,
        interval_seconds: float = 1.2,
        timeout_seconds: float = 45.0,
        sleep: Sleep = asyncio.sleep,
        clock: Optional[Clock] = None
    ) -> None:
        """
        Initialize polling reconciler.

        Args:
            read_items: Coroutine function performing one authoritative read
            interval_seconds: Delay before each read
            timeout_seconds: Total time budget
            sleep: Awaitable delay (injectable for tests)
            clock: Monotonic clock in seconds (injectable for tests)
        """
        self.read_items = read_items
        self.interval_seconds = interval_seconds
        self.timeout_seconds = timeout_seconds
        self.sleep = sleep
        self.clock = clock or time.monotonic
        self.logger = get_logger("polling")

    async def poll(self) -> PollResult:
        """
        Poll until plateau or timeout.

        Returns:
            PollResult with the accepted items, or ``timed_out`` set and no
            items when the budget was exhausted
        """
        start = self.clock()
        previous_count: Optional[int] = None
        polls = 0

        while True:
            elapsed = self.clock() - start
            if elapsed + self.interval_seconds > self.timeout_seconds:
                self.logger.info(f"Polling gave up after {polls} reads ({elapsed:.1f}s)")
                return PollResult(polls=polls, elapsed=elapsed, timed_out=True)

            await self.sleep(self.interval_seconds)
            elapsed = self.clock() - start

            try:
                items = await self.read_items()
            except BackendError as e:
                self.logger.warning(f"Poll read failed: {e}")
                items = None
            polls += 1

            if items is not None:
                count = len(items)
                self.logger.debug(f"Poll {polls}: {count} items after {elapsed:.1f}s")
                # Plateau: non-zero and no growth since the previous read
                if previous_count is not None and 0 < count <= previous_count:
                    return PollResult(items=items, polls=polls, elapsed=elapsed)
                previous_count = count
