"""Fire-and-forget listing view counting."""

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

ViewIncrement = Callable[[int], Awaitable[None]]


class ViewCounter:
    """Schedule one view increment per uncached detail read.

    Increments run as background tasks; the reader never awaits them and a
    failed increment is logged, not raised. No deduplication is applied.
    """

    def __init__(self, increment: ViewIncrement) -> None:
        self._increment = increment
        self._pending: set[asyncio.Task[None]] = set()

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def record(self, listing_id: int) -> None:
        task = asyncio.create_task(self._run(listing_id))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _run(self, listing_id: int) -> None:
        try:
            await self._increment(listing_id)
        except Exception:
            logger.warning(
                "View count increment failed for listing_id=%s",
                listing_id,
                exc_info=True,
            )

    async def drain(self) -> None:
        """Wait for in-flight increments, e.g. on shutdown."""

        while self._pending:
            await asyncio.gather(*list(self._pending))
