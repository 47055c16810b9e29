"""Taskiq tasks for deferred listing writes."""

import logging
from typing import Any, cast

from listing_engine.db.repositories import increment_listing_views
from listing_engine.db.session import session_context
from listing_engine.taskiq_app.broker import broker

logger = logging.getLogger(__name__)


@broker.task(
    task_name="count_listing_view",
    retry_on_error=True,
    max_retries=3,
)
async def count_listing_view(listing_id: int) -> dict[str, object]:
    """Persist one detail view of a listing."""

    async with session_context() as session:
        await increment_listing_views(session, listing_id)

    logger.debug("Counted view for listing_id=%s", listing_id)
    return {"listing_id": listing_id, "status": "ok"}


async def enqueue_view_increment(listing_id: int) -> None:
    """Hand a view increment to the worker; used as a ``ViewCounter`` sink."""

    task_kicker = cast(Any, count_listing_view)
    await task_kicker.kiq(listing_id)
