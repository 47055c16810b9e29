"""Search execution and result pagination."""

import asyncio
import math

from pydantic import BaseModel

from listing_engine.criteria import Criteria, SearchOptions
from listing_engine.db.repositories import ListingRecord, ListingRepository
from listing_engine.geo import BoundingBox
from listing_engine.services.formatting import ListingSummary


class SearchResult(BaseModel):
    items: list[ListingSummary]
    total: int
    page: int
    limit: int
    total_pages: int
    has_next_page: bool
    has_previous_page: bool


def build_search_result(
    items: list[ListingSummary], total: int, options: SearchOptions
) -> SearchResult:
    total_pages = math.ceil(total / options.limit)
    return SearchResult(
        items=items,
        total=total,
        page=options.page,
        limit=options.limit,
        total_pages=total_pages,
        has_next_page=options.page < total_pages,
        has_previous_page=options.page > 1,
    )


class SearchExecutor:
    """Runs the page fetch and the total count against the repository.

    Both queries run concurrently; if either fails the other is cancelled
    and the first failure is raised unwrapped.
    """

    def __init__(self, repository: ListingRepository) -> None:
        self._repository = repository

    async def execute(
        self,
        criteria: Criteria,
        options: SearchOptions,
        bbox: BoundingBox | None = None,
    ) -> tuple[list[ListingRecord], int]:
        exclude_inactive = not options.include_inactive
        try:
            async with asyncio.TaskGroup() as group:
                records = group.create_task(
                    self._repository.find(
                        criteria, bbox, options, exclude_inactive=exclude_inactive
                    )
                )
                total = group.create_task(
                    self._repository.count(
                        criteria, bbox, exclude_inactive=exclude_inactive
                    )
                )
        except ExceptionGroup as failures:
            raise failures.exceptions[0] from None
        return records.result(), total.result()
