"""Exhaustive pagination of a single bounded search query."""
import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable
from agents_radar.domain.errors import GitHubApiError, SearchDepthExceeded
from agents_radar.domain.github_interface import ICodeSearchClient
from agents_radar.domain.models import IdentifierSet


logger = logging.getLogger(__name__)

MAX_SEARCH_PAGES = 10  # GitHub serves at most 1000 results per query


@dataclass(frozen=True)
class SegmentResult:
    """Outcome of one segment sweep."""
    pages_fetched: int
    new_identifiers: int
    failed: bool = False


class SegmentFetcher:
    """Pages through one search predicate and collects repository node ids.

    Pagination stops on an empty page, after the 10th page, or when the API
    reports the depth limit (422). Any other API error ends this segment only;
    ids merged so far are kept.
    """

    def __init__(
        self,
        search_client: ICodeSearchClient,
        page_size: int = 100,
        max_pages: int = MAX_SEARCH_PAGES,
        politeness_delay: float = 3.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        """Initialize segment fetcher.

        Args:
            search_client: Code search port
            page_size: Results per page (max 100)
            max_pages: Hard page ceiling of the search API
            politeness_delay: Seconds to wait after every fetched page
            sleep: Coroutine used for the delay
        """
        self._search_client = search_client
        self._page_size = min(page_size, 100)
        self._max_pages = max_pages
        self._politeness_delay = politeness_delay
        self._sleep = sleep

    async def fetch(self, predicate: str, identifiers: IdentifierSet) -> SegmentResult:
        """Sweep every page of ``predicate`` into ``identifiers``.

        Args:
            predicate: Bounded search qualifiers for this segment
            identifiers: Shared accumulator owned by the discovery phase

        Returns:
            SegmentResult with page and new-id counts
        """
        logger.info(f"   Running segment: \"{predicate}\"")
        page = 1
        new_total = 0
        pages_fetched = 0

        while page <= self._max_pages:
            try:
                result = await self._search_client.search(
                    predicate, page=page, per_page=self._page_size
                )
            except SearchDepthExceeded:
                logger.info("      Search depth limit reached (1000 results) for this segment.")
                break
            except GitHubApiError as e:
                logger.error(f"      Segment \"{predicate}\" aborted on page {page}: {e}")
                return SegmentResult(pages_fetched, new_total, failed=True)

            pages_fetched += 1
            if result.item_count == 0:
                await self._sleep(self._politeness_delay)
                break

            new_items = identifiers.merge(result.node_ids)
            new_total += new_items
            logger.info(
                f"      Page {page}: Found {result.item_count} items ({new_items} new unique)."
            )

            # Secondary rate limits allow ~30 search requests per minute
            await self._sleep(self._politeness_delay)
            page += 1

        if page > self._max_pages:
            logger.info("      Segment limit reached (1000 results).")

        return SegmentResult(pages_fetched, new_total)
