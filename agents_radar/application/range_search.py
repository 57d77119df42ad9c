"""Adaptive range search: enumerate more results than one query can return.

The code search endpoint truncates any query at 1000 results. To list every
matching file, the file-size dimension is partitioned: a cheap count-only
query tells whether a size range fits under the cap. Ranges that fit are
fetched exhaustively; ranges that do not are split in half and counted again.

Leaf ranges never overlap and together cover the outer range, so as long as
no single byte size holds more than 1000 files the union of the leaf fetches
is the complete result set. A single size that still exceeds the cap cannot
be split further; its first 1000 results are fetched and the rest are lost.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional
from agents_radar.application.segment_fetcher import SegmentFetcher
from agents_radar.domain.errors import GitHubApiError
from agents_radar.domain.github_interface import ICodeSearchClient
from agents_radar.domain.models import IdentifierSet, SearchRange


logger = logging.getLogger(__name__)

RESULT_CAP = 1000


def range_predicate(search_range: SearchRange) -> str:
    """Search qualifiers selecting non-fork files within ``search_range``."""
    return f"fork:false size:{search_range.to_qualifier()}"


@dataclass
class DiscoveryResult:
    """What the range search did, in visiting order."""
    counted: List[SearchRange] = field(default_factory=list)
    leaves: List[SearchRange] = field(default_factory=list)
    splits: List[SearchRange] = field(default_factory=list)
    clustered: List[SearchRange] = field(default_factory=list)
    failed_counts: List[SearchRange] = field(default_factory=list)
    failed_segments: int = 0


class AdaptiveRangeSearch:
    """Bisection discovery over file size.

    Pending ranges live on an explicit stack; the low half of a split is
    always explored before the high half.
    """

    def __init__(
        self,
        search_client: ICodeSearchClient,
        segment_fetcher: SegmentFetcher,
        result_cap: int = RESULT_CAP
    ):
        self._search_client = search_client
        self._segment_fetcher = segment_fetcher
        self._result_cap = result_cap

    async def _count(self, search_range: SearchRange) -> Optional[int]:
        """Return the total count for ``search_range`` or None if the query failed."""
        try:
            page = await self._search_client.search(
                range_predicate(search_range), page=1, per_page=1
            )
        except GitHubApiError as e:
            logger.error(f"      Count error for {search_range}: {e}")
            return None
        return page.total_count

    async def discover(
        self,
        search_range: SearchRange,
        identifiers: IdentifierSet
    ) -> DiscoveryResult:
        """Collect every repository id with a matching file in ``search_range``.

        Args:
            search_range: Outer size range, e.g. 0..100000 bytes
            identifiers: Accumulator the ids are merged into

        Returns:
            DiscoveryResult describing the explored range tree
        """
        result = DiscoveryResult()
        pending: List[SearchRange] = [search_range]

        while pending:
            current = pending.pop()
            result.counted.append(current)

            total = await self._count(current)
            if total is None:
                result.failed_counts.append(current)
                continue

            logger.info(f"   Count {current.to_qualifier()}: {total} items")

            if total == 0:
                continue

            if total > self._result_cap and not current.is_point:
                low, high = current.bisect()
                logger.info(
                    f"      Split: {total} > {self._result_cap}. "
                    f"Bisecting -> {low} & {high}"
                )
                result.splits.append(current)
                pending.append(high)
                pending.append(low)
                continue

            if total > self._result_cap:
                logger.warning(
                    f"      Critical clustering: >{self._result_cap} items at exact size "
                    f"{current.minimum} bytes. Fetching top {self._result_cap}."
                )
                result.clustered.append(current)
            else:
                logger.info(f"      Fetching all {total} items in range {current}...")

            result.leaves.append(current)
            segment = await self._segment_fetcher.fetch(
                f"{range_predicate(current)} sort:indexed", identifiers
            )
            if segment.failed:
                result.failed_segments += 1

        logger.info(
            f"Discovery complete. Total unique repos found: {len(identifiers)} "
            f"({len(result.counted)} counts, {len(result.leaves)} segments)"
        )
        return result
