"""Crawler service orchestrating discovery, enrichment and snapshot publishing."""
import logging
import time
from datetime import datetime, timezone
from typing import Callable
from agents_radar.application.enrichment import EnrichmentBatcher
from agents_radar.application.range_search import AdaptiveRangeSearch
from agents_radar.domain.models import CrawlMetrics, IdentifierSet, SearchRange, Snapshot
from agents_radar.domain.retention import retain
from agents_radar.domain.snapshot_interface import ISnapshotStorage


logger = logging.getLogger(__name__)

DEFAULT_SEARCH_RANGE = SearchRange(0, 100000)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CrawlerService:
    """Application service producing the dashboard snapshot.

    Runs the phases strictly one after the other: range search fills a fresh
    identifier set, the enrichment batcher hydrates it, the retention filter
    trims it and the storage replaces the previous snapshot.
    """

    def __init__(
        self,
        range_search: AdaptiveRangeSearch,
        enrichment: EnrichmentBatcher,
        storage: ISnapshotStorage,
        search_range: SearchRange = DEFAULT_SEARCH_RANGE,
        clock: Callable[[], datetime] = utc_now
    ):
        """Initialize crawler service.

        Args:
            range_search: Discovery over the file-size dimension
            enrichment: GraphQL batch hydration
            storage: Snapshot storage implementation
            search_range: Outer file-size range to cover
            clock: Returns the run's current time (timezone-aware)
        """
        self._range_search = range_search
        self._enrichment = enrichment
        self._storage = storage
        self._search_range = search_range
        self._clock = clock

    async def crawl(self) -> CrawlMetrics:
        """Run one full collection pass.

        Returns:
            CrawlMetrics with operation statistics

        Raises:
            OSError: If the snapshot cannot be written
        """
        start_time = time.monotonic()

        logger.info("Starting adaptive range search...")
        logger.info(f"   Scope: {self._search_range} bytes")

        identifiers = IdentifierSet()
        discovery = await self._range_search.discover(self._search_range, identifiers)
        errors = len(discovery.failed_counts) + discovery.failed_segments

        if len(identifiers) == 0:
            written = False
            if self._storage.exists():
                logger.warning("No repositories found. Keeping the previous snapshot.")
            else:
                logger.warning("No repositories found. Writing an empty snapshot.")
                self._storage.save(Snapshot(generated_at=self._clock()))
                written = True
            return CrawlMetrics(
                identifiers_discovered=0,
                repositories_enriched=0,
                repositories_retained=0,
                duration_seconds=time.monotonic() - start_time,
                rate_limit_waits=0,
                errors_encountered=errors,
                snapshot_written=written
            )

        enrichment = await self._enrichment.enrich(identifiers.freeze())
        errors += enrichment.failed_batches

        now = self._clock()
        retained = retain(enrichment.records, now)
        logger.info(
            f"Quality filter kept {len(retained)} of {len(enrichment.records)} repositories"
        )

        self._storage.save(Snapshot(generated_at=now, repos=tuple(retained)))

        return CrawlMetrics(
            identifiers_discovered=len(identifiers),
            repositories_enriched=len(enrichment.records),
            repositories_retained=len(retained),
            duration_seconds=time.monotonic() - start_time,
            rate_limit_waits=enrichment.throttled,
            errors_encountered=errors,
            snapshot_written=True
        )
