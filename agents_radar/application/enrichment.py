"""Batched hydration of discovered node ids into repository records."""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional, Sequence, Set
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    stop_after_attempt,
    wait_fixed,
    retry_if_exception_type
)
from agents_radar.domain.errors import GitHubApiError, RateLimitException
from agents_radar.domain.github_interface import IRepositoryLookup
from agents_radar.domain.models import RepositoryRecord


logger = logging.getLogger(__name__)


@dataclass
class EnrichmentResult:
    """Records hydrated by the batcher plus failure bookkeeping."""
    records: List[RepositoryRecord] = field(default_factory=list)
    failed_batches: int = 0
    throttled: int = 0
    dropped_nodes: int = 0


class EnrichmentBatcher:
    """Resolves node ids in fixed-size GraphQL batches.

    A throttled batch is retried after a fixed cooldown, up to
    ``max_attempts``. A batch that still fails is logged and skipped; its
    repositories are simply missing from the output.
    """

    def __init__(
        self,
        lookup_client: IRepositoryLookup,
        batch_size: int = 50,
        cooldown: float = 60.0,
        max_attempts: int = 5,
        politeness_delay: float = 0.3,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        """Initialize enrichment batcher.

        Args:
            lookup_client: Repository lookup port
            batch_size: Node ids per GraphQL request
            cooldown: Seconds to wait before re-attempting a throttled batch
            max_attempts: Attempts per batch while throttled
            politeness_delay: Seconds to wait after every batch
            sleep: Coroutine used for delays
        """
        self._lookup_client = lookup_client
        self._batch_size = batch_size
        self._cooldown = cooldown
        self._max_attempts = max_attempts
        self._politeness_delay = politeness_delay
        self._sleep = sleep
        self._throttled = 0

    def _before_sleep(self, retry_state: RetryCallState) -> None:
        self._throttled += 1
        logger.warning(
            f"Rate limit hit during GraphQL fetch. Waiting {self._cooldown:.0f}s "
            f"before retrying the same batch (attempt {retry_state.attempt_number})..."
        )

    async def _lookup_batch(self, batch: Sequence[str]) -> List[Optional[dict]]:
        """Look up one batch, re-attempting it while the API throttles."""
        retrying = AsyncRetrying(
            retry=retry_if_exception_type(RateLimitException),
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_fixed(self._cooldown),
            sleep=self._sleep,
            before_sleep=self._before_sleep,
            reraise=True
        )
        async for attempt in retrying:
            with attempt:
                return await self._lookup_client.lookup(batch)

    async def enrich(self, identifiers: Sequence[str]) -> EnrichmentResult:
        """Hydrate every identifier that still resolves to a repository.

        Args:
            identifiers: Discovered node ids, in discovery order

        Returns:
            EnrichmentResult whose records are a subset of ``identifiers``
        """
        result = EnrichmentResult()
        self._throttled = 0
        if not identifiers:
            return result

        wanted: Set[str] = set(identifiers)
        seen_ids: Set[str] = set()
        seen_names: Set[str] = set()

        logger.info(f"Fetching details for {len(identifiers)} repositories using GraphQL...")

        for start in range(0, len(identifiers), self._batch_size):
            batch = identifiers[start:start + self._batch_size]

            if start % 200 == 0:
                logger.info(f"   Progress: {start}/{len(identifiers)} repos...")

            try:
                nodes = await self._lookup_batch(batch)
            except GitHubApiError as e:
                logger.error(f"Batch fetch failed for ids {start}..{start + len(batch) - 1}: {e}")
                result.failed_batches += 1
                nodes = []

            for node in nodes:
                record = RepositoryRecord.from_node(node)
                if record is None:
                    result.dropped_nodes += 1
                    continue
                if record.node_id is not None and (
                    record.node_id not in wanted or record.node_id in seen_ids
                ):
                    result.dropped_nodes += 1
                    continue
                if record.name_with_owner in seen_names:
                    result.dropped_nodes += 1
                    continue
                if record.node_id is not None:
                    seen_ids.add(record.node_id)
                seen_names.add(record.name_with_owner)
                result.records.append(record)

            # Delay to be safe with secondary limits
            await self._sleep(self._politeness_delay)

        result.throttled = self._throttled
        logger.info(
            f"Enriched {len(result.records)}/{len(identifiers)} repositories "
            f"({result.failed_batches} failed batches, {result.dropped_nodes} unresolved)"
        )
        return result
