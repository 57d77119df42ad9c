"""Main entry point for the AGENTS.md data collection job.

Discovers every public repository containing an AGENTS.md file, hydrates it
through the GraphQL API and writes the dashboard snapshot.
"""
import asyncio
import dataclasses
import os
import sys
import logging
from typing import Optional
from dotenv import load_dotenv
from agents_radar.application.crawler_service import CrawlerService
from agents_radar.application.enrichment import EnrichmentBatcher
from agents_radar.application.range_search import AdaptiveRangeSearch
from agents_radar.application.segment_fetcher import SegmentFetcher
from agents_radar.domain.models import SearchRange
from agents_radar.infrastructure.code_search_client import GitHubCodeSearchClient
from agents_radar.infrastructure.graphql_client import GitHubGraphQLClient
from agents_radar.infrastructure.http_client import RateLimitedHttpClient
from agents_radar.infrastructure.snapshot_storage import JsonSnapshotStorage

# Load environment variables from .env or env file
load_dotenv('.env') or load_dotenv('env')


logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def get_github_token() -> Optional[str]:
    """Return the API token from GH_PAT or GITHUB_TOKEN."""
    return os.getenv("GH_PAT") or os.getenv("GITHUB_TOKEN")


async def main() -> int:
    """Execute the data collection run.

    Returns:
        Process exit code
    """
    github_token = get_github_token()
    if not github_token:
        logger.error("GH_PAT or GITHUB_TOKEN environment variable is required")
        return 1

    snapshot_path = os.getenv("SNAPSHOT_PATH", os.path.join("public", "data.json"))
    filename = os.getenv("SEARCH_FILENAME", "AGENTS.md")
    search_client = None
    lookup_client = None

    try:
        upper_bound = int(os.getenv("SIZE_UPPER_BOUND", "100000"))
        page_delay = float(os.getenv("SEARCH_PAGE_DELAY", "3.0"))
        batch_size = int(os.getenv("ENRICH_BATCH_SIZE", "50"))
        search_range = SearchRange(0, upper_bound)

        logger.info(f"Collecting repositories with {filename} into {snapshot_path}")

        # Initialize infrastructure components
        http = RateLimitedHttpClient(github_token)
        search_client = GitHubCodeSearchClient(http, filename=filename)
        lookup_client = GitHubGraphQLClient(github_token)
        storage = JsonSnapshotStorage(snapshot_path)

        # Initialize application services
        crawler = CrawlerService(
            range_search=AdaptiveRangeSearch(
                search_client,
                SegmentFetcher(search_client, politeness_delay=page_delay)
            ),
            enrichment=EnrichmentBatcher(lookup_client, batch_size=batch_size),
            storage=storage,
            search_range=search_range
        )

        metrics = await crawler.crawl()
        metrics = dataclasses.replace(
            metrics, rate_limit_waits=metrics.rate_limit_waits + http.rate_limit_waits
        )

        # Log results
        logger.info("=" * 50)
        logger.info("Crawl Metrics:")
        logger.info(f"  Identifiers discovered: {metrics.identifiers_discovered}")
        logger.info(f"  Repositories enriched: {metrics.repositories_enriched}")
        logger.info(f"  Repositories retained: {metrics.repositories_retained}")
        logger.info(f"  Duration: {metrics.duration_seconds:.2f} seconds")
        logger.info(f"  Rate limit waits: {metrics.rate_limit_waits}")
        logger.info(f"  Errors: {metrics.errors_encountered}")
        logger.info(f"  Snapshot written: {metrics.snapshot_written}")
        logger.info("=" * 50)

    except Exception as e:
        logger.error(f"Crawl failed: {e}", exc_info=True)
        return 1
    finally:
        if search_client is not None:
            await search_client.close()
        if lookup_client is not None:
            await lookup_client.close()

    return 0


def run() -> None:
    """Console script entry point."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
