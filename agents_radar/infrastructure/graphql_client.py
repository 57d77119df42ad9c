"""GitHub GraphQL API client used to hydrate repository node ids."""
import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence
import aiohttp
from gql import gql, Client
from gql.transport.aiohttp import AIOHTTPTransport
from gql.transport.exceptions import (
    TransportError as GqlTransportError,
    TransportQueryError,
    TransportServerError
)
from agents_radar.domain.errors import (
    HttpStatusError,
    RateLimitException,
    TransportError
)
from agents_radar.domain.github_interface import IRepositoryLookup
from agents_radar.domain.models import parse_timestamp


logger = logging.getLogger(__name__)

GITHUB_GRAPHQL_URL = "https://api.github.com/graphql"


class GitHubGraphQLClient(IRepositoryLookup):
    """GitHub GraphQL API client resolving node ids into repository nodes.

    Implements the IRepositoryLookup port, providing an anti-corruption layer
    between the domain and GitHub's API.
    """

    # GraphQL query to fetch repository details for a batch of node ids
    NODES_QUERY = gql("""
        query GetRepositoryDetails($ids: [ID!]!) {
            nodes(ids: $ids) {
                ... on Repository {
                    id
                    nameWithOwner
                    url
                    description
                    stargazerCount
                    forkCount
                    watchers { totalCount }
                    issues { totalCount }
                    pullRequests { totalCount }
                    primaryLanguage { name color }
                    repositoryTopics(first: 10) {
                        nodes { topic { name } }
                    }
                    createdAt
                    updatedAt
                    isArchived
                    isFork
                    licenseInfo { name spdxId }
                }
            }
            rateLimit {
                remaining
                resetAt
            }
        }
    """)

    def __init__(
        self,
        access_token: str,
        client: Optional[Client] = None,
        throttle_wait: float = 60.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        """Initialize GitHub client.

        Args:
            access_token: GitHub personal access token
            client: Optional pre-built gql client
            throttle_wait: Suggested backoff when the API throttles a lookup
            sleep: Coroutine used when waiting for the points budget to reset
        """
        self._access_token = access_token
        self._transport: Optional[AIOHTTPTransport] = None
        self._client = client
        self._throttle_wait = throttle_wait
        self._sleep = sleep
        self._rate_limit_remaining: int = 5000
        self._rate_limit_reset_at: Optional[datetime] = None

    async def _init_client(self) -> None:
        """Initialize the GraphQL client (lazy initialization)."""
        if self._client is None:
            headers = {"Authorization": f"Bearer {self._access_token}"}
            self._transport = AIOHTTPTransport(
                url=GITHUB_GRAPHQL_URL,
                headers=headers
            )
            self._client = Client(
                transport=self._transport,
                fetch_schema_from_transport=False
            )

    async def _check_rate_limit(self) -> None:
        """Wait for the reset when the points budget is nearly exhausted."""
        if self._rate_limit_remaining <= 10 and self._rate_limit_reset_at:
            wait_time = (self._rate_limit_reset_at - datetime.now(timezone.utc)).total_seconds()
            if wait_time > 0:
                logger.warning(
                    f"Rate limit nearly exhausted. Waiting {wait_time:.0f} seconds "
                    f"until reset at {self._rate_limit_reset_at}"
                )
                await self._sleep(wait_time + 1)  # Add 1 second buffer

    def _update_rate_limit(self, result: Dict[str, Any]) -> None:
        rate_limit = result.get("rateLimit") or {}
        if "remaining" in rate_limit:
            self._rate_limit_remaining = rate_limit["remaining"]
        reset_at = parse_timestamp(rate_limit.get("resetAt"))
        if reset_at:
            self._rate_limit_reset_at = reset_at
        logger.debug(
            f"Rate limit remaining: {self._rate_limit_remaining}, "
            f"resets at: {self._rate_limit_reset_at}"
        )

    async def lookup(self, node_ids: Sequence[str]) -> List[Optional[Dict[str, Any]]]:
        """Resolve a batch of node ids.

        Partial GraphQL errors (deleted or private repositories) are not
        failures: the nodes that did resolve are returned, the rest are None.

        Args:
            node_ids: Repository node ids (at most 100)

        Returns:
            Repository nodes, possibly containing None entries

        Raises:
            RateLimitException: When rate limit is hit
            HttpStatusError: On other HTTP error statuses
            TransportError: On network failures
        """
        await self._init_client()
        await self._check_rate_limit()

        try:
            async with self._client as session:
                result = await session.execute(
                    self.NODES_QUERY,
                    variable_values={"ids": list(node_ids)}
                )
        except TransportQueryError as e:
            if _is_rate_limited(e.errors):
                raise RateLimitException(
                    f"GraphQL rate limited: {e}", wait_seconds=self._throttle_wait
                ) from e
            logger.debug(f"GraphQL partial errors for batch of {len(node_ids)}: {e}")
            result = e.data or {}
        except TransportServerError as e:
            if e.code in (403, 429):
                raise RateLimitException(
                    f"GraphQL HTTP {e.code}", wait_seconds=self._throttle_wait
                ) from e
            raise HttpStatusError(e.code or 0, str(e)) from e
        except (GqlTransportError, aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportError(f"GraphQL request failed: {e!r}") from e

        self._update_rate_limit(result)
        return list(result.get("nodes") or [])

    async def close(self) -> None:
        """Close the GraphQL client and transport."""
        if self._transport:
            await self._transport.close()
            self._transport = None
            self._client = None


def _is_rate_limited(errors: Optional[List[Any]]) -> bool:
    for error in errors or []:
        if isinstance(error, dict) and error.get("type") == "RATE_LIMITED":
            return True
        if "rate limit" in str(error).lower():
            return True
    return False
