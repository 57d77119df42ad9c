"""Tests for the GraphQL lookup adapter."""
import asyncio
from datetime import datetime, timedelta, timezone

import aiohttp
import pytest
from gql.transport.exceptions import TransportQueryError, TransportServerError

from agents_radar.domain.errors import HttpStatusError, RateLimitException, TransportError
from agents_radar.infrastructure.graphql_client import GitHubGraphQLClient


class FakeSession:
    def __init__(self, outcome):
        self.outcome = outcome
        self.variables = []

    async def execute(self, document, variable_values=None):
        self.variables.append(variable_values)
        if isinstance(self.outcome, BaseException):
            raise self.outcome
        return self.outcome


class FakeGqlClient:
    """Stands in for ``gql.Client`` used as an async context manager."""

    def __init__(self, outcome):
        self.session = FakeSession(outcome)

    async def __aenter__(self):
        return self.session

    async def __aexit__(self, *exc_info):
        return False


def lookup(outcome, ids=("A", "B"), **kwargs):
    fake = FakeGqlClient(outcome)
    client = GitHubGraphQLClient("token", client=fake, **kwargs)
    return asyncio.run(client.lookup(list(ids))), fake


def test_lookup_returns_nodes():
    """Test a plain nodes lookup."""
    nodes, fake = lookup({
        "nodes": [{"nameWithOwner": "o/a"}, None],
        "rateLimit": {"remaining": 4990, "resetAt": "2025-01-01T00:00:00Z"},
    })

    assert nodes == [{"nameWithOwner": "o/a"}, None]
    assert fake.session.variables == [{"ids": ["A", "B"]}]


def test_partial_errors_return_resolved_nodes():
    """Test that partial GraphQL errors keep the resolved nodes."""
    error = TransportQueryError(
        "Could not resolve to a node with the global id of 'B'",
        errors=[{"type": "NOT_FOUND", "message": "Could not resolve to a node"}],
        data={"nodes": [{"nameWithOwner": "o/a"}, None]},
    )

    nodes, _ = lookup(error)

    assert nodes == [{"nameWithOwner": "o/a"}, None]


def test_rate_limited_query_error():
    """Test that a RATE_LIMITED error maps to a rate limit exception."""
    error = TransportQueryError(
        "API rate limit exceeded",
        errors=[{"type": "RATE_LIMITED", "message": "API rate limit exceeded"}],
    )

    with pytest.raises(RateLimitException) as excinfo:
        lookup(error, throttle_wait=60.0)

    assert excinfo.value.wait_seconds == 60.0


@pytest.mark.parametrize("code", [403, 429])
def test_throttling_status_raises_rate_limit(code):
    """Test that throttling statuses map to a rate limit exception."""
    with pytest.raises(RateLimitException):
        lookup(TransportServerError("throttled", code))


def test_server_error_raises_http_error():
    """Test that other server errors map to HTTP errors."""
    with pytest.raises(HttpStatusError) as excinfo:
        lookup(TransportServerError("bad gateway", 502))

    assert excinfo.value.status == 502


def test_network_error_raises_transport_error():
    """Test that connection failures map to transport errors."""
    with pytest.raises(TransportError):
        lookup(aiohttp.ClientConnectionError("reset"))


def test_waits_when_points_budget_is_exhausted(sleep):
    """Test the wait when the GraphQL points budget runs low."""
    reset_at = datetime.now(timezone.utc) + timedelta(seconds=120)
    fake = FakeGqlClient({
        "nodes": [],
        "rateLimit": {"remaining": 3, "resetAt": reset_at.isoformat()},
    })
    client = GitHubGraphQLClient("token", client=fake, sleep=sleep)

    asyncio.run(client.lookup(["A"]))
    assert sleep.calls == []

    asyncio.run(client.lookup(["B"]))
    assert len(sleep.calls) == 1
    assert 100 < sleep.calls[0] <= 121
