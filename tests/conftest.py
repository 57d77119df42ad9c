"""Shared test doubles for the GitHub ports."""
import re
from typing import Dict, List, Optional, Sequence, Tuple

import pytest

from agents_radar.domain.errors import SearchDepthExceeded
from agents_radar.domain.github_interface import ICodeSearchClient, IRepositoryLookup
from agents_radar.domain.models import SearchPage


SIZE_QUALIFIER = re.compile(r"size:(\d+)\.\.(\d+)")


class RecordingSleep:
    """Async stand-in for ``asyncio.sleep`` that only records the delays."""

    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class FakeCodeSearch(ICodeSearchClient):
    """In-memory code search over ``(node_id, file_size)`` pairs.

    Mimics the real endpoint: totals are exact, but only the first 1000
    matches can be paged through.
    """

    def __init__(self, files: Sequence[Tuple[str, int]] = (), failures: Optional[Dict] = None):
        self.files = list(files)
        self.failures = dict(failures or {})
        self.calls: List[Tuple[str, int, int]] = []

    def matching(self, predicate: str) -> List[str]:
        match = SIZE_QUALIFIER.search(predicate)
        low, high = int(match.group(1)), int(match.group(2))
        return [node_id for node_id, size in self.files if low <= size <= high]

    async def search(self, predicate: str, page: int = 1, per_page: int = 100) -> SearchPage:
        self.calls.append((predicate, page, per_page))
        failure = self.failures.get((predicate, page))
        if failure is not None:
            raise failure
        matches = self.matching(predicate)
        start = (page - 1) * per_page
        if start >= 1000:
            raise SearchDepthExceeded(predicate)
        items = matches[:1000][start:start + per_page]
        return SearchPage(total_count=len(matches), item_count=len(items), node_ids=tuple(items))

    async def close(self) -> None:
        pass


class FakeLookup(IRepositoryLookup):
    """Resolves node ids from a dict; scripted errors are raised first, one per call."""

    def __init__(self, nodes: Dict[str, Optional[dict]], errors: Sequence[Exception] = ()):
        self.nodes = nodes
        self.errors = list(errors)
        self.calls: List[List[str]] = []

    async def lookup(self, node_ids: Sequence[str]) -> List[Optional[dict]]:
        self.calls.append(list(node_ids))
        if self.errors:
            raise self.errors.pop(0)
        return [self.nodes.get(node_id) for node_id in node_ids]

    async def close(self) -> None:
        pass


def make_node(
    node_id: str,
    name: Optional[str] = None,
    stars: int = 0,
    forks: int = 0,
    created_at: str = "2020-01-01T00:00:00Z",
    **extra
) -> dict:
    """Minimal GraphQL repository node."""
    name = name or f"owner/{node_id.lower()}"
    node = {
        "id": node_id,
        "nameWithOwner": name,
        "url": f"https://github.com/{name}",
        "description": None,
        "stargazerCount": stars,
        "forkCount": forks,
        "watchers": {"totalCount": 1},
        "issues": {"totalCount": 0},
        "pullRequests": {"totalCount": 0},
        "primaryLanguage": None,
        "repositoryTopics": {"nodes": []},
        "createdAt": created_at,
        "updatedAt": created_at,
        "isArchived": False,
        "isFork": False,
        "licenseInfo": None,
    }
    node.update(extra)
    return node


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def code_search():
    """Factory for FakeCodeSearch instances."""
    return FakeCodeSearch


@pytest.fixture
def lookup():
    """Factory for FakeLookup instances."""
    return FakeLookup


@pytest.fixture
def node():
    """Factory for GraphQL repository nodes."""
    return make_node
