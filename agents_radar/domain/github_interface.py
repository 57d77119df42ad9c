"""GitHub API interfaces (ports) for discovering and hydrating repositories.

This is the anti-corruption layer that shields the domain from GitHub API specifics.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence
from agents_radar.domain.models import SearchPage


class ICodeSearchClient(ABC):
    """Abstract interface for the code search endpoint."""

    @abstractmethod
    async def search(self, predicate: str, page: int = 1, per_page: int = 100) -> SearchPage:
        """Run one code search page for files matching the target filename.

        Args:
            predicate: Extra qualifiers combined with the filename term
            page: 1-based page index
            per_page: Page size (max 100)

        Returns:
            The page with its reported total count

        Raises:
            SearchDepthExceeded: When the page lies beyond the result window
            GitHubApiError: On any other failure
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close any open connections."""
        pass


class IRepositoryLookup(ABC):
    """Abstract interface for bulk repository lookups by node id."""

    @abstractmethod
    async def lookup(self, node_ids: Sequence[str]) -> List[Optional[Dict[str, Any]]]:
        """Resolve node ids into raw repository nodes.

        Args:
            node_ids: Opaque GraphQL node ids

        Returns:
            One entry per resolvable id; entries may be None

        Raises:
            RateLimitException: When the caller should back off and retry
            GitHubApiError: On any other failure
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close any open connections."""
        pass
