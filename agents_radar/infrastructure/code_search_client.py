"""GitHub REST code search client."""
import logging
from agents_radar.domain.errors import HttpStatusError, SearchDepthExceeded, TransportError
from agents_radar.domain.github_interface import ICodeSearchClient
from agents_radar.domain.models import SearchPage
from agents_radar.infrastructure.http_client import RateLimitedHttpClient


logger = logging.getLogger(__name__)

GITHUB_API_BASE = "https://api.github.com"


class GitHubCodeSearchClient(ICodeSearchClient):
    """Searches for files with a fixed name through ``/search/code``.

    Every query is prefixed with ``filename:<name>``; callers only supply the
    extra qualifiers (size range, fork filter, sort order).
    """

    def __init__(
        self,
        http: RateLimitedHttpClient,
        filename: str = "AGENTS.md",
        api_base: str = GITHUB_API_BASE
    ):
        self._http = http
        self._filename = filename
        self._url = f"{api_base}/search/code"

    def build_query(self, predicate: str) -> str:
        """Combine the filename term with the caller's qualifiers."""
        return f"filename:{self._filename} {predicate}".strip()

    async def search(self, predicate: str, page: int = 1, per_page: int = 100) -> SearchPage:
        """Fetch one page of code search results.

        Args:
            predicate: Extra qualifiers, e.g. ``fork:false size:0..1000``
            page: 1-based page index
            per_page: Page size (max 100)

        Returns:
            SearchPage with the total count and the repository node ids

        Raises:
            SearchDepthExceeded: On HTTP 422
            HttpStatusError: On any other non-2xx status
            TransportError: On network failure or an unexpected body
        """
        response = await self._http.get(self._url, params={
            "q": self.build_query(predicate),
            "per_page": per_page,
            "page": page,
        })

        if response.status == 422:
            raise SearchDepthExceeded(f"Search depth limit reached for '{predicate}' page {page}")
        if not response.ok:
            raise HttpStatusError(response.status, f"code search '{predicate}' page {page}")
        if not isinstance(response.payload, dict):
            raise TransportError(f"Unexpected code search body for '{predicate}' page {page}")

        items = response.payload.get("items") or []
        node_ids = []
        for item in items:
            node_id = ((item or {}).get("repository") or {}).get("node_id")
            if node_id:
                node_ids.append(node_id)
            else:
                logger.debug(f"Skipping search item without repository node id: {item!r}")

        return SearchPage(
            total_count=response.payload.get("total_count") or 0,
            item_count=len(items),
            node_ids=tuple(node_ids)
        )

    async def close(self) -> None:
        await self._http.close()
