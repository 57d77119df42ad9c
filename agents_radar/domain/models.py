"""Domain models representing core business entities."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse a GitHub ISO-8601 timestamp (``2024-01-01T00:00:00Z``)."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    """Render a timestamp the way GitHub does, with a trailing ``Z`` for UTC."""
    if value is None:
        return None
    text = value.isoformat()
    if text.endswith("+00:00"):
        text = text[:-6] + "Z"
    return text


@dataclass(frozen=True)
class Language:
    """Primary language of a repository."""
    name: str
    color: Optional[str] = None


@dataclass(frozen=True)
class License:
    """License detected on a repository."""
    name: str
    spdx_id: Optional[str] = None


@dataclass(frozen=True)
class RepositoryRecord:
    """Immutable domain entity representing a hydrated GitHub repository.

    Repositories are looked up by their GraphQL node id but displayed by
    ``name_with_owner``.
    """
    name_with_owner: str
    url: str
    description: Optional[str]
    stargazer_count: int
    fork_count: int
    watcher_count: int = 0
    issue_count: int = 0
    pull_request_count: int = 0
    primary_language: Optional[Language] = None
    topics: Tuple[str, ...] = ()
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    is_archived: bool = False
    is_fork: bool = False
    license: Optional[License] = None
    node_id: Optional[str] = None

    @property
    def owner(self) -> str:
        """Returns the owner part of ``owner/name``."""
        return self.name_with_owner.split("/", 1)[0]

    @classmethod
    def from_node(cls, node: Optional[Dict[str, Any]]) -> Optional['RepositoryRecord']:
        """Build a record from a GraphQL ``Repository`` node.

        Args:
            node: Node payload as returned by the ``nodes(ids:)`` query

        Returns:
            The record, or None when the node is null or has no
            ``nameWithOwner`` (deleted or private since discovery)
        """
        if not node or not node.get("nameWithOwner"):
            return None

        language = node.get("primaryLanguage")
        license_info = node.get("licenseInfo")

        topics: List[str] = []
        for topic_node in (node.get("repositoryTopics") or {}).get("nodes") or []:
            name = ((topic_node or {}).get("topic") or {}).get("name")
            if name and name not in topics:
                topics.append(name)

        return cls(
            name_with_owner=node["nameWithOwner"],
            url=node.get("url") or f"https://github.com/{node['nameWithOwner']}",
            description=node.get("description"),
            stargazer_count=node.get("stargazerCount") or 0,
            fork_count=node.get("forkCount") or 0,
            watcher_count=_total_count(node.get("watchers")),
            issue_count=_total_count(node.get("issues")),
            pull_request_count=_total_count(node.get("pullRequests")),
            primary_language=(
                Language(name=language["name"], color=language.get("color"))
                if language and language.get("name") else None
            ),
            topics=tuple(topics),
            created_at=parse_timestamp(node.get("createdAt")),
            updated_at=parse_timestamp(node.get("updatedAt")),
            is_archived=bool(node.get("isArchived")),
            is_fork=bool(node.get("isFork")),
            license=(
                License(name=license_info["name"], spdx_id=license_info.get("spdxId"))
                if license_info and license_info.get("name") else None
            ),
            node_id=node.get("id"),
        )

    def to_node(self) -> Dict[str, Any]:
        """Render the record in the GraphQL shape the dashboard reads."""
        node: Dict[str, Any] = {
            "nameWithOwner": self.name_with_owner,
            "url": self.url,
            "description": self.description,
            "stargazerCount": self.stargazer_count,
            "forkCount": self.fork_count,
            "watchers": {"totalCount": self.watcher_count},
            "issues": {"totalCount": self.issue_count},
            "pullRequests": {"totalCount": self.pull_request_count},
            "primaryLanguage": (
                {"name": self.primary_language.name, "color": self.primary_language.color}
                if self.primary_language else None
            ),
            "repositoryTopics": {
                "nodes": [{"topic": {"name": name}} for name in self.topics]
            },
            "createdAt": format_timestamp(self.created_at),
            "updatedAt": format_timestamp(self.updated_at),
            "isArchived": self.is_archived,
            "isFork": self.is_fork,
            "licenseInfo": (
                {"name": self.license.name, "spdxId": self.license.spdx_id}
                if self.license else None
            ),
        }
        if self.node_id:
            node["id"] = self.node_id
        return node


def _total_count(connection: Optional[Dict[str, Any]]) -> int:
    return (connection or {}).get("totalCount") or 0


class IdentifierSet:
    """Insertion-ordered set of repository node ids collected during discovery.

    The set only grows. Adding an id that is already present is a no-op.
    """

    def __init__(self, identifiers: Iterable[str] = ()):
        self._ids: Dict[str, None] = {}
        self.merge(identifiers)

    def add(self, identifier: str) -> bool:
        """Add one id. Returns True if it was not seen before."""
        if identifier in self._ids:
            return False
        self._ids[identifier] = None
        return True

    def merge(self, identifiers: Iterable[str]) -> int:
        """Add many ids. Returns how many of them were new."""
        return sum(1 for identifier in identifiers if self.add(identifier))

    def freeze(self) -> Tuple[str, ...]:
        """Immutable snapshot of the ids in discovery order."""
        return tuple(self._ids)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._ids

    def __iter__(self) -> Iterator[str]:
        return iter(tuple(self._ids))

    def __len__(self) -> int:
        return len(self._ids)

    def __repr__(self) -> str:
        return f"IdentifierSet(size={len(self._ids)})"


@dataclass(frozen=True)
class SearchRange:
    """Inclusive file-size interval used to keep a search query under the result cap."""
    minimum: int
    maximum: int

    def __post_init__(self):
        if self.minimum < 0 or self.maximum < self.minimum:
            raise ValueError(f"Invalid search range {self.minimum}..{self.maximum}")

    @property
    def midpoint(self) -> int:
        return (self.minimum + self.maximum) // 2

    @property
    def is_point(self) -> bool:
        """True when the range holds a single value and cannot be split."""
        return self.minimum == self.maximum

    def bisect(self) -> Tuple['SearchRange', 'SearchRange']:
        """Split into ``[min, mid]`` and ``[mid + 1, max]``."""
        if self.is_point:
            raise ValueError(f"Cannot bisect single-value range {self.to_qualifier()}")
        mid = self.midpoint
        return SearchRange(self.minimum, mid), SearchRange(mid + 1, self.maximum)

    def to_qualifier(self) -> str:
        """Returns the ``min..max`` form used by search qualifiers."""
        return f"{self.minimum}..{self.maximum}"

    def __str__(self) -> str:
        return f"[{self.to_qualifier()}]"


@dataclass(frozen=True)
class SearchPage:
    """One page of code search results."""
    total_count: int
    item_count: int
    node_ids: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Snapshot:
    """The persisted dataset consumed by the dashboard."""
    generated_at: datetime
    repos: Tuple[RepositoryRecord, ...] = field(default_factory=tuple)

    @property
    def count(self) -> int:
        return len(self.repos)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": format_timestamp(self.generated_at),
            "count": self.count,
            "repos": [repo.to_node() for repo in self.repos],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Snapshot':
        """Rebuild a snapshot from its JSON document."""
        generated_at = parse_timestamp(data.get("timestamp"))
        if generated_at is None:
            raise ValueError("Snapshot is missing a valid timestamp")
        repos = []
        for node in data.get("repos") or []:
            record = RepositoryRecord.from_node(node)
            if record is not None:
                repos.append(record)
        return cls(generated_at=generated_at, repos=tuple(repos))


@dataclass(frozen=True)
class CrawlMetrics:
    """Metrics for a crawl operation."""
    identifiers_discovered: int
    repositories_enriched: int
    repositories_retained: int
    duration_seconds: float
    rate_limit_waits: int
    errors_encountered: int
    snapshot_written: bool
