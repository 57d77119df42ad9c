"""Aggregate statistics over a snapshot, as shown on the dashboard."""
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple
from agents_radar.domain.models import RepositoryRecord


TOP_TOPICS_LIMIT = 20


@dataclass(frozen=True)
class LanguageCount:
    name: str
    count: int
    color: Optional[str] = None


@dataclass(frozen=True)
class AnalysisStats:
    """Summary figures for a set of repositories."""
    total_repos: int
    total_stars: int
    total_forks: int
    avg_stars: int
    top_languages: Tuple[LanguageCount, ...]
    top_topics: Tuple[Tuple[str, int], ...]
    license_distribution: Tuple[Tuple[str, int], ...]


def compute_stats(repos: Sequence[RepositoryRecord]) -> AnalysisStats:
    """Compute dashboard statistics.

    Counts are sorted in descending order; ties keep first-seen order.

    Args:
        repos: Repositories to summarize

    Returns:
        AnalysisStats for the given repositories
    """
    if not repos:
        return AnalysisStats(0, 0, 0, 0, (), (), ())

    total_stars = sum(repo.stargazer_count for repo in repos)
    total_forks = sum(repo.fork_count for repo in repos)

    languages: Dict[str, List] = {}
    topics: Dict[str, int] = {}
    licenses: Dict[str, int] = {}

    for repo in repos:
        language = repo.primary_language
        name = language.name if language else "Unknown"
        entry = languages.setdefault(name, [0, language.color if language else None])
        entry[0] += 1

        for topic in repo.topics:
            topics[topic] = topics.get(topic, 0) + 1

        if repo.license:
            license_name = repo.license.spdx_id or repo.license.name
        else:
            license_name = "No License"
        licenses[license_name] = licenses.get(license_name, 0) + 1

    top_languages = sorted(
        (LanguageCount(name, count, color) for name, (count, color) in languages.items()),
        key=lambda item: item.count,
        reverse=True
    )

    return AnalysisStats(
        total_repos=len(repos),
        total_stars=total_stars,
        total_forks=total_forks,
        avg_stars=int(total_stars / len(repos) + 0.5),
        top_languages=tuple(top_languages),
        top_topics=tuple(_by_count(topics)[:TOP_TOPICS_LIMIT]),
        license_distribution=tuple(_by_count(licenses)),
    )


def _by_count(counts: Dict[str, int]) -> List[Tuple[str, int]]:
    return sorted(counts.items(), key=lambda item: item[1], reverse=True)
