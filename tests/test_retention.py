"""Tests for the quality filter."""
from datetime import datetime, timedelta, timezone

from agents_radar.domain.models import RepositoryRecord
from agents_radar.domain.retention import is_retained, retain


NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def make_repo(name="a/b", stars=0, forks=0, created_at=None):
    return RepositoryRecord(
        name_with_owner=name,
        url=f"https://github.com/{name}",
        description=None,
        stargazer_count=stars,
        fork_count=forks,
        created_at=created_at,
    )


def test_zero_signal_old_repository_is_dropped():
    """Test that an old repository with no stars or forks is dropped."""
    repo = make_repo(created_at=NOW - timedelta(days=10))

    assert is_retained(repo, NOW) is False


def test_zero_signal_new_repository_is_kept():
    """Test that a recent repository is kept without stars or forks."""
    repo = make_repo(created_at=NOW - timedelta(days=2))

    assert is_retained(repo, NOW) is True


def test_starred_old_repository_is_kept():
    """Test that stars alone keep a repository."""
    repo = make_repo(stars=5, created_at=NOW - timedelta(days=365))

    assert is_retained(repo, NOW) is True


def test_forked_repository_is_kept():
    """Test that forks alone keep a repository."""
    repo = make_repo(forks=1, created_at=NOW - timedelta(days=365))

    assert is_retained(repo, NOW) is True


def test_fresh_window_boundary_is_exclusive():
    """A repository exactly seven days old is no longer new."""
    assert is_retained(make_repo(created_at=NOW - timedelta(days=7)), NOW) is False
    assert is_retained(make_repo(created_at=NOW - timedelta(days=7) + timedelta(seconds=1)), NOW) is True


def test_missing_creation_date_without_signal_is_dropped():
    """Test that an undated repository needs stars or forks."""
    assert is_retained(make_repo(), NOW) is False


def test_retain_preserves_order():
    """Test that filtering keeps the input order."""
    repos = [
        make_repo("x/1", stars=1),
        make_repo("x/2", created_at=NOW - timedelta(days=30)),
        make_repo("x/3", created_at=NOW - timedelta(hours=1)),
        make_repo("x/4", forks=2),
    ]

    kept = retain(repos, NOW)

    assert [repo.name_with_owner for repo in kept] == ["x/1", "x/3", "x/4"]
