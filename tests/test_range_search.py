"""Tests for bisection discovery over file size."""
import asyncio

from agents_radar.application.range_search import AdaptiveRangeSearch, range_predicate
from agents_radar.application.segment_fetcher import SegmentFetcher
from agents_radar.domain.errors import HttpStatusError
from agents_radar.domain.models import IdentifierSet, SearchRange


def discover(search, sleep, search_range, ids=None):
    ids = IdentifierSet() if ids is None else ids
    range_search = AdaptiveRangeSearch(search, SegmentFetcher(search, sleep=sleep))
    result = asyncio.run(range_search.discover(search_range, ids))
    return result, ids


def count_queries(search):
    return [predicate for predicate, _, per_page in search.calls if per_page == 1]


def segments(search):
    return sorted({predicate for predicate, _, per_page in search.calls if per_page == 100})


def test_counting_uses_single_result_request(code_search, sleep):
    """Test that counting a range asks for a single result."""
    search = code_search([("A", 10)])

    discover(search, sleep, SearchRange(0, 100))

    predicate, page, per_page = search.calls[0]
    assert predicate == "fork:false size:0..100"
    assert (page, per_page) == (1, 1)


def test_empty_range_is_skipped(code_search, sleep):
    """Test that a range with no matches is not fetched."""
    search = code_search([])

    result, ids = discover(search, sleep, SearchRange(0, 100000))

    assert len(search.calls) == 1
    assert result.leaves == []
    assert len(ids) == 0


def test_small_range_is_fetched_without_splitting(code_search, sleep):
    """Test that a range under the cap is fetched as one segment."""
    search = code_search([(f"R{i}", i) for i in range(1000)])

    result, ids = discover(search, sleep, SearchRange(0, 100000))

    assert result.splits == []
    assert result.leaves == [SearchRange(0, 100000)]
    assert segments(search) == ["fork:false size:0..100000 sort:indexed"]
    assert len(ids) == 1000


def test_large_range_splits_into_two_halves(code_search, sleep):
    """Test that a range over the cap is bisected."""
    search = code_search([(f"R{i}", i % 2) for i in range(1200)])

    result, ids = discover(search, sleep, SearchRange(0, 1))

    assert result.splits == [SearchRange(0, 1)]
    assert result.counted == [SearchRange(0, 1), SearchRange(0, 0), SearchRange(1, 1)]
    assert result.leaves == [SearchRange(0, 0), SearchRange(1, 1)]
    assert len(ids) == 1200


def test_low_half_is_explored_before_high_half(code_search, sleep):
    """Test depth-first, low-first traversal."""
    search = code_search([(f"R{i}", i * 10) for i in range(3000)])

    result, _ = discover(search, sleep, SearchRange(0, 29999))

    assert result.counted[:3] == [
        SearchRange(0, 29999),
        SearchRange(0, 14999),
        SearchRange(0, 7499),
    ]
    assert result.leaves == sorted(result.leaves, key=lambda r: r.minimum)


def test_leaves_partition_the_outer_range(code_search, sleep):
    """Fetched leaves, empty ranges and split nodes tile the range exactly."""
    files = [(f"R{i}", (i * 7919) % 5000) for i in range(4500)]
    search = code_search(files)

    result, _ = discover(search, sleep, SearchRange(0, 5000))

    terminal = [r for r in result.counted if r not in result.splits]
    terminal.sort(key=lambda r: r.minimum)
    assert terminal[0].minimum == 0
    assert terminal[-1].maximum == 5000
    for left, right in zip(terminal, terminal[1:]):
        assert right.minimum == left.maximum + 1

    for split in result.splits:
        low, high = split.bisect()
        assert low in result.counted and high in result.counted


def test_union_of_leaves_matches_exhaustive_enumeration(code_search, sleep):
    """Every repository within the range is found when no single size exceeds the cap."""
    files = [(f"R{i}", (i * 31) % 20000) for i in range(6000)]
    files += [("R1", 19999), ("R2", 5)]  # repositories with several AGENTS.md files
    search = code_search(files)

    result, ids = discover(search, sleep, SearchRange(0, 100000))

    expected = {node_id for node_id, _ in files}
    assert set(ids) == expected
    assert len(ids) == len(expected)
    assert result.clustered == []


def test_unsplittable_cluster_fetches_once_and_stops(code_search, sleep):
    """Test that a single-size cluster is fetched once."""
    files = [(f"R{i}", 42) for i in range(1500)]
    search = code_search(files)

    result, ids = discover(search, sleep, SearchRange(42, 42))

    assert result.clustered == [SearchRange(42, 42)]
    assert result.splits == []
    assert result.leaves == [SearchRange(42, 42)]
    assert segments(search) == ["fork:false size:42..42 sort:indexed"]
    assert len(ids) == 1000


def test_cluster_inside_larger_range_terminates(code_search, sleep):
    """Test that bisection stops at a cluster inside a larger range."""
    files = [(f"C{i}", 7) for i in range(1200)] + [(f"R{i}", 100 + i) for i in range(50)]
    search = code_search(files)

    result, ids = discover(search, sleep, SearchRange(0, 1000))

    assert result.clustered == [SearchRange(7, 7)]
    assert len(ids) == 1050


def test_failed_count_does_not_abort_sibling_ranges(code_search, sleep):
    """Test that one failed count does not stop the search."""
    files = [(f"R{i}", i % 100) for i in range(1500)]
    failing = range_predicate(SearchRange(0, 49))
    search = code_search(files, failures={(failing, 1): HttpStatusError(500)})

    result, ids = discover(search, sleep, SearchRange(0, 99))

    assert result.failed_counts == [SearchRange(0, 49)]
    assert result.leaves == [SearchRange(50, 99)]
    assert len(ids) == 750
    assert failing in count_queries(search)
