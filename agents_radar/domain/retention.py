"""Quality filter applied to enriched repositories before they are published."""
from datetime import datetime, timedelta
from typing import Iterable, List
from agents_radar.domain.models import RepositoryRecord


FRESH_WINDOW = timedelta(days=7)


def is_retained(
    record: RepositoryRecord,
    now: datetime,
    fresh_window: timedelta = FRESH_WINDOW
) -> bool:
    """Decide whether a repository is worth showing on the dashboard.

    Keeps repositories with any stars or forks, plus brand-new ones that have
    not had time to collect either.

    Args:
        record: Enriched repository
        now: Current time of the run (timezone-aware)
        fresh_window: How recent ``created_at`` must be for zero-signal repos

    Returns:
        True if the repository should be kept
    """
    if record.stargazer_count > 0 or record.fork_count > 0:
        return True
    if record.created_at is None:
        return False
    return now - record.created_at < fresh_window


def retain(
    records: Iterable[RepositoryRecord],
    now: datetime,
    fresh_window: timedelta = FRESH_WINDOW
) -> List[RepositoryRecord]:
    """Filter records with :func:`is_retained`, preserving order."""
    return [record for record in records if is_retained(record, now, fresh_window)]
