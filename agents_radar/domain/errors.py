"""Errors raised by the GitHub adapters.

Everything the remote API can do wrong is a ``GitHubApiError``. Callers in the
application layer catch that base class to isolate one segment, count query or
batch from the rest of the run.
"""
from typing import Optional


class GitHubApiError(Exception):
    """Base class for recoverable GitHub API failures."""
    pass


class RateLimitException(GitHubApiError):
    """Exception raised when rate limit is hit.

    ``wait_seconds`` is how long to back off before reissuing the request.
    """

    def __init__(self, message: str, wait_seconds: float):
        super().__init__(message)
        self.wait_seconds = wait_seconds


class SearchDepthExceeded(GitHubApiError):
    """The search endpoint refused a page past its 1000 result window (HTTP 422)."""
    pass


class HttpStatusError(GitHubApiError):
    """Non-retryable HTTP status."""

    def __init__(self, status: int, detail: Optional[str] = None):
        message = f"HTTP {status}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
        self.status = status


class TransportError(GitHubApiError):
    """Network-level failure (connection reset, timeout, malformed response)."""
    pass
