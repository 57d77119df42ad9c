"""aiohttp-based HTTP client for the GitHub REST API with rate limit handling."""
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional
import aiohttp
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    stop_after_attempt,
    retry_if_exception_type
)
from agents_radar.domain.errors import RateLimitException, TransportError


logger = logging.getLogger(__name__)

THROTTLE_STATUSES = (403, 429)
USER_AGENT = "agents-md-radar"


@dataclass(frozen=True)
class HttpResponse:
    """Status, headers and decoded JSON body of a completed request."""
    status: int
    headers: Mapping[str, str]
    payload: Any = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


def _wait_from_exception(retry_state: RetryCallState) -> float:
    exception = retry_state.outcome.exception()
    return getattr(exception, "wait_seconds", 0.0)


class RateLimitedHttpClient:
    """HTTP client that waits out GitHub throttling instead of failing.

    A 403 or 429 response never reaches the caller: the client sleeps until the
    advertised reset time (or a conservative default) and reissues the identical
    request. Every other status is returned as-is.
    """

    def __init__(
        self,
        access_token: str,
        session: Optional[aiohttp.ClientSession] = None,
        max_attempts: int = 10,
        default_wait: float = 60.0,
        safety_margin: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        time_fn: Callable[[], float] = time.time
    ):
        """Initialize HTTP client.

        Args:
            access_token: GitHub personal access token
            session: Optional pre-built session (owned by the caller)
            max_attempts: Attempts per request before giving up on throttling
            default_wait: Seconds to wait when no reset hint is available
            safety_margin: Seconds added on top of the reset hint
            sleep: Coroutine used for backoff delays
            time_fn: Clock returning epoch seconds
        """
        self._access_token = access_token
        self._session = session
        self._owns_session = session is None
        self._max_attempts = max_attempts
        self._default_wait = default_wait
        self._safety_margin = safety_margin
        self._sleep = sleep
        self._time_fn = time_fn
        self.rate_limit_waits = 0

    async def _get_session(self):
        """Create the aiohttp session (lazy initialization)."""
        if self._session is None:
            self._session = aiohttp.ClientSession(headers={
                "Authorization": f"Bearer {self._access_token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
                "User-Agent": USER_AGENT,
            })
        return self._session

    def compute_wait(self, headers: Mapping[str, str]) -> float:
        """Seconds to wait before retrying a throttled request.

        Uses ``X-RateLimit-Reset`` (epoch seconds) when present, then
        ``Retry-After``, then the fixed default.
        """
        reset = headers.get("X-RateLimit-Reset")
        if reset:
            try:
                return max(0.0, float(reset) - self._time_fn() + self._safety_margin)
            except ValueError:
                logger.debug(f"Ignoring malformed X-RateLimit-Reset header: {reset!r}")
        retry_after = headers.get("Retry-After")
        if retry_after:
            try:
                return max(0.0, float(retry_after) + self._safety_margin)
            except ValueError:
                logger.debug(f"Ignoring malformed Retry-After header: {retry_after!r}")
        return self._default_wait

    def _before_sleep(self, retry_state: RetryCallState) -> None:
        self.rate_limit_waits += 1
        wait = _wait_from_exception(retry_state)
        logger.warning(
            f"Rate limit hit (attempt {retry_state.attempt_number}). "
            f"Waiting {wait:.0f}s before retrying the same request..."
        )

    async def _send_once(
        self,
        method: str,
        url: str,
        params: Optional[Dict[str, Any]],
        json: Optional[Dict[str, Any]]
    ) -> HttpResponse:
        """Issue the request once.

        Raises:
            RateLimitException: On a throttling status
            TransportError: On a network-level failure
        """
        session = await self._get_session()
        try:
            async with session.request(method, url, params=params, json=json) as response:
                if response.status in THROTTLE_STATUSES:
                    wait = self.compute_wait(response.headers)
                    raise RateLimitException(
                        f"HTTP {response.status} from {url}", wait_seconds=wait
                    )
                payload = None
                if 200 <= response.status < 300:
                    payload = await response.json(content_type=None)
                return HttpResponse(
                    status=response.status,
                    headers=dict(response.headers),
                    payload=payload
                )
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise TransportError(f"{method} {url} failed: {e!r}") from e

    async def request(
        self,
        method: str,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None
    ) -> HttpResponse:
        """Send a request, retrying in place while the API is throttling.

        Args:
            method: HTTP method
            url: Absolute URL
            params: Query string parameters
            json: JSON body

        Returns:
            The first non-throttled response

        Raises:
            RateLimitException: When throttling outlasts ``max_attempts``
            TransportError: On a network-level failure
        """
        # max_attempts bounds how long one request may wait on throttling; past
        # it the caller sees RateLimitException and abandons only that segment.
        retrying = AsyncRetrying(
            retry=retry_if_exception_type(RateLimitException),
            stop=stop_after_attempt(self._max_attempts),
            wait=_wait_from_exception,
            sleep=self._sleep,
            before_sleep=self._before_sleep,
            reraise=True
        )
        async for attempt in retrying:
            with attempt:
                return await self._send_once(method, url, params, json)

    async def get(self, url: str, params: Optional[Dict[str, Any]] = None) -> HttpResponse:
        return await self.request("GET", url, params=params)

    async def close(self) -> None:
        """Close the session if this client created it."""
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None
