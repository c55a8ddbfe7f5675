"""AniDB HTTP API client.

Fetches ``request=anime`` documents with the rate limiting AniDB requires of
registered clients: requests are serialized, spaced by an adaptive interval,
retried with exponential backoff and cut off by a circuit breaker after
repeated failures.
"""

import asyncio
import gzip
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from types import TracebackType
from typing import Any

import aiohttp
from canonsync_common.config import Settings, get_settings
from canonsync_common.errors import InvalidInputError, TransportError

logger = logging.getLogger(__name__)

# AniDB answers 555 when a client has been banned for flooding
BANNED_STATUS = 555


class CircuitBreakerState(Enum):
    """Circuit breaker states for AniDB API protection."""

    CLOSED = "closed"  # Normal operation
    OPEN = "open"  # Service unavailable, blocking requests
    HALF_OPEN = "half_open"  # Testing if service recovered


@dataclass
class AniDBRequestMetrics:
    """Counters for AniDB API health.

    Attributes:
        total_requests: Total number of request attempts.
        successful_requests: Attempts that returned a document.
        failed_requests: Attempts that failed.
        consecutive_failures: Current streak of consecutive failures.
        last_request_time: Unix timestamp of the last attempt.
        last_error_time: Unix timestamp of the last error status.
        current_interval: Current adaptive request interval in seconds.
    """

    total_requests: int = 0
    successful_requests: int = 0
    failed_requests: int = 0
    consecutive_failures: int = 0
    last_request_time: float = 0
    last_error_time: float = 0
    current_interval: float = 2.0

    @property
    def success_rate(self) -> float:
        """Success rate as a percentage from 0.0 to 100.0."""
        if self.total_requests == 0:
            return 100.0
        return (self.successful_requests / self.total_requests) * 100.0


class AnimeXmlSource(ABC):
    """Returns raw AniDB anime documents by id."""

    @abstractmethod
    async def fetch_anime_xml(self, anidb_id: int) -> str:
        """Fetch the anime document for ``anidb_id``.

        Raises:
            TransportError: The request failed.
        """
        pass


class AniDBClient(AnimeXmlSource):
    """Rate-limited AniDB HTTP API client.

    Attributes:
        base_url: AniDB HTTP API endpoint URL.
        client_name: Registered client identifier, required to fetch.
        client_version: Registered client version, required to fetch.
        session: Active aiohttp session, created on first request.
        metrics: Request counters.
        circuit_breaker_state: Current circuit breaker state.
    """

    def __init__(self, settings: Settings | None = None):
        settings = settings or get_settings()
        self.base_url = settings.anidb_base_url
        self.client_name = settings.anidb_client_name
        self.client_version = settings.anidb_client_version
        self.protocol_version = settings.anidb_protocol_version
        self.user_agent = settings.http_user_agent
        self._timeout = aiohttp.ClientTimeout(
            total=settings.http_total_timeout, connect=settings.http_connect_timeout
        )

        self.session: aiohttp.ClientSession | None = None

        self.min_request_interval = settings.anidb_min_request_interval
        self.max_request_interval = settings.anidb_max_request_interval
        self.error_cooldown_base = settings.anidb_error_cooldown_base
        self.max_retries = settings.anidb_max_retries

        self.circuit_breaker_threshold = settings.anidb_circuit_breaker_threshold
        self.circuit_breaker_timeout = settings.anidb_circuit_breaker_timeout
        self.circuit_breaker_state = CircuitBreakerState.CLOSED
        self.circuit_breaker_opened_at = 0.0

        self.metrics = AniDBRequestMetrics(current_interval=self.min_request_interval)
        self._request_lock = asyncio.Lock()

        logger.debug(
            f"AniDB client initialized: interval {self.min_request_interval}s-"
            f"{self.max_request_interval}s, circuit breaker at "
            f"{self.circuit_breaker_threshold} failures, {self.max_retries} retries"
        )

    def _check_circuit_breaker(self) -> bool:
        """Return True if the circuit allows a request.

        Moves OPEN to HALF_OPEN once the timeout has elapsed.
        """
        if self.circuit_breaker_state == CircuitBreakerState.OPEN:
            elapsed = time.time() - self.circuit_breaker_opened_at
            if elapsed > self.circuit_breaker_timeout:
                self.circuit_breaker_state = CircuitBreakerState.HALF_OPEN
                logger.info("Circuit breaker moved to HALF_OPEN state")
                return True
            logger.warning(
                f"Circuit breaker OPEN - blocking request. "
                f"{self.circuit_breaker_timeout - elapsed:.1f}s remaining"
            )
            return False
        return True

    def _open_circuit(self) -> None:
        self.circuit_breaker_state = CircuitBreakerState.OPEN
        self.circuit_breaker_opened_at = time.time()

    def _update_circuit_breaker(self, success: bool) -> None:
        if success:
            if self.circuit_breaker_state == CircuitBreakerState.HALF_OPEN:
                self.circuit_breaker_state = CircuitBreakerState.CLOSED
                logger.info("Circuit breaker moved to CLOSED state - service recovered")
            self.metrics.consecutive_failures = 0
            return

        self.metrics.consecutive_failures += 1
        if self.circuit_breaker_state == CircuitBreakerState.HALF_OPEN:
            self._open_circuit()
            logger.warning("Circuit breaker moved back to OPEN state from HALF_OPEN")
        elif (
            self.circuit_breaker_state == CircuitBreakerState.CLOSED
            and self.metrics.consecutive_failures >= self.circuit_breaker_threshold
        ):
            self._open_circuit()
            logger.error(
                f"Circuit breaker OPENED after {self.metrics.consecutive_failures} consecutive failures"
            )

    async def _adaptive_rate_limit(self, is_retry: bool = False) -> None:
        """Wait until the adaptive interval since the last request has passed.

        The interval grows exponentially with consecutive failures, capped at
        ``max_request_interval``, and is stretched further for retries.
        """
        time_since_last = time.time() - self.metrics.last_request_time

        if self.metrics.consecutive_failures > 0:
            error_multiplier = min(2**self.metrics.consecutive_failures, 8)
            interval = min(
                self.error_cooldown_base * error_multiplier, self.max_request_interval
            )
        else:
            interval = max(self.metrics.current_interval, self.min_request_interval)

        if is_retry:
            interval *= 1.5

        if time_since_last < interval:
            wait_time = interval - time_since_last
            logger.info(f"Adaptive rate limiting: waiting {wait_time:.2f}s")
            await asyncio.sleep(wait_time)

        self.metrics.last_request_time = time.time()
        self.metrics.current_interval = interval

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            connector = aiohttp.TCPConnector(
                limit=2,
                limit_per_host=1,  # AniDB tolerates a single connection
                ttl_dns_cache=300,
                keepalive_timeout=60,
                enable_cleanup_closed=True,
            )
            self.session = aiohttp.ClientSession(
                timeout=self._timeout,
                headers={
                    "Accept-Encoding": "gzip, deflate",
                    "User-Agent": self.user_agent,
                    "Accept": "application/xml, text/xml",
                },
                connector=connector,
            )
            logger.debug("Created new AniDB session")
        return self.session

    def _request_params(self, params: dict[str, Any]) -> dict[str, Any]:
        if not self.client_name or not self.client_version:
            raise InvalidInputError(
                "AniDB client name and version must be configured "
                "(CANONSYNC_ANIDB_CLIENT_NAME, CANONSYNC_ANIDB_CLIENT_VERSION)"
            )
        return {
            **params,
            "client": self.client_name,
            "clientver": self.client_version,
            "protover": self.protocol_version,
        }

    async def _make_single_request(self, params: dict[str, Any], attempt: int) -> str | None:
        """Perform one request attempt.

        Returns:
            The decoded body on HTTP 200, None on a retryable error status.
        """
        session = self._ensure_session()
        logger.debug(f"AniDB request attempt {attempt + 1}: {self.base_url} {params}")

        async with session.get(self.base_url, params=params) as response:
            if response.status == 200:
                content = await response.read()
                if content.startswith(b"\x1f\x8b"):
                    try:
                        content = gzip.decompress(content)
                    except (OSError, EOFError) as e:
                        raise TransportError(
                            f"Corrupt gzip response from AniDB: {e}", url=self.base_url
                        ) from e
                return content.decode("utf-8", errors="replace")

            self.metrics.last_error_time = time.time()
            if response.status == BANNED_STATUS:
                logger.error("AniDB banned/blocked (555) - serious rate limit violation")
                self._open_circuit()
            else:
                logger.warning(f"AniDB API error: HTTP {response.status}")
            return None

    async def _make_request_with_retry(self, params: dict[str, Any]) -> str:
        last_error: str = "no attempt made"

        for attempt in range(self.max_retries + 1):
            if not self._check_circuit_breaker():
                raise TransportError("AniDB circuit breaker is open", url=self.base_url)

            is_retry = attempt > 0
            await self._adaptive_rate_limit(is_retry=is_retry)

            try:
                result = await self._make_single_request(params, attempt)
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                result = None
                last_error = str(e) or type(e).__name__
            else:
                if result is None:
                    last_error = "error status"
            finally:
                self.metrics.total_requests += 1

            if result is not None:
                self.metrics.successful_requests += 1
                self._update_circuit_breaker(success=True)
                if is_retry:
                    logger.info(f"Request succeeded on attempt {attempt + 1}")
                return result

            self.metrics.failed_requests += 1
            self._update_circuit_breaker(success=False)
            if attempt < self.max_retries:
                # Exponential backoff with jitter
                wait_time = (2**attempt) + (time.time() % 1)
                logger.warning(
                    f"AniDB request failed ({last_error}), retrying in {wait_time:.2f}s "
                    f"(attempt {attempt + 1}/{self.max_retries})"
                )
                await asyncio.sleep(wait_time)

        logger.error(f"AniDB request failed after {self.max_retries + 1} attempts: {last_error}")
        raise TransportError(
            f"AniDB request failed after {self.max_retries + 1} attempts: {last_error}",
            url=self.base_url,
        )

    async def fetch_anime_xml(self, anidb_id: int) -> str:
        """Fetch the raw ``request=anime`` document for ``anidb_id``.

        Raises:
            InvalidInputError: Non-positive id or missing client credentials.
            TransportError: The request failed after all retries.
        """
        if anidb_id <= 0:
            raise InvalidInputError(f"Invalid AniDB id: {anidb_id}")
        params = self._request_params({"request": "anime", "aid": anidb_id})
        async with self._request_lock:
            return await self._make_request_with_retry(params)

    async def close(self) -> None:
        """Close the HTTP session if one is open."""
        if self.session:
            try:
                await self.session.close()
                logger.debug("AniDB session closed successfully")
            finally:
                self.session = None

    async def __aenter__(self) -> "AniDBClient":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> bool:
        await self.close()
        return False
