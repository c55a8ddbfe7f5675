"""Outbound HTTP transport used for the listing page and the title dump."""

import logging
from abc import ABC, abstractmethod
from types import TracebackType

import aiohttp
from canonsync_common.config import Settings, get_settings
from canonsync_common.errors import InvalidInputError, TransportError

logger = logging.getLogger(__name__)


class Transport(ABC):
    """Fetches a URL and returns the raw response body."""

    @abstractmethod
    async def fetch(self, url: str) -> bytes:
        """Fetch ``url``.

        Raises:
            TransportError: On network failure or a non-success status.
        """
        pass


class HttpTransport(Transport):
    """aiohttp-backed transport with a lazily created, reusable session.

    Attributes:
        user_agent: User-Agent header sent with every request.
        session: Active aiohttp session, created on first fetch.
    """

    def __init__(self, settings: Settings | None = None):
        settings = settings or get_settings()
        self.user_agent = settings.http_user_agent
        self._timeout = aiohttp.ClientTimeout(
            total=settings.http_total_timeout, connect=settings.http_connect_timeout
        )
        self.session: aiohttp.ClientSession | None = None

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            connector = aiohttp.TCPConnector(
                limit=4,
                ttl_dns_cache=300,
                enable_cleanup_closed=True,
            )
            self.session = aiohttp.ClientSession(
                timeout=self._timeout,
                headers={"User-Agent": self.user_agent},
                connector=connector,
            )
            logger.debug("Created HTTP transport session")
        return self.session

    async def fetch(self, url: str) -> bytes:
        if not url or not url.strip():
            raise InvalidInputError("URL cannot be empty")

        session = self._ensure_session()
        logger.info(f"Fetching {url}")
        try:
            async with session.get(url) as response:
                if not 200 <= response.status < 300:
                    raise TransportError(
                        f"HTTP {response.status} fetching {url}",
                        status=response.status,
                        url=url,
                    )
                content = await response.read()
        except aiohttp.ClientError as e:
            raise TransportError(f"Request to {url} failed: {e}", url=url) from e

        logger.debug(f"Fetched {len(content)} bytes from {url}")
        return content

    async def close(self) -> None:
        """Close the underlying session if one is open."""
        if self.session:
            try:
                await self.session.close()
                logger.debug("HTTP transport session closed")
            finally:
                self.session = None

    async def __aenter__(self) -> "HttpTransport":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> bool:
        await self.close()
        return False
