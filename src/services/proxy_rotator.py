"""Round-robin proxy pool with failure tracking.

A proxy that fails more than MAX_FAILURES times is evicted for the life of the
rotator. A success resets the counter. Every operation holds one lock so that
concurrent acquisitions sharing a pool keep the cursor and counters consistent.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import List, Optional

import httpx

logger = logging.getLogger(__name__)

PROXY_CHECK_URL = "https://www.google.com"


@dataclass
class ProxyEndpoint:
    """A single outbound proxy."""

    url: str
    fail_count: int = 0
    last_used_at: Optional[float] = None  # epoch seconds


class ProxyRotator:
    """Serve proxies round-robin and evict the unhealthy ones."""

    MAX_FAILURES = 5

    def __init__(self, proxy_list: List[str]):
        """Initialize the pool.

        Args:
            proxy_list: Proxy URLs such as "http://host:port". Blank entries are ignored.
        """
        self._proxies: List[ProxyEndpoint] = [
            ProxyEndpoint(url=url.strip()) for url in proxy_list if url and url.strip()
        ]
        self._cursor = 0
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: dict) -> Optional["ProxyRotator"]:
        """Build a rotator from application config, or None when proxies are disabled."""
        if not config.get("use_proxy"):
            return None
        proxy_list = config.get("proxy_list") or []
        if not proxy_list:
            logger.warning("Proxy use enabled but PROXY_LIST is empty")
            return None
        return cls(proxy_list)

    def next(self) -> Optional[ProxyEndpoint]:
        """Return the next proxy in rotation, or None if the pool is empty."""
        with self._lock:
            if not self._proxies:
                return None

            proxy = self._proxies[self._cursor]
            self._cursor = (self._cursor + 1) % len(self._proxies)
            proxy.last_used_at = time.time()
            return proxy

    def mark_failed(self, url: str) -> None:
        """Record a transport failure, evicting the proxy after too many."""
        with self._lock:
            index = self._find(url)
            if index is None:
                return

            proxy = self._proxies[index]
            proxy.fail_count += 1
            if proxy.fail_count <= self.MAX_FAILURES:
                return

            del self._proxies[index]
            # Keep the cursor pointing at the proxy that would have come next
            if index < self._cursor:
                self._cursor -= 1
            if self._proxies:
                self._cursor %= len(self._proxies)
            else:
                self._cursor = 0
            logger.warning(
                f"Proxy {url} failed {proxy.fail_count} times, removed from pool "
                f"({len(self._proxies)} remaining)"
            )

    def mark_succeeded(self, url: str) -> None:
        """Reset the failure counter of a proxy."""
        with self._lock:
            index = self._find(url)
            if index is not None:
                self._proxies[index].fail_count = 0

    def available(self) -> int:
        """Number of proxies still in the pool."""
        with self._lock:
            return len(self._proxies)

    def _find(self, url: str) -> Optional[int]:
        for i, proxy in enumerate(self._proxies):
            if proxy.url == url:
                return i
        return None


async def check_proxy(url: str, timeout: float = 10.0) -> bool:
    """Probe a proxy by fetching a well-known page through it.

    Args:
        url: Proxy URL
        timeout: Request timeout in seconds

    Returns:
        True if the page came back with a success status
    """
    try:
        async with httpx.AsyncClient(proxy=url, timeout=timeout) as client:
            response = await client.get(PROXY_CHECK_URL)
            return response.is_success
    except httpx.HTTPError as e:
        logger.warning(f"Proxy {url} check failed: {e}")
        return False
