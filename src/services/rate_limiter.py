"""Request pacing for the two acquisition paths.

The API path only needs a fixed floor between calls. The browser path waits a
random, human-looking interval between every simulated action; without that
jitter YouTube is much quicker to challenge or block the session.
"""

import asyncio
import logging
import random
import time

logger = logging.getLogger(__name__)


class MinIntervalLimiter:
    """Enforce a minimum spacing between successive requests."""

    def __init__(self, min_interval: float = 0.2):
        """Initialize the limiter.

        Args:
            min_interval: Minimum seconds between two dispatches (default 200ms)
        """
        self.min_interval = min_interval
        self.request_count = 0
        self._last_dispatch = 0.0
        self._lock = asyncio.Lock()

    async def before_request(self) -> None:
        """Wait until the spacing constraint allows another request."""
        async with self._lock:
            elapsed = time.monotonic() - self._last_dispatch
            if elapsed < self.min_interval:
                await asyncio.sleep(self.min_interval - elapsed)

            self._last_dispatch = time.monotonic()
            self.request_count += 1


class RandomDelayLimiter:
    """Pause for a uniformly random interval before each action."""

    def __init__(self, min_delay: float = 1.0, max_delay: float = 3.0):
        """Initialize the limiter.

        Args:
            min_delay: Lower bound in seconds
            max_delay: Upper bound in seconds
        """
        if min_delay < 0 or max_delay < min_delay:
            raise ValueError(f"Invalid delay window: [{min_delay}, {max_delay}]")
        self.min_delay = min_delay
        self.max_delay = max_delay

    async def before_request(self) -> None:
        delay = random.uniform(self.min_delay, self.max_delay)
        logger.debug(f"Pacing delay {delay:.2f}s")
        await asyncio.sleep(delay)
