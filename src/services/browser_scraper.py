"""Browser acquisition engine: scrape YouTube search results with Playwright.

YouTube fingerprints and blocks obvious automation, so every browsing context
is created with a realistic viewport, user agent and language headers, and a
set of navigator overrides installed before any page script runs. Every
simulated action (page load, scroll step) is followed by a random human-like
pause.

Pipeline per call:
    launching -> authenticating -> navigating -> scrolling -> extracting
    -> filtering -> done
with the page and context always released on exit. One Chromium process is
started lazily and reused for the life of the engine; each call gets its own
context so concurrent scrapes never share cookies or viewport.
"""

import asyncio
import json
import logging
import math
import random
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from urllib.parse import urlencode

from playwright.async_api import (
    Browser,
    BrowserContext,
    Page,
    Playwright,
    TimeoutError as PlaywrightTimeoutError,
    async_playwright,
)

from models.errors import AcquisitionError, SessionError
from models.session import SessionCredentials
from models.video import SearchParams, SearchResult, VideoType
from services.proxy_rotator import ProxyEndpoint, ProxyRotator
from services.rate_limiter import RandomDelayLimiter
from services.result_extractor import extract_result_items
from services.session_store import SessionStore
from services.video_filter import apply_filters
from services.video_normalizer import from_scraped_fields
from utils.logging import search_context

logger = logging.getLogger(__name__)

HOME_URL = "https://www.youtube.com"
SEARCH_URL = "https://www.youtube.com/results"

# Opaque "sp" filter codes used by YouTube's own search filters
UPLOAD_DATE_FILTERS = [
    (1, "EgQIARAB"),  # Today
    (7, "EgQIAxAB"),  # This week
    (30, "EgQIAhAB"),  # This month
    (365, "EgQIBRAB"),  # This year
]
SHORTS_FILTER = "EgIYAQ=="

RESULTS_PER_SCROLL = 20  # Roughly how many results one scroll loads

VIEWPORT = {"width": 1920, "height": 1080}

# Chrome user agents only, to stay consistent with the Chromium fingerprint
USER_AGENTS = [
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
]

EXTRA_HEADERS = {
    "Accept-Language": "en-US,en;q=0.9",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,image/apng,*/*;q=0.8",
}

LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--disable-gpu",
    "--window-size=1920,1080",
    "--disable-blink-features=AutomationControlled",
]

# (owner object, property, spoofed value as a JS expression).
# The expression may refer to `original`, the property's previous value, and
# `target`, the owner object.
STEALTH_OVERRIDES = [
    ("navigator", "webdriver", "undefined"),
    ("navigator", "plugins", "[1, 2, 3, 4, 5]"),
    ("navigator", "languages", "['en-US', 'en']"),
    ("window", "chrome", "{ runtime: {} }"),
    (
        "navigator.permissions",
        "query",
        "(parameters) => parameters.name === 'notifications'"
        " ? Promise.resolve({ state: Notification.permission })"
        " : original.call(target, parameters)",
    ),
]

SCROLL_TO_BOTTOM_JS = "() => window.scrollTo(0, document.documentElement.scrollHeight)"
PAGE_HEIGHT_JS = "() => document.documentElement.scrollHeight"


class BrowserStage(str, Enum):
    """Pipeline stages of one browser scrape."""

    IDLE = "idle"
    LAUNCHING = "launching"
    AUTHENTICATING = "authenticating"
    NAVIGATING = "navigating"
    SCROLLING = "scrolling"
    EXTRACTING = "extracting"
    FILTERING = "filtering"
    DONE = "done"
    FAILED = "failed"
    CLOSING = "closing"


@dataclass
class ScrapeRun:
    """Per-call state of one scrape. Concurrent calls never share one."""

    search_id: str
    stage: BrowserStage = BrowserStage.IDLE


def build_stealth_script(overrides=STEALTH_OVERRIDES) -> str:
    """Render the override list as one init script run before page scripts."""
    blocks = []
    for owner, prop, value in overrides:
        blocks.append(
            "(() => {\n"
            "  try {\n"
            f"    const target = {owner};\n"
            f"    const original = target[{json.dumps(prop)}];\n"
            f"    const value = {value};\n"
            f"    Object.defineProperty(target, {json.dumps(prop)}, {{ get: () => value, configurable: true }});\n"
            "  } catch (e) {}\n"
            "})();"
        )
    return "\n".join(blocks)


def upload_date_filter(published_after: str, now: Optional[datetime] = None) -> Optional[str]:
    """Map a published-after timestamp to the nearest upload-date filter code.

    Returns:
        Filter code, or None when the window is longer than a year
    """
    published = datetime.fromisoformat(published_after.replace("Z", "+00:00"))
    if published.tzinfo is None:
        published = published.replace(tzinfo=timezone.utc)
    now = now or datetime.now(timezone.utc)

    diff_days = math.floor((now - published).total_seconds() / 86400)
    for max_days, code in UPLOAD_DATE_FILTERS:
        if diff_days <= max_days:
            return code
    return None


def build_search_url(params: SearchParams, now: Optional[datetime] = None) -> str:
    """Build the results page URL for a search.

    The upload-date and Shorts filters share YouTube's single "sp" parameter;
    when both apply, the Shorts filter wins.
    """
    query = {"search_query": params.keyword}

    sp = None
    if params.published_after:
        sp = upload_date_filter(params.published_after, now)
    if params.video_type == VideoType.SHORTS:
        sp = SHORTS_FILTER
    if sp:
        query["sp"] = sp

    if params.language:
        query["lr"] = params.language

    return f"{SEARCH_URL}?{urlencode(query)}"


class BrowserScraperService:
    """Search YouTube by driving a real browser and scraping the results page."""

    def __init__(
        self,
        proxy_rotator: Optional[ProxyRotator] = None,
        min_delay: float = 1.0,
        max_delay: float = 3.0,
        headless: bool = True,
        session_store: Optional[SessionStore] = None,
        navigation_timeout_ms: int = 30000,
        scroll_time_limit: float = 120.0,
        rate_limiter: Optional[RandomDelayLimiter] = None,
    ):
        """Initialize the browser scraper.

        Args:
            proxy_rotator: Optional proxy pool; one proxy is used per browser launch
            min_delay: Minimum pause between simulated actions, in seconds
            max_delay: Maximum pause between simulated actions, in seconds
            headless: Run Chromium without a window
            session_store: Optional store holding the YouTube login session
            navigation_timeout_ms: Hard bound on page navigation
            scroll_time_limit: Wall-clock ceiling on the scroll loop, in seconds
            rate_limiter: Optional pacing override (used by tests)
        """
        self.proxy_rotator = proxy_rotator
        self.headless = headless
        self.session_store = session_store
        self.navigation_timeout_ms = navigation_timeout_ms
        self.scroll_time_limit = scroll_time_limit
        self.rate_limiter = rate_limiter or RandomDelayLimiter(min_delay, max_delay)

        self.stage = BrowserStage.IDLE
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._proxy: Optional[ProxyEndpoint] = None
        self._launch_lock = asyncio.Lock()

    @classmethod
    def from_config(
        cls, config: dict, session_store: Optional[SessionStore] = None
    ) -> "BrowserScraperService":
        """Create a scraper from application config (delays are in milliseconds there)."""
        return cls(
            proxy_rotator=ProxyRotator.from_config(config),
            min_delay=config.get("min_request_delay", 1000) / 1000,
            max_delay=config.get("max_request_delay", 3000) / 1000,
            headless=config.get("headless", True),
            session_store=session_store,
            navigation_timeout_ms=config.get("navigation_timeout_ms", 30000),
            scroll_time_limit=config.get("scroll_time_limit", 120.0),
        )

    async def __aenter__(self) -> "BrowserScraperService":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _enter(self, run: ScrapeRun, stage: BrowserStage) -> None:
        """Move one call to a new stage. ``self.stage`` mirrors the latest transition."""
        logger.debug(f"Browser scrape stage: {run.stage.value} -> {stage.value}")
        run.stage = stage
        self.stage = stage

    async def _get_browser(self) -> Browser:
        """Launch Chromium on first use and reuse it afterwards."""
        async with self._launch_lock:
            if self._browser is not None and self._browser.is_connected():
                return self._browser

            if self._playwright is None:
                self._playwright = await async_playwright().start()

            launch_options = {"headless": self.headless, "args": list(LAUNCH_ARGS)}
            self._proxy = self.proxy_rotator.next() if self.proxy_rotator else None
            if self._proxy:
                launch_options["proxy"] = {"server": self._proxy.url}
                logger.info(f"Launching browser through proxy {self._proxy.url}")

            self._browser = await self._playwright.chromium.launch(**launch_options)
            return self._browser

    async def _new_context(self, browser: Browser) -> BrowserContext:
        context = await browser.new_context(
            viewport=VIEWPORT,
            device_scale_factor=1,
            user_agent=random.choice(USER_AGENTS),
            locale="en-US",
            extra_http_headers=EXTRA_HEADERS,
        )
        await context.add_init_script(script=build_stealth_script())
        return context

    async def _authenticate(
        self, context: BrowserContext, page: Page, session: Optional[SessionCredentials]
    ) -> None:
        """Install saved cookies, or visit the home page when there are none.

        The home page visit is best effort: login state is not verified.
        """
        try:
            if session and session.has_cookies:
                await context.add_cookies(session.cookies)
                logger.info(f"Installed {len(session.cookies)} saved cookies")
                return

            await self._navigate(page, HOME_URL)
            await self.rate_limiter.before_request()
        except Exception as e:
            logger.error(f"Failed to set up YouTube session: {e}")
            raise SessionError(
                "Could not sign in to YouTube, please log in again",
                stage=BrowserStage.AUTHENTICATING.value,
            ) from e

    async def _navigate(self, page: Page, url: str) -> None:
        """Load a page and wait for the network to go idle, reporting proxy health."""
        try:
            await page.goto(url, wait_until="networkidle", timeout=self.navigation_timeout_ms)
        except Exception:
            if self._proxy and self.proxy_rotator:
                self.proxy_rotator.mark_failed(self._proxy.url)
            raise

        if self._proxy and self.proxy_rotator:
            self.proxy_rotator.mark_succeeded(self._proxy.url)

    async def scroll_to_load_more(self, page: Page, target_count: int) -> int:
        """Scroll until enough results are loaded or the page stops growing.

        Args:
            page: Results page
            target_count: Number of results wanted

        Returns:
            Number of scrolls that loaded new content
        """
        max_attempts = math.ceil(target_count / RESULTS_PER_SCROLL)
        deadline = time.monotonic() + self.scroll_time_limit
        previous_height = 0
        attempts = 0

        while attempts < max_attempts:
            if time.monotonic() >= deadline:
                logger.warning(f"Scroll time limit of {self.scroll_time_limit}s reached")
                break

            await page.evaluate(SCROLL_TO_BOTTOM_JS)
            await self.rate_limiter.before_request()

            current_height = await page.evaluate(PAGE_HEIGHT_JS)
            if current_height == previous_height:
                logger.debug("Page height unchanged, no more results to load")
                break

            previous_height = current_height
            attempts += 1

        logger.info(f"Scrolled {attempts}/{max_attempts} times")
        return attempts

    async def search(self, params: SearchParams) -> SearchResult:
        """Scrape the search results page and return filtered, normalized records.

        Args:
            params: Search parameters

        Returns:
            SearchResult with filtered videos

        Raises:
            SessionError: If the saved session could not be applied
            AcquisitionError: If launching, navigation or scrolling fails
        """
        with search_context(uuid.uuid4().hex[:8]) as search_id:
            run = ScrapeRun(search_id=search_id)
            context: Optional[BrowserContext] = None
            page: Optional[Page] = None

            try:
                self._enter(run, BrowserStage.LAUNCHING)
                browser = await self._get_browser()
                context = await self._new_context(browser)
                page = await context.new_page()

                session = self.session_store.load() if self.session_store else None
                self._enter(run, BrowserStage.AUTHENTICATING)
                await self._authenticate(context, page, session)

                self._enter(run, BrowserStage.NAVIGATING)
                search_url = build_search_url(params)
                logger.info(f"Search URL: {search_url}")
                await self._navigate(page, search_url)
                await self.rate_limiter.before_request()

                self._enter(run, BrowserStage.SCROLLING)
                await self.scroll_to_load_more(page, params.max_results)

                self._enter(run, BrowserStage.EXTRACTING)
                html = await page.content()
                records = [
                    from_scraped_fields(raw)
                    for raw in extract_result_items(html, params.max_results)
                ]

                # Keep the session warm for the next call
                if session is not None:
                    session.cookies = await context.cookies()
                    self.session_store.save(session)

                self._enter(run, BrowserStage.FILTERING)
                videos, stats = apply_filters(records, params)

                self._enter(run, BrowserStage.DONE)
                logger.info(
                    f"Browser search '{params.keyword}': {len(videos)}/{len(records)} videos kept"
                )
                return SearchResult(videos=videos, total_results=len(videos), filter_stats=stats)

            except AcquisitionError:
                self._enter(run, BrowserStage.FAILED)
                raise
            except PlaywrightTimeoutError as e:
                failed_stage = run.stage
                self._enter(run, BrowserStage.FAILED)
                logger.error(f"Browser scrape timed out during {failed_stage.value}: {e}")
                raise AcquisitionError(
                    f"Browser scrape timed out: {e}", stage=failed_stage.value
                ) from e
            except Exception as e:
                failed_stage = run.stage
                self._enter(run, BrowserStage.FAILED)
                logger.error(f"Browser scrape failed during {failed_stage.value}: {e}")
                raise AcquisitionError(
                    f"Browser scrape failed: {e}", stage=failed_stage.value
                ) from e
            finally:
                await self._release(run, page, context)

    async def _release(
        self, run: ScrapeRun, page: Optional[Page], context: Optional[BrowserContext]
    ) -> None:
        """Close the call's page and context, keeping the outcome stage.

        The context is closed even when closing the page fails; it owns the
        page, so this still releases everything the call opened.
        """
        outcome = run.stage
        self._enter(run, BrowserStage.CLOSING)
        try:
            if page is not None:
                await page.close()
        except Exception as e:
            logger.warning(f"Error closing browser page: {e}")
        finally:
            try:
                if context is not None:
                    await context.close()
            except Exception as e:
                logger.warning(f"Error closing browser context: {e}")
            finally:
                self._enter(run, outcome)

    async def close(self) -> None:
        """Shut down the browser and the Playwright driver."""
        try:
            if self._browser is not None:
                await self._browser.close()
        finally:
            self._browser = None
            if self._playwright is not None:
                await self._playwright.stop()
                self._playwright = None
