"""YouTube Data API acquisition engine.

One search costs three calls, in strict order:
- search.list: ranked video IDs for the keyword (100 quota units)
- videos.list: snippet, statistics and duration for every ID in one batch (1 unit)
- channels.list: subscriber counts for the unique channels in one batch (1 unit)

Search and details failures abandon the whole call. Partial data without
subscriber counts would corrupt the per-subscriber metrics computed
downstream, so nothing is returned in that case. The channel stats call is
enrichment only: if it fails every record keeps a subscriber count of 0,
flagged as unknown, and the search still succeeds.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

import httplib2
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from models.errors import AcquisitionError, ConfigurationError
from models.video import SearchParams, SearchResult
from services.proxy_rotator import ProxyRotator
from services.rate_limiter import MinIntervalLimiter
from services.video_filter import apply_filters
from services.video_normalizer import from_api_payload
from utils.logging import search_context

logger = logging.getLogger(__name__)


class ApiStage(str, Enum):
    """Pipeline stages of one API search."""

    IDLE = "idle"
    SEARCHING = "searching"
    FETCHING_DETAILS = "fetching_details"
    FETCHING_CHANNEL_STATS = "fetching_channel_stats"
    NORMALIZING = "normalizing"
    DONE = "done"
    FAILED = "failed"


@dataclass
class ApiRun:
    """Per-call state of one API search."""

    search_id: str
    stage: ApiStage = ApiStage.IDLE


class YouTubeAPIService:
    """Search YouTube through the Data API v3 and normalize the results.

    Features:
    - Single-page search (no pagination beyond 50 results)
    - Batched details and channel statistics (one request each)
    - Minimum spacing between requests
    - Optional proxy rotation for the HTTP transport
    - Approximate quota tracking
    """

    MAX_RESULTS_PER_SEARCH = 50  # YouTube API limit

    # Quota costs
    QUOTA_SEARCH = 100
    QUOTA_CHANNELS = 1
    QUOTA_VIDEOS = 1

    HTTP_TIMEOUT = 30

    def __init__(
        self,
        api_key: str,
        proxy_rotator: Optional[ProxyRotator] = None,
        rate_limiter: Optional[MinIntervalLimiter] = None,
        youtube=None,
    ):
        """Initialize the YouTube API service.

        Args:
            api_key: YouTube Data API v3 key
            proxy_rotator: Optional proxy pool used for the HTTP transport
            rate_limiter: Optional limiter (defaults to a 200ms floor)
            youtube: Optional prebuilt API resource (used by tests)
        """
        if not api_key:
            raise ConfigurationError("YouTube API key is not configured")

        self.api_key = api_key
        self.proxy_rotator = proxy_rotator
        self.rate_limiter = rate_limiter or MinIntervalLimiter()
        self.youtube = youtube or build(
            "youtube", "v3", developerKey=api_key, cache_discovery=False
        )
        self.stage = ApiStage.IDLE
        self._quota_used = 0

    @property
    def quota_used(self) -> int:
        """Get approximate quota units used by this service instance."""
        return self._quota_used

    @property
    def request_count(self) -> int:
        return self.rate_limiter.request_count

    def _enter(self, run: ApiRun, stage: ApiStage) -> None:
        logger.debug(f"API search stage: {run.stage.value} -> {stage.value}")
        run.stage = stage
        self.stage = stage

    def _proxy_http(self, proxy_url: str) -> httplib2.Http:
        scheme = "https" if proxy_url.startswith("https://") else "http"
        return httplib2.Http(
            proxy_info=httplib2.proxy_info_from_url(proxy_url, method=scheme),
            timeout=self.HTTP_TIMEOUT,
        )

    async def _execute_request(self, request) -> dict:
        """Execute an API request after pacing, optionally through a proxy.

        HttpError means the proxy delivered the request and the API refused it,
        so only other exceptions count against the proxy.
        """
        await self.rate_limiter.before_request()

        proxy = self.proxy_rotator.next() if self.proxy_rotator else None
        http = self._proxy_http(proxy.url) if proxy else None

        try:
            response = await asyncio.to_thread(request.execute, http=http)
        except HttpError:
            if proxy:
                self.proxy_rotator.mark_succeeded(proxy.url)
            raise
        except Exception:
            if proxy:
                self.proxy_rotator.mark_failed(proxy.url)
            raise

        if proxy:
            self.proxy_rotator.mark_succeeded(proxy.url)
        return response

    async def search(self, params: SearchParams) -> SearchResult:
        """Search for videos and return filtered, normalized records.

        Args:
            params: Search parameters

        Returns:
            SearchResult with filtered videos and the next page token

        Raises:
            AcquisitionError: If the search or details call fails
        """
        with search_context(uuid.uuid4().hex[:8]) as search_id:
            run = ApiRun(search_id=search_id)
            try:
                return await self._run_pipeline(params, run)
            except AcquisitionError:
                raise
            except Exception as e:
                failed_stage = run.stage
                self._enter(run, ApiStage.FAILED)
                logger.error(f"YouTube API search failed during {failed_stage.value}: {e}")
                raise AcquisitionError(f"YouTube API error: {e}", stage=failed_stage.value) from e

    async def _run_pipeline(self, params: SearchParams, run: ApiRun) -> SearchResult:
        self._enter(run, ApiStage.SEARCHING)
        request_params = {
            "part": "snippet",
            "q": params.keyword,
            "type": "video",
            "order": "relevance",
            "maxResults": min(params.max_results, self.MAX_RESULTS_PER_SEARCH),
        }
        if params.language:
            request_params["relevanceLanguage"] = params.language
        if params.published_after:
            request_params["publishedAfter"] = params.published_after

        search_response = await self._execute_request(
            self.youtube.search().list(**request_params)
        )
        self._quota_used += self.QUOTA_SEARCH
        next_page_token = search_response.get("nextPageToken")

        video_ids = [
            item["id"]["videoId"]
            for item in search_response.get("items", [])
            if item.get("id", {}).get("videoId")
        ]
        logger.info(f"Search '{params.keyword}' returned {len(video_ids)} video IDs")

        if not video_ids:
            self._enter(run, ApiStage.DONE)
            return SearchResult(videos=[], total_results=0, next_page_token=next_page_token)

        self._enter(run, ApiStage.FETCHING_DETAILS)
        details_response = await self._execute_request(
            self.youtube.videos().list(
                part="snippet,statistics,contentDetails",
                id=",".join(video_ids),
            )
        )
        self._quota_used += self.QUOTA_VIDEOS
        items = details_response.get("items", [])

        self._enter(run, ApiStage.FETCHING_CHANNEL_STATS)
        channel_ids = list(
            dict.fromkeys(
                item["snippet"]["channelId"]
                for item in items
                if item.get("snippet", {}).get("channelId")
            )
        )
        subscriber_counts = await self.get_channel_subscribers(channel_ids)

        self._enter(run, ApiStage.NORMALIZING)
        records = []
        for item in items:
            channel_id = item.get("snippet", {}).get("channelId", "")
            records.append(
                from_api_payload(
                    item,
                    subscriber_count=subscriber_counts.get(channel_id, 0),
                    subscribers_known=channel_id in subscriber_counts,
                )
            )

        videos, stats = apply_filters(records, params)

        self._enter(run, ApiStage.DONE)
        logger.info(
            f"API search '{params.keyword}': {len(videos)}/{len(records)} videos kept, "
            f"~{self._quota_used} quota units used"
        )
        return SearchResult(
            videos=videos,
            total_results=len(videos),
            next_page_token=next_page_token,
            filter_stats=stats,
        )

    async def get_channel_subscribers(self, channel_ids: List[str]) -> Dict[str, int]:
        """Get subscriber counts for unique channels in a single batch.

        Failures are logged and yield an empty map; channels missing from the
        map are treated as unknown by the caller.

        Args:
            channel_ids: Unique channel IDs

        Returns:
            Dict mapping channel_id to subscriber count
        """
        if not channel_ids:
            return {}

        try:
            response = await self._execute_request(
                self.youtube.channels().list(
                    part="statistics",
                    id=",".join(channel_ids),
                )
            )
            self._quota_used += self.QUOTA_CHANNELS
        except HttpError as e:
            logger.error(f"YouTube API error getting channel stats: {e}")
            return {}
        except Exception as e:
            logger.error(f"Error getting channel stats: {e}")
            return {}

        results = {}
        for item in response.get("items", []):
            stats = item.get("statistics", {})
            if "subscriberCount" in stats:
                results[item["id"]] = int(stats["subscriberCount"])
        return results


def create_youtube_api_service(config: Optional[dict] = None) -> YouTubeAPIService:
    """Create a YouTubeAPIService from application config.

    Args:
        config: Application config (loaded from the environment if not provided)

    Raises:
        ConfigurationError: If no API key is configured
    """
    if config is None:
        from utils.config import load_config
        config = load_config()

    return YouTubeAPIService(
        config.get("youtube_api_key") or "",
        proxy_rotator=ProxyRotator.from_config(config),
    )
