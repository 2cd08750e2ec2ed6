# Data models for trendscout
from .video import SearchParams, SearchResult, VideoRecord, VideoSource, VideoType
from .session import SessionCredentials
from .errors import AcquisitionError, ConfigurationError, SessionError, TrendScoutError

__all__ = [
    "SearchParams",
    "SearchResult",
    "VideoRecord",
    "VideoSource",
    "VideoType",
    # Browser session
    "SessionCredentials",
    # Errors
    "TrendScoutError",
    "ConfigurationError",
    "AcquisitionError",
    "SessionError",
]
