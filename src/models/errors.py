"""Error types surfaced by the acquisition engines."""

from typing import Optional


class TrendScoutError(Exception):
    """Base class for all trendscout errors."""


class ConfigurationError(TrendScoutError):
    """Missing or invalid configuration. Not retryable; fix the settings."""


class AcquisitionError(TrendScoutError):
    """An acquisition stage failed and the whole call was abandoned.

    ``stage`` names the pipeline stage that failed. It is kept for logs and
    diagnostics; callers only need ``str(error)``.
    """

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        self.stage = stage


class SessionError(AcquisitionError):
    """The stored login session could not be applied to the browser."""
