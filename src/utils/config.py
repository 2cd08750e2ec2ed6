"""Configuration loading and validation for trendscout."""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from rich.logging import RichHandler

from utils.logging import NOISY_LOGGERS

# Get the project root directory (parent of src)
PROJECT_ROOT = Path(__file__).parent.parent.parent

# Load environment variables from .env file in project root
load_dotenv(PROJECT_ROOT / ".env")


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def load_config() -> dict:
    """Load configuration from environment variables."""

    # Helper function to resolve paths relative to project root
    def resolve_path(path: str | None, default_relative: str) -> str:
        if not path:
            return str(PROJECT_ROOT / default_relative)
        if Path(path).is_absolute():
            return path
        return str(PROJECT_ROOT / path)

    proxy_list = [p.strip() for p in os.getenv("PROXY_LIST", "").split(",") if p.strip()]

    config = {
        # API path
        "youtube_api_key": os.getenv("YOUTUBE_API_KEY"),
        # Proxy rotation (applies to both paths)
        "use_proxy": _env_bool("USE_PROXY", "false"),
        "proxy_list": proxy_list,
        # Browser pacing, in milliseconds like the stored settings
        "min_request_delay": int(os.getenv("MIN_REQUEST_DELAY", "1000")),
        "max_request_delay": int(os.getenv("MAX_REQUEST_DELAY", "3000")),
        "headless": _env_bool("HEADLESS", "true"),
        "navigation_timeout_ms": int(os.getenv("NAVIGATION_TIMEOUT_MS", "30000")),
        # Wall-clock ceiling for the infinite-scroll loop, in seconds
        "scroll_time_limit": float(os.getenv("SCROLL_TIME_LIMIT", "120")),
        # Stored YouTube login session (tokens + cookie jar)
        "session_file": resolve_path(os.getenv("SESSION_FILE"), ".session/youtube_session.json"),
        "log_level": os.getenv("LOG_LEVEL", "INFO"),
    }

    return config


def validate_config(config: dict, mode: str = "api") -> list[str]:
    """Validate configuration for an acquisition mode and return list of errors.

    Args:
        config: Configuration dict from load_config()
        mode: "api" or "browser"
    """
    errors = []

    if mode == "api" and not config.get("youtube_api_key"):
        errors.append("YOUTUBE_API_KEY is required for API search")

    min_delay = config.get("min_request_delay", 0)
    max_delay = config.get("max_request_delay", 0)
    if min_delay < 0 or max_delay < min_delay:
        errors.append(
            f"Invalid request delay window: MIN_REQUEST_DELAY={min_delay} "
            f"MAX_REQUEST_DELAY={max_delay}"
        )

    if config.get("use_proxy") and not config.get("proxy_list"):
        errors.append("USE_PROXY is enabled but PROXY_LIST is empty")

    return errors


def setup_logging(log_level: str = "INFO") -> None:
    """Set up logging configuration with Rich for beautiful terminal output."""
    # Clear any existing handlers
    logging.root.handlers.clear()

    rich_handler = RichHandler(
        show_time=True,
        show_level=True,
        show_path=False,
        rich_tracebacks=True,
        markup=False,  # Disable markup to avoid conflicts
    )

    # File handler for plain text logging
    log_file = PROJECT_ROOT / "trendscout.log"
    file_handler = logging.FileHandler(log_file)
    file_handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )

    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        handlers=[rich_handler, file_handler],
        format="%(message)s",
    )

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)
