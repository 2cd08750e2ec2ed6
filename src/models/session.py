"""Stored login session used by the browser scraper."""

import time
from dataclasses import asdict, dataclass, field
from typing import Optional


@dataclass
class SessionCredentials:
    """OAuth tokens plus the browser cookie jar captured after scraping.

    Cookies use Playwright's cookie dict shape (name, value, domain, path,
    expires, httpOnly, secure, sameSite).
    """

    access_token: str
    refresh_token: str
    expires_at: int  # epoch milliseconds
    email: Optional[str] = None
    cookies: list[dict] = field(default_factory=list)

    @property
    def has_cookies(self) -> bool:
        return bool(self.cookies)

    def is_expired(self, now_ms: Optional[int] = None) -> bool:
        if now_ms is None:
            now_ms = int(time.time() * 1000)
        return now_ms >= self.expires_at

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "SessionCredentials":
        """Create session from dictionary, accepting camelCase keys as well."""
        return cls(
            access_token=data.get("access_token", data.get("accessToken", "")),
            refresh_token=data.get("refresh_token", data.get("refreshToken", "")),
            expires_at=int(data.get("expires_at", data.get("expiresAt", 0))),
            email=data.get("email"),
            cookies=list(data.get("cookies") or []),
        )
