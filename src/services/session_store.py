"""JSON file store for the YouTube login session.

The browser scraper reads the session to install saved cookies and writes the
refreshed cookie jar back after a successful scrape.
"""

import json
import logging
from pathlib import Path
from typing import Optional

from models.session import SessionCredentials

logger = logging.getLogger(__name__)


class SessionStore:
    """Load and save SessionCredentials as a JSON file."""

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def load(self) -> Optional[SessionCredentials]:
        """Load the stored session.

        Returns:
            SessionCredentials or None if no session is stored
        """
        if not self.path.exists():
            return None

        try:
            with self.path.open(encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Failed to load session {self.path}: {e}")
            return None

        return SessionCredentials.from_dict(data)

    def save(self, session: SessionCredentials) -> None:
        """Persist the session, replacing any previous one.

        Args:
            session: Session to store
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)

        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with tmp_path.open("w", encoding="utf-8") as f:
            json.dump(session.to_dict(), f, indent=2)
        tmp_path.replace(self.path)

        logger.debug(f"Session saved: {self.path} ({len(session.cookies)} cookies)")

    def clear(self) -> None:
        """Remove the stored session (logout)."""
        if self.path.exists():
            self.path.unlink()
            logger.info(f"Session cleared: {self.path}")
