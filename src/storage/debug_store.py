# src/storage/debug_store.py

"""Raw page dumps for offline diagnosis of unrecognised pages."""

import logging
import re
from pathlib import Path

logger = logging.getLogger("backmarket_tracker.storage")

# Reason tags used as filename prefixes
NO_TITLE_FOUND = "no-title-found"
NO_QUALITY_FOUND = "no-quality-found"

_NON_WORD_RE = re.compile(r"\W", re.ASCII)


def artifact_name(reason: str, timestamp: str, url: str) -> str:
    """Build ``<reason>-<timestamp-url>.html`` with non-word chars as ``-``."""
    stem = _NON_WORD_RE.sub("-", f"{timestamp}-{url}")
    return f"{reason}-{stem}.html"


class DebugArtifactWriter:
    """Writes one HTML file per page that could not be parsed."""

    def __init__(self, debug_dir: Path) -> None:
        self.debug_dir = debug_dir

    def write(
        self, reason: str, timestamp: str, url: str, content: str,
    ) -> Path:
        """Persist *content* and return the artifact path."""
        self.debug_dir.mkdir(parents=True, exist_ok=True)
        path = self.debug_dir / artifact_name(reason, timestamp, url)
        path.write_text(content, encoding="utf-8")
        logger.info("Saved debug artifact %s", path)
        return path
