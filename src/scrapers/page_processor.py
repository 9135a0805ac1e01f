# src/scrapers/page_processor.py

"""Turns one product page into a price observation.

The processor runs a small retry/cooldown state machine around the pure
classifier in :mod:`src.scrapers.page_parser`:

* anti-bot challenge pages and site error pages are waited out with a
  long (bot) or short (error) cooldown and the same call is retried;
* pages without a title or without the price-tier block yield no
  observation and, on live fetches, are dumped to the debug directory;
* a fetch that produces no text at all raises :class:`FetchError` for
  the caller to handle.

Live fetches retry cooldowns without limit unless
``TrackerConfig.max_block_retries`` is set. Replayed pages (passed in as
``raw_content``) never change between attempts, so they are retried at
most ``TrackerConfig.replay_max_retries`` times.
"""

import logging
import time
from collections.abc import Callable
from datetime import datetime, timezone

from src.config.settings import TrackerConfig
from src.models.observation import Observation
from src.scrapers.page_fetcher import PageFetcher
from src.scrapers.page_parser import PageOutcome, PageStatus, classify_page
from src.storage.debug_store import (
    NO_QUALITY_FOUND,
    NO_TITLE_FOUND,
    DebugArtifactWriter,
)

logger = logging.getLogger("backmarket_tracker.processor")


class FetchError(RuntimeError):
    """No page content could be obtained for a URL."""

    def __init__(self, url: str) -> None:
        super().__init__(f"No page content received for {url}")
        self.url = url


def utc_timestamp() -> str:
    """Current UTC time as ``2024-11-11T20:42:28.735Z``."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def page_id(url: str) -> str:
    """Last path segment of a product URL, used to tag log lines."""
    return url.rstrip("/").rsplit("/", 1)[-1]


class PageProcessor:
    """Fetch, classify and extract tier prices for one URL at a time."""

    def __init__(
        self,
        config: TrackerConfig | None = None,
        fetcher: PageFetcher | None = None,
        artifact_writer: DebugArtifactWriter | None = None,
        sleep: Callable[[float], None] | None = None,
        clock: Callable[[], float] = time.perf_counter,
        now: Callable[[], str] = utc_timestamp,
    ) -> None:
        self.config = config or TrackerConfig()
        self._fetcher = fetcher
        self.artifacts = artifact_writer or DebugArtifactWriter(
            self.config.debug_dir
        )
        self._sleep = sleep
        self._clock = clock
        self._now = now

    @property
    def fetcher(self) -> PageFetcher:
        """HTTP fetcher, created on first live fetch."""
        if self._fetcher is None:
            self._fetcher = PageFetcher(self.config)
        return self._fetcher

    def process(
        self,
        group_id: str,
        url: str,
        raw_content: str | None = None,
    ) -> Observation | None:
        """Return an observation for *url*, or ``None`` if the page had none.

        Raises:
            FetchError: no page text could be obtained.
            ValueError: *group_id* or *url* is empty.
        """
        if not group_id or not url:
            msg = "group_id and url must be non-empty"
            raise ValueError(msg)

        replay = raw_content is not None
        limit = (
            self.config.replay_max_retries
            if replay
            else self.config.max_block_retries
        )
        retries = 0
        while True:
            status, observation = self._process_once(
                group_id, url, raw_content
            )
            cooldown = self._cooldown_for(status)
            if cooldown is None:
                return observation

            if limit is not None and retries >= limit:
                logger.error(
                    "[%s] Giving up after %d retries (%s)",
                    page_id(url),
                    retries,
                    status.value,
                )
                return None

            retries += 1
            logger.warning(
                "[%s] %s, cooling off for %.0fs (retry %d)",
                page_id(url),
                "Bot detected"
                if status is PageStatus.SOFT_BLOCK
                else "Site error page",
                cooldown,
                retries,
            )
            (self._sleep or time.sleep)(cooldown)

    def _cooldown_for(self, status: PageStatus) -> float | None:
        """Cooldown before retrying *status*, or None if it is terminal."""
        if status is PageStatus.SOFT_BLOCK:
            return self.config.bot_cooldown
        if status is PageStatus.SITE_ERROR:
            return self.config.error_cooldown
        return None

    def _process_once(
        self,
        group_id: str,
        url: str,
        raw_content: str | None,
    ) -> tuple[PageStatus, Observation | None]:
        """Run a single fetch-and-classify attempt."""
        started = self._clock()
        observed_at = self._now()
        pid = page_id(url)

        text = (
            raw_content if raw_content is not None
            else self.fetcher.fetch(url)
        )
        if not text:
            logger.error("[%s] No data received for %s", pid, url)
            raise FetchError(url)

        outcome = classify_page(text, self.config)
        elapsed_ms = (self._clock() - started) * 1000

        if outcome.status is PageStatus.SUCCESS:
            return outcome.status, self._build_observation(
                group_id, url, observed_at, outcome, elapsed_ms
            )

        if outcome.status is PageStatus.MISSING_TITLE:
            logger.warning(
                "[%s] No title found for %s (%.0f ms)",
                pid,
                url,
                elapsed_ms,
            )
            if raw_content is None:
                self._save_artifact(NO_TITLE_FOUND, observed_at, url, text)
        elif outcome.status is PageStatus.MISSING_PRICE_BLOCK:
            logger.error(
                "[%s] %s: no quality block found (%.0f ms)",
                pid,
                outcome.title,
                elapsed_ms,
            )
            if raw_content is None:
                self._save_artifact(
                    NO_QUALITY_FOUND, observed_at, url, text
                )
        else:
            logger.debug(
                "[%s] Classified as %s (%.0f ms)",
                pid,
                outcome.status.value,
                elapsed_ms,
            )
        return outcome.status, None

    def _build_observation(
        self,
        group_id: str,
        url: str,
        observed_at: str,
        outcome: PageOutcome,
        elapsed_ms: float,
    ) -> Observation:
        pid = page_id(url)
        for text in outcome.sold_out:
            logger.debug(
                "[%s] %s sold out tier: %r", pid, outcome.title, text
            )
        observation = Observation.from_slots(
            group_id, url, outcome.title, observed_at, outcome.slots
        )
        logger.info(
            "[%s] %s priced %s (%.0f ms)",
            pid,
            outcome.title,
            observation.tier_prices,
            elapsed_ms,
        )
        return observation

    def _save_artifact(
        self, reason: str, timestamp: str, url: str, content: str,
    ) -> None:
        """Dump the raw page; a failed write is logged, never raised."""
        try:
            self.artifacts.write(reason, timestamp, url, content)
        except OSError as exc:
            logger.error(
                "Could not write %s artifact for %s: %s",
                reason,
                url,
                exc,
                exc_info=True,
            )
