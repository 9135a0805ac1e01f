# src/services/price_tracker.py

"""Drives tracking passes over the watch list."""

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from src.config.settings import TrackerConfig
from src.config.watchlist import load_watchlist
from src.models.observation import Observation
from src.models.summary import Summary
from src.scrapers.page_processor import PageProcessor
from src.services.stats_aggregator import aggregate
from src.storage.history_store import HistoryStore, SummaryStore

logger = logging.getLogger("backmarket_tracker.tracker")


@dataclass
class TrackRunResult:
    """Outcome of one tracking pass."""

    observations: list[Observation] = field(
        default_factory=lambda: list[Observation]()
    )
    missing: list[str] = field(
        default_factory=lambda: list[str]()
    )
    errors: list[str] = field(
        default_factory=lambda: list[str]()
    )
    elapsed: float = 0.0


class PriceTracker:
    """Coordinates page processing, history persistence and summaries.

    The sequential pass appends each observation and refreshes the
    summary as soon as it is produced, so a crash loses at most the
    page in flight. The parallel pass collects every result first and
    then touches the history exactly once.
    """

    def __init__(
        self,
        config: TrackerConfig | None = None,
        processor_factory: Callable[[], PageProcessor] | None = None,
        watchlist: dict[str, list[str]] | None = None,
        sleep: Callable[[float], None] | None = None,
    ) -> None:
        self.config = config or TrackerConfig()
        self._processor_factory = processor_factory or (
            lambda: PageProcessor(self.config)
        )
        self._watchlist = watchlist
        self._sleep = sleep
        self.history_store = HistoryStore(self.config.history_path)
        self.summary_store = SummaryStore(self.config.summary_path)

    @property
    def watchlist(self) -> dict[str, list[str]]:
        """Group id -> URLs, loaded from the configured file on first use."""
        if self._watchlist is None:
            self._watchlist = load_watchlist(self.config.watchlist_path)
        return self._watchlist

    def _pause(self, seconds: float) -> None:
        (self._sleep or time.sleep)(seconds)

    def _record_error(
        self,
        result: TrackRunResult,
        group_id: str,
        url: str,
        exc: BaseException,
        action: str = "processing",
    ) -> None:
        result.errors.append(f"{url}: {exc}")
        logger.error(
            "Error %s %s (%s): %s",
            action,
            url,
            group_id,
            exc,
            exc_info=exc,
        )

    # ── Summary ──────────────────────────────────────────

    def refresh_summary(
        self, history: list[Observation],
    ) -> list[Summary]:
        """Recompute every group summary from *history* and persist it."""
        summaries = aggregate(history)
        self.summary_store.write(summaries)
        return summaries

    # ── Sequential pass ──────────────────────────────────

    def run_once(
        self, groups: dict[str, list[str]] | None = None,
    ) -> TrackRunResult:
        """Process every URL in order, persisting after each success."""
        started = time.monotonic()
        targets = groups if groups is not None else self.watchlist
        history = self.history_store.load()
        processor = self._processor_factory()
        result = TrackRunResult()

        for group_id, urls in targets.items():
            for index, url in enumerate(urls):
                if index:
                    self._pause(self.config.request_delay)
                try:
                    observation = processor.process(group_id, url)
                except Exception as exc:
                    self._record_error(result, group_id, url, exc)
                    continue

                if observation is None:
                    result.missing.append(url)
                    continue

                try:
                    self.history_store.append([observation])
                except Exception as exc:
                    self._record_error(
                        result, group_id, url, exc, "saving history for"
                    )
                    continue
                history.append(observation)
                result.observations.append(observation)

                try:
                    self.refresh_summary(history)
                except Exception as exc:
                    self._record_error(
                        result, group_id, url, exc, "refreshing summary for"
                    )

        result.elapsed = time.monotonic() - started
        logger.info(
            "Pass complete in %.0fs: %d observations, %d missing, "
            "%d errors",
            result.elapsed,
            len(result.observations),
            len(result.missing),
            len(result.errors),
        )
        return result

    # ── Parallel pass ────────────────────────────────────

    async def run_once_parallel(
        self, groups: dict[str, list[str]] | None = None,
    ) -> TrackRunResult:
        """Fetch every URL concurrently, then persist in a single pass."""
        started = time.monotonic()
        targets = groups if groups is not None else self.watchlist
        jobs = [
            (group_id, url)
            for group_id, urls in targets.items()
            for url in urls
        ]

        async def run_one(
            index: int, group_id: str, url: str,
        ) -> Observation | None:
            # Stagger on the event loop, not in a worker thread
            if index:
                await asyncio.sleep(self.config.request_delay * index)
            processor = self._processor_factory()
            return await asyncio.to_thread(processor.process, group_id, url)

        outcomes = await asyncio.gather(
            *(
                run_one(index, group_id, url)
                for index, (group_id, url) in enumerate(jobs)
            ),
            return_exceptions=True,
        )

        result = TrackRunResult()
        for (group_id, url), outcome in zip(jobs, outcomes):
            if isinstance(outcome, Observation):
                result.observations.append(outcome)
            elif isinstance(outcome, BaseException):
                self._record_error(result, group_id, url, outcome)
            else:
                result.missing.append(url)

        if result.observations:
            history = self.history_store.load()
            try:
                self.history_store.append(result.observations)
            except Exception as exc:
                result.errors.append(f"{self.config.history_path}: {exc}")
                logger.error(
                    "Could not save %d observations: %s",
                    len(result.observations),
                    exc,
                    exc_info=True,
                )
            else:
                history.extend(result.observations)
                try:
                    self.refresh_summary(history)
                except Exception as exc:
                    result.errors.append(
                        f"{self.config.summary_path}: {exc}"
                    )
                    logger.error(
                        "Could not refresh summary: %s", exc, exc_info=True
                    )

        result.elapsed = time.monotonic() - started
        logger.info(
            "Parallel pass complete in %.0fs: %d observations, "
            "%d missing, %d errors",
            result.elapsed,
            len(result.observations),
            len(result.missing),
            len(result.errors),
        )
        return result

    # ── Repeat mode ──────────────────────────────────────

    def run_forever(
        self,
        parallel: bool = False,
        groups: dict[str, list[str]] | None = None,
        max_cycles: int | None = None,
    ) -> int:
        """Run passes back to back; returns the number of cycles run.

        A pass that raises is logged and followed by the error cooldown
        before the next one starts.
        """
        cycles = 0
        while max_cycles is None or cycles < max_cycles:
            cycles += 1
            try:
                if parallel:
                    asyncio.run(self.run_once_parallel(groups))
                else:
                    self.run_once(groups)
                logger.info("Cycle %d done, restarting", cycles)
            except Exception as exc:
                logger.error(
                    "Main process error in cycle %d: %s",
                    cycles,
                    exc,
                    exc_info=True,
                )
                self._pause(self.config.error_cooldown)
        return cycles
