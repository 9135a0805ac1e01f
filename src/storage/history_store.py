# src/storage/history_store.py

"""Semicolon-delimited CSV files for the price history and summary."""

import csv
import logging
from collections.abc import Iterable
from pathlib import Path

from src.models.observation import TIERS, Observation
from src.models.summary import Summary

logger = logging.getLogger("backmarket_tracker.storage")

DELIMITER = ";"

HISTORY_COLUMNS: list[str] = ["id", "url", "name", "timestamp", *TIERS]

SUMMARY_COLUMNS: list[str] = ["id", "url"] + [
    column
    for tier in TIERS
    for column in (
        tier,
        f"{tier}_timestamp",
        f"{tier}_name",
        f"{tier}_url",
    )
]


def _parse_price(value: str, column: str, line: int) -> int | None:
    """Parse a stored tier price; empty means absent."""
    value = value.strip()
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        logger.warning(
            "Bad %s value %r on history line %d, treating as absent",
            column,
            value,
            line,
        )
        return None


class HistoryStore:
    """Append-only ledger of observations in ``history.csv``.

    A freshly created file holds only the column-name row; data rows
    are appended after it and the leading column-name row is skipped
    on read.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def _create_empty(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", newline="", encoding="utf-8") as f:
            csv.writer(f, delimiter=DELIMITER).writerow(HISTORY_COLUMNS)
        logger.info("Created empty history file %s", self.path)

    def _read_rows(self) -> list[list[str]]:
        # Undecodable bytes become U+FFFD; the ledger is never rewritten
        with open(
            self.path, newline="", encoding="utf-8", errors="replace"
        ) as f:
            return list(csv.reader(f, delimiter=DELIMITER))

    def load(self) -> list[Observation]:
        """Read every observation, creating the file if it is missing.

        The read is retried once after creating an empty file; a second
        failure propagates.
        """
        try:
            rows = self._read_rows()
        except OSError as exc:
            logger.warning(
                "Error reading %s: %s, creating an empty history",
                self.path,
                exc,
            )
            self._create_empty()
            rows = self._read_rows()

        observations: list[Observation] = []
        for line, row in enumerate(rows, 1):
            if not row or row == HISTORY_COLUMNS:
                continue
            if len(row) < 4:
                logger.warning(
                    "Skipping short history line %d in %s",
                    line,
                    self.path,
                )
                continue
            if any("\ufffd" in value for value in row):
                logger.warning(
                    "History line %d in %s is not valid UTF-8, "
                    "undecodable bytes replaced",
                    line,
                    self.path,
                )
            padded = (row + [""] * len(HISTORY_COLUMNS))[
                : len(HISTORY_COLUMNS)
            ]
            group_id, url, name, timestamp = padded[:4]
            prices = [
                _parse_price(value, column, line)
                for column, value in zip(TIERS, padded[4:])
            ]
            observations.append(
                Observation.from_slots(
                    group_id, url, name, timestamp, prices
                )
            )

        logger.debug(
            "Loaded %d observations from %s",
            len(observations),
            self.path,
        )
        return observations

    def append(self, observations: Iterable[Observation]) -> int:
        """Append observations to the ledger, returning how many were written."""
        if not self.path.exists():
            self._create_empty()

        count = 0
        with open(self.path, "a", newline="", encoding="utf-8") as f:
            writer = csv.writer(f, delimiter=DELIMITER)
            for obs in observations:
                writer.writerow(
                    [
                        obs.group_id,
                        obs.source_url,
                        obs.display_name,
                        obs.observed_at,
                        *(
                            "" if price is None else str(price)
                            for price in obs.tier_prices
                        ),
                    ]
                )
                count += 1

        if count:
            logger.info("Appended %d observation(s) to %s", count, self.path)
        return count


class SummaryStore:
    """The derived ``stats.csv`` file, rewritten on every recompute."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def write(self, summaries: list[Summary]) -> Path:
        """Replace the summary file with *summaries*."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f, delimiter=DELIMITER)
            writer.writerow(SUMMARY_COLUMNS)
            for summary in summaries:
                writer.writerow(summary.to_row())

        logger.info(
            "Wrote %d group summaries to %s", len(summaries), self.path
        )
        return self.path

    def load(self) -> list[dict[str, str]]:
        """Read the summary file back as column-name -> value rows."""
        if not self.path.exists():
            return []
        with open(
            self.path, newline="", encoding="utf-8", errors="replace"
        ) as f:
            reader = csv.reader(f, delimiter=DELIMITER)
            return [
                dict(zip(SUMMARY_COLUMNS, row))
                for row in reader
                if row and row != SUMMARY_COLUMNS
            ]
