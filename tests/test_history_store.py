# tests/test_history_store.py

"""Tests for the semicolon CSV history and summary files."""

import csv
import tempfile
import unittest
from pathlib import Path

from src.models.observation import Observation
from src.services.stats_aggregator import aggregate
from src.storage.history_store import (
    HISTORY_COLUMNS,
    SUMMARY_COLUMNS,
    HistoryStore,
    SummaryStore,
)


def _sample() -> list[Observation]:
    """Two observations, one with sold-out tiers."""
    return [
        Observation(
            group_id="S21",
            source_url="https://example.com/a",
            display_name="Galaxy S21; Grau",
            observed_at="2024-11-11T20:42:28.735Z",
            gut=229,
            sehr_gut=250,
            hervorragend=280,
            premium=310,
        ),
        Observation(
            group_id="S21 FE",
            source_url="https://example.com/b",
            display_name="Galaxy S21 FE",
            observed_at="2024-11-11T20:43:01.002Z",
            gut=199,
            hervorragend=239,
        ),
    ]


class TestHistoryStore(unittest.TestCase):
    """Append-only history ledger."""

    def setUp(self) -> None:
        """Use a fresh temp directory per test."""
        self.tmp_dir = Path(tempfile.mkdtemp())
        self.path = self.tmp_dir / "data" / "history.csv"
        self.store = HistoryStore(self.path)

    def test_load_creates_missing_file(self) -> None:
        """A missing history becomes a header-only file."""
        self.assertEqual(self.store.load(), [])
        self.assertTrue(self.path.exists())
        with open(self.path, newline="", encoding="utf-8") as f:
            rows = list(csv.reader(f, delimiter=";"))
        self.assertEqual(rows, [HISTORY_COLUMNS])

    def test_append_then_load_roundtrip(self) -> None:
        """Stored observations load back equal, absent tiers included."""
        self.store.append(_sample())
        self.assertEqual(self.store.load(), _sample())

    def test_absent_tiers_are_empty_fields(self) -> None:
        """Sold-out tiers are written as empty strings, not zero."""
        self.store.append(_sample()[1:])
        with open(self.path, newline="", encoding="utf-8") as f:
            rows = list(csv.reader(f, delimiter=";"))
        self.assertEqual(rows[-1][4:], ["199", "", "239", ""])

    def test_append_keeps_existing_rows(self) -> None:
        """Appending never rewrites what is already there."""
        first, second = _sample()
        self.store.append([first])
        before = self.path.read_text(encoding="utf-8")
        self.store.append([second])
        after = self.path.read_text(encoding="utf-8")
        self.assertTrue(after.startswith(before))
        self.assertEqual(len(self.store.load()), 2)

    def test_headerless_file_is_read(self) -> None:
        """Files without the column-name row load as plain data."""
        self.path.parent.mkdir(parents=True)
        self.path.write_text(
            "S22;https://example.com/c;Galaxy S22;T1;300;;;\n",
            encoding="utf-8",
        )
        (obs,) = self.store.load()
        self.assertEqual(obs.group_id, "S22")
        self.assertEqual(obs.tier_prices, (300, None, None, None))

    def test_bad_price_loads_as_absent(self) -> None:
        """Non-numeric tier values are treated as absent."""
        self.path.parent.mkdir(parents=True)
        self.path.write_text(
            "S22;https://example.com/c;Galaxy S22;T1;NaN;12;;\n",
            encoding="utf-8",
        )
        (obs,) = self.store.load()
        self.assertIsNone(obs.gut)
        self.assertEqual(obs.sehr_gut, 12)

    def test_short_rows_skipped(self) -> None:
        """Rows missing mandatory columns are ignored."""
        self.path.parent.mkdir(parents=True)
        self.path.write_text(
            "S22;https://example.com/c\n"
            "S22;https://example.com/c;Galaxy S22;T1;300\n",
            encoding="utf-8",
        )
        (obs,) = self.store.load()
        self.assertEqual(obs.gut, 300)

    def test_non_utf8_bytes_do_not_break_load(self) -> None:
        """A stray Latin-1 byte is replaced and the file is left intact."""
        self.path.parent.mkdir(parents=True)
        raw = b"S21;https://x;Gr\xfcn;2024;229;;;\n"
        self.path.write_bytes(raw)

        with self.assertLogs("backmarket_tracker", level="WARNING"):
            (obs,) = self.store.load()

        self.assertEqual(obs.display_name, "Gr\ufffdn")
        self.assertEqual(obs.gut, 229)
        self.assertEqual(self.path.read_bytes(), raw)

    def test_append_returns_count(self) -> None:
        """The number of written rows is returned."""
        self.assertEqual(self.store.append(_sample()), 2)
        self.assertEqual(self.store.append([]), 0)


class TestSummaryStore(unittest.TestCase):
    """Derived summary file."""

    def setUp(self) -> None:
        """Use a fresh temp directory per test."""
        self.tmp_dir = Path(tempfile.mkdtemp())
        self.path = self.tmp_dir / "stats.csv"
        self.store = SummaryStore(self.path)

    def test_columns(self) -> None:
        """18 columns: id, url and 4 tiers x 4 fields."""
        self.assertEqual(len(SUMMARY_COLUMNS), 18)
        self.assertEqual(SUMMARY_COLUMNS[:3], ["id", "url", "gut"])
        self.assertEqual(SUMMARY_COLUMNS[-1], "premium_url")

    def test_write_replaces_content(self) -> None:
        """Each write fully rewrites the file."""
        self.store.write(aggregate(_sample()))
        self.store.write(aggregate(_sample()[:1]))
        rows = self.store.load()
        self.assertEqual([r["id"] for r in rows], ["S21"])

    def test_write_and_load(self) -> None:
        """Rows load back keyed by column name."""
        self.store.write(aggregate(_sample()))
        rows = self.store.load()
        self.assertEqual(len(rows), 2)
        fe = rows[1]
        self.assertEqual(fe["gut"], "199")
        self.assertEqual(fe["sehr_gut"], "0")
        self.assertEqual(fe["sehr_gut_url"], "")
        self.assertEqual(fe["hervorragend_url"], "https://example.com/b")

    def test_load_missing_file(self) -> None:
        """No file means no rows."""
        self.assertEqual(self.store.load(), [])


if __name__ == "__main__":
    unittest.main()
