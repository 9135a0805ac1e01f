# tests/test_runner.py

"""Tests for the headless CLI runners."""

import json
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from src.cli import runner
from src.config.settings import TrackerConfig
from src.models.observation import Observation
from src.storage.history_store import HistoryStore

FIXTURES_DIR = Path(__file__).parent / "fixtures"


class _RunnerTestCase(unittest.TestCase):
    """Config pointing at temp files."""

    def setUp(self) -> None:
        """Create temp data files and a small watch list."""
        self.tmp_dir = Path(tempfile.mkdtemp())
        watchlist_path = self.tmp_dir / "watchlist.json"
        watchlist_path.write_text(
            json.dumps({"S21": ["https://example.com/a"]}),
            encoding="utf-8",
        )
        self.config = TrackerConfig(
            history_path=self.tmp_dir / "history.csv",
            summary_path=self.tmp_dir / "stats.csv",
            debug_dir=self.tmp_dir / "debug",
            watchlist_path=watchlist_path,
        )


class TestRunReplay(_RunnerTestCase):
    """Replaying captured pages."""

    def test_replay_success(self) -> None:
        """A good page exits 0 and writes no artifacts."""
        code = runner.run_replay(
            self.config,
            FIXTURES_DIR / "product_page.html",
            "S21",
            "https://example.org",
        )
        self.assertEqual(code, 0)
        self.assertFalse(self.config.debug_dir.exists())

    def test_replay_without_title(self) -> None:
        """A page without title exits 1 and writes no artifacts."""
        code = runner.run_replay(
            self.config,
            FIXTURES_DIR / "no_title.html",
            "S21",
            "https://example.org",
        )
        self.assertEqual(code, 1)
        self.assertFalse(self.config.debug_dir.exists())

    def test_replay_missing_file(self) -> None:
        """An unreadable capture exits 1."""
        code = runner.run_replay(
            self.config, self.tmp_dir / "nope.html", "S21", "u"
        )
        self.assertEqual(code, 1)


class TestRunRecomputeAndShow(_RunnerTestCase):
    """Summary maintenance commands."""

    def test_recompute_builds_summary_from_history(self) -> None:
        """The summary is rebuilt from the history file."""
        HistoryStore(self.config.history_path).append([
            Observation("S21", "https://example.com/a", "S21", "T1", gut=300),
            Observation("S21", "https://example.com/b", "S21", "T2", gut=200),
        ])
        self.assertEqual(runner.run_recompute(self.config), 0)
        self.assertEqual(runner.run_show(self.config), 0)

    def test_show_without_summary(self) -> None:
        """Nothing recorded yet exits 1."""
        self.assertEqual(runner.run_show(self.config), 1)


class TestRunTrack(_RunnerTestCase):
    """Tracking entry point."""

    def test_unknown_group_exits(self) -> None:
        """Unknown group ids abort with SystemExit."""
        with self.assertRaises(SystemExit):
            runner.run_track(self.config, "S99", False, False)

    def test_exit_code_reflects_observations(self) -> None:
        """No observations maps to exit code 1."""
        with patch(
            "src.scrapers.page_processor.PageFetcher"
        ) as fetcher_cls:
            fetcher_cls.return_value.fetch.return_value = (
                FIXTURES_DIR / "product_page.html"
            ).read_text(encoding="utf-8")
            self.assertEqual(
                runner.run_track(self.config, None, False, False), 0
            )
            fetcher_cls.return_value.fetch.return_value = (
                FIXTURES_DIR / "no_quality.html"
            ).read_text(encoding="utf-8")
            self.assertEqual(
                runner.run_track(self.config, None, False, False), 1
            )


if __name__ == "__main__":
    unittest.main()
