# src/config/settings.py

"""Central configuration for the backmarket_tracker pipeline."""

import os
from dataclasses import dataclass
from pathlib import Path

from curl_cffi.requests import BrowserTypeLiteral
from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Central configuration for the backmarket_tracker pipeline."""

    # --- Scraping ---
    REQUEST_DELAY: float = 2.0          # Pacing between fetches in a burst
    REQUEST_TIMEOUT: int = 15           # Seconds before a request times out
    MAX_RETRIES: int = 3                # Transport retries per fetch
    PARALLEL_FETCH: bool = False        # Concurrent per-URL fetches

    # --- Cooldowns ---
    BOT_COOLDOWN: float = 7200.0        # Wait after an anti-bot challenge
    ERROR_COOLDOWN: float = 300.0       # Wait after a site error page
    REPLAY_MAX_RETRIES: int = 1         # Cooldown retries for replayed pages

    # --- Page classification ---
    CHALLENGE_MARKERS: list[str] = [
        "bot-need-challenge",
    ]
    SITE_ERROR_TITLES: list[str] = [
        "Oh Oh ... da ist wohl etwas schief gelaufen",
    ]
    TITLE_SELECTOR: str = '[data-test="container-wrapper"] .heading-1'
    PRICE_TIER_SELECTOR: str = (
        r".pt-0.md\:pt-24.py-72.md\:py-36"
        r" .grid.grid-cols-2.gap-x-12.list-none"
    )

    # --- Browser Impersonation ---
    IMPERSONATE_BROWSER: BrowserTypeLiteral = "chrome131"
    DEFAULT_HEADERS: dict[str, str] = {
        "Accept": (
            "text/html,application/xhtml+xml,"
            "application/xml;q=0.9,image/avif,"
            "image/webp,image/apng,*/*;q=0.8"
        ),
        "Accept-Language": "de-DE,de;q=0.9,en;q=0.8",
        "sec-ch-ua": (
            '"Google Chrome";v="131", '
            '"Chromium";v="131", '
            '"Not_A Brand";v="24"'
        ),
        "sec-ch-ua-mobile": "?0",
        "sec-ch-ua-platform": '"Windows"',
        "sec-fetch-dest": "document",
        "sec-fetch-mode": "navigate",
        "sec-fetch-site": "none",
        "sec-fetch-user": "?1",
        "Upgrade-Insecure-Requests": "1",
    }
    HOMEPAGE: str = "https://www.backmarket.de/de-de"

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    DATA_DIR: Path = Path(
        os.getenv("PRICE_TRACKER_DATA_DIR", str(BASE_DIR / "data"))
    )
    HISTORY_PATH: Path = DATA_DIR / "history.csv"
    SUMMARY_PATH: Path = DATA_DIR / "stats.csv"
    DEBUG_DIR: Path = DATA_DIR / "debug"
    LOGS_DIR: Path = DATA_DIR / "logs"
    WATCHLIST_PATH: Path = BASE_DIR / "src" / "config" / "watchlist.json"


@dataclass(frozen=True)
class TrackerConfig:
    """Immutable per-run configuration handed to every pipeline component.

    Defaults mirror :class:`Settings`; tests build their own instances
    with short cooldowns, temp directories or alternative selectors.
    """

    request_delay: float = Settings.REQUEST_DELAY
    request_timeout: int = Settings.REQUEST_TIMEOUT
    max_retries: int = Settings.MAX_RETRIES
    bot_cooldown: float = Settings.BOT_COOLDOWN
    error_cooldown: float = Settings.ERROR_COOLDOWN
    replay_max_retries: int = Settings.REPLAY_MAX_RETRIES
    max_block_retries: int | None = None
    challenge_markers: tuple[str, ...] = tuple(Settings.CHALLENGE_MARKERS)
    site_error_titles: tuple[str, ...] = tuple(Settings.SITE_ERROR_TITLES)
    title_selector: str = Settings.TITLE_SELECTOR
    price_tier_selector: str = Settings.PRICE_TIER_SELECTOR
    impersonate: BrowserTypeLiteral = Settings.IMPERSONATE_BROWSER
    history_path: Path = Settings.HISTORY_PATH
    summary_path: Path = Settings.SUMMARY_PATH
    debug_dir: Path = Settings.DEBUG_DIR
    watchlist_path: Path = Settings.WATCHLIST_PATH
