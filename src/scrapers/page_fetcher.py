# src/scrapers/page_fetcher.py

"""HTTP fetch layer for product pages."""

import logging
import time
from typing import Any

import cloudscraper  # type: ignore[import-untyped]
from curl_cffi import requests as curl_requests

from src.config.settings import Settings, TrackerConfig


class PageFetcher:
    """Fetch raw page text with a browser-impersonating session.

    Any response that carries a body is handed back, whatever its
    status code: challenge and error pages are recognised by the
    classifier, not here. Only transport failures are retried.
    """

    def __init__(self, config: TrackerConfig | None = None) -> None:
        self.config = config or TrackerConfig()
        self.logger = logging.getLogger("backmarket_tracker.fetcher")
        self.session = curl_requests.Session(
            impersonate=self.config.impersonate
        )
        self._headers: dict[str, str] = {
            **Settings.DEFAULT_HEADERS,
            "Referer": Settings.HOMEPAGE,
        }

    def _fetch_get(self, url: str) -> str | None:
        """GET with linear backoff on transport errors."""
        for attempt in range(self.config.max_retries):
            try:
                resp = self.session.get(
                    url,
                    headers=self._headers,
                    timeout=self.config.request_timeout,
                )
                if resp.status_code != 200:
                    self.logger.warning(
                        "HTTP %d for %s on attempt %d",
                        resp.status_code,
                        url,
                        attempt + 1,
                    )
                if resp.text:
                    return str(resp.text)
            except Exception as exc:
                self.logger.warning(
                    "Request error for %s on attempt %d: %s",
                    url,
                    attempt + 1,
                    exc,
                    exc_info=True,
                )
            if attempt < self.config.max_retries - 1:
                time.sleep(self.config.request_delay * (attempt + 1))
        return None

    def fetch(self, url: str) -> str | None:
        """Fetch *url*, falling back to cloudscraper when curl_cffi fails."""
        text = self._fetch_get(url)
        if text:
            return text

        self.logger.info(
            "curl_cffi exhausted for %s, falling back to cloudscraper",
            url,
        )
        try:
            _cs: Any = cloudscraper
            scraper: Any = _cs.create_scraper()
            fallback_resp: Any = scraper.get(
                url,
                headers=self._headers,
                timeout=self.config.request_timeout,
            )
            fallback_text = str(fallback_resp.text or "")
            if fallback_text:
                return fallback_text
        except Exception as e:
            self.logger.error(
                "cloudscraper fallback also failed for %s: %s",
                url,
                e,
                exc_info=True,
            )
        return None
