# src/config/watchlist.py

"""Loader for the static group -> product URL watch list."""

import json
import logging
from pathlib import Path
from typing import Any

from src.config.settings import Settings

logger = logging.getLogger("backmarket_tracker.watchlist")


def load_watchlist(path: Path | None = None) -> dict[str, list[str]]:
    """Load the watch list, preserving group and URL order.

    Raises ``ValueError`` when the file is not an object of string lists.
    """
    source = path or Settings.WATCHLIST_PATH
    with open(source, encoding="utf-8") as f:
        raw: Any = json.load(f)

    if not isinstance(raw, dict):
        msg = f"Watch list {source} must be a JSON object"
        raise ValueError(msg)

    watchlist: dict[str, list[str]] = {}
    for group_id, urls in raw.items():
        if not isinstance(urls, list) or not all(
            isinstance(u, str) and u for u in urls
        ):
            msg = f"Group '{group_id}' must map to a list of URLs"
            raise ValueError(msg)
        watchlist[str(group_id)] = list(urls)

    logger.debug(
        "Loaded watch list %s: %d groups, %d URLs",
        source,
        len(watchlist),
        sum(len(u) for u in watchlist.values()),
    )
    return watchlist


def select_groups(
    watchlist: dict[str, list[str]],
    group_csv: str | None,
) -> dict[str, list[str]]:
    """Restrict the watch list to a comma-separated list of group ids.

    Returns the full watch list when *group_csv* is ``None``.
    Raises ``KeyError`` naming every unknown group id.
    """
    if group_csv is None:
        return watchlist

    requested = [
        g.strip() for g in group_csv.split(",") if g.strip()
    ]
    unknown = [g for g in requested if g not in watchlist]
    if unknown:
        raise KeyError(", ".join(unknown))
    return {g: watchlist[g] for g in requested}
