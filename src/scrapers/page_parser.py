# src/scrapers/page_parser.py

"""Pure classification of a raw product page into a tagged outcome.

Nothing in here touches the network or the filesystem: the caller
decides what to do with each :class:`PageStatus` (cool off, dump the
page for inspection, or record an observation).
"""

import logging
import math
import re
from dataclasses import dataclass, field
from enum import Enum

from bs4 import BeautifulSoup, Tag

from src.config.settings import TrackerConfig
from src.models.observation import TIERS

logger = logging.getLogger("backmarket_tracker.parser")

_AMOUNT_CHARS_RE = re.compile(r"[\d,]")


class PageStatus(Enum):
    """Classification of a fetched page, in priority order."""

    SOFT_BLOCK = "soft_block"
    MISSING_TITLE = "missing_title"
    SITE_ERROR = "site_error"
    MISSING_PRICE_BLOCK = "missing_price_block"
    SUCCESS = "success"


@dataclass
class PageOutcome:
    """Result of classifying one page."""

    status: PageStatus
    title: str = ""
    slots: list[int | None] = field(
        default_factory=lambda: list[int | None]()
    )
    sold_out: list[str] = field(
        default_factory=lambda: list[str]()
    )


def get_euros(text: str | None) -> int | None:
    """Parse a German-formatted euro amount like ``'1.234,56 €'``.

    Only digits and commas are kept; the first comma becomes the
    decimal point and the value is rounded half up. Returns ``None``
    when the text holds no parsable amount.
    """
    if not text:
        return None
    chars = _AMOUNT_CHARS_RE.findall(text)
    if not chars:
        return None
    try:
        value = float("".join(chars).replace(",", ".", 1))
    except ValueError:
        return None
    if math.isnan(value) or math.isinf(value):
        return None
    return math.floor(value + 0.5)


def _element_text(element: Tag) -> str:
    """Whitespace-collapsed visible text of an element."""
    return " ".join(element.get_text(" ", strip=True).split())


def extract_tier_slots(
    container: Tag,
) -> tuple[list[int | None], list[str]]:
    """Map the container's first four children onto the price tiers.

    Returns the slot list (``None`` for sold-out tiers) and the texts of
    the children that carried no price. A sold-out child only empties
    its own slot.
    """
    slots: list[int | None] = []
    sold_out: list[str] = []
    children = container.find_all(recursive=False)
    for child in children[: len(TIERS)]:
        text = _element_text(child)
        amount = get_euros(text)
        if amount is None or amount <= 0:
            sold_out.append(text)
            slots.append(None)
        else:
            slots.append(amount)
    return slots, sold_out


def classify_page(html: str, config: TrackerConfig) -> PageOutcome:
    """Classify raw page text according to *config*'s markers and selectors."""
    lower = html.lower()
    for marker in config.challenge_markers:
        if marker.lower() in lower:
            logger.debug("Challenge marker '%s' found", marker)
            return PageOutcome(PageStatus.SOFT_BLOCK)

    soup = BeautifulSoup(html, "lxml")
    title_el = soup.select_one(config.title_selector)
    title = _element_text(title_el) if title_el else ""
    if not title:
        return PageOutcome(PageStatus.MISSING_TITLE)

    for banner in config.site_error_titles:
        if banner in title:
            return PageOutcome(PageStatus.SITE_ERROR, title=title)

    container = soup.select_one(config.price_tier_selector)
    if container is None:
        return PageOutcome(PageStatus.MISSING_PRICE_BLOCK, title=title)

    slots, sold_out = extract_tier_slots(container)
    return PageOutcome(
        PageStatus.SUCCESS,
        title=title,
        slots=slots,
        sold_out=sold_out,
    )
