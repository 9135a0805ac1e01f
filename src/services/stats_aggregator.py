# src/services/stats_aggregator.py

"""Best-price-ever summary per product group."""

from collections.abc import Iterable

from src.models.observation import TIERS, Observation
from src.models.summary import Summary, TierMinimum


def _partition(
    observations: Iterable[Observation],
) -> dict[str, list[Observation]]:
    """Group observations by ``group_id`` in first-seen order."""
    groups: dict[str, list[Observation]] = {}
    for obs in observations:
        groups.setdefault(obs.group_id, []).append(obs)
    return groups


def lowest_for_tier(
    entries: list[Observation], tier: str,
) -> TierMinimum:
    """Cheapest positive price for *tier*; the first of equal prices wins."""
    best: Observation | None = None
    best_price = 0
    for entry in entries:
        price = entry.price_for(tier)
        if price is None or price <= 0:
            continue
        if best is None or price < best_price:
            best = entry
            best_price = price
    if best is None:
        return TierMinimum()
    return TierMinimum(
        price=best_price,
        timestamp=best.observed_at,
        name=best.display_name,
        url=best.source_url,
    )


def aggregate(observations: Iterable[Observation]) -> list[Summary]:
    """Compute one :class:`Summary` per group from the full history.

    Pure and deterministic: the same input always yields equal output.
    The summary ``url`` is the first observation's URL for the group,
    whichever observation won each tier.
    """
    return [
        Summary(
            group_id=group_id,
            url=entries[0].source_url,
            minimums={
                tier: lowest_for_tier(entries, tier) for tier in TIERS
            },
        )
        for group_id, entries in _partition(observations).items()
    ]
