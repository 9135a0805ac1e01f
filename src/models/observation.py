# src/models/observation.py

"""Price observation model: one successful extraction from one page."""

from dataclasses import dataclass

# Condition tiers, worst to best, in page order
TIERS: tuple[str, ...] = ("gut", "sehr_gut", "hervorragend", "premium")


@dataclass
class Observation:
    """Tier prices for one product page at one point in time."""

    group_id: str
    source_url: str
    display_name: str
    observed_at: str
    gut: int | None = None
    sehr_gut: int | None = None
    hervorragend: int | None = None
    premium: int | None = None

    @property
    def tier_prices(self) -> tuple[int | None, ...]:
        """The four tier prices in :data:`TIERS` order."""
        return tuple(self.price_for(tier) for tier in TIERS)

    def price_for(self, tier: str) -> int | None:
        """Return the price reported for *tier*, or ``None`` if absent."""
        if tier not in TIERS:
            msg = f"Unknown tier: {tier}"
            raise KeyError(msg)
        price: int | None = getattr(self, tier)
        return price

    @classmethod
    def from_slots(
        cls,
        group_id: str,
        source_url: str,
        display_name: str,
        observed_at: str,
        slots: list[int | None],
    ) -> "Observation":
        """Build an observation from up to four positional tier slots."""
        padded = (list(slots) + [None] * len(TIERS))[: len(TIERS)]
        return cls(
            group_id,
            source_url,
            display_name,
            observed_at,
            **dict(zip(TIERS, padded)),
        )
