# src/models/summary.py

"""Per-group best-price summary derived from the observation history."""

from dataclasses import dataclass, field

from src.models.observation import TIERS


@dataclass(frozen=True)
class TierMinimum:
    """Cheapest price ever seen for one tier, with its provenance.

    ``price`` is 0 and the provenance fields are empty strings when no
    observation in the group ever reported the tier.
    """

    price: int = 0
    timestamp: str = ""
    name: str = ""
    url: str = ""


@dataclass
class Summary:
    """Running minimum per tier for one product group."""

    group_id: str
    url: str
    minimums: dict[str, TierMinimum] = field(
        default_factory=lambda: {tier: TierMinimum() for tier in TIERS}
    )

    def minimum_for(self, tier: str) -> TierMinimum:
        """Return the minimum for *tier* (empty placeholder if unset)."""
        return self.minimums.get(tier, TierMinimum())

    def to_row(self) -> list[str]:
        """Flatten to the 18 summary-file columns."""
        row: list[str] = [self.group_id, self.url]
        for tier in TIERS:
            best = self.minimum_for(tier)
            row.extend(
                [str(best.price), best.timestamp, best.name, best.url]
            )
        return row
