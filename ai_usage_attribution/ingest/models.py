"""
Data models for ingested usage data.

Defines the immutable records both external sources are normalized into.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class CategoryTotal:
    """Billing total for one category over one billing period.

    Aggregates all billed activity for a product/model. Amounts are
    non-negative once normalized on ingestion.
    """
    category: str
    net_amount: float
    net_unit_count: float


@dataclass(frozen=True)
class DailyActivityRow:
    """One user's activity in one category on one day.

    acceptance_count <= generation_count is expected but not enforced.
    """
    day: str  # YYYY-MM-DD
    user: str
    category: str
    generation_count: float
    acceptance_count: float
    interaction_count: float
    top_language: Optional[str] = None
    top_feature: Optional[str] = None


@dataclass(frozen=True)
class SyntheticUsageRow:
    """Fabricated usage for one (day, user, category) cell.

    Produced only when fine-grained activity is unavailable.
    """
    day: str  # YYYY-MM-DD
    user: str
    category: str
    request_count: int
    net_amount: float

    def to_activity_row(self) -> DailyActivityRow:
        """Normalize into the activity shape consumed by the series builder."""
        return DailyActivityRow(
            day=self.day,
            user=self.user,
            category=self.category,
            generation_count=float(self.request_count),
            acceptance_count=0.0,
            interaction_count=float(self.request_count),
        )

    def to_dict(self) -> dict:
        return {
            "day": self.day,
            "user": self.user,
            "category": self.category,
            "requestCount": self.request_count,
            "netAmount": self.net_amount,
        }
