"""
Cost projection.

Pure functions applying a rate table to unit-count series. Both are total:
unknown categories and missing rates contribute 0, nothing raises.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Dict, List, Mapping, Sequence

from ai_usage_attribution.ingest.reader import normalize_amount

if TYPE_CHECKING:
    from .series import UserSeries


class ViewMode(Enum):
    """Unit in which a series is presented."""
    REQUESTS = "requests"
    COST = "cost"


@dataclass(frozen=True)
class DayPoint:
    """Per-category values for one day.

    Values are either unit counts or projected costs, never a mix.
    """
    day: str
    values: Dict[str, float] = field(default_factory=dict)

    def total(self) -> float:
        return sum(self.values.values())


def estimate_total_cost(series: "UserSeries", rates: Mapping[str, float]) -> float:
    """Sum of unit value x category rate over every point of a series."""
    cost = 0.0
    for point in series.points:
        for category, value in point.values.items():
            cost += normalize_amount(value) * normalize_amount(rates.get(category, 0.0))
    return cost


def project_points_to_cost(
    points: Sequence[DayPoint],
    rates: Mapping[str, float]
) -> List[DayPoint]:
    """New points on the same day axis with every value converted to cost."""
    return [
        DayPoint(
            day=point.day,
            values={
                category: normalize_amount(value) * normalize_amount(rates.get(category, 0.0))
                for category, value in point.values.items()
            }
        )
        for point in points
    ]


def project_series(
    series: "UserSeries",
    rates: Mapping[str, float],
    mode: ViewMode
) -> List[DayPoint]:
    """Points of a series in the requested view mode."""
    if mode == ViewMode.COST:
        return project_points_to_cost(series.points, rates)
    return list(series.points)
