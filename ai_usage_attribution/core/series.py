"""
Per-user series construction.

Aggregates daily activity rows (real or synthetic) into one time series per
user on a shared day axis, with summary statistics and an estimated cost.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from .projection import DayPoint, estimate_total_cost
from .rates import RateInfo, derive_rates
from ai_usage_attribution.ingest.models import CategoryTotal, DailyActivityRow
from ai_usage_attribution.ingest.reader import normalize_amount

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UserSeries:
    """Time series and summary for one user."""
    user: str
    points: List[DayPoint]
    total_generated: float
    total_accepted: float
    accept_rate: float
    top_category: Optional[str] = None
    top_language: Optional[str] = None
    top_feature: Optional[str] = None


@dataclass(frozen=True)
class AttributionResult:
    """All user series of one computation plus the rates behind them."""
    users: List[UserSeries]
    categories: List[str]
    rates: RateInfo = field(default_factory=RateInfo)


def _top(totals: Dict[str, float]) -> Optional[str]:
    """Key with the largest total; ties go to the lexicographically first key."""
    if not totals:
        return None
    return min(totals.items(), key=lambda item: (-item[1], item[0]))[0]


def _add(totals: Dict[str, float], key: Optional[str], value: float) -> None:
    if key:
        totals[key] = totals.get(key, 0.0) + value


def _build_one(
    user: str,
    rows: Sequence[DailyActivityRow],
    axis: Sequence[str],
    categories: Sequence[str]
) -> UserSeries:
    by_day: Dict[str, List[DailyActivityRow]] = {}
    for row in rows:
        by_day.setdefault(row.day, []).append(row)

    points = []
    total_generated = 0.0
    total_accepted = 0.0
    category_totals: Dict[str, float] = {}
    language_totals: Dict[str, float] = {}
    feature_totals: Dict[str, float] = {}

    for day in axis:
        values = {category: 0.0 for category in categories}
        for row in by_day.get(day, []):
            if not row.category:
                continue
            generated = normalize_amount(row.generation_count)
            accepted = normalize_amount(row.acceptance_count)
            total_generated += generated
            total_accepted += accepted

            _add(category_totals, row.category, generated)
            _add(language_totals, row.top_language, generated)
            _add(feature_totals, row.top_feature, generated)

            values[row.category] = values.get(row.category, 0.0) + generated
        points.append(DayPoint(day=day, values=values))

    accept_rate = total_accepted / total_generated if total_generated > 0 else 0.0

    return UserSeries(
        user=user,
        points=points,
        total_generated=total_generated,
        total_accepted=total_accepted,
        accept_rate=accept_rate,
        top_category=_top(category_totals),
        top_language=_top(language_totals),
        top_feature=_top(feature_totals)
    )


def build_user_series(
    daily_rows: Sequence[DailyActivityRow],
    category_totals: Sequence[CategoryTotal],
    ensure_users: Optional[Iterable[str]] = None,
    days: Optional[Iterable[str]] = None
) -> AttributionResult:
    """Aggregate activity rows into one series per user.

    Every series spans the same day axis: the supplied days (if any)
    merged with every day observed in the rows. Users listed in
    ensure_users appear even without activity, with all-zero points.

    Args:
        daily_rows: Real or synthetic activity rows
        category_totals: Billing totals used to derive rates
        ensure_users: Users that must appear in the output (e.g. seats)
        days: Optional caller-supplied day axis

    Returns:
        AttributionResult with users sorted by estimated cost, descending
    """
    rate_info = derive_rates(daily_rows, category_totals)

    categories = sorted({row.category for row in daily_rows if row.category})
    axis = sorted({row.day for row in daily_rows} | set(days or ()))

    by_user: Dict[str, List[DailyActivityRow]] = {}
    for row in daily_rows:
        by_user.setdefault(row.user, []).append(row)
    for user in sorted(set(ensure_users or ())):
        by_user.setdefault(user, [])

    users = [
        _build_one(user, rows, axis, categories)
        for user, rows in by_user.items()
    ]
    costs = {series.user: estimate_total_cost(series, rate_info.rates) for series in users}
    users.sort(key=lambda series: (-costs[series.user], series.user))

    logger.debug(
        "Built %d user series over %d days and %d categories",
        len(users), len(axis), len(categories)
    )
    return AttributionResult(users=users, categories=categories, rates=rate_info)
