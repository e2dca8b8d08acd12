"""
Rate derivation.

Estimates a cost-per-unit for every observed category from billing totals
and activity counts, with a blended organization-wide fallback.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Sequence

from ai_usage_attribution.ingest.models import CategoryTotal, DailyActivityRow
from ai_usage_attribution.ingest.reader import normalize_amount

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateInfo:
    """Derived rate table plus fallback metadata.

    used_blended_rate is the caller-visible signal that at least one
    category's cost is attributed with the blended rate instead of its own.
    """
    rates: Dict[str, float] = field(default_factory=dict)
    used_blended_rate: bool = False
    blended_rate: float = 0.0
    cost_is_estimated: bool = True


def derive_rates(
    daily_rows: Sequence[DailyActivityRow],
    category_totals: Sequence[CategoryTotal]
) -> RateInfo:
    """Compute cost-per-unit for each category present in the daily rows.

    Billing and activity category names often don't match 1:1. Categories
    without a resolvable rate fall back to the blended rate so their cost
    isn't silently zero.

    Args:
        daily_rows: Real or synthetic activity rows
        category_totals: Billing totals for the same period

    Returns:
        RateInfo keyed by exactly the categories observed in daily_rows
    """
    billing: Dict[str, float] = {}
    for total in category_totals:
        billing[total.category] = billing.get(total.category, 0.0) + normalize_amount(total.net_amount)

    units_by_category: Dict[str, float] = {}
    for row in daily_rows:
        if not row.category:
            continue
        units_by_category[row.category] = (
            units_by_category.get(row.category, 0.0) + normalize_amount(row.generation_count)
        )

    total_units = sum(units_by_category.values())
    total_net = sum(billing.values())
    blended_rate = total_net / total_units if total_units > 0 else 0.0

    rates: Dict[str, float] = {}
    for category in sorted(units_by_category):
        units = units_by_category[category]
        if category in billing and units > 0:
            rates[category] = billing[category] / units
        else:
            rates[category] = 0.0

    used_blended_rate = False
    if blended_rate > 0:
        for category, rate in rates.items():
            if rate == 0:
                rates[category] = blended_rate
                used_blended_rate = True

    if used_blended_rate:
        logger.info(
            "Blended rate %.6f applied to categories without a billing match",
            blended_rate
        )

    return RateInfo(
        rates=rates,
        used_blended_rate=used_blended_rate,
        blended_rate=blended_rate
    )
