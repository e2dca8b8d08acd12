"""
Synthetic telemetry generation.

Fabricates daily per-user/per-category usage from monthly billing totals
when fine-grained activity is unavailable. Output is fully determined by
the inputs and the seed:

1. Each (day, user) pair draws from its own seeded sub-stream
2. A daily intensity is skewed toward quiet days by an exponent > 1
3. The intensity becomes a spend budget spread across categories by spend weight
4. Cells below the materiality threshold are dropped
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from .date_range import DateRange, clamp_range, enumerate_days
from .random_source import substream
from ai_usage_attribution.ingest.models import CategoryTotal, SyntheticUsageRow
from ai_usage_attribution.ingest.reader import normalize_amount

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SynthesisSettings:
    """Tuning constants for the synthetic generator.

    Defaults are tuned for small organizations.
    """
    intensity_exponent: float = 1.3
    budget_scale: float = 0.22
    materiality_threshold: float = 0.05
    unit_scale: float = 0.12
    noise_floor: float = 0.6
    noise_span: float = 0.9
    min_weight: float = 0.001

    def __post_init__(self):
        """Validate constants keep the generator well-defined."""
        if self.intensity_exponent <= 1:
            raise ValueError("intensity_exponent must be > 1")
        for name in ("budget_scale", "materiality_threshold", "unit_scale", "min_weight"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be > 0")
        if self.noise_floor < 0:
            raise ValueError("noise_floor cannot be negative")
        if self.noise_span < 0:
            raise ValueError("noise_span cannot be negative")


DEFAULT_SETTINGS = SynthesisSettings()


def synthesize_daily_usage(
    start_date: str,
    end_date: str,
    users: Sequence[str],
    category_totals: Sequence[CategoryTotal],
    seed: str,
    settings: SynthesisSettings = DEFAULT_SETTINGS
) -> List[SyntheticUsageRow]:
    """Fabricate daily usage rows across an inclusive date span.

    Identical inputs always produce identical output. Nothing depends on
    the wall clock beyond the supplied span.

    Args:
        start_date: First day (YYYY-MM-DD)
        end_date: Last day, inclusive (YYYY-MM-DD)
        users: User identifiers to fabricate activity for
        category_totals: Billing totals the spend is modelled on
        seed: Base seed string
        settings: Generator constants

    Returns:
        Rows ordered by day, then user, then category order of the totals
    """
    span = clamp_range(DateRange(since=start_date, until=end_date))
    days = enumerate_days(span.since, span.until)

    totals = [
        (total.category, normalize_amount(total.net_amount), normalize_amount(total.net_unit_count))
        for total in category_totals
    ]
    weights = [max(settings.min_weight, amount) for _, amount, _ in totals]
    weight_sum = sum(weights)

    rows: List[SyntheticUsageRow] = []
    if not users or weight_sum <= 0:
        return rows

    for day in days:
        for user in users:
            stream = substream(seed, day, user)

            intensity = stream() ** settings.intensity_exponent
            budget = intensity * settings.budget_scale

            for (category, amount, unit_count), weight in zip(totals, weights):
                noise = settings.noise_floor + stream() * settings.noise_span
                net = budget * (weight / weight_sum) * noise * amount
                if net < settings.materiality_threshold:
                    continue

                share = net / max(settings.materiality_threshold, amount)
                units = max(1, round(share * unit_count * settings.unit_scale))

                rows.append(SyntheticUsageRow(
                    day=day,
                    user=user,
                    category=category,
                    request_count=units,
                    net_amount=net
                ))

    logger.debug(
        "Synthesized %d rows for %d users over %d days",
        len(rows), len(users), len(days)
    )
    return rows


@dataclass
class DayUserBreakdown:
    """One user's synthetic usage on a single day."""
    user: str
    total_net_amount: float = 0.0
    total_requests: int = 0
    by_category: Dict[str, float] = field(default_factory=dict)


def summarize_day_by_user(
    rows: Sequence[SyntheticUsageRow],
    day: str,
    top_users: int = 8
) -> List[DayUserBreakdown]:
    """Top users of one day by net amount, with per-category amounts.

    Every returned breakdown carries the same category keys, zero-filled.
    Ties on amount are ordered by user name.
    """
    by_user: Dict[str, DayUserBreakdown] = {}
    for row in rows:
        if row.day != day:
            continue
        entry = by_user.setdefault(row.user, DayUserBreakdown(user=row.user))
        entry.total_net_amount += row.net_amount
        entry.total_requests += row.request_count
        entry.by_category[row.category] = entry.by_category.get(row.category, 0.0) + row.net_amount

    ranked = sorted(by_user.values(), key=lambda e: (-e.total_net_amount, e.user))
    ranked = ranked[:max(top_users, 0)]

    categories = sorted({c for entry in ranked for c in entry.by_category})
    for entry in ranked:
        entry.by_category = {c: entry.by_category.get(c, 0.0) for c in categories}
    return ranked
