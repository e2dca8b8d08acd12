"""
AI Usage Attribution.

Merges monthly billing totals and daily per-user activity into per-user
time series with an estimated cost per unit of activity.
"""

from .core.projection import estimate_total_cost, project_points_to_cost
from .core.series import build_user_series
from .core.synthesis import synthesize_daily_usage

__all__ = [
    "build_user_series",
    "estimate_total_cost",
    "project_points_to_cost",
    "synthesize_daily_usage",
]
