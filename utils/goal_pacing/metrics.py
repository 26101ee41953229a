# utils/goal_pacing/metrics.py
"""
Goal Pacing Calculations

Handles all pacing math:
- Residual daily quota from target, sales so far and days remaining
- Today's shortfall and daily progress
- Completion status (pendente / atingido / acima)
- Overall progress vs time elapsed (color tier)

Everything here is pure; snapshots are rebuilt on every call.
"""

import logging
from dataclasses import dataclass, asdict
from typing import Dict, List, Optional

from .constants import (
    STATUS_PENDING, STATUS_REACHED, STATUS_ABOVE,
    TIER_AHEAD, TIER_NEAR, TIER_BEHIND,
    AHEAD_THRESHOLD, BEHIND_THRESHOLD,
    CATEGORY_NAMES,
)
from .workdays import WorkdayResolution

logger = logging.getLogger(__name__)


# =============================================================================
# CALCULATOR
# =============================================================================

def compute_daily_quota(target: float, cumulative_excl_today: float, days_remaining: int) -> float:
    """
    Residual daily quota.

    Args:
        target: Period target for the subject/category
        cumulative_excl_today: Sales from period start up to yesterday
        days_remaining: Working days from today (inclusive) to period end

    Returns:
        Amount still needed per remaining working day; 0 once the target is
        met or the period is closed
    """
    remaining = max(0.0, float(target) - float(cumulative_excl_today))
    if days_remaining <= 0:
        return 0.0
    return remaining / days_remaining


def compute_shortfall(daily_quota: float, today_sales: float) -> float:
    return max(0.0, daily_quota - today_sales)


def compute_daily_progress(today_sales: float, daily_quota: float) -> float:
    """today_sales as a percent of the quota (not capped; 0 when quota is 0)."""
    if daily_quota <= 0:
        return 0.0
    return today_sales / daily_quota * 100


def classify_status(today_sales: float, daily_quota: float) -> str:
    """
    Daily completion status.

    A zero quota reads as pending, so a subject who already met the period
    target sees no completion banner.
    """
    if daily_quota <= 0:
        return STATUS_PENDING
    if today_sales < daily_quota:
        return STATUS_PENDING
    if today_sales == daily_quota:
        return STATUS_REACHED
    return STATUS_ABOVE


def compute_overall_progress(cumulative_incl_today: float, target: float) -> float:
    """Period progress percent, clamped to [0, 100]."""
    if target <= 0:
        return 0.0
    return min(100.0, max(0.0, cumulative_incl_today / target * 100))


@dataclass(frozen=True)
class DailyProgressSnapshot:
    daily_quota: float
    today_sales: float
    today_shortfall: float
    total_working_days: int
    working_days_remaining: int
    daily_progress_percent: float
    time_elapsed_percent: float
    status: str


def build_snapshot(
    target: float,
    cumulative_excl_today: float,
    today_sales: float,
    workdays: WorkdayResolution
) -> DailyProgressSnapshot:
    """
    Combine a workday resolution with sales figures into today's snapshot.

    Args:
        target: Period target
        cumulative_excl_today: Sales up to yesterday
        today_sales: Sales today
        workdays: Resolved working days for the subject

    Returns:
        DailyProgressSnapshot
    """
    quota = compute_daily_quota(target, cumulative_excl_today, workdays.days_remaining)

    return DailyProgressSnapshot(
        daily_quota=quota,
        today_sales=today_sales,
        today_shortfall=compute_shortfall(quota, today_sales),
        total_working_days=workdays.total_working_days,
        working_days_remaining=workdays.days_remaining,
        daily_progress_percent=compute_daily_progress(today_sales, quota),
        time_elapsed_percent=workdays.time_elapsed_percent,
        status=classify_status(today_sales, quota),
    )


# =============================================================================
# COMPARATOR
# =============================================================================

def compare_to_time_elapsed(progress_percent: float, time_elapsed_percent: float) -> str:
    """
    Color tier for progress against the share of working days already gone.

    difference > 10 is ahead, -5..10 is near, below -5 is behind.
    """
    difference = progress_percent - time_elapsed_percent
    if difference > AHEAD_THRESHOLD:
        return TIER_AHEAD
    if difference >= BEHIND_THRESHOLD:
        return TIER_NEAR
    return TIER_BEHIND


# =============================================================================
# RESULT CONTAINER
# =============================================================================

@dataclass
class MetricData:
    """One category card: numeric values only, formatting happens in fragments."""

    title: str
    category: str
    today_sales: float
    period_sales: float
    target: float
    daily_target: float
    missing_today: float
    remaining_days: int
    status: str
    overall_progress_percent: float = 0.0
    daily_progress_percent: float = 0.0
    time_elapsed_percent: float = 0.0
    color_tier: str = TIER_NEAR

    def to_dict(self) -> Dict:
        return asdict(self)


def build_metric(
    category: str,
    target: float,
    sales_to_yesterday: float,
    sales_today: float,
    period_sales: float,
    workdays: WorkdayResolution,
    title: Optional[str] = None
) -> MetricData:
    """
    Full card for one category.

    Args:
        category: Reporting category key
        target: Period target (0 allowed; yields a zeroed card)
        sales_to_yesterday: Period sales before today
        sales_today: Today's sales
        period_sales: Period sales including today
        workdays: Resolved working days
        title: Card title (defaults to the category display name)
    """
    snapshot = build_snapshot(target, sales_to_yesterday, sales_today, workdays)
    overall = compute_overall_progress(period_sales, target)

    return MetricData(
        title=title or CATEGORY_NAMES.get(category, category),
        category=category,
        today_sales=sales_today,
        period_sales=period_sales,
        target=target,
        daily_target=snapshot.daily_quota,
        missing_today=snapshot.today_shortfall,
        remaining_days=snapshot.working_days_remaining,
        status=snapshot.status,
        overall_progress_percent=overall,
        daily_progress_percent=snapshot.daily_progress_percent,
        time_elapsed_percent=snapshot.time_elapsed_percent,
        color_tier=compare_to_time_elapsed(overall, snapshot.time_elapsed_percent),
    )


def summarize_metrics(metrics: List[MetricData]) -> Dict:
    """Counts per status across a card list (used for the page header)."""
    summary = {STATUS_PENDING: 0, STATUS_REACHED: 0, STATUS_ABOVE: 0}
    for metric in metrics:
        summary[metric.status] = summary.get(metric.status, 0) + 1
    summary['total'] = len(metrics)
    return summary
