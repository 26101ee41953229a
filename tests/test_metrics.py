from datetime import date

import pytest

from utils.goal_pacing.constants import (
    STATUS_PENDING, STATUS_REACHED, STATUS_ABOVE,
    TIER_AHEAD, TIER_NEAR, TIER_BEHIND,
)
from utils.goal_pacing.metrics import (
    build_metric,
    build_snapshot,
    classify_status,
    compare_to_time_elapsed,
    compute_daily_progress,
    compute_daily_quota,
    compute_overall_progress,
    compute_shortfall,
    summarize_metrics,
)
from utils.goal_pacing.workdays import resolve_workdays


@pytest.fixture
def ten_days_left(period):
    """11/02/2024: ten working days remaining, no absences."""
    return resolve_workdays(period, [], date(2024, 2, 11))


# =============================================================================
# Daily quota
# =============================================================================

class TestDailyQuota:
    """Tests for the residual daily quota."""

    def test_reference_scenario(self):
        """10000 target, 4000 sold, 10 days left -> 600 per day."""
        assert compute_daily_quota(10000, 4000, 10) == pytest.approx(600)

    def test_target_met_gives_zero(self):
        """Nothing remaining means no quota, whatever the days left."""
        assert compute_daily_quota(5000, 5000, 10) == 0
        assert compute_daily_quota(5000, 7000, 3) == 0

    def test_period_closed_gives_zero(self):
        assert compute_daily_quota(10000, 4000, 0) == 0

    def test_never_negative(self):
        assert compute_daily_quota(0, 100, 5) == 0

    def test_non_increasing_in_cumulative_sales(self):
        """More sold so far never raises today's quota."""
        quotas = [compute_daily_quota(10000, sold, 10) for sold in range(0, 12001, 500)]
        assert all(a >= b for a, b in zip(quotas, quotas[1:]))


class TestStatus:
    """Tests for the daily status and shortfall."""

    @pytest.mark.parametrize('today_sales,status,shortfall', [
        (600, STATUS_REACHED, 0),
        (700, STATUS_ABOVE, 0),
        (0, STATUS_PENDING, 600),
        (450, STATUS_PENDING, 150),
    ])
    def test_reference_scenario(self, period, ten_days_left, today_sales, status, shortfall):
        """Status and shortfall around a 600 quota."""
        snapshot = build_snapshot(10000, 4000, today_sales, ten_days_left)

        assert snapshot.daily_quota == pytest.approx(600)
        assert snapshot.status == status
        assert snapshot.today_shortfall == pytest.approx(shortfall)

    def test_zero_quota_is_always_pending(self, ten_days_left):
        """A met target never reads as 'acima', even with sales today."""
        for today_sales in (0, 250):
            snapshot = build_snapshot(5000, 5000, today_sales, ten_days_left)
            assert snapshot.daily_quota == 0
            assert snapshot.status == STATUS_PENDING
            assert snapshot.today_shortfall == 0

    @pytest.mark.parametrize('quota,sales', [(600, 600), (600, 601), (100, 5000), (0, 10)])
    def test_no_shortfall_when_sales_cover_quota(self, quota, sales):
        assert compute_shortfall(quota, sales) == 0

    def test_classify_directly(self):
        assert classify_status(599.99, 600) == STATUS_PENDING
        assert classify_status(600, 600) == STATUS_REACHED
        assert classify_status(600.01, 600) == STATUS_ABOVE


class TestProgress:
    """Tests for daily and overall progress percents."""

    def test_daily_progress_unbounded(self):
        """Selling three times the quota is 300%."""
        assert compute_daily_progress(1800, 600) == pytest.approx(300)

    def test_daily_progress_zero_quota(self):
        assert compute_daily_progress(500, 0) == 0

    def test_overall_progress_clamped(self):
        assert compute_overall_progress(15000, 10000) == 100
        assert compute_overall_progress(-200, 10000) == 0
        assert compute_overall_progress(2500, 10000) == pytest.approx(25)

    def test_overall_progress_zero_target(self):
        assert compute_overall_progress(500, 0) == 0


# =============================================================================
# Comparator
# =============================================================================

class TestCompareToTimeElapsed:
    """Tests for the progress vs time-elapsed tier."""

    @pytest.mark.parametrize('progress,elapsed,tier', [
        (80, 50, TIER_AHEAD),
        (60.01, 50, TIER_AHEAD),
        (60, 50, TIER_NEAR),
        (50, 50, TIER_NEAR),
        (45, 50, TIER_NEAR),
        (44.99, 50, TIER_BEHIND),
        (0, 70, TIER_BEHIND),
    ])
    def test_thresholds(self, progress, elapsed, tier):
        assert compare_to_time_elapsed(progress, elapsed) == tier


# =============================================================================
# MetricData
# =============================================================================

class TestBuildMetric:
    """Tests for full category cards."""

    def test_card_values(self, ten_days_left):
        metric = build_metric(
            'geral', target=10000, sales_to_yesterday=4000,
            sales_today=700, period_sales=4700, workdays=ten_days_left,
        )

        assert metric.title == 'Venda Geral'
        assert metric.daily_target == pytest.approx(600)
        assert metric.missing_today == 0
        assert metric.remaining_days == 10
        assert metric.status == STATUS_ABOVE
        assert metric.overall_progress_percent == pytest.approx(47)
        # 21 of 31 days elapsed (67.7%): 47% is behind
        assert metric.color_tier == TIER_BEHIND

    def test_zero_target_card(self, ten_days_left):
        """Target 0 yields a zeroed card without errors."""
        metric = build_metric(
            'r_mais', target=0, sales_to_yesterday=0,
            sales_today=0, period_sales=0, workdays=ten_days_left,
        )

        assert metric.daily_target == 0
        assert metric.overall_progress_percent == 0
        assert metric.status == STATUS_PENDING

    def test_summary_counts(self, ten_days_left):
        metrics = [
            build_metric('geral', 10000, 4000, 700, 4700, ten_days_left),
            build_metric('r_mais', 1000, 400, 60, 460, ten_days_left),
            build_metric('saude', 1000, 400, 0, 400, ten_days_left),
        ]
        summary = summarize_metrics(metrics)

        assert summary == {'pendente': 1, 'atingido': 1, 'acima': 1, 'total': 3}
