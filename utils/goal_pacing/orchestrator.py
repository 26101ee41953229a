# utils/goal_pacing/orchestrator.py
"""
Multi-Category Fetch Orchestrator

Builds the MetricData cards for a store or a collaborator in one pass:
- targets, absences and three sales windows (today, period-to-date,
  period-to-yesterday) are read concurrently
- every category of a window comes from one consolidated aggregator call
- a failed read degrades only what it feeds, with a logged error

Also builds the manager's team progress table.
"""

import asyncio
import logging
from datetime import date, timedelta
from typing import Dict, List, Optional, Tuple, Union

import pandas as pd

from utils.config import config
from utils.vendor_api import VendorSalesClient
from .access_control import categories_for_role
from .aggregator import SalesAggregator, DateWindow, SALES_SOURCES, SOURCE_LEDGER, SOURCE_VENDOR
from .categories import CategoryAliasTable, load_alias_table
from .constants import STORE_CATEGORIES, SUNDAY_CLOSED_REGIONS
from .exceptions import GoalPacingError, StoreNotFoundError
from .metrics import MetricData, build_metric, compute_overall_progress, compare_to_time_elapsed
from .queries import GoalPacingQueries, Subject
from .workdays import (
    AbsentTodayPolicy,
    Period,
    resolve_workdays,
    today_in_timezone,
)

logger = logging.getLogger(__name__)

TEAM_PROGRESS_COLUMNS = [
    'user_id', 'name', 'role', 'category', 'target', 'period_sales',
    'progress_percent', 'time_elapsed_percent', 'color_tier',
]


class SalesWindows:
    """Today / period-to-date / period-to-yesterday windows, clipped to the period."""

    def __init__(self, period: Period, today: date):
        self.today = DateWindow(today, today).clip(period)
        self.to_date = DateWindow(period.start_date, today).clip(period)
        self.to_yesterday = DateWindow(period.start_date, today - timedelta(days=1)).clip(period)


class GoalPacingOrchestrator:
    """
    Assemble goal pacing metrics.

    Usage:
        async with get_vendor_client() as client:
            orchestrator = build_orchestrator(client)
            cards = await orchestrator.fetch_store_metrics(store_id, period)
    """

    def __init__(
        self,
        queries: GoalPacingQueries,
        aggregator: SalesAggregator,
        today: date,
        absent_today_policy: AbsentTodayPolicy = AbsentTodayPolicy.EXCLUDE,
        store_source: str = SOURCE_VENDOR,
        collaborator_source: str = SOURCE_LEDGER
    ):
        """
        Raises:
            GoalPacingError: unknown sales source or policy, or a vendor
                source without a vendor client
        """
        for label, source in (("store", store_source), ("collaborator", collaborator_source)):
            if source not in SALES_SOURCES:
                raise GoalPacingError(
                    f"Unknown {label} sales source '{source}' (expected one of {SALES_SOURCES})"
                )
            if source == SOURCE_VENDOR and aggregator.vendor_client is None:
                raise GoalPacingError(
                    f"The {label} sales source is '{SOURCE_VENDOR}' but no vendor client was given"
                )

        try:
            self.absent_today_policy = AbsentTodayPolicy(absent_today_policy)
        except ValueError:
            raise GoalPacingError(
                f"Unknown absent-today policy '{absent_today_policy}' "
                f"(expected one of {[p.value for p in AbsentTodayPolicy]})"
            )

        self.queries = queries
        self.aggregator = aggregator
        self.today = today
        self.store_source = store_source
        self.collaborator_source = collaborator_source

    # =========================================================================
    # STORE
    # =========================================================================

    async def find_store(self, store: Union[Subject, int]) -> Optional[Subject]:
        """Store subject, or None (logged) when it cannot be identified."""
        if isinstance(store, Subject):
            return store
        try:
            return await self.queries.get_store(store)
        except StoreNotFoundError as e:
            logger.error(f"❌ {e}")
        except Exception as e:
            logger.error(f"❌ Store lookup failed for {store}: {e}")
        return None

    async def fetch_store_metrics(
        self,
        store: Union[Subject, int],
        period: Period
    ) -> List[MetricData]:
        """
        Category cards for a store.

        Returns an empty list when the store cannot be identified; every other
        failure yields zeroed values for the categories it feeds.
        """
        store = await self.find_store(store)
        if store is None:
            return []

        windows = SalesWindows(period, self.today)

        targets, (today_sales, to_date_sales, to_yesterday_sales) = await asyncio.gather(
            self._read_targets(
                self.queries.get_store_targets(store.id, period.id),
                STORE_CATEGORIES,
                f"store {store.id}",
            ),
            self._sum_windows(store, STORE_CATEGORIES, windows, self.store_source),
        )

        closed_on_sundays = (store.region or '').lower() in SUNDAY_CLOSED_REGIONS
        workdays = resolve_workdays(
            period, [], self.today,
            absent_today_policy=self.absent_today_policy,
            closed_on_sundays=closed_on_sundays,
        )

        metrics = [
            build_metric(
                category,
                target=targets[category],
                sales_to_yesterday=to_yesterday_sales[category],
                sales_today=today_sales[category],
                period_sales=to_date_sales[category],
                workdays=workdays,
            )
            for category in STORE_CATEGORIES
            if category in targets
        ]

        logger.info(f"✅ Store {store.name}: {len(metrics)} category cards for {period.label}")
        return metrics

    # =========================================================================
    # COLLABORATOR
    # =========================================================================

    async def fetch_collaborator_metrics(
        self,
        collaborator: Union[Subject, int],
        period: Period
    ) -> List[MetricData]:
        """Individual category cards for a collaborator (role decides the categories)."""
        if not isinstance(collaborator, Subject):
            user_id = collaborator
            try:
                collaborator = await self.queries.get_collaborator(user_id)
            except Exception as e:
                logger.error(f"❌ Collaborator lookup failed for {user_id}: {e}")
                return []
            if collaborator is None:
                logger.warning(f"⚠️ Collaborator {user_id} not found")
                return []

        categories = categories_for_role(collaborator.role)
        windows = SalesWindows(period, self.today)

        targets, absences, (today_sales, to_date_sales, to_yesterday_sales) = await asyncio.gather(
            self._read_targets(
                self.queries.get_collaborator_targets(collaborator.id, period.id),
                categories,
                f"collaborator {collaborator.id}",
            ),
            self._read_absence_dates([collaborator.id], period),
            self._sum_windows(collaborator, categories, windows, self.collaborator_source),
        )

        workdays = resolve_workdays(
            period,
            absences.get(collaborator.id, []),
            self.today,
            absent_today_policy=self.absent_today_policy,
        )

        metrics = [
            build_metric(
                category,
                target=targets[category],
                sales_to_yesterday=to_yesterday_sales[category],
                sales_today=today_sales[category],
                period_sales=to_date_sales[category],
                workdays=workdays,
            )
            for category in categories
            if category in targets
        ]

        logger.info(
            f"✅ Collaborator {collaborator.name}: {len(metrics)} category cards for {period.label}"
        )
        return metrics

    # =========================================================================
    # TEAM
    # =========================================================================

    async def fetch_team_progress(
        self,
        store: Union[Subject, int],
        period: Period
    ) -> pd.DataFrame:
        """
        Period progress of every collaborator with targets, one row per category.

        Each row's tier compares the collaborator's progress with their own
        time elapsed (own absences).
        """
        store = await self.find_store(store)
        if store is None:
            return pd.DataFrame(columns=TEAM_PROGRESS_COLUMNS)

        try:
            members, team_targets = await asyncio.gather(
                self.queries.get_team_members(store.id),
                self.queries.get_team_targets(store.id, period.id),
            )
        except Exception as e:
            logger.error(f"❌ Team read failed for store {store.id}: {e}")
            return pd.DataFrame(columns=TEAM_PROGRESS_COLUMNS)

        members = [m for m in members if team_targets.get(m.id)]
        if not members:
            return pd.DataFrame(columns=TEAM_PROGRESS_COLUMNS)

        to_date = SalesWindows(period, self.today).to_date
        absences = await self._read_absence_dates([m.id for m in members], period)

        sales = await asyncio.gather(*[
            self._sum_window(m, list(team_targets[m.id]), to_date, self.collaborator_source)
            for m in members
        ])

        rows = []
        for member, member_sales in zip(members, sales):
            workdays = resolve_workdays(
                period,
                absences.get(member.id, []),
                self.today,
                absent_today_policy=self.absent_today_policy,
            )
            for category, target in team_targets[member.id].items():
                progress = compute_overall_progress(member_sales[category], target)
                rows.append({
                    'user_id': member.id,
                    'name': member.name,
                    'role': member.role,
                    'category': category,
                    'target': target,
                    'period_sales': member_sales[category],
                    'progress_percent': progress,
                    'time_elapsed_percent': workdays.time_elapsed_percent,
                    'color_tier': compare_to_time_elapsed(progress, workdays.time_elapsed_percent),
                })

        return pd.DataFrame(rows, columns=TEAM_PROGRESS_COLUMNS)

    # =========================================================================
    # HELPERS
    # =========================================================================

    async def _read_targets(self, read, categories: List[str], label: str) -> Dict[str, float]:
        """Targets, or zeroed targets for every category when the read fails."""
        try:
            return await read
        except Exception as e:
            logger.error(f"❌ Target read failed for {label}: {e}")
            return {category: 0.0 for category in categories}

    async def _read_absence_dates(self, user_ids: List[int], period: Period) -> Dict[int, List[date]]:
        try:
            records = await self.queries.get_absences(user_ids, period.start_date, period.end_date)
        except Exception as e:
            logger.error(f"❌ Absence read failed for users {user_ids}: {e}")
            return {}

        dates: Dict[int, List[date]] = {}
        for record in records:
            dates.setdefault(record.subject_id, []).append(record.day)
        return dates

    async def _sum_window(
        self,
        subject: Subject,
        categories: List[str],
        window: Optional[DateWindow],
        source: str
    ) -> Dict[str, float]:
        if window is None:
            return {category: 0.0 for category in categories}
        return await self.aggregator.sum_sales_by_category(subject, categories, window, source)

    async def _sum_windows(
        self,
        subject: Subject,
        categories: List[str],
        windows: SalesWindows,
        source: str
    ) -> Tuple[Dict[str, float], Dict[str, float], Dict[str, float]]:
        today, to_date, to_yesterday = await asyncio.gather(
            self._sum_window(subject, categories, windows.today, source),
            self._sum_window(subject, categories, windows.to_date, source),
            self._sum_window(subject, categories, windows.to_yesterday, source),
        )
        return today, to_date, to_yesterday


def build_orchestrator(
    vendor_client: VendorSalesClient = None,
    queries: GoalPacingQueries = None,
    aliases: CategoryAliasTable = None,
    today: date = None
) -> GoalPacingOrchestrator:
    """
    Orchestrator wired from configuration.

    Args:
        vendor_client: Open vendor client (required when a vendor source is configured)
        queries: Query object (defaults to GoalPacingQueries())
        aliases: Alias table (defaults to CATEGORY_ALIAS_FILE or built-ins)
        today: Override for the local date (defaults to today in TIMEZONE)
    """
    queries = queries or GoalPacingQueries()
    aliases = aliases or load_alias_table()
    if today is None:
        today = today_in_timezone(config.get_app_setting("TIMEZONE", "America/Sao_Paulo"))

    return GoalPacingOrchestrator(
        queries=queries,
        aggregator=SalesAggregator(queries, aliases, vendor_client=vendor_client),
        today=today,
        absent_today_policy=config.get_app_setting("ABSENT_TODAY_POLICY", "exclude"),
        store_source=config.get_app_setting("STORE_SALES_SOURCE", SOURCE_VENDOR),
        collaborator_source=config.get_app_setting("COLLABORATOR_SALES_SOURCE", SOURCE_LEDGER),
    )
