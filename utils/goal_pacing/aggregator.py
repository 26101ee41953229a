# utils/goal_pacing/aggregator.py
"""
Sales Aggregator

Sums net sales for a subject (store or collaborator), per reporting
category, over a date window, from either source:
- ledger: local vendas / vendas_loja tables, one query per call
- vendor: sales API, one unfiltered request for 'geral' plus one request
  for every configured product group, partitioned client-side

Reporting categories are expanded through the CategoryAliasTable.
Results never contain None; categories with no rows are 0.0.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple

import pandas as pd

from utils.vendor_api import (
    VendorSalesClient,
    GROUP_BY_STORE,
    GROUP_BY_STORE_GROUP,
    GROUP_BY_EMPLOYEE_STORE,
    GROUP_BY_EMPLOYEE_STORE_GROUP,
)
from .categories import CategoryAliasTable
from .constants import GENERAL_CATEGORY
from .exceptions import GoalPacingError
from .queries import GoalPacingQueries, Subject
from .workdays import Period

logger = logging.getLogger(__name__)

SOURCE_LEDGER = 'ledger'
SOURCE_VENDOR = 'vendor'
SALES_SOURCES = (SOURCE_LEDGER, SOURCE_VENDOR)


@dataclass(frozen=True)
class DateWindow:
    """Inclusive date range for a sales sum."""

    start: date
    end: date

    @property
    def is_empty(self) -> bool:
        return self.end < self.start

    def clip(self, period: Period) -> Optional["DateWindow"]:
        """Intersection with the period, None when they don't overlap."""
        start = max(self.start, period.start_date)
        end = min(self.end, period.end_date)
        if end < start:
            return None
        return DateWindow(start, end)


def _code_as_int(code) -> Optional[int]:
    try:
        return int(str(code).strip())
    except (TypeError, ValueError):
        return None


class SalesAggregator:
    """
    Category sales sums for a subject.

    Usage:
        aggregator = SalesAggregator(queries, aliases, vendor_client=client)

        totals = await aggregator.sum_sales_by_category(
            store, ['geral', 'r_mais'], DateWindow(start, end), source='vendor'
        )
    """

    def __init__(
        self,
        queries: GoalPacingQueries,
        aliases: CategoryAliasTable,
        vendor_client: VendorSalesClient = None
    ):
        self.queries = queries
        self.aliases = aliases
        self.vendor_client = vendor_client

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    async def sum_sales(
        self,
        subject: Subject,
        category: str,
        window: DateWindow,
        source: str = SOURCE_LEDGER
    ) -> float:
        """Net sales of one reporting category."""
        totals = await self.sum_sales_by_category(subject, [category], window, source)
        return totals.get(category, 0.0)

    async def sum_sales_by_category(
        self,
        subject: Subject,
        categories: Iterable[str],
        window: DateWindow,
        source: str = SOURCE_LEDGER
    ) -> Dict[str, float]:
        """
        Net sales per reporting category, in as few round trips as the source allows.

        Args:
            subject: Store or collaborator
            categories: Reporting categories
            window: Inclusive date range
            source: 'ledger' or 'vendor'

        Returns:
            Dict category -> total (every requested category present).
            A failed source read is logged and its categories read 0.0.
        """
        categories = list(dict.fromkeys(categories))
        if not categories or window.is_empty:
            return {category: 0.0 for category in categories}

        if source == SOURCE_LEDGER:
            return await self._sum_ledger(subject, categories, window)
        if source == SOURCE_VENDOR:
            return await self._sum_vendor(subject, categories, window)

        raise GoalPacingError(f"Unknown sales source '{source}' (expected one of {SALES_SOURCES})")

    # =========================================================================
    # LEDGER
    # =========================================================================

    async def _sum_ledger(
        self,
        subject: Subject,
        categories: List[str],
        window: DateWindow
    ) -> Dict[str, float]:
        totals = {category: 0.0 for category in categories}
        tags = self.aliases.ledger_tags_for(categories)

        try:
            by_tag = await self.queries.get_ledger_sales(subject, tags, window.start, window.end)
        except Exception as e:
            logger.error(
                f"❌ Ledger sales read failed for {subject.kind} {subject.id} "
                f"({window.start}..{window.end}): {e}"
            )
            return totals

        for category in categories:
            totals[category] = sum(
                by_tag.get(tag, 0.0) for tag in self.aliases.ledger_categories_for(category)
            )
        return totals

    # =========================================================================
    # VENDOR
    # =========================================================================

    async def _sum_vendor(
        self,
        subject: Subject,
        categories: List[str],
        window: DateWindow
    ) -> Dict[str, float]:
        if self.vendor_client is None:
            raise GoalPacingError("Vendor sales source selected but no vendor client was given")

        totals = {category: 0.0 for category in categories}

        if not subject.is_store and not subject.vendor_code:
            logger.warning(
                f"⚠️ Collaborator {subject.id} has no vendor employee code, vendor sales read as 0"
            )
            return totals

        wants_general = GENERAL_CATEGORY in categories
        grouped = [
            c for c in categories
            if c != GENERAL_CATEGORY and self.aliases.group_codes_for(c)
        ]
        untracked = [c for c in categories if not self.aliases.is_vendor_tracked(c)]
        if untracked:
            logger.debug(f"Categories not tracked by the vendor API: {untracked}")

        requests = []
        if wants_general:
            requests.append(self._fetch_general(subject, window))
        if grouped:
            requests.append(self._fetch_grouped(subject, window))

        results = await asyncio.gather(*requests, return_exceptions=True)

        results = list(results)
        if wants_general:
            general = results.pop(0)
            if isinstance(general, Exception):
                logger.error(f"❌ Vendor '{GENERAL_CATEGORY}' sales failed for {subject.name}: {general}")
            else:
                totals[GENERAL_CATEGORY] = general

        if grouped:
            by_group = results.pop(0)
            if isinstance(by_group, Exception):
                logger.error(f"❌ Vendor grouped sales failed for {subject.name} {grouped}: {by_group}")
            else:
                for category in grouped:
                    codes = self.aliases.group_codes_for(category)
                    totals[category] = sum(by_group.get(code, 0.0) for code in codes)

        return totals

    def _request_filters(self, subject: Subject) -> Tuple[Optional[str], Optional[str]]:
        store_code = subject.vendor_code if subject.is_store else subject.store_vendor_code
        employee_code = None if subject.is_store else subject.vendor_code
        return store_code, employee_code

    def _refilter(self, df: pd.DataFrame, subject: Subject) -> pd.DataFrame:
        """Drop rows of other stores/employees the API let through."""
        if df.empty:
            return df

        store_code, employee_code = self._request_filters(subject)

        store_int = _code_as_int(store_code)
        if store_int is not None:
            df = df[df['CDFIL'] == store_int]

        employee_int = _code_as_int(employee_code)
        if employee_int is not None:
            df = df[df['CDFUN'] == employee_int]

        return df

    async def _fetch_general(self, subject: Subject, window: DateWindow) -> float:
        store_code, employee_code = self._request_filters(subject)

        df = await self.vendor_client.fetch_sales(
            window.start,
            window.end,
            store_code=store_code,
            employee_code=employee_code,
            group_by=GROUP_BY_STORE if subject.is_store else GROUP_BY_EMPLOYEE_STORE,
        )
        df = self._refilter(df, subject)
        return float(df['NET_VALUE'].sum()) if not df.empty else 0.0

    async def _fetch_grouped(self, subject: Subject, window: DateWindow) -> Dict[int, float]:
        """Net sales per product group code, every configured group in one request."""
        store_code, employee_code = self._request_filters(subject)

        df = await self.vendor_client.fetch_sales(
            window.start,
            window.end,
            store_code=store_code,
            employee_code=employee_code,
            group_codes=list(self.aliases.all_group_codes()),
            group_by=GROUP_BY_STORE_GROUP if subject.is_store else GROUP_BY_EMPLOYEE_STORE_GROUP,
        )
        df = self._refilter(df, subject)
        df = df[df['CDGRUPO'].notna()]
        if df.empty:
            return {}

        by_group = df.groupby('CDGRUPO')['NET_VALUE'].sum()
        return {int(code): float(value) for code, value in by_group.items()}
