# utils/goal_pacing/__init__.py
"""
Goal Pacing Module

Daily-goal pacing for stores and collaborators.
All components are self-contained within this module.

Components:
- workdays: Periods, absences and working-day resolution
- categories: Category alias table (ledger tags / vendor product groups)
- queries: Async SQL reads (periods, subjects, targets, absences, ledger sales)
- aggregator: Category sales sums from the ledger or the vendor API
- metrics: Daily quota, status and progress-vs-time comparison
- orchestrator: Store / collaborator / team metric assembly
- access_control: Role-based visibility and role categories
- request_guard: Stale-response guard for session state
- charts: Altair visualizations
- export: Formatted Excel report generation

Usage:
    from utils.goal_pacing import (
        AccessControl,
        GoalPacingQueries,
        build_orchestrator,
        GoalPacingCharts,
        GoalPacingExport,
    )
"""

from .access_control import AccessControl, categories_for_role
from .aggregator import SalesAggregator, DateWindow, SOURCE_LEDGER, SOURCE_VENDOR
from .categories import CategoryAliasTable, load_alias_table
from .charts import GoalPacingCharts
from .exceptions import GoalPacingError, StoreNotFoundError, CategoryConfigError
from .export import GoalPacingExport
from .metrics import (
    MetricData,
    DailyProgressSnapshot,
    compute_daily_quota,
    compare_to_time_elapsed,
)
from .orchestrator import GoalPacingOrchestrator, build_orchestrator
from .queries import GoalPacingQueries, Subject
from .request_guard import RequestGuard, get_request_guard
from .workdays import (
    Period,
    AbsenceKind,
    AbsenceRecord,
    AbsentTodayPolicy,
    current_period,
    resolve_workdays,
    today_in_timezone,
)

# Constants
from .constants import (
    COLORS,
    STORE_CATEGORIES,
    CATEGORY_NAMES,
    FULL_ACCESS_ROLES,
    STORE_ACCESS_ROLES,
)

__all__ = [
    # Classes
    'AccessControl',
    'SalesAggregator',
    'DateWindow',
    'CategoryAliasTable',
    'GoalPacingCharts',
    'GoalPacingExport',
    'MetricData',
    'DailyProgressSnapshot',
    'GoalPacingOrchestrator',
    'GoalPacingQueries',
    'Subject',
    'RequestGuard',
    'Period',
    'AbsenceKind',
    'AbsenceRecord',
    'AbsentTodayPolicy',

    # Functions
    'categories_for_role',
    'load_alias_table',
    'compute_daily_quota',
    'compare_to_time_elapsed',
    'build_orchestrator',
    'get_request_guard',
    'current_period',
    'resolve_workdays',
    'today_in_timezone',

    # Exceptions
    'GoalPacingError',
    'StoreNotFoundError',
    'CategoryConfigError',

    # Constants
    'SOURCE_LEDGER',
    'SOURCE_VENDOR',
    'COLORS',
    'STORE_CATEGORIES',
    'CATEGORY_NAMES',
    'FULL_ACCESS_ROLES',
    'STORE_ACCESS_ROLES',
]

__version__ = '1.0.0'
