# utils/production_tracker/__init__.py
"""
Production Tracker Module

Utilities for the tracker, tracker report, billable report, project
and user management pages.
All components are self-contained within this module.

Components:
- access_control: Roles and capability table
- queries: Backend endpoints, dropdown cache, stale-response guard
- metrics: Base target, totals, monthly summary, group aggregations
- filters: Filter logic and sidebar filter form
- selection: Entry-form selection reducer
- validators: Form validation
- billable: Daily / monthly billable report tables and totals
- users: User table and task assignment helpers
- charts: Altair visualizations
- export: Formatted Excel report generation

Usage:
    from utils.production_tracker import (
        AccessControl,
        TrackerQueries,
        TrackerMetrics,
        TrackerFilters,
        TrackerCharts,
        TrackerExport,
    )
"""

from .access_control import AccessControl, Capabilities, Role, resolve_role
from .queries import LatestSnapshot, TrackerQueries
from .metrics import (
    TrackerMetrics,
    aggregate_totals,
    build_monthly_summary,
    compute_base_target,
    find_task,
    production_ceiling,
    tasks_for_project,
)
from .filters import (
    TrackerFilterValues,
    TrackerFilters,
    apply_filters,
    apply_text_search,
    narrow_task_options,
)
from .selection import TrackerSelection, reconcile_filter_selection, reduce_selection
from .validators import TrackerValidator, normalize_shift
from .charts import TrackerCharts
from .export import TrackerExport, build_billable_file_name, build_file_name
from .billable import (
    DAILY_COLUMNS,
    MONTHLY_COLUMNS,
    billable_totals,
    month_year_label,
    prepare_daily_billable,
    prepare_monthly_billable,
    to_billable_display,
)
from .users import (
    as_id_list,
    plan_task_assignments,
    prepare_user_table,
    to_backend_ids,
    toggle_team_member,
)

# Constants
from .constants import (
    COLORS,
    SHIFT_TYPES,
    VIEW_LABELS,
    VIEW_PAGES,
    CHART_HEIGHT,
)

__all__ = [
    # Classes
    'AccessControl',
    'Capabilities',
    'Role',
    'TrackerQueries',
    'LatestSnapshot',
    'TrackerMetrics',
    'TrackerFilterValues',
    'TrackerFilters',
    'TrackerSelection',
    'TrackerValidator',
    'TrackerCharts',
    'TrackerExport',

    # Functions
    'resolve_role',
    'aggregate_totals',
    'build_monthly_summary',
    'compute_base_target',
    'find_task',
    'production_ceiling',
    'tasks_for_project',
    'apply_filters',
    'apply_text_search',
    'narrow_task_options',
    'reduce_selection',
    'reconcile_filter_selection',
    'normalize_shift',
    'build_file_name',
    'build_billable_file_name',
    'billable_totals',
    'month_year_label',
    'prepare_daily_billable',
    'prepare_monthly_billable',
    'to_billable_display',
    'as_id_list',
    'plan_task_assignments',
    'prepare_user_table',
    'to_backend_ids',
    'toggle_team_member',

    # Constants
    'COLORS',
    'DAILY_COLUMNS',
    'MONTHLY_COLUMNS',
    'SHIFT_TYPES',
    'VIEW_LABELS',
    'VIEW_PAGES',
    'CHART_HEIGHT',
]

__version__ = '1.0.0'
