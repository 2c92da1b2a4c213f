# utils/production_tracker/metrics.py
"""
Target and Aggregate Calculations for Production Tracker

Handles all metric calculations:
- Per-hour (tenure) target for an agent/task pair
- Totals across tracker entries
- Month-bucketed summaries
- Overview cards and per-agent / per-project aggregations

None of these raise on malformed records: missing or non-numeric values
count as 0 and undated entries are left out of monthly buckets.
"""

import calendar
import logging
import math
from collections.abc import Mapping
from typing import Any, Dict, List, Optional

import pandas as pd

from .constants import NUMERIC_COLUMNS, PRODUCTION_CEILING_MULTIPLIER, TASK_TARGET_KEYS
from .formatters import (
    Records,
    id_series,
    normalize_id,
    parse_date_time_series,
    to_number,
    to_optional_number,
    to_tracker_frame,
)

logger = logging.getLogger(__name__)

MONTHLY_COLUMNS = ['year', 'month', 'month_name'] + NUMERIC_COLUMNS


def _numeric(series: pd.Series) -> pd.Series:
    return series.map(to_number).astype(float)


def _fsum(series: pd.Series) -> float:
    # fsum is exact, so totals do not depend on record order
    return math.fsum(series)


class TrackerMetrics:
    """
    Metric calculations for tracker entries.

    Usage:
        metrics = TrackerMetrics(trackers_df, tz='Asia/Kolkata')

        totals = metrics.calculate_totals()
        monthly = metrics.prepare_monthly_summary()
        by_agent = metrics.aggregate_by_agent()
    """

    def __init__(self, records: Records, tz: str = 'UTC'):
        """
        Initialize with data.

        Args:
            records: Tracker entries (DataFrame or list of dicts)
            tz: Calendar timezone for month bucketing
        """
        self.df = to_tracker_frame(records)
        self.tz = tz

    # =========================================================================
    # TARGET CALCULATION
    # =========================================================================

    @staticmethod
    def resolve_task_target(task: Any) -> float:
        """First truthy of task_target / per_hour_target / target, else 0."""
        if not isinstance(task, Mapping):
            return 0.0
        for key in TASK_TARGET_KEYS:
            value = task.get(key)
            if value:
                return to_number(value)
        return 0.0

    @staticmethod
    def compute_base_target(task: Any, agent_tenure: Any) -> Optional[float]:
        """
        Per-hour target for an agent on a task: task_target x tenure.

        Args:
            task: Task dict from the "projects with tasks" dropdown
            agent_tenure: Agent's tenure multiplier

        Returns:
            Target rounded to 2 decimals, or None when task or tenure is
            missing (so the UI shows "—" rather than 0.00)
        """
        if not task or not isinstance(task, Mapping):
            return None

        tenure = to_optional_number(agent_tenure)
        if tenure is None or tenure <= 0:
            return None

        return round(TrackerMetrics.resolve_task_target(task) * tenure, 2)

    @staticmethod
    def production_ceiling(base_target: Any) -> Optional[float]:
        """Highest production accepted for a base target (double of it)."""
        target = to_optional_number(base_target)
        if target is None:
            return None
        return round(PRODUCTION_CEILING_MULTIPLIER * target, 2)

    # =========================================================================
    # TOTALS
    # =========================================================================

    def calculate_totals(self) -> Dict[str, float]:
        """
        Sum tenure_target, production and billable_hours.

        Returns:
            Dict with one float per numeric column (all 0.0 when empty)
        """
        return {
            column: _fsum(_numeric(self.df[column]))
            for column in NUMERIC_COLUMNS
        }

    def calculate_overview_metrics(self) -> Dict:
        """
        Calculate overview KPIs for display in metric cards.

        Returns:
            Totals plus entry_count, agent_count and achievement_percent
            (None when there is no target to compare against)
        """
        totals = self.calculate_totals()

        agents = id_series(self.df, 'user_id')
        agent_count = int(agents[agents != ''].nunique())

        achievement = None
        if totals['tenure_target'] > 0:
            achievement = round(totals['production'] / totals['tenure_target'] * 100, 1)

        return {
            **totals,
            'entry_count': len(self.df),
            'agent_count': agent_count,
            'achievement_percent': achievement,
        }

    # =========================================================================
    # MONTHLY SUMMARY
    # =========================================================================

    def prepare_monthly_summary(self) -> pd.DataFrame:
        """
        Bucket entries by calendar (year, month) of date_time in self.tz.

        Returns:
            DataFrame with year, month, month_name and the summed numeric
            columns, oldest month first
        """
        if self.df.empty:
            return pd.DataFrame(columns=MONTHLY_COLUMNS)

        stamps = parse_date_time_series(self.df['date_time'], self.tz)
        dated = stamps.notna()

        skipped = int((~dated).sum())
        if skipped:
            logger.warning(f"Monthly summary skipped {skipped} entries without a valid date_time")

        if not dated.any():
            return pd.DataFrame(columns=MONTHLY_COLUMNS)

        frame = pd.DataFrame({
            'year': stamps[dated].dt.year.astype(int),
            'month': stamps[dated].dt.month.astype(int),
        })
        for column in NUMERIC_COLUMNS:
            frame[column] = _numeric(self.df.loc[dated, column])

        monthly = (
            frame.groupby(['year', 'month'], sort=True)[NUMERIC_COLUMNS]
            .agg(_fsum)
            .reset_index()
        )
        monthly['month_name'] = monthly['month'].map(lambda m: calendar.month_name[int(m)])

        return monthly[MONTHLY_COLUMNS]

    # =========================================================================
    # GROUPED AGGREGATIONS
    # =========================================================================

    def _aggregate_by(self, id_column: str, name_column: str) -> pd.DataFrame:
        columns = [id_column, name_column, 'entries'] + NUMERIC_COLUMNS + ['achievement_percent']
        if self.df.empty:
            return pd.DataFrame(columns=columns)

        frame = pd.DataFrame({
            id_column: id_series(self.df, id_column),
            name_column: self.df[name_column].fillna('').astype(str),
        })
        for column in NUMERIC_COLUMNS:
            frame[column] = _numeric(self.df[column])

        grouped = frame.groupby(id_column, sort=False)
        result = grouped[NUMERIC_COLUMNS].agg(_fsum)
        result['entries'] = grouped.size()
        # Last non-empty display name wins
        result[name_column] = grouped[name_column].agg(
            lambda names: next((n for n in reversed(names.tolist()) if n), '')
        )
        result = result.reset_index()

        result['achievement_percent'] = [
            round(p / t * 100, 1) if t > 0 else None
            for p, t in zip(result['production'], result['tenure_target'])
        ]

        return result[columns].sort_values('production', ascending=False, kind='stable').reset_index(drop=True)

    def aggregate_by_agent(self) -> pd.DataFrame:
        """Totals per agent, highest production first."""
        return self._aggregate_by('user_id', 'user_name')

    def aggregate_by_project(self) -> pd.DataFrame:
        """Totals per project, highest production first."""
        return self._aggregate_by('project_id', 'project_name')


# =============================================================================
# LOOKUPS (project -> task -> target, agent -> tenure)
# =============================================================================

def tasks_for_project(projects: Any, project_id: Any) -> List[Dict]:
    """Tasks nested under a project in the "projects with tasks" list."""
    wanted = normalize_id(project_id)
    if not wanted or not projects:
        return []

    for project in projects:
        if isinstance(project, Mapping) and normalize_id(project.get('project_id')) == wanted:
            tasks = project.get('tasks') or []
            return [t for t in tasks if isinstance(t, Mapping)]
    return []


def find_task(projects: Any, project_id: Any, task_id: Any) -> Optional[Dict]:
    """Task `task_id` if it belongs to project `project_id`, else None."""
    wanted = normalize_id(task_id)
    if not wanted:
        return None
    for task in tasks_for_project(projects, project_id):
        if normalize_id(task.get('task_id')) == wanted:
            return task
    return None


def find_agent(agents: Any, agent_id: Any) -> Optional[Dict]:
    wanted = normalize_id(agent_id)
    if not wanted or not agents:
        return None
    for agent in agents:
        if isinstance(agent, Mapping) and normalize_id(agent.get('user_id')) == wanted:
            return agent
    return None


def agent_tenure(agent: Any) -> Optional[float]:
    """Tenure multiplier of an agent/user dict (user_tenure, else tenure)."""
    if not isinstance(agent, Mapping):
        return None
    value = agent.get('user_tenure')
    if value is None:
        value = agent.get('tenure')
    return to_optional_number(value)


# =============================================================================
# FUNCTIONAL SHORTCUTS
# =============================================================================

compute_base_target = TrackerMetrics.compute_base_target
production_ceiling = TrackerMetrics.production_ceiling


def aggregate_totals(records: Records) -> Dict[str, float]:
    return TrackerMetrics(records).calculate_totals()


def build_monthly_summary(records: Records, tz: str = 'UTC') -> pd.DataFrame:
    return TrackerMetrics(records, tz=tz).prepare_monthly_summary()
