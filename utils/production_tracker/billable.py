# utils/production_tracker/billable.py
"""
Billable Hours Reports for Production Tracker

Reshapes the two backend billable reports for display and export:
- Daily: one row per agent and work day (/tracker/view_daily)
- Monthly: one row per agent and month with goal and pending target
  (/user_monthly_tracker/list)

Hours are summed exactly (math.fsum) in the TOTAL row; QC scores are
averaged over the rows that have one.
"""

import logging
import math
from collections.abc import Mapping
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

from .formatters import (
    MISSING,
    MONTH_ABBR,
    calendar_date,
    format_number,
    to_number,
    to_optional_number,
)

logger = logging.getLogger(__name__)

# output column -> backend keys, first non-empty wins
DAILY_SOURCES = {
    'user_id': ('user_id',),
    'user_name': ('user_name',),
    'team_name': ('team_name',),
    'work_date': ('work_date', 'date_time', 'date'),
    'assigned_hours': ('assigned_hours', 'assign_hours'),
    'worked_hours': ('total_billable_hours_day', 'billable_hours'),
    'qc_score': ('qc_score',),
    'trackers_count': ('trackers_count_day',),
    'daily_required_hours': ('daily_required_hours', 'tenure_target'),
}

MONTHLY_SOURCES = {
    'user_id': ('user_id',),
    'user_name': ('user_name',),
    'team_name': ('team_name',),
    'month_year': ('month_year',),
    'billable_hours': ('total_billable_hours',),
    'monthly_goal': ('monthly_total_target',),
    'pending_target': ('pending_target',),
    'avg_qc_score': ('avg_qc_score',),
}

# (column, header) in display / export order
DAILY_COLUMNS = [
    ('user_name', 'Agent'),
    ('team_name', 'Team'),
    ('work_date', 'Date'),
    ('assigned_hours', 'Assigned Hours'),
    ('worked_hours', 'Worked Hours'),
    ('qc_score', 'QC Score'),
    ('trackers_count', 'Tracker Count'),
    ('daily_required_hours', 'Daily Required Hours'),
]

MONTHLY_COLUMNS = [
    ('month_year', 'Month'),
    ('user_name', 'Agent'),
    ('team_name', 'Team'),
    ('billable_hours', 'Billable Hours Delivered'),
    ('monthly_goal', 'Monthly Goal'),
    ('pending_target', 'Pending Target'),
    ('avg_qc_score', 'Avg. QC Score'),
]

SUM_COLUMNS = {
    'assigned_hours', 'worked_hours', 'daily_required_hours',
    'billable_hours', 'monthly_goal', 'pending_target',
}
AVERAGE_COLUMNS = {'qc_score', 'avg_qc_score'}
COUNT_COLUMNS = {'trackers_count'}
NUMBER_COLUMNS = SUM_COLUMNS | AVERAGE_COLUMNS | COUNT_COLUMNS


def month_year_label(value: date) -> str:
    """Backend month_year form: date(2026, 1, 5) -> 'JAN2026'."""
    return f"{MONTH_ABBR[value.month - 1].upper()}{value.year}"


def _first(row: Mapping, keys: Tuple[str, ...]) -> Any:
    for key in keys:
        value = row.get(key)
        if value is not None and value != '':
            return value
    return None


def _rows(records: Any) -> List[Mapping]:
    try:
        return [r for r in (records or []) if isinstance(r, Mapping)]
    except TypeError:
        logger.warning(f"Billable rows are not iterable: {type(records).__name__}")
        return []


def _reshape(records: Any, sources: Dict[str, Tuple[str, ...]]) -> pd.DataFrame:
    data = [{column: _first(row, keys) for column, keys in sources.items()} for row in _rows(records)]
    df = pd.DataFrame(data, columns=list(sources), dtype=object)
    for column in sources:
        if column in NUMBER_COLUMNS:
            df[column] = pd.Series([to_optional_number(v) for v in df[column]], index=df.index, dtype=object)
    return df


def prepare_daily_billable(records: Any, tz: str = 'UTC') -> pd.DataFrame:
    """
    Daily billable rows in backend order.

    work_date is a calendar date in `tz`; numbers are floats or None.
    """
    df = _reshape(records, DAILY_SOURCES)
    df['work_date'] = pd.Series([calendar_date(v, tz) for v in df['work_date']], index=df.index, dtype=object)
    return df


def prepare_monthly_billable(records: Any) -> pd.DataFrame:
    """
    Monthly billable rows in backend order.

    Rows without month_year get one built from their month and year.
    """
    rows = _rows(records)
    df = _reshape(rows, MONTHLY_SOURCES)
    df['month_year'] = [
        label if label is not None else _month_key(row)
        for label, row in zip(df['month_year'], rows)
    ]
    return df


def _month_key(row: Mapping) -> str:
    month, year = row.get('month'), row.get('year')
    if month and year:
        return f"{str(month).upper()}{year}"
    return 'Unknown'


def billable_totals(df: pd.DataFrame, columns: List[Tuple[str, str]]) -> Dict[str, Optional[float]]:
    """
    TOTAL row values for the numeric columns of a billable table.

    Hours are summed, tracker counts added up, QC scores averaged over
    the rows that have one (None when no row has a score).
    """
    totals = {}
    for column, _ in columns:
        values = df[column].tolist() if column in df.columns else []
        if column in SUM_COLUMNS:
            totals[column] = math.fsum(to_number(v) for v in values)
        elif column in COUNT_COLUMNS:
            totals[column] = int(math.fsum(to_number(v) for v in values))
        elif column in AVERAGE_COLUMNS:
            scores = [s for s in (to_optional_number(v) for v in values) if s is not None]
            totals[column] = round(math.fsum(scores) / len(scores), 2) if scores else None
    return totals


def _format_day(value: Any) -> str:
    if not isinstance(value, date):
        return MISSING
    return f"{value.day}/{MONTH_ABBR[value.month - 1]}/{value.year}"


def to_billable_display(
    df: pd.DataFrame,
    columns: List[Tuple[str, str]],
    show_team: bool = True
) -> pd.DataFrame:
    """Billable table as shown on screen, headers renamed, numbers formatted."""
    display = pd.DataFrame(index=df.index)
    for column, header in columns:
        if column == 'team_name' and not show_team:
            continue
        if column == 'work_date':
            display[header] = df[column].map(_format_day)
        elif column in COUNT_COLUMNS:
            display[header] = df[column].map(lambda v: format_number(v, decimals=0))
        elif column in NUMBER_COLUMNS:
            display[header] = df[column].map(format_number)
        else:
            display[header] = df[column].fillna('').astype(str)
    return display
