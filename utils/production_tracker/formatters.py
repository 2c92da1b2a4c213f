# utils/production_tracker/formatters.py
"""
Formatting and normalization helpers for Production Tracker.

Every helper here degrades to a safe default ("—", 0, None, empty frame)
instead of raising.
"""
import logging
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any, Iterable, Optional, Tuple, Union

import numpy as np
import pandas as pd

from .constants import ID_COLUMNS, TRACKER_COLUMNS

logger = logging.getLogger(__name__)

MISSING = "—"
MONTH_ABBR = ['Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun',
              'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec']

Records = Union[pd.DataFrame, Iterable[Mapping], None]


def to_number(value: Any, default: float = 0.0) -> float:
    """Coerce a value to float; None, NaN and garbage become `default`."""
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if np.isnan(number):
        return default
    return number


def to_optional_number(value: Any) -> Optional[float]:
    """Like to_number but keeps "missing" distinguishable from 0."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    number = to_number(value, default=np.nan)
    return None if np.isnan(number) else number


def format_number(value: Any, decimals: int = 2) -> str:
    """
    Format number with thousand separator

    Missing values render as "—" so a blank target is never shown as 0.00.
    """
    number = to_optional_number(value)
    if number is None:
        return MISSING
    return f"{number:,.{decimals}f}"


# =============================================================================
# DATES
# =============================================================================

def parse_date_time(value: Any, tz: str = 'UTC') -> Optional[pd.Timestamp]:
    """
    Parse a tracker `date_time` into a timezone-aware Timestamp in `tz`.

    Naive values are taken as UTC (that is how the backend stores them).
    Plain numbers are epoch milliseconds.
    Returns None for missing or unparseable input.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    try:
        if isinstance(value, (int, float, np.number)) and not isinstance(value, bool):
            ts = pd.to_datetime(value, unit='ms', errors='coerce', utc=True)
        else:
            ts = pd.to_datetime(value, errors='coerce', utc=True)
    except (TypeError, ValueError):
        return None
    if not isinstance(ts, pd.Timestamp) or pd.isna(ts):
        return None
    return ts.tz_convert(tz)


def parse_date_time_series(series: pd.Series, tz: str = 'UTC') -> pd.Series:
    """Element-wise parse_date_time; unparseable entries become NaT."""
    parsed = series.map(lambda value: parse_date_time(value))
    return pd.to_datetime(parsed, utc=True).dt.tz_convert(tz)


def calendar_date(value: Any, tz: str = 'UTC') -> Optional[date]:
    """Calendar date of a timestamp in `tz` (None if unparseable)."""
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    ts = parse_date_time(value, tz)
    return ts.date() if ts is not None else None


def today_in(tz: str = 'UTC') -> date:
    return pd.Timestamp.now(tz=tz).date()


def format_date_time(value: Any, tz: str = 'UTC') -> Tuple[str, str]:
    """
    Split a timestamp into display date and time.

    Returns:
        ("3/Feb/2026", "9:52 PM"), or ("—", "") when unparseable
    """
    ts = parse_date_time(value, tz)
    if ts is None:
        return MISSING, ""

    hours = ts.hour % 12 or 12
    ampm = 'PM' if ts.hour >= 12 else 'AM'
    return (
        f"{ts.day}/{MONTH_ABBR[ts.month - 1]}/{ts.year}",
        f"{hours}:{ts.minute:02d} {ampm}",
    )


# =============================================================================
# RECORD NORMALIZATION
# =============================================================================

def to_tracker_frame(records: Records) -> pd.DataFrame:
    """
    Normalize tracker records into a DataFrame with every tracker column.

    Accepts a DataFrame or any iterable of dicts. Non-dict items are
    dropped and missing columns are added as empty.
    Id columns from dicts keep their values as given (object dtype).
    """
    if records is None:
        df = pd.DataFrame()
    elif isinstance(records, pd.DataFrame):
        df = records.copy()
    else:
        try:
            rows = [dict(r) for r in records if isinstance(r, Mapping)]
        except TypeError:
            logger.warning(f"Tracker records are not iterable: {type(records).__name__}")
            rows = []
        df = pd.DataFrame(rows)
        for column in ID_COLUMNS:
            if column in df.columns:
                df[column] = pd.Series([r.get(column) for r in rows], index=df.index, dtype=object)

    for column in TRACKER_COLUMNS:
        if column not in df.columns:
            df[column] = None

    return df


def id_series(df: pd.DataFrame, column: str) -> pd.Series:
    """String-coerced id column ('7' and 7 compare equal, missing -> '')."""
    if column not in df.columns:
        return pd.Series('', index=df.index)
    return df[column].map(normalize_id)


def normalize_id(value: Any) -> str:
    """
    String form of an id for comparison.

    Whole floats lose their ".0" because pandas upcasts int columns that
    contain gaps.
    """
    if value is None:
        return ''
    if isinstance(value, float):
        if np.isnan(value):
            return ''
        if value.is_integer():
            return str(int(value))
    return str(value).strip()


def to_display_frame(records: Records, tz: str = 'UTC', include_agent: bool = False) -> pd.DataFrame:
    """Tracker table as shown on screen: split date/time, 2-decimal numbers."""
    df = to_tracker_frame(records)
    stamps = [format_date_time(v, tz) for v in df['date_time']]

    display = pd.DataFrame(index=df.index)
    display['Date'] = [d for d, _ in stamps]
    display['Time'] = [t for _, t in stamps]
    if include_agent:
        display['Agent'] = df['user_name'].fillna('')
    display['Project'] = df['project_name'].fillna('')
    display['Task'] = df['task_name'].fillna('')
    display['Shift'] = df['shift'].fillna('').astype(str).str.title()
    display['Per Hour Target'] = df['tenure_target'].map(format_number)
    display['Production'] = df['production'].map(format_number)
    display['Billable Hours'] = df['billable_hours'].map(format_number)
    display['Note'] = df['tracker_note'].fillna('')
    display['File'] = df['tracker_file'].fillna('')
    return display
