# utils/production_tracker/filters.py
"""
Filter Logic and Sidebar Filter Components for Production Tracker

- TrackerFilterValues: the filter bar's values (agents, project, task, dates)
- apply_filters(): AND of every active filter, input order preserved
- narrow_task_options(): cascading task list for the selected project
- apply_text_search(): case-insensitive search across columns
- TrackerFilters: sidebar form that only collects values (never filters)
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd
import streamlit as st

from .formatters import Records, calendar_date, id_series, normalize_id, to_tracker_frame

logger = logging.getLogger(__name__)


# =============================================================================
# FILTER VALUES
# =============================================================================

@dataclass(frozen=True)
class TrackerFilterValues:
    """
    Values of the tracker filter bar. Empty values mean "no filter".

    Attributes:
        agent_ids: Agent user_ids to keep (any id type)
        project_id: Project to keep
        task_id: Task to keep
        date_from: Inclusive start date
        date_to: Inclusive end date
    """
    agent_ids: Tuple[Any, ...] = field(default_factory=tuple)
    project_id: Any = None
    task_id: Any = None
    date_from: Any = None
    date_to: Any = None

    @classmethod
    def from_dict(cls, values: Optional[Mapping]) -> 'TrackerFilterValues':
        if not values:
            return cls()
        return cls(
            agent_ids=_as_id_tuple(values.get('agent_ids')),
            project_id=values.get('project_id'),
            task_id=values.get('task_id'),
            date_from=values.get('date_from'),
            date_to=values.get('date_to'),
        )

    def with_changes(self, **changes) -> 'TrackerFilterValues':
        return replace(self, **changes)

    @property
    def normalized_agent_ids(self) -> List[str]:
        return [a for a in (normalize_id(x) for x in _as_id_tuple(self.agent_ids)) if a]

    @property
    def is_active(self) -> bool:
        return bool(
            self.normalized_agent_ids
            or normalize_id(self.project_id)
            or normalize_id(self.task_id)
            or _to_bound_date(self.date_from)
            or _to_bound_date(self.date_to)
        )

    def __repr__(self) -> str:
        return (
            f"TrackerFilterValues(agents={len(self.normalized_agent_ids)}, "
            f"project={self.project_id}, task={self.task_id}, "
            f"dates={self.date_from}..{self.date_to})"
        )


def _as_id_tuple(value: Any) -> Tuple[Any, ...]:
    """A single id (str or number) is one id, not a sequence of characters."""
    if value is None or value == '':
        return ()
    if isinstance(value, (str, int, float)):
        return (value,)
    try:
        return tuple(value)
    except TypeError:
        return (value,)


def _to_bound_date(value: Any) -> Optional[date]:
    """
    Date filter bound as a plain calendar date.

    Date-only strings are read as calendar dates (no timezone shift).
    Unparseable bounds are ignored.
    """
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        parsed = pd.to_datetime(str(value), errors='coerce')
    except (TypeError, ValueError):
        parsed = None
    if not isinstance(parsed, pd.Timestamp) or pd.isna(parsed):
        logger.warning(f"Ignoring unparseable date filter: {value!r}")
        return None
    return parsed.date()


# =============================================================================
# FILTER LOGIC
# =============================================================================

def apply_filters(
    records: Records,
    filters: Any = None,
    tz: str = 'UTC'
) -> pd.DataFrame:
    """
    Keep the records that satisfy every active filter.

    Args:
        records: Tracker entries (DataFrame or list of dicts)
        filters: TrackerFilterValues or a dict with the same keys
        tz: Calendar timezone used to take the date part of date_time

    Returns:
        Filtered DataFrame in input order. Ids are compared as strings,
        so 7 and '7' match. Entries without a parseable date_time are
        dropped only when a date bound is set.
    """
    df = to_tracker_frame(records)
    if not isinstance(filters, TrackerFilterValues):
        filters = TrackerFilterValues.from_dict(filters if isinstance(filters, Mapping) else None)

    if df.empty:
        return df

    mask = pd.Series(True, index=df.index)

    agent_ids = filters.normalized_agent_ids
    if agent_ids:
        mask &= id_series(df, 'user_id').isin(set(agent_ids))

    project_id = normalize_id(filters.project_id)
    if project_id:
        mask &= id_series(df, 'project_id') == project_id

    task_id = normalize_id(filters.task_id)
    if task_id:
        mask &= id_series(df, 'task_id') == task_id

    date_from = _to_bound_date(filters.date_from)
    date_to = _to_bound_date(filters.date_to)
    if date_from or date_to:
        entry_dates = df['date_time'].map(lambda v: calendar_date(v, tz))
        in_range = [
            d is not None
            and (date_from is None or d >= date_from)
            and (date_to is None or d <= date_to)
            for d in entry_dates
        ]
        mask &= pd.Series(in_range, index=df.index, dtype=bool)

    result = df[mask]
    logger.debug(f"apply_filters: {len(df)} -> {len(result)} rows with {filters!r}")
    return result


def narrow_task_options(tasks: Any, project_id: Any) -> List[Dict]:
    """
    Task options for the filter bar.

    With a project selected only that project's tasks are offered;
    with none, every task is.
    """
    options = [t for t in (tasks or []) if isinstance(t, Mapping)]
    wanted = normalize_id(project_id)
    if not wanted:
        return options
    return [t for t in options if normalize_id(t.get('project_id')) == wanted]


def apply_text_search(
    df: pd.DataFrame,
    columns: List[str],
    query: str,
    excluded: bool = False
) -> pd.DataFrame:
    """
    Case-insensitive substring search across several columns.

    Args:
        df: DataFrame to filter
        columns: Column names to search in (missing ones are skipped)
        query: Search text; blank means no filter
        excluded: Drop matching rows instead of keeping them
    """
    query = (query or '').strip().lower()
    if df.empty or not query:
        return df

    combined_mask = pd.Series(False, index=df.index)
    for column in columns:
        if column in df.columns:
            values = df[column].fillna('').astype(str).str.lower()
            combined_mask |= values.str.contains(query, na=False, regex=False)

    return df[~combined_mask] if excluded else df[combined_mask]


def get_active_filter_summary(
    filters: TrackerFilterValues,
    agent_names: Optional[Dict[str, str]] = None,
    project_names: Optional[Dict[str, str]] = None,
    task_names: Optional[Dict[str, str]] = None
) -> str:
    """
    Human readable summary of the active filters.

    Name maps are keyed by string id; unknown ids are shown as-is.
    """
    parts = []

    agents = filters.normalized_agent_ids
    if agents:
        names = [(agent_names or {}).get(a, a) for a in agents]
        shown = ', '.join(names[:3]) + (f" +{len(names) - 3}" if len(names) > 3 else '')
        parts.append(f"Agents: {shown}")

    project_id = normalize_id(filters.project_id)
    if project_id:
        parts.append(f"Project: {(project_names or {}).get(project_id, project_id)}")

    task_id = normalize_id(filters.task_id)
    if task_id:
        parts.append(f"Task: {(task_names or {}).get(task_id, task_id)}")

    date_from = _to_bound_date(filters.date_from)
    date_to = _to_bound_date(filters.date_to)
    if date_from or date_to:
        parts.append(f"Dates: {date_from or '…'} → {date_to or '…'}")

    return " | ".join(parts) if parts else "No filters applied"


# =============================================================================
# SIDEBAR FILTER FORM
# =============================================================================

class TrackerFilters:
    """
    Sidebar filter components for the tracker report.

    Usage:
        filters = TrackerFilters(show_agents=access.capabilities.can_view_team_column)

        values, submitted = filters.render_filter_form(
            agents=agents,
            projects=projects,
            default_date=today,
        )
    """

    STATE_KEY = 'pt_applied_filters'

    def __init__(self, show_agents: bool = True, key_prefix: str = 'pt_filter'):
        self.show_agents = show_agents
        self.key_prefix = key_prefix

    def render_filter_form(
        self,
        agents: List[Dict],
        projects: List[Dict],
        default_date: date
    ) -> Tuple[TrackerFilterValues, bool]:
        """
        Render filters in the sidebar; values apply only on submit.

        The project selector sits outside the form so the task list can
        follow it. A task that is not in the newly selected project is
        cleared.

        Returns:
            Tuple of (applied filter values, submitted flag)
        """
        from .selection import reconcile_filter_selection

        applied: TrackerFilterValues = st.session_state.get(self.STATE_KEY) or TrackerFilterValues(
            date_from=default_date, date_to=default_date
        )

        project_labels = {normalize_id(p.get('project_id')): p.get('project_name', '') for p in projects}
        agent_labels = {normalize_id(a.get('user_id')): a.get('user_name', '') for a in agents}

        with st.sidebar:
            st.header("🎛️ Filters")

            project_options = [''] + list(project_labels)
            current_project = normalize_id(applied.project_id)
            project_id = st.selectbox(
                "📁 Project",
                options=project_options,
                index=project_options.index(current_project) if current_project in project_options else 0,
                format_func=lambda pid: project_labels.get(pid, 'All projects') or pid,
                key=f"{self.key_prefix}_project",
            )

            tasks = narrow_task_options(
                [{**t, 'project_id': p.get('project_id')} for p in projects for t in (p.get('tasks') or [])],
                project_id,
            )
            draft = reconcile_filter_selection(applied.with_changes(project_id=project_id or None), tasks)
            task_labels = {normalize_id(t.get('task_id')): t.get('task_name') or t.get('label', '') for t in tasks}

            with st.form(f"{self.key_prefix}_form", border=False):
                if self.show_agents:
                    selected_agents = st.multiselect(
                        "👤 Agents",
                        options=list(agent_labels),
                        default=[a for a in draft.normalized_agent_ids if a in agent_labels],
                        format_func=lambda uid: agent_labels.get(uid) or uid,
                        placeholder="All agents",
                        key=f"{self.key_prefix}_agents",
                    )
                else:
                    selected_agents = []

                task_options = [''] + list(task_labels)
                current_task = normalize_id(draft.task_id)
                task_id = st.selectbox(
                    "📝 Task",
                    options=task_options,
                    index=task_options.index(current_task) if current_task in task_options else 0,
                    format_func=lambda tid: task_labels.get(tid, 'All tasks') or tid,
                    key=f"{self.key_prefix}_task",
                )

                col_d1, col_d2 = st.columns(2)
                with col_d1:
                    date_from = st.date_input(
                        "From",
                        value=_to_bound_date(draft.date_from) or default_date,
                        key=f"{self.key_prefix}_from",
                    )
                with col_d2:
                    date_to = st.date_input(
                        "To",
                        value=_to_bound_date(draft.date_to) or default_date,
                        key=f"{self.key_prefix}_to",
                    )

                if date_from > date_to:
                    st.error("⚠️ Start date must be before end date")
                    date_to = date_from

                submitted = st.form_submit_button(
                    "🔍 Apply Filters",
                    use_container_width=True,
                    type="primary"
                )

        values = TrackerFilterValues(
            agent_ids=tuple(selected_agents),
            project_id=project_id or None,
            task_id=task_id or None,
            date_from=date_from,
            date_to=date_to,
        )

        if submitted:
            st.session_state[self.STATE_KEY] = values
            logger.info(f"Filters applied: {values!r}")
            return values, True

        return draft, False
