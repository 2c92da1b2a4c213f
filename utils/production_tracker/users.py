# utils/production_tracker/users.py
"""
User list and task assignment helpers for Production Tracker.

An agent is assigned to a task by being in that task's task_team_id
list, so assigning or unassigning means rewriting that list.
"""

import json
import logging
from collections.abc import Mapping
from typing import Any, Dict, Iterable, List, Tuple

import pandas as pd

from .access_control import resolve_role
from .formatters import normalize_id

logger = logging.getLogger(__name__)

USER_COLUMNS = [
    ('user_name', 'Name'),
    ('user_email', 'Email'),
    ('role', 'Role'),
    ('team_name', 'Team'),
    ('user_tenure', 'Tenure'),
    ('status', 'Status'),
]


def as_id_list(value: Any) -> List:
    """List fields may come back as lists, JSON arrays or comma separated text."""
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            value = [v.strip() for v in value.split(',') if v.strip()]
    if isinstance(value, (list, tuple)):
        return list(value)
    return [] if value is None or value == '' else [value]


def to_backend_ids(values: Iterable[Any]) -> List:
    """Digit strings back to ints for the backend; other ids unchanged."""
    return [int(v) if str(v).isdigit() else v for v in values]


def is_active(user: Mapping) -> bool:
    """is_active is 1/0 (or a bool); a user without the field is active."""
    value = user.get('is_active')
    if value is None or value == '':
        return True
    if isinstance(value, bool):
        return value
    return normalize_id(value) == '1'


def role_label(user: Mapping) -> str:
    role = resolve_role(user.get('role_id'), user.get('role_name') or user.get('user_role') or user.get('role'))
    if role is not None:
        return role.label
    return str(user.get('role_name') or user.get('role') or '')


def prepare_user_table(users: Any) -> pd.DataFrame:
    """One row per user with a resolved role label and Active/Inactive status."""
    rows = []
    for user in users or []:
        if not isinstance(user, Mapping):
            continue
        rows.append({
            'user_id': user.get('user_id') or user.get('id'),
            'user_name': user.get('user_name') or user.get('name') or '',
            'user_email': user.get('user_email') or user.get('email') or '',
            'role': role_label(user),
            'team_name': user.get('team_name') or '',
            'user_tenure': user.get('user_tenure'),
            'status': 'Active' if is_active(user) else 'Inactive',
        })
    return pd.DataFrame(rows, columns=['user_id'] + [c for c, _ in USER_COLUMNS], dtype=object)


# =============================================================================
# TASK ASSIGNMENT
# =============================================================================

def is_team_member(task: Mapping, user_id: Any) -> bool:
    wanted = normalize_id(user_id)
    return bool(wanted) and wanted in {normalize_id(v) for v in as_id_list(task.get('task_team_id'))}


def toggle_team_member(team_ids: Any, user_id: Any, assigned: bool) -> List:
    """
    Task team with `user_id` added or removed.

    Order is kept, duplicates and blanks are dropped, ids go back to the
    backend as ints where they are digits.
    """
    wanted = normalize_id(user_id)
    team = []
    for member in (normalize_id(v) for v in as_id_list(team_ids)):
        if member and member not in team and (assigned or member != wanted):
            team.append(member)
    if assigned and wanted and wanted not in team:
        team.append(wanted)
    return to_backend_ids(team)


def plan_task_assignments(
    tasks: Iterable[Mapping],
    user_id: Any,
    selected_task_ids: Iterable[Any]
) -> List[Tuple[Dict, bool]]:
    """
    Tasks whose membership must change so that `user_id` is on exactly
    the selected tasks.

    Returns:
        List of (task, assigned) pairs, in task order
    """
    selected = {normalize_id(t) for t in selected_task_ids}
    changes = []
    for task in tasks or []:
        if not isinstance(task, Mapping):
            continue
        wanted = normalize_id(task.get('task_id')) in selected
        if wanted != is_team_member(task, user_id):
            changes.append((dict(task), wanted))
    return changes
